"""
Layer and category classification.

Both classifiers are ordered rule tables evaluated top to bottom, first
match wins. They read only the component's own fields, so classifying
the same component twice always gives the same answer.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from .entities import Category, Component, ComponentKind, Layer


# --- LAYER RULES ---
# Base types whose subclasses belong to a known layer (matched as suffix)
EXTENDS_LAYER_RULES: List[Tuple[Layer, Tuple[str, ...]]] = [
    (Layer.UI, (
        "Activity", "Fragment", "DialogFragment", "BottomSheetDialogFragment",
        "Adapter", "ViewHolder", "View", "ViewGroup", "Layout",
        "StatelessWidget", "StatefulWidget", "State", "Component", "PureComponent",
    )),
    (Layer.BUSINESS_LOGIC, (
        "ViewModel", "AndroidViewModel", "Presenter", "UseCase", "Interactor",
        "Controller", "Bloc", "Cubit", "ChangeNotifier",
    )),
    (Layer.DATA, (
        "Repository", "RoomDatabase", "Dao", "DataSource", "SQLiteOpenHelper",
        "Service", "IntentService", "JobService", "ContentProvider",
        "JpaRepository", "CrudRepository",
    )),
]

# Own-name suffixes; order matters ("LoginViewModel" must not hit "Model")
NAME_LAYER_RULES: List[Tuple[Layer, Tuple[str, ...]]] = [
    (Layer.UI, (
        "Activity", "Fragment", "Adapter", "ViewHolder",
        "Screen", "Dialog", "Page", "View",
    )),
    (Layer.BUSINESS_LOGIC, ("ViewModel", "Presenter", "Controller", "UseCase")),
    (Layer.DATA, ("Repository", "DataSource", "Dao", "Service")),
    (Layer.DOMAIN, ("Entity", "Domain", "Model")),
]


# --- CATEGORY RULES ---
CATEGORY_RULES: List[Tuple[Category, "re.Pattern"]] = [
    (Category.BUSINESS_LOGIC, re.compile(
        r"(viewmodel|presenter|usecase|interactor|controller|bloc|cubit)$")),
    (Category.UI, re.compile(
        r"(activity|fragment|screen|page|view|dialog|adapter|viewholder|widget"
        r"|layout|composable|component|bottomsheet)$")),
    (Category.NAVIGATION, re.compile(
        r"(navigation|navigator|navgraph|router|routes?|coordinator|deeplink|destination)")),
    # networking, persistence, security, dependency injection, general services
    (Category.BUSINESS_LOGIC, re.compile(
        r"(repository|datasource|dao|service|manager|handler|api|client|http|retrofit"
        r"|network|socket|database|cache|storage|preferences|prefs"
        r"|auth|security|crypto|token|session|injector|module|provider|factory"
        r"|worker|receiver|helper|util)")),
    (Category.DATA_MODEL, re.compile(
        r"(model|entity|dto|pojo|data|request|response|item|record|bean|state|event)$")),
]

DI_WIRING_ROLES = {"dagger_component", "dagger_subcomponent", "dagger_module", "hilt_module"}

CATEGORY_DISPLAY_NAMES: Dict[Category, str] = {
    Category.UI: "UI Components",
    Category.DATA_MODEL: "Data Models",
    Category.BUSINESS_LOGIC: "Business Logic",
    Category.NAVIGATION: "Navigation",
    Category.UNKNOWN: "Other",
}

_GENERIC = re.compile(r"<.*>")


def _base_name(name: Optional[str]) -> str:
    if not name:
        return ""
    name = _GENERIC.sub("", name).strip().rstrip("?")
    return re.split(r"[.$/:]", name)[-1]


def layer_from_extends(extends_name: Optional[str]) -> Optional[Layer]:
    """Layer implied by the superclass name, if it is a known base type."""
    base = _base_name(extends_name)
    if not base:
        return None
    for layer, suffixes in EXTENDS_LAYER_RULES:
        if base.endswith(suffixes):
            return layer
    return None


def layer_from_name(name: str) -> Layer:
    """Name-suffix rules only; used for external placeholders too."""
    base = _base_name(name)
    for layer, suffixes in NAME_LAYER_RULES:
        if base.endswith(suffixes):
            return layer
    return Layer.UNKNOWN


def classify_layer(component: Component) -> Layer:
    """Assign a layer: explicit signal, then superclass, then own name."""
    if component.explicit_layer is not None:
        return component.explicit_layer
    if component.kind == ComponentKind.LAYOUT:
        return Layer.UI
    inherited = layer_from_extends(component.extends_name)
    if inherited is not None:
        return inherited
    return layer_from_name(component.name)


def classify_category(component: Component) -> Category:
    """Assign a category from name, component type and kind keywords."""
    name = _base_name(component.name).lower()
    haystacks = [name]
    if component.component_type:
        haystacks.append(component.component_type.lower())
    if component.kind in (ComponentKind.LAYOUT, ComponentKind.WIDGET):
        haystacks.append(component.kind.value)
    if component.kind == ComponentKind.NAV_DESTINATION:
        haystacks.append("destination")

    # DI graph definitions (Dagger components/modules) are wiring, not UI
    if component.di_info.get("role") in DI_WIRING_ROLES:
        return Category.BUSINESS_LOGIC

    for category, pattern in CATEGORY_RULES:
        if any(pattern.search(h) for h in haystacks):
            return category
    return Category.UNKNOWN


def classify(component: Component) -> Component:
    """Set layer and category on a component in place."""
    component.layer = classify_layer(component)
    component.category = classify_category(component)
    return component


def classify_all(components: Iterable[Component]) -> List[Component]:
    return [classify(c) for c in components]


def category_display_name(category: Category) -> str:
    return CATEGORY_DISPLAY_NAMES[category]


def categorize_components(components: Iterable[Component]) -> Dict[Category, List[Component]]:
    """Group components into every category bucket (empty buckets included)."""
    buckets: Dict[Category, List[Component]] = {c: [] for c in Category}
    for component in components:
        buckets[component.category].append(component)
    return buckets


def category_distribution(components: Iterable[Component]) -> Dict[str, int]:
    return {
        category.value: len(items)
        for category, items in categorize_components(components).items()
    }


def layer_distribution(components: Iterable[Component]) -> Dict[str, int]:
    counts = {layer.value: 0 for layer in Layer}
    for component in components:
        counts[component.layer.value] += 1
    return counts


# --- SCREENS ---
SCREEN_NAME_SUFFIXES = ("Activity", "Fragment", "Dialog", "Screen", "Page")
SCREEN_BASE_TYPES = ("Activity", "Fragment", "Dialog")
SCREEN_COMPONENT_TYPES = {"Activity", "Fragment", "Screen", "NavigationDestination"}


def is_screen(component: Component) -> bool:
    """Whether a component is a navigable screen (activity, fragment, page...)."""
    if component.is_external or component.kind in (ComponentKind.LAYOUT, ComponentKind.BEAN):
        return False
    if component.kind == ComponentKind.NAV_DESTINATION:
        return True
    if component.component_type in SCREEN_COMPONENT_TYPES:
        return True
    if _base_name(component.name).endswith(SCREEN_NAME_SUFFIXES):
        return True
    base = _base_name(component.extends_name)
    return any(t in base for t in SCREEN_BASE_TYPES)
