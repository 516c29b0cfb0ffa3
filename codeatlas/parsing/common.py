"""
Language-neutral extraction helpers.

Type-name harvesting, dependency-injection detection and component-type
inference are shared by every extractor so that a Kotlin ViewModel and a
Java ViewModel end up described the same way.
"""

import os
import re
from typing import Dict, Iterable, List, Optional, Any

from ..core.entities import Component


# --- TYPE FILTERS ---
PRIMITIVE_TYPES = {
    "byte", "short", "int", "long", "float", "double", "boolean", "char", "void",
    "String", "Unit", "Any", "Nothing",
    # boxed / language builtins
    "Integer", "Long", "Double", "Float", "Boolean", "Character", "Byte", "Short",
    "Number", "Object", "Void", "Int", "CharSequence", "Char", "Class",
    "dynamic", "num", "bool", "Null", "undefined", "null", "number", "string",
}

# Generic wrappers that are unwrapped to their type arguments
CONTAINER_TYPES = {
    "List", "ArrayList", "LinkedList", "MutableList", "Map", "HashMap", "LinkedHashMap",
    "MutableMap", "Set", "HashSet", "MutableSet", "Collection", "Iterable", "Array",
    "Sequence", "Optional", "Pair", "Triple", "Lazy", "Provider", "Future", "Stream",
    "Promise", "Observable", "Single", "Maybe", "Flowable", "Completable", "Flow",
    "StateFlow", "MutableStateFlow", "SharedFlow", "LiveData", "MutableLiveData",
    "Record", "Partial", "Readonly", "Array", "FutureOr", "Iterator",
}

EXCLUDED_PREFIXES = ("java.", "javax.", "kotlin.", "kotlinx.")

INJECTION_ANNOTATIONS = {"Inject", "Autowired", "Resource"}

_TYPE_TOKEN = re.compile(r"[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*")

VISIBILITY_KEYWORDS = ("public", "private", "protected", "internal")

_RESOURCE = re.compile(
    r"\bR\.(layout|id|string|drawable|navigation|menu|color|dimen|style|mipmap)\.(\w+)")


def type_references(type_text: Optional[str]) -> List[str]:
    """
    Referenced type names in a type expression.

    'Map<String, List<User>>' -> ['User']. Primitives, standard containers
    and java./kotlin. qualified names are dropped.
    """
    if not type_text:
        return []
    names: List[str] = []
    for token in _TYPE_TOKEN.findall(type_text):
        if token.startswith(EXCLUDED_PREFIXES):
            continue
        simple = token.rsplit(".", 1)[-1]
        if not simple[:1].isupper():
            continue
        if simple in PRIMITIVE_TYPES or simple in CONTAINER_TYPES:
            continue
        if token not in names:
            names.append(token)
    return names


def base_type(type_text: Optional[str]) -> Optional[str]:
    """First referenced type of a type expression (the unwrapped base type)."""
    refs = type_references(type_text)
    return refs[0] if refs else None


def injection_type(type_text: Optional[str]) -> Optional[str]:
    """Type recorded for an injection point.

    Falls back to the bare declared type when the base type is filtered out
    ('String', 'int'); None only when no type was declared at all.
    """
    if not type_text:
        return None
    return base_type(type_text) or strip_generics(type_text) or None


def strip_generics(name: str) -> str:
    depth = 0
    out = []
    for ch in name:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth = max(0, depth - 1)
        elif depth == 0:
            out.append(ch)
    return "".join(out).strip().rstrip("?")


def path_qualifier(file_path: str) -> str:
    """Root-relative path without its extension, used to qualify ids of module-scoped languages.

    'src/screens/Home/index.js' -> 'src/screens/Home/index'
    """
    return os.path.splitext(file_path.replace("\\", "/"))[0]


def visibility_of(modifiers: Iterable[str], default: str = "public") -> str:
    for keyword in VISIBILITY_KEYWORDS:
        if keyword in modifiers:
            return keyword
    return default


def is_injection(annotations: Iterable[str]) -> bool:
    return any(a in INJECTION_ANNOTATIONS for a in annotations)


def resource_usages(source: str) -> List[str]:
    """Distinct R.<type>.<name> references in source order."""
    usages: List[str] = []
    for kind, name in _RESOURCE.findall(source):
        usage = f"R.{kind}.{name}"
        if usage not in usages:
            usages.append(usage)
    return usages


def layout_files(usages: Iterable[str]) -> List[str]:
    return [u.split(".")[-1] + ".xml" for u in usages if u.startswith("R.layout.")]


# --- COMPONENT TYPE INFERENCE ---
EXTENDS_COMPONENT_TYPES = [
    ("BroadcastReceiver", "BroadcastReceiver"),
    ("ContentProvider", "ContentProvider"),
    ("Application", "Application"),
    ("Activity", "Activity"),
    ("Fragment", "Fragment"),
    ("Service", "Service"),
    ("ViewModel", "ViewModel"),
    ("StatelessWidget", "Widget"),
    ("StatefulWidget", "Widget"),
    ("State", "WidgetState"),
    ("Component", "ReactComponent"),
    ("ViewHolder", "ViewHolder"),
    ("Adapter", "Adapter"),
]

ANNOTATION_COMPONENT_TYPES = {
    "Composable": "Composable",
    "Entity": "Entity",
    "Dao": "Dao",
    "Database": "Database",
    "RestController": "Controller",
    "Controller": "Controller",
    "HiltViewModel": "ViewModel",
}

NAME_COMPONENT_TYPES = [
    ("ViewModel", "ViewModel"),
    ("Repository", "Repository"),
    ("UseCase", "UseCase"),
    ("Interactor", "UseCase"),
    ("Activity", "Activity"),
    ("Fragment", "Fragment"),
    ("Adapter", "Adapter"),
    ("Screen", "Screen"),
]


def infer_component_type(name: str, extends_name: Optional[str],
                         annotations: Iterable[str]) -> Optional[str]:
    """Best-effort framework role (Activity, ViewModel, Composable...)."""
    if extends_name:
        base = strip_generics(extends_name).rsplit(".", 1)[-1]
        for suffix, component_type in EXTENDS_COMPONENT_TYPES:
            if base.endswith(suffix):
                return component_type
    for annotation in annotations:
        if annotation in ANNOTATION_COMPONENT_TYPES:
            return ANNOTATION_COMPONENT_TYPES[annotation]
    for suffix, component_type in NAME_COMPONENT_TYPES:
        if name.endswith(suffix):
            return component_type
    return None


# --- DEPENDENCY INJECTION ---
FRAMEWORK_IMPORT_PREFIXES = [
    ("dagger.hilt", "hilt"),
    ("dagger", "dagger"),
    ("javax.inject", "jsr330"),
    ("org.koin", "koin"),
    ("org.springframework", "spring"),
    ("package:get_it", "get_it"),
    ("package:provider", "provider"),
    ("package:flutter_riverpod", "riverpod"),
    ("@angular/core", "angular"),
    ("inversify", "inversify"),
    ("tsyringe", "tsyringe"),
]

HILT_ROLES = {
    "HiltAndroidApp": "hilt_application",
    "AndroidEntryPoint": "hilt_entry_point",
    "HiltViewModel": "hilt_view_model",
}

SPRING_STEREOTYPES = {"Component", "Service", "Repository", "Controller", "RestController", "Configuration"}


def detect_di_info(annotations: Iterable[str], imports: Iterable[str]) -> Dict[str, Any]:
    """DI framework flags and the component's role in the DI graph."""
    annotations = list(annotations)
    frameworks: List[str] = []
    for imp in imports:
        for prefix, framework in FRAMEWORK_IMPORT_PREFIXES:
            if imp.startswith(prefix):
                if framework not in frameworks:
                    frameworks.append(framework)
                break

    role = None
    for annotation in annotations:
        if annotation in HILT_ROLES:
            role = HILT_ROLES[annotation]
            break
    if role is None:
        uses_dagger = "dagger" in frameworks or "hilt" in frameworks
        if "Module" in annotations and "InstallIn" in annotations:
            role = "hilt_module"
        elif uses_dagger and "Module" in annotations:
            role = "dagger_module"
        elif uses_dagger and "Subcomponent" in annotations:
            role = "dagger_subcomponent"
        elif uses_dagger and "Component" in annotations:
            role = "dagger_component"
        elif "spring" in frameworks:
            stereotype = next((a for a in annotations if a in SPRING_STEREOTYPES), None)
            if stereotype:
                role = "spring_" + stereotype.lower()

    if not frameworks and role is None:
        return {}
    info: Dict[str, Any] = {"frameworks": sorted(frameworks)}
    if role:
        info["role"] = role
    return info


def finish_component(component: Component, source: str):
    """Fill in the derived fields every extractor computes the same way."""
    component.component_type = component.component_type or infer_component_type(
        component.name, component.extends_name, component.annotations)
    if not component.di_info:
        component.di_info = detect_di_info(component.annotations, component.imports)
    if source and not component.resource_usages:
        component.resource_usages = resource_usages(source)
        component.layout_files = layout_files(component.resource_usages)
