"""
Unified component model for multi-language analysis.

Every extractor, whatever its source language, produces Component records
defined here. References to other types are recorded as Reference stubs
and later bound to canonical components by the symbol resolver.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from enum import Enum


# Type name recorded for an injected dependency whose type is unknown
UNKNOWN_INJECTION = "AUTOWIRED"
UNKNOWN_INJECTION_NODE = "AUTOWIRED_DEPENDENCY"


class Layer(Enum):
    """Coarse architectural bucket of a component."""
    UI = "UI"
    BUSINESS_LOGIC = "Business Logic"
    DATA = "Data"
    DOMAIN = "Domain"
    UNKNOWN = "Unknown"


class Category(Enum):
    """Coarse functional bucket used for grouping."""
    UI = "UI"
    DATA_MODEL = "DATA_MODEL"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    NAVIGATION = "NAVIGATION"
    UNKNOWN = "UNKNOWN"


class ComponentKind(Enum):
    """What kind of definition a component was extracted from."""
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    OBJECT = "object"
    WIDGET = "widget"
    FUNCTION = "function"
    LAYOUT = "layout"
    NAV_DESTINATION = "navigation_destination"
    BEAN = "bean"
    EXTERNAL = "external"


@dataclass
class Reference:
    """
    A name recorded by an extractor before resolution.

    Once bound to a component the binding never changes.

    Attributes:
        name: Simple or qualified name as written in the source
        target: Canonical component or external placeholder, once resolved
        context: Where the reference came from (e.g. "field:repo")
        ambiguous: Resolved through a simple name shared by several components
    """
    name: str
    target: Optional["Component"] = None
    context: Optional[str] = None
    ambiguous: bool = False

    @property
    def is_resolved(self) -> bool:
        return self.target is not None

    @property
    def target_id(self) -> str:
        """Id of the bound component, or the literal name if unbound."""
        return self.target.id if self.target is not None else self.name

    def bind(self, component: "Component", ambiguous: bool = False) -> bool:
        """Bind to a component. Returns False if already bound."""
        if self.target is not None:
            return False
        self.target = component
        self.ambiguous = ambiguous
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "target": self.target_id,
            "resolved": self.is_resolved,
            "external": bool(self.target is not None and self.target.is_external),
            "context": self.context,
        }


@dataclass
class CodeMethod:
    """A method or function member of a component."""
    name: str
    return_type: Optional[str] = None
    parameters: List[str] = field(default_factory=list)
    visibility: str = "public"
    annotations: List[str] = field(default_factory=list)
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "return_type": self.return_type,
            "parameters": self.parameters,
            "visibility": self.visibility,
            "annotations": self.annotations,
            "line": self.line,
        }


@dataclass
class CodeField:
    """A field or property of a component."""
    name: str
    type: Optional[str] = None
    visibility: str = "public"
    annotations: List[str] = field(default_factory=list)
    injected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "visibility": self.visibility,
            "annotations": self.annotations,
            "injected": self.injected,
        }


@dataclass
class Component:
    """
    One parsed definition (class, interface, widget, layout, bean...).

    Attributes:
        id: Qualified, unique key (package.Name where a package exists)
        name: Simple name
        kind: Definition kind
        language: Source language
        file_path: File the definition came from
        extends_ref: Superclass reference, if any
        implements_refs: Implemented interfaces / mixins
        dependencies: Types used by fields, methods and constructors
        injected_dependencies: Dependencies obtained through injection
        layer: Architectural layer (set by the classifier)
        category: Functional category (set by the classifier)
        explicit_layer: Layer asserted by an upstream signal such as the manifest
        navigation_targets: Screens this component navigates to
    """
    id: str
    name: str
    kind: ComponentKind
    language: str
    file_path: str

    extends_ref: Optional[Reference] = None
    implements_refs: List[Reference] = field(default_factory=list)
    dependencies: List[Reference] = field(default_factory=list)
    injected_dependencies: List[Reference] = field(default_factory=list)

    methods: List[CodeMethod] = field(default_factory=list)
    fields: List[CodeField] = field(default_factory=list)
    annotations: List[str] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)

    layer: Layer = Layer.UNKNOWN
    category: Category = Category.UNKNOWN
    explicit_layer: Optional[Layer] = None
    navigation_targets: List[str] = field(default_factory=list)

    # Project context
    package_name: Optional[str] = None
    module_name: str = "root"
    component_type: Optional[str] = None
    is_external: bool = False
    manifest_registered: bool = False

    # Framework details
    di_info: Dict[str, Any] = field(default_factory=dict)
    composables: List[str] = field(default_factory=list)
    resource_usages: List[str] = field(default_factory=list)
    layout_files: List[str] = field(default_factory=list)

    # Position within the file, used for deterministic ordering
    start_line: int = 0
    declaration_index: int = 0

    @property
    def simple_name(self) -> str:
        return self.name

    @property
    def extends_name(self) -> Optional[str]:
        return self.extends_ref.name if self.extends_ref else None

    def add_dependency(self, name: str, context: Optional[str] = None):
        """Record a dependency stub unless the name is already present."""
        if not name or name == self.name or name == self.id:
            return
        if any(dep.name == name for dep in self.dependencies):
            return
        self.dependencies.append(Reference(name=name, context=context))

    def add_injection(self, name: Optional[str], context: Optional[str] = None):
        """Record an injected dependency; an unknown type becomes the AUTOWIRED sentinel."""
        name = name or UNKNOWN_INJECTION
        if name != UNKNOWN_INJECTION and any(
            dep.name == name for dep in self.injected_dependencies
        ):
            return
        self.injected_dependencies.append(Reference(name=name, context=context))

    def add_navigation_target(self, target: str):
        if target and target not in self.navigation_targets:
            self.navigation_targets.append(target)

    def sort_key(self):
        return (self.file_path, self.declaration_index, self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain dictionary (references collapse to ids)."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "language": self.language,
            "file_path": self.file_path,
            "extends": self.extends_ref.to_dict() if self.extends_ref else None,
            "implements": [r.to_dict() for r in self.implements_refs],
            "dependencies": [r.to_dict() for r in self.dependencies],
            "injected_dependencies": [r.to_dict() for r in self.injected_dependencies],
            "methods": [m.to_dict() for m in self.methods],
            "fields": [f.to_dict() for f in self.fields],
            "annotations": self.annotations,
            "modifiers": self.modifiers,
            "imports": self.imports,
            "layer": self.layer.value,
            "category": self.category.value,
            "navigation_targets": self.navigation_targets,
            "package_name": self.package_name,
            "module_name": self.module_name,
            "component_type": self.component_type,
            "is_external": self.is_external,
            "manifest_registered": self.manifest_registered,
            "di_info": self.di_info,
            "composables": self.composables,
            "resource_usages": self.resource_usages,
            "layout_files": self.layout_files,
            "start_line": self.start_line,
        }


@dataclass
class ExtractionResult:
    """
    Outcome of running one extractor over one file.

    Mirrors the parse-status fields the parser has always carried:
    a failed or partial parse still returns whatever components it found.
    """
    file_path: str
    language: str
    components: List[Component] = field(default_factory=list)
    parse_success: bool = True
    parse_errors: List[str] = field(default_factory=list)
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "language": self.language,
            "components": [c.id for c in self.components],
            "parse_success": self.parse_success,
            "parse_errors": self.parse_errors,
            "skipped": self.skipped,
        }


def make_placeholder(name: str) -> Component:
    """Create the component-shaped node standing in for an out-of-tree symbol."""
    simple = simple_name_of(name)
    return Component(
        id=name,
        name=simple,
        kind=ComponentKind.EXTERNAL,
        language="external",
        file_path="",
        is_external=True,
    )


def simple_name_of(name: str) -> str:
    """Strip any package/module qualifier: 'com.a.B' -> 'B'."""
    for sep in (".", "/", ":", "$", "\\"):
        if sep in name:
            name = name.rsplit(sep, 1)[-1]
    return name


def module_name_for(file_path: str) -> str:
    """Derive a build-module name from a file path."""
    parts = file_path.replace("\\", "/").split("/")
    if "app" in parts[:-1]:
        return "app"
    if "src" in parts:
        idx = parts.index("src")
        if idx > 0 and parts[idx - 1]:
            return parts[idx - 1]
    return "root"
