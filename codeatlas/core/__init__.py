"""
Core model for CodeAtlas: entities, symbol resolution, relationships,
classification and the component graph.
"""

from .entities import (
    UNKNOWN_INJECTION,
    UNKNOWN_INJECTION_NODE,
    Layer,
    Category,
    ComponentKind,
    Reference,
    CodeMethod,
    CodeField,
    Component,
    ExtractionResult,
    make_placeholder,
    simple_name_of,
    module_name_for
)

from .relationships import (
    RelationType,
    Relationship,
    RelationshipGraph
)

from .resolver import (
    DuplicateComponent,
    SymbolRegistry,
    SymbolResolver,
    ResolutionResult,
    normalize_reference,
    resolve_components
)

from .relationship_builder import (
    RelationshipBuilder,
    build_relationships
)

from .classifier import (
    classify,
    classify_all,
    classify_layer,
    classify_category,
    layer_from_extends,
    layer_from_name,
    categorize_components,
    category_display_name,
    category_distribution,
    layer_distribution,
    is_screen
)

from .graph import (
    ComponentGraph,
    ImpactAssessment,
    build_component_graph
)

__all__ = [
    # Entities
    "UNKNOWN_INJECTION",
    "UNKNOWN_INJECTION_NODE",
    "Layer",
    "Category",
    "ComponentKind",
    "Reference",
    "CodeMethod",
    "CodeField",
    "Component",
    "ExtractionResult",
    "make_placeholder",
    "simple_name_of",
    "module_name_for",
    # Relationships
    "RelationType",
    "Relationship",
    "RelationshipGraph",
    # Resolution
    "DuplicateComponent",
    "SymbolRegistry",
    "SymbolResolver",
    "ResolutionResult",
    "normalize_reference",
    "resolve_components",
    "RelationshipBuilder",
    "build_relationships",
    # Classification
    "classify",
    "classify_all",
    "classify_layer",
    "classify_category",
    "layer_from_extends",
    "layer_from_name",
    "categorize_components",
    "category_display_name",
    "category_distribution",
    "layer_distribution",
    "is_screen",
    # Graph
    "ComponentGraph",
    "ImpactAssessment",
    "build_component_graph",
]
