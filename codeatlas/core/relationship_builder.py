"""
Relationship extraction from resolved components.

Turns the resolved references on each component into a flat, typed,
de-duplicated edge list. Nothing here mutates the components.
"""

from typing import Dict, Iterable, List, Optional

from .entities import Component, Reference, UNKNOWN_INJECTION, UNKNOWN_INJECTION_NODE
from .relationships import Relationship, RelationType, RelationshipGraph


class RelationshipBuilder:
    """
    Builds relationships from a resolved component set.

    Usage:
        builder = RelationshipBuilder(components)
        graph = builder.build()
    """

    def __init__(self, components: Iterable[Component]):
        self.components = list(components)
        # Simple-name index for navigation targets (first writer wins)
        self._by_name: Dict[str, str] = {}
        for component in self.components:
            self._by_name.setdefault(component.name, component.id)

    def build(self) -> RelationshipGraph:
        """Extract all relationship types."""
        graph = RelationshipGraph()
        for component in self.components:
            graph.add_all(self.extract_inheritance(component))
            graph.add_all(self.extract_dependencies(component))
            graph.add_all(self.extract_injections(component))
            graph.add_all(self.extract_navigation(component))
        return graph

    def extract_inheritance(self, component: Component) -> List[Relationship]:
        """EXTENDS and IMPLEMENTS edges; unresolved names become literal targets."""
        rels = []
        if component.extends_ref is not None:
            rels.append(Relationship(
                source=component.id,
                target=component.extends_ref.target_id,
                rel_type=RelationType.EXTENDS,
                context=component.extends_ref.name,
            ))
        for ref in component.implements_refs:
            rels.append(Relationship(
                source=component.id,
                target=ref.target_id,
                rel_type=RelationType.IMPLEMENTS,
                context=ref.name,
            ))
        return rels

    def extract_dependencies(self, component: Component) -> List[Relationship]:
        """One DEPENDS_ON edge per dependency stub."""
        return [
            Relationship(
                source=component.id,
                target=ref.target_id,
                rel_type=RelationType.DEPENDS_ON,
                weight=0.5,
                context=ref.context,
                metadata={"external": _is_external(ref)},
            )
            for ref in component.dependencies
        ]

    def extract_injections(self, component: Component) -> List[Relationship]:
        """INJECTED edges, or AUTOWIRED when the injected type is unknown or ambiguous."""
        rels = []
        for ref in component.injected_dependencies:
            if ref.name == UNKNOWN_INJECTION:
                target, rel_type = UNKNOWN_INJECTION_NODE, RelationType.AUTOWIRED
            elif ref.ambiguous:
                target, rel_type = ref.target_id, RelationType.AUTOWIRED
            else:
                target, rel_type = ref.target_id, RelationType.INJECTED
            rels.append(Relationship(
                source=component.id,
                target=target,
                rel_type=rel_type,
                context=ref.context,
                metadata={"external": _is_external(ref)},
            ))
        return rels

    def extract_navigation(self, component: Component) -> List[Relationship]:
        """NAVIGATES_TO edges for the component's navigation targets."""
        return [
            Relationship(
                source=component.id,
                target=self._by_name.get(target, target),
                rel_type=RelationType.NAVIGATES_TO,
            )
            for target in component.navigation_targets
        ]


def _is_external(ref: Reference) -> Optional[bool]:
    if ref.target is None:
        return None
    return ref.target.is_external


def build_relationships(components: Iterable[Component]) -> RelationshipGraph:
    """Convenience function to extract all relationships."""
    return RelationshipBuilder(components).build()
