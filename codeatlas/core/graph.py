"""
Component graph construction and analysis.

This module builds a NetworkX graph from components and relationships
and provides analysis used by downstream collaborators:
- Dependency / dependent queries filtered by relationship type
- Change impact assessment
- Inheritance trees and dependency cycles
"""

import networkx as nx
from typing import List, Dict, Iterable, Optional, Set
from dataclasses import dataclass

from .entities import Component, Layer
from .relationships import Relationship, RelationType


STRUCTURAL_TYPES = {
    RelationType.EXTENDS, RelationType.IMPLEMENTS, RelationType.DEPENDS_ON,
    RelationType.INJECTED, RelationType.AUTOWIRED,
}


@dataclass
class ImpactAssessment:
    """
    Assessment of the impact of changing a component.

    Attributes:
        target: The component being analyzed
        direct_dependents: Components with an edge into the target
        indirect_dependents: Components that reach the target transitively
        affected_screens: UI-layer components among all dependents
        risk_score: Overall risk score (0.0 - 1.0)
        blast_radius: Total count of affected components
    """
    target: str
    direct_dependents: List[str]
    indirect_dependents: List[str]
    affected_screens: List[str]
    risk_score: float
    blast_radius: int

    def to_dict(self) -> Dict:
        return {
            "target": self.target,
            "blast_radius": self.blast_radius,
            "risk_score": self.risk_score,
            "direct_dependents": self.direct_dependents,
            "indirect_dependents": self.indirect_dependents,
            "affected_screens": self.affected_screens,
        }


class ComponentGraph:
    """
    Directed graph of components.

    Wraps a NetworkX DiGraph; parallel edges of different types between
    the same pair are folded into one edge carrying all their types.
    """

    def __init__(self):
        self.graph = nx.DiGraph()

    def add_component(self, component: Component):
        """Add a component node with its layout-relevant attributes."""
        self.graph.add_node(
            component.id,
            name=component.name,
            layer=component.layer.value,
            category=component.category.value,
            language=component.language,
            external=component.is_external,
        )

    def add_relationship(self, rel: Relationship):
        """Add a relationship edge to the graph."""
        if self.graph.has_edge(rel.source, rel.target):
            types = self.graph[rel.source][rel.target]["types"]
            if rel.rel_type.value not in types:
                types.append(rel.rel_type.value)
            return
        self.graph.add_edge(rel.source, rel.target, types=[rel.rel_type.value])

    def add_relationships(self, rels: Iterable[Relationship]):
        """Add multiple relationships."""
        for rel in rels:
            self.add_relationship(rel)

    def _edge_matches(self, source: str, target: str, rel_types: Set[RelationType]) -> bool:
        types = self.graph[source][target]["types"]
        return any(rt.value in types for rt in rel_types)

    def get_dependencies(self, component_id: str,
                         rel_types: Optional[Set[RelationType]] = None) -> List[str]:
        """Get all components this component depends on."""
        if component_id not in self.graph:
            return []
        rel_types = rel_types or STRUCTURAL_TYPES
        return sorted(
            succ for succ in self.graph.successors(component_id)
            if self._edge_matches(component_id, succ, rel_types)
        )

    def get_dependents(self, component_id: str,
                       rel_types: Optional[Set[RelationType]] = None) -> List[str]:
        """Get all components that depend on this component."""
        if component_id not in self.graph:
            return []
        rel_types = rel_types or STRUCTURAL_TYPES
        return sorted(
            pred for pred in self.graph.predecessors(component_id)
            if self._edge_matches(pred, component_id, rel_types)
        )

    def assess_impact(self, target: str) -> ImpactAssessment:
        """
        Calculate the full blast radius of changing a component.

        Args:
            target: Component id to analyze

        Returns:
            ImpactAssessment with full impact analysis
        """
        if target not in self.graph:
            return ImpactAssessment(target, [], [], [], 0.0, 0)

        direct = self.get_dependents(target)
        affected = set(nx.ancestors(self.graph, target))
        affected.discard(target)
        indirect = sorted(a for a in affected if a not in direct)
        screens = sorted(
            a for a in affected
            if self.graph.nodes[a].get("layer") == Layer.UI.value
        )

        score = min(len(direct) * 0.2, 0.5) + min(len(indirect) * 0.05, 0.3)
        if screens:
            score += 0.2
        return ImpactAssessment(
            target=target,
            direct_dependents=direct,
            indirect_dependents=indirect,
            affected_screens=screens,
            risk_score=min(score, 1.0),
            blast_radius=len(affected),
        )

    def get_inheritance_tree(self, component_id: str) -> Dict:
        """Get the direct bases and subclasses of a component."""
        inheritance = {RelationType.EXTENDS, RelationType.IMPLEMENTS}
        return {
            "component": component_id,
            "bases": self.get_dependencies(component_id, inheritance),
            "subclasses": self.get_dependents(component_id, inheritance),
        }

    def find_cycles(self, limit: int = 100) -> List[List[str]]:
        """Find dependency cycles (at most `limit` of them)."""
        cycles = []
        for cycle in nx.simple_cycles(self.graph):
            cycles.append(cycle)
            if len(cycles) >= limit:
                break
        return cycles

    def get_statistics(self) -> Dict:
        """Get graph statistics."""
        stats = {
            "nodes": self.graph.number_of_nodes(),
            "edges": self.graph.number_of_edges(),
            "density": nx.density(self.graph) if self.graph.number_of_nodes() > 0 else 0,
        }

        edge_types: Dict[str, int] = {}
        for _, _, data in self.graph.edges(data=True):
            for edge_type in data["types"]:
                edge_types[edge_type] = edge_types.get(edge_type, 0) + 1
        stats["edge_types"] = edge_types
        return stats


def build_component_graph(components: Iterable[Component],
                          relationships: Iterable[Relationship]) -> ComponentGraph:
    """Build a ComponentGraph from components and their relationships."""
    graph = ComponentGraph()
    for component in components:
        graph.add_component(component)
    graph.add_relationships(relationships)
    return graph
