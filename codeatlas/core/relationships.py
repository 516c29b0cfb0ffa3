"""
Relationship types and models for the component graph.

This module defines the typed edges that can exist between components
once their references have been resolved.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Set, Tuple
from enum import Enum


class RelationType(Enum):
    """
    Types of relationships between components.

    These represent the edges in the component graph.
    """

    # === Inheritance Relationships ===
    EXTENDS = "EXTENDS"             # Class extends another class
    IMPLEMENTS = "IMPLEMENTS"       # Class implements an interface / mixin

    # === Usage Relationships ===
    DEPENDS_ON = "DEPENDS_ON"       # Type used by a field, method or constructor

    # === Injection Relationships ===
    INJECTED = "INJECTED"           # Dependency supplied by a DI container
    AUTOWIRED = "AUTOWIRED"         # Injection whose type is unknown or ambiguous

    # === Navigation Relationships ===
    NAVIGATES_TO = "NAVIGATES_TO"   # Screen transitions to another screen


@dataclass
class Relationship:
    """
    Represents a relationship (edge) between two components.

    Attributes:
        source: Id of the source component
        target: Id of the target component (or literal name when unresolved)
        rel_type: Type of relationship
        weight: Coupling strength (0.0 to 1.0)
        line: Line number where relationship occurs
        context: Additional context about the relationship
        metadata: Any extra metadata
    """
    source: str
    target: str
    rel_type: RelationType

    # Optional metadata
    weight: float = 1.0
    line: Optional[int] = None
    context: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source, self.target, self.rel_type.value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize relationship to dictionary."""
        return {
            "source": self.source,
            "target": self.target,
            "type": self.rel_type.value,
            "weight": self.weight,
            "line": self.line,
            "context": self.context,
            "metadata": self.metadata
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Relationship":
        """Deserialize relationship from dictionary."""
        return cls(
            source=data["source"],
            target=data["target"],
            rel_type=RelationType(data["type"]),
            weight=data.get("weight", 1.0),
            line=data.get("line"),
            context=data.get("context"),
            metadata=data.get("metadata", {})
        )


@dataclass
class RelationshipGraph:
    """
    Flat, de-duplicated edge list.

    An edge is identified by (source, target, type); adding the same edge
    twice keeps the first one.
    """
    relationships: List[Relationship] = field(default_factory=list)
    _seen: Set[Tuple[str, str, str]] = field(default_factory=set, repr=False)

    def add(self, rel: Relationship) -> bool:
        """Add a relationship. Returns False if it was already present."""
        if rel.key in self._seen:
            return False
        self._seen.add(rel.key)
        self.relationships.append(rel)
        return True

    def add_all(self, rels: List[Relationship]):
        """Add multiple relationships."""
        for rel in rels:
            self.add(rel)

    def get_by_source(self, source: str) -> List[Relationship]:
        """Get all relationships from a source component."""
        return [r for r in self.relationships if r.source == source]

    def get_by_target(self, target: str) -> List[Relationship]:
        """Get all relationships pointing to a target component."""
        return [r for r in self.relationships if r.target == target]

    def get_by_type(self, rel_type: RelationType) -> List[Relationship]:
        """Get all relationships of a specific type."""
        return [r for r in self.relationships if r.rel_type == rel_type]

    def edge_set(self) -> Set[Tuple[str, str, str]]:
        return set(self._seen)

    def statistics(self) -> Dict[str, int]:
        """Get counts of each relationship type."""
        stats = {rt.value: 0 for rt in RelationType}
        for r in self.relationships:
            stats[r.rel_type.value] += 1
        stats["total"] = len(self.relationships)
        return stats

    def to_dict(self) -> Dict[str, Any]:
        """Serialize entire graph to dictionary."""
        return {
            "relationships": [r.to_dict() for r in self.relationships],
            "statistics": self.statistics()
        }

    def __len__(self) -> int:
        return len(self.relationships)

    def __iter__(self):
        return iter(self.relationships)
