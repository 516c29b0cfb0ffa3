"""
Symbol resolution for linking reference stubs to components.

Extractors record every type they mention as a plain name. This module
turns those names into pointers at canonical components, or at shared
external placeholder nodes when the name is not defined in the tree:

- Exact qualified id match
- Simple name match (qualifier stripped)
- Trailing segment of a qualified name matched against ids

Resolution is one pass to build the registry plus a bounded number of
dictionary lookups per reference; components are never compared
pairwise.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .classifier import layer_from_name
from .entities import (
    Component, Reference, UNKNOWN_INJECTION,
    make_placeholder, simple_name_of,
)


logger = logging.getLogger(__name__)

_GENERIC = re.compile(r"<.*>")


def normalize_reference(name: str) -> str:
    """Drop generics, nullability and array markers from a type name."""
    name = _GENERIC.sub("", name or "")
    return name.replace("[]", "").replace("?", "").replace("!", "").strip()


@dataclass
class DuplicateComponent:
    """A component dropped because its id was already registered."""
    component_id: str
    kept_file: str
    dropped_file: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.component_id,
            "kept_file": self.kept_file,
            "dropped_file": self.dropped_file,
        }


class SymbolRegistry:
    """
    Lookup indices over all extracted components.

    by_id holds the canonical (first-seen) component per id. by_simple_name
    is a fallback index where the last writer wins; names defined more than
    once are remembered so injections through them can be flagged.
    """

    def __init__(self):
        self.by_id: Dict[str, Component] = {}
        self.by_simple_name: Dict[str, Component] = {}
        self.simple_name_counts: Dict[str, int] = {}
        self.duplicates: List[DuplicateComponent] = []
        self.lookups = 0

    def register(self, component: Component) -> bool:
        """Register a component. Returns False for a duplicate id."""
        existing = self.by_id.get(component.id)
        if existing is not None:
            self.duplicates.append(DuplicateComponent(
                component_id=component.id,
                kept_file=existing.file_path,
                dropped_file=component.file_path,
            ))
            logger.warning(
                "[Resolver] Duplicate component id %s in %s (keeping %s)",
                component.id, component.file_path, existing.file_path,
            )
            return False

        self.by_id[component.id] = component
        self.by_simple_name[component.name] = component
        self.simple_name_counts[component.name] = self.simple_name_counts.get(component.name, 0) + 1
        return True

    def get_by_id(self, component_id: str) -> Optional[Component]:
        self.lookups += 1
        return self.by_id.get(component_id)

    def get_by_simple_name(self, name: str) -> Optional[Component]:
        self.lookups += 1
        return self.by_simple_name.get(name)

    def is_ambiguous(self, name: str) -> bool:
        return self.simple_name_counts.get(name, 0) > 1

    def components(self) -> List[Component]:
        return list(self.by_id.values())

    def __len__(self) -> int:
        return len(self.by_id)

    def __contains__(self, component_id: str) -> bool:
        return component_id in self.by_id


@dataclass
class ResolutionResult:
    """
    Outcome of resolving a set of components.

    Attributes:
        components: Canonical components, in deterministic order
        placeholders: External placeholder nodes created for unresolved names
        duplicates: Components dropped because their id was taken
        resolved_count: References bound to an in-tree component
        external_count: References bound to a placeholder
        lookups: Index lookups performed (registry plus placeholder table)
    """
    components: List[Component] = field(default_factory=list)
    placeholders: List[Component] = field(default_factory=list)
    duplicates: List[DuplicateComponent] = field(default_factory=list)
    resolved_count: int = 0
    external_count: int = 0
    lookups: int = 0

    def statistics(self) -> Dict[str, int]:
        return {
            "components": len(self.components),
            "placeholders": len(self.placeholders),
            "duplicates": len(self.duplicates),
            "resolved": self.resolved_count,
            "external": self.external_count,
            "lookups": self.lookups,
        }


class SymbolResolver:
    """
    Resolves reference stubs against a SymbolRegistry.

    One resolver is used per run; placeholders are shared across all
    references to the same unresolved name.
    """

    def __init__(self):
        self.registry = SymbolRegistry()
        self.placeholders: Dict[str, Component] = {}
        self.resolved_count = 0
        self.external_count = 0

    def build_registry(self, components: Iterable[Component]) -> List[Component]:
        """Register components in (file, declaration) order; returns the canonical ones."""
        canonical = []
        for component in sorted(components, key=lambda c: c.sort_key()):
            if self.registry.register(component):
                canonical.append(component)
        return canonical

    def find(self, name: str) -> Tuple[Optional[Component], bool]:
        """
        Look a name up using the ordered strategies.

        Returns (component, ambiguous); component is None if nothing matched.
        """
        name = normalize_reference(name)
        if not name:
            return None, False

        # 1. exact id
        found = self.registry.get_by_id(name)
        if found is not None:
            return found, False

        # 2. simple name
        simple = simple_name_of(name)
        found = self.registry.get_by_simple_name(simple)
        if found is not None:
            return found, self.registry.is_ambiguous(simple)

        # 3. trailing segment against ids (ids without a package)
        if simple != name:
            found = self.registry.get_by_id(simple)
            if found is not None:
                return found, False

        return None, False

    def placeholder_for(self, name: str) -> Component:
        """Shared external placeholder for an unresolved name."""
        name = normalize_reference(name) or name
        self.registry.lookups += 1
        placeholder = self.placeholders.get(name)
        if placeholder is None:
            placeholder = make_placeholder(name)
            placeholder.layer = layer_from_name(placeholder.name)
            self.placeholders[name] = placeholder
        return placeholder

    def resolve_reference(self, ref: Reference) -> Optional[Component]:
        """Bind a single reference. Already-bound references keep their target."""
        if ref.is_resolved:
            return ref.target
        if ref.name == UNKNOWN_INJECTION:
            return None

        found, ambiguous = self.find(ref.name)
        if found is not None:
            ref.bind(found, ambiguous=ambiguous)
            self.resolved_count += 1
        else:
            ref.bind(self.placeholder_for(ref.name))
            self.external_count += 1
        return ref.target

    def resolve_component(self, component: Component):
        if component.extends_ref is not None:
            self.resolve_reference(component.extends_ref)
        for ref in component.implements_refs:
            self.resolve_reference(ref)
        for ref in component.dependencies:
            self.resolve_reference(ref)
        for ref in component.injected_dependencies:
            self.resolve_reference(ref)

    def resolve(self, components: Iterable[Component]) -> ResolutionResult:
        """Build the registry, then resolve every reference of every canonical component."""
        canonical = self.build_registry(components)
        for component in canonical:
            self.resolve_component(component)

        logger.info(
            "[Resolver] %d components, %d references resolved, %d external, %d duplicates",
            len(canonical), self.resolved_count, self.external_count,
            len(self.registry.duplicates),
        )
        return ResolutionResult(
            components=canonical,
            placeholders=sorted(self.placeholders.values(), key=lambda c: c.id),
            duplicates=list(self.registry.duplicates),
            resolved_count=self.resolved_count,
            external_count=self.external_count,
            lookups=self.registry.lookups,
        )


def resolve_components(components: Iterable[Component]) -> ResolutionResult:
    """Convenience wrapper: resolve with a fresh resolver."""
    return SymbolResolver().resolve(components)
