"""
Navigation flow detection across a source tree.

Runs beside the structural pipeline: it reads raw file content, finds
navigation call sites per language and reports screen-to-screen
NavigationFlows. Detection never raises; a file that cannot be scanned
contributes no flows and a warning.
"""

import logging
import os
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..core.classifier import SCREEN_NAME_SUFFIXES, is_screen
from ..core.entities import Component, ComponentKind, simple_name_of
from ..parsing import source_language
from ..parsing import treesitter as ts
from ..parsing.xml_extractor import ACTION_ANNOTATION
from .java_navigation import detect_java_navigation
from .lexical_navigation import collect_routes, detect_lexical_navigation
from .models import NavigationFlow


logger = logging.getLogger(__name__)


def screen_name_for(file_path: str) -> str:
    """File stem; 'index' files are named after their directory."""
    stem = os.path.splitext(os.path.basename(file_path))[0]
    if stem == "index":
        parent = os.path.basename(os.path.dirname(file_path.replace("\\", "/")))
        return parent or stem
    return stem


def navigation_aliases(components: Iterable[Component]) -> Dict[str, str]:
    """Navigation-graph destination and action ids -> screen names."""
    aliases: Dict[str, str] = {}
    for component in components:
        if component.kind != ComponentKind.NAV_DESTINATION:
            continue
        screen = next((simple_name_of(ref.name) for ref in component.dependencies
                       if ref.context == "destination"), component.name)
        aliases.setdefault(component.name, screen)
        for annotation in component.annotations:
            if annotation.startswith(ACTION_ANNOTATION):
                action_id, _, target = annotation[len(ACTION_ANNOTATION):].partition("=")
                aliases.setdefault(action_id, target)
    return aliases


def deduplicate_flows(flows: Iterable[NavigationFlow]) -> List[NavigationFlow]:
    """One flow per (source, target, type), conditions merged, first occurrence order kept."""
    unique: Dict[tuple, NavigationFlow] = {}
    for flow in flows:
        existing = unique.get(flow.key)
        if existing is None:
            unique[flow.key] = flow
        else:
            existing.merge(flow)
    return list(unique.values())


class NavigationFlowDetector:
    """
    Detects screen-to-screen transitions in source files.

    Known components (optional) are used to name a file's screen, to map
    navigation-graph ids to screens and to drop transitions whose ends are
    known not to be screens.

    Usage:
        detector = NavigationFlowDetector(components)
        flows = detector.detect({"app/src/.../LoginActivity.java": source, ...})
    """

    def __init__(self, components: Optional[Iterable[Component]] = None):
        self.components = sorted(components or [], key=lambda c: c.sort_key())
        self.by_name: Dict[str, Component] = {}
        self.by_file: Dict[str, List[Component]] = defaultdict(list)
        for component in self.components:
            if component.is_external:
                continue
            self.by_name.setdefault(component.name, component)
            self.by_file[component.file_path].append(component)
        self.aliases = navigation_aliases(self.components)

    # --- SCREENS ---
    def source_screen_for(self, file_path: str) -> Optional[str]:
        """
        Screen a file's transitions start from, or None when the file is not a screen.

        The file stem is used when it names a component; otherwise a component
        whose name matches the stem ignoring case and underscores
        (login_screen.dart -> LoginScreen), then the file's first screen.
        """
        stem = screen_name_for(file_path)
        if not self.components:
            return stem
        declared = self.by_file.get(file_path, [])
        folded = stem.replace("_", "").replace("-", "").lower()
        candidate = next((c.name for c in declared if c.name == stem), None) \
            or next((c.name for c in declared if c.name.lower() == folded), None) \
            or next((c.name for c in declared if is_screen(c)), None) \
            or stem
        return candidate if self._may_be_screen(candidate) else None

    def _may_be_screen(self, name: str) -> bool:
        component = self.by_name.get(name)
        if component is None:
            return name.endswith(SCREEN_NAME_SUFFIXES)
        return is_screen(component)

    def _resolve_target(self, target: str, routes: Dict[str, str]) -> str:
        if target in routes:
            return routes[target]
        head = target.split("/", 1)[0]
        if head != target and head in routes:
            return routes[head]
        return self.aliases.get(target, target)

    # --- DETECTION ---
    def detect(self, sources: Dict[str, str]) -> List[NavigationFlow]:
        """Flows for every navigable source file, de-duplicated."""
        paths = sorted(p for p in sources if source_language(p))
        routes: Dict[str, str] = {}
        for path in paths:
            for route, screen in collect_routes(sources[path], source_language(path)).items():
                routes.setdefault(route, screen)

        flows: List[NavigationFlow] = []
        for path in paths:
            source_screen = self.source_screen_for(path)
            if source_screen is None:
                continue
            for flow in self.detect_file(path, sources[path], source_screen):
                flow.target_screen_id = self._resolve_target(flow.target_screen_id, routes)
                if self._accept(flow):
                    flows.append(flow)
        flows.extend(self.graph_flows())

        unique = deduplicate_flows(flows)
        logger.info("[Navigation] Detected %d flows in %d files", len(unique), len(paths))
        return unique

    def graph_flows(self) -> List[NavigationFlow]:
        """FORWARD flows for the <action> entries of navigation-graph destinations."""
        flows = []
        for component in self.components:
            if component.kind != ComponentKind.NAV_DESTINATION:
                continue
            source = self.aliases.get(component.name, component.name)
            for target in component.navigation_targets:
                flow = NavigationFlow(source, target, file_path=component.file_path)
                if self._accept(flow):
                    flows.append(flow)
        return flows

    def detect_file(self, file_path: str, content: str,
                    source_screen: Optional[str] = None) -> List[NavigationFlow]:
        """Raw (not de-duplicated) flows for one file; never raises."""
        language = source_language(file_path)
        if language is None:
            return []
        source_screen = source_screen or screen_name_for(file_path)
        try:
            if language == "java":
                return self._detect_java(file_path, content, source_screen)
            return detect_lexical_navigation(content, language, source_screen, file_path)
        except Exception as e:
            logger.warning("[Navigation] Failed to scan %s: %s", file_path, e)
            return []

    def _detect_java(self, file_path: str, content: str, source_screen: str) -> List[NavigationFlow]:
        try:
            tree = ts.parse("java", content)
        except Exception as e:
            logger.debug("[Navigation] No syntax tree for %s (%s); using patterns", file_path, e)
            return detect_lexical_navigation(content, "java", source_screen, file_path)
        flows = detect_java_navigation(content, source_screen, file_path, tree=tree)
        if tree.root_node.has_error:
            # partial tree: pattern matches may recover call sites inside broken regions
            flows.extend(detect_lexical_navigation(content, "java", source_screen, file_path))
        return flows

    def _accept(self, flow: NavigationFlow) -> bool:
        if flow.target_screen_id == flow.source_screen_id:
            return False
        if flow.is_placeholder_target:
            return True
        target = self.by_name.get(flow.target_screen_id)
        return target is None or is_screen(target)


def detect_navigation(sources: Dict[str, str],
                      components: Optional[Iterable[Component]] = None) -> List[NavigationFlow]:
    return NavigationFlowDetector(components).detect(sources)
