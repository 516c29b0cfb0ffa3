"""
Analysis engine: the full pipeline from a source tree to components,
relationships, navigation flows, user flows and business processes.

    ingest (parallel) -> manifest cross-check -> resolve (barrier)
    -> classify -> detect navigation -> build relationships
    -> synthesize user flows -> extract business processes

The engine is constructed explicitly and holds no state between runs;
every call returns a fresh AnalysisResult.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import AnalysisConfig
from .core.classifier import classify_all, is_screen
from .core.entities import Component, ExtractionResult
from .core.graph import ComponentGraph, build_component_graph
from .core.relationship_builder import build_relationships
from .core.relationships import RelationshipGraph
from .core.resolver import DuplicateComponent, SymbolResolver
from .flows.models import BusinessProcess, UserFlowComponent
from .flows.processes import extract_business_processes
from .flows.synthesizer import FlowSynthesizer
from .ingestion.build_files import BuildInfo
from .ingestion.ingestor import IngestionResult, SourceIngestor
from .ingestion.manifest import ManifestInfo, apply_manifest
from .navigation.detector import NavigationFlowDetector
from .navigation.models import NavigationFlow


logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """
    Everything one analysis run produced.

    Attributes:
        project_name: Directory name of the analyzed tree (or the given name)
        project_path: Root that was analyzed, if any
        components: Canonical in-tree components, in deterministic order
        placeholders: External nodes standing in for unresolved names
        relationships: Typed, de-duplicated edges
        navigation_flows: Detected screen-to-screen transitions
        user_flows: Screens typed by their position in the navigation graph
        business_processes: User flows grouped by business goal
        manifest: Merged Android manifest data (empty if none)
        build_info: Merged build-descriptor dependencies (empty if none)
        diagnostics: Failed or partial extractions
        duplicates: Components dropped because their id was already taken
    """
    project_name: str
    project_path: Optional[str] = None
    components: List[Component] = field(default_factory=list)
    placeholders: List[Component] = field(default_factory=list)
    relationships: RelationshipGraph = field(default_factory=RelationshipGraph)
    navigation_flows: List[NavigationFlow] = field(default_factory=list)
    user_flows: List[UserFlowComponent] = field(default_factory=list)
    business_processes: List[BusinessProcess] = field(default_factory=list)
    manifest: ManifestInfo = field(default_factory=ManifestInfo)
    build_info: BuildInfo = field(default_factory=BuildInfo)
    diagnostics: List[ExtractionResult] = field(default_factory=list)
    duplicates: List[DuplicateComponent] = field(default_factory=list)

    @property
    def graph(self) -> ComponentGraph:
        """networkx-backed view of components, placeholders and relationships."""
        return build_component_graph(self.components + self.placeholders, self.relationships)

    def get_component(self, component_id: str) -> Optional[Component]:
        return next((c for c in self.components if c.id == component_id), None)

    def statistics(self) -> Dict[str, Any]:
        return {
            "components": len(self.components),
            "placeholders": len(self.placeholders),
            "relationships": len(self.relationships),
            "navigation_flows": len(self.navigation_flows),
            "user_flows": len(self.user_flows),
            "business_processes": len(self.business_processes),
            "diagnostics": len(self.diagnostics),
            "duplicates": len(self.duplicates),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "project_path": self.project_path,
            "components": [c.to_dict() for c in self.components],
            "placeholders": [c.to_dict() for c in self.placeholders],
            "relationships": self.relationships.to_dict(),
            "navigation_flows": [f.to_dict() for f in self.navigation_flows],
            "user_flows": [f.to_dict() for f in self.user_flows],
            "business_processes": [p.to_dict() for p in self.business_processes],
            "manifest": self.manifest.to_dict(),
            "build_info": self.build_info.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "duplicates": [d.to_dict() for d in self.duplicates],
            "statistics": self.statistics(),
        }


class AnalysisEngine:
    """
    Runs the analysis pipeline with one configuration.

    Usage:
        engine = AnalysisEngine(AnalysisConfig.from_env())
        result = engine.analyze_directory("path/to/project")
        for flow in result.user_flows:
            print(flow.screen_name, flow.flow_type.value)
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    # --- ENTRY POINTS ---
    def analyze_directory(self, root: str) -> AnalysisResult:
        """Analyze every file under `root`."""
        root = os.path.abspath(root)
        logger.info("[Engine] Analyzing %s", root)
        ingestion = SourceIngestor(self.config).ingest_directory(root)
        return self._analyze(ingestion, os.path.basename(root.rstrip(os.sep)) or root, root)

    def analyze_files(self, files: Iterable[Tuple[str, str]],
                      project_name: str = "project") -> AnalysisResult:
        """Analyze already-read (path, content) pairs."""
        ingestion = SourceIngestor(self.config).ingest_files(files)
        return self._analyze(ingestion, project_name, None)

    # --- PIPELINE ---
    def _analyze(self, ingestion: IngestionResult, project_name: str,
                 project_path: Optional[str]) -> AnalysisResult:
        result = AnalysisResult(
            project_name=project_name,
            project_path=project_path,
            manifest=ingestion.manifest,
            build_info=ingestion.build_info,
            diagnostics=ingestion.failures,
        )

        resolution = SymbolResolver().resolve(ingestion.components)
        result.components = resolution.components
        result.placeholders = resolution.placeholders
        result.duplicates = resolution.duplicates

        matched = apply_manifest(result.components, result.manifest)
        if matched:
            logger.info("[Manifest] %d components registered in the manifest", matched)

        classify_all(result.components)
        classify_all(result.placeholders)

        if self.config.detect_navigation:
            detector = NavigationFlowDetector(result.components)
            result.navigation_flows = detector.detect(ingestion.sources)
            self.link_navigation_targets(result.components, result.navigation_flows)

        result.relationships = build_relationships(result.components)

        launchers = [a.short_name for a in result.manifest.activities if a.is_launcher]
        result.user_flows = FlowSynthesizer(launchers).synthesize(
            result.components, result.navigation_flows)
        result.business_processes = extract_business_processes(result.user_flows)

        logger.info("[Engine] Done: %s", result.statistics())
        return result

    @staticmethod
    def link_navigation_targets(components: List[Component], flows: Iterable[NavigationFlow]):
        """Record flows between in-tree screens as navigation targets of the source screen."""
        screens: Dict[str, Component] = {}
        for component in components:
            if is_screen(component):
                screens.setdefault(component.name, component)
        for flow in flows:
            source = screens.get(flow.source_screen_id)
            if source is not None and flow.target_screen_id in screens:
                source.add_navigation_target(flow.target_screen_id)


def analyze_directory(root: str, config: Optional[AnalysisConfig] = None) -> AnalysisResult:
    return AnalysisEngine(config).analyze_directory(root)
