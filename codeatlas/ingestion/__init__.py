"""
Source ingestion: directory walking, extractor dispatch and the
manifest / build-descriptor side channels.
"""

from .ingestor import SourceIngestor, IngestionResult, SourceFile
from .manifest import (
    ManifestActivity,
    ManifestInfo,
    parse_manifest,
    load_manifest,
    load_manifests,
    apply_manifest
)
from .build_files import (
    BuildDependency,
    BuildInfo,
    parse_build_file,
    load_build_info
)
from .scanner import walk_source_tree

__all__ = [
    "SourceIngestor",
    "IngestionResult",
    "SourceFile",
    "ManifestActivity",
    "ManifestInfo",
    "parse_manifest",
    "load_manifest",
    "load_manifests",
    "apply_manifest",
    "BuildDependency",
    "BuildInfo",
    "parse_build_file",
    "load_build_info",
    "walk_source_tree",
]
