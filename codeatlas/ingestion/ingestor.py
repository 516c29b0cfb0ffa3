"""
Source ingestion: walk, dispatch, extract in parallel.

Each file is extracted independently on a worker pool (one task per
file); results are joined and sorted by path before anything downstream
sees them, so completion order never leaks into the model. Manifests and
build descriptors are collected on the side.
"""

import logging
import os
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Any

from defusedxml import DefusedXmlException
from defusedxml import ElementTree

from ..config import AnalysisConfig
from ..core.entities import Component, ExtractionResult
from ..parsing import Extractor, default_extractors, source_language
from .build_files import BuildInfo, is_build_file, parse_build_file
from .manifest import ManifestInfo, parse_manifest
from .scanner import relative_path, walk_source_tree


logger = logging.getLogger(__name__)

MANIFEST_NAME = "AndroidManifest.xml"

# wait before any worker has picked a file up
_IDLE_POLL = 0.05


@dataclass
class SourceFile:
    """A file's path and decoded content (None when it could not be read)."""
    path: str
    content: Optional[str]
    error: Optional[str] = None


@dataclass
class IngestionResult:
    """
    Everything the ingestor collected from one tree.

    Attributes:
        extractions: One ExtractionResult per dispatched file, sorted by path
        sources: Content of files in a navigable source language, by path
        manifest: Merged manifest side channel
        build_info: Merged build-descriptor side channel
        skipped: Paths that were not dispatched (unknown extension)
    """
    extractions: List[ExtractionResult] = field(default_factory=list)
    sources: Dict[str, str] = field(default_factory=dict)
    manifest: ManifestInfo = field(default_factory=ManifestInfo)
    build_info: BuildInfo = field(default_factory=BuildInfo)
    skipped: List[str] = field(default_factory=list)

    @property
    def components(self) -> List[Component]:
        return [c for result in self.extractions for c in result.components]

    @property
    def failures(self) -> List[ExtractionResult]:
        return [r for r in self.extractions if not r.parse_success]

    def statistics(self) -> Dict[str, Any]:
        languages: Dict[str, int] = {}
        for result in self.extractions:
            languages[result.language] = languages.get(result.language, 0) + 1
        return {
            "files": len(self.extractions),
            "components": len(self.components),
            "failures": len(self.failures),
            "languages": languages,
        }


class SourceIngestor:
    """
    Dispatches files to extractors and gathers side-channel metadata.

    Usage:
        ingestor = SourceIngestor(AnalysisConfig())
        result = ingestor.ingest_directory("path/to/project")
    """

    def __init__(self, config: Optional[AnalysisConfig] = None,
                 extractors: Optional[List[Extractor]] = None):
        self.config = config or AnalysisConfig()
        self.extractors = extractors or default_extractors()

    def extractor_for(self, path: str) -> Optional[Extractor]:
        for extractor in self.extractors:
            if extractor.handles(path):
                return extractor
        return None

    # --- ENTRY POINTS ---
    def ingest_directory(self, root: str) -> IngestionResult:
        """Walk `root` and ingest every file found (paths become root-relative)."""
        root = os.path.abspath(root)
        files = []
        for path in walk_source_tree(root, self.config.skip_dirs, self.config.skip_hidden):
            files.append((relative_path(path, root), path))
        logger.info("[Ingest] Found %d files under %s", len(files), root)
        return self._ingest(files, reader=self._read_file)

    def ingest_files(self, files: Iterable[Tuple[str, str]]) -> IngestionResult:
        """Ingest already-read (path, content) pairs."""
        contents = {path: content for path, content in files}
        return self._ingest([(path, path) for path in sorted(contents)],
                            reader=lambda path: SourceFile(path, contents[path]))

    # --- PIPELINE ---
    def _ingest(self, files: List[Tuple[str, str]], reader) -> IngestionResult:
        result = IngestionResult()
        tasks: List[Tuple[str, str, Extractor]] = []

        for rel_path, location in files:
            name = os.path.basename(rel_path)
            if name == MANIFEST_NAME:
                result.manifest.merge(self._load_manifest(rel_path, reader(location)))
                continue
            if is_build_file(rel_path):
                source = reader(location)
                if source.content is None:
                    logger.warning("[Build] Could not read %s: %s", rel_path, source.error)
                else:
                    result.build_info.merge(parse_build_file(rel_path, source.content))
                continue
            extractor = self.extractor_for(rel_path)
            if extractor is None:
                result.skipped.append(rel_path)
                continue
            tasks.append((rel_path, location, extractor))

        for extraction, content in self.extract_all(tasks, reader):
            result.extractions.append(extraction)
            if content is not None and source_language(extraction.file_path):
                result.sources[extraction.file_path] = content

        stats = result.statistics()
        logger.info("[Ingest] Extracted %d components from %d files (%d failed)",
                    stats["components"], stats["files"], stats["failures"])
        return result

    def extract_all(self, tasks: List[Tuple[str, str, Extractor]],
                    reader) -> List[Tuple[ExtractionResult, Optional[str]]]:
        """
        Run extraction on a worker pool.

        Returns (result, content) pairs in task order; content is None for
        files that could not be read or timed out. The parse timeout is
        measured from the moment a worker picks a file up, so files queued
        behind a slow one get their full budget.
        """
        if not tasks:
            return []

        timeout = self.config.parse_timeout
        started: Dict[int, float] = {}

        def run(index: int, rel_path: str, location: str, extractor: Extractor):
            started[index] = time.monotonic()
            return self._extract_one(rel_path, location, extractor, reader)

        executor = ThreadPoolExecutor(max_workers=self.config.max_workers)
        try:
            futures = {
                executor.submit(run, i, rel_path, location, extractor): i
                for i, (rel_path, location, extractor) in enumerate(tasks)
            }
            results: List[Optional[Tuple[ExtractionResult, Optional[str]]]] = [None] * len(tasks)
            pending = set(futures)
            while pending:
                deadlines = [started[futures[f]] + timeout for f in pending if futures[f] in started]
                wait_for = max(0.0, min(deadlines) - time.monotonic()) if deadlines else _IDLE_POLL
                done, pending = wait(pending, timeout=wait_for, return_when=FIRST_COMPLETED)
                for future in done:
                    results[futures[future]] = future.result()

                now = time.monotonic()
                for future in [f for f in pending if now - started.get(futures[f], now) >= timeout]:
                    pending.discard(future)
                    future.cancel()
                    rel_path, _, extractor = tasks[futures[future]]
                    logger.warning("[Ingest] Timed out after %.1fs extracting %s", timeout, rel_path)
                    results[futures[future]] = (ExtractionResult(
                        file_path=rel_path, language=extractor.language,
                        parse_success=False, skipped=True,
                        parse_errors=[f"timed out after {timeout}s"],
                    ), None)
        finally:
            # a timed-out worker cannot be interrupted; do not wait for it
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    def _extract_one(self, rel_path: str, location: str, extractor: Extractor,
                     reader) -> Tuple[ExtractionResult, Optional[str]]:
        source = reader(location)
        if source.content is None:
            logger.warning("[Ingest] Skipping %s: %s", rel_path, source.error)
            return ExtractionResult(
                file_path=rel_path, language=extractor.language,
                parse_success=False, skipped=True, parse_errors=[source.error or "unreadable"],
            ), None
        return extractor.extract(source.content, rel_path), source.content

    # --- FILE ACCESS ---
    def _read_file(self, path: str) -> SourceFile:
        try:
            size = os.path.getsize(path)
            if size > self.config.max_file_bytes:
                return SourceFile(path, None, f"file too large ({size} bytes)")
            with open(path, "rb") as f:
                raw = f.read()
            return SourceFile(path, raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            return SourceFile(path, None, f"not valid UTF-8: {e}")
        except OSError as e:
            return SourceFile(path, None, f"could not read: {e}")

    def _load_manifest(self, rel_path: str, source: SourceFile) -> ManifestInfo:
        if source.content is None:
            logger.warning("[Manifest] Could not read %s: %s", rel_path, source.error)
            return ManifestInfo()
        try:
            return parse_manifest(source.content)
        except (ElementTree.ParseError, DefusedXmlException) as e:
            logger.warning("[Manifest] Malformed manifest %s: %s", rel_path, e)
            return ManifestInfo()
