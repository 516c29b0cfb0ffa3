"""
Extractor contract.

An extractor turns one file's content into component stubs. It never
raises: irrecoverable input yields an empty (or partial) result marked
parse_success=False with a diagnostic.
"""

import logging
from typing import Tuple

from ..core.entities import ExtractionResult, module_name_for
from ..errors import ExtractionError


logger = logging.getLogger(__name__)


class Extractor:
    """
    Base class for per-language extractors.

    Subclasses set `language` and `extensions` and implement `_extract`,
    appending components (and soft diagnostics) to the result they are given.
    """
    language: str = ""
    extensions: Tuple[str, ...] = ()
    # True for regex/heuristic extractors
    heuristic: bool = False

    def handles(self, file_path: str) -> bool:
        return file_path.lower().endswith(self.extensions)

    def extract(self, content: str, file_path: str) -> ExtractionResult:
        result = ExtractionResult(file_path=file_path, language=self.language)
        try:
            self._extract(content, file_path, result)
        except ExtractionError as e:
            result.parse_success = False
            result.parse_errors.append(e.message)
            logger.warning("[Extract] %s: %s", file_path, e.message)
        except Exception as e:
            # keep whatever was found before the failure
            result.parse_success = False
            result.parse_errors.append(f"{type(e).__name__}: {e}")
            logger.warning("[Extract] Failed to extract %s: %s", file_path, e)

        module = module_name_for(file_path)
        for index, component in enumerate(result.components):
            component.declaration_index = index
            component.module_name = module
        return result

    def _extract(self, content: str, file_path: str, result: ExtractionResult):
        raise NotImplementedError
