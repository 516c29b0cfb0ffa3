"""
Exception types for codeatlas.

Per-file problems never escape the analysis pipeline; they are recorded
as diagnostics on ExtractionResult records instead. These exceptions mark
the few places where a caller has to react.
"""


class CodeAtlasError(Exception):
    """Base class for all codeatlas errors."""


class ExtractionError(CodeAtlasError):
    """An extractor could not make sense of a file at all."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"{file_path}: {message}")
        self.file_path = file_path
        self.message = message


class ConfigError(CodeAtlasError, ValueError):
    """Invalid configuration value (usually from the environment)."""
