"""
CodeAtlas - static analysis of mobile and web source trees.

Extracts components from Java, Kotlin, Dart, JavaScript/TypeScript and
Android XML, resolves them into one cross-referenced graph, detects
screen-to-screen navigation and derives user flows and business
processes from it.
"""

from .config import AnalysisConfig, configure_logging
from .errors import CodeAtlasError, ConfigError, ExtractionError
from .engine import AnalysisEngine, AnalysisResult, analyze_directory

__version__ = "0.3.0"

__all__ = [
    "AnalysisConfig",
    "configure_logging",
    "CodeAtlasError",
    "ConfigError",
    "ExtractionError",
    "AnalysisEngine",
    "AnalysisResult",
    "analyze_directory",
    "__version__",
]
