"""
Per-language extractors.

AST-backed (tree-sitter): Java, Kotlin.
Lexical / heuristic:      Dart, JavaScript, TypeScript.
Structured:               XML layouts, navigation graphs, Spring beans.
"""

import os
from typing import List, Optional

from .base import Extractor
from .java_extractor import JavaExtractor
from .kotlin_extractor import KotlinExtractor
from .dart_extractor import DartExtractor
from .javascript_extractor import JavaScriptExtractor, TypeScriptExtractor
from .xml_extractor import XmlExtractor


def default_extractors() -> List[Extractor]:
    return [
        JavaExtractor(),
        KotlinExtractor(),
        DartExtractor(),
        JavaScriptExtractor(),
        TypeScriptExtractor(),
        XmlExtractor(),
    ]


# Languages the navigation detector understands, by extension
SOURCE_LANGUAGES = {
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".dart": "dart",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
}


def source_language(file_path: str) -> Optional[str]:
    return SOURCE_LANGUAGES.get(os.path.splitext(file_path)[1].lower())


def extractor_for(file_path: str, extractors: Optional[List[Extractor]] = None) -> Optional[Extractor]:
    """First extractor that handles the file's extension, or None."""
    for extractor in extractors or default_extractors():
        if extractor.handles(file_path):
            return extractor
    return None


__all__ = [
    "Extractor",
    "JavaExtractor",
    "KotlinExtractor",
    "DartExtractor",
    "JavaScriptExtractor",
    "TypeScriptExtractor",
    "XmlExtractor",
    "default_extractors",
    "extractor_for",
    "source_language",
    "SOURCE_LANGUAGES",
]
