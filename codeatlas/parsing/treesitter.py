"""
Helpers shared by the tree-sitter backed extractors.

Traversal is done with plain recursive / stack-based functions that
return what they find; no visitor objects carry state between calls.
"""

import threading
from typing import Dict, Iterator, List, Optional

from tree_sitter_languages import get_parser


# parsers are not shared between threads; extraction runs on a worker pool
_local = threading.local()


def parser_for(language: str):
    """Per-thread cached tree-sitter parser for a grammar name ("java", "kotlin")."""
    parsers: Dict[str, object] = getattr(_local, "parsers", None)
    if parsers is None:
        parsers = _local.parsers = {}
    if language not in parsers:
        parsers[language] = get_parser(language)
    return parsers[language]


def parse(language: str, content: str):
    return parser_for(language).parse(content.encode("utf8"))


def text(node) -> str:
    if node is None:
        return ""
    return node.text.decode("utf8", errors="replace")


def line_of(node) -> int:
    return node.start_point[0] + 1


def walk(node) -> Iterator:
    """Yield every node below (and including) `node`, depth-first, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def children_of_type(node, *types: str) -> List:
    return [child for child in node.children if child.type in types]


def first_child_of_type(node, *types: str):
    for child in node.children:
        if child.type in types:
            return child
    return None


def descendants_of_type(node, *types: str) -> List:
    return [n for n in walk(node) if n.type in types]


def enclosing(node, *types: str):
    """Nearest ancestor of one of the given types, or None."""
    current = node.parent
    while current is not None:
        if current.type in types:
            return current
        current = current.parent
    return None


def syntax_errors(tree, limit: int = 10) -> List[str]:
    """Describe ERROR / MISSING nodes as soft diagnostics."""
    errors: List[str] = []
    if not tree.root_node.has_error:
        return errors
    for node in walk(tree.root_node):
        if node.type == "ERROR" or node.is_missing:
            errors.append(f"syntax error at line {line_of(node)}")
            if len(errors) >= limit:
                break
    return errors or ["syntax error"]


def field_text(node, field_name: str) -> Optional[str]:
    child = node.child_by_field_name(field_name)
    return text(child) if child is not None else None
