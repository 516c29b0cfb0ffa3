"""
Shared scanning helpers for the lexical (regex based) extractors.

These extractors are heuristic: they recognise common declaration and
injection idioms token by token and will miss or misread unusual code.
The helpers keep every pattern linear so adversarial input cannot make
a single file take unbounded time.
"""

import re
from typing import List, Optional, Tuple


_STRING_OR_COMMENT = re.compile(
    r'//[^\n]*|/\*.*?\*/|"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'|`(?:\\.|[^`\\])*`',
    re.DOTALL,
)


def strip_comments(source: str) -> str:
    """
    Blank out comments, keeping offsets and line numbers stable.

    String literals are left in place (navigation routes live in them).
    """
    def _blank(match):
        chunk = match.group(0)
        if chunk.startswith("//") or chunk.startswith("/*"):
            return re.sub(r"[^\n]", " ", chunk)
        return chunk
    return _STRING_OR_COMMENT.sub(_blank, source)


def line_at(source: str, index: int) -> int:
    return source.count("\n", 0, index) + 1


def find_block_end(source: str, open_index: int) -> int:
    """
    Index just past the brace matching the one at `open_index`.

    Falls back to the end of the source for unbalanced input.
    """
    depth = 0
    quote: Optional[str] = None
    i = open_index
    n = len(source)
    while i < n:
        ch = source[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return n


def class_body(source: str, start: int) -> Tuple[str, int]:
    """Body text of the declaration starting at `start` and the offset of its '{'."""
    brace = source.find("{", start)
    if brace == -1:
        return "", len(source)
    return source[brace + 1:find_block_end(source, brace) - 1], brace + 1


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split on `sep` outside of (), <>, [] and {}."""
    parts = []
    depth = 0
    current = []
    for ch in text:
        if ch in "(<[{":
            depth += 1
        elif ch in ")>]}":
            depth = max(0, depth - 1)
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def matching_paren(text: str, open_index: int) -> int:
    """Index of the ')' matching the '(' at `open_index` (or -1)."""
    depth = 0
    for i in range(open_index, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def top_level(body: str) -> str:
    """
    Blank out everything nested inside braces, keeping the braces.

    'void f() { x(); }' -> 'void f() {      }'. Member declarations of a
    class body can then be matched without seeing method-local code.
    """
    out = []
    depth = 0
    for ch in body:
        if ch == "{":
            out.append(ch if depth == 0 else " ")
            depth += 1
        elif ch == "}":
            depth = max(0, depth - 1)
            out.append(ch if depth == 0 else " ")
        elif depth == 0 or ch == "\n":
            out.append(ch)
        else:
            out.append(" ")
    return "".join(out)


_DECORATOR_NAME = re.compile(r"@([\w.]+)\s*$")


def preceding_decorators(source: str, index: int, limit: int = 10) -> List[str]:
    """
    Names of the @Decorators / @annotations directly before `index`.

    Handles argument lists spanning lines, e.g. @Component({...}).
    """
    names: List[str] = []
    end = index
    while len(names) < limit:
        segment = source[:end].rstrip()
        for keyword in ("export default", "export", "abstract", "final", "sealed", "base"):
            if segment.endswith(keyword):
                segment = segment[:-len(keyword)].rstrip()
        if segment.endswith(")"):
            depth = 0
            i = len(segment) - 1
            while i >= 0:
                if segment[i] == ")":
                    depth += 1
                elif segment[i] == "(":
                    depth -= 1
                    if depth == 0:
                        break
                i -= 1
            if i < 0:
                break
            head = segment[:i].rstrip()
        else:
            head = segment
        match = _DECORATOR_NAME.search(head)
        if not match:
            break
        names.append(match.group(1).rsplit(".", 1)[-1])
        end = match.start()
    names.reverse()
    return names


def join_parenthesized(text: str) -> str:
    """Fold line breaks inside (...) so multi-line parameter lists become one line."""
    out = []
    depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        out.append(" " if ch == "\n" and depth > 0 else ch)
    return "".join(out)
