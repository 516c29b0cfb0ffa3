"""
Source tree walking.

Depth-first, sorted, skipping build/vendor/hidden directories by name.
"""

import os
from typing import Iterable, Iterator, Set


def walk_source_tree(root: str, skip_dirs: Iterable[str], skip_hidden: bool = True) -> Iterator[str]:
    """Yield file paths under `root` in a stable depth-first order."""
    skip: Set[str] = set(skip_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in skip and not (skip_hidden and d.startswith("."))
        )
        for filename in sorted(filenames):
            if skip_hidden and filename.startswith("."):
                continue
            yield os.path.join(dirpath, filename)


def relative_path(path: str, root: str) -> str:
    """Path relative to `root`, always with forward slashes."""
    return os.path.relpath(path, root).replace(os.sep, "/")
