from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from routedoc.errors import SourceReadError
from routedoc.repo.ignore import should_ignore_dir


def scan_python_files(root: Path) -> list[Path]:
    """
    Recursively list .py files under root.
    Directories and files are walked in sorted order so that repeated runs
    over an unchanged tree enumerate files identically.
    """
    out: list[Path] = []
    for dirpath, dirs, files in os.walk(root):
        root_p = Path(dirpath)

        # prune ignored dirs, keep the walk order stable
        dirs[:] = sorted(d for d in dirs if not should_ignore_dir(root_p / d))

        for f in sorted(files):
            if f.endswith(".py"):
                out.append(root_p / f)
    return out


def resolve_dir(parent: Path, name: str) -> Optional[Path]:
    """
    Return parent/name or parent/Name, preferring the lower-case spelling.
    None when neither exists.
    """
    lower = parent / name.lower()
    if lower.is_dir():
        return lower
    capital = parent / name.capitalize()
    if capital.is_dir():
        return capital
    return None


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(str(path), str(e)) from e
