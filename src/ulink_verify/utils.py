from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional


def relative_path(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def redact_home(path: Path) -> str:
    home = str(Path.home())
    text = str(path)
    if home and home != "/" and text.startswith(home):
        return "~" + text[len(home):]
    return text


def walk_up(start: Path, max_depth: int) -> Iterator[Path]:
    """Yield ``start`` and its ancestors, at most ``max_depth`` directories.

    Stops early at the filesystem root. A non-positive depth yields nothing.
    """
    current = start
    for _ in range(max_depth):
        yield current
        parent = current.parent
        if parent == current:
            return
        current = parent


def list_subdirectories(directory: Path) -> List[Path]:
    try:
        return sorted(entry for entry in directory.iterdir() if entry.is_dir())
    except OSError:
        return []


def dedupe(values) -> List[str]:
    """Order-preserving exact-match de-duplication."""
    return list(dict.fromkeys(values))


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or os.environ.get("ULINK_VERIFY_LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
