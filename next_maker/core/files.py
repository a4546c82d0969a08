"""File primitives over the project tree.

Every destructive operation is idempotent: deleting something that is
already gone is a no-op, writing creates missing parent directories.  Reads
of absent files raise ``FileNotFoundError`` so callers that expect absence
must check ``file_exists`` first.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any

from next_maker.errors import JsonParseError


def read_file(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_file(path: str | Path, content: str) -> None:
    """Write *content*, creating parent directories as needed."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")


def file_exists(path: str | Path) -> bool:
    return Path(path).exists()


def delete_file(path: str | Path) -> None:
    """Remove a single file; missing files are ignored."""
    Path(path).unlink(missing_ok=True)


def delete_tree(path: str | Path) -> None:
    """Remove a directory recursively (or a file); missing paths are ignored."""
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    elif target.exists() or target.is_symlink():
        target.unlink()


def copy_file(src: str | Path, dst: str | Path) -> None:
    """Copy one file, creating the destination's parent directories."""
    destination = Path(dst)
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, destination)


def copy_tree(src: str | Path, dst: str | Path) -> None:
    """Recursively copy *src* over *dst*, merging with existing content.

    Raises:
        FileNotFoundError: If *src* does not exist.
    """
    source = Path(src)
    if not source.exists():
        raise FileNotFoundError(f"Copy source does not exist: {source}")
    if source.is_file():
        copy_file(source, dst)
        return
    shutil.copytree(source, dst, dirs_exist_ok=True)


def patch_file(path: str | Path, transform: Callable[[str], str]) -> bool:
    """Apply a pure text transform to a file in place.

    Absent files are left absent.  The file is only rewritten when the
    transform actually changed its content.

    Returns:
        ``True`` if the file was modified.
    """
    file_path = Path(path)
    if not file_path.is_file():
        return False
    original = read_file(file_path)
    updated = transform(original)
    if updated == original:
        return False
    write_file(file_path, updated)
    return True


# ---------------------------------------------------------------------------
# JSON documents
# ---------------------------------------------------------------------------


def read_json(path: str | Path) -> dict[str, Any]:
    """Load a JSON object from *path*.

    Raises:
        FileNotFoundError: If the file does not exist.
        JsonParseError: If the content is not a JSON object.
    """
    raw = read_file(path)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise JsonParseError(path, str(exc)) from exc
    if not isinstance(data, dict):
        raise JsonParseError(path, "top-level value is not an object")
    return data


def dump_json(data: dict[str, Any]) -> str:
    """Serialise with the stable layout used for every manifest write."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def update_json(
    path: str | Path,
    transform: Callable[[dict[str, Any]], dict[str, Any]],
) -> dict[str, Any]:
    """Read, transform and rewrite a JSON document.

    Key order is preserved and output always uses a two-space indent with a
    trailing newline, so a no-op transform over a file in that layout
    rewrites it byte for byte.

    Returns:
        The document that was written.
    """
    data = read_json(path)
    updated = transform(data)
    write_file(path, dump_json(updated))
    return updated
