"""Usage scanning over the project's source tree.

Decides whether a shared file can be deleted by searching the remaining
sources for a literal needle (an import path fragment or an exported symbol).
Scanning is fail-safe: if the tree cannot be read, the needle is reported as
referenced so nothing gets deleted by mistake.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from next_maker.utils import print_warning

SOURCE_EXTENSIONS: frozenset[str] = frozenset(
    {".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".css", ".json"}
)
SKIPPED_DIRS: frozenset[str] = frozenset({"node_modules", ".git", ".next", "dist", "coverage"})

_EXPORTED_SYMBOL_RE = re.compile(
    r"^export\s+(?:declare\s+)?(?:default\s+)?(?:abstract\s+)?"
    r"(?:const|let|var|function\*?|async\s+function|class|interface|type|enum)\s+"
    r"(?P<name>[A-Za-z_$][\w$]*)",
    re.MULTILINE,
)


@dataclass
class RewriteReport:
    """Outcome of a best-effort identifier rename across the tree."""

    rewritten: list[Path] = field(default_factory=list)
    remaining: list[Path] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.remaining


def _is_excluded(path: Path, excluded: list[Path]) -> bool:
    return any(path == ex or ex in path.parents for ex in excluded)


def iter_source_files(root: Path, exclude: Iterable[Path] = ()) -> Iterator[Path]:
    """Yield every source file under *root* outside the *exclude* paths.

    Raises:
        OSError: If a directory cannot be listed.
    """
    excluded = [Path(p).resolve() for p in exclude]

    def _raise(error: OSError) -> None:
        raise error

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath).resolve()
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in SKIPPED_DIRS and not _is_excluded(current / d, excluded)
        )
        for filename in sorted(filenames):
            candidate = current / filename
            if candidate.suffix in SOURCE_EXTENSIONS and not _is_excluded(candidate, excluded):
                yield candidate


def find_references(
    root: str | Path,
    needles: str | Iterable[str],
    exclude: Iterable[str | Path] = (),
    first_only: bool = False,
) -> list[Path]:
    """Return source files under *root* that contain any of *needles* literally.

    With *first_only* the walk stops at the first matching file.

    Raises:
        OSError: If the tree cannot be walked or a file cannot be read.
    """
    wanted = [needles] if isinstance(needles, str) else [n for n in needles if n]
    matches: list[Path] = []
    if not wanted:
        return matches
    for path in iter_source_files(Path(root), [Path(p) for p in exclude]):
        content = path.read_text(encoding="utf-8", errors="replace")
        if any(needle in content for needle in wanted):
            matches.append(path)
            if first_only:
                break
    return matches


def is_referenced(
    root: str | Path,
    needles: str | Iterable[str],
    exclude: Iterable[str | Path] = (),
) -> bool:
    """Whether any of *needles* appears in a source file outside *exclude*.

    An I/O failure while scanning is treated as "referenced".
    """
    try:
        return bool(find_references(root, needles, exclude, first_only=True))
    except OSError as exc:
        print_warning(f"Usage scan failed ({exc}); keeping shared files")
        return True


def exported_symbols(path: str | Path) -> set[str]:
    """Names exported by a source file, or by every source file under a directory."""
    target = Path(path)
    if not target.exists():
        return set()
    files = [target] if target.is_file() else list(iter_source_files(target))
    names: set[str] = set()
    for file in files:
        content = file.read_text(encoding="utf-8", errors="replace")
        names.update(m.group("name") for m in _EXPORTED_SYMBOL_RE.finditer(content))
    return names


def rewrite_references(
    root: str | Path,
    replacements: Mapping[str, str],
    exclude: Iterable[str | Path] = (),
) -> RewriteReport:
    """Substitute identifiers across the tree.

    Replacements are applied longest key first so that ``createAxiosClient``
    is rewritten before ``axiosClient``.  The report lists the files changed
    and the files where an old identifier still appears afterwards.
    """
    ordered = sorted(replacements.items(), key=lambda item: len(item[0]), reverse=True)
    report = RewriteReport()
    for path in iter_source_files(Path(root), [Path(p) for p in exclude]):
        original = path.read_text(encoding="utf-8", errors="replace")
        updated = original
        for old, new in ordered:
            updated = updated.replace(old, new)
        if updated != original:
            path.write_text(updated, encoding="utf-8")
            report.rewritten.append(path)
        if any(old in updated for old, _ in ordered):
            report.remaining.append(path)
    return report
