"""Sequential recursive traversal feeding the line matcher.

Files are visited one at a time in sorted name order so results are
reproducible across runs and file systems. Symlinks, to files or
directories, are never followed. A file that cannot be read is
logged and skipped; it never aborts the walk.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from ..domain.errors import FileAccessError
from ..domain.models import DirectoryScan, Finding
from .line_matcher import scan_code, scan_secrets
from .audit_log import FILE_SKIPPED, record_scan_event
from .scan_limits import ScanLimitConfig

_LOG = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".js", ".ts", ".jsx", ".tsx", ".mjs")

EXCLUDED_DIR_NAMES = frozenset(
    {
        "node_modules",
        "bower_components",
        "jspm_packages",
        "vendor",
        "__pycache__",
        "site-packages",
        "venv",
    }
)
"""Dependency and vendor cache directories never worth scanning."""

HIDDEN_PREFIX = "."


def is_excluded_dir(name: str) -> bool:
    return name in EXCLUDED_DIR_NAMES or name.startswith(HIDDEN_PREFIX)


def normalize_extensions(extensions: Iterable[str] | None) -> frozenset[str]:
    """Accept ``js`` or ``.js`` style entries; fall back to the defaults."""

    if not extensions:
        return frozenset(DEFAULT_EXTENSIONS)
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return frozenset(normalized) or frozenset(DEFAULT_EXTENSIONS)


def iter_source_files(
    root: Path, extensions: frozenset[str], skipped: list[Path] | None = None
) -> Iterator[Path]:
    """Yield matching files under ``root`` depth-first in sorted order."""

    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        _LOG.warning("Skipping unreadable directory %s: %s", root, exc)
        if skipped is not None:
            skipped.append(root)
        return

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                if is_excluded_dir(entry.name):
                    continue
                yield from iter_source_files(Path(entry.path), extensions, skipped)
            elif (
                entry.is_file(follow_symlinks=False)
                and Path(entry.name).suffix.lower() in extensions
            ):
                yield Path(entry.path)
        except OSError as exc:
            _LOG.warning("Skipping %s: %s", entry.path, exc)
            if skipped is not None:
                skipped.append(Path(entry.path))


def read_source(path: Path, max_bytes: int) -> str:
    """Read one file as text or raise :class:`FileAccessError`."""

    try:
        size = path.stat().st_size
        if size > max_bytes:
            raise FileAccessError(f"{path.name} is larger than {max_bytes} bytes")
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise FileAccessError(f"{path.name} could not be read: {exc.strerror}") from exc


def scan_directory(
    root: str | Path,
    extensions: Iterable[str] | None = None,
    limits: ScanLimitConfig | None = None,
) -> DirectoryScan:
    """Scan every matching file under ``root`` for patterns and secrets."""

    root_path = Path(root)
    if not root_path.is_dir():
        raise FileAccessError(f"{root} is not a directory")

    limits = limits or ScanLimitConfig.from_env()
    wanted = normalize_extensions(extensions)
    security: list[Finding] = []
    secrets: list[Finding] = []
    skipped: list[str] = []
    unreadable: list[Path] = []
    files_scanned = 0

    for path in iter_source_files(root_path, wanted, unreadable):
        relative = path.relative_to(root_path).as_posix()
        try:
            text = read_source(path, limits.max_file_bytes)
        except FileAccessError as exc:
            _LOG.warning("Skipping %s: %s", relative, exc)
            skipped.append(relative)
            continue
        files_scanned += 1
        security.extend(scan_code(text, relative))
        secrets.extend(scan_secrets(text, relative))

    skipped.extend(_relative(p, root_path) for p in unreadable)
    if skipped:
        record_scan_event(FILE_SKIPPED, skipped_count=len(skipped))

    return DirectoryScan(
        security=tuple(security),
        secrets=tuple(secrets),
        files_scanned=files_scanned,
        skipped=tuple(skipped),
    )


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.name
