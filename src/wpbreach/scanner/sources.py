# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""File sources feeding ``(path, content)`` pairs to the scan coordinator."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from wpbreach.core.config import DEFAULT_EXCLUDE_DIRS, DEFAULT_EXTENSIONS
from wpbreach.core.exceptions import FileScanError

logger = logging.getLogger("wpbreach.scanner.sources")


class FileTooLargeError(FileScanError):
    error_type = "file_too_large"


class FileReadError(FileScanError):
    error_type = "read_error"


class FileEncodingError(FileScanError):
    error_type = "encoding_error"


@runtime_checkable
class FileSource(Protocol):
    """Anything that can enumerate files and return their text."""

    def list_files(self) -> list[str]:
        """Stable, de-duplicated file identifiers in scan order."""
        ...

    def read(self, path: str) -> str:
        """Return the file's text or raise :class:`FileScanError`."""
        ...


class FilesystemSource:
    """Walk local target paths for PHP sources.

    Parameters
    ----------
    target_paths:
        Files or directories. Explicitly named files are always included;
        directories are walked recursively.
    extensions:
        File suffixes (case-insensitive) picked up while walking.
    exclude_dirs:
        Directory names pruned while walking.
    max_file_size:
        Files larger than this many bytes raise :class:`FileTooLargeError`.
    """

    def __init__(
        self,
        target_paths: Iterable[str | Path],
        *,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
        max_file_size: int = 1_048_576,
    ) -> None:
        self.target_paths = [Path(p) for p in target_paths]
        self.extensions = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in extensions}
        self.exclude_dirs = set(exclude_dirs)
        self.max_file_size = max_file_size

    def list_files(self) -> list[str]:
        seen: dict[str, None] = {}
        for target in self.target_paths:
            if target.is_file():
                seen.setdefault(str(target), None)
            elif target.is_dir():
                for path in self._walk(target):
                    seen.setdefault(path, None)
            else:
                logger.warning("Target path does not exist: %s", target)
        return list(seen)

    def _walk(self, root: Path) -> list[str]:
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in self.exclude_dirs)
            for filename in sorted(filenames):
                if Path(filename).suffix.lower() in self.extensions:
                    found.append(os.path.join(dirpath, filename))
        return found

    def read(self, path: str) -> str:
        file_path = Path(path)
        try:
            size = file_path.stat().st_size
        except OSError as exc:
            raise FileReadError(path, f"cannot stat file: {exc.strerror or exc}") from exc

        if size > self.max_file_size:
            raise FileTooLargeError(path, f"file is {size} bytes, limit is {self.max_file_size}")

        try:
            raw = file_path.read_bytes()
        except OSError as exc:
            raise FileReadError(path, f"cannot read file: {exc.strerror or exc}") from exc

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FileEncodingError(path, f"not valid UTF-8 at byte {exc.start}") from exc


class InMemorySource:
    """Serve content from a mapping, for embedding and tests."""

    def __init__(self, files: dict[str, str]) -> None:
        self._files = dict(files)

    def list_files(self) -> list[str]:
        return list(self._files)

    def read(self, path: str) -> str:
        try:
            return self._files[path]
        except KeyError:
            raise FileReadError(path, "no such file") from None
