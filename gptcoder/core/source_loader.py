# gptcoder/core/source_loader.py
import fnmatch
import os
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from .models import SourceFile

BINARY_SNIFF_BYTES = 8192
ENCODINGS_TO_TRY = ("utf-8", "cp1252")


def _matches_any(relative_path: str, name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch.fnmatch(relative_path, p) or fnmatch.fnmatch(name, p) for p in patterns)


class LocalSourceLoader:
    """Reads a local directory into an ordered list of SourceFile records."""

    def __init__(self,
                 root_path: Path,
                 ignore_patterns: Sequence[str] = (),
                 include_patterns: Optional[Sequence[str]] = None,
                 exclude_patterns: Optional[Sequence[str]] = None,
                 max_file_size: int = 1024 * 1024):
        self.root_path = Path(root_path).resolve()
        self.ignore_patterns = list(ignore_patterns)
        self.include_patterns = list(include_patterns or [])
        self.exclude_patterns = list(exclude_patterns or [])
        self.max_file_size = max_file_size
        logger.debug(f"Source loader initialized for {self.root_path} with ignores: {self.ignore_patterns}")

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.root_path).as_posix()

    def is_ignored(self, entry_path: Path) -> bool:
        """Ignore patterns match the base name or the root-relative path."""
        return _matches_any(self._relative(entry_path), entry_path.name, self.ignore_patterns)

    def is_selected(self, file_path: Path) -> bool:
        """Applies include patterns first, then exclude patterns."""
        relative_path = self._relative(file_path)
        if self.include_patterns and not _matches_any(relative_path, file_path.name, self.include_patterns):
            return False
        return not _matches_any(relative_path, file_path.name, self.exclude_patterns)

    def load(self) -> List[SourceFile]:
        """Scans the root directory and returns its readable text files."""
        logger.info(f"Loading source files from: {self.root_path}")
        if not self.root_path.is_dir():
            raise ValueError(f"Provided path is not a valid directory: {self.root_path}")
        files: List[SourceFile] = []
        self._scan_recursive(self.root_path, files)
        logger.info(f"Loaded {len(files)} files from {self.root_path}")
        return files

    def _scan_recursive(self, dir_path: Path, files: List[SourceFile]) -> None:
        try:
            entries = list(os.scandir(dir_path))
        except OSError as e:
            logger.warning(f"Could not scan directory contents {dir_path}: {e}")
            return

        dirs: List[Path] = []
        regular: List[Path] = []
        for entry in entries:
            try:
                if entry.is_symlink():
                    logger.trace(f"Ignoring symlink entry: {entry.name}")
                    continue
                is_dir = entry.is_dir()
            except OSError as e:
                logger.warning(f"Could not inspect entry {entry.path}: {e}. Skipping.")
                continue
            entry_path = Path(entry.path)
            if self.is_ignored(entry_path):
                continue
            if is_dir:
                dirs.append(entry_path)
            elif entry.is_file():
                regular.append(entry_path)

        # Directories first, then files, each by case-insensitive name
        for sub_dir in sorted(dirs, key=lambda p: p.name.lower()):
            self._scan_recursive(sub_dir, files)
        for file_path in sorted(regular, key=lambda p: p.name.lower()):
            if not self.is_selected(file_path):
                continue
            content = self._read_text(file_path)
            if content is not None:
                files.append(SourceFile(path=self._relative(file_path), name=file_path.name, content=content))

    def _read_text(self, file_path: Path) -> Optional[str]:
        """Returns decoded file content, or None for unreadable, oversized or binary files."""
        try:
            size = file_path.stat().st_size
            if size > self.max_file_size:
                logger.warning(f"Skipping {file_path.name}: {size} bytes exceeds limit of {self.max_file_size}.")
                return None
            raw = file_path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading file {file_path}: {e}")
            return None

        if b"\x00" in raw[:BINARY_SNIFF_BYTES]:
            logger.debug(f"Skipping binary file: {file_path.name}")
            return None

        for enc in ENCODINGS_TO_TRY:
            try:
                return raw.decode(enc)
            except UnicodeDecodeError:
                continue
        return raw.decode("latin-1") # Maps every byte
