# projecttree/core/fs_scanner.py
import os
import fnmatch
import threading
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from .models import ROOT_ID, TreeNode


class ScanCancelledError(RuntimeError):
    """Raised by scan_snapshot_sync when cancel() was called mid-scan."""


class _FileScannerCore:
    """Builds a TreeNode snapshot of a directory (read-only, synchronous)."""

    def __init__(self,
                 root_path: Path,
                 ignore_patterns: List[str],
                 progress_callback: Optional[Callable[[str], None]] = None,
                 error_callback: Optional[Callable[[str], None]] = None):
        self.root_path = Path(root_path).resolve()
        self.ignore_patterns = ignore_patterns
        self.progress_callback = progress_callback
        self.error_callback = error_callback
        self._is_cancelled = threading.Event() # Set from the UI thread, read by the worker
        logger.debug(f"Scanner core initialized for {self.root_path} with ignores: {self.ignore_patterns}")

    def _emit_progress(self, message: str):
        if self.progress_callback:
            try: self.progress_callback(message)
            except Exception as e: logger.error(f"Error in progress callback: {e}")

    def _emit_error(self, message: str):
        if self.error_callback:
            try: self.error_callback(message)
            except Exception as e: logger.error(f"Error in error callback: {e}")

    def node_id_for(self, path: Path) -> str:
        """Stable id: POSIX path relative to the scan root, 'root' for the root itself."""
        relative = path.relative_to(self.root_path).as_posix()
        return ROOT_ID if relative == "." else relative

    def is_ignored(self, entry_path: Path) -> bool:
        """Matches ignore patterns against the entry name and its root-relative path."""
        try:
            relative_path_str = entry_path.relative_to(self.root_path).as_posix()
        except ValueError:
            relative_path_str = None

        name = entry_path.name
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                logger.trace(f"Ignoring '{name}' due to basename pattern '{pattern}'")
                return True
            if relative_path_str and fnmatch.fnmatch(relative_path_str, pattern):
                logger.trace(f"Ignoring '{relative_path_str}' due to relative path pattern '{pattern}'")
                return True
        return False

    def scan_snapshot_sync(self) -> TreeNode:
        """
        Scans the root directory and returns the whole snapshot.
        Raises ValueError if the root is not a directory, ScanCancelledError if cancelled.
        """
        logger.info(f"[Scan] Starting for: {self.root_path}")
        self._is_cancelled.clear()
        if not self.root_path.is_dir():
            raise ValueError(f"Provided path is not a valid directory: {self.root_path}")
        root_node = self._scan_recursive(self.root_path)
        if root_node is None or self._is_cancelled.is_set():
            logger.info(f"[Scan] Cancelled for: {self.root_path}")
            raise ScanCancelledError(f"Scan cancelled: {self.root_path}")
        logger.info(f"[Scan] Finished successfully for: {self.root_path}")
        return root_node

    def _scan_recursive(self, dir_path: Path) -> Optional[TreeNode]:
        if self._is_cancelled.is_set(): return None
        is_root = dir_path == self.root_path
        if not is_root: self._emit_progress(f"Scanning: {dir_path.name}")

        children: List[TreeNode] = []
        try: entries = list(os.scandir(dir_path))
        except OSError as scandir_err:
            logger.warning(f"Could not scan directory contents {dir_path}: {scandir_err}")
            self._emit_error(f"Access Error scanning: {dir_path.name}")
            entries = [] # Show the directory, empty

        for entry in entries:
            if self._is_cancelled.is_set(): return None
            entry_path = dir_path / entry.name

            # Symlinks are skipped before is_dir()/is_file() can follow them
            try:
                if entry.is_symlink():
                    logger.trace(f"Ignoring symlink entry: {entry.name}")
                    continue
                entry_is_dir = entry.is_dir()
            except OSError as e:
                logger.warning(f"Could not inspect entry {entry.path}: {e}. Skipping.")
                self._emit_error(f"Access Error inspecting: {entry.name}")
                continue

            if self.is_ignored(entry_path):
                continue
            if entry_is_dir:
                sub_dir_node = self._scan_recursive(entry_path)
                if sub_dir_node is None: return None # Cancelled below us
                children.append(sub_dir_node)
            elif entry.is_file():
                children.append(TreeNode(id=self.node_id_for(entry_path), name=entry.name,
                                         is_directory=False, path=entry_path.as_posix()))

        children.sort(key=lambda n: (not n.is_directory, n.name.lower()))
        return TreeNode(
            id=self.node_id_for(dir_path),
            name=dir_path.name,
            is_directory=True,
            children=tuple(children),
            path=dir_path.as_posix(),
            dir_path=dir_path.as_posix() if is_root else None,
        )

    def cancel(self):
        """Signals the scanner to stop processing."""
        logger.info("Cancellation requested for scanner core.")
        self._is_cancelled.set()
