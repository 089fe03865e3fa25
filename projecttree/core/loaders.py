# projecttree/core/loaders.py
import asyncio
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from ..config.loader import reload_config
from ..config.schema import AppConfig
from .fs_scanner import _FileScannerCore
from .models import TreeNode
from .tree_model import empty_tree


class ProjectLoaders:
    """
    Default implementations of the two loaders a TreeView consumes.

    Both re-read the configuration on every call, so a refresh picks up a new
    project name or folder. Blocking work runs in the loop's default executor.
    """

    def __init__(self, config_provider: Callable[[], AppConfig] = reload_config,
                 progress_callback: Optional[Callable[[str], None]] = None,
                 error_callback: Optional[Callable[[str], None]] = None):
        self._config_provider = config_provider
        self._progress_callback = progress_callback
        self._error_callback = error_callback
        self._scanner: Optional[_FileScannerCore] = None

    async def _read_config(self) -> AppConfig:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._config_provider)

    async def load_project_name(self) -> str:
        config = await self._read_config()
        name = config.project.name
        if name:
            logger.info(f"Loaded project name: {name}")
            return name
        logger.info(f"Project name not configured, using default: {config.tree.default_project_name}")
        return config.tree.default_project_name

    async def load_filesystem_snapshot(self) -> TreeNode:
        config = await self._read_config()
        dir_path = config.project.filepath
        if not dir_path:
            logger.info("Project folder not configured: showing an empty tree.")
            return empty_tree(config.project.name or config.tree.default_project_name)

        # Windows separators are normalised before scanning
        dir_path = dir_path.replace("\\", "/")
        logger.info(f"Loading project folder: {dir_path}")
        scanner = _FileScannerCore(root_path=Path(dir_path), ignore_patterns=config.ignore_patterns,
                                   progress_callback=self._progress_callback,
                                   error_callback=self._error_callback)
        self._scanner = scanner
        loop = asyncio.get_running_loop()
        try:
            snapshot = await loop.run_in_executor(None, scanner.scan_snapshot_sync)
        finally:
            if self._scanner is scanner:
                self._scanner = None
        logger.info(f"Project folder loaded: {len(snapshot.children or ())} top-level entries.")
        return snapshot

    def cancel(self):
        """Stops a scan that is still running in the executor."""
        if self._scanner is not None:
            self._scanner.cancel()
