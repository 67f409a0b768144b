from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES: frozenset[str] = frozenset({".md", ".markdown"})


def _is_document(path: Path) -> bool:
    return path.suffix.lower() in DOCUMENT_SUFFIXES


class MarkdownWatcher:
    """Watch a directory for contract document changes and trigger a callback.

    Implements the ``DocumentWatcherPort`` protocol. Deleted files are not
    reported since there is nothing left to re-extract.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watching %s for document changes", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching %s", self._directory)

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def _watch(self) -> None:
        async for changes in awatch(self._directory):
            paths = {Path(p) for change, p in changes if change != Change.deleted and _is_document(Path(p))}
            if not paths:
                continue
            logger.info("Detected changes in %d document(s)", len(paths))
            try:
                await self._on_change(paths)
            except Exception:
                logger.exception("Error while re-extracting changed documents")
