"""
Exam Cell Question Bank - Block Image Uploads
Each upload is an independent asyncio task keyed by block id. A completion
appends its URL to that block by identity, so out-of-order finishes are safe.
"""
import asyncio
import logging
from typing import Dict, Optional, Protocol, Set, Tuple

from .builder import QuestionBankBuilder

logger = logging.getLogger(__name__)


class ImageHost(Protocol):
    """Accepts a binary file and returns the hosted URL."""

    async def upload(self, filename: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        ...


class BlockImageUploader:
    """
    Tracks in-flight uploads for one builder session.

    After close(), or once the target block has been deleted, late completions
    are discarded instead of mutating the tree.
    """

    def __init__(self, builder: QuestionBankBuilder, host: ImageHost):
        self.builder = builder
        self.host = host
        self._tasks: Dict[str, Set[asyncio.Task]] = {}
        self._owners: Dict[asyncio.Task, Tuple[str, str]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self, block_id: Optional[str] = None) -> int:
        if block_id is not None:
            return len(self._tasks.get(block_id, ()))
        return len(self._owners)

    def start(
        self,
        question_id: str,
        block_id: str,
        filename: str,
        data: bytes,
        content_type: str = "application/octet-stream"
    ) -> Optional[asyncio.Task]:
        """Schedule an upload; returns None when the uploader is closed or the block is gone."""
        if self._closed:
            logger.info(f"Upload for block {block_id} ignored: session closed")
            return None
        if self.builder.tree.find_block(question_id, block_id) is None:
            logger.debug(f"Upload for block {block_id} ignored: block not found")
            return None

        task = asyncio.create_task(
            self._run(question_id, block_id, filename, data, content_type),
            name=f"upload:{block_id}"
        )
        self._tasks.setdefault(block_id, set()).add(task)
        self._owners[task] = (question_id, block_id)
        task.add_done_callback(self._forget)
        return task

    async def _run(self, question_id: str, block_id: str, filename: str, data: bytes, content_type: str) -> Optional[str]:
        url = await self.host.upload(filename, data, content_type)

        if self._closed:
            logger.info(f"Late upload for block {block_id} discarded: session closed")
            return None
        if self.builder.add_block_image(question_id, block_id, url) is None:
            logger.info(f"Late upload for block {block_id} discarded: block no longer exists")
            return None
        return url

    def _forget(self, task: asyncio.Task) -> None:
        owner = self._owners.pop(task, None)
        if owner is None:
            return
        block_tasks = self._tasks.get(owner[1])
        if block_tasks is not None:
            block_tasks.discard(task)
            if not block_tasks:
                del self._tasks[owner[1]]
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Upload for block {owner[1]} failed: {task.exception()}")

    def cancel_for_block(self, block_id: str) -> int:
        tasks = list(self._tasks.get(block_id, ()))
        for task in tasks:
            task.cancel()
        return len(tasks)

    def cancel_for_question(self, question_id: str) -> int:
        tasks = [task for task, owner in self._owners.items() if owner[0] == question_id]
        for task in tasks:
            task.cancel()
        return len(tasks)

    def close(self) -> int:
        """Cancel everything still running; later completions are ignored."""
        self._closed = True
        tasks = list(self._owners)
        for task in tasks:
            task.cancel()
        return len(tasks)
