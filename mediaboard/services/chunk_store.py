"""Filesystem staging area for upload chunks.

Layout: ``<root>/<upload_id>/chunk_<index>``. A chunk is streamed into a
uniquely named ``.part`` file first and then moved into place with
``os.replace``, so readers only ever see complete chunks and two uploads of
the same index cannot interleave their bytes.
"""

import asyncio
import logging
import os
import re
import shutil
import time
from pathlib import Path
from typing import AsyncIterator, Optional
from uuid import uuid4

import aiofiles
import aiofiles.os

from mediaboard.services.exceptions import (
    ClientInputError,
    MissingChunkError,
    PayloadTooLargeError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)

_SESSION_ID = re.compile(r"^[0-9a-f]{32}$")
COPY_BUFFER_SIZE = 1024 * 1024


class ChunkStore:
    """Stores chunk blobs per upload session on local disk."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def session_dir(self, upload_id: str) -> Path:
        if not _SESSION_ID.match(upload_id):
            raise SessionNotFoundError(upload_id)
        return self.root / upload_id

    def chunk_path(self, upload_id: str, index: int) -> Path:
        return self.session_dir(upload_id) / f"chunk_{index}"

    async def create(self, upload_id: str):
        await aiofiles.os.makedirs(self.session_dir(upload_id), exist_ok=True)

    async def stage_chunk(
        self, upload_id: str, index: int, body: AsyncIterator[bytes], max_bytes: int
    ) -> tuple[Path, int]:
        """
        Stream a chunk body into a temporary file inside the session directory.

        Returns:
            Tuple of (staged_path, size)
        """
        staged = self.session_dir(upload_id) / f"chunk_{index}.{uuid4().hex}.part"
        size = 0
        try:
            async with aiofiles.open(staged, "wb") as f:
                async for piece in body:
                    size += len(piece)
                    if size > max_bytes:
                        raise PayloadTooLargeError(
                            f"Chunk {index} exceeds its expected size of {max_bytes} bytes",
                            expectedSize=max_bytes,
                        )
                    await f.write(piece)
        except FileNotFoundError:
            # Session directory removed by finalize/abort/sweep mid-request
            raise SessionNotFoundError(upload_id)
        except BaseException:
            await self.discard_staged(staged)
            raise

        if size == 0:
            await self.discard_staged(staged)
            raise ClientInputError(f"Chunk {index} has an empty body")

        return staged, size

    async def commit_chunk(self, upload_id: str, index: int, staged: Path):
        """Atomically move a staged chunk to its final name (overwrites)."""
        await aiofiles.os.replace(staged, self.chunk_path(upload_id, index))

    async def discard_staged(self, staged: Path):
        try:
            await aiofiles.os.remove(staged)
        except FileNotFoundError:
            pass

    async def has_chunk(self, upload_id: str, index: int) -> bool:
        return await aiofiles.os.path.exists(self.chunk_path(upload_id, index))

    async def missing_chunks(self, upload_id: str, count: int) -> list[int]:
        """Indices in ``0 .. count - 1`` without a chunk file on disk."""
        return [i for i in range(count) if not await self.has_chunk(upload_id, i)]

    async def assemble(self, upload_id: str, count: int, destination: Path) -> int:
        """
        Concatenate chunks ``0 .. count - 1`` in index order into ``destination``.

        Chunk files are checked before anything is written and again as each
        one is read. Absent files abort the assembly with MissingChunkError
        listing every index missing on disk, and the partial output is removed.

        Returns:
            Number of bytes written
        """
        missing = await self.missing_chunks(upload_id, count)
        if missing:
            raise MissingChunkError(missing, count)

        total = 0
        try:
            async with aiofiles.open(destination, "wb") as out:
                for index in range(count):
                    path = self.chunk_path(upload_id, index)
                    try:
                        async with aiofiles.open(path, "rb") as chunk:
                            while True:
                                block = await chunk.read(COPY_BUFFER_SIZE)
                                if not block:
                                    break
                                await out.write(block)
                                total += len(block)
                    except FileNotFoundError:
                        missing = await self.missing_chunks(upload_id, count)
                        raise MissingChunkError(missing or [index], count)
        except BaseException:
            await self.discard_staged(destination)
            raise

        return total

    def assembled_path(self, upload_id: str) -> Path:
        return self.session_dir(upload_id) / "assembled"

    async def discard(self, upload_id: str):
        """Remove the session directory and everything in it."""
        path = self.session_dir(upload_id)
        await asyncio.to_thread(shutil.rmtree, path, True)

    async def list_sessions(self, older_than_seconds: Optional[float] = None) -> list[str]:
        """Upload ids that have a directory, optionally only stale ones."""

        def scan() -> list[str]:
            if not self.root.exists():
                return []
            cutoff = time.time() - older_than_seconds if older_than_seconds else None
            found = []
            for entry in os.scandir(self.root):
                if not entry.is_dir() or not _SESSION_ID.match(entry.name):
                    continue
                if cutoff is not None and entry.stat().st_mtime > cutoff:
                    continue
                found.append(entry.name)
            return found

        return await asyncio.to_thread(scan)
