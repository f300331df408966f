"""
creditbridge.services.media_service — Media In Transit
=======================================================

Telegram media has to touch the disk on its way to Discord: it's
downloaded to a uniquely named file under ``content_dir``, uploaded, and
deleted straight away whether the upload worked or not.

Usage::

    async with staged_media(cfg.content_dir, MediaKind.VOICE) as path:
        await download_file(url, path)
        await send_file(path, caption)
    # path is gone here, even if either step raised
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx

from creditbridge.engine.events import MEDIA_FILE_NAMING, MediaKind

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 30.0  # seconds


def ensure_content_dir(content_dir: str | Path) -> Path:
    """Create the scratch directory if it doesn't exist."""
    path = Path(content_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def temp_media_path(content_dir: str | Path, kind: MediaKind) -> Path:
    """Return a fresh path like ``content/voice_1718000000123456789.ogg``."""
    prefix, ext = MEDIA_FILE_NAMING.get(kind, (str(kind), ""))
    return Path(content_dir) / f"{prefix}_{time.time_ns()}{ext}"


def discard(path: Path) -> bool:
    """Delete *path*.  Returns True if a file was removed."""
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError:
        logger.exception("Failed to remove temp file %s", path)
        return False


@asynccontextmanager
async def staged_media(content_dir: str | Path, kind: MediaKind) -> AsyncIterator[Path]:
    """Yield a temp path for one piece of media and always delete it after."""
    ensure_content_dir(content_dir)
    path = temp_media_path(content_dir, kind)
    try:
        yield path
    finally:
        discard(path)


async def download_file(
    url: str,
    dest: Path,
    client: httpx.AsyncClient | None = None,
) -> int:
    """Fetch *url* into *dest*.  Returns the number of bytes written.

    Raises ``httpx.HTTPError`` on network or HTTP-status failures.
    """
    if client is None:
        transport = httpx.AsyncHTTPTransport(retries=1)
        async with httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT, transport=transport) as own:
            return await download_file(url, dest, own)

    resp = await client.get(url)
    resp.raise_for_status()
    content = resp.content
    # Offload blocking file I/O to a thread to avoid stalling the event loop
    await asyncio.to_thread(dest.write_bytes, content)
    return len(content)
