"""
tests/test_media_service.py — Media Staging & Download Tests
=============================================================
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from creditbridge.engine.events import MediaKind
from creditbridge.services.media_service import (
    discard,
    download_file,
    staged_media,
    temp_media_path,
)


def run_async(coro):
    """Helper to run an async function in tests."""
    return asyncio.get_event_loop_policy().new_event_loop().run_until_complete(coro)


def _make_client(status: int = 200, body: bytes = b"") -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestNaming:
    @pytest.mark.parametrize("kind,prefix,ext", [
        (MediaKind.PHOTO, "photo_", ".jpg"),
        (MediaKind.VIDEO_NOTE, "video_", ".mp4"),
        (MediaKind.VOICE, "voice_", ".ogg"),
    ])
    def test_temp_names(self, tmp_path, kind, prefix, ext):
        path = temp_media_path(tmp_path, kind)
        assert path.parent == tmp_path
        assert path.name.startswith(prefix)
        assert path.suffix == ext
        assert path.stem.split("_")[1].isdigit()

    def test_discard_missing_file(self, tmp_path):
        assert discard(tmp_path / "gone.ogg") is False


class TestStagedMedia:
    def test_file_removed_after_block(self, tmp_path):
        async def _inner():
            async with staged_media(tmp_path / "content", MediaKind.VOICE) as path:
                path.write_bytes(b"data")
                assert path.exists()
            return path

        path = run_async(_inner())
        assert not path.exists()
        assert path.parent.is_dir()

    def test_file_removed_when_block_raises(self, tmp_path):
        seen = []

        async def _inner():
            async with staged_media(tmp_path, MediaKind.PHOTO) as path:
                seen.append(path)
                path.write_bytes(b"data")
                raise RuntimeError("upload failed")

        with pytest.raises(RuntimeError):
            run_async(_inner())
        assert not seen[0].exists()


class TestDownload:
    def test_writes_body(self, tmp_path):
        dest = tmp_path / "voice_1.ogg"

        async def _inner():
            async with _make_client(body=b"OggS-payload") as client:
                return await download_file("https://example.test/f", dest, client)

        assert run_async(_inner()) == len(b"OggS-payload")
        assert dest.read_bytes() == b"OggS-payload"

    def test_http_error_raises_and_writes_nothing(self, tmp_path):
        dest = tmp_path / "voice_1.ogg"

        async def _inner():
            async with _make_client(status=404) as client:
                await download_file("https://example.test/f", dest, client)

        with pytest.raises(httpx.HTTPStatusError):
            run_async(_inner())
        assert not dest.exists()
