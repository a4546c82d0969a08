"""Unit tests for template fetching (next_maker.core.template)."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from next_maker.config import ToolConfig
from next_maker.core.template import TemplateFetcher, _extract_stripped
from next_maker.errors import TargetExistsError, TemplateFetchError


def _tarball(files: dict[str, str], prefix: str = "nextjs-starter-main") -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(f"{prefix}/{name}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


_RealAsyncClient = httpx.AsyncClient


def _client_with(handler):
    def factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return factory


class TestLocalTemplate:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_copies_template_dir(self, tmp_path: Path, tool_config: ToolConfig):
        dest = await TemplateFetcher(tool_config).fetch(tmp_path / "out")
        assert (dest / "package.json").is_file()
        assert (dest / "src" / "providers" / "RootProvider.tsx").is_file()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_empty_destination(self, tmp_path: Path, tool_config: ToolConfig):
        dest = tmp_path / "out"
        dest.mkdir()
        (dest / "keep.txt").write_text("mine")
        with pytest.raises(TargetExistsError):
            await TemplateFetcher(tool_config).fetch(dest)
        assert (dest / "keep.txt").read_text() == "mine"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_destination_allowed(self, tmp_path: Path, tool_config: ToolConfig):
        dest = tmp_path / "out"
        dest.mkdir()
        await TemplateFetcher(tool_config).fetch(dest)
        assert (dest / "package.json").is_file()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_template_dir(self, tmp_path: Path):
        config = ToolConfig(template_dir=tmp_path / "missing")
        with pytest.raises(TemplateFetchError, match="not found"):
            await TemplateFetcher(config).fetch(tmp_path / "out")


class TestExtract:
    @pytest.mark.unit
    def test_strips_top_level_and_git(self, tmp_path: Path):
        archive = _tarball(
            {"package.json": "{}", "src/app/page.tsx": "page", ".git/HEAD": "ref: main"}
        )
        _extract_stripped(archive, tmp_path / "out")
        assert (tmp_path / "out" / "package.json").read_text() == "{}"
        assert (tmp_path / "out" / "src" / "app" / "page.tsx").read_text() == "page"
        assert not (tmp_path / "out" / ".git").exists()
        assert not (tmp_path / "out" / "nextjs-starter-main").exists()


class TestDownload:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_downloads_and_extracts(self, tmp_path: Path):
        archive = _tarball({"package.json": '{"name": "nextjs-starter"}'})
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=archive)

        config = ToolConfig(template_repo="acme/starter", template_ref="v1")
        with patch("next_maker.core.template.httpx.AsyncClient", _client_with(handler)):
            dest = await TemplateFetcher(config).fetch(tmp_path / "out")
        assert requested == ["https://codeload.github.com/acme/starter/tar.gz/v1"]
        assert (dest / "package.json").is_file()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_http_error_status(self, tmp_path: Path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        with patch("next_maker.core.template.httpx.AsyncClient", _client_with(handler)):
            with pytest.raises(TemplateFetchError, match="404"):
                await TemplateFetcher(ToolConfig()).fetch(tmp_path / "out")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_network_error(self, tmp_path: Path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with patch("next_maker.core.template.httpx.AsyncClient", _client_with(handler)):
            with pytest.raises(TemplateFetchError, match="connection refused"):
                await TemplateFetcher(ToolConfig()).fetch(tmp_path / "out")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_corrupt_archive(self, tmp_path: Path):
        with patch.object(TemplateFetcher, "_download", AsyncMock(return_value=b"not a tarball")):
            with pytest.raises(TemplateFetchError, match="extract"):
                await TemplateFetcher(ToolConfig()).fetch(tmp_path / "out")
