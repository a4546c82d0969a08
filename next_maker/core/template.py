"""Fetching the starter template into a local directory.

Downloads the GitHub tarball of the configured repository and extracts it
without the archive's top-level folder and without any git history, the way
``degit`` does.  When ``ToolConfig.template_dir`` is set the template is
copied from that local tree instead (offline use and tests).
"""

from __future__ import annotations

import asyncio
import io
import tarfile
from pathlib import Path, PurePosixPath

import httpx

from next_maker.config import ToolConfig
from next_maker.core.files import copy_tree
from next_maker.errors import TargetExistsError, TemplateFetchError


class TemplateFetcher:
    """Materialises the starter template at a destination path."""

    def __init__(self, config: ToolConfig) -> None:
        self.config = config

    async def fetch(self, destination: str | Path) -> Path:
        """Populate *destination* with the template tree.

        Raises:
            TargetExistsError: If *destination* exists and is not empty.
            TemplateFetchError: If the download or extraction fails.
        """
        dest = Path(destination)
        if dest.exists() and any(dest.iterdir()):
            raise TargetExistsError(dest, f"Directory {dest} already exists and is not empty")

        if self.config.template_dir is not None:
            source = Path(self.config.template_dir)
            if not source.is_dir():
                raise TemplateFetchError(f"Template directory not found: {source}")
            await asyncio.to_thread(copy_tree, source, dest)
            return dest

        archive = await self._download()
        try:
            await asyncio.to_thread(_extract_stripped, archive, dest)
        except (tarfile.TarError, OSError) as exc:
            raise TemplateFetchError(f"Could not extract template archive: {exc}") from exc
        return dest

    async def _download(self) -> bytes:
        url = self.config.template_url
        timeout = httpx.Timeout(float(self.config.clone_timeout), connect=15.0)
        try:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TemplateFetchError(
                f"Template download failed ({exc.response.status_code}): {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TemplateFetchError(f"Template download failed: {url} ({exc})") from exc
        return response.content


def _extract_stripped(archive: bytes, destination: Path) -> None:
    """Extract a gzipped tarball, dropping its single top-level directory."""
    destination.mkdir(parents=True, exist_ok=True)
    with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
        for member in tar.getmembers():
            parts = PurePosixPath(member.name).parts[1:]
            if not parts or parts[0] == ".git":
                continue
            member.name = str(PurePosixPath(*parts))
            tar.extract(member, destination, filter="data")
