"""
Async HTTP Client for releasefetch

This module provides asynchronous access to the GitHub releases API and
streaming artifact downloads using aiohttp and aiofiles, with a single
session per client and explicit mapping of HTTP failures onto the
releasefetch exception hierarchy.
"""

import asyncio
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiofiles  # type: ignore[import-untyped]
import aiohttp
from aiohttp import ClientSession, ClientTimeout, TCPConnector

from releasefetch.constants import (
    BYTES_PER_MEGABYTE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_REQUEST_TIMEOUT,
    FILE_SIZE_MB_LOGGING_THRESHOLD,
    GITHUB_API_ACCEPT,
    GITHUB_MAX_PER_PAGE,
    HTTP_STATUS_OK,
)
from releasefetch.exceptions import FetchError, NotFoundError, StorageError
from releasefetch.log_utils import logger
from releasefetch.utils import get_user_agent

from .models import Pathish, Release


class AsyncGitHubClient:
    """
    Asynchronous GitHub releases client using aiohttp.

    Provides async methods for:
    - Looking up a single release (latest, by tag, by ID)
    - Listing releases one page at a time
    - Streaming a release artifact to a local file

    Example:
        async with AsyncGitHubClient() as client:
            release = await client.get_latest_release("owner/repo")
    """

    def __init__(
        self,
        api_url: str = DEFAULT_GITHUB_API_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        connector_limit: int = 0,
    ) -> None:
        """
        Initialize the async GitHub client.

        Parameters:
            api_url (str): Root of the GitHub REST API (GitHub Enterprise roots are supported).
            timeout (float): Total timeout per request in seconds.
            connector_limit (int): Maximum total connections in the pool; 0 means unlimited.
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = ClientTimeout(total=timeout)
        self.connector_limit = max(0, int(connector_limit))
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> "AsyncGitHubClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        """
        Ensure a session exists, creating one if needed.

        Returns:
            ClientSession: The active aiohttp session.
        """
        if self._session is None or self._session.closed:
            connector = TCPConnector(
                limit=self.connector_limit,
                enable_cleanup_closed=True,
            )
            self._session = ClientSession(
                connector=connector,
                timeout=self.timeout,
                headers=self._get_default_headers(),
            )
        return self._session

    def _get_default_headers(self) -> Dict[str, str]:
        """Headers sent with every request; per-request Accept headers override these."""
        return {
            "Accept": GITHUB_API_ACCEPT,
            "User-Agent": get_user_agent(),
        }

    async def close(self) -> None:
        """Close the client session and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def releases_url(self, repo_path: str, suffix: str = "") -> str:
        """
        Build a releases endpoint URL for `owner/repo`.

        Parameters:
            repo_path (str): Repository path in `owner/repo` form.
            suffix (str): Path below `/releases`, e.g. "latest" or "tags/v1.0".
        """
        url = f"{self.api_url}/repos/{repo_path}/releases"
        return f"{url}/{suffix}" if suffix else url

    async def _get_release(self, url: str, operation: str) -> Release:
        """
        Fetch and parse a single release object.

        Raises:
            NotFoundError: If the API answers anything other than 200, or the payload is not a release.
            FetchError: On transport failures.
        """
        session = await self._ensure_session()
        try:
            async with session.get(url, headers={"Accept": GITHUB_API_ACCEPT}) as response:
                if response.status != HTTP_STATUS_OK:
                    raise NotFoundError(
                        f"[{operation}] Unexpected response: {response.status}",
                        status_code=response.status,
                        endpoint=url,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error fetching release from {url}: {e}")
            raise FetchError(f"[{operation}] Network error: {e}", url=url) from e
        except ValueError as e:
            raise NotFoundError(
                f"[{operation}] Invalid JSON in release response",
                status_code=HTTP_STATUS_OK,
                endpoint=url,
                details=str(e),
            ) from e

        try:
            return Release.from_api(data)
        except ValueError as e:
            raise NotFoundError(
                f"[{operation}] Malformed release payload",
                status_code=HTTP_STATUS_OK,
                endpoint=url,
                details=str(e),
            ) from e

    async def get_latest_release(self, repo_path: str) -> Release:
        """Fetch the newest non-prerelease, non-draft release."""
        return await self._get_release(
            self.releases_url(repo_path, "latest"), "getLatestRelease"
        )

    async def get_release_by_tag(self, repo_path: str, tag: str) -> Release:
        """Fetch the release published for `tag`."""
        return await self._get_release(
            self.releases_url(repo_path, f"tags/{quote(tag, safe='')}"),
            "getReleaseByTag",
        )

    async def get_release_by_id(self, repo_path: str, release_id: str) -> Release:
        """Fetch the release with the numeric ID `release_id`."""
        return await self._get_release(
            self.releases_url(repo_path, quote(str(release_id), safe="")),
            "getReleaseById",
        )

    async def list_releases(
        self,
        repo_path: str,
        page: int,
        per_page: int = GITHUB_MAX_PER_PAGE,
    ) -> Tuple[List[Release], bool]:
        """
        Fetch one page of releases, newest first.

        Parameters:
            repo_path (str): Repository path in `owner/repo` form.
            page (int): 1-based page number.
            per_page (int): Page size; a page with fewer entries is the last one.

        Returns:
            Tuple[List[Release], bool]: The page's releases and whether this is the final page.

        Raises:
            FetchError: On non-200 responses, non-list payloads, or transport failures.
        """
        session = await self._ensure_session()
        url = self.releases_url(repo_path)
        params = {"page": page, "per_page": per_page}

        try:
            async with session.get(
                url, params=params, headers={"Accept": GITHUB_API_ACCEPT}
            ) as response:
                if response.status != HTTP_STATUS_OK:
                    raise FetchError(
                        f"[listReleases] Unexpected response: {response.status}",
                        status_code=response.status,
                        url=url,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"[listReleases] Network error: {e}", url=url) from e
        except ValueError as e:
            raise FetchError(
                "[listReleases] Invalid JSON in releases response", url=url, details=str(e)
            ) from e

        if not isinstance(data, list):
            raise FetchError(
                f"[listReleases] Unexpected releases payload type: {type(data).__name__}",
                status_code=HTTP_STATUS_OK,
                url=url,
            )

        releases: List[Release] = []
        for item in data:
            try:
                releases.append(Release.from_api(item))
            except ValueError as e:
                logger.warning(f"Skipping malformed release entry from {url}: {e}")

        logger.debug(f"Fetched {len(releases)} releases from {url} (page {page})")
        return releases, len(data) < per_page

    async def stream_to_file(
        self,
        url: str,
        target_path: Pathish,
        accept: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Path:
        """
        Stream the body at `url` to `target_path`, replacing any existing file.

        The body is written to a temporary sibling first and moved into place once
        complete, so a failed transfer never leaves a truncated target behind.

        Parameters:
            url (str): Source URL.
            target_path (Pathish): Destination file path; its directory must exist.
            accept (str): Accept header for the request.
            chunk_size (int): Number of bytes to read per chunk.

        Returns:
            Path: Absolute path of the written file.

        Raises:
            FetchError: On a non-200 status or transport failures.
            StorageError: On filesystem failures.
        """
        session = await self._ensure_session()
        target = Path(target_path).resolve()
        temp_path = target.with_name(
            f"{target.name}.tmp.{os.getpid()}.{int(time.time() * 1000)}"
        )

        try:
            start_time = time.time()
            downloaded = 0

            async with session.get(url, headers={"Accept": accept}) as response:
                if response.status != HTTP_STATUS_OK:
                    raise FetchError(
                        f"Unexpected response: {response.status}",
                        status_code=response.status,
                        url=url,
                    )

                async with aiofiles.open(temp_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(chunk_size):
                        await f.write(chunk)
                        downloaded += len(chunk)

            temp_path.replace(target)

            elapsed = time.time() - start_time
            file_size_mb = downloaded / BYTES_PER_MEGABYTE
            logger.debug(f"Downloaded {url} in {elapsed:.2f}s ({file_size_mb:.2f} MB)")
            if file_size_mb >= FILE_SIZE_MB_LOGGING_THRESHOLD:
                logger.info(f"Downloaded: {target.name} ({file_size_mb:.1f} MB)")
            else:
                logger.info(f"Downloaded: {target.name} ({downloaded} bytes)")

            return target

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Download failed for {url}: {e}")
            _remove_quietly(temp_path)
            raise FetchError(f"Download failed: {e}", url=url) from e
        except OSError as e:
            logger.error(f"Filesystem error saving {target}: {e}")
            _remove_quietly(temp_path)
            raise StorageError(
                f"Failed to write {target.name}", path=str(target), details=str(e)
            ) from e
        except FetchError:
            _remove_quietly(temp_path)
            raise


def _remove_quietly(path: Path) -> None:
    if path.exists():
        try:
            path.unlink()
        except OSError as e:
            logger.debug(f"Could not remove temporary file {path}: {e}")
