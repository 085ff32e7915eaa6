"""
Concurrent retrieval of download items into one output directory.
"""

import asyncio
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from releasefetch.exceptions import StorageError
from releasefetch.log_utils import logger

from .async_client import AsyncGitHubClient
from .models import DownloadItem, Pathish


class RetrievalEngine:
    """
    Fetches every item at once and streams each body to `out_dir/<file_name>`.

    The batch is all-or-nothing: in-flight fetches are left to finish, and if any
    of them failed the error of the earliest failing item (in input order) is
    raised instead of returning paths.
    """

    def __init__(
        self,
        client: AsyncGitHubClient,
        report: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.client = client
        self.report = report or logger.info

    async def fetch_all(
        self, items: Sequence[DownloadItem], out_dir: Pathish
    ) -> List[Path]:
        """
        Download `items` into `out_dir`.

        Parameters:
            items (Sequence[DownloadItem]): Items to fetch.
            out_dir (Pathish): Output directory; created (with parents) if missing.

        Returns:
            List[Path]: Absolute paths of the written files, in the order of `items`.

        Raises:
            FetchError: If an item answered with a non-success status or the transfer failed.
            StorageError: If the directory or a file could not be written.
        """
        target_dir = ensure_directory(out_dir)

        results = await asyncio.gather(
            *(self._fetch_one(item, target_dir) for item in items),
            return_exceptions=True,
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                f"{len(failures)} of {len(results)} download(s) failed; aborting batch"
            )
            raise failures[0]

        return [Path(result) for result in results]

    async def _fetch_one(self, item: DownloadItem, target_dir: Path) -> Path:
        self.report(f"Downloading file: {item.file_name} to: {target_dir}")
        return await self.client.stream_to_file(
            item.url, target_dir / item.file_name, accept=item.accept_header
        )


def ensure_directory(path: Pathish) -> Path:
    """
    Create `path` (and parents) if needed and return it as an absolute path.

    Raises:
        StorageError: If the directory cannot be created.
    """
    directory = Path(path).expanduser().resolve()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(
            f"Failed to create output directory {directory}",
            path=str(directory),
            details=str(e),
        ) from e
    return directory
