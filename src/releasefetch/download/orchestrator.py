"""
Download pipeline coordination.

ReleaseDownloader wires the three stages together for a single run:
release selection, asset resolution and concurrent retrieval, followed by
optional archive extraction.
"""

import asyncio
from typing import Callable, Optional

from releasefetch.log_utils import logger
from releasefetch.settings import DownloadSettings

from .assets import AssetResolver
from .async_client import AsyncGitHubClient
from .extraction import extract_archives
from .models import AssetSelectionCriteria, DownloadOutcome, SelectionCriteria
from .retrieval import RetrievalEngine, ensure_directory
from .selector import ReleaseSelector


class ReleaseDownloader:
    """
    Runs one download from settings to local files.

    Example:
        async with AsyncGitHubClient() as client:
            outcome = await ReleaseDownloader(client).download(settings)
    """

    def __init__(
        self,
        client: AsyncGitHubClient,
        report: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.client = client
        self.report = report or logger.info
        self.selector = ReleaseSelector(client, report=self.report)
        self.asset_resolver = AssetResolver()
        self.retrieval = RetrievalEngine(client, report=self.report)

    async def download(self, settings: DownloadSettings) -> DownloadOutcome:
        """
        Resolve the release described by `settings` and download its selected files.

        Returns:
            DownloadOutcome: Tag name, release name and the downloaded (and extracted) paths.

        Raises:
            ReleaseFetchError: Any selection, resolution, fetch or storage failure.
        """
        release = await self.selector.resolve(SelectionCriteria.from_settings(settings))

        items = self.asset_resolver.resolve(
            release, AssetSelectionCriteria.from_settings(settings)
        )
        if not items:
            logger.info(f"Nothing selected for download from {release.tag_name}")

        downloaded = await self.retrieval.fetch_all(items, settings.out_dir)

        extracted = []
        if settings.extract_assets and downloaded:
            extracted = await asyncio.to_thread(
                extract_archives, downloaded, ensure_directory(settings.out_dir)
            )

        logger.debug(
            f"Release {release.tag_name}: {len(downloaded)} file(s) downloaded, "
            f"{len(extracted)} extracted"
        )
        return DownloadOutcome(
            tag_name=release.tag_name,
            release_name=release.name,
            downloaded_files=downloaded,
            extracted_files=extracted,
        )


async def download_release(
    settings: DownloadSettings,
    report: Optional[Callable[[str], None]] = None,
) -> DownloadOutcome:
    """Run a download with a client built from `settings`, closing it afterwards."""
    async with AsyncGitHubClient(
        api_url=settings.api_url, timeout=settings.timeout
    ) as client:
        return await ReleaseDownloader(client, report=report).download(settings)


def run_download(
    settings: DownloadSettings,
    report: Optional[Callable[[str], None]] = None,
) -> DownloadOutcome:
    """Synchronous entry point around download_release()."""
    return asyncio.run(download_release(settings, report=report))
