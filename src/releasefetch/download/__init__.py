"""
releasefetch download subsystem.

Core Components:
- models: releases, assets, criteria and download items
- async_client: aiohttp-based GitHub releases client
- selector: release selection (direct lookups and filtered listing)
- assets: asset resolution (glob matches plus source archives)
- retrieval: concurrent streaming downloads
- extraction: optional archive extraction
- orchestrator: pipeline coordination
"""

from .assets import AssetResolver, matches
from .async_client import AsyncGitHubClient
from .extraction import extract_archive, extract_archives
from .models import (
    Asset,
    AssetSelectionCriteria,
    DownloadItem,
    DownloadOutcome,
    Release,
    SelectionCriteria,
    SelectionMode,
)
from .orchestrator import ReleaseDownloader, download_release, run_download
from .retrieval import RetrievalEngine, ensure_directory
from .selector import ReleaseSelector, release_matches

__all__ = [
    # Models
    "Asset",
    "Release",
    "SelectionMode",
    "SelectionCriteria",
    "AssetSelectionCriteria",
    "DownloadItem",
    "DownloadOutcome",
    # Components
    "AsyncGitHubClient",
    "ReleaseSelector",
    "release_matches",
    "AssetResolver",
    "matches",
    "RetrievalEngine",
    "ensure_directory",
    "extract_archive",
    "extract_archives",
    # Orchestration
    "ReleaseDownloader",
    "download_release",
    "run_download",
]
