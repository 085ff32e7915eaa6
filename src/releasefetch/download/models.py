"""
Core data structures for the releasefetch download pipeline.

Release and Asset describe what the GitHub API reports; the criteria classes
describe what the caller asked for; DownloadItem and DownloadOutcome carry the
work list and the result between the pipeline stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from releasefetch.constants import ARCHIVE_ACCEPT, ASSET_ACCEPT
from releasefetch.exceptions import ConfigError
from releasefetch.log_utils import logger

Pathish = Union[str, Path]

if TYPE_CHECKING:
    from releasefetch.settings import DownloadSettings


@dataclass(frozen=True)
class Asset:
    """Represents a named binary file attached to a release."""

    name: str
    """The filename of the asset"""

    download_url: str
    """API URL that serves the asset body when asked for application/octet-stream"""

    size: int = 0
    """File size in bytes"""

    browser_download_url: Optional[str] = None
    """Public download URL shown on the release page"""

    content_type: Optional[str] = None
    """MIME type of the asset"""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Asset":
        """
        Build an Asset from one entry of a release's `assets` array.

        The API `url` field is preferred as the download URL; `browser_download_url`
        is used when it is missing. A non-numeric size is recorded as 0.
        """
        browser_url = data.get("browser_download_url")
        if not isinstance(browser_url, str):
            browser_url = None
        api_url = data.get("url")
        if not isinstance(api_url, str) or not api_url:
            api_url = browser_url or ""
        try:
            size = int(data.get("size", 0))
        except (TypeError, ValueError):
            size = 0
        return cls(
            name=str(data.get("name", "")),
            download_url=api_url,
            size=size,
            browser_download_url=browser_url,
            content_type=data.get("content_type"),
        )


@dataclass(frozen=True)
class Release:
    """Represents a tagged, published snapshot of a repository."""

    tag_name: str
    """The release tag (e.g., 'v2.7.8')"""

    name: Optional[str] = None
    """Display name of the release"""

    prerelease: bool = False
    """Whether this release is flagged as not production-ready"""

    tarball_url: str = ""
    """URL of the auto-generated .tar.gz source archive"""

    zipball_url: str = ""
    """URL of the auto-generated .zip source archive"""

    published_at: Optional[str] = None
    """ISO 8601 timestamp when the release was published"""

    assets: Tuple[Asset, ...] = ()
    """Uploaded assets, in the order the API lists them"""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Release":
        """
        Build a Release from a GitHub API release object.

        Malformed asset entries (non-dicts or entries without a name) are skipped
        with a warning; the remaining assets keep the API order.

        Raises:
            ValueError: If `data` is not a mapping or has no usable tag_name.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected release object, got {type(data).__name__}")
        tag_name = data.get("tag_name")
        if not isinstance(tag_name, str) or not tag_name.strip():
            raise ValueError("release has missing or invalid tag_name")

        assets_data = data.get("assets") or []
        if not isinstance(assets_data, list):
            logger.warning(
                "Ignoring assets of release %s due to invalid assets type %s",
                tag_name,
                type(assets_data).__name__,
            )
            assets_data = []

        assets: List[Asset] = []
        for entry in assets_data:
            if not isinstance(entry, dict) or not entry.get("name"):
                logger.warning("Skipping malformed asset in release %s", tag_name)
                continue
            assets.append(Asset.from_api(entry))

        return cls(
            tag_name=tag_name,
            name=data.get("name"),
            prerelease=bool(data.get("prerelease", False)),
            tarball_url=data.get("tarball_url") or "",
            zipball_url=data.get("zipball_url") or "",
            published_at=data.get("published_at"),
            assets=tuple(assets),
        )


class SelectionMode(Enum):
    """How a release is picked."""

    LATEST = "latest"
    BY_TAG = "byTag"
    BY_ID = "byId"


@dataclass(frozen=True)
class SelectionCriteria:
    """What release the caller wants."""

    repo_path: str
    mode: SelectionMode
    tag: str = ""
    release_id: str = ""
    filter_by_branch: bool = False
    branch: str = ""
    prerelease: bool = False
    tag_prefix: str = ""

    @property
    def filters_active(self) -> bool:
        """True when `latest` cannot be answered by the single latest-release endpoint."""
        return self.prerelease or self.filter_by_branch or bool(self.tag_prefix.strip())

    @classmethod
    def from_settings(cls, settings: "DownloadSettings") -> "SelectionCriteria":
        """
        Derive the selection criteria from a settings object.

        `latest` takes precedence, then a non-empty tag, then a non-empty release ID.

        Raises:
            ConfigError: If none of the three is set.
        """
        if settings.latest:
            mode = SelectionMode.LATEST
        elif settings.tag:
            mode = SelectionMode.BY_TAG
        elif settings.release_id:
            mode = SelectionMode.BY_ID
        else:
            raise ConfigError(
                "Config error: Please input a valid tag or release ID, or specify `latest`"
            )
        return cls(
            repo_path=settings.repo_path,
            mode=mode,
            tag=settings.tag,
            release_id=settings.release_id,
            filter_by_branch=settings.filter_by_branch,
            branch=settings.branch,
            prerelease=settings.prerelease,
            tag_prefix=settings.tag_prefix or "",
        )


@dataclass(frozen=True)
class AssetSelectionCriteria:
    """Which artifacts of the selected release to download."""

    repo_path: str
    file_pattern: str = ""
    """Glob matched against asset names; empty skips named assets"""

    tarball: bool = False
    zipball: bool = False

    @property
    def repo_name(self) -> str:
        """Second segment of `owner/repo`, used to name source archives."""
        parts = self.repo_path.split("/")
        return parts[1] if len(parts) > 1 else parts[0]

    @classmethod
    def from_settings(cls, settings: "DownloadSettings") -> "AssetSelectionCriteria":
        return cls(
            repo_path=settings.repo_path,
            file_pattern=settings.file_name,
            tarball=settings.tarball,
            zipball=settings.zipball,
        )


@dataclass(frozen=True)
class DownloadItem:
    """One file to fetch into the output directory."""

    file_name: str
    url: str
    is_archive: bool = False
    """True for tarball/zipball entries, which have no fixed media type"""

    @property
    def accept_header(self) -> str:
        return ARCHIVE_ACCEPT if self.is_archive else ASSET_ACCEPT


@dataclass
class DownloadOutcome:
    """Result of one download run, exposed to whatever drives the pipeline."""

    tag_name: str
    release_name: Optional[str]
    downloaded_files: List[Path] = field(default_factory=list)
    extracted_files: List[Path] = field(default_factory=list)

    def as_outputs(self) -> Dict[str, Any]:
        """Return the outcome as a plain mapping of output names to values."""
        return {
            "tag_name": self.tag_name,
            "release_name": self.release_name or "",
            "downloaded_files": [str(path) for path in self.downloaded_files],
        }
