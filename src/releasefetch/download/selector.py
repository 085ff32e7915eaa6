"""
Release selection.

Picks exactly one release for a repository, either through a direct API lookup
(latest, by tag, by ID) or, when tag/prerelease filters are in play, by walking
the full paginated release list and taking the first release that passes every
filter.
"""

from typing import AsyncIterator, Callable, Optional

import aiohttp

from releasefetch.constants import GITHUB_MAX_PER_PAGE
from releasefetch.exceptions import ConfigError, ReleaseFetchError, SelectionError
from releasefetch.log_utils import logger

from .async_client import AsyncGitHubClient
from .models import Release, SelectionCriteria, SelectionMode

Reporter = Callable[[str], None]


def release_matches(release: Release, criteria: SelectionCriteria) -> bool:
    """
    Check a listed release against the active `latest` filters.

    A release matches when its prerelease flag equals the requested one, its tag
    contains `.{branch}.` (only when branch filtering is on), and its tag starts
    with the tag prefix (only when a prefix is set). Tags are compared as plain
    strings; no version parsing happens here.

    Parameters:
        release (Release): Release taken from the listing.
        criteria (SelectionCriteria): The caller's selection criteria.

    Returns:
        bool: `True` if every active predicate holds.
    """
    if release.prerelease != criteria.prerelease:
        return False
    if criteria.filter_by_branch and f".{criteria.branch}." not in release.tag_name:
        return False
    prefix = criteria.tag_prefix
    if prefix and prefix.strip() and not release.tag_name.startswith(prefix):
        return False
    return True


def describe_latest_request(criteria: SelectionCriteria) -> str:
    """Build the progress message announcing a `latest` lookup."""
    kind = "prerelease" if criteria.prerelease else "release"
    msg = f"Fetching latest {kind} in repo {criteria.repo_path}"
    if criteria.tag_prefix and criteria.tag_prefix.strip():
        msg = f"{msg} with tag prefix {criteria.tag_prefix}"
    if criteria.filter_by_branch:
        msg = f"{msg} for tag branch {criteria.branch}"
    return msg


class ReleaseSelector:
    """
    Resolves selection criteria to a single release.

    Usage:
        selector = ReleaseSelector(client)
        release = await selector.resolve(criteria)
    """

    def __init__(
        self,
        client: AsyncGitHubClient,
        report: Optional[Reporter] = None,
        per_page: int = GITHUB_MAX_PER_PAGE,
    ) -> None:
        """
        Parameters:
            client (AsyncGitHubClient): Client used for every API call.
            report (Optional[Callable[[str], None]]): Progress sink; defaults to `logger.info`.
            per_page (int): Page size used when listing releases.
        """
        self.client = client
        self.report: Reporter = report or logger.info
        self.per_page = per_page

    async def resolve(self, criteria: SelectionCriteria) -> Release:
        """
        Resolve `criteria` to one release.

        Raises:
            ConfigError: If the tag or ID needed by the mode is empty.
            NotFoundError: If a direct lookup does not answer with a release.
            SelectionError: If a filtered listing contains no matching release.
        """
        if criteria.mode is SelectionMode.LATEST:
            return await self._resolve_latest(criteria)
        if criteria.mode is SelectionMode.BY_TAG:
            return await self._resolve_by_tag(criteria)
        if criteria.mode is SelectionMode.BY_ID:
            return await self._resolve_by_id(criteria)
        raise ConfigError(f"Config error: Unsupported selection mode {criteria.mode!r}")

    async def _resolve_by_tag(self, criteria: SelectionCriteria) -> Release:
        self.report(f"Fetching release {criteria.tag} from repo {criteria.repo_path}")
        if not criteria.tag:
            raise ConfigError("Config error: Please input a valid tag")

        release = await self.client.get_release_by_tag(criteria.repo_path, criteria.tag)
        self.report(f"Found release tag: {release.tag_name}")
        return release

    async def _resolve_by_id(self, criteria: SelectionCriteria) -> Release:
        self.report(
            f"Fetching release id:{criteria.release_id} from repo {criteria.repo_path}"
        )
        if not criteria.release_id:
            raise ConfigError("Config error: Please input a valid release ID")

        release = await self.client.get_release_by_id(
            criteria.repo_path, criteria.release_id
        )
        self.report(f"Found release tag: {release.tag_name}")
        return release

    async def _resolve_latest(self, criteria: SelectionCriteria) -> Release:
        self.report(describe_latest_request(criteria))

        if not criteria.filters_active:
            release = await self.client.get_latest_release(criteria.repo_path)
            self.report(f"Found latest release version: {release.tag_name}")
            return release

        # The latest endpoint skips prereleases and cannot filter tags, so search the listing
        async for release in self.iter_releases(criteria.repo_path):
            if release_matches(release, criteria):
                kind = "prerelease" if criteria.prerelease else "release"
                self.report(f"Found latest {kind} version: {release.tag_name}")
                return release

        self.report("No matching releases found")
        raise SelectionError("No releases found!")

    async def iter_releases(self, repo_path: str) -> AsyncIterator[Release]:
        """
        Yield every release of `repo_path` in API order, fetching pages on demand.

        Pages are requested one after another until a page shorter than the page
        size arrives. A failed page ends the iteration: the error is logged and the
        releases already yielded are all the caller gets.

        Parameters:
            repo_path (str): Repository path in `owner/repo` form.
        """
        page = 1
        while True:
            try:
                releases, is_final_page = await self.client.list_releases(
                    repo_path, page, self.per_page
                )
            except (ReleaseFetchError, aiohttp.ClientError) as e:
                logger.warning(f"Error fetching releases page {page}: {e}")
                return

            for release in releases:
                yield release

            if is_final_page:
                return
            page += 1
