"""Tests for release selection: direct lookups, filtered listing and pagination."""

from unittest.mock import AsyncMock, Mock

import pytest

from releasefetch.download.async_client import AsyncGitHubClient
from releasefetch.download.models import Release, SelectionCriteria, SelectionMode
from releasefetch.download.selector import (
    ReleaseSelector,
    describe_latest_request,
    release_matches,
)
from releasefetch.exceptions import (
    ConfigError,
    FetchError,
    NotFoundError,
    SelectionError,
)

pytestmark = [pytest.mark.unit]

REPO = "acme/widget"


def _criteria(**kwargs) -> SelectionCriteria:
    kwargs.setdefault("repo_path", REPO)
    kwargs.setdefault("mode", SelectionMode.LATEST)
    return SelectionCriteria(**kwargs)


def _client() -> AsyncMock:
    return AsyncMock(spec=AsyncGitHubClient)


def _page(*tags, prerelease=False):
    return [Release(tag_name=tag, prerelease=prerelease) for tag in tags]


class TestReleaseMatches:
    """Predicate applied to listed releases."""

    def test_prerelease_flag_must_be_equal(self):
        criteria = _criteria(prerelease=True)

        assert release_matches(Release("v1.0", prerelease=True), criteria)
        assert not release_matches(Release("v1.0", prerelease=False), criteria)

    def test_non_prerelease_request_rejects_prereleases(self):
        criteria = _criteria(tag_prefix="v")

        assert not release_matches(Release("v1.0", prerelease=True), criteria)

    def test_tag_prefix(self):
        assert release_matches(Release("v2.1.0"), _criteria(tag_prefix="v2"))
        assert not release_matches(Release("v2.1.0"), _criteria(tag_prefix="2.1"))

    def test_blank_prefix_is_ignored(self):
        assert release_matches(Release("anything"), _criteria(tag_prefix="   "))

    def test_branch_segment(self):
        criteria = _criteria(filter_by_branch=True, branch="main")

        assert release_matches(Release("1.2.3.main.4"), criteria)
        assert not release_matches(Release("1.2.3.maintenance.4"), criteria)

    def test_branch_at_tag_edges_does_not_match(self):
        """The `.branch.` rule is literal, so a leading or trailing branch never matches."""
        criteria = _criteria(filter_by_branch=True, branch="main")

        assert not release_matches(Release("main.1.2.3"), criteria)
        assert not release_matches(Release("1.2.3.main"), criteria)

    def test_branch_ignored_when_filter_off(self):
        criteria = _criteria(filter_by_branch=False, branch="main", tag_prefix="1")

        assert release_matches(Release("1.2.3.dev.4"), criteria)

    def test_all_predicates_combined(self):
        criteria = _criteria(
            prerelease=True, filter_by_branch=True, branch="beta", tag_prefix="v3"
        )

        assert release_matches(Release("v3.0.beta.1", prerelease=True), criteria)
        assert not release_matches(Release("v2.0.beta.1", prerelease=True), criteria)
        assert not release_matches(Release("v3.0.beta.1", prerelease=False), criteria)
        assert not release_matches(Release("v3.0.alpha.1", prerelease=True), criteria)


class TestDescribeLatestRequest:
    def test_plain_release(self):
        assert describe_latest_request(_criteria()) == (
            "Fetching latest release in repo acme/widget"
        )

    def test_all_filters(self):
        msg = describe_latest_request(
            _criteria(prerelease=True, tag_prefix="v2", filter_by_branch=True, branch="main")
        )

        assert msg == (
            "Fetching latest prerelease in repo acme/widget with tag prefix v2 "
            "for tag branch main"
        )


@pytest.mark.asyncio
class TestDirectLookups:
    """Modes answered by exactly one API call."""

    async def test_latest_without_filters_uses_latest_endpoint(self):
        client = _client()
        client.get_latest_release.return_value = Release("v1.0")

        release = await ReleaseSelector(client, report=Mock()).resolve(_criteria())

        assert release.tag_name == "v1.0"
        client.get_latest_release.assert_awaited_once_with(REPO)
        client.list_releases.assert_not_called()

    async def test_by_tag(self):
        client = _client()
        client.get_release_by_tag.return_value = Release("v1.2")

        release = await ReleaseSelector(client, report=Mock()).resolve(
            _criteria(mode=SelectionMode.BY_TAG, tag="v1.2")
        )

        assert release.tag_name == "v1.2"
        client.get_release_by_tag.assert_awaited_once_with(REPO, "v1.2")
        client.get_latest_release.assert_not_called()
        client.list_releases.assert_not_called()

    async def test_by_id(self):
        client = _client()
        client.get_release_by_id.return_value = Release("v0.9")

        release = await ReleaseSelector(client, report=Mock()).resolve(
            _criteria(mode=SelectionMode.BY_ID, release_id="12345")
        )

        assert release.tag_name == "v0.9"
        client.get_release_by_id.assert_awaited_once_with(REPO, "12345")

    async def test_by_tag_empty_tag_is_config_error(self):
        client = _client()

        with pytest.raises(ConfigError, match="valid tag"):
            await ReleaseSelector(client, report=Mock()).resolve(
                _criteria(mode=SelectionMode.BY_TAG, tag="")
            )
        client.get_release_by_tag.assert_not_called()

    async def test_by_id_empty_id_is_config_error(self):
        client = _client()

        with pytest.raises(ConfigError, match="valid release ID"):
            await ReleaseSelector(client, report=Mock()).resolve(
                _criteria(mode=SelectionMode.BY_ID, release_id="")
            )
        client.get_release_by_id.assert_not_called()

    async def test_not_found_propagates(self):
        client = _client()
        client.get_release_by_tag.side_effect = NotFoundError(
            "[getReleaseByTag] Unexpected response: 404", status_code=404
        )

        with pytest.raises(NotFoundError) as exc_info:
            await ReleaseSelector(client, report=Mock()).resolve(
                _criteria(mode=SelectionMode.BY_TAG, tag="nope")
            )

        assert exc_info.value.status_code == 404

    async def test_reports_before_call_and_on_success(self):
        client = _client()
        client.get_release_by_tag.return_value = Release("v1.2")
        report = Mock()

        await ReleaseSelector(client, report=report).resolve(
            _criteria(mode=SelectionMode.BY_TAG, tag="v1.2")
        )

        messages = [call.args[0] for call in report.call_args_list]
        assert messages == [
            "Fetching release v1.2 from repo acme/widget",
            "Found release tag: v1.2",
        ]


@pytest.mark.asyncio
class TestFilteredLatest:
    """`latest` with filters walks the paginated listing."""

    async def test_paginates_until_short_page(self):
        client = _client()
        client.list_releases.side_effect = [
            (_page("a1", "a2"), False),
            (_page("b1", "b2"), False),
            (_page("v2.0"), True),
        ]
        selector = ReleaseSelector(client, report=Mock(), per_page=2)

        release = await selector.resolve(_criteria(tag_prefix="v2"))

        assert release.tag_name == "v2.0"
        assert [call.args for call in client.list_releases.await_args_list] == [
            (REPO, 1, 2),
            (REPO, 2, 2),
            (REPO, 3, 2),
        ]
        client.get_latest_release.assert_not_called()

    async def test_first_match_wins(self):
        client = _client()
        client.list_releases.return_value = (_page("v2.1", "v2.0", "v1.0"), True)

        release = await ReleaseSelector(client, report=Mock()).resolve(
            _criteria(tag_prefix="v2")
        )

        assert release.tag_name == "v2.1"

    async def test_stops_fetching_after_match(self):
        client = _client()
        client.list_releases.side_effect = [
            (_page("v2.1", "x"), False),
            (_page("v2.0", "y"), False),
        ]

        await ReleaseSelector(client, report=Mock(), per_page=2).resolve(
            _criteria(tag_prefix="v2")
        )

        assert client.list_releases.await_count == 1

    async def test_prerelease_selection(self):
        client = _client()
        client.list_releases.return_value = (
            [Release("v2.0"), Release("v2.1-rc1", prerelease=True)],
            True,
        )
        report = Mock()

        release = await ReleaseSelector(client, report=report).resolve(
            _criteria(prerelease=True)
        )

        assert release.tag_name == "v2.1-rc1"
        report.assert_any_call("Found latest prerelease version: v2.1-rc1")

    async def test_no_match_raises_selection_error(self):
        client = _client()
        client.list_releases.return_value = (_page("v1.0", "v1.1"), True)

        with pytest.raises(SelectionError, match="No releases found!"):
            await ReleaseSelector(client, report=Mock()).resolve(
                _criteria(tag_prefix="v9")
            )

    async def test_empty_listing_raises_selection_error(self):
        client = _client()
        client.list_releases.return_value = ([], True)

        with pytest.raises(SelectionError):
            await ReleaseSelector(client, report=Mock()).resolve(
                _criteria(filter_by_branch=True, branch="main")
            )

    async def test_page_error_keeps_partial_results(self):
        client = _client()
        client.list_releases.side_effect = [
            (_page("1.0.main.1", "1.0.dev.1"), False),
            FetchError("[listReleases] Unexpected response: 500", status_code=500),
        ]

        release = await ReleaseSelector(client, report=Mock(), per_page=2).resolve(
            _criteria(filter_by_branch=True, branch="dev")
        )

        assert release.tag_name == "1.0.dev.1"

    async def test_page_error_without_match_is_selection_error(self):
        client = _client()
        client.list_releases.side_effect = [
            (_page("a", "b"), False),
            FetchError("[listReleases] Unexpected response: 502", status_code=502),
        ]

        with pytest.raises(SelectionError):
            await ReleaseSelector(client, report=Mock(), per_page=2).resolve(
                _criteria(tag_prefix="v")
            )
        assert client.list_releases.await_count == 2

    async def test_default_report_is_logger(self, mocker):
        client = _client()
        client.get_latest_release.return_value = Release("v1.0")
        info = mocker.patch("releasefetch.download.selector.logger.info")

        await ReleaseSelector(client).resolve(_criteria())

        info.assert_any_call("Found latest release version: v1.0")
