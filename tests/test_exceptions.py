import pytest

from releasefetch.exceptions import (
    AssetError,
    ConfigError,
    FetchError,
    NotFoundError,
    ReleaseFetchError,
    SelectionError,
    StorageError,
)

pytestmark = [pytest.mark.unit]


@pytest.mark.parametrize(
    "error_class",
    [ConfigError, NotFoundError, SelectionError, AssetError, FetchError, StorageError],
)
def test_all_errors_share_the_base_class(error_class):
    with pytest.raises(ReleaseFetchError):
        raise error_class("boom")


def test_str_without_details():
    assert str(SelectionError("No releases found!")) == "No releases found!"


def test_str_with_details():
    error = ConfigError("Config error: bad repository", details="got 'x'")

    assert str(error) == "Config error: bad repository - got 'x'"
    assert error.message == "Config error: bad repository"
    assert error.details == "got 'x'"


def test_not_found_error_attributes():
    error = NotFoundError(
        "[getReleaseByTag] Unexpected response: 404",
        status_code=404,
        endpoint="https://api.github.com/repos/acme/widget/releases/tags/v9",
    )

    assert error.status_code == 404
    assert error.endpoint.endswith("/tags/v9")


def test_fetch_error_attributes():
    error = FetchError("Unexpected response: 403", status_code=403, url="https://x/y")

    assert error.status_code == 403
    assert error.url == "https://x/y"
    assert str(error) == "Unexpected response: 403"


def test_storage_error_is_not_builtin_oserror():
    error = StorageError("Failed to write", path="/tmp/out")

    assert error.path == "/tmp/out"
    assert not isinstance(error, OSError)
