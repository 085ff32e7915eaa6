from pathlib import Path

import platformdirs
import pytest

_ASYNC_NETWORK_BLOCK_MSG = (
    "Async network access is blocked during tests. Mock aiohttp.ClientSession."
)


async def _async_block_network(*_args, **_kwargs):
    """
    Prevent async network calls during tests by raising a RuntimeError.

    Raises:
        RuntimeError: `_ASYNC_NETWORK_BLOCK_MSG` explaining that async network access is blocked.
    """
    raise RuntimeError(_ASYNC_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the test suite.

    Parameters:
        config: pytest.Config
            The pytest configuration object.
    """
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test (auto-detected)"
    )
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond tmp_path")
    config.addinivalue_line("markers", "cli: command-line interface tests")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point the per-user config directory at a temporary location and clear releasefetch environment variables.

    Keeps a developer's real ~/.config/releasefetch/releasefetch.yaml and GITHUB_OUTPUT from leaking into tests.
    """
    base = tmp_path_factory.mktemp("releasefetch")
    config_dir = base / "config"
    config_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    monkeypatch.delenv("RELEASEFETCH_API_URL", raising=False)
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )


@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Replace aiohttp's request entry points with a blocker for every test."""
    import aiohttp

    monkeypatch.setattr(aiohttp.ClientSession, "_request", _async_block_network)


@pytest.fixture
def user_config_file() -> Path:
    """Path of the per-user config file inside the isolated environment."""
    from releasefetch.settings import default_config_path

    return default_config_path()
