from pathlib import Path

import platformdirs
import pytest
import requests

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the suite.
    """
    config.addinivalue_line("markers", "unit: fast isolated unit test")
    config.addinivalue_line(
        "markers", "integration: exercises several modules together"
    )


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and enginesync's config lookup at an isolated temp directory.

    Also clears credential variables a developer machine may export, so backend
    environment assertions only see values the test configured.
    """
    base = tmp_path_factory.mktemp("enginesync")
    config_dir = base / "config"
    program_dir = base / "program"
    for path in (config_dir, program_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    for name in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_DEFAULT_REGION",
        "AWS_ENDPOINT_URL",
    ):
        monkeypatch.delenv(name, raising=False)

    import enginesync.config as config_module

    monkeypatch.setattr(config_module, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(config_module, "PROGRAM_DIR", str(program_dir))


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


@pytest.fixture
def log_capture(caplog):
    """
    Capture enginesync log records with caplog.

    The enginesync logger does not propagate by default, so propagation is
    enabled for the duration of the test.
    """
    from enginesync.log_utils import logger

    old_propagate = logger.propagate
    logger.propagate = True
    caplog.set_level("DEBUG", logger="enginesync")
    try:
        yield caplog
    finally:
        logger.propagate = old_propagate


@pytest.fixture
def write_config(tmp_path):
    """
    Return a helper writing a YAML config file and returning its path.
    """
    import yaml

    def _write(data, name="enginesync.yaml") -> str:
        path = Path(tmp_path) / name
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return str(path)

    return _write
