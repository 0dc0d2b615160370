import dataclasses
import os

import pytest

import enginesync.config as config_module
from enginesync.backends.base import SyncBackend
from enginesync.config import SyncConfig
from enginesync.exceptions import (
    BackendCommandFailed,
    ConfigurationError,
    NetworkError,
)
from enginesync.orchestrator import (
    ACTION_CHECKED,
    ACTION_DOWNLOADED,
    ACTION_SKIPPED,
    ACTION_UP_TO_DATE,
    ACTION_UPLOADED,
    SyncOrchestrator,
    default_engine_path,
    resolve_engine_path,
    version_marker_path,
)


@pytest.fixture
def config():
    return SyncConfig(
        default_client="aws",
        access_key="AKIA",
        secret_key="secret",
        region="eu-west-1",
        bucket_name="eng-bin",
        version_bucket_name="eng-version",
        version_file="v.txt",
        version_file_url="https://cdn.example.com/builds/",
        registry_key="MyEngine",
    )


@pytest.fixture
def engine_path(tmp_path):
    return str(tmp_path / "engine")


@pytest.fixture
def session(mocker):
    session = mocker.MagicMock()
    session.get.return_value.text = "7"
    return session


@pytest.fixture
def runner(mocker):
    return mocker.MagicMock(return_value=0)


@pytest.fixture
def hooks(mocker):
    """Mock host side effects and the CLI availability check."""
    return {
        "ensure": mocker.patch.object(SyncBackend, "ensure_available"),
        "register": mocker.patch(
            "enginesync.orchestrator.register_engine", return_value=True
        ),
        "prereq": mocker.patch(
            "enginesync.orchestrator.run_prerequisite_installer", return_value=True
        ),
    }


def _orchestrator(config, runner, session, reporter=None, force=False):
    return SyncOrchestrator(
        config, reporter=reporter, runner=runner, session=session, force=force
    )


@pytest.mark.unit
def test_default_engine_path_is_three_levels_up(monkeypatch, tmp_path):
    program_dir = tmp_path / "root" / "Engine" / "Binaries" / "Tools"
    monkeypatch.setattr(config_module, "PROGRAM_DIR", str(program_dir))
    assert default_engine_path() == str(tmp_path / "root")


@pytest.mark.unit
def test_resolve_engine_path_strips_trailing_separators(tmp_path):
    target = str(tmp_path / "engine")
    assert resolve_engine_path(target + "/") == target
    assert resolve_engine_path(target + "//") == target


@pytest.mark.unit
def test_resolve_engine_path_keeps_root():
    assert resolve_engine_path("/") == os.path.abspath("/")


@pytest.mark.unit
def test_resolve_engine_path_defaults_to_program_location(monkeypatch, tmp_path):
    program_dir = tmp_path / "a" / "b" / "c" / "d"
    monkeypatch.setattr(config_module, "PROGRAM_DIR", str(program_dir))
    assert resolve_engine_path(None) == str(tmp_path / "a")


@pytest.mark.unit
def test_version_marker_sits_beside_engine_path():
    assert version_marker_path(os.path.join("srv", "engine"), "v.txt") == os.path.join(
        "srv", "v.txt"
    )


@pytest.mark.unit
def test_upload_mirrors_then_publishes_marker(
    config, engine_path, runner, session, hooks
):
    result = _orchestrator(config, runner, session).run("upload", path=engine_path)

    assert result.action == ACTION_UPLOADED
    assert result.backend == "aws"
    assert runner.call_count == 2
    mirror, publish = [call.args[0] for call in runner.call_args_list]
    assert mirror.argv[:5] == ("aws", "s3", "sync", engine_path, "s3://eng-bin")
    assert "--size-only" in mirror.argv
    assert publish.argv[:3] == ("aws", "s3", "cp")
    assert publish.argv[4] == "s3://eng-version/v.txt"
    hooks["ensure"].assert_called_once()
    session.get.assert_not_called()
    hooks["register"].assert_not_called()


@pytest.mark.unit
def test_upload_runs_regardless_of_version_state(
    config, engine_path, runner, session, hooks, tmp_path
):
    (tmp_path / "v.txt").write_text("7", encoding="utf-8")
    result = _orchestrator(config, runner, session).run("UPLOAD", path=engine_path)
    assert result.action == ACTION_UPLOADED
    assert runner.call_count == 2


@pytest.mark.unit
def test_upload_with_rclone_backend(config, engine_path, runner, session, hooks):
    result = _orchestrator(config, runner, session).run(
        "upload", backend_name="rclone", path=engine_path
    )
    assert result.backend == "rclone"
    mirror, publish = [call.args[0] for call in runner.call_args_list]
    assert mirror.argv[:4] == ("rclone", "sync", engine_path, "enginesync:eng-bin")
    assert publish.argv[1] == "copyto"
    assert mirror.env["RCLONE_CONFIG_ENGINESYNC_TYPE"] == "s3"


@pytest.mark.unit
def test_upload_failure_stops_before_publish(
    config, engine_path, session, hooks, mocker
):
    runner = mocker.MagicMock(side_effect=BackendCommandFailed(["aws"], 1))
    with pytest.raises(BackendCommandFailed):
        _orchestrator(config, runner, session).run("upload", path=engine_path)
    assert runner.call_count == 1


@pytest.mark.unit
def test_upload_requires_bucket(engine_path, runner, session, hooks, config):
    broken = dataclasses.replace(config, bucket_name="")
    with pytest.raises(ConfigurationError):
        _orchestrator(broken, runner, session).run("upload", path=engine_path)
    runner.assert_not_called()


@pytest.mark.unit
def test_download_skipped_when_version_is_current(
    config, engine_path, runner, session, hooks, tmp_path, log_capture
):
    marker = tmp_path / "v.txt"
    marker.write_text("7", encoding="utf-8")

    result = _orchestrator(config, runner, session).run("download", path=engine_path)

    assert result.action == ACTION_UP_TO_DATE
    assert (result.remote_version, result.local_version) == (7, 7)
    runner.assert_not_called()
    hooks["ensure"].assert_not_called()
    hooks["register"].assert_not_called()
    hooks["prereq"].assert_not_called()
    assert marker.read_text(encoding="utf-8") == "7"
    assert "Version is already the latest (7)" in log_capture.text


@pytest.mark.unit
def test_download_skipped_when_local_is_newer(
    config, engine_path, runner, session, hooks, tmp_path
):
    (tmp_path / "v.txt").write_text("9", encoding="utf-8")
    result = _orchestrator(config, runner, session).run("download", path=engine_path)
    assert result.action == ACTION_UP_TO_DATE
    runner.assert_not_called()


@pytest.mark.unit
def test_first_download_mirrors_records_registers_and_installs(
    config, engine_path, session, mocker, tmp_path
):
    manager = mocker.MagicMock()
    manager.runner.return_value = 0
    mocker.patch.object(SyncBackend, "ensure_available", manager.ensure)
    mocker.patch("enginesync.orchestrator.register_engine", manager.register)
    mocker.patch(
        "enginesync.orchestrator.run_prerequisite_installer", manager.prereq
    )
    record = mocker.patch(
        "enginesync.orchestrator.VersionGate.record",
        autospec=True,
        side_effect=manager.record,
    )
    marker = tmp_path / "v.txt"

    result = _orchestrator(config, manager.runner, session).run(
        "download", path=engine_path
    )

    assert result.action == ACTION_DOWNLOADED
    assert (result.remote_version, result.local_version) == (7, 0)
    assert [name for name, _args, _kwargs in manager.mock_calls] == [
        "ensure",
        "runner",
        "record",
        "register",
        "prereq",
    ]
    spec = manager.runner.call_args.args[0]
    assert spec.argv == ("aws", "s3", "sync", "s3://eng-bin", engine_path)
    manager.register.assert_called_once_with("MyEngine", engine_path)
    manager.prereq.assert_called_once_with(engine_path)
    assert record.call_args.args[1] == 7
    session.get.assert_called_once()
    assert session.get.call_args.args[0] == "https://cdn.example.com/builds/v.txt"
    assert not marker.exists()


@pytest.mark.unit
def test_download_writes_marker(config, engine_path, runner, session, hooks, tmp_path):
    _orchestrator(config, runner, session).run("download", path=engine_path)
    assert (tmp_path / "v.txt").read_text(encoding="utf-8") == "7"
    assert runner.call_count == 1


@pytest.mark.unit
def test_download_failure_leaves_marker_untouched(
    config, engine_path, session, hooks, mocker, tmp_path
):
    marker = tmp_path / "v.txt"
    marker.write_text("6", encoding="utf-8")
    runner = mocker.MagicMock(side_effect=BackendCommandFailed(["aws"], 1))

    with pytest.raises(BackendCommandFailed):
        _orchestrator(config, runner, session).run("download", path=engine_path)

    assert marker.read_text(encoding="utf-8") == "6"
    hooks["register"].assert_not_called()
    hooks["prereq"].assert_not_called()


@pytest.mark.unit
def test_download_force_ignores_version(
    config, engine_path, runner, session, hooks, tmp_path
):
    (tmp_path / "v.txt").write_text("7", encoding="utf-8")
    result = _orchestrator(config, runner, session, force=True).run(
        "download", path=engine_path
    )
    assert result.action == ACTION_DOWNLOADED
    assert runner.call_count == 1


@pytest.mark.unit
def test_download_network_failure_propagates(config, engine_path, runner, hooks, mocker):
    import requests

    session = mocker.MagicMock()
    session.get.side_effect = requests.ConnectionError("offline")
    with pytest.raises(NetworkError):
        _orchestrator(config, runner, session).run("download", path=engine_path)
    runner.assert_not_called()


@pytest.mark.unit
def test_download_requires_version_url(config, engine_path, runner, session, hooks):
    broken = dataclasses.replace(config, version_file_url="")
    with pytest.raises(ConfigurationError, match="versionFileUrl"):
        _orchestrator(broken, runner, session).run("download", path=engine_path)


@pytest.mark.unit
def test_unknown_backend_is_logged_and_path_still_created(
    config, engine_path, runner, session, hooks, log_capture
):
    result = _orchestrator(config, runner, session).run(
        "download", backend_name="gsutil", path=engine_path
    )

    assert os.path.isdir(engine_path)
    assert result.action == ACTION_SKIPPED
    assert result.backend is None
    runner.assert_not_called()
    session.get.assert_not_called()
    assert "Unrecognized backend: 'gsutil'" in log_capture.text


@pytest.mark.unit
def test_backend_falls_back_to_configured_client(
    config, engine_path, runner, session, hooks
):
    rclone_config = dataclasses.replace(config, default_client="rclone")
    result = _orchestrator(rclone_config, runner, session).run(
        "upload", path=engine_path
    )
    assert result.backend == "rclone"


@pytest.mark.unit
def test_unknown_command_is_skipped(
    config, engine_path, runner, session, hooks, log_capture
):
    result = _orchestrator(config, runner, session).run("sync", path=engine_path)
    assert result.action == ACTION_SKIPPED
    runner.assert_not_called()
    assert "Unrecognized command: 'sync'" in log_capture.text


@pytest.mark.unit
def test_check_reports_versions_without_transfer(
    config, engine_path, runner, session, hooks, log_capture
):
    result = _orchestrator(config, runner, session).run("check", path=engine_path)
    assert result.action == ACTION_CHECKED
    assert (result.remote_version, result.local_version) == (7, 0)
    runner.assert_not_called()
    assert "Version 7 is available (installed: 0)" in log_capture.text


@pytest.mark.unit
def test_transfer_lines_reach_reporter(config, engine_path, session, hooks, mocker):
    reporter = mocker.MagicMock()

    def fake_runner(spec, sink):
        sink(f"ran {spec.argv[0]}")
        return 0

    _orchestrator(config, fake_runner, session, reporter=reporter).run(
        "upload", path=engine_path
    )
    assert reporter.line.call_count == 2
    reporter.line.assert_any_call("ran aws")


@pytest.mark.unit
def test_unknown_backend_upload_is_a_logged_no_op(
    config, runner, session, hooks, tmp_path
):
    engine_path = str(tmp_path / "fresh" / "engine")
    result = _orchestrator(config, runner, session).run(
        "upload", backend_name="azcopy", path=engine_path
    )
    assert result.action == ACTION_SKIPPED
    assert os.path.isdir(engine_path)
    runner.assert_not_called()
    hooks["ensure"].assert_not_called()


@pytest.mark.integration
def test_scenario_fresh_install_downloads_version_seven(
    runner, hooks, tmp_path, mocker
):
    config = SyncConfig.from_mapping(
        {
            "defaultClient": "aws",
            "bucketName": "eng-bin",
            "versionFile": "v.txt",
            "versionFileUrl": "https://x/",
        }
    )
    get = mocker.patch(
        "enginesync.version_gate.requests.get",
        return_value=mocker.MagicMock(text="7"),
    )
    engine_path = str(tmp_path / "engine")

    result = SyncOrchestrator(config, runner=runner).run(
        "download", path=engine_path
    )

    assert result.action == ACTION_DOWNLOADED
    assert get.call_args.args[0] == "https://x/v.txt"
    assert runner.call_args.args[0].argv == (
        "aws",
        "s3",
        "sync",
        "s3://eng-bin",
        engine_path,
    )
    assert (tmp_path / "v.txt").read_text(encoding="utf-8") == "7"
