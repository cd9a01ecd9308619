"""Tests for the command-line interface."""

from unittest.mock import patch

from typer.testing import CliRunner

from steampipe_publisher.__main__ import cli
from steampipe_publisher.session import SessionController
from steampipe_publisher.tools.locator import SDK_TOOL_RELATIVE
from steampipe_publisher.tools.manifest import parse_manifest
from tests.fixtures.runners import StubRunner

runner = CliRunner()


def test_manifest_command(tmp_path):
    """Test writing a manifest without uploading."""
    result = runner.invoke(
        cli,
        ["manifest", "480", str(tmp_path / "content"), "--desc", "Nightly", "-o", str(tmp_path)],
    )

    manifest = tmp_path / "app_480_build.vdf"
    assert result.exit_code == 0, result.output
    assert manifest.is_file()
    assert parse_manifest(manifest.read_text(encoding="utf-8"))["AppBuild"]["Desc"] == "Nightly"


def test_manifest_command_from_build_file(tmp_path):
    build_file = tmp_path / "build.yaml"
    build_file.write_text("app_id: '480'\ndepots:\n  - id: '481'\n", encoding="utf-8")

    result = runner.invoke(
        cli, ["manifest", "--build-file", str(build_file), "--preview", "-o", str(tmp_path)]
    )

    assert result.exit_code == 0, result.output
    assert '"Preview"\t"1"' in (tmp_path / "app_480_build.vdf").read_text(encoding="utf-8")


def test_manifest_command_requires_input(tmp_path):
    result = runner.invoke(cli, ["manifest", "-o", str(tmp_path)])

    assert result.exit_code == 2


def test_manifest_command_invalid_build_file(tmp_path):
    build_file = tmp_path / "build.yaml"
    build_file.write_text("app_id: '480'\n", encoding="utf-8")

    result = runner.invoke(cli, ["manifest", "--build-file", str(build_file), "-o", str(tmp_path)])

    assert result.exit_code == 1
    assert not (tmp_path / "app_480_build.vdf").exists()


def test_locate_command(tmp_path):
    tool = tmp_path / "steamcmd.sh"
    tool.write_text("#!/bin/sh\n")

    found = runner.invoke(cli, ["locate", "--tool-path", str(tool)])
    missing = runner.invoke(cli, ["locate", "--sdk-folder", str(tmp_path / "nowhere")])

    assert found.exit_code == 0
    assert str(tool) in found.output
    assert missing.exit_code == 1


def _stub_controller(sdk, outputs):
    stub = StubRunner(*outputs)

    def factory(sdk_folder, tool_path):
        return SessionController(runner=stub, sdk_folder=str(sdk), manifest_dir=sdk / "manifests")

    return stub, factory


def test_upload_command(tmp_path):
    """Test login followed by upload in one invocation."""
    sdk = tmp_path / "sdk"
    (sdk / SDK_TOOL_RELATIVE).parent.mkdir(parents=True)
    (sdk / SDK_TOOL_RELATIVE).write_text("#!/bin/sh\n")
    stub, factory = _stub_controller(sdk, ["Logged in OK", "Building depot 481"])

    with patch("steampipe_publisher.__main__._controller", side_effect=factory):
        result = runner.invoke(
            cli,
            ["upload", "alice", "480", str(tmp_path / "content"), "--password", "pw"],
        )

    assert result.exit_code == 0, result.output
    assert "Upload complete" in result.output
    assert [call[1][0:2] for call in stub.calls] == [["+login", "alice"], ["+login", "alice"]]


def test_upload_command_login_failure(tmp_path):
    sdk = tmp_path / "sdk"
    (sdk / SDK_TOOL_RELATIVE).parent.mkdir(parents=True)
    (sdk / SDK_TOOL_RELATIVE).write_text("#!/bin/sh\n")
    stub, factory = _stub_controller(sdk, ["Invalid Password"])

    with patch("steampipe_publisher.__main__._controller", side_effect=factory):
        result = runner.invoke(
            cli,
            ["upload", "alice", "480", str(tmp_path / "content"), "--password", "wrong"],
        )

    assert result.exit_code == 1
    assert "Invalid username or password" in result.output
    assert len(stub.calls) == 1


def test_run_command_passes_raw_args(tmp_path):
    sdk = tmp_path / "sdk"
    (sdk / SDK_TOOL_RELATIVE).parent.mkdir(parents=True)
    (sdk / SDK_TOOL_RELATIVE).write_text("#!/bin/sh\n")
    stub, factory = _stub_controller(sdk, ["Redirecting stderr to 'stderr.txt'"])

    with patch("steampipe_publisher.__main__._controller", side_effect=factory):
        result = runner.invoke(cli, ["run", "+login", "anonymous", "+quit"])

    assert result.exit_code == 0, result.output
    assert stub.calls[0][1] == ["+login", "anonymous", "+quit"]
    assert "exited with code 0" in result.output
