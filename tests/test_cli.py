"""CLI tests using click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from zonectl.__version__ import __version__
from zonectl.cli import cli


class FakeZfs:
    calls = []

    def __init__(self, runner, privileges=None):
        self.runner = runner

    def snapshot(self, op, ds, snap="", args=()):
        FakeZfs.calls.append((op, ds, snap))
        if op == "list":
            return [f"{ds}@one", f"{ds}@two"]
        return None


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_zfs(monkeypatch):
    FakeZfs.calls = []
    monkeypatch.setattr("zonectl.cli.ZfsManager", FakeZfs)
    return FakeZfs


def write_config(tmp_path, data, name="zonectl.conf"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestTopLevel:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"], obj={})
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_schema_is_json(self, runner):
        result = runner.invoke(cli, ["config", "--schema"], obj={})
        assert result.exit_code == 0
        schema = json.loads(result.output)
        assert "CONFIG" in schema["config_file"]["sections"]


class TestConfigCommands:
    def test_validate_missing_file_uses_defaults(self, runner, tmp_path):
        path = tmp_path / "absent.conf"
        result = runner.invoke(cli, ["-c", str(path), "config", "validate"], obj={})
        assert result.exit_code == 0
        assert "using defaults" in result.output

    def test_validate_valid_file(self, runner, tmp_path):
        path = write_config(tmp_path, {"CONFIG": {"format": "yaml"}, "SNAPSHOT": {"prefix": "zc-"}})
        result = runner.invoke(cli, ["-c", str(path), "config", "validate"], obj={})
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_validate_reports_every_error(self, runner, tmp_path):
        path = write_config(tmp_path, {"CONFIG": {"format": "xml"}, "BOGUS": {}})
        result = runner.invoke(cli, ["-c", str(path), "config", "validate"], obj={})
        assert result.exit_code == 1
        assert "CONFIG.format" in result.output
        assert "BOGUS: unknown member" in result.output
        assert "2 errors" in result.output

    def test_validate_undecodable_file_is_reported(self, runner, tmp_path):
        path = tmp_path / "zonectl.conf"
        path.write_bytes(b'{"SNAPSHOT": {"prefix": "caf\xe9"}}')
        result = runner.invoke(cli, ["-c", str(path), "config", "validate"], obj={})
        assert result.exit_code == 1
        assert not isinstance(result.exception, UnicodeDecodeError)
        assert "ERROR:" in result.output

    def test_view_prints_raw_file(self, runner, tmp_path):
        path = write_config(tmp_path, {"SNAPSHOT": {"prefix": "zc-"}})
        result = runner.invoke(cli, ["-c", str(path), "config", "view"], obj={})
        assert result.exit_code == 0
        assert result.output == path.read_text(encoding="utf-8")

    def test_view_missing_file_fails(self, runner, tmp_path):
        result = runner.invoke(cli, ["-c", str(tmp_path / "nope.conf"), "config", "view"], obj={})
        assert result.exit_code == 1


class TestSnapshotCommands:
    def test_list(self, runner, tmp_path, fake_zfs):
        result = runner.invoke(
            cli, ["-c", str(tmp_path / "none.conf"), "snapshot", "list", "rpool/web"], obj={}
        )
        assert result.exit_code == 0
        assert result.output.splitlines() == ["rpool/web@one", "rpool/web@two"]

    def test_create_applies_prefix(self, runner, tmp_path, fake_zfs):
        path = write_config(tmp_path, {"SNAPSHOT": {"prefix": "zc-"}})
        result = runner.invoke(
            cli, ["-c", str(path), "snapshot", "create", "rpool/web", "before"], obj={}
        )
        assert result.exit_code == 0
        assert fake_zfs.calls == [("snapshot", "rpool/web", "zc-before")]
        assert "rpool/web@zc-before" in result.output

    def test_destroy_does_not_prefix(self, runner, tmp_path, fake_zfs):
        path = write_config(tmp_path, {"SNAPSHOT": {"prefix": "zc-"}})
        result = runner.invoke(
            cli, ["-c", str(path), "snapshot", "destroy", "rpool/web", "old"], obj={}
        )
        assert result.exit_code == 0
        assert fake_zfs.calls == [("destroy", "rpool/web", "old")]

    def test_invalid_global_config_is_fatal(self, runner, tmp_path, fake_zfs):
        path = write_config(tmp_path, {"CONFIG": {"format": "xml"}})
        result = runner.invoke(
            cli, ["-c", str(path), "snapshot", "list", "rpool/web"], obj={}
        )
        assert result.exit_code == 1
        assert fake_zfs.calls == []
