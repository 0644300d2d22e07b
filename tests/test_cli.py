"""Tests for CLI commands."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
import yaml

from kupak.cli import _read_values, build_parser, main
from kupak.errors import ParseError


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        "KUPAK_REPO",
        "KUPAK_NAMESPACE",
        "KUPAK_KUBECTL",
        "KUPAK_CONTEXT",
        "KUPAK_STRICT_TEMPLATE_LABELS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("kupak.config.DEFAULT_CONFIG_PATH", tmp_path / "no-config.yaml")


class TestParser:
    """Tests for argument parsing."""

    def test_aliases(self) -> None:
        parser = build_parser()

        args = parser.parse_args(["i", "redis", "values.yaml", "--dry-run"])

        assert args.pak == "redis"
        assert args.values == "values.yaml"
        assert args.dry_run is True

    def test_global_flags(self) -> None:
        args = build_parser().parse_args(["-r", "index.yaml", "--namespace", "ns", "l"])

        assert args.repo == "index.yaml"
        assert args.namespace == "ns"


class TestReadValues:
    """Tests for _read_values."""

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "values.yaml"
        path.write_text("replicas: 3\n")

        assert _read_values(str(path)) == {"replicas": 3}

    def test_from_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO("debug: yes\n"))

        assert _read_values(None) == {"debug": True}

    def test_empty_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO(""))

        assert _read_values(None) == {}

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "values.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ParseError):
            _read_values(str(path))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError):
            _read_values(str(tmp_path / "missing.yaml"))


class TestCommands:
    """Tests for command handlers via main()."""

    def test_spec(self, pak_path: Path, capsys) -> None:
        main(["spec", str(pak_path)])

        captured = capsys.readouterr()
        assert "demo" in captured.out
        assert "replicas" in captured.out

    def test_spec_by_name(self, repo_index: Path, capsys) -> None:
        main(["--repo", str(repo_index), "s", "demo"])

        assert "replicas" in capsys.readouterr().out

    def test_paks(self, repo_index: Path, capsys) -> None:
        main(["--repo", str(repo_index), "paks"])

        captured = capsys.readouterr()
        assert "demo" in captured.out
        assert "Total: 1 paks" in captured.out

    def test_install_dry_run(self, pak_path: Path, tmp_path: Path, capsys) -> None:
        """Should print labeled manifests without contacting the cluster."""
        values = tmp_path / "values.yaml"
        values.write_text("replicas: 3\n")

        main(["--namespace", "staging", "install", str(pak_path), str(values), "--dry-run"])

        documents = list(yaml.safe_load_all(capsys.readouterr().out))
        assert [d["kind"] for d in documents] == ["ReplicationController", "Service"]
        assert documents[0]["spec"]["replicas"] == 3
        assert "pak-group" in documents[1]["metadata"]["labels"]

    def test_error_exits(self, tmp_path: Path, capsys) -> None:
        """Should print the error and exit with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            main(["spec", str(tmp_path / "missing.yaml")])

        assert excinfo.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_missing_config_exits(self, pak_path: Path, tmp_path: Path, capsys) -> None:
        """Should report an unreadable config file instead of crashing."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--config", str(tmp_path / "nope.yaml"), "spec", str(pak_path)])

        assert excinfo.value.code == 1
        assert "Error" in capsys.readouterr().err

    def test_invalid_value_exits(self, pak_path: Path, tmp_path: Path) -> None:
        values = tmp_path / "values.yaml"
        values.write_text("replicas: many\n")

        with pytest.raises(SystemExit):
            main(["install", str(pak_path), str(values), "--dry-run"])

    def test_no_command_prints_help(self, capsys) -> None:
        main([])

        assert "usage" in capsys.readouterr().out.lower()
