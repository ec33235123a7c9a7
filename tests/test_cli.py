"""Tests for cli.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from moira_matrix import cli


def test_parser_requires_subcommand() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_parser_defaults() -> None:
    args = cli.build_parser().parse_args(["run"])

    assert args.command == "run"
    assert args.config == "moira-matrix.toml"
    assert args.debug is False


def test_run_with_missing_config_exits_2(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = cli.main(["--config", str(tmp_path / "missing.toml"), "run"])

    assert code == 2
    assert "Configuration error" in capsys.readouterr().err


def test_describe_with_missing_cert_exits_2(tmp_path: Path) -> None:
    config_path = tmp_path / "moira-matrix.toml"
    config_path.write_text('[moira]\nkey_file = "k.key"\ncert_file = "c.cert"\n')

    assert cli.main(["--config", str(config_path), "describe"]) == 2
