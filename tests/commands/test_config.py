"""Tests for the config commands."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from twig.cli.cli import cli
from twig.core.context import TwigContext
from twig.core.global_config import GlobalConfig


@pytest.fixture
def twig_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("TWIG_HOME", str(tmp_path))
    return tmp_path


def test_config_list(twig_home: Path) -> None:
    ctx = TwigContext.for_test(global_config=GlobalConfig(max_depth=4))

    result = CliRunner().invoke(cli, ["config", "list"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert str(twig_home / "config.toml") in result.output
    assert "autostash=false\nattach_orphans=false\nmax_depth=4\n" in result.output


def test_config_get(twig_home: Path) -> None:
    ctx = TwigContext.for_test(global_config=GlobalConfig(autostash=True))

    result = CliRunner().invoke(cli, ["config", "get", "autostash"], obj=ctx)

    assert result.exit_code == 0
    assert result.output == "true\n"


def test_config_get_unknown_key(twig_home: Path) -> None:
    result = CliRunner().invoke(cli, ["config", "get", "color"], obj=TwigContext.for_test())

    assert result.exit_code == 1
    assert "Invalid key: color" in result.output


def test_config_set_writes_file(twig_home: Path) -> None:
    result = CliRunner().invoke(
        cli, ["config", "set", "max_depth", "3"], obj=TwigContext.for_test()
    )

    assert result.exit_code == 0, result.output
    assert "Set max_depth=3" in result.output
    assert "max_depth = 3" in (twig_home / "config.toml").read_text(encoding="utf-8")


def test_config_set_rejects_bad_value(twig_home: Path) -> None:
    result = CliRunner().invoke(
        cli, ["config", "set", "autostash", "sometimes"], obj=TwigContext.for_test()
    )

    assert result.exit_code == 1
    assert "Invalid value for autostash" in result.output
    assert not (twig_home / "config.toml").exists()
