# path: tests/test_env_loader.py

from __future__ import annotations

import logging
from pathlib import Path
from textwrap import dedent

import pytest

from env.loader import PROFILE_ENV_VAR, load_walker_profile, resolve_log_level
from env.schema import MovementSettings, PathfindingSettings


def _write_yaml(root: Path, text: str) -> Path:
    """Write walker.yaml under `root`, dedented so top-level keys align."""
    path = root / "walker.yaml"
    path.write_text(dedent(text).lstrip("\n"), encoding="utf-8")
    return path


def test_repo_config_loads_default_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)

    profile = load_walker_profile()

    assert profile.name == "default"
    assert profile.pathfinding == PathfindingSettings()
    assert profile.movement == MovementSettings()
    assert profile.logging.level == "INFO"


def test_repo_config_strict_grid_profile() -> None:
    profile = load_walker_profile("strict_grid")

    assert profile.pathfinding.allow_diagonal is False
    assert profile.pathfinding.max_iterations == 20000
    assert profile.movement.speed == 0.25
    assert profile.movement.update_real_location is True
    # Unspecified keys keep their defaults.
    assert profile.movement.gravity == -0.08
    assert resolve_log_level(profile.logging) == logging.DEBUG


def test_partial_profile_uses_defaults(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path,
        """
        profile: slow
        profiles:
          slow:
            movement:
              speed: 0.1
        """,
    )

    profile = load_walker_profile(config_root=tmp_path)

    assert profile.name == "slow"
    assert profile.movement.speed == 0.1
    assert profile.movement.step_height == 0.55
    assert profile.pathfinding.max_iterations == 5000
    assert profile.logging.events_log is None


def test_env_var_selects_profile(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(
        tmp_path,
        """
        profile: a
        profiles:
          a: {}
          b:
            pathfinding:
              allow_diagonal: false
        """,
    )
    monkeypatch.setenv(PROFILE_ENV_VAR, "b")

    profile = load_walker_profile(config_root=tmp_path)

    assert profile.name == "b"
    assert profile.pathfinding.allow_diagonal is False

    # An explicit name wins over the environment.
    assert load_walker_profile("a", config_root=tmp_path).name == "a"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_walker_profile(config_root=tmp_path)


def test_unknown_profile_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(PROFILE_ENV_VAR, raising=False)
    _write_yaml(
        tmp_path,
        """
        profile: missing
        profiles:
          default: {}
        """,
    )

    with pytest.raises(KeyError):
        load_walker_profile(config_root=tmp_path)


@pytest.mark.parametrize(
    "section, body",
    [
        ("movement", "speed: 2.0"),
        ("movement", "gravity: 0.08"),
        ("movement", "max_yaw_step: 0"),
        ("pathfinding", "max_iterations: 0"),
        ("pathfinding", "diagonal: true"),
        ("logging", "level: LOUD"),
    ],
)
def test_invalid_values_raise(tmp_path: Path, section: str, body: str) -> None:
    _write_yaml(
        tmp_path,
        f"""
        profile: bad
        profiles:
          bad:
            {section}:
              {body}
        """,
    )

    with pytest.raises(ValueError):
        load_walker_profile("bad", config_root=tmp_path)
