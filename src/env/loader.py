from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .schema import (
    LoggingSettings,
    MovementSettings,
    PathfindingSettings,
    WalkerProfile,
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"

# Overrides the active profile named in walker.yaml.
PROFILE_ENV_VAR = "NPC_WALKER_PROFILE"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _load_yaml(name: str, config_root: Path) -> Dict[str, Any]:
    """Load a YAML config file from the config directory."""
    path = config_root / name
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(
    cfg: Dict[str, Any],
    requested: Optional[str],
) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = requested or os.getenv(PROFILE_ENV_VAR) or cfg.get("profile")
    if not profile_name:
        raise ValueError("walker.yaml must define a 'profile' key.")
    profiles = cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ValueError("walker.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in walker.yaml profiles.")
    return profile_name, profiles[profile_name] or {}


def _section(profile: Dict[str, Any], key: str) -> Dict[str, Any]:
    raw = profile.get(key) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Profile section '{key}' must be a mapping, got {type(raw)}")
    return raw


def _build(cls: type, raw: Dict[str, Any], section: str) -> Any:
    known = set(cls.__dataclass_fields__)
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {', '.join(unknown)}")
    return cls(**raw)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_walker_profile(
    name: Optional[str] = None,
    config_root: Optional[Path] = None,
) -> WalkerProfile:
    """
    Main entry point: returns a fully resolved WalkerProfile.

    Profile selection order: explicit `name`, the NPC_WALKER_PROFILE
    environment variable, then the `profile` key of walker.yaml.
    """
    root = Path(config_root) if config_root is not None else CONFIG_ROOT
    cfg = _load_yaml("walker.yaml", root)

    active_name, active = _select_profile(cfg, name)

    pathfinding = _build(PathfindingSettings, _section(active, "pathfinding"), "pathfinding")
    movement = _build(MovementSettings, _section(active, "movement"), "movement")
    log_settings = _build(LoggingSettings, _section(active, "logging"), "logging")

    _validate_profile(pathfinding, movement, log_settings)

    return WalkerProfile(
        name=active_name,
        pathfinding=pathfinding,
        movement=movement,
        logging=log_settings,
    )


def resolve_log_level(settings: LoggingSettings) -> int:
    """Map the configured level name to a logging module constant."""
    return getattr(logging, settings.level.upper())


def _validate_profile(
    pathfinding: PathfindingSettings,
    movement: MovementSettings,
    log_settings: LoggingSettings,
) -> None:
    """Minimal sanity checks for a walker profile."""
    if pathfinding.max_iterations <= 0:
        raise ValueError(f"max_iterations must be positive, got {pathfinding.max_iterations}")

    if not 0.1 <= movement.speed <= 1.0:
        raise ValueError(f"speed must be within [0.1, 1.0], got {movement.speed}")
    if movement.step_height < 0.0:
        raise ValueError(f"step_height must be >= 0, got {movement.step_height}")
    if movement.gravity >= 0.0:
        raise ValueError(f"gravity must be negative, got {movement.gravity}")
    if movement.terminal_velocity >= 0.0:
        raise ValueError(f"terminal_velocity must be negative, got {movement.terminal_velocity}")
    if movement.jump_velocity <= 0.0:
        raise ValueError(f"jump_velocity must be positive, got {movement.jump_velocity}")
    if not 0.0 < movement.max_yaw_step <= 180.0:
        raise ValueError(f"max_yaw_step must be within (0, 180], got {movement.max_yaw_step}")
    if movement.pitch_damping <= 0.0:
        raise ValueError(f"pitch_damping must be positive, got {movement.pitch_damping}")
    if movement.max_terminal_resamples < 0:
        raise ValueError("max_terminal_resamples must be >= 0")

    if log_settings.level.upper() not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level: {log_settings.level}")
