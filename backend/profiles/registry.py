from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from profiles.types import ProfileConfig
from scoring.colors import ColorScale, compile_color_scale
from scoring.metrics import resolve_metric_config

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "default"


def _repo_root() -> Path:
    # .../backend/profiles/registry.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def _profiles_root() -> Path:
    raw = (os.getenv("SIGNALMAP_PROFILES_DIR") or "").strip()
    return Path(raw) if raw else _repo_root() / "profiles"


@dataclass(frozen=True)
class ProfileEntry:
    config: ProfileConfig
    # Absolute path to profile.yaml on disk; None for the built-in default.
    path: Path | None


def _iter_profile_yaml_files() -> Iterable[Path]:
    root = _profiles_root()
    if not root.exists():
        return []
    # Convention: profiles/*/profile.yaml
    return root.glob("*/profile.yaml")


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid profile yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_registry() -> dict[str, ProfileEntry]:
    out: dict[str, ProfileEntry] = {}
    for p in sorted(_iter_profile_yaml_files(), key=lambda x: str(x)):
        cfg = ProfileConfig.model_validate(_load_yaml(p))
        if not cfg.enabled:
            continue
        if cfg.id in out:
            raise ValueError(f"Duplicate profile id '{cfg.id}': {p}")
        out[cfg.id] = ProfileEntry(config=cfg, path=p)
    logger.info("Loaded %d profile(s) from %s", len(out), _profiles_root())
    return out


def list_profiles() -> list[ProfileConfig]:
    return [e.config for e in get_registry().values()]


def get_profile(profile_id: str | None = None) -> ProfileEntry:
    reg = get_registry()
    pid = (profile_id or "").strip() or DEFAULT_PROFILE_ID
    if pid in reg:
        return reg[pid]
    if DEFAULT_PROFILE_ID in reg:
        # Unknown profile falls back to default.
        return reg[DEFAULT_PROFILE_ID]
    if reg:
        return next(iter(reg.values()))
    return ProfileEntry(config=ProfileConfig(id=DEFAULT_PROFILE_ID, title="Built-in"), path=None)


def color_scale_for(profile: ProfileConfig, metric: str) -> ColorScale:
    cfg = resolve_metric_config(metric)
    bands = profile.thresholds.get(cfg.threshold_key) or []
    return compile_color_scale(bands, default=profile.defaultColor)


def clear_registry_cache() -> None:
    """
    Clear in-memory profile registry cache.

    Useful during development and tests: YAML changes are otherwise not picked up
    until the process restarts.
    """
    get_registry.cache_clear()
