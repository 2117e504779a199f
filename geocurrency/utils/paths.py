"""Utilities for resolving project-relative paths robustly."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


SENTINELS = ("pyproject.toml", ".git", "config.yaml")


def find_project_root(start: Optional[Path] = None) -> Path:
    """Locate the project root by walking up from a start path.

    Recognition: presence of one of SENTINELS.
    Honors GEOCURRENCY_ROOT if set.
    """
    env_root = os.getenv("GEOCURRENCY_ROOT")
    if env_root:
        p = Path(env_root).expanduser().resolve()
        if p.exists():
            return p

    candidates = []
    if start is not None:
        candidates.append(Path(start).resolve())
    candidates.append(Path.cwd())
    candidates.append(Path(__file__).resolve())

    seen = set()
    for c in candidates:
        for p in [c] + list(c.parents):
            if p in seen:
                continue
            seen.add(p)
            for s in SENTINELS:
                if (p / s).exists():
                    return p
    return Path.cwd()


def resolve_config_path(config_path: str = "config.yaml") -> Path:
    """Resolve the YAML config path.

    GEOCURRENCY_CONFIG wins; otherwise a relative path that does not exist
    in the working directory is looked up at the project root.
    """
    env_cfg = os.getenv("GEOCURRENCY_CONFIG")
    cfg_path = Path(env_cfg).expanduser() if env_cfg else Path(config_path).expanduser()
    if not cfg_path.exists() and not cfg_path.is_absolute():
        candidate = find_project_root() / cfg_path.name
        if candidate.exists():
            return candidate
    return cfg_path


def resolve_project_path(path_str: str, root: Optional[Path] = None) -> Path:
    """Resolve a possibly relative path with respect to project root."""
    p = Path(path_str).expanduser()
    if p.is_absolute():
        return p
    base = root or find_project_root()
    return (base / p).resolve()
