# crowdfuel/envfiles.py
# dotenv loading for local runs. Production reads the real process env only.

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values


def normalize_env_name(v: Optional[str]) -> str:
    r = (v or "").strip().lower()
    if r in {"dev", "development", "local"}:
        return "development"
    if r in {"test", "testing"}:
        return "testing"
    if r in {"prod", "production"}:
        return "production"
    return r or "development"


def current_env_name() -> str:
    return normalize_env_name(
        os.getenv("APP_ENV") or os.getenv("ENV") or os.getenv("FLASK_ENV") or os.getenv("NODE_ENV")
    )


def should_load_dotenv(env: Optional[str] = None) -> bool:
    return normalize_env_name(env or current_env_name()) != "production"


def dotenv_candidates(env: str, base_dir: Optional[Path] = None) -> list[Path]:
    """
    Precedence order (low -> high), later files override earlier dotenv values:
      1) .env
      2) .env.<env>
      3) .env.local   (only for dev/test)
    """
    env = normalize_env_name(env)
    base = base_dir or Path(".")

    files: list[Path] = [base / ".env", base / f".env.{env}"]
    if env in {"development", "testing"}:
        files.append(base / ".env.local")

    out: list[Path] = []
    seen: set[str] = set()
    for p in files:
        k = str(p)
        if k not in seen:
            seen.add(k)
            out.append(p)
    return out


def load_env_stack(
    *, env: Optional[str] = None, override: bool = False, base_dir: Optional[Path] = None
) -> list[Path]:
    """
    Load dotenv files with correct precedence and return the files that were loaded.

    - dotenv files can override earlier dotenv files
    - dotenv files never override real OS env vars (unless override=True)
    - nothing is loaded in production
    """
    env_eff = normalize_env_name(env or current_env_name())
    if not should_load_dotenv(env_eff):
        return []

    # Snapshot BEFORE dotenv so OS env always wins
    original = dict(os.environ) if not override else {}
    loaded: list[Path] = []

    explicit = (os.getenv("DOTENV_PATH") or "").strip()
    candidates = [Path(explicit)] if explicit else dotenv_candidates(env_eff, base_dir)

    for p in candidates:
        if not p.is_file():
            continue
        for k, v in (dotenv_values(p) or {}).items():
            if v is None:
                continue
            if (not override) and (k in original):
                continue
            os.environ[k] = str(v)
        loaded.append(p)

    return loaded
