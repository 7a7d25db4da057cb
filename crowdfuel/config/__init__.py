# crowdfuel/config/__init__.py
# Importing this package reads the environment; load env files first (crowdfuel.envfiles).
from __future__ import annotations

from .config import BaseConfig, DevelopmentConfig, ProductionConfig, TestingConfig, env_name

__all__ = [
    "BaseConfig",
    "DevelopmentConfig",
    "ProductionConfig",
    "TestingConfig",
    "env_name",
]
