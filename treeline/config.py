"""
Treeline CLI - Configuration
=======================================
Loads from ~/.config/treeline/cli.yaml with .env and env var overrides.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

CONFIG_PATH = Path.home() / ".config" / "treeline" / "cli.yaml"

DEFAULT_API_URL = "https://api.treeline.io"
DEFAULT_KEYCHAIN_PATH = Path.home() / ".treeline.secret.json"


@dataclass
class ApiConfig:
    """Remote Treeline API."""

    base_url: str = DEFAULT_API_URL
    timeout: float = 30.0


@dataclass
class KeychainConfig:
    """Where the login credentials are stored on this computer."""

    path: str = str(DEFAULT_KEYCHAIN_PATH)


@dataclass
class UpgradeConfig:
    """Upgrade defaults."""

    node_binary: str = "node"  # used to probe generated response files
    project_type: str = "app"


@dataclass
class CliConfig:
    """Root configuration object."""

    api: ApiConfig = field(default_factory=ApiConfig)
    keychain: KeychainConfig = field(default_factory=KeychainConfig)
    upgrade: UpgradeConfig = field(default_factory=UpgradeConfig)


def _apply_section(obj, raw: dict):
    """Apply dict values to a dataclass."""
    for k, v in raw.items():
        if hasattr(obj, k):
            setattr(obj, k, v)


def load_config(path: Optional[Path] = None) -> CliConfig:
    """Load CLI config from YAML + .env + env vars."""
    load_dotenv(Path.cwd() / ".env")
    cfg = CliConfig()

    config_path = path or CONFIG_PATH
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        for section in ("api", "keychain", "upgrade"):
            if isinstance(raw.get(section), dict):
                _apply_section(getattr(cfg, section), raw[section])

    # Env overrides
    if u := os.environ.get("TREELINE_API_URL"):
        cfg.api.base_url = u
    if k := os.environ.get("TREELINE_KEYCHAIN_PATH"):
        cfg.keychain.path = k
    if n := os.environ.get("TREELINE_NODE_BIN"):
        cfg.upgrade.node_binary = n

    return cfg

