"""Runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from .adapters import InMemoryGateway, LocalFileGateway, RestGateway
from .board.interface import SyncGateway

DEFAULT_CONFIG_PATH = Path("~/.config/taskly/config.yaml")
BACKENDS = ("memory", "local", "rest")


@dataclass
class TasklyConfig:
    """Configuration for the board store and its gateway.

    Values come from a YAML file, then ``TASKLY_<FIELD>`` environment
    variables override them.
    """

    backend: str = "local"
    data_file: str = "~/.local/share/taskly/taskly.json"
    api_url: str = ""
    api_token: str = ""
    owner_id: str = "local"
    request_timeout: float = 10.0
    log_level: str = "WARNING"
    log_file: str | None = None

    @classmethod
    def load(cls, path: Path | str | None = None) -> "TasklyConfig":
        """Load config from YAML, falling back to defaults, then apply env overrides."""
        cfg_path = Path(path).expanduser() if path else DEFAULT_CONFIG_PATH.expanduser()
        data: dict = {}
        if cfg_path.exists():
            with open(cfg_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Config file {cfg_path} must contain a mapping")
        known = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in data.items() if k in known})
        cfg.apply_env(os.environ)
        return cfg

    def apply_env(self, environ) -> None:
        for f in fields(self):
            value = environ.get(f"TASKLY_{f.name.upper()}")
            if value is None:
                continue
            if f.name == "request_timeout":
                setattr(self, f.name, float(value))
            else:
                setattr(self, f.name, value)

    @property
    def data_path(self) -> Path:
        return Path(self.data_file).expanduser()


def create_gateway(config: TasklyConfig) -> SyncGateway:
    """Build the gateway named by ``config.backend``."""
    if config.backend == "memory":
        return InMemoryGateway()
    if config.backend == "local":
        return LocalFileGateway(config.data_path, owner_id=config.owner_id)
    if config.backend == "rest":
        if not config.api_url:
            raise ValueError("api_url is required for the rest backend")
        if not config.api_token:
            raise ValueError("api_token is required for the rest backend")
        return RestGateway(config.api_url, config.api_token, timeout=config.request_timeout)
    raise ValueError(f"Unknown backend {config.backend!r}; expected one of {', '.join(BACKENDS)}")
