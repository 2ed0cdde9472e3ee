"""
Configuration management for the outliner.

Settings live in ~/.outliner/config.json. A missing file yields defaults.
Environment variables, optionally from a .env file, override the file.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

from .providers import ProviderConfig, ProviderType

DEFAULT_CONFIG_PATH = Path.home() / ".outliner" / "config.json"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class PullConfig:
    """
    Buffering limits for descendant pulls.

    - max_depth: breadth-first levels loaded before thoughts are marked pending
    - max_thoughts: thoughts enqueued in one session before thoughts are marked pending
    - prevent_loading_ancestors: do not load missing ancestors. Must be set when
      deleting pending descendants so that deleted ancestors are not resurrected.
    """

    max_depth: int = 100
    max_thoughts: int = 100
    prevent_loading_ancestors: bool = False


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class OutlinerConfig:
    """Complete outliner configuration."""

    pull: PullConfig = field(default_factory=PullConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "OutlinerConfig":
        """Load configuration from file."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        provider_data = dict(data.get("provider", {}))
        if "provider_type" in provider_data:
            provider_data["provider_type"] = ProviderType(provider_data["provider_type"])

        return cls(
            pull=PullConfig(**data.get("pull", {})),
            provider=ProviderConfig(**provider_data),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    @classmethod
    def from_env(cls, path: Path | None = None, env_file: Path | None = None) -> "OutlinerConfig":
        """
        Load configuration from file, then apply environment overrides.

        Variables in env_file (default ./.env) do not replace variables that
        are already set.

        Overrides:
            OUTLINER_MAX_DEPTH, OUTLINER_MAX_THOUGHTS,
            OUTLINER_PREVENT_LOADING_ANCESTORS, OUTLINER_DB, OUTLINER_LOG_LEVEL
        """
        env_file = env_file or Path.cwd() / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        config = cls.load(path)

        if "OUTLINER_MAX_DEPTH" in os.environ:
            config.pull.max_depth = int(os.environ["OUTLINER_MAX_DEPTH"])
        if "OUTLINER_MAX_THOUGHTS" in os.environ:
            config.pull.max_thoughts = int(os.environ["OUTLINER_MAX_THOUGHTS"])
        if "OUTLINER_PREVENT_LOADING_ANCESTORS" in os.environ:
            config.pull.prevent_loading_ancestors = (
                os.environ["OUTLINER_PREVENT_LOADING_ANCESTORS"].lower() in _TRUE_VALUES
            )
        if "OUTLINER_DB" in os.environ:
            config.provider.provider_type = ProviderType.SQLITE
            config.provider.connection_string = os.environ["OUTLINER_DB"]
        if "OUTLINER_LOG_LEVEL" in os.environ:
            config.logging.level = os.environ["OUTLINER_LOG_LEVEL"].upper()  # type: ignore[assignment]

        return config

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        provider_dict = {
            "provider_type": self.provider.provider_type.value,
            "connection_string": self.provider.connection_string,
        }

        with open(path, "w") as f:
            json.dump(
                {
                    "pull": self.pull.__dict__,
                    "provider": provider_dict,
                    "logging": self.logging.__dict__,
                },
                f,
                indent=2,
            )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the root logger for command line use."""
    config = config or LoggingConfig()
    logging.basicConfig(level=getattr(logging, config.level), format=config.format)


# Default configuration instance
default_config = OutlinerConfig()
