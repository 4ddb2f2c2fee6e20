"""Configuration management for Shop Ledger.

Settings come from a TOML file. The file is looked up, in order, at the path
named by ``SHOP_LEDGER_CONFIG``, ``./config.toml``,
``~/.config/shop-ledger/config.toml`` and ``~/.shop-ledger/config.toml``::

    [data]
    storage_dir = "~/shop-ledger/data"
    backend = "json"            # or "sqlite"

    [defaults]
    category = "General"
    unit = "pcs"

    [display]
    currency_symbol = "₹"
    timezone = "Asia/Kolkata"   # omit for the system zone
    recent_limit = 5
    top_expenses_limit = 5
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .data_store import BackendType
from .errors import LedgerError
from .models import DEFAULT_CATEGORY, DEFAULT_UNIT

CONFIG_ENV_VAR = "SHOP_LEDGER_CONFIG"
DEFAULT_STORAGE_DIR = Path("~/shop-ledger/data")


class ConfigError(LedgerError):
    """Raised when the config file is unreadable or holds invalid values."""


@dataclass
class DataConfig:
    """Where and how the ledger is stored."""

    storage_dir: Path = field(default_factory=lambda: DEFAULT_STORAGE_DIR.expanduser())
    backend: BackendType = BackendType.JSON


@dataclass
class DefaultsConfig:
    """Values given to items created from a purchase."""

    category: str = DEFAULT_CATEGORY
    unit: str = DEFAULT_UNIT


@dataclass
class DisplayConfig:
    currency_symbol: str = "₹"
    timezone: str | None = None
    recent_limit: int = 5
    top_expenses_limit: int = 5

    @property
    def tzinfo(self) -> tzinfo | None:
        """Timezone for calendar views, None for the system zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


@dataclass
class Config:
    data: DataConfig = field(default_factory=DataConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{name}] must be a table")
    return value


def _non_negative_int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"display.{key} must be a non-negative integer, got {value!r}")
    return value


class ConfigManager:
    """Loads and validates application configuration."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional explicit path to config file.
                        If not provided, searches standard locations.

        Raises:
            ConfigError: If the file exists but cannot be parsed or is invalid
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        return self._config.data

    @property
    def defaults(self) -> DefaultsConfig:
        return self._config.defaults

    @property
    def display(self) -> DisplayConfig:
        return self._config.display

    @staticmethod
    def search_paths() -> list[Path]:
        """Candidate config locations, highest priority first."""
        paths = []
        if os.environ.get(CONFIG_ENV_VAR):
            paths.append(Path(os.environ[CONFIG_ENV_VAR]).expanduser())
        paths += [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "shop-ledger" / "config.toml",
            Path.home() / ".shop-ledger" / "config.toml",
        ]
        return paths

    def _find_config(self) -> Path:
        """First existing config file, or the preferred location if none exists."""
        paths = self.search_paths()
        return next((p for p in paths if p.exists()), paths[-2])

    def _load_config(self) -> Config:
        if not self.config_path.exists():
            return Config()

        try:
            with open(self.config_path, "rb") as f:
                raw = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Could not read {self.config_path}: {e}") from e

        data = _section(raw, "data")
        defaults = _section(raw, "defaults")
        display = _section(raw, "display")

        try:
            backend = BackendType(data.get("backend", BackendType.JSON.value))
        except ValueError as e:
            raise ConfigError(
                f"data.backend must be 'json' or 'sqlite', got {data['backend']!r}"
            ) from e

        timezone = display.get("timezone") or None
        if timezone is not None:
            try:
                ZoneInfo(timezone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigError(f"Unknown timezone {timezone!r}") from e

        return Config(
            data=DataConfig(
                storage_dir=Path(data.get("storage_dir", DEFAULT_STORAGE_DIR)).expanduser(),
                backend=backend,
            ),
            defaults=DefaultsConfig(
                category=defaults.get("category", DEFAULT_CATEGORY),
                unit=defaults.get("unit", DEFAULT_UNIT),
            ),
            display=DisplayConfig(
                currency_symbol=display.get("currency_symbol", "₹"),
                timezone=timezone,
                recent_limit=_non_negative_int(display, "recent_limit", 5),
                top_expenses_limit=_non_negative_int(display, "top_expenses_limit", 5),
            ),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value by dot-notation path, e.g. ``display.timezone``."""
        section, _, key = key_path.partition(".")
        value = getattr(self._config, section, None)
        if value is not None and key:
            value = getattr(value, key, None)
        return default if value is None else value
