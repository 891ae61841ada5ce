"""Configuration management for Grocery Planner."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_STORAGE_DIR = "~/grocery-planner/data"


@dataclass
class DataConfig:
    """Data storage configuration."""

    storage_dir: Path


@dataclass
class DefaultsConfig:
    """Default values configuration."""

    unit: str = "COUNT"
    list_name: str = "Groceries"


@dataclass
class PlanningConfig:
    """Plan generation tuning."""

    baseline_availability: float = 0.85
    best_value_premium: float = 0.15
    balanced_premium: float = 0.12
    reference_item_cost: int = 500
    max_workers: int = 1


@dataclass
class CatalogConfig:
    """Catalog overrides."""

    overrides_path: Path | None = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Config:
    """Complete application configuration."""

    data: DataConfig
    defaults: DefaultsConfig
    planning: PlanningConfig
    catalog: CatalogConfig
    logging: LoggingConfig


class ConfigManager:
    """Manages application configuration from TOML files."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional explicit path to config file.
                        If not provided, searches standard locations.
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        """Get data configuration."""
        return self._config.data

    @property
    def defaults(self) -> DefaultsConfig:
        """Get defaults configuration."""
        return self._config.defaults

    @property
    def planning(self) -> PlanningConfig:
        """Get planning configuration."""
        return self._config.planning

    @property
    def catalog(self) -> CatalogConfig:
        """Get catalog configuration."""
        return self._config.catalog

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._config.logging

    def _find_config(self) -> Path:
        """Find config file in standard locations."""
        locations = [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "grocery-planner" / "config.toml",
            Path.home() / ".grocery-planner" / "config.toml",
        ]

        for loc in locations:
            if loc.exists():
                return loc

        return Path.home() / ".config" / "grocery-planner" / "config.toml"

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, "rb") as f:
            data = tomllib.load(f)

        planning = data.get("planning", {})
        defaults = PlanningConfig()
        overrides_path = data.get("catalog", {}).get("overrides_path")

        return Config(
            data=DataConfig(
                storage_dir=Path(
                    data.get("data", {}).get("storage_dir", DEFAULT_STORAGE_DIR)
                ).expanduser(),
            ),
            defaults=DefaultsConfig(
                unit=data.get("defaults", {}).get("unit", "COUNT").upper(),
                list_name=data.get("defaults", {}).get("list_name", "Groceries"),
            ),
            planning=PlanningConfig(
                baseline_availability=float(
                    planning.get("baseline_availability", defaults.baseline_availability)
                ),
                best_value_premium=float(
                    planning.get("best_value_premium", defaults.best_value_premium)
                ),
                balanced_premium=float(planning.get("balanced_premium", defaults.balanced_premium)),
                reference_item_cost=int(
                    planning.get("reference_item_cost", defaults.reference_item_cost)
                ),
                max_workers=int(planning.get("max_workers", defaults.max_workers)),
            ),
            catalog=CatalogConfig(
                overrides_path=Path(overrides_path).expanduser() if overrides_path else None,
            ),
            logging=LoggingConfig(
                level=str(data.get("logging", {}).get("level", "WARNING")).upper(),
            ),
        )

    def _default_config(self) -> Config:
        """Return default configuration."""
        return Config(
            data=DataConfig(storage_dir=Path(DEFAULT_STORAGE_DIR).expanduser()),
            defaults=DefaultsConfig(),
            planning=PlanningConfig(),
            catalog=CatalogConfig(),
            logging=LoggingConfig(),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value by dot-notation path.

        Args:
            key_path: Dot-separated path like 'planning.max_workers'
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        value: Any = self._config

        for key in key_path.split("."):
            if hasattr(value, key):
                value = getattr(value, key)
            elif isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default
