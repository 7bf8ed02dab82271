"""Configuration management for Sift.

Reads configuration from ~/.config/sift.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass, field, fields, asdict
import tomllib
import tomli_w


@dataclass
class ClassifierSettings:
    """Tuning for envelope suggestions."""

    min_confidence: float = 0.3


@dataclass
class AnalyticsSettings:
    """Tuning for account analysis and anomaly detection."""

    window_months: int = 6
    anomaly_sigma: float = 2.0
    anomaly_min_history: int = 3
    frequency_tolerance: float = 0.5
    frequency_stability_days: float = 5.0
    top_merchants: int = 5


@dataclass
class InsightSettings:
    """Thresholds that control which insights are emitted."""

    recurring_min_frequency: float = 1.0
    recurring_frequency_scale: float = 5.0
    budget_utilization_threshold: float = 0.9
    budget_underuse_threshold: float = 0.7
    budget_underuse_min_months: int = 3
    budget_underuse_confidence: float = 0.7
    trend_up_threshold: float = 0.2
    trend_down_threshold: float = -0.2
    trend_confidence: float = 0.7
    reallocation_confidence: float = 0.7


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    classification: ClassifierSettings = field(default_factory=ClassifierSettings)
    analytics: AnalyticsSettings = field(default_factory=AnalyticsSettings)
    insights: InsightSettings = field(default_factory=InsightSettings)

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        return cls.from_toml({})

    @classmethod
    def from_toml(cls, data: dict) -> "Config":
        """Build a Config from parsed TOML, filling in defaults.

        Paths default to locations under base_dir. Unknown keys in the tuning
        tables ([classification], [analytics], [insights]) are ignored so an
        older config file keeps loading after a setting is retired.
        """
        base_dir = Path(data.get("base_dir", Path.home() / "data" / "sift"))
        database = data.get("database", {})
        logging = data.get("logging", {})

        return cls(
            base_dir=base_dir,
            db_data_dir=Path(database.get("data_dir", base_dir / "db")),
            db_filename=database.get("filename", "sift.db"),
            log_level=logging.get("level", "INFO"),
            log_dir=Path(logging.get("log_dir", base_dir / "logs")),
            classification=_settings(ClassifierSettings, data.get("classification", {})),
            analytics=_settings(AnalyticsSettings, data.get("analytics", {})),
            insights=_settings(InsightSettings, data.get("insights", {})),
        )

    def to_toml(self) -> dict:
        """Inverse of from_toml()."""
        return {
            "base_dir": str(self.base_dir),
            "database": {"data_dir": str(self.db_data_dir), "filename": self.db_filename},
            "logging": {"level": self.log_level, "log_dir": str(self.log_dir)},
            "classification": asdict(self.classification),
            "analytics": asdict(self.analytics),
            "insights": asdict(self.insights),
        }


def _settings(settings_cls, table: dict):
    known = {f.name for f in fields(settings_cls)}
    return settings_cls(**{k: v for k, v in table.items() if k in known})


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "sift.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load ~/.config/sift.toml, writing a default one on first run.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    if not config_path.exists():
        config = Config.default()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "wb") as f:
            tomli_w.dump(config.to_toml(), f)
        return config

    with open(config_path, "rb") as f:
        return Config.from_toml(tomllib.load(f))
