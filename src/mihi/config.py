"""Configuration settings for mihi."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


def get_config_dir() -> Path:
    """Return the directory holding the database and the configuration."""
    explicit = os.getenv("MIHI_DATA_DIR")
    if explicit:
        return Path(explicit)
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "mihi"
    return Path.home() / ".config" / "mihi"


DATA_DIR = get_config_dir()

# Practice defaults
MASTERY_THRESHOLD = 3  # trailing successes needed to consider an item solved
FAILURE_WINDOW = 10  # most recent attempts considered for the failure rate
RECENCY_HALF_LIFE_HOURS = 7 * 24
SESSION_SIZE = 15
SUPPORTED_LANGUAGES = ("latin",)


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def default_database_url() -> str:
    """Build the SQLite URL used when DATABASE_URL is not given."""
    name = os.getenv("MIHI_DATABASE", "database.sqlite3")
    return f"sqlite:///{DATA_DIR / name}"


@dataclass
class PathSettings:
    """Path configuration settings."""
    data_dir: Path = DATA_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL") or default_database_url()
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "WARNING")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class PracticeSettings:
    """Selection and mastery tracking settings."""
    mastery_threshold: int = int(os.getenv("MASTERY_THRESHOLD", str(MASTERY_THRESHOLD)))
    failure_window: int = int(os.getenv("FAILURE_WINDOW", str(FAILURE_WINDOW)))
    recency_weight: float = float(os.getenv("RECENCY_WEIGHT", "1.0"))
    failure_weight: float = float(os.getenv("FAILURE_WEIGHT", "1.0"))
    recency_half_life_hours: float = float(
        os.getenv("RECENCY_HALF_LIFE_HOURS", str(RECENCY_HALF_LIFE_HOURS))
    )
    word_weight_factor: float = float(os.getenv("WORD_WEIGHT_FACTOR", "0.1"))
    session_size: int = int(os.getenv("SESSION_SIZE", str(SESSION_SIZE)))
    language: str = os.getenv("LANGUAGE", "latin")


@dataclass
class MetricsSettings:
    """Prometheus exporter settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_practice_settings() -> PracticeSettings:
    """Get practice settings."""
    return PracticeSettings()


def get_metrics_settings() -> MetricsSettings:
    """Get metrics settings."""
    return MetricsSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    practice: PracticeSettings = field(default_factory=get_practice_settings)
    metrics: MetricsSettings = field(default_factory=get_metrics_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.practice.mastery_threshold < 1:
            raise ValueError("MASTERY_THRESHOLD must be positive")

        if self.practice.failure_window < 1:
            raise ValueError("FAILURE_WINDOW must be positive")

        if self.practice.recency_weight < 0 or self.practice.failure_weight < 0:
            raise ValueError("RECENCY_WEIGHT and FAILURE_WEIGHT cannot be negative")

        if self.practice.recency_half_life_hours <= 0:
            raise ValueError("RECENCY_HALF_LIFE_HOURS must be positive")

        if self.practice.word_weight_factor < 0:
            raise ValueError("WORD_WEIGHT_FACTOR cannot be negative")

        if self.practice.session_size < 0:
            raise ValueError("SESSION_SIZE cannot be negative")

        if self.practice.language not in SUPPORTED_LANGUAGES:
            raise ValueError(
                f"LANGUAGE must be one of: {', '.join(SUPPORTED_LANGUAGES)}"
            )


# Create global settings instance
settings = Settings()
settings.validate()
