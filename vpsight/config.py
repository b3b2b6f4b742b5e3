"""
VPSight Configuration

Loads settings from config.yaml for the dashboard server.
Supports SQLite (development) and MySQL database configuration.
"""

import os
from pathlib import Path
from functools import lru_cache

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database settings"""
    model_config = SettingsConfigDict(env_prefix="VPSIGHT_DB_")

    type: str = "sqlite"
    host: str = "localhost"
    port: int = 3306
    user: str = "vpsight"
    password: str = ""
    database: str = "vpsight"
    sqlite_path: str = "./db/vpsight.sqlite"
    pool_size: int = 5
    max_overflow: int = 10

    @property
    def url(self) -> str:
        """Generate SQLAlchemy database URL"""
        if self.type == "mysql":
            return f"mysql+aiomysql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
        return f"sqlite+aiosqlite:///{self.sqlite_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.type != "mysql"


class ServerSettings(BaseSettings):
    """Server settings"""
    model_config = SettingsConfigDict(env_prefix="VPSIGHT_SERVER_")

    host: str = "0.0.0.0"
    port: int = 9002
    debug: bool = False
    public_url: str = ""  # Base URL used in agent install commands


class AdminSettings(BaseSettings):
    """Admin area credentials and session cookie"""
    model_config = SettingsConfigDict(env_prefix="VPSIGHT_ADMIN_")

    username: str = ""
    password: str = ""
    session_cookie: str = "admin-session"
    session_max_age: int = 60 * 60 * 24  # 1 day
    secure_cookie: bool = False

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)


class BillingSettings(BaseSettings):
    """Billing display thresholds (days remaining)"""
    model_config = SettingsConfigDict(env_prefix="VPSIGHT_BILLING_")

    warning_days: int = 15
    critical_days: int = 7
    fallback_cycle_days: int = 30
    renew_ahead_days: int = 0  # Acknowledged records renew once days remaining <= this


class LoggingSettings(BaseSettings):
    """Logging configuration"""
    model_config = SettingsConfigDict(env_prefix="VPSIGHT_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Main application settings"""
    model_config = SettingsConfigDict(env_prefix="VPSIGHT_")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    admin: AdminSettings = Field(default_factory=AdminSettings)
    billing: BillingSettings = Field(default_factory=BillingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: str = "config.yaml") -> "Settings":
        """Load settings from YAML file"""
        config_path = Path(path)

        if config_path.exists():
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        else:
            config_data = {}

        return cls(
            database=DatabaseSettings(**config_data.get('database', {})),
            server=ServerSettings(**config_data.get('server', {})),
            admin=AdminSettings(**config_data.get('admin', {})),
            billing=BillingSettings(**config_data.get('billing', {})),
            logging=LoggingSettings(**config_data.get('logging', {}))
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    config_paths = [
        os.environ.get("VPSIGHT_CONFIG", ""),
        "config.yaml",
        "../config.yaml",
        os.path.join(os.path.dirname(__file__), "..", "config.yaml")
    ]

    for path in config_paths:
        if path and Path(path).exists():
            return Settings.from_yaml(path)

    return Settings()


# Global settings instance
settings = get_settings()
