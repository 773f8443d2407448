"""
Centralized Configuration Management System

This module provides the configuration layer for the vector engine:
- Dataclass defaults for every setting
- YAML/JSON configuration files with environment-specific overrides
- Environment variable overrides (highest priority)
- Validation on load and on update
"""

import os
import json
import yaml
import logging
import threading
from typing import Any, Dict, Optional, Union
from pathlib import Path
from dataclasses import dataclass, field
from enum import Enum

from nano_vectordb.monitoring.structured_logger import configure_logging


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class EngineConfig:
    """Similarity engine configuration"""

    embedding_dim: int = 1024
    storage_file: str = "./nano-vectordb.json"
    metric: str = "cosine"


@dataclass
class QueryConfig:
    """Query execution configuration"""

    workers: int = 4
    partition_size: int = 10000  # rows scored per worker task
    default_top_k: int = 10


@dataclass
class TenantConfig:
    """Multi-tenant cache configuration"""

    storage_dir: str = "./nano_multi_tenant_storage"
    max_capacity: int = 1000


@dataclass
class PersistenceConfig:
    """Snapshot file configuration"""

    pretty_print: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration"""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json_format: bool = False


@dataclass
class AppConfig:
    """Main application configuration"""

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    engine: EngineConfig = field(default_factory=EngineConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    tenants: TenantConfig = field(default_factory=TenantConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""

    pass


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


class ConfigManager:
    """
    Centralized configuration manager with support for:
    - Environment-specific configurations
    - Configuration validation
    - Dynamic configuration updates
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls, *args, **kwargs):
        """Singleton pattern implementation"""
        if not cls._instance:
            with cls._lock:
                if not cls._instance:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        # Avoid re-initialization in singleton
        if hasattr(self, "_initialized"):
            return

        self._initialized = True
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            # Look for config directory relative to project root
            project_root = Path(__file__).parent.parent.parent
            self.config_dir = project_root / "config"

        self.config: AppConfig = AppConfig()
        self.logger = logging.getLogger(__name__)

        self._load_configuration()

    def _load_configuration(self):
        """Load configuration from multiple sources in priority order"""
        # 1. Defaults
        self.config = AppConfig()

        # 2. Base configuration file
        self._load_from_file("config.yaml")
        self._load_from_file("config.json")

        # 3. Environment-specific configuration
        env = os.getenv("ENVIRONMENT", "development").lower()
        self._load_from_file(f"environments/config.{env}.yaml")
        self._load_from_file(f"environments/config.{env}.json")

        # 4. Environment variables (highest priority)
        self._load_from_environment()

        self._validate_configuration()

    def _load_from_file(self, filename: str):
        """Load configuration from YAML/JSON file"""
        file_path = self.config_dir / filename
        if not file_path.exists():
            return

        try:
            with open(file_path, "r") as f:
                if filename.endswith(".yaml") or filename.endswith(".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)

            if data:
                self._update_config_from_dict(data)
                self.logger.info(f"Loaded configuration from {filename}")

        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            self.logger.warning(f"Failed to load configuration from {filename}: {e}")

    def _load_from_environment(self):
        """Load configuration from environment variables"""
        env_mappings = {
            "ENVIRONMENT": ("environment", lambda x: Environment(x.lower())),
            "DEBUG": ("debug", _parse_bool),
            # Engine
            "NANO_VDB_EMBEDDING_DIM": ("engine.embedding_dim", int),
            "NANO_VDB_STORAGE_FILE": ("engine.storage_file", str),
            # Query
            "NANO_VDB_WORKERS": ("query.workers", int),
            "NANO_VDB_PARTITION_SIZE": ("query.partition_size", int),
            "NANO_VDB_DEFAULT_TOP_K": ("query.default_top_k", int),
            # Tenants
            "NANO_VDB_TENANT_DIR": ("tenants.storage_dir", str),
            "NANO_VDB_MAX_TENANTS": ("tenants.max_capacity", int),
            # Persistence
            "NANO_VDB_PRETTY_PRINT": ("persistence.pretty_print", _parse_bool),
            # Logging
            "LOG_LEVEL": ("logging.level", lambda x: LogLevel(x.upper())),
            "LOG_FORMAT": ("logging.format", str),
            "LOG_JSON": ("logging.json_format", _parse_bool),
        }

        for env_var, (config_path, converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    self._set_nested_attr(self.config, config_path, converter(value))
                except (ValueError, TypeError) as e:
                    self.logger.warning(f"Invalid value for {env_var}: {value}, error: {e}")

    def _update_config_from_dict(self, data: Dict[str, Any], prefix: str = ""):
        """Update configuration from dictionary recursively"""
        for key, value in data.items():
            config_path = f"{prefix}.{key}" if prefix else key

            if isinstance(value, dict):
                self._update_config_from_dict(value, config_path)
            else:
                try:
                    if config_path == "environment" and isinstance(value, str):
                        value = Environment(value.lower())
                    elif config_path == "logging.level" and isinstance(value, str):
                        value = LogLevel(value.upper())

                    self._set_nested_attr(self.config, config_path, value)

                except AttributeError:
                    self.logger.warning(f"Unknown configuration key: {config_path}")
                except ValueError as e:
                    self.logger.warning(f"Invalid value for {config_path}: {value}, error: {e}")

    def _set_nested_attr(self, obj: Any, path: str, value: Any):
        """Set nested attribute using dot notation"""
        parts = path.split(".")
        for part in parts[:-1]:
            obj = getattr(obj, part)
        if not hasattr(obj, parts[-1]):
            raise AttributeError(path)
        setattr(obj, parts[-1], value)

    def _validate_configuration(self):
        """Validate configuration settings"""
        errors = []

        if not isinstance(self.config.engine.embedding_dim, int) or self.config.engine.embedding_dim <= 0:
            errors.append("Embedding dimension must be a positive integer")

        if self.config.engine.metric != "cosine":
            errors.append(f"Unsupported metric: {self.config.engine.metric}")

        if not self.config.engine.storage_file:
            errors.append("Storage file path is required")

        if self.config.query.workers < 1:
            errors.append("Query workers must be at least 1")

        if self.config.query.partition_size < 1:
            errors.append("Query partition size must be at least 1")

        if self.config.query.default_top_k < 0:
            errors.append("Default top_k must not be negative")

        if self.config.tenants.max_capacity < 1:
            errors.append("Tenant max capacity must be at least 1")

        if errors:
            raise ConfigValidationError(f"Configuration validation failed: {'; '.join(errors)}")

        self.logger.info("Configuration validation passed")

    def reload_configuration(self):
        """Reload configuration from all sources"""
        try:
            self._load_configuration()
            self.logger.info("Configuration reloaded successfully")
        except ConfigValidationError as e:
            self.logger.error(f"Failed to reload configuration: {e}")
            raise

    def get(self, path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        try:
            obj = self.config
            for part in path.split("."):
                obj = getattr(obj, part)
            return obj
        except AttributeError:
            return default

    def set(self, path: str, value: Any):
        """Set configuration value using dot notation"""
        self._set_nested_attr(self.config, path, value)
        self._validate_configuration()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""

        def _asdict_recursive(obj):
            if hasattr(obj, "__dict__"):
                result = {}
                for key, value in obj.__dict__.items():
                    if isinstance(value, Enum):
                        result[key] = value.value
                    elif hasattr(value, "__dict__"):
                        result[key] = _asdict_recursive(value)
                    else:
                        result[key] = value
                return result
            return obj

        return _asdict_recursive(self.config)

    def save_to_file(self, filename: str, format: str = "yaml"):
        """Save current configuration to file"""
        file_path = self.config_dir / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        config_dict = self.to_dict()

        with open(file_path, "w") as f:
            if format.lower() == "yaml":
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)
            else:
                json.dump(config_dict, f, indent=2)

        self.logger.info(f"Configuration saved to {filename}")

    def apply_logging_config(self):
        """Configure root logging from the logging section"""
        level = LogLevel.DEBUG if self.config.debug else self.config.logging.level
        configure_logging(
            log_level=level.value,
            json_format=self.config.logging.json_format,
            log_format=self.config.logging.format,
        )

    def get_engine_config(self) -> Dict[str, Any]:
        """
        Get keyword arguments for building a similarity engine.

        Returns:
            Dictionary accepted by ``NanoVectorDB.from_config``
        """
        return {
            "embedding_dim": self.config.engine.embedding_dim,
            "storage_file": self.config.engine.storage_file,
            "workers": self.config.query.workers,
            "partition_size": self.config.query.partition_size,
            "pretty_print": self.config.persistence.pretty_print,
            "default_top_k": self.config.query.default_top_k,
        }

    def get_tenant_config(self) -> Dict[str, Any]:
        """
        Get keyword arguments for building a multi-tenant cache.

        Returns:
            Dictionary accepted by ``MultiTenantNanoVDB.from_config``
        """
        return {
            "embedding_dim": self.config.engine.embedding_dim,
            "storage_dir": self.config.tenants.storage_dir,
            "max_capacity": self.config.tenants.max_capacity,
            "workers": self.config.query.workers,
            "partition_size": self.config.query.partition_size,
            "pretty_print": self.config.persistence.pretty_print,
            "default_top_k": self.config.query.default_top_k,
        }


# Global configuration instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def init_config(config_dir: Optional[Union[str, Path]] = None) -> ConfigManager:
    """Initialize the global configuration manager"""
    global _config_manager
    ConfigManager._instance = None
    _config_manager = ConfigManager(config_dir)
    return _config_manager
