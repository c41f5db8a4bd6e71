"""
Core configuration management for the git collection.
Handles environment variables, YAML configs, and runtime parameters.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from pydantic import BaseModel, Field
from dotenv import load_dotenv


# Sentinel accepted by `limit` meaning "every commit".
NO_LIMIT = -1


class CollectionConfig(BaseModel):
    """Repositories to collect and how to query them."""
    repositories: List[str] = Field(default_factory=list, description="Repository URLs to collect")
    data_directory: str = Field(default="./data", description="Root directory for working copies")
    limit: int = Field(default=100, description="Maximum commits listed per repository (-1 for no limit)")
    timeout: int = Field(default=600, description="Timeout in seconds for each git invocation")
    git_binary: Optional[str] = Field(default=None, description="Path to the git executable")
    max_workers: int = Field(default=1, description="Repositories listed concurrently")


class MonitoringConfig(BaseModel):
    """Logging configuration."""
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Optional[str] = Field(default=None, description="Log directory")
    enable_json_logging: bool = Field(default=False, description="Write file logs as JSON")


class Config(BaseModel):
    """Main configuration class."""
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    def __init__(self, config_path: Optional[Union[str, Path]] = None, **kwargs):
        """Initialize configuration from environment variables, file, and kwargs."""
        # Load environment variables
        load_dotenv()

        # Start with environment variables
        config_data = self._load_from_env()

        # Override with config file if provided
        if config_path:
            file_config = self._load_from_file(config_path)
            config_data = self._merge_configs(config_data, file_config)

        # Override with kwargs
        if kwargs:
            config_data = self._merge_configs(config_data, kwargs)

        collection = config_data.get("collection")
        if isinstance(collection, dict) and "repository" in collection:
            collection = dict(collection)
            single = collection.pop("repository")
            if single:
                collection["repositories"] = [single] + [
                    url for url in collection.get("repositories", []) if url != single
                ]
            config_data["collection"] = collection

        super().__init__(**config_data)

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config = {}

        # Collection configuration
        if os.getenv("GIT_COLLECTION_REPOSITORY"):
            repositories = [url.strip() for url in os.getenv("GIT_COLLECTION_REPOSITORY").split(",")]
            config.setdefault("collection", {})["repositories"] = [url for url in repositories if url]
        if os.getenv("GIT_COLLECTION_DATA_DIR"):
            config.setdefault("collection", {})["data_directory"] = os.getenv("GIT_COLLECTION_DATA_DIR")
        if os.getenv("GIT_COLLECTION_LIMIT"):
            config.setdefault("collection", {})["limit"] = int(os.getenv("GIT_COLLECTION_LIMIT"))
        if os.getenv("GIT_COLLECTION_TIMEOUT"):
            config.setdefault("collection", {})["timeout"] = int(os.getenv("GIT_COLLECTION_TIMEOUT"))
        if os.getenv("GIT_BINARY"):
            config.setdefault("collection", {})["git_binary"] = os.getenv("GIT_BINARY")

        # Monitoring configuration
        if os.getenv("LOG_LEVEL"):
            config.setdefault("monitoring", {})["log_level"] = os.getenv("LOG_LEVEL")
        if os.getenv("LOG_DIR"):
            config.setdefault("monitoring", {})["log_dir"] = os.getenv("LOG_DIR")

        return config

    def _load_from_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def save(self, config_path: Union[str, Path]) -> None:
        """Save current configuration to YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False, indent=2)


# Global configuration instance
_config = None

def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config

def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
