"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- SourcesConfig: Public and trusted list URLs
- FetchConfig: HTTP fetching settings
- OutputConfig: Flat-file output settings
- StoreConfig: SQLite store settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container

Source URLs live at the top level of the file under ``publicSourceURLs``
and ``trustedSourceURLs``. The older single-list ``sourceURLs`` key is read
as public sources.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from pathlib import Path
import shutil
import sys
from typing import Any

import yaml

from .core.errors import ConfigError
from .core.types import Category, Source


CONFIG_ENV = "RESOLVER_FEED_CONFIG"
DB_PATH_ENV = "RESOLVER_FEED_DB"
APP_DIR_NAME = "resolver-feed"
SAMPLE_CONFIG = Path(__file__).parent / "config.sample.yaml"

_SOURCE_KEYS = {
    "publicSourceURLs": "public",
    "trustedSourceURLs": "trusted",
    "sourceURLs": "public",
}


@dataclass
class SourcesConfig:
    """Ordered source URL lists per category.

    Attributes:
        public: URLs of fully replaceable public resolver lists
        trusted: URLs of curated trusted resolver lists
    """

    public: list[str] = field(default_factory=list)
    trusted: list[str] = field(default_factory=list)

    def for_category(self, category: Category) -> list[Source]:
        urls = self.public if category is Category.PUBLIC else self.trusted
        return [Source(url=url, category=category) for url in urls]


@dataclass
class FetchConfig:
    """Configuration for HTTP fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 30.0
    trust_env: bool = True
    user_agent: str = "resolver-feed/0.1 (+https://github.com/)"


@dataclass
class OutputConfig:
    """Configuration for flat-file output.

    Attributes:
        write_files: Whether the flat-file sink is active
        directory: Directory receiving the per-category files
        filename_template: File name pattern, ``{category}`` is substituted
    """

    write_files: bool = True
    directory: str = "."
    filename_template: str = "{category}_resolvers.txt"


@dataclass
class StoreConfig:
    """Configuration for the SQLite store.

    Attributes:
        enabled: Whether the store sink is active during processing
        path: Database file path (overridden by RESOLVER_FEED_DB)
        unique_scope: "token" for one row per token across all categories,
            "token_category" for one row per token and category
        clear_categories: Categories whose rows are replaced on every run
    """

    enabled: bool = False
    path: str = "resolvers.db"
    unique_scope: str = "token"
    clear_categories: list[str] = field(default_factory=lambda: [Category.PUBLIC.value])


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file, written in the output directory
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    sources: SourcesConfig = field(default_factory=SourcesConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None) -> AppConfig:
    """Load configuration from a YAML file with defaults.

    Raises:
        ConfigError: If the file cannot be read or does not describe a valid
            configuration.
    """
    if not path:
        return AppConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Could not open config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse config file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key in _SOURCE_KEYS:
            data["sources"][_SOURCE_KEYS[key]] = _url_list(key, value)
            continue
        if key not in data or value is None:
            continue
        if not isinstance(value, dict):
            raise ConfigError(f"Config section '{key}' must be a mapping")
        data[key].update(value)
    return _fromdict(data)


def _url_list(key: str, value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of URL strings")
    return [item.strip() for item in value if item.strip()]


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    try:
        cfg = AppConfig(
            sources=SourcesConfig(**data["sources"]),
            fetch=FetchConfig(**data["fetch"]),
            output=OutputConfig(**data["output"]),
            store=StoreConfig(**data["store"]),
            logging=LoggingConfig(**data["logging"]),
        )
    except TypeError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    if cfg.store.unique_scope not in ("token", "token_category"):
        raise ConfigError(
            f"store.unique_scope must be 'token' or 'token_category', got {cfg.store.unique_scope!r}"
        )
    clear = cfg.store.clear_categories
    if clear is None:
        clear = []
    elif not isinstance(clear, list):
        raise ConfigError("store.clear_categories must be a list of category names")
    cfg.store.clear_categories = [Category.parse(str(name)).value for name in clear]
    return cfg


def get_db_path(cfg: StoreConfig) -> Path:
    """Get the store path from the environment or the config."""
    return Path(os.getenv(DB_PATH_ENV) or cfg.path).expanduser()


def default_config_path() -> Path:
    """Return the per-user config file location for this platform."""
    env_path = os.getenv(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()

    if sys.platform.startswith("win"):
        base = Path(os.getenv("APPDATA") or Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config")
    return base / APP_DIR_NAME / "config.yaml"


def ensure_config(path: Path) -> bool:
    """Copy the bundled sample config to ``path`` if nothing is there yet.

    Returns:
        True if the sample was copied, False if a config already existed
    """
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(SAMPLE_CONFIG, path)
    except OSError as exc:
        raise ConfigError(f"Could not create config file {path}: {exc}") from exc
    return True
