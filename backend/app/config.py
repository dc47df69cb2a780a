"""Configuration loader that keeps all runtime constants centralized."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml


CONFIG_PATH = Path(__file__).resolve().parent / "app_config.yaml"


@dataclass(frozen=True)
class AppConfig:
    """Strongly-typed wrapper over the raw YAML document."""

    raw: Dict[str, Any]

    @property
    def version(self) -> str:
        return str(self.raw.get("version", "v1"))

    @property
    def storage(self) -> Dict[str, Any]:
        return self.raw.get("storage", {})

    @property
    def summarize(self) -> Dict[str, Any]:
        return self.raw.get("summarize", {})

    @property
    def retention(self) -> Dict[str, Any]:
        return self.raw.get("retention", {})

    @property
    def charts(self) -> Dict[str, Any]:
        return self.raw.get("charts", {})

    @property
    def bins(self) -> Dict[str, List[int]]:
        return self.raw.get("bins", {})

    @property
    def logging(self) -> Dict[str, Any]:
        return self.raw.get("logging", {})

    # Storage helpers -----------------------------------------------------
    @property
    def database_backend(self) -> str:
        """sqlite | memory; the STORAGE env var wins over the file."""
        return os.environ.get("STORAGE") or str(self.storage.get("backend", "sqlite"))

    @property
    def data_folder(self) -> Path:
        folder = os.environ.get("DATA_FOLDER") or self.storage.get("data_folder", "data")
        return Path(folder)

    @property
    def database_path(self) -> Path:
        return self.data_folder / str(self.storage.get("database_file", "insights.db"))


@lru_cache(maxsize=1)
def get_settings(path: Path | None = None) -> AppConfig:
    """Load configuration once per process."""

    env_path = os.environ.get("INSIGHTS_CONFIG")
    config_path = path or (Path(env_path) if env_path else CONFIG_PATH)
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):  # pragma: no cover - invalid file guard
        raise ValueError("Configuration file must define a mapping at the top level.")
    return AppConfig(raw=data)
