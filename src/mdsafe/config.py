"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import Field

from mdsafe.core.models import RenderOptions
from mdsafe.core.parse import load_yaml_mapping


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDSAFE_"
ENGINES = ("auto", "fallback")


class Settings(RenderOptions):
    """Render option defaults plus CLI-level settings."""
    app_name:   str = "mdsafe"
    engine:     Literal["auto", "fallback"] = Field(default="auto", description="auto: markdown-it, fallback: built-in engine")
    output_dir: str = Field(default="dist", description="Directory for rendered HTML files")

    def render_options(self) -> RenderOptions:
        """Return just the per-call rendering switches."""
        return RenderOptions(**self.model_dump(include=set(RenderOptions.model_fields)))


def _env_settings() -> dict[str, str]:
    """Non-empty MDSAFE_<FIELD> environment variables, keyed by field name."""
    found = {}
    for name in Settings.model_fields:
        value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value:
            found[name] = value
    return found


def load_config(overrides: dict[str, Any] = None, path: str = CONFIG_FILE) -> Settings:
    """Merge config file < MDSAFE_<FIELD> env vars < non-None CLI overrides into Settings."""
    config_path = Path(path)
    data = load_yaml_mapping(config_path.read_text(), path) if config_path.exists() else {}
    data.update(_env_settings())
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    engine = data.get("engine", "auto")
    if engine not in ENGINES:
        raise ValueError(f"Unknown engine {engine!r}; expected one of: {', '.join(ENGINES)}")
    return Settings(**data)
