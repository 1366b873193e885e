from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel

ENV_PREFIX = "GC_VISUALIZER_"


class Settings(BaseModel):
    title: str = "GC Visualizer API"
    version: str = "1.0.0"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
    max_history: Optional[int] = None
    default_scenario: str = "default"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "Settings":
        """Build settings from ``GC_VISUALIZER_*`` environment variables.

        ``CORS_ORIGINS`` is a comma separated list.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            if name == "cors_origins":
                values[name] = [o.strip() for o in raw.split(",") if o.strip()]
            else:
                values[name] = raw
        return cls(**values)
