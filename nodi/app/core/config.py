import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PRESETS_PATH = Path(__file__).resolve().parent.parent / "config" / "ai_presets.yaml"


class AIPreset(BaseModel):
    label: str
    move_limit: int = Field(ge=1)
    reply_limit: int = Field(ge=0)
    epsilon: float = Field(default=0.5, ge=0.0)


class PresetRegistry:
    def __init__(self, config_path: Optional[str] = None):
        self.presets: Dict[str, AIPreset] = {}
        self.default_key = "normal"
        self._load(config_path or os.getenv("NODI_PRESETS_PATH") or str(DEFAULT_PRESETS_PATH))

    def _load(self, path: str):
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        for key, val in data.get("presets", {}).items():
            self.presets[key] = AIPreset(**val)
        self.default_key = os.getenv("NODI_DEFAULT_PRESET") or data.get("default", self.default_key)
        if self.default_key not in self.presets:
            raise ValueError(f"Default preset {self.default_key!r} is not defined in {path}")

    def get(self, key: Optional[str]) -> AIPreset:
        """Unknown or missing keys fall back to the default preset."""
        if key is None:
            return self.presets[self.default_key]
        preset = self.presets.get(key)
        if preset is None:
            logger.warning("Unknown AI preset %r, defaulting to %r", key, self.default_key)
            return self.presets[self.default_key]
        return preset

    def list_all(self) -> Dict[str, AIPreset]:
        return self.presets


# Singleton instance
registry = PresetRegistry()
