from __future__ import annotations
from dataclasses import dataclass

DEFAULT_TRACK17_BASE_URL = "https://api.17track.net/track/v2"


@dataclass(frozen=True)
class EnvCfg:
    """Minimal shape we need from get_app_env()."""
    TRACK17_API_KEY: str = ""
    TRACK17_BASE_URL: str = DEFAULT_TRACK17_BASE_URL
