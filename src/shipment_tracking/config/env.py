# src/shipment_tracking/config/env.py
from __future__ import annotations

import os
from dataclasses import replace
from datetime import timedelta
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import dotenv_values, find_dotenv, load_dotenv

from shipment_tracking.models import EnvCfg
from shipment_tracking.models.env_cfg import DEFAULT_TRACK17_BASE_URL
from shipment_tracking.rules.policy import KnownCourier, SelectionPolicy


# --- Public contract ---------------------------------------------------------

class EnvError(RuntimeError):
    """Raised when required environment variables are missing or invalid."""


REQUIRED_KEYS: Tuple[str, ...] = (
    "TRACK17_API_KEY",
)

# Optional overrides for the courier selection rules
POLICY_KEYS: Tuple[str, ...] = (
    "TRACKING_OVERRIDE_PREFIX",
    "TRACKING_OVERRIDE_COURIER",
    "TRACKING_PREFERRED_COURIER",
    "TRACKING_CONTEMPORANEOUS_HOURS",
)


def load_project_dotenv(start: Optional[Path] = None, *, override: bool = False) -> Path:
    """
    Load variables from the nearest `.env` file (searching upward from `start` or CWD).
    Does NOT override existing env vars unless `override=True`.
    Returns the resolved Path to the .env file if found; otherwise Path().
    """
    start_path = Path.cwd() if start is None else Path(start)

    dotenv_str = find_dotenv(filename=".env", usecwd=True)
    dotenv_path = Path(dotenv_str) if dotenv_str else Path()

    # find_dotenv searches from CWD; honour an explicit start directory too
    if not dotenv_str:
        for p in (start_path, *start_path.parents):
            candidate = p / ".env"
            if candidate.is_file():
                dotenv_path = candidate
                break

    if not dotenv_path.is_file():
        return Path()

    load_dotenv(dotenv_path=dotenv_path, override=override)
    return dotenv_path.resolve()


def env(name: str, *, default: Optional[str] = None, required: bool = False, cast=None):
    """
    Test-friendly accessor.

    - If `required=True` and var is missing, raise KeyError(name).
    - If `cast` is provided, apply it to the raw string and propagate cast errors.
    - Returns `default` when missing and not required.
    """
    raw = os.getenv(name)
    if raw is None:
        if required:
            raise KeyError(name)
        return default

    if cast is not None:
        return cast(raw)
    return raw


def load_env(
    dotenv_path: Optional[Path] = None,
    *,
    override: bool = False,
    required_keys: Tuple[str, ...] = (),
    strict: bool = False,
) -> Dict[str, str]:
    """
    Load env vars from a .env file into the process environment and return the
    key/value pairs found in that file.

    - If `dotenv_path` is provided, load exactly that file.
    - Otherwise, auto-discover the nearest .env via `load_project_dotenv`.
    - If `strict=True`, every key in `required_keys` must be set afterwards.
    """
    loaded: Dict[str, str] = {}

    if dotenv_path:
        path = Path(dotenv_path)
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
    else:
        path = load_project_dotenv(override=override)

    if path and path.is_file():
        loaded = {k: v for k, v in dotenv_values(path).items() if v is not None}

    if strict and required_keys:
        missing = [k for k in required_keys if not os.getenv(k)]
        if missing:
            raise EnvError(
                f"Missing required environment variable(s): {', '.join(missing)}")

    return loaded


def get_app_env(dotenv_path: Path | str | None = ".env", *, strict: bool = True) -> EnvCfg:
    """
    Load application variables and return a typed config object.

    - `dotenv_path` may point to a specific .env file, or be None to skip file
      loading (useful for tests).
    - Existing process env wins over the file.
    - When `strict=True` this validates REQUIRED_KEYS and raises EnvError.
    """
    load_env(
        Path(dotenv_path) if dotenv_path else None,
        override=False,
        required_keys=REQUIRED_KEYS,
        strict=strict,
    )

    return EnvCfg(
        TRACK17_API_KEY=os.getenv("TRACK17_API_KEY", ""),
        TRACK17_BASE_URL=os.getenv("TRACK17_BASE_URL") or DEFAULT_TRACK17_BASE_URL,
    )


def _courier_or_none(name: str, raw: str) -> Optional[KnownCourier]:
    value = raw.strip()
    if not value:
        return None
    try:
        return KnownCourier[value.upper()]
    except KeyError:
        known = ", ".join(c.name for c in KnownCourier)
        raise EnvError(f"{name}={raw!r} is not a known courier ({known})") from None


def load_selection_policy(base: Optional[SelectionPolicy] = None) -> SelectionPolicy:
    """
    Build the courier selection policy, applying any TRACKING_* overrides found
    in the environment on top of `base` (defaults when None).

    An empty TRACKING_OVERRIDE_COURIER / TRACKING_PREFERRED_COURIER disables
    that rule.
    """
    policy = base or SelectionPolicy()
    changes: dict = {}

    prefix = env("TRACKING_OVERRIDE_PREFIX")
    if prefix is not None:
        changes["override_prefix"] = prefix.strip() or None

    override = env("TRACKING_OVERRIDE_COURIER")
    if override is not None:
        changes["override_courier"] = _courier_or_none("TRACKING_OVERRIDE_COURIER", override)

    preferred = env("TRACKING_PREFERRED_COURIER")
    if preferred is not None:
        changes["preferred_courier"] = _courier_or_none("TRACKING_PREFERRED_COURIER", preferred)

    try:
        hours = env("TRACKING_CONTEMPORANEOUS_HOURS", cast=float)
    except ValueError as e:
        raise EnvError(f"TRACKING_CONTEMPORANEOUS_HOURS must be a number: {e}") from e
    if hours is not None:
        if hours < 0:
            raise EnvError("TRACKING_CONTEMPORANEOUS_HOURS must not be negative")
        changes["contemporaneous_window"] = timedelta(hours=hours)

    if not changes:
        return policy

    return replace(policy, **changes)


__all__ = [
    "EnvError",
    "REQUIRED_KEYS",
    "POLICY_KEYS",
    "load_project_dotenv",
    "load_env",
    "env",
    "get_app_env",
    "load_selection_policy",
]
