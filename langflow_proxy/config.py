# Role: Central configuration module. Loads .env into environment variables, computes runtime flags (DEBUG),
# and builds the LangflowConfig that gets injected into the client (adapters never read os.environ themselves).

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEBUG: bool = False

DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class LangflowConfig:
    base_url: str
    application_token: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


def load_env() -> None:
    """
    Load .env into os.environ, then recompute DEBUG.
    This makes DEBUG correct even if load_env() is called after import.
    """
    global DEBUG
    load_dotenv()
    # Key line: accept common truthy values.
    DEBUG = os.getenv("DEBUG", "0").lower() in {"1", "true", "yes"}


def langflow_config_from_env() -> LangflowConfig:
    # Missing URL/token are not validated here; the outbound call fails instead.
    base_url = os.getenv("LANGFLOW_BASE_URL") or os.getenv("NEXT_PUBLIC_BASE_URL") or ""
    token = os.getenv("LANGFLOW_APPLICATION_TOKEN", "")

    raw_timeout = os.getenv("LANGFLOW_TIMEOUT_SECONDS")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        timeout = DEFAULT_TIMEOUT_SECONDS

    return LangflowConfig(
        base_url=base_url.rstrip("/"),
        application_token=token,
        timeout_seconds=timeout,
    )
