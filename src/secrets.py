"""Utilities for loading local (gitignored) credentials."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_SECRETS_FILENAME = "local_secrets.json"

# environment variable -> key inside local_secrets.json
SECRET_KEYS = {
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_SERVICE_ROLE_KEY": "supabase_service_role_key",
    "GITHUB_TOKEN": "github_token",
}


def _default_secrets_path() -> Path:
    root = Path(__file__).resolve().parents[1]
    return root / DEFAULT_SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Load secrets from a JSON file; return {} when unavailable."""

    candidate = path or os.getenv("LOCAL_SECRETS_FILE") or _default_secrets_path()
    secrets_path = Path(candidate).expanduser()
    if not secrets_path.exists():
        return {}
    try:
        with secrets_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        print(f"[warn] could not read {secrets_path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def get_secret(env_var: str, secrets: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """Return a credential from the environment, falling back to local secrets."""

    value = os.getenv(env_var)
    if value:
        return value
    secrets = load_local_secrets() if secrets is None else secrets
    stored = secrets.get(SECRET_KEYS.get(env_var, env_var.lower()))
    return str(stored) if stored else None


class MissingConfigurationError(RuntimeError):
    """Raised at startup when required credentials are absent."""

    def __init__(self, missing: List[str]) -> None:
        super().__init__(f"Missing required environment variables: {', '.join(missing)}")
        self.missing = missing


def require_secrets(names: List[str], secrets: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Resolve every name or raise MissingConfigurationError listing the gaps."""

    secrets = load_local_secrets() if secrets is None else secrets
    resolved = {name: get_secret(name, secrets) for name in names}
    missing = [name for name, value in resolved.items() if not value]
    if missing:
        raise MissingConfigurationError(missing)
    return {name: str(value) for name, value in resolved.items()}


__all__ = [
    "load_local_secrets",
    "get_secret",
    "require_secrets",
    "MissingConfigurationError",
    "DEFAULT_SECRETS_FILENAME",
    "SECRET_KEYS",
]
