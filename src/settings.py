"""Settings shared by the contributor sync and author backfill jobs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from src.secrets import require_secrets

REQUIRED_SECRETS = ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "GITHUB_TOKEN"]

DEFAULT_REPO_OWNER = "babblebey"
DEFAULT_REPO_NAME = "fix-contributor-table"

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


def default_target_repo() -> Tuple[str, str]:
    """REPO_OWNER / REPO_NAME, else the invoking workflow's GITHUB_REPOSITORY."""

    owner_env = os.getenv("REPO_OWNER")
    name_env = os.getenv("REPO_NAME")
    invoking = os.getenv("GITHUB_REPOSITORY", "")
    inv_owner, _, inv_name = invoking.partition("/")
    owner = owner_env or inv_owner or DEFAULT_REPO_OWNER
    name = name_env or inv_name or DEFAULT_REPO_NAME
    return owner, name


@dataclass(frozen=True)
class Credentials:
    supabase_url: str
    supabase_key: str
    github_token: str


def load_credentials(secrets: Optional[Dict[str, str]] = None) -> Credentials:
    """Resolve credentials; raises MissingConfigurationError when any is absent."""

    values = require_secrets(REQUIRED_SECRETS, secrets)
    return Credentials(
        supabase_url=values["SUPABASE_URL"],
        supabase_key=values["SUPABASE_SERVICE_ROLE_KEY"],
        github_token=values["GITHUB_TOKEN"],
    )


__all__ = [
    "REQUIRED_SECRETS",
    "DEFAULT_REPO_OWNER",
    "DEFAULT_REPO_NAME",
    "Credentials",
    "default_target_repo",
    "env_flag",
    "load_credentials",
]
