"""Commit author identity for repository writes."""

import os
import subprocess
from dataclasses import dataclass

DEFAULT_NAME = "tracelink"
DEFAULT_EMAIL = "tracelink@localhost"


@dataclass(slots=True, frozen=True)
class AuthorInfo:
    """Author name and email; either may be unknown."""

    name: str | None
    email: str | None

    def format_identity(self) -> str:
        """Return ``Name <email>``, filling gaps with the tracelink defaults."""
        return f"{self.name or DEFAULT_NAME} <{self.email or DEFAULT_EMAIL}>"


def get_author_info() -> AuthorInfo:
    """Identify the author of commits, tags, and counter updates.

    ``TRACELINK_AUTHOR_NAME`` and ``TRACELINK_AUTHOR_EMAIL`` win; otherwise
    the values come from ``git config user.name`` and ``user.email``.
    """
    name = os.environ.get("TRACELINK_AUTHOR_NAME") or _git_config("user.name")
    email = os.environ.get("TRACELINK_AUTHOR_EMAIL") or _git_config("user.email")
    return AuthorInfo(name=name, email=email)


def _git_config(key: str) -> str | None:
    # Only plain dotted keys reach the subprocess
    if not key.replace(".", "").replace("_", "").isalnum():
        return None

    try:
        result = subprocess.run(  # noqa: S603
            ["git", "config", "--get", key],  # noqa: S607
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None
    return result.stdout.strip() or None
