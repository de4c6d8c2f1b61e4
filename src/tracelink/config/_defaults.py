"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
    "ids": {
        "digits": 3,
        "kinds": {
            "requirement": {"prefix": "REQ", "folder": "requirements"},
            "useCase": {"prefix": "UC", "folder": "usecases"},
            "testCase": {"prefix": "TC", "folder": "testcases"},
            "information": {"prefix": "INFO", "folder": "information"},
            "risk": {"prefix": "RISK", "folder": "risks"},
            "link": {"prefix": "LINK", "folder": "links"},
            "project": {"prefix": "PROJ", "folder": "projects"},
        },
    },
    "sync": {
        "enabled": False,
        "remote": "origin",
        "branch": "main",
    },
    "baseline": {
        "history_limit": 5,
        "default_revision": "01",
    },
}
