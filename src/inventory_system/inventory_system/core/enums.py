from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization and the monitor rotation."""

    EMPLOYEE = "employee"
    MONITOR = "monitor"
    ADMIN = "admin"
