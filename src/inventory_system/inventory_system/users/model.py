from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object (no DB access code). `role` is a projection of the
    monitor assignment state and is written only by MonitorService.
    """

    user_id: int
    full_name: str
    username: str
    role: Role
    is_active: bool = True
