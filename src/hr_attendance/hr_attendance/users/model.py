from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import APPROVER_ROLES, Role


@dataclass(frozen=True)
class User:
    """Domain entity: directory user.

    The directory itself is owned by another service; this is the read
    projection attendance needs (identity and role).
    """

    user_id: int
    full_name: str
    email: str
    role: Role
    designation: Optional[str] = None

    @property
    def can_approve_leave(self) -> bool:
        return self.role in APPROVER_ROLES
