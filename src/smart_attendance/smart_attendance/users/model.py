from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a person known to the system (student, teacher, admin, ...).

    Plain data object; no database access here.
    """

    user_id: str
    full_name: str
    email: str
    role: Role
    rfid_card_id: Optional[str] = None
    department_id: Optional[str] = None
    is_active: bool = True
