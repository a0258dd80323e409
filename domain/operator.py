"""
Domain: Operators (cashiers) who register sales.

Authentication happens elsewhere; this type only carries identity and role so
that callers can perform capability checks before touching the cart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OperatorRole(str, Enum):
    ADMIN = "admin"
    SELLER = "seller"


@dataclass(frozen=True, slots=True)
class Operator:
    operator_id: int
    username: str
    full_name: str
    role: OperatorRole = OperatorRole.SELLER
    active: bool = True
    email: Optional[str] = None

    def is_admin(self) -> bool:
        return self.role is OperatorRole.ADMIN

    def can_apply_general_discount(self) -> bool:
        """Only administrators may set a discount on the whole sale."""
        return self.active and self.is_admin()
