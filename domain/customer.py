"""
Domain: Customers.

A sale always references a customer. When the cashier does not pick one, the
walk-in sentinel (id 1) is used; the store seeds it on initialisation and it
can never be deactivated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

WALK_IN_CUSTOMER_ID = 1


@dataclass(frozen=True, slots=True)
class Customer:
    customer_id: int
    full_name: str
    document_type: str = "DNI"
    document_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    active: bool = True

    @property
    def is_walk_in(self) -> bool:
        return self.customer_id == WALK_IN_CUSTOMER_ID


WALK_IN_CUSTOMER = Customer(
    customer_id=WALK_IN_CUSTOMER_ID,
    full_name="Walk-in Customer",
    document_type="DNI",
)
