"""Domain models for the backoffice service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Union

Number = Union[int, float]


@dataclass(frozen=True)
class UserAccount:
    """A self-registered account stored in the backoffice database."""

    id: int
    email: str
    created_at: datetime


@dataclass(frozen=True)
class AuthToken:
    """A signed bearer token handed out on successful admin login."""

    token: str
    subject_email: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Order:
    id: str
    customer_name: Optional[str]
    product_name: Optional[str]
    quantity: Optional[Number]
    price: Optional[Number]
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "productName": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


__all__ = ["AuthToken", "Number", "Order", "UserAccount"]
