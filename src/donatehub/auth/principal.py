"""The authenticated caller, passed explicitly into every core operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from donatehub.db.models import User


@dataclass(frozen=True)
class Principal:
    """Resolved identity of the requester: who it is and which role it acts in."""

    id: str
    role: str
    username: str = ""

    @classmethod
    def from_user(cls, user: User) -> Principal:
        return cls(id=user.id, role=user.role, username=user.username)

    @property
    def is_ngo(self) -> bool:
        return self.role == "ngo"

    @property
    def is_donor(self) -> bool:
        return self.role == "donor"
