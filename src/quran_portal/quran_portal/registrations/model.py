from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import RegistrationStatus, RegistrationType


@dataclass(frozen=True)
class RegistrationStudent:
    id: int
    name: str
    age: int


@dataclass(frozen=True)
class Registration:
    registration_id: int
    email: str
    parent_name: Optional[str]
    phone: str
    registration_type: RegistrationType
    status: RegistrationStatus = RegistrationStatus.PENDING
    payment_status: str = "unpaid"
    created_at: Optional[datetime] = None
    students: tuple[RegistrationStudent, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "registration_id": self.registration_id,
            "email": self.email,
            "parent_name": self.parent_name,
            "phone": self.phone,
            "registration_type": self.registration_type.value,
            "status": self.status.value,
            "payment_status": self.payment_status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "students": [{"id": s.id, "name": s.name, "age": s.age} for s in self.students],
        }
