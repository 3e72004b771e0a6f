from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import RegistrationStatus, RegistrationType
from .model import Registration


class RegistrationRepository(Protocol):
    def get_by_id(self, registration_id: int) -> Optional[Registration]:
        """Registration with its students loaded."""
        raise NotImplementedError

    def list_all(self, *, status: Optional[RegistrationStatus] = None) -> Sequence[Registration]:
        raise NotImplementedError

    def create(
        self,
        *,
        email: str,
        parent_name: Optional[str],
        phone: str,
        registration_type: RegistrationType,
        students: Sequence[tuple[str, int]],
    ) -> int:
        raise NotImplementedError

    def update_status(self, registration_id: int, status: RegistrationStatus) -> bool:
        raise NotImplementedError
