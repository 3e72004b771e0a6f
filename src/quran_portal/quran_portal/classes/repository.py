from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassLink, SchoolClass


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        raise NotImplementedError

    def list_all(self) -> Sequence[SchoolClass]:
        raise NotImplementedError

    def list_for_teacher(self, user_id: int) -> Sequence[SchoolClass]:
        raise NotImplementedError

    def create_class(self, name: str) -> int:
        raise NotImplementedError

    def rename(self, class_id: int, name: str) -> bool:
        raise NotImplementedError

    def delete_by_id(self, class_id: int) -> bool:
        raise NotImplementedError

    def assign_teacher(self, class_id: int, user_id: int) -> None:
        raise NotImplementedError

    def remove_teacher(self, class_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def list_teacher_ids(self, class_id: int) -> Sequence[int]:
        raise NotImplementedError

    def get_link_for(self, class_id: int) -> Optional[ClassLink]:
        raise NotImplementedError

    def create_link(self, *, weekday_class_id: int, weekend_class_id: int) -> int:
        raise NotImplementedError

    def delete_link(self, link_id: int) -> bool:
        raise NotImplementedError
