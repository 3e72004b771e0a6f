from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...students.model import Student


@dataclass(frozen=True)
class LevelDecision:
    absence_level: int
    consecutive_absences: int
    # absence level whose preset goes to the family; None means no absence message
    notify_level: Optional[int] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: how marking a student updates their absence counters."""

    @abstractmethod
    def decide(self, *, student: Student) -> LevelDecision:
        raise NotImplementedError
