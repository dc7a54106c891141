"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Union


@dataclass(frozen=True, slots=True)
class Observation:
    """A single sensor observation parsed from the input CSV."""

    ABSENT_UNIQUE_ID: ClassVar[str] = "0"

    x_position: float
    y_position: float
    sensor_id: str
    timestamp_id: str
    unique_id: str = ABSENT_UNIQUE_ID

    @property
    def has_unique_id(self) -> bool:
        return self.unique_id != self.ABSENT_UNIQUE_ID

    def projection(self) -> Dict[str, Union[float, str]]:
        """Position and sensor identity, as stored in ``cluster_data``."""

        return {
            "x_position": self.x_position,
            "y_position": self.y_position,
            "sensor_id": self.sensor_id,
        }


@dataclass(slots=True)
class Cluster:
    """Observations judged co-located, in the order they were added."""

    members: List[Observation] = field(default_factory=list)

    @classmethod
    def seed(cls, observation: Observation) -> "Cluster":
        return cls(members=[observation])

    def add(self, observation: Observation) -> None:
        self.members.append(observation)

    def __len__(self) -> int:
        return len(self.members)
