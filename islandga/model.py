# islandga/model.py
from dataclasses import dataclass
from typing import List

DAYS_PER_WEEK = 5
HOURS_PER_DAY = 8
DAY_NAMES = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes")


@dataclass(frozen=True)
class TimeSlot:
    day: int    # 0..4 (lunes-viernes)
    hour: int   # 0..7 (08:00-15:00)

    @property
    def absolute_slot(self) -> int:
        return self.day * HOURS_PER_DAY + self.hour

    def __str__(self) -> str:
        return f"{DAY_NAMES[self.day][:3]} {8 + self.hour}:00"


@dataclass(frozen=True)
class SchoolClass:
    id: int
    subject: str
    teacher_id: int
    student_group: int
    required_capacity: int


@dataclass(frozen=True)
class Room:
    id: int
    capacity: int


@dataclass(frozen=True)
class Gene:
    # Un “gen” = (qué clase, cuándo, dónde)
    class_id: int
    time_slot: TimeSlot
    room_id: int


@dataclass(frozen=True)
class TimetableData:
    """Datos del problema. Se construyen una vez y nunca se modifican."""
    classes: List[SchoolClass]
    rooms: List[Room]
    num_teachers: int
    num_student_groups: int
    days_per_week: int = DAYS_PER_WEEK
    hours_per_day: int = HOURS_PER_DAY

    @property
    def num_classes(self) -> int:
        return len(self.classes)

    @property
    def num_rooms(self) -> int:
        return len(self.rooms)

    @property
    def total_time_slots(self) -> int:
        return self.days_per_week * self.hours_per_day

    def get_class(self, class_id: int) -> SchoolClass:
        return self.classes[class_id]

    def get_room(self, room_id: int) -> Room:
        return self.rooms[room_id]

    def __str__(self) -> str:
        return (
            f"TimetableData(clases={self.num_classes}, aulas={self.num_rooms}, "
            f"docentes={self.num_teachers}, grupos={self.num_student_groups})"
        )
