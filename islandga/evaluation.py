# islandga/evaluation.py
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .model import Gene, TimetableData


@dataclass
class EvaluationResult:
    penalty: int
    teacher: int
    group: int
    room: int
    capacity: int


def _clash_count(occupied: np.ndarray, slot: int, entity: int) -> int:
    # La primera aparición marca la celda; cada aparición posterior suma 1
    # sin importar cuántas hubo antes (3 clases en el mismo slot => 2).
    clash = 1 if occupied[slot, entity] else 0
    occupied[slot, entity] = True
    return clash


def evaluate(genes: Sequence[Gene], data: TimetableData) -> EvaluationResult:
    """Cuenta las violaciones duras de una asignación completa."""
    n_slots = data.total_time_slots
    # Matrices [slot absoluto][entidad]: entidades ya vistas en ese slot
    teacher_at = np.zeros((n_slots, data.num_teachers), dtype=bool)
    group_at = np.zeros((n_slots, data.num_student_groups), dtype=bool)
    room_at = np.zeros((n_slots, data.num_rooms), dtype=bool)

    teacher = group = room = capacity = 0
    for g in genes:
        cls = data.get_class(g.class_id)
        slot = g.time_slot.absolute_slot
        teacher += _clash_count(teacher_at, slot, cls.teacher_id)
        group += _clash_count(group_at, slot, cls.student_group)
        room += _clash_count(room_at, slot, g.room_id)
        if cls.required_capacity > data.get_room(g.room_id).capacity:
            capacity += 1

    return EvaluationResult(
        penalty=teacher + group + room + capacity,
        teacher=teacher,
        group=group,
        room=room,
        capacity=capacity,
    )
