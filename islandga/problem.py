# islandga/problem.py
from pathlib import Path

import numpy as np
import pandas as pd

from .model import Room, SchoolClass, TimetableData

SUBJECTS = ("Math", "Physics", "Chemistry", "Biology", "History", "English", "CS", "Art")


def generate_random(
    num_classes: int,
    num_rooms: int,
    num_teachers: int,
    num_groups: int,
    seed: int = 42,
) -> TimetableData:
    """Instancia aleatoria reproducible.

    Aulas con capacidad 20-50 y clases que requieren 15-40 plazas, de modo que
    algunas combinaciones clase/aula violan la capacidad.
    """
    rng = np.random.default_rng(seed)

    rooms = [Room(i, 20 + int(rng.integers(31))) for i in range(num_rooms)]
    classes = [
        SchoolClass(
            id=i,
            subject=SUBJECTS[int(rng.integers(len(SUBJECTS)))],
            teacher_id=int(rng.integers(num_teachers)),
            student_group=int(rng.integers(num_groups)),
            required_capacity=15 + int(rng.integers(26)),
        )
        for i in range(num_classes)
    ]
    return TimetableData(classes, rooms, num_teachers, num_groups)


def from_config(cfg) -> TimetableData:
    return generate_random(cfg.num_classes, cfg.num_rooms, cfg.num_teachers, cfg.num_groups, cfg.problem_seed)


def load_problem(data_dir: str) -> TimetableData:
    """Carga ``classes.csv`` y ``rooms.csv``.

    classes.csv: id, subject, teacher_id, student_group, required_capacity
    rooms.csv:   id, capacity

    Los ids se renumeran por posición (0, 1, 2...) para que el índice del gen
    coincida con el id de clase y el de aula con su posición.
    """
    classes_df = pd.read_csv(Path(data_dir) / "classes.csv").sort_values("id", kind="stable")
    rooms_df = pd.read_csv(Path(data_dir) / "rooms.csv").sort_values("id", kind="stable")

    # Un id negativo indexaría las matrices de ocupación desde el final
    for col in ("teacher_id", "student_group"):
        if (classes_df[col] < 0).any():
            raise ValueError(f"classes.csv: la columna {col} no admite valores negativos")

    rooms =[Room(i, int(r.capacity)) for i, r in enumerate(rooms_df.itertuples(index=False))]
    classes = [
        SchoolClass(
            id=i,
            subject=str(r.subject),
            teacher_id=int(r.teacher_id),
            student_group=int(r.student_group),
            required_capacity=int(r.required_capacity),
        )
        for i, r in enumerate(classes_df.itertuples(index=False))
    ]
    num_teachers = int(classes_df["teacher_id"].max()) + 1 if len(classes_df) else 0
    num_groups = int(classes_df["student_group"].max()) + 1 if len(classes_df) else 0
    return TimetableData(classes, rooms, num_teachers, num_groups)
