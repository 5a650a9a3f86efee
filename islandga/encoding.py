"""
Codifica y decodifica el registro de migración (enteros, longitud fija):

    [fitness, clase_0, dia_0, hora_0, aula_0, clase_1, dia_1, hora_1, aula_1, ...]

Longitud = 1 + 4 * num_clases. No lleva prefijo de longitud: ambos extremos
conocen ``num_classes`` de antemano. El fitness es solo informativo; el
receptor lo recalcula.
"""
import numpy as np

from .errors import InvariantViolation, WireFormatError
from .individual import Individual
from .model import Gene, TimeSlot, TimetableData

FIELDS_PER_GENE = 4
WIRE_DTYPE = np.int64


def record_length(num_classes: int) -> int:
    return 1 + FIELDS_PER_GENE * num_classes


def serialize_individual(ind: Individual) -> np.ndarray:
    record = np.empty(record_length(len(ind.genes)), dtype=WIRE_DTYPE)
    record[0] = ind.fitness
    body = record[1:].reshape(-1, FIELDS_PER_GENE)
    for i, g in enumerate(ind.genes):
        body[i] = (g.class_id, g.time_slot.day, g.time_slot.hour, g.room_id)
    return record


def deserialize_individual(record, data: TimetableData) -> Individual:
    """Reconstruye un individuo y recalcula su fitness localmente."""
    arr = np.asarray(record, dtype=WIRE_DTYPE)
    expected = record_length(data.num_classes)
    if arr.ndim != 1 or arr.size != expected:
        raise WireFormatError(
            f"El registro debe tener {expected} enteros (llegaron {arr.size})"
        )
    body = arr[1:].reshape(-1, FIELDS_PER_GENE)
    genes = [
        Gene(int(class_id), TimeSlot(int(day), int(hour)), int(room_id))
        for class_id, day, hour, room_id in body
    ]
    try:
        ind = Individual(genes, data)
    except InvariantViolation as exc:
        raise WireFormatError(f"Registro de migración inválido: {exc}") from exc
    ind.calculate_fitness()
    return ind
