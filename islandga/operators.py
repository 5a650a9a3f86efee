from typing import List, Sequence

from .model import Gene, TimeSlot, TimetableData


def random_time_slot(rng, data: TimetableData) -> TimeSlot:
    day = int(rng.integers(data.days_per_week))
    hour = int(rng.integers(data.hours_per_day))
    return TimeSlot(day, hour)


def random_room(rng, data: TimetableData) -> int:
    return int(rng.integers(data.num_rooms))


def random_gene(class_id: int, rng, data: TimetableData) -> Gene:
    return Gene(class_id, random_time_slot(rng, data), random_room(rng, data))


def one_point_crossover(genes_a: Sequence[Gene], genes_b: Sequence[Gene], point: int) -> List[Gene]:
    """Hijo = genes_a[:point] + genes_b[point:].

    Como la posición codifica el id de clase, el hijo siempre es válido
    y no necesita reparación.
    """
    return list(genes_a[:point]) + list(genes_b[point:])


def mutate_gene(gene: Gene, rng, data: TimetableData) -> Gene:
    """Nuevo gen para la misma clase: cambia el slot o el aula, nunca ambos."""
    if rng.random() < 0.5:
        return Gene(gene.class_id, random_time_slot(rng, data), gene.room_id)
    return Gene(gene.class_id, gene.time_slot, random_room(rng, data))


def tournament_selection(population: Sequence, rng, tournament_size: int = 5):
    """Toma k individuos con reemplazo y devuelve el de menor fitness.

    La comparación es estricta: en empates gana el primero muestreado.
    """
    best = population[int(rng.integers(len(population)))]
    for _ in range(1, tournament_size):
        competitor = population[int(rng.integers(len(population)))]
        if competitor.fitness < best.fitness:
            best = competitor
    return best
