# islandga/individual.py
from typing import List, Optional, Sequence

from .errors import InvariantViolation
from .evaluation import EvaluationResult, evaluate
from .model import Gene, TimetableData
from .operators import mutate_gene, one_point_crossover, random_gene


def _check_genes(genes: Sequence[Gene], data: TimetableData) -> None:
    if len(genes) != data.num_classes:
        raise InvariantViolation(
            f"Se esperaban {data.num_classes} genes y llegaron {len(genes)}"
        )
    for idx, g in enumerate(genes):
        if g.class_id != idx:
            raise InvariantViolation(f"Gen {idx} codifica la clase {g.class_id}")
        ts = g.time_slot
        if not (0 <= ts.day < data.days_per_week and 0 <= ts.hour < data.hours_per_day):
            raise InvariantViolation(f"Slot fuera de rango en gen {idx}: {ts.day}/{ts.hour}")
        if not 0 <= g.room_id < data.num_rooms:
            raise InvariantViolation(f"Aula fuera de rango en gen {idx}: {g.room_id}")


class Individual:
    """Un horario completo: un gen por clase, indexado por id de clase.

    El fitness (número de violaciones, 0 = horario válido) se calcula de
    forma perezosa y queda en caché hasta que algún gen cambia.
    """

    __slots__ = ("genes", "data", "_fitness")

    def __init__(self, genes: Sequence[Gene], data: TimetableData, fitness: Optional[int] = None):
        self.genes: List[Gene] = list(genes)
        self.data = data
        self._fitness = fitness
        _check_genes(self.genes, data)

    @classmethod
    def create_random(cls, data: TimetableData, rng) -> "Individual":
        return cls([random_gene(i, rng, data) for i in range(data.num_classes)], data)

    def calculate_fitness(self) -> int:
        self._fitness = evaluate(self.genes, self.data).penalty
        return self._fitness

    def evaluate(self) -> EvaluationResult:
        """Desglose de violaciones (docente, grupo, aula, capacidad)."""
        result = evaluate(self.genes, self.data)
        self._fitness = result.penalty
        return result

    @property
    def fitness(self) -> int:
        if self._fitness is None:
            return self.calculate_fitness()
        return self._fitness

    @property
    def has_fitness(self) -> bool:
        return self._fitness is not None

    def is_perfect(self) -> bool:
        return self.fitness == 0

    def crossover(self, other: "Individual", rng) -> "Individual":
        point = int(rng.integers(len(self.genes)))
        return self.crossover_at(other, point)

    def crossover_at(self, other: "Individual", point: int) -> "Individual":
        return Individual(one_point_crossover(self.genes, other.genes, point), self.data)

    def mutate(self, rate: float, rng) -> None:
        for i, g in enumerate(self.genes):
            if rng.random() < rate:
                self.genes[i] = mutate_gene(g, rng, self.data)
                self._fitness = None

    def copy(self) -> "Individual":
        # Los genes son inmutables: basta con una lista nueva
        return Individual(self.genes, self.data, fitness=self._fitness)

    def __repr__(self) -> str:
        return f"Individual(fitness={self.fitness})"
