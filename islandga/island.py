import logging
import threading
from typing import List, Optional, Tuple

import numpy as np

from .individual import Individual
from .model import TimetableData
from .operators import tournament_selection

logger = logging.getLogger(__name__)


class Island:
    """Una población que evoluciona de forma independiente.

    Cada isla tiene su propio generador aleatorio (semilla distinta por
    isla). ``evolve`` es el único método que reemplaza la población y todos
    los accesos toman el mismo lock, así que nadie observa una población a
    medio reemplazar.
    """

    def __init__(
        self,
        data: TimetableData,
        population_size: int,
        mutation_rate: float,
        crossover_rate: float,
        elite_count: int,
        seed: int,
        tournament_size: int = 5,
        name: Optional[str] = None,
    ):
        self.data = data
        self.population_size = population_size
        self.mutation_rate = mutation_rate
        self.crossover_rate = crossover_rate
        self.elite_count = elite_count
        self.tournament_size = tournament_size
        self.name = name or f"isla-{seed}"
        self.generation = 0
        self._rng = np.random.default_rng(seed)
        self._lock = threading.RLock()
        self._population: List[Individual] = [
            Individual.create_random(data, self._rng) for _ in range(population_size)
        ]
        self._evaluate_population()

    @classmethod
    def from_config(cls, data: TimetableData, cfg, rank: int) -> "Island":
        return cls(
            data,
            population_size=cfg.population_size,
            mutation_rate=cfg.mutation_rate,
            crossover_rate=cfg.crossover_rate,
            elite_count=cfg.elite_count,
            seed=cfg.island_seed(rank),
            tournament_size=cfg.tournament_size,
            name=f"isla-{rank}",
        )

    def _evaluate_population(self) -> None:
        for ind in self._population:
            if not ind.has_fitness:
                ind.calculate_fitness()

    @property
    def population(self) -> Tuple[Individual, ...]:
        with self._lock:
            return tuple(self._population)

    def evolve(self) -> None:
        """Una generación: elitismo + torneo + cruce + mutación."""
        with self._lock:
            # sort es estable: en empates se conserva el orden original
            self._population.sort(key=lambda ind: ind.fitness)

            new_population = [ind.copy() for ind in self._population[: self.elite_count]]

            while len(new_population) < self.population_size:
                parent1 = tournament_selection(self._population, self._rng, self.tournament_size)
                parent2 = tournament_selection(self._population, self._rng, self.tournament_size)
                if self._rng.random() < self.crossover_rate:
                    child = parent1.crossover(parent2, self._rng)
                else:
                    child = parent1.copy()
                child.mutate(self.mutation_rate, self._rng)
                new_population.append(child)

            self._population = new_population
            self._evaluate_population()
            self.generation += 1
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "%s gen %d: best=%d avg=%.2f",
                    self.name, self.generation, self.get_best().fitness, self.get_average_fitness(),
                )

    def get_best(self) -> Individual:
        with self._lock:
            return min(self._population, key=lambda ind: ind.fitness)

    def get_worst(self) -> Individual:
        with self._lock:
            return max(self._population, key=lambda ind: ind.fitness)

    def get_best_copy(self) -> Individual:
        """Copia independiente del mejor, para cruzar una frontera de propiedad."""
        with self._lock:
            return self.get_best().copy()

    def receive_immigrant(self, immigrant: Individual) -> bool:
        """Reemplaza al peor si el inmigrante es estrictamente mejor.

        El inmigrante pasa a ser propiedad de esta isla: quien llama debe
        entregar una copia.
        """
        with self._lock:
            worst_index = 0
            worst_fitness = self._population[0].fitness
            for i in range(1, len(self._population)):
                if self._population[i].fitness > worst_fitness:
                    worst_fitness = self._population[i].fitness
                    worst_index = i

            if immigrant.fitness < worst_fitness:
                self._population[worst_index] = immigrant
                return True
            return False

    def get_average_fitness(self) -> float:
        with self._lock:
            if not self._population:
                return 0.0
            return sum(ind.fitness for ind in self._population) / len(self._population)

    def has_perfect_solution(self) -> bool:
        with self._lock:
            return self.get_best().is_perfect()

    def __repr__(self) -> str:
        return f"Island({self.name}, gen={self.generation}, size={len(self._population)})"
