"""
Configuración del algoritmo genético por islas.

Incluye un cargador desde YAML para dejar los parámetros de la corrida
reproducibles y configurables. Los valores por defecto son los de la
corrida de referencia (4 islas x 100 individuos, migración cada 50 gen).
"""
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Any, Optional

import yaml


@dataclass
class GAConfig:
    # Algoritmo genético (por isla)
    population_size: int = 100
    mutation_rate: float = 0.1
    crossover_rate: float = 0.8
    elite_count: int = 5
    tournament_size: int = 5
    max_generations: int = 1000

    # Modelo de islas
    num_islands: int = 4
    migration_interval: int = 50
    report_interval: int = 50
    base_seed: int = 12345
    seed_stride: int = 1000
    transport_timeout: Optional[float] = 60.0

    # Instancia aleatoria del problema
    num_classes: int = 40
    num_rooms: int = 8
    num_teachers: int = 10
    num_groups: int = 6
    problem_seed: int = 42

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GAConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        return cls(**merged)

    def __post_init__(self):
        if self.population_size < 1:
            raise ValueError("population_size debe ser >= 1")
        if not 0 <= self.elite_count <= self.population_size:
            raise ValueError("elite_count debe estar entre 0 y population_size")
        if self.tournament_size < 1:
            raise ValueError("tournament_size debe ser >= 1")
        for name in ("mutation_rate", "crossover_rate"):
            rate = getattr(self, name)
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"{name} debe estar en [0, 1]")
        if self.num_islands < 1:
            raise ValueError("num_islands debe ser >= 1")
        if self.migration_interval < 1 or self.report_interval < 1:
            raise ValueError("migration_interval y report_interval deben ser >= 1")

    def island_seed(self, rank: int) -> int:
        """Semilla propia de cada isla: reproducible y distinta entre islas."""
        return self.base_seed + rank * self.seed_stride

    def migration_due(self, generation: int) -> bool:
        return generation > 0 and generation % self.migration_interval == 0

    def report_due(self, generation: int) -> bool:
        return generation % self.report_interval == 0 or generation == self.max_generations - 1


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def load_config(path: str = "config.yaml") -> GAConfig:
    data = _load_yaml(Path(path))
    if not isinstance(data, dict):
        raise ValueError("config.yaml debe contener un objeto mapeo")
    return GAConfig.from_dict(data)
