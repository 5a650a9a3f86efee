"""
Drivers del modelo de islas: generaciones en pasos sincronizados.

Ninguna isla empieza la generación g+1 hasta que todas terminaron g y la
migración de g (si toca) se completó. En memoria compartida la barrera es la
espera de todas las tareas del pool; en paso de mensajes cada rango cierra la
generación con ``transport.barrier()``.
"""
import logging
import multiprocessing
import time
from concurrent.futures import FIRST_EXCEPTION, ProcessPoolExecutor, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np

from .config import GAConfig
from .encoding import deserialize_individual, serialize_individual
from .individual import Individual
from .island import Island
from .migration import RingMigration, SharedMemoryMigration
from .model import TimetableData
from .transport import Transport, create_process_transports, create_thread_transports

logger = logging.getLogger(__name__)

BACKENDS = ("threads", "processes")


@dataclass
class WorkerResult:
    rank: int
    generations: int
    best_record: np.ndarray
    history: List[Dict] = field(default_factory=list)


@dataclass
class RunResult:
    best: Individual
    generations: int
    elapsed: float
    history: List[Dict] = field(default_factory=list)

    @property
    def found_perfect(self) -> bool:
        return self.best.is_perfect()


def global_best(islands: Sequence[Island]) -> Individual:
    """Mejor de todas las islas; en empates, la isla de menor índice."""
    return min((island.get_best() for island in islands), key=lambda ind: ind.fitness)


def run_shared_memory(data: TimetableData, cfg: GAConfig) -> RunResult:
    """Todas las islas en un proceso; una tarea por isla y generación."""
    start = time.perf_counter()
    islands = [Island.from_config(data, cfg, rank) for rank in range(cfg.num_islands)]
    migration = SharedMemoryMigration()
    history: List[Dict] = []
    generations = 0

    with ThreadPoolExecutor(max_workers=cfg.num_islands) as pool:
        for generation in range(cfg.max_generations):
            # result() propaga cualquier excepción de una isla
            for fut in [pool.submit(island.evolve) for island in islands]:
                fut.result()
            generations = generation + 1

            if cfg.migration_due(generation):
                migration.migrate(islands)

            if cfg.report_due(generation):
                best = global_best(islands)
                avg = sum(island.get_average_fitness() for island in islands) / len(islands)
                history.append({"gen": generation, "global_best": best.fitness, "avg_fitness": avg})
                logger.info("Gen %4d | Global Best=%3d | Global Avg=%6.2f", generation, best.fitness, avg)
                if best.is_perfect():
                    logger.info("Solución perfecta en la generación %d", generation)
                    break

    best = global_best(islands).copy()
    return RunResult(best, generations, time.perf_counter() - start, history)


def island_worker(transport: Transport, data: TimetableData, cfg: GAConfig) -> WorkerResult:
    """Bucle de un rango: una isla, migración en anillo y parada global."""
    rank = transport.rank
    island = Island.from_config(data, cfg, rank)
    migration = RingMigration(transport, data)
    history: List[Dict] = []
    generations = 0

    for generation in range(cfg.max_generations):
        island.evolve()
        generations = generation + 1

        if cfg.migration_due(generation):
            migration.migrate(island)

        stop = False
        if cfg.report_due(generation):
            best_fitness = migration.global_best_fitness(island)
            if rank == 0:
                avg = island.get_average_fitness()
                history.append({"gen": generation, "global_best": best_fitness, "avg_fitness": avg})
                logger.info(
                    "Gen %4d | Isla 0: Best=%3d Avg=%6.2f | Global Best=%3d",
                    generation, island.get_best().fitness, avg, best_fitness,
                )
            stop = migration.broadcast_stop(best_fitness)

        # nadie empieza g+1 hasta que todos cerraron g
        transport.barrier()
        if stop:
            break

    return WorkerResult(rank, generations, serialize_individual(island.get_best()), history)


def _collect(pool, transports: Sequence[Transport], data: TimetableData, cfg: GAConfig) -> List[WorkerResult]:
    """Resultados por rango; el primer fallo aborta el transporte y se propaga tal cual."""
    futures = [pool.submit(island_worker, t, data, cfg) for t in transports]
    done, _ = wait(futures, return_when=FIRST_EXCEPTION)
    for fut in futures:
        if fut in done and fut.exception() is not None:
            transports[0].abort()
            raise fut.exception()
    return [f.result() for f in futures]


def run_message_passing(data: TimetableData, cfg: GAConfig, backend: str = "threads") -> RunResult:
    """Un worker por isla comunicado solo por el transporte.

    Con ``processes`` cada isla corre en su propio proceso y recibe una copia
    de los datos del problema.
    """
    if backend not in BACKENDS:
        raise ValueError(f"backend desconocido: {backend!r} (opciones: {BACKENDS})")

    start = time.perf_counter()
    n = cfg.num_islands
    if backend == "threads":
        transports = create_thread_transports(n, cfg.transport_timeout)
        with ThreadPoolExecutor(max_workers=n) as pool:
            results = _collect(pool, transports, data, cfg)
    else:
        with multiprocessing.Manager() as manager, ProcessPoolExecutor(max_workers=n) as pool:
            transports = create_process_transports(n, manager, cfg.transport_timeout)
            results = _collect(pool, transports, data, cfg)

    results.sort(key=lambda r: r.rank)
    candidates = [deserialize_individual(r.best_record, data) for r in results]
    best = min(candidates, key=lambda ind: ind.fitness)
    return RunResult(best, results[0].generations, time.perf_counter() - start, results[0].history)
