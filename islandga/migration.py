"""
Migración en anillo entre islas.

La isla ``r`` envía a ``(r + 1) % N`` y recibe de ``(r - 1 + N) % N``. Hay dos
variantes equivalentes: por paso de mensajes (``RingMigration``, un objeto
por rango sobre un ``Transport``) y en memoria compartida
(``SharedMemoryMigration``, el driver ve todas las islas). Ambas toman primero
una instantánea del mejor de cada isla y después la entregan, y deben dar el
mismo resultado de aceptación/rechazo para los mismos estados.
"""
import logging
from typing import List, Sequence, Tuple

from .encoding import deserialize_individual, serialize_individual
from .island import Island
from .model import TimetableData
from .transport import TAG_MIGRATE, Transport

logger = logging.getLogger(__name__)


def ring_neighbors(rank: int, size: int) -> Tuple[int, int]:
    """(sucesor, predecesor) de ``rank`` en el anillo."""
    return (rank + 1) % size, (rank - 1 + size) % size


class RingMigration:
    def __init__(self, transport: Transport, data: TimetableData):
        self.transport = transport
        self.data = data

    def migrate(self, island: Island) -> bool:
        """Intercambia el mejor con los vecinos; devuelve si se aceptó el inmigrante.

        Rangos pares envían y luego reciben; impares reciben y luego envían,
        para que un intercambio síncrono no quede en espera circular.
        """
        rank, size = self.transport.rank, self.transport.size
        next_rank, prev_rank = ring_neighbors(rank, size)

        outgoing = serialize_individual(island.get_best())
        if rank % 2 == 0:
            self.transport.send(outgoing, next_rank, TAG_MIGRATE)
            incoming = self.transport.recv(prev_rank, TAG_MIGRATE)
        else:
            incoming = self.transport.recv(prev_rank, TAG_MIGRATE)
            self.transport.send(outgoing, next_rank, TAG_MIGRATE)

        immigrant = deserialize_individual(incoming, self.data)
        accepted = island.receive_immigrant(immigrant)
        logger.info(
            "Rango %d: inmigrante de %d (fitness=%d) %s",
            rank, prev_rank, immigrant.fitness, "aceptado" if accepted else "descartado",
        )
        return accepted

    def global_best_fitness(self, island: Island, root: int = 0) -> int:
        """Mínimo global en ``root``; en los demás rangos, el mejor local."""
        return self.transport.reduce_min(island.get_best().fitness, root)

    def broadcast_stop(self, global_best: int, root: int = 0) -> bool:
        """``root`` decide (mínimo global == 0) y todos los rangos reciben la señal."""
        flag = global_best == 0 if self.transport.rank == root else None
        return bool(self.transport.bcast(flag, root))


class SharedMemoryMigration:
    def migrate(self, islands: Sequence[Island]) -> List[bool]:
        """Entrega la copia del mejor de la isla i a la isla (i + 1) % N.

        Todas las copias se toman antes de modificar ninguna isla. El
        resultado se indexa por isla destino, como en ``RingMigration``.
        """
        migrants = [island.get_best_copy() for island in islands]
        accepted = [False] * len(islands)
        for i, immigrant in enumerate(migrants):
            dest, _ = ring_neighbors(i, len(islands))
            ok = islands[dest].receive_immigrant(immigrant)
            logger.info(
                "Isla %d -> %d: inmigrante (fitness=%d) %s",
                i, dest, immigrant.fitness, "aceptado" if ok else "descartado",
            )
            accepted[dest] = ok
        return accepted
