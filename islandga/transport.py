"""
Transporte punto a punto entre islas, direccionado por rango entero.

``Transport`` es la interfaz que consume el coordinador de migración:
send/recv, reducción al mínimo, broadcast y barrera. ``QueueTransport`` la
implementa sobre un canal FIFO por par (origen, destino); las fábricas
construyen los extremos para hilos (``queue.Queue``) o para procesos
(colas y barrera de un ``multiprocessing.Manager``).
"""
import queue
import threading
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .errors import TransportError


TAG_MIGRATE = 2
TAG_REDUCE = 3
TAG_BCAST = 4
TAG_ABORT = -1


class Transport(ABC):
    rank: int
    size: int

    @abstractmethod
    def send(self, data: Any, dest: int, tag: int) -> None:
        ...

    @abstractmethod
    def recv(self, source: int, tag: int) -> Any:
        ...

    @abstractmethod
    def barrier(self) -> None:
        ...

    @abstractmethod
    def abort(self) -> None:
        ...

    def reduce_min(self, value: int, root: int = 0) -> int:
        """Mínimo global en ``root``; el resto de rangos recibe su valor local."""
        if self.rank != root:
            self.send(value, root, TAG_REDUCE)
            return value
        result = value
        for source in range(self.size):
            if source != root:
                result = min(result, self.recv(source, TAG_REDUCE))
        return result

    def bcast(self, value: Any, root: int = 0) -> Any:
        if self.rank == root:
            for dest in range(self.size):
                if dest != root:
                    self.send(value, dest, TAG_BCAST)
            return value
        return self.recv(root, TAG_BCAST)


class QueueTransport(Transport):
    """Un extremo de la red: ``channels[origen][destino]`` es una cola FIFO."""

    def __init__(self, rank: int, size: int, channels, barrier, timeout: Optional[float] = None):
        self.rank = rank
        self.size = size
        self._channels = channels
        self._barrier = barrier
        self._timeout = timeout

    def send(self, data: Any, dest: int, tag: int) -> None:
        self._channels[self.rank][dest].put((tag, data))

    def recv(self, source: int, tag: int) -> Any:
        try:
            got_tag, data = self._channels[source][self.rank].get(timeout=self._timeout)
        except queue.Empty as exc:
            raise TransportError(
                f"Rango {self.rank}: sin mensaje de {source} (tag {tag}) tras {self._timeout}s"
            ) from exc
        if got_tag == TAG_ABORT:
            raise TransportError(f"Rango {self.rank}: transporte abortado por otro rango")
        if got_tag != tag:
            raise TransportError(
                f"Rango {self.rank}: se esperaba tag {tag} de {source} y llegó {got_tag}"
            )
        return data

    def barrier(self) -> None:
        try:
            self._barrier.wait(self._timeout)
        except threading.BrokenBarrierError as exc:
            raise TransportError(f"Rango {self.rank}: barrera rota") from exc

    def abort(self) -> None:
        """Rompe la barrera y despierta a los receptores bloqueados.

        Cualquier ``recv`` o ``barrier`` pendiente en otro rango termina con
        ``TransportError``. El transporte queda inutilizable.
        """
        self._barrier.abort()
        for row in self._channels:
            for channel in row:
                channel.put((TAG_ABORT, None))


def _build(size: int, make_queue, barrier, timeout: Optional[float]) -> List[QueueTransport]:
    channels = [[make_queue() for _ in range(size)] for _ in range(size)]
    return [QueueTransport(rank, size, channels, barrier, timeout) for rank in range(size)]


def create_thread_transports(size: int, timeout: Optional[float] = None) -> List[QueueTransport]:
    return _build(size, queue.Queue, threading.Barrier(size), timeout)


def create_process_transports(size: int, manager, timeout: Optional[float] = None) -> List[QueueTransport]:
    """Extremos serializables para ``ProcessPoolExecutor`` (proxies del manager)."""
    return _build(size, manager.Queue, manager.Barrier(size), timeout)
