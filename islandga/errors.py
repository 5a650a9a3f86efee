# islandga/errors.py
"""Jerarquía de errores del motor. Ninguno es recuperable dentro del núcleo."""


class TimetableError(Exception):
    pass


class InvariantViolation(TimetableError):
    """Un individuo con genes desalineados o índices fuera de rango."""


class TransportError(TimetableError):
    """Fallo de comunicación entre islas (timeout, barrera rota, tag inesperado)."""


class WireFormatError(TransportError):
    """Registro de migración con longitud o valores inválidos."""
