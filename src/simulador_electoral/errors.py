from __future__ import annotations


class SimuladorError(Exception):
    """Error base del simulador electoral."""


class IngestionError(SimuladorError):
    """La tabla de resultados no tiene una estructura válida."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line


class TransferModelError(SimuladorError):
    """No fue posible construir el modelo de transferencia de votos."""


class CoalitionError(SimuladorError):
    """No fue posible desagregar los votos de una coalición."""


class DispatcherError(SimuladorError):
    """Error propio del despachador (cola llena, detenido, etc.)."""
