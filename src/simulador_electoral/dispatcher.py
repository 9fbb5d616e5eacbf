"""Despachador de tareas: ejecuta ingestas y simulaciones fuera del hilo interactivo.

Un único hilo trabajador consume una cola y procesa las solicitudes de a una,
en orden de llegada. Cada solicitud ``{"kind", "id", "payload"}`` produce
exactamente una respuesta ``{"kind": "success", "id", "payload"}`` o
``{"kind": "error", "id", "message"}``. Quien llama debe correlacionar por
``id``, nunca por orden de llegada. Una solicitud cuyo futuro se cancela antes
de procesarse se descarta sin respuesta.
"""
from __future__ import annotations

from concurrent.futures import Future, InvalidStateError
from dataclasses import asdict, is_dataclass
import logging
import queue
import threading
from typing import Any, Callable, Dict, List, Mapping

import numpy as np

from .data_loader import ingest, read_table
from .dhondt import allocate
from .errors import DispatcherError
from .ranking import CandidateRanking
from .scenarios import SimulationParams, run_scenario


logger = logging.getLogger(__name__)

Response = Dict[str, Any]
ResponseCallback = Callable[[Response], None]

_STOP = object()


def success(request_id, payload) -> Response:
    return {"kind": "success", "id": request_id, "payload": _to_wire(payload)}


def error(request_id, message: str) -> Response:
    return {"kind": "error", "id": request_id, "message": message}


class TaskDispatcher:
    """Serializa solicitudes sobre un solo trabajador.

    ``max_queue_size`` en 0 deja la cola sin límite; con límite, una solicitud
    que no cabe recibe de inmediato una respuesta de error.
    """

    def __init__(
        self,
        on_response: ResponseCallback | None = None,
        max_queue_size: int = 0,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._on_response = on_response
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._rng = rng
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._stopping = False
        self._handlers: Dict[str, Callable[[Mapping], Any]] = {
            "ingest": self._ingest,
            "simulate": self._simulate,
            "allocate": self._allocate,
        }

    # -- ciclo de vida -----------------------------------------------------

    @property
    def is_running(self) -> bool:
        """Indica si el despachador acepta solicitudes nuevas."""

        with self._lock:
            return self._thread is not None and self._thread.is_alive() and not self._stopping

    def start(self) -> "TaskDispatcher":
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return self
            self._stopping = False
            self._thread = threading.Thread(target=self._run, name="simulador-dispatcher", daemon=True)
            self._thread.start()
        return self

    def stop(self, timeout: float | None = None) -> None:
        """Procesa lo pendiente y detiene el trabajador.

        Desde que se llama, toda solicitud nueva recibe una respuesta de error.
        Si ``timeout`` vence con el trabajador ocupado, este sigue vivo y una
        llamada posterior vuelve a esperarlo.
        """

        with self._lock:
            thread = self._thread
            if thread is None:
                return
            already_stopping = self._stopping
            self._stopping = True
        if not already_stopping:
            self._queue.put(_STOP)
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("El trabajador sigue ocupado tras %s s de espera", timeout)
            return
        with self._lock:
            if self._thread is thread:
                self._thread = None
                self._stopping = False

    def __enter__(self) -> "TaskDispatcher":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # -- solicitudes -------------------------------------------------------

    def submit(self, request: Mapping) -> "Future[Response]":
        """Encola ``request``; el futuro se resuelve con la respuesta."""

        future: Future = Future()
        request_id = _request_id(request)
        with self._lock:
            if self._thread is None or self._stopping:
                rejection = DispatcherError("El despachador no está en ejecución.")
            else:
                try:
                    self._queue.put_nowait((request, future))
                    return future
                except queue.Full:
                    rejection = DispatcherError(
                        f"La cola del despachador está llena ({self._queue.maxsize} solicitudes)."
                    )
        logger.warning("Solicitud %r rechazada: %s", request_id, rejection)
        self._deliver(future, error(request_id, str(rejection)))
        return future

    def handle(self, request: Mapping) -> Response:
        """Procesa una solicitud de forma síncrona y entrega su respuesta."""

        request_id = _request_id(request)
        try:
            if not isinstance(request, Mapping):
                raise DispatcherError("La solicitud debe ser un diccionario con kind, id y payload.")
            kind = request.get("kind")
            handler = self._handlers.get(kind)
            if handler is None:
                raise DispatcherError(f"Tipo de mensaje desconocido: {kind}")
            return success(request_id, handler(request.get("payload") or {}))
        except Exception as exc:
            logger.exception("La solicitud %r falló", request_id)
            return error(request_id, str(exc) or exc.__class__.__name__)

    # -- interno -----------------------------------------------------------

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    self._drain()
                    return
                request, future = item
                if not future.set_running_or_notify_cancel():
                    logger.debug("Solicitud %r cancelada antes de procesarse", _request_id(request))
                    continue
                self._deliver(future, self.handle(request))
            finally:
                self._queue.task_done()

    def _drain(self) -> None:
        # Lo que quedó detrás de la señal de parada se responde con error.
        while True:
            try:
                request, future = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                if future.set_running_or_notify_cancel():
                    self._deliver(future, error(_request_id(request), "El despachador se detuvo."))
            finally:
                self._queue.task_done()

    def _deliver(self, future: Future, response: Response) -> None:
        try:
            future.set_result(response)
        except InvalidStateError:
            logger.warning("La solicitud %r ya no espera respuesta", response.get("id"))
            return
        if self._on_response is None:
            return
        try:
            self._on_response(response)
        except Exception:
            logger.exception("El callback de respuesta falló para %r", response.get("id"))

    def _ingest(self, payload: Mapping) -> Any:
        if "rows" in payload:
            rows = payload["rows"]
        elif "csv_text" in payload:
            rows = read_table(payload["csv_text"])
        else:
            raise DispatcherError("La ingesta requiere 'rows' o 'csv_text'.")
        return ingest(rows)

    def _simulate(self, payload: Mapping) -> Any:
        params = payload.get("params") or {}
        if not isinstance(params, SimulationParams):
            params = SimulationParams.from_dict(params)
        ranking = _ranking_from_payload(payload.get("ranking") or [])
        return run_scenario(ranking, params, rng=self._rng)

    def _allocate(self, payload: Mapping) -> Any:
        return allocate(payload.get("parties") or [], int(payload.get("seats", 0)))


def _request_id(request) -> Any:
    if isinstance(request, Mapping):
        return request.get("id")
    return None


def _ranking_from_payload(items) -> List[CandidateRanking]:
    ranking: List[CandidateRanking] = []
    for item in items:
        if isinstance(item, CandidateRanking):
            ranking.append(item)
        else:
            ranking.append(
                CandidateRanking(
                    subject=item["subject"],
                    political_unit=item["political_unit"],
                    base_power=int(item["base_power"]),
                )
            )
    return ranking


def _to_wire(payload: Any) -> Any:
    if is_dataclass(payload) and not isinstance(payload, type):
        return asdict(payload)
    return payload


__all__ = ["TaskDispatcher", "success", "error"]
