from __future__ import annotations

import threading
import time

import numpy as np

from simulador_electoral.dispatcher import TaskDispatcher


def _rows():
    return [
        {"Eleccion": "Senado", "Año": "2022", "UnidadPolitica": "Partido X", "Candidato": "Ana", "Votos": "900"},
        {"Eleccion": "Senado", "Año": "2022", "UnidadPolitica": "", "Candidato": "NULOS", "Votos": "15"},
    ]


def test_unknown_kind_returns_error_with_same_id():
    response = TaskDispatcher().handle({"kind": "explode", "id": "req-7", "payload": {}})

    assert response["kind"] == "error"
    assert response["id"] == "req-7"
    assert "explode" in response["message"]


def test_malformed_request_does_not_raise():
    response = TaskDispatcher().handle(["not", "a", "request"])

    assert response["kind"] == "error"
    assert response["id"] is None


def test_ingest_request_returns_processed_payload():
    response = TaskDispatcher().handle({"kind": "ingest", "id": 1, "payload": {"rows": _rows()}})

    assert response["kind"] == "success"
    assert response["id"] == 1
    payload = response["payload"]
    assert payload["invalid_vote_counts"] == {"blank_votes": 0, "null_votes": 15}
    assert payload["records"][0]["political_unit"] == "PARTIDO X"
    assert payload["analysis_type"] == "candidate"


def test_ingest_from_csv_text():
    csv_text = "UnidadPolitica,Candidato,Votos\nPartido X,Ana,10\n"

    response = TaskDispatcher().handle({"kind": "ingest", "id": "c", "payload": {"csv_text": csv_text}})

    assert response["kind"] == "success"
    assert response["payload"]["records"][0]["votes"] == 10


def test_ingestion_errors_become_error_responses():
    response = TaskDispatcher().handle({"kind": "ingest", "id": "x", "payload": {"rows": [_rows()[0], 42]}})

    assert response["kind"] == "error"
    assert "línea 3" in response["message"]


def test_simulate_request_runs_scenario():
    request = {
        "kind": "simulate",
        "id": "sim",
        "payload": {
            "params": {"threshold": 950, "monte_carlo_iterations": 10, "deviation": 0.0},
            "ranking": [
                {"subject": "Ana", "political_unit": "PARTIDO X", "base_power": 1000},
                {"subject": "Luis", "political_unit": "PARTIDO Y", "base_power": 900},
            ],
        },
    }

    response = TaskDispatcher(rng=np.random.default_rng(0)).handle(request)

    assert response["kind"] == "success"
    probabilities = response["payload"]["probabilities"]
    assert [(p["subject"], p["win_probability"]) for p in probabilities] == [("Ana", 100.0), ("Luis", 0.0)]


def test_allocate_request():
    request = {
        "kind": "allocate",
        "id": "d",
        "payload": {"parties": [{"name": "A", "votes": 100}, {"name": "B", "votes": 60}], "seats": 2},
    }

    response = TaskDispatcher().handle(request)

    assert [(seat["party"], seat["seats"]) for seat in response["payload"]["seats"]] == [("A", 1), ("B", 1)]


def test_worker_answers_every_request_by_id():
    received = []
    with TaskDispatcher(on_response=received.append) as dispatcher:
        futures = [
            dispatcher.submit({"kind": "ingest", "id": "ok", "payload": {"rows": _rows()}}),
            dispatcher.submit({"kind": "nope", "id": "bad", "payload": {}}),
            dispatcher.submit({"kind": "allocate", "id": "seats", "payload": {"parties": [], "seats": 3}}),
        ]
        responses = [future.result(timeout=5) for future in futures]

    assert [(r["id"], r["kind"]) for r in responses] == [("ok", "success"), ("bad", "error"), ("seats", "success")]
    assert {r["id"] for r in received} == {"ok", "bad", "seats"}


def test_submit_without_worker_is_rejected():
    response = TaskDispatcher().submit({"kind": "ingest", "id": "late", "payload": {}}).result(timeout=1)

    assert response["kind"] == "error"
    assert response["id"] == "late"


def test_full_queue_rejects_requests():
    entered = threading.Event()
    release = threading.Event()

    def _block_first(response):
        if response["id"] == "first":
            entered.set()
            release.wait(5)

    dispatcher = TaskDispatcher(on_response=_block_first, max_queue_size=1).start()
    try:
        first = dispatcher.submit({"kind": "allocate", "id": "first", "payload": {}})
        assert entered.wait(5)
        queued = dispatcher.submit({"kind": "allocate", "id": "queued", "payload": {}})
        rejected = dispatcher.submit({"kind": "allocate", "id": "rejected", "payload": {}})

        overflow = rejected.result(timeout=1)
        assert overflow["kind"] == "error"
        assert overflow["id"] == "rejected"
    finally:
        release.set()
        dispatcher.stop(timeout=5)

    assert first.result(timeout=1)["kind"] == "success"
    assert queued.result(timeout=1)["kind"] == "success"


def _blocking_callback(blocked_id):
    entered = threading.Event()
    release = threading.Event()

    def _callback(response):
        if response["id"] == blocked_id:
            entered.set()
            release.wait(5)

    return _callback, entered, release


def test_cancelled_request_does_not_kill_the_worker():
    callback, entered, release = _blocking_callback("slow")
    received = []

    def _record(response):
        received.append(response["id"])
        callback(response)

    dispatcher = TaskDispatcher(on_response=_record).start()
    try:
        dispatcher.submit({"kind": "allocate", "id": "slow", "payload": {}})
        assert entered.wait(5)
        stale = dispatcher.submit({"kind": "allocate", "id": "stale", "payload": {}})
        assert stale.cancel()
        release.set()

        after = dispatcher.submit({"kind": "allocate", "id": "after", "payload": {}}).result(timeout=5)
        assert after["kind"] == "success"
        assert dispatcher.is_running
    finally:
        release.set()
        dispatcher.stop(timeout=5)

    assert stale.cancelled()
    assert received == ["slow", "after"]


def test_submit_while_stopping_is_rejected():
    callback, entered, release = _blocking_callback("slow")
    dispatcher = TaskDispatcher(on_response=callback).start()
    slow = dispatcher.submit({"kind": "allocate", "id": "slow", "payload": {}})
    assert entered.wait(5)

    stopper = threading.Thread(target=dispatcher.stop, kwargs={"timeout": 5})
    stopper.start()
    deadline = time.monotonic() + 5
    while dispatcher.is_running and time.monotonic() < deadline:
        time.sleep(0.01)

    try:
        late = dispatcher.submit({"kind": "allocate", "id": "late", "payload": {}}).result(timeout=1)
    finally:
        release.set()
        stopper.join(5)

    assert late["kind"] == "error"
    assert late["id"] == "late"
    assert slow.result(timeout=1)["kind"] == "success"
    assert not stopper.is_alive()


def test_dispatcher_can_be_restarted_after_stop():
    dispatcher = TaskDispatcher()
    with dispatcher:
        assert dispatcher.is_running
    assert not dispatcher.is_running

    with dispatcher:
        response = dispatcher.submit({"kind": "allocate", "id": "again", "payload": {}}).result(timeout=5)

    assert response["kind"] == "success"
