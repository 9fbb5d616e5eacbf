from __future__ import annotations

import pytest

from simulador_electoral.data_loader import ProcessedRecord
from simulador_electoral.ranking import CandidateRanking


def make_record(
    candidate: str,
    unit: str,
    votes: int,
    adjusted: int | None = None,
    election: str = "Senado",
    year: int = 2022,
) -> ProcessedRecord:
    return ProcessedRecord(
        election=election,
        year=year,
        candidate=candidate,
        political_unit=unit,
        votes=votes,
        is_list_head=False,
        alliance_id="",
        adjusted_votes=votes if adjusted is None else adjusted,
    )


def make_entry(subject: str, unit: str, power: int) -> CandidateRanking:
    return CandidateRanking(subject=subject, political_unit=unit, base_power=power)


class FixedRng:
    """Fuente aleatoria que siempre entrega el mismo valor."""

    def __init__(self, value: float) -> None:
        self.value = value

    def uniform(self, low, high, size=None):
        return self.value


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def entry():
    return make_entry
