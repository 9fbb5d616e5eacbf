"""Agregación de registros procesados en rankings y totales por partido."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .config import LIST_ONLY_SENTINEL
from .data_loader import AnalysisType, IngestionResult, InvalidVoteCounts, ProcessedRecord
from .normalization import normalize, party_color
from .numeric import round_half_up


@dataclass(frozen=True)
class CandidateRanking:
    """Poder electoral base de un candidato (o de un partido en modo lista)."""

    subject: str
    political_unit: str
    base_power: int


@dataclass(frozen=True)
class PartyAggregate:
    """Votos totales de una unidad política con su identificador y color."""

    id: int
    name: str
    votes: int
    color: str


@dataclass
class HistoricalDataset:
    """Conjunto de datos listo para comparar entre elecciones."""

    name: str
    records: List[ProcessedRecord]
    party_data: List[PartyAggregate]
    base_ranking: List[CandidateRanking]
    invalid_vote_counts: InvalidVoteCounts = field(default_factory=InvalidVoteCounts)
    analysis_type: AnalysisType = AnalysisType.PARTY


@dataclass
class _Accumulator:
    political_unit: str
    total: int = 0
    count: int = 0


def sort_ranking(ranking: Iterable[CandidateRanking]) -> List[CandidateRanking]:
    """Orden descendente por poder electoral; los empates conservan su posición."""

    return sorted(ranking, key=lambda entry: -entry.base_power)


def aggregate_ranking(
    records: Sequence[ProcessedRecord], analysis_type: AnalysisType | None = None
) -> List[CandidateRanking]:
    """Promedia los votos ajustados por candidato o, en modo lista, por partido."""

    if not records:
        return []
    if analysis_type is None:
        party_only = all(normalize(record.candidate) == LIST_ONLY_SENTINEL for record in records)
        analysis_type = AnalysisType.PARTY if party_only else AnalysisType.CANDIDATE

    accumulators: Dict[str, _Accumulator] = {}
    for record in records:
        if analysis_type is AnalysisType.PARTY:
            subject = record.political_unit
        else:
            if normalize(record.candidate) == LIST_ONLY_SENTINEL:
                continue
            subject = record.candidate
        current = accumulators.setdefault(subject, _Accumulator(record.political_unit))
        current.total += record.adjusted_votes
        current.count += 1

    return sort_ranking(
        CandidateRanking(
            subject=subject,
            political_unit=data.political_unit,
            base_power=round_half_up(data.total / data.count),
        )
        for subject, data in accumulators.items()
    )


def aggregate_party_votes(records: Iterable[ProcessedRecord]) -> List[PartyAggregate]:
    """Suma los votos sin ajustar de cada unidad política."""

    totals: Counter = Counter()
    for record in records:
        totals[record.political_unit] += record.votes

    # most_common conserva el orden de aparición en los empates.
    ordered = totals.most_common()
    return [
        PartyAggregate(id=index, name=name, votes=votes, color=party_color(name))
        for index, (name, votes) in enumerate(ordered, start=1)
    ]


def build_historical_dataset(name: str, result: IngestionResult) -> HistoricalDataset:
    return HistoricalDataset(
        name=name,
        records=list(result.records),
        party_data=aggregate_party_votes(result.records),
        base_ranking=aggregate_ranking(result.records, result.analysis_type),
        invalid_vote_counts=result.invalid_vote_counts,
        analysis_type=result.analysis_type,
    )


__all__ = [
    "CandidateRanking",
    "PartyAggregate",
    "HistoricalDataset",
    "sort_ranking",
    "aggregate_ranking",
    "aggregate_party_votes",
    "build_historical_dataset",
]
