"""Historia electoral por partido a lo largo de varios conjuntos de datos.

A partir de varios :class:`~simulador_electoral.ranking.HistoricalDataset` se
arma la serie de votos de cada partido, ordenada por el año que aparece en el
nombre del conjunto. Sobre esa serie se calculan la elasticidad del voto (piso,
techo y voto elástico), la media móvil exponencial y el RSI de tendencia, y el
rendimiento en listas abiertas frente a cerradas.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Dict, Iterable, List, Sequence

import numpy as np

from .config import CLOSED_LIST, EMA_PERIOD, LIST_ONLY_SENTINEL, OPEN_LIST, RSI_OVERBOUGHT, RSI_OVERSOLD
from .data_loader import AnalysisType, InvalidVoteCounts
from .normalization import normalize
from .numeric import round_half_up
from .ranking import HistoricalDataset


logger = logging.getLogger(__name__)

_YEAR_PATTERN = re.compile(r"\d{4}")


@dataclass(frozen=True)
class PartyHistoryPoint:
    """Votos de un partido en un conjunto de datos."""

    dataset_name: str
    votes: int


@dataclass
class PartyHistory:
    """Serie de votos de un partido, ordenada cronológicamente."""

    name: str
    color: str
    points: List[PartyHistoryPoint] = field(default_factory=list)

    @property
    def votes(self) -> List[int]:
        return [point.votes for point in self.points]


@dataclass(frozen=True)
class VoteElasticity:
    """Piso (voto inelástico), techo y rango disputado entre ambos."""

    inelastic_vote: int
    elastic_vote: int
    ceiling: int


@dataclass(frozen=True)
class TrendPoint:
    dataset_name: str
    votes: int
    ema: int
    rsi: float | None


@dataclass(frozen=True)
class ListPerformance:
    """Resultado de un partido en una elección, según el tipo de lista."""

    election_name: str
    year: int | None
    list_type: str
    votes: int
    vote_concentration: float | None
    invalid_vote_counts: InvalidVoteCounts


@dataclass(frozen=True)
class ListSummary:
    avg_open_votes: float | None
    avg_closed_votes: float | None
    avg_concentration: float | None


def dataset_year(name: str) -> int | None:
    match = _YEAR_PATTERN.search(name or "")
    return int(match.group(0)) if match else None


def build_party_history(datasets: Iterable[HistoricalDataset]) -> Dict[str, PartyHistory]:
    """Agrupa los totales por partido de cada conjunto en una serie por partido.

    Un conjunto repetido (mismo nombre) se cuenta una sola vez. Los conjuntos
    sin año en el nombre quedan al final, en orden alfabético.
    """

    histories: Dict[str, PartyHistory] = {}
    seen = set()
    for dataset in datasets:
        if dataset.name in seen:
            logger.debug("Conjunto %s repetido; se ignora", dataset.name)
            continue
        seen.add(dataset.name)
        for party in dataset.party_data:
            key = normalize(party.name)
            history = histories.setdefault(key, PartyHistory(name=party.name, color=party.color))
            history.points.append(PartyHistoryPoint(dataset_name=dataset.name, votes=party.votes))

    for history in histories.values():
        history.points.sort(key=lambda point: _chronological_key(point.dataset_name))
    return histories


def vote_elasticity(history: PartyHistory) -> VoteElasticity | None:
    """Piso y techo históricos; ``None`` con menos de dos elecciones."""

    votes = history.votes
    if len(votes) < 2:
        return None
    floor, ceiling = min(votes), max(votes)
    return VoteElasticity(inelastic_vote=floor, elastic_vote=ceiling - floor, ceiling=ceiling)


def exponential_moving_average(votes: Sequence[int], period: int = EMA_PERIOD) -> List[int]:
    """EMA con ``alpha = 2 / (periodo + 1)``; el periodo se acota al largo de la serie."""

    if not votes:
        return []
    alpha = 2 / (min(period, len(votes)) + 1)
    ema = [votes[0]]
    for value in votes[1:]:
        ema.append(round_half_up(value * alpha + ema[-1] * (1 - alpha)))
    return ema


def relative_strength_index(votes: Sequence[int]) -> List[float | None]:
    """RSI acumulado: en cada punto promedia las alzas y las bajas desde el inicio.

    El primer punto no tiene RSI. Sin bajas el RSI es 100.
    """

    if len(votes) < 2:
        return [None] * len(votes)

    rsi: List[float | None] = [None]
    for index in range(1, len(votes)):
        changes = np.diff(np.asarray(votes[: index + 1], dtype=float))
        gains = changes[changes > 0]
        losses = -changes[changes < 0]
        avg_gain = float(gains.mean()) if gains.size else 0.0
        avg_loss = float(losses.mean()) if losses.size else 0.0
        if avg_loss == 0:
            rsi.append(100.0)
            continue
        rsi.append(100 - 100 / (1 + avg_gain / avg_loss))
    return rsi


def trend_series(history: PartyHistory, period: int = EMA_PERIOD) -> List[TrendPoint]:
    votes = history.votes
    ema = exponential_moving_average(votes, period)
    rsi = relative_strength_index(votes)
    return [
        TrendPoint(dataset_name=point.dataset_name, votes=point.votes, ema=ema[index], rsi=rsi[index])
        for index, point in enumerate(history.points)
    ]


def rsi_diagnostic(rsi: float | None) -> str | None:
    if rsi is None:
        return None
    if rsi > RSI_OVERBOUGHT:
        return "Sobre-expansión"
    if rsi < RSI_OVERSOLD:
        return "Potencial de Recuperación"
    return "Momentum Estable"


def vote_concentration(candidate_votes: Sequence[int]) -> float:
    """Desviación estándar poblacional de los votos de los candidatos de una lista."""

    if len(candidate_votes) < 2:
        return 0.0
    return float(np.std(np.asarray(candidate_votes, dtype=float)))


def list_performance(datasets: Iterable[HistoricalDataset], party: str) -> List[ListPerformance]:
    """Rendimiento de ``party`` en cada conjunto donde compitió.

    Los conjuntos por candidato cuentan como lista abierta y se les calcula la
    concentración del voto entre candidatos; los demás son lista cerrada.
    """

    target = normalize(party)
    performances: List[ListPerformance] = []
    for dataset in datasets:
        totals = {normalize(aggregate.name): aggregate.votes for aggregate in dataset.party_data}
        if target not in totals:
            continue
        if dataset.analysis_type is AnalysisType.CANDIDATE:
            list_type = OPEN_LIST
            concentration = vote_concentration(
                [
                    record.votes
                    for record in dataset.records
                    if record.political_unit == target and normalize(record.candidate) != LIST_ONLY_SENTINEL
                ]
            )
        else:
            list_type = CLOSED_LIST
            concentration = None
        performances.append(
            ListPerformance(
                election_name=dataset.name,
                year=dataset_year(dataset.name),
                list_type=list_type,
                votes=totals[target],
                vote_concentration=concentration,
                invalid_vote_counts=dataset.invalid_vote_counts,
            )
        )
    return sorted(performances, key=lambda item: _chronological_key(item.election_name))


def summarize_list_performance(performances: Sequence[ListPerformance]) -> ListSummary:
    open_lists = [item for item in performances if item.list_type == OPEN_LIST]
    closed_lists = [item for item in performances if item.list_type == CLOSED_LIST]
    return ListSummary(
        avg_open_votes=_mean(item.votes for item in open_lists),
        avg_closed_votes=_mean(item.votes for item in closed_lists),
        avg_concentration=_mean(item.vote_concentration or 0 for item in open_lists),
    )


def _mean(values: Iterable[float]) -> float | None:
    values = list(values)
    return sum(values) / len(values) if values else None


def _chronological_key(name: str):
    year = dataset_year(name)
    return (year is None, year or 0, name)


__all__ = [
    "PartyHistoryPoint",
    "PartyHistory",
    "VoteElasticity",
    "TrendPoint",
    "ListPerformance",
    "ListSummary",
    "dataset_year",
    "build_party_history",
    "vote_elasticity",
    "exponential_moving_average",
    "relative_strength_index",
    "trend_series",
    "rsi_diagnostic",
    "vote_concentration",
    "list_performance",
    "summarize_list_performance",
]
