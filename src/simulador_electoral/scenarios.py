"""Transformaciones de escenario sobre un ranking de poder electoral.

Cada transformación es pura: recibe un ranking y devuelve uno nuevo, ordenado
de mayor a menor. El orden de aplicación importa porque cada paso lee el poder
que dejó el anterior; :func:`run_scenario` usa el orden documentado:
fragmentación, penalización al oficialismo, efecto arrastre, apoyo local y
fuerza de campaña.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from typing import Dict, Iterable, List, Mapping, Sequence

import numpy as np

from .config import (
    CAMPAIGN_STRENGTH_FACTORS,
    COATTAIL_FACTORS,
    INCUMBENCY_PENALTY_RANGE,
    LOCAL_SUPPORT_FACTORS,
    MONTE_CARLO_DEVIATION,
)
from .monte_carlo import ProbabilityResult, run_monte_carlo
from .numeric import round_half_up
from .ranking import CandidateRanking, sort_ranking


logger = logging.getLogger(__name__)


class CoattailStrength(str, Enum):
    NONE = "Nulo"
    MODERATE = "Moderado"
    STRONG = "Fuerte"

    @property
    def factor(self) -> float:
        return COATTAIL_FACTORS[self.value]


class LocalSupportLevel(str, Enum):
    NONE = "Nulo"
    LOW = "Bajo"
    MEDIUM = "Medio"
    HIGH = "Alto"

    @property
    def factor(self) -> float:
        return LOCAL_SUPPORT_FACTORS[self.value]


class CampaignStrengthLevel(str, Enum):
    LOW = "Baja"
    MEDIUM = "Media"
    HIGH = "Alta"

    @property
    def factor(self) -> float:
        return CAMPAIGN_STRENGTH_FACTORS[self.value]


@dataclass(frozen=True)
class CoattailEffect:
    unit: str = ""
    strength: CoattailStrength = CoattailStrength.NONE


@dataclass(frozen=True)
class LocalSupport:
    unit: str
    level: LocalSupportLevel


@dataclass(frozen=True)
class CampaignStrength:
    unit: str
    level: CampaignStrengthLevel


@dataclass
class SimulationParams:
    """Parámetros de un escenario completo."""

    fragmentation_unit: str = ""
    num_candidates: int = 1
    government_parties: List[str] = field(default_factory=list)
    threshold: float = 0
    monte_carlo_iterations: int = 0
    local_support: List[LocalSupport] = field(default_factory=list)
    campaign_strength: List[CampaignStrength] = field(default_factory=list)
    coattail_effect: CoattailEffect = field(default_factory=CoattailEffect)
    deviation: float = MONTE_CARLO_DEVIATION

    @classmethod
    def from_dict(cls, data: Mapping) -> "SimulationParams":
        coattail = data.get("coattail_effect") or {}
        return cls(
            fragmentation_unit=data.get("fragmentation_unit") or "",
            num_candidates=int(data.get("num_candidates", 1)),
            government_parties=list(data.get("government_parties") or []),
            threshold=float(data.get("threshold", 0)),
            monte_carlo_iterations=int(data.get("monte_carlo_iterations", 0)),
            local_support=[
                LocalSupport(unit=item["unit"], level=LocalSupportLevel(item["level"]))
                for item in data.get("local_support") or []
            ],
            campaign_strength=[
                CampaignStrength(unit=item["unit"], level=CampaignStrengthLevel(item["level"]))
                for item in data.get("campaign_strength") or []
            ],
            coattail_effect=CoattailEffect(
                unit=coattail.get("unit") or "",
                strength=CoattailStrength(coattail.get("strength", CoattailStrength.NONE.value)),
            ),
            deviation=float(data.get("deviation", MONTE_CARLO_DEVIATION)),
        )


@dataclass
class ScenarioResult:
    fragmented_ranking: List[CandidateRanking]
    factored_ranking: List[CandidateRanking]
    probabilities: List[ProbabilityResult]


def simulate_fragmentation(
    ranking: Sequence[CandidateRanking], unit: str, num_candidates: int
) -> List[CandidateRanking]:
    """Reparte el poder total de ``unit`` en ``num_candidates`` partes iguales.

    Todas las entradas de la unidad quedan con el mismo valor (el cociente), no
    se crean candidatos nuevos.
    """

    if num_candidates <= 1 or not unit:
        return list(ranking)

    total_power = sum(entry.base_power for entry in ranking if entry.political_unit == unit)
    fragmented = round_half_up(total_power / num_candidates)
    return sort_ranking(
        replace(entry, base_power=fragmented) if entry.political_unit == unit else entry
        for entry in ranking
    )


def apply_incumbency_penalty(
    ranking: Sequence[CandidateRanking],
    government_parties: Iterable[str],
    rng: np.random.Generator | None = None,
) -> List[CandidateRanking]:
    """Castiga entre 15% y 20% (al azar, por entrada) a los partidos de gobierno."""

    parties = set(government_parties)
    if not parties:
        return list(ranking)
    rng = rng if rng is not None else np.random.default_rng()
    low, high = INCUMBENCY_PENALTY_RANGE

    penalized: List[CandidateRanking] = []
    for entry in ranking:
        if entry.political_unit in parties:
            penalty = rng.uniform(low, high)
            entry = replace(entry, base_power=round_half_up(entry.base_power * (1 - penalty)))
        penalized.append(entry)
    return sort_ranking(penalized)


def apply_coattail_effect(
    ranking: Sequence[CandidateRanking], coattail: CoattailEffect
) -> List[CandidateRanking]:
    if not coattail.unit or coattail.strength is CoattailStrength.NONE:
        return list(ranking)
    return _scale_units(ranking, {coattail.unit: coattail.strength.factor})


def apply_local_support(
    ranking: Sequence[CandidateRanking], local_support: Iterable[LocalSupport]
) -> List[CandidateRanking]:
    factors = {item.unit: item.level.factor for item in local_support}
    if not factors:
        return list(ranking)
    return _scale_units(ranking, factors)


def apply_campaign_strength(
    ranking: Sequence[CandidateRanking], campaign_strength: Iterable[CampaignStrength]
) -> List[CandidateRanking]:
    factors = {item.unit: item.level.factor for item in campaign_strength}
    if not factors:
        return list(ranking)
    return _scale_units(ranking, factors)


def run_scenario(
    ranking: Sequence[CandidateRanking],
    params: SimulationParams,
    rng: np.random.Generator | None = None,
) -> ScenarioResult:
    """Aplica todas las transformaciones en orden y proyecta probabilidades."""

    rng = rng if rng is not None else np.random.default_rng()
    fragmented = simulate_fragmentation(ranking, params.fragmentation_unit, params.num_candidates)
    factored = apply_incumbency_penalty(fragmented, params.government_parties, rng)
    factored = apply_coattail_effect(factored, params.coattail_effect)
    factored = apply_local_support(factored, params.local_support)
    factored = apply_campaign_strength(factored, params.campaign_strength)

    probabilities = run_monte_carlo(
        factored,
        params.threshold,
        params.monte_carlo_iterations,
        deviation=params.deviation,
        rng=rng,
    )
    logger.info(
        "Escenario simulado: %d entradas, %d iteraciones", len(factored), params.monte_carlo_iterations
    )
    return ScenarioResult(
        fragmented_ranking=fragmented,
        factored_ranking=factored,
        probabilities=probabilities,
    )


def _scale_units(
    ranking: Sequence[CandidateRanking], factors: Dict[str, float]
) -> List[CandidateRanking]:
    scaled: List[CandidateRanking] = []
    for entry in ranking:
        factor = factors.get(entry.political_unit)
        # Un factor de 1.0 no toca el valor.
        if factor is not None and factor != 1.0:
            entry = replace(entry, base_power=round_half_up(entry.base_power * factor))
        scaled.append(entry)
    return sort_ranking(scaled)


__all__ = [
    "CoattailStrength",
    "LocalSupportLevel",
    "CampaignStrengthLevel",
    "CoattailEffect",
    "LocalSupport",
    "CampaignStrength",
    "SimulationParams",
    "ScenarioResult",
    "simulate_fragmentation",
    "apply_incumbency_penalty",
    "apply_coattail_effect",
    "apply_local_support",
    "apply_campaign_strength",
    "run_scenario",
]
