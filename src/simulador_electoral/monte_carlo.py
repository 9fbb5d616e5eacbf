"""Motor de probabilidades por simulación de Monte Carlo."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .config import MONTE_CARLO_DEVIATION
from .numeric import round_half_up
from .ranking import CandidateRanking


@dataclass(frozen=True)
class ProbabilityResult:
    """Probabilidad (en %) de superar el umbral y votos proyectados."""

    subject: str
    win_probability: float
    projected_votes: int


def run_monte_carlo(
    ranking: Sequence[CandidateRanking],
    threshold: float,
    iterations: int,
    deviation: float = MONTE_CARLO_DEVIATION,
    rng: np.random.Generator | None = None,
) -> List[ProbabilityResult]:
    """Estima la probabilidad de que cada entrada supere el umbral de curul.

    En cada iteración el poder base se multiplica por un factor uniforme en
    ``[1 - deviation, 1 + deviation]``. ``win_probability`` está en porcentaje.
    """

    if threshold <= 0 or iterations <= 0:
        return []
    rng = rng if rng is not None else np.random.default_rng()

    results: List[ProbabilityResult] = []
    for entry in ranking:
        factors = rng.uniform(1 - deviation, 1 + deviation, size=iterations)
        simulated = entry.base_power * factors
        wins = int(np.count_nonzero(simulated >= threshold))
        results.append(
            ProbabilityResult(
                subject=entry.subject,
                win_probability=wins / iterations * 100,
                projected_votes=round_half_up(float(simulated.mean())),
            )
        )

    return sorted(results, key=lambda result: -result.win_probability)


__all__ = ["ProbabilityResult", "run_monte_carlo"]
