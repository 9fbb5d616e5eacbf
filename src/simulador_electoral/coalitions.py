"""Desagregación de los votos de una coalición entre sus partidos miembros."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .config import KNOWN_COALITIONS
from .errors import CoalitionError
from .numeric import round_half_up
from .ranking import PartyAggregate


@dataclass
class CoalitionBreakdown:
    party: str
    estimated_votes: int
    contribution: float
    color: str


def coalition_breakdown(
    coalition_parties: Sequence[PartyAggregate],
    reference_parties: Sequence[PartyAggregate],
    coalition_name: str,
) -> List[CoalitionBreakdown]:
    """Estima el aporte de cada miembro usando su peso en una elección de referencia.

    Las coaliciones conocidas usan su lista fija de miembros; para las demás se
    buscan partidos cuyo nombre esté contenido en el nombre de la coalición.
    """

    coalition = next((party for party in coalition_parties if party.name == coalition_name), None)
    if coalition is None:
        raise CoalitionError(
            f'La coalición "{coalition_name}" no fue encontrada en el conjunto de datos seleccionado.'
        )

    upper_name = coalition_name.upper()
    known = next((key for key in KNOWN_COALITIONS if key in upper_name), None)
    if known is not None:
        member_names = KNOWN_COALITIONS[known]
        members = [
            party
            for party in reference_parties
            if any(member in party.name for member in member_names)
        ]
    else:
        members = [
            party
            for party in reference_parties
            if party.name in coalition_name and party.name != coalition_name
        ]

    if not members:
        raise CoalitionError(
            f'No se encontraron partidos miembros para "{coalition_name}" en el set de datos de '
            "referencia."
        )

    reference_total = sum(party.votes for party in members)
    if reference_total == 0:
        raise CoalitionError("Los partidos miembros no tienen votos en la elección de referencia.")

    breakdown: List[CoalitionBreakdown] = []
    for party in members:
        share = party.votes / reference_total
        estimated = round_half_up(share * coalition.votes)
        breakdown.append(
            CoalitionBreakdown(
                party=party.name,
                estimated_votes=estimated,
                contribution=estimated / coalition.votes if coalition.votes else 0.0,
                color=party.color,
            )
        )

    total_contribution = sum(item.contribution for item in breakdown)
    if total_contribution > 0:
        for item in breakdown:
            item.contribution /= total_contribution

    return sorted(breakdown, key=lambda item: -item.estimated_votes)


__all__ = ["CoalitionBreakdown", "coalition_breakdown"]
