"""Implementación del método D'Hondt con historial de asignación por escaño."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List, Mapping, Tuple

from .numeric import parse_votes, round_half_up


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeatAllocation:
    """Escaños obtenidos por un partido."""

    party: str
    seats: int


@dataclass(frozen=True)
class DhondtStep:
    """Escaño asignado en una ronda del reparto."""

    seat_number: int
    party: str
    quotient: float
    party_votes: int
    seats_won: int


@dataclass(frozen=True)
class VotesPerSeat:
    """Votos que le costó cada escaño a un partido."""

    party: str
    votes: int


@dataclass
class DhondtAnalysis:
    """Resultado completo de un reparto."""

    seats: List[SeatAllocation] = field(default_factory=list)
    steps: List[DhondtStep] = field(default_factory=list)
    total_votes: int = 0
    votes_per_seat: List[VotesPerSeat] = field(default_factory=list)
    last_seat_winner: DhondtStep | None = None
    runner_up: DhondtStep | None = None
    total_seats: int = 0

    def seat_counts(self) -> Dict[str, int]:
        """Escaños por partido, solo para los que obtuvieron alguno."""

        return {allocation.party: allocation.seats for allocation in self.seats if allocation.seats > 0}


def allocate(parties: Iterable, total_seats: int) -> DhondtAnalysis:
    """Reparte ``total_seats`` escaños entre ``parties``.

    ``parties`` puede contener objetos con atributos ``name`` y ``votes`` (por
    ejemplo :class:`~simulador_electoral.ranking.PartyAggregate`) o diccionarios
    con ``name`` (o ``partyName``) y ``votes``; los votos pueden venir como texto.
    Los partidos sin votos no compiten pero aparecen con cero
    escaños. Ante cocientes idénticos gana el que aparece primero en la entrada.
    """

    votes_by_party = _collect_votes(parties)
    if not votes_by_party or total_seats <= 0:
        return DhondtAnalysis(total_seats=total_seats)

    competing = [(name, votes) for name, votes in votes_by_party.items() if votes > 0]
    seats_won: Dict[str, int] = {name: 0 for name in votes_by_party}
    party_votes = dict(competing)

    steps: List[DhondtStep] = []
    runner_up: DhondtStep | None = None
    for seat_number in range(1, total_seats + 1):
        if not competing:
            break
        quotients = sorted(
            ((name, votes / (seats_won[name] + 1)) for name, votes in competing),
            key=lambda item: -item[1],
        )
        winner, quotient = quotients[0]
        seats_won[winner] += 1
        steps.append(
            DhondtStep(
                seat_number=seat_number,
                party=winner,
                quotient=quotient,
                party_votes=party_votes[winner],
                seats_won=seats_won[winner],
            )
        )
        if len(quotients) > 1:
            second, second_quotient = quotients[1]
            runner_up = DhondtStep(
                seat_number=seat_number,
                party=second,
                quotient=second_quotient,
                party_votes=party_votes[second],
                seats_won=seats_won[second],
            )
        else:
            runner_up = None

    seats = sorted(
        (SeatAllocation(party=name, seats=count) for name, count in seats_won.items()),
        key=lambda allocation: -allocation.seats,
    )
    votes_per_seat = sorted(
        (
            VotesPerSeat(party=allocation.party, votes=round_half_up(party_votes[allocation.party] / allocation.seats))
            for allocation in seats
            if allocation.seats > 0
        ),
        key=lambda item: item.votes,
    )

    logger.debug("D'Hondt: %d escaños repartidos entre %d partidos", len(steps), len(competing))
    return DhondtAnalysis(
        seats=seats,
        steps=steps,
        total_votes=sum(party_votes.values()),
        votes_per_seat=votes_per_seat,
        last_seat_winner=steps[-1] if steps else None,
        runner_up=runner_up,
        total_seats=total_seats,
    )


def _collect_votes(parties: Iterable) -> Dict[str, int]:
    votes_by_party: Counter = Counter()
    for party in parties:
        name, votes = _name_and_votes(party)
        # Nombres repetidos se suman.
        votes_by_party[name] += votes
    return dict(votes_by_party)


def _name_and_votes(party) -> Tuple[str, int]:
    if isinstance(party, Mapping):
        name = party.get("name", party.get("partyName"))
        raw_votes = party.get("votes")
    else:
        name, raw_votes = party.name, party.votes
    if name is None:
        raise ValueError(f"Partido sin nombre en la entrada del reparto: {party!r}")
    votes = parse_votes(raw_votes)
    if votes is None:
        raise ValueError(f"Votos inválidos para {name}: {raw_votes!r}")
    return str(name), votes


__all__ = ["SeatAllocation", "DhondtStep", "VotesPerSeat", "DhondtAnalysis", "allocate"]
