"""Modelo de transferencia de votos hacia un partido nuevo.

El modelo es un diccionario ``donante -> proporción`` cuyas proporciones suman
1. Puede calcularse a partir de dos elecciones (antes y después de que el
partido nuevo apareciera) ponderando por afinidad ideológica, o fijarse a mano.
"""
from __future__ import annotations

from collections import Counter
import logging
from typing import Dict, Iterable, List, Mapping

from .config import (
    CREEMOS_DONOR_KEYWORDS,
    CREEMOS_PARTY,
    DEFAULT_IDEOLOGY,
    FALLBACK_COLOR,
    IDEOLOGY_SPECTRUM,
    UNKNOWN_IDEOLOGY_DISTANCE,
    VULNERABILITY_FACTOR,
)
from .data_loader import ProcessedRecord
from .errors import TransferModelError
from .normalization import normalize
from .numeric import round_half_up
from .ranking import PartyAggregate, aggregate_party_votes


logger = logging.getLogger(__name__)

VoteTransferModel = Dict[str, float]


def ideological_distance(ideology_a: str | None, ideology_b: str | None) -> int:
    """Distancia en el espectro; 5 si alguna ideología no está en el espectro."""

    index_a = _spectrum_index(ideology_a)
    index_b = _spectrum_index(ideology_b)
    if index_a is None or index_b is None:
        return UNKNOWN_IDEOLOGY_DISTANCE
    return abs(index_a - index_b)


def compute_transfer_model(
    pre_records: Iterable[ProcessedRecord],
    post_records: Iterable[ProcessedRecord],
    new_party_name: str,
    ideologies: Mapping[str, str],
) -> VoteTransferModel:
    """Estima de qué partidos provienen los votos de ``new_party_name``.

    El peso de cada donante es ``votos / (1 + distancia²)``. Los donantes cuya
    parte redondeada de los votos del partido nuevo es cero se descartan y el
    resto se renormaliza para sumar 1.
    """

    pre_votes = _party_votes(pre_records)
    post_votes = _party_votes(post_records)
    new_party = normalize(new_party_name)

    new_party_votes = post_votes.get(new_party, 0)
    if not new_party_votes:
        raise TransferModelError(
            f'El partido "{new_party_name}" no fue encontrado o no tiene votos en la elección '
            "de referencia posterior."
        )

    if new_party == CREEMOS_PARTY:
        weights = _allow_list_weights(pre_votes)
    else:
        weights = _ideology_weights(pre_votes, new_party, _normalized_keys(ideologies))

    total_weight = sum(weights.values())
    model: VoteTransferModel = {}
    for donor, weight in weights.items():
        proportion = weight / total_weight
        if round_half_up(proportion * new_party_votes) > 0:
            model[donor] = proportion

    included = sum(model.values())
    if included <= 0:
        raise TransferModelError(
            "No se pudo calcular un modelo de transferencia: ningún donante aporta votos."
        )
    model = {donor: proportion / included for donor, proportion in model.items()}
    logger.info("Modelo de transferencia para %s: %d donantes", new_party, len(model))
    return model


def manual_transfer_model(percentages: Mapping[str, float]) -> VoteTransferModel:
    """Convierte porcentajes (0-100) en proporciones, sin validar que sumen 100."""

    return {
        party: percentage / 100
        for party, percentage in percentages.items()
        if percentage and percentage > 0
    }


def validate_manual_percentages(percentages: Mapping[str, float], tolerance: float = 0.1) -> None:
    total = sum(value or 0 for value in percentages.values())
    if abs(total - 100) > tolerance:
        raise TransferModelError(
            f"El modelo de transferencia manual debe sumar 100%. Actualmente suma {total:.1f}%."
        )


def apply_transfer_model(
    historical_records: Iterable[ProcessedRecord],
    model: Mapping[str, float],
    new_party_name: str,
) -> List[PartyAggregate]:
    """Simula la entrada del partido nuevo sobre una elección histórica.

    Cada donante cede ``round(votos * 0.65 * proporción)``; el partido nuevo
    acumula todo lo cedido. Las claves del modelo que normalizan al mismo
    partido se suman, de modo que el total de votos se conserva.
    """

    records = list(historical_records)
    original = {party.name: party for party in aggregate_party_votes(records)}
    simulated: Dict[str, int] = {name: party.votes for name, party in original.items()}
    new_party = normalize(new_party_name)

    shares: Counter = Counter()
    for donor, proportion in model.items():
        shares[normalize(donor)] += proportion

    transferred_total = 0
    for donor, proportion in shares.items():
        donor_party = original.get(donor)
        if donor_party is None or not donor_party.votes:
            continue
        transferred = round_half_up(donor_party.votes * VULNERABILITY_FACTOR * proportion)
        transferred = min(max(transferred, 0), donor_party.votes)
        simulated[donor_party.name] = donor_party.votes - transferred
        transferred_total += transferred

    simulated[new_party] = simulated.get(new_party, 0) + transferred_total

    next_id = max((party.id for party in original.values()), default=0) + 1
    result: List[PartyAggregate] = []
    for name, votes in simulated.items():
        existing = original.get(name)
        if existing is not None:
            result.append(PartyAggregate(id=existing.id, name=name, votes=votes, color=existing.color))
        else:
            result.append(PartyAggregate(id=next_id, name=name, votes=votes, color=FALLBACK_COLOR))
            next_id += 1
    return sorted(result, key=lambda party: -party.votes)


def _party_votes(records: Iterable[ProcessedRecord]) -> Dict[str, int]:
    return {party.name: party.votes for party in aggregate_party_votes(records)}


def _normalized_keys(ideologies: Mapping[str, str]) -> Dict[str, str]:
    return {normalize(party): ideology for party, ideology in ideologies.items()}


def _spectrum_index(ideology: str | None) -> int | None:
    label = normalize(ideology)
    if label not in IDEOLOGY_SPECTRUM:
        return None
    return IDEOLOGY_SPECTRUM.index(label)


def _ideology_weights(
    pre_votes: Mapping[str, int], new_party: str, ideologies: Mapping[str, str]
) -> Dict[str, float]:
    new_ideology = ideologies.get(new_party) or DEFAULT_IDEOLOGY
    weights: Dict[str, float] = {}
    for donor, votes in pre_votes.items():
        if votes <= 0:
            continue
        donor_ideology = ideologies.get(donor) or DEFAULT_IDEOLOGY
        distance = ideological_distance(donor_ideology, new_ideology)
        weights[donor] = votes * (1 / (1 + distance ** 2))

    if sum(weights.values()) <= 0:
        raise TransferModelError(
            "No se pudo calcular un modelo de transferencia. No hay afinidad ideológica entre "
            "el nuevo partido y los partidos existentes."
        )
    return weights


def _allow_list_weights(pre_votes: Mapping[str, int]) -> Dict[str, float]:
    weights = {
        party: float(votes)
        for party, votes in pre_votes.items()
        if votes > 0 and any(keyword in party for keyword in CREEMOS_DONOR_KEYWORDS)
    }
    if not weights:
        raise TransferModelError(
            f"No se encontraron los partidos donantes especificados para '{CREEMOS_PARTY}' en la "
            "elección de referencia 'antes'."
        )
    return weights


__all__ = [
    "VoteTransferModel",
    "ideological_distance",
    "compute_transfer_model",
    "manual_transfer_model",
    "validate_manual_percentages",
    "apply_transfer_model",
]
