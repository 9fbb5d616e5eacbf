import pytest

from simulador_electoral.coalitions import coalition_breakdown
from simulador_electoral.errors import CoalitionError
from simulador_electoral.ranking import PartyAggregate


def _party(name: str, votes: int) -> PartyAggregate:
    return PartyAggregate(id=0, name=name, votes=votes, color=f"#{len(name):06d}")


def test_members_found_by_name_share_the_coalition_votes():
    coalition = [_party("COALICION VERDE ROJO", 1000)]
    reference = [_party("VERDE", 300), _party("ROJO", 100), _party("AZUL", 600)]

    breakdown = coalition_breakdown(coalition, reference, "COALICION VERDE ROJO")

    assert [(item.party, item.estimated_votes) for item in breakdown] == [("VERDE", 750), ("ROJO", 250)]
    assert sum(item.contribution for item in breakdown) == pytest.approx(1.0)
    assert breakdown[0].color == reference[0].color


def test_known_coalition_uses_fixed_member_list():
    coalition = [_party("JUNTOS POR EL CAMBIO", 900)]
    reference = [
        _party("PARTIDO CAMBIO RADICAL", 200),
        _party("PARTIDO MIRA", 100),
        _party("PARTIDO VERDE", 500),
    ]

    breakdown = coalition_breakdown(coalition, reference, "JUNTOS POR EL CAMBIO")

    assert [(item.party, item.estimated_votes) for item in breakdown] == [
        ("PARTIDO CAMBIO RADICAL", 600),
        ("PARTIDO MIRA", 300),
    ]


def test_unknown_coalition_fails():
    with pytest.raises(CoalitionError):
        coalition_breakdown([], [_party("VERDE", 10)], "COALICION VERDE")


def test_coalition_without_members_fails():
    with pytest.raises(CoalitionError):
        coalition_breakdown([_party("COALICION X", 10)], [_party("VERDE", 10)], "COALICION X")


def test_members_without_reference_votes_fail():
    with pytest.raises(CoalitionError):
        coalition_breakdown(
            [_party("COALICION VERDE", 10)], [_party("VERDE", 0)], "COALICION VERDE"
        )
