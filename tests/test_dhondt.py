from __future__ import annotations

import pytest

from simulador_electoral.dhondt import allocate
from simulador_electoral.ranking import PartyAggregate


def _party(name: str, votes: int) -> PartyAggregate:
    return PartyAggregate(id=0, name=name, votes=votes, color="#000000")


def _parties():
    return [_party("A", 100000), _party("B", 80000), _party("C", 30000)]


def test_award_order_follows_highest_quotient():
    analysis = allocate(_parties(), 3)

    assert [(step.party, step.quotient) for step in analysis.steps] == [
        ("A", 100000),
        ("B", 80000),
        ("A", 50000),
    ]
    assert [step.seat_number for step in analysis.steps] == [1, 2, 3]
    assert analysis.seat_counts() == {"A": 2, "B": 1}


def test_fourth_seat_goes_to_second_divisor_of_b():
    analysis = allocate(_parties(), 4)

    last = analysis.last_seat_winner
    assert last.party == "B"
    assert last.quotient == 40000
    assert last.seats_won == 2
    assert [(seat.party, seat.seats) for seat in analysis.seats] == [("A", 2), ("B", 2), ("C", 0)]
    assert analysis.runner_up.party == "A"
    assert analysis.runner_up.quotient == pytest.approx(100000 / 3)
    assert analysis.total_votes == 210000


def test_votes_per_seat_is_sorted_cheapest_first():
    analysis = allocate(_parties(), 4)

    assert [(item.party, item.votes) for item in analysis.votes_per_seat] == [
        ("B", 40000),
        ("A", 50000),
    ]


@pytest.mark.parametrize("seats", [0, -2])
def test_no_seats_gives_empty_result(seats):
    analysis = allocate(_parties(), seats)

    assert analysis.seats == []
    assert analysis.steps == []
    assert analysis.last_seat_winner is None


def test_empty_party_list_gives_empty_result():
    analysis = allocate([], 5)

    assert analysis.seats == []
    assert analysis.steps == []


def test_zero_vote_parties_keep_a_zero_seat_entry():
    analysis = allocate([_party("A", 1000), _party("Z", 0)], 2)

    assert [(seat.party, seat.seats) for seat in analysis.seats] == [("A", 2), ("Z", 0)]
    assert analysis.runner_up is None


def test_exact_ties_go_to_first_party_in_input():
    analysis = allocate([_party("B", 500), _party("A", 500)], 1)

    assert analysis.steps[0].party == "B"
    assert analysis.runner_up.party == "A"


def test_allocation_is_deterministic():
    first = allocate(_parties(), 7)
    second = allocate(_parties(), 7)

    assert first.steps == second.steps
    assert first.seats == second.seats


def test_accepts_mappings():
    analysis = allocate([{"name": "A", "votes": 300}, {"name": "B", "votes": 100}], 3)

    assert analysis.seat_counts() == {"A": 3}


def test_accepts_wire_party_name_key_and_textual_votes():
    analysis = allocate([{"partyName": "A", "votes": "300"}, {"partyName": "B", "votes": "200"}], 2)

    assert analysis.seat_counts() == {"A": 1, "B": 1}
    assert analysis.total_votes == 500


def test_invalid_votes_are_rejected():
    with pytest.raises(ValueError, match="Votos inválidos"):
        allocate([{"name": "A", "votes": "muchos"}], 2)
