from __future__ import annotations

import pytest

from simulador_electoral.data_loader import AnalysisType, IngestionResult
from simulador_electoral.history import (
    PartyHistory,
    PartyHistoryPoint,
    build_party_history,
    dataset_year,
    exponential_moving_average,
    list_performance,
    relative_strength_index,
    rsi_diagnostic,
    summarize_list_performance,
    trend_series,
    vote_concentration,
    vote_elasticity,
)
from simulador_electoral.ranking import build_historical_dataset

from conftest import make_record


def _dataset(name, records, analysis_type=AnalysisType.CANDIDATE):
    return build_historical_dataset(name, IngestionResult(records=records, analysis_type=analysis_type))


def _history(*votes):
    return PartyHistory(
        name="PARTIDO ROJO",
        color="#000000",
        points=[PartyHistoryPoint(dataset_name=f"Senado {2010 + 4 * i}", votes=v) for i, v in enumerate(votes)],
    )


def test_history_is_ordered_by_year_in_dataset_name():
    datasets = [
        _dataset("Senado 2022", [make_record("Ana", "PARTIDO ROJO", 300)]),
        _dataset(
            "Senado 2018",
            [make_record("Ana", "PARTIDO ROJO", 200), make_record("Luis", "PARTIDO AZUL", 50)],
        ),
    ]

    histories = build_party_history(datasets)

    assert [(p.dataset_name, p.votes) for p in histories["PARTIDO ROJO"].points] == [
        ("Senado 2018", 200),
        ("Senado 2022", 300),
    ]
    assert histories["PARTIDO AZUL"].votes == [50]


def test_repeated_dataset_is_counted_once():
    dataset = _dataset("Senado 2022", [make_record("Ana", "PARTIDO ROJO", 300)])

    histories = build_party_history([dataset, dataset])

    assert histories["PARTIDO ROJO"].votes == [300]


def test_dataset_year():
    assert dataset_year("Cámara 2018 - Antioquia") == 2018
    assert dataset_year("Proyección") is None


def test_vote_elasticity_uses_floor_and_ceiling():
    elasticity = vote_elasticity(_history(100, 150, 120, 180))

    assert elasticity.inelastic_vote == 100
    assert elasticity.ceiling == 180
    assert elasticity.elastic_vote == 80


def test_vote_elasticity_needs_two_elections():
    assert vote_elasticity(_history(100)) is None


def test_ema_starts_at_first_value_and_rounds_half_up():
    assert exponential_moving_average([100, 150, 120, 180], period=3) == [100, 125, 123, 152]


def test_ema_period_is_capped_to_series_length():
    # Con dos puntos el periodo efectivo es 2: alpha = 2/3.
    assert exponential_moving_average([90, 120], period=3) == [90, 110]
    assert exponential_moving_average([]) == []


def test_rsi_averages_gains_and_losses_since_the_start():
    rsi = relative_strength_index([100, 150, 120, 180])

    assert rsi[0] is None
    assert rsi[1] == 100.0
    assert rsi[2] == pytest.approx(62.5)
    assert rsi[3] == pytest.approx(100 - 600 / 17)


def test_rsi_of_short_series_is_empty():
    assert relative_strength_index([100]) == [None]
    assert relative_strength_index([]) == []


def test_trend_series_combines_votes_ema_and_rsi():
    points = trend_series(_history(100, 150))

    assert [(p.votes, p.ema, p.rsi) for p in points] == [(100, 100, None), (150, 133, 100.0)]


@pytest.mark.parametrize(
    "rsi, expected",
    [(85.0, "Sobre-expansión"), (20.0, "Potencial de Recuperación"), (50.0, "Momentum Estable"), (None, None)],
)
def test_rsi_diagnostic(rsi, expected):
    assert rsi_diagnostic(rsi) == expected


def test_vote_concentration_is_population_std_dev():
    assert vote_concentration([10, 20, 30]) == pytest.approx((200 / 3) ** 0.5)
    assert vote_concentration([5]) == 0.0


def test_list_performance_separates_open_and_closed_lists():
    open_list = _dataset(
        "Cámara 2018",
        [
            make_record("Ana", "PARTIDO ROJO", 10),
            make_record("Eva", "PARTIDO ROJO", 30),
            make_record("Solo por la lista", "PARTIDO ROJO", 5),
            make_record("Luis", "PARTIDO AZUL", 70),
        ],
    )
    closed_list = _dataset(
        "Cámara 2022",
        [make_record("SOLO POR LA LISTA", "PARTIDO ROJO", 60)],
        analysis_type=AnalysisType.PARTY,
    )
    absent = _dataset("Cámara 2014", [make_record("Luis", "PARTIDO AZUL", 70)])

    performances = list_performance([closed_list, open_list, absent], "Partido Rojo")

    assert [(p.year, p.list_type, p.votes) for p in performances] == [
        (2018, "Abierta", 45),
        (2022, "Cerrada", 60),
    ]
    assert performances[0].vote_concentration == pytest.approx(10.0)
    assert performances[1].vote_concentration is None

    summary = summarize_list_performance(performances)
    assert summary.avg_open_votes == 45
    assert summary.avg_closed_votes == 60
    assert summary.avg_concentration == pytest.approx(10.0)


def test_summary_without_performances_is_empty():
    summary = summarize_list_performance([])

    assert summary.avg_open_votes is None
    assert summary.avg_closed_votes is None
    assert summary.avg_concentration is None
