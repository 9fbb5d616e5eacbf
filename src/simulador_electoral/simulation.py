"""CLI para analizar resultados tabulados y simular escenarios electorales."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from .data_loader import InvalidVoteCounts, load_dataset
from .dhondt import DhondtAnalysis, allocate
from .errors import SimuladorError
from .history import (
    build_party_history,
    list_performance,
    rsi_diagnostic,
    summarize_list_performance,
    trend_series,
    vote_elasticity,
)
from .monte_carlo import ProbabilityResult
from .normalization import normalize
from .ranking import CandidateRanking, aggregate_party_votes, aggregate_ranking, build_historical_dataset
from .scenarios import (
    CampaignStrength,
    CampaignStrengthLevel,
    CoattailEffect,
    CoattailStrength,
    LocalSupport,
    LocalSupportLevel,
    SimulationParams,
    run_scenario,
)
from .transfer import apply_transfer_model, compute_transfer_model


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.handler(args)
    except (SimuladorError, ValueError) as exc:
        print(f"\nNo fue posible completar el análisis: {exc}")
        return 1
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Procesa resultados electorales y simula escenarios (D'Hondt, Monte Carlo)."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Muestra el detalle del procesamiento")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ranking = subparsers.add_parser("ranking", help="Ranking de poder electoral base")
    ranking.add_argument("inputs", type=Path, help="Archivo CSV o Excel con los resultados")
    ranking.add_argument("--top", type=int, default=20, help="Cantidad de entradas a mostrar")
    ranking.set_defaults(handler=_run_ranking)

    dhondt = subparsers.add_parser("dhondt", help="Reparto de escaños por D'Hondt")
    dhondt.add_argument("inputs", type=Path, help="Archivo CSV o Excel con los resultados")
    dhondt.add_argument("--seats", type=int, required=True, help="Número de escaños a repartir")
    dhondt.set_defaults(handler=_run_dhondt)

    montecarlo = subparsers.add_parser("montecarlo", help="Probabilidad de superar un umbral de curul")
    montecarlo.add_argument("inputs", type=Path, help="Archivo CSV o Excel con los resultados")
    montecarlo.add_argument("--threshold", type=float, required=True, help="Votos necesarios para la curul")
    montecarlo.add_argument("--iterations", type=int, default=10000)
    montecarlo.add_argument("--seed", type=int, default=None, help="Semilla para resultados reproducibles")
    montecarlo.add_argument("--fragment", default="", help="Unidad política a fragmentar")
    montecarlo.add_argument("--candidates", type=int, default=1, help="Candidatos entre los que se fragmenta")
    montecarlo.add_argument("--government", nargs="*", default=[], help="Partidos de gobierno a penalizar")
    montecarlo.add_argument("--coattail", nargs=2, metavar=("UNIDAD", "FUERZA"), default=None)
    montecarlo.add_argument("--local-support", nargs=2, action="append", metavar=("UNIDAD", "NIVEL"), default=[])
    montecarlo.add_argument("--campaign", nargs=2, action="append", metavar=("UNIDAD", "NIVEL"), default=[])
    montecarlo.set_defaults(handler=_run_montecarlo)

    transfer = subparsers.add_parser("transfer", help="Simula la entrada de un partido nuevo")
    transfer.add_argument("--before", type=Path, required=True, help="Elección previa al partido nuevo")
    transfer.add_argument("--after", type=Path, required=True, help="Elección con el partido nuevo")
    transfer.add_argument("--base", type=Path, required=True, help="Elección sobre la que se simula")
    transfer.add_argument("--party", required=True, help="Nombre del partido nuevo")
    transfer.add_argument(
        "--ideology",
        nargs=2,
        action="append",
        metavar=("PARTIDO", "IDEOLOGIA"),
        default=[],
        help="Ideología de un partido (repetible)",
    )
    transfer.add_argument("--seats", type=int, default=0, help="Escaños a repartir con el resultado simulado")
    transfer.set_defaults(handler=_run_transfer)

    history = subparsers.add_parser("history", help="Evolución histórica de un partido")
    history.add_argument("inputs", type=Path, nargs="+", help="Archivos CSV o Excel, uno por elección")
    history.add_argument("--party", required=True, help="Partido a analizar")
    history.set_defaults(handler=_run_history)
    return parser


def _run_ranking(args: argparse.Namespace) -> None:
    dataset = load_dataset(args.inputs)
    _print_invalid_votes(dataset.invalid_vote_counts)
    ranking = aggregate_ranking(dataset.records, dataset.analysis_type)
    print(f"\n=== Ranking de poder electoral ({dataset.analysis_type.value}) ===")
    _print_ranking(ranking[: args.top])


def _run_dhondt(args: argparse.Namespace) -> None:
    dataset = load_dataset(args.inputs)
    parties = aggregate_party_votes(dataset.records)
    analysis = allocate(parties, args.seats)
    print(f"\n=== Reparto D'Hondt ({args.seats} escaños, {analysis.total_votes:,} votos) ===")
    _print_allocation(analysis)


def _run_montecarlo(args: argparse.Namespace) -> None:
    dataset = load_dataset(args.inputs)
    ranking = aggregate_ranking(dataset.records, dataset.analysis_type)
    params = SimulationParams(
        fragmentation_unit=normalize(args.fragment),
        num_candidates=args.candidates,
        government_parties=[normalize(unit) for unit in args.government],
        threshold=args.threshold,
        monte_carlo_iterations=args.iterations,
        local_support=[LocalSupport(normalize(unit), LocalSupportLevel(level)) for unit, level in args.local_support],
        campaign_strength=[
            CampaignStrength(normalize(unit), CampaignStrengthLevel(level)) for unit, level in args.campaign
        ],
        coattail_effect=(
            CoattailEffect(normalize(args.coattail[0]), CoattailStrength(args.coattail[1]))
            if args.coattail
            else CoattailEffect()
        ),
    )
    result = run_scenario(ranking, params, rng=np.random.default_rng(args.seed))
    print("\n=== Ranking ajustado por escenario ===")
    _print_ranking(result.factored_ranking)
    print(f"\n=== Probabilidad de curul (umbral {args.threshold:,.0f} votos) ===")
    _print_probabilities(result.probabilities)


def _run_transfer(args: argparse.Namespace) -> None:
    before = load_dataset(args.before)
    after = load_dataset(args.after)
    base = load_dataset(args.base)
    ideologies = {party: ideology for party, ideology in args.ideology}
    model = compute_transfer_model(before.records, after.records, args.party, ideologies)

    print(f"\n=== Origen de los votos de {args.party} ===")
    for donor, proportion in sorted(model.items(), key=lambda item: -item[1]):
        print(f"   {donor}: {proportion * 100:.2f}%")

    simulated = apply_transfer_model(base.records, model, args.party)
    print("\n=== Resultado simulado ===")
    for party in simulated:
        print(f"   {party.name}: {party.votes:,} votos")

    if args.seats > 0:
        print(f"\n> Reparto D'Hondt con {args.seats} escaños:")
        _print_allocation(allocate(simulated, args.seats))


def _run_history(args: argparse.Namespace) -> None:
    datasets = [build_historical_dataset(path.stem, load_dataset(path)) for path in args.inputs]
    party = normalize(args.party)
    history = build_party_history(datasets).get(party)
    if history is None:
        raise ValueError(f"El partido {args.party} no aparece en los conjuntos de datos.")

    print(f"\n=== Tendencia de {history.name} ===")
    trend = trend_series(history)
    for point in trend:
        rsi = f"{point.rsi:.1f}" if point.rsi is not None else "-"
        print(f"   {point.dataset_name}: {point.votes:,} votos (EMA {point.ema:,}, RSI {rsi})")
    last_rsi = trend[-1].rsi
    if last_rsi is not None:
        print(f"   Diagnóstico: {rsi_diagnostic(last_rsi)}")

    elasticity = vote_elasticity(history)
    if elasticity is not None:
        print(f"\n   Voto inelástico (piso): {elasticity.inelastic_vote:,}")
        print(f"   Voto elástico: {elasticity.elastic_vote:,} (techo {elasticity.ceiling:,})")

    summary = summarize_list_performance(list_performance(datasets, party))
    if summary.avg_open_votes is not None:
        print(f"\n   Promedio en lista abierta: {summary.avg_open_votes:,.0f} votos")
    if summary.avg_closed_votes is not None:
        print(f"   Promedio en lista cerrada: {summary.avg_closed_votes:,.0f} votos")


def _print_invalid_votes(invalid: InvalidVoteCounts) -> None:
    print(f"Votos nulos: {invalid.null_votes:,}")
    print(f"Votos en blanco: {invalid.blank_votes:,}")


def _print_ranking(ranking: Iterable[CandidateRanking]) -> None:
    for position, entry in enumerate(ranking, start=1):
        label = entry.subject
        if entry.subject != entry.political_unit:
            label += f" ({entry.political_unit})"
        print(f"   {position:>3}. {label}: {entry.base_power:,} votos")


def _print_allocation(analysis: DhondtAnalysis) -> None:
    if not analysis.steps:
        print("   No se asignaron escaños")
        return
    for step in analysis.steps:
        print(
            f"   Escaño {step.seat_number}: {step.party} (cociente {step.quotient:,.2f}, "
            f"{step.seats_won} acumulados)"
        )
    print("\n   Escaños por partido:")
    for allocation in analysis.seats:
        suffix = "escaños" if allocation.seats != 1 else "escaño"
        print(f"      - {allocation.party}: {allocation.seats} {suffix}")
    if analysis.runner_up is not None:
        runner_up = analysis.runner_up
        print(f"\n   Siguiente en la fila: {runner_up.party} (cociente {runner_up.quotient:,.2f})")


def _print_probabilities(probabilities: Iterable[ProbabilityResult]) -> None:
    for result in probabilities:
        print(
            f"   {result.subject}: {result.win_probability:.1f}% "
            f"(~{result.projected_votes:,} votos proyectados)"
        )


if __name__ == "__main__":
    raise SystemExit(main())
