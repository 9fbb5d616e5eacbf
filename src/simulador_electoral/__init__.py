"""Herramientas para procesar resultados electorales y simular escenarios."""

from .data_loader import AnalysisType, IngestionResult, ProcessedRecord, ingest, load_dataset
from .dhondt import DhondtAnalysis, allocate
from .dispatcher import TaskDispatcher
from .history import build_party_history, trend_series, vote_elasticity
from .monte_carlo import run_monte_carlo
from .normalization import normalize
from .ranking import aggregate_party_votes, aggregate_ranking
from .scenarios import SimulationParams, run_scenario
from .transfer import apply_transfer_model, compute_transfer_model

__all__ = [
    "AnalysisType",
    "IngestionResult",
    "ProcessedRecord",
    "ingest",
    "load_dataset",
    "DhondtAnalysis",
    "allocate",
    "TaskDispatcher",
    "build_party_history",
    "trend_series",
    "vote_elasticity",
    "run_monte_carlo",
    "normalize",
    "aggregate_party_votes",
    "aggregate_ranking",
    "SimulationParams",
    "run_scenario",
    "apply_transfer_model",
    "compute_transfer_model",
]
