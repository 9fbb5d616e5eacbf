"""Lectura y normalización de los resultados electorales tabulados."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import csv
import io
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Set, Tuple

import pandas as pd

from .config import (
    BLANK_VOTES_MARKER,
    COLUMN_ALLIANCE,
    COLUMN_CANDIDATE,
    COLUMN_ELECTION,
    COLUMN_LIST_HEAD,
    COLUMN_UNIT,
    COLUMN_VOTES,
    COLUMN_YEAR,
    LIST_ONLY_SENTINEL,
    LOWER_CHAMBER_ELECTION,
    NULL_VOTES_MARKER,
    REQUIRED_COLUMNS,
)
from .errors import IngestionError
from .normalization import normalize
from .numeric import parse_flag, parse_text, parse_votes, parse_year, round_half_up


logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xls")


class AnalysisType(str, Enum):
    """Nivel de detalle del conjunto de datos."""

    PARTY = "party"
    CANDIDATE = "candidate"


@dataclass(frozen=True)
class RawRecord:
    """Fila de escrutinio tal como llega de la tabla."""

    election: str
    year: int | None
    candidate: str
    political_unit: str
    votes: int
    is_list_head: bool
    alliance_id: str = ""


@dataclass(frozen=True)
class ProcessedRecord:
    """Fila válida con la unidad política normalizada y los votos ajustados."""

    election: str
    year: int | None
    candidate: str
    political_unit: str
    votes: int
    is_list_head: bool
    alliance_id: str
    adjusted_votes: int


@dataclass
class InvalidVoteCounts:
    """Votos nulos y en blanco acumulados aparte del escrutinio válido."""

    blank_votes: int = 0
    null_votes: int = 0


@dataclass
class IngestionResult:
    """Resultado completo de una ingesta."""

    records: List[ProcessedRecord]
    invalid_vote_counts: InvalidVoteCounts = field(default_factory=InvalidVoteCounts)
    analysis_type: AnalysisType = AnalysisType.PARTY


def ingest(rows: Iterable[Mapping]) -> IngestionResult:
    """Convierte filas crudas en registros procesados.

    Las filas incompletas se descartan en silencio; los votos nulos y en blanco
    se acumulan aparte. Una fila que no es un diccionario corta la ingesta con
    :class:`IngestionError` indicando la línea (la cabecera es la línea 1).
    """

    invalid = InvalidVoteCounts()
    valid_rows: List[RawRecord] = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            line = index + 2
            raise IngestionError(
                f"Error de formato: la fila de la línea {line} no tiene columnas con nombre.",
                line=line,
            )
        raw = _build_raw_record(row)
        if raw is None:
            continue

        candidate_upper = raw.candidate.upper()
        if NULL_VOTES_MARKER in candidate_upper:
            invalid.null_votes += raw.votes
        elif BLANK_VOTES_MARKER in candidate_upper:
            invalid.blank_votes += raw.votes
        elif raw.political_unit:
            valid_rows.append(raw)
        else:
            logger.debug("Fila %d descartada: sin unidad política", index + 2)

    analysis_type = _detect_analysis_type(valid_rows)
    alliance_sizes = _alliance_sizes(valid_rows)

    records: List[ProcessedRecord] = []
    for raw in valid_rows:
        record = _process_record(raw, alliance_sizes)
        if record is not None:
            records.append(record)

    logger.info(
        "Ingesta: %d registros válidos, %d votos nulos, %d en blanco (%s)",
        len(records),
        invalid.null_votes,
        invalid.blank_votes,
        analysis_type.value,
    )
    return IngestionResult(records=records, invalid_vote_counts=invalid, analysis_type=analysis_type)


def read_table(source: str | Path) -> List[Dict[str, str]]:
    """Lee un CSV (texto o ruta) o un Excel y entrega las filas como diccionarios."""

    path = _as_existing_path(source)
    if path is not None and path.suffix.lower() in EXCEL_SUFFIXES:
        df = pd.read_excel(path, dtype=str)
    else:
        text = path.read_text(encoding="utf-8-sig") if path is not None else str(source)
        df = _read_csv_text(text)

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise IngestionError(
            f"Error de formato: faltan las columnas {', '.join(missing)} en la cabecera.",
            line=1,
        )
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def load_dataset(source: str | Path) -> IngestionResult:
    return ingest(read_table(source))


def _read_csv_text(text: str) -> pd.DataFrame:
    _check_quoting(text)
    header = next(csv.reader(io.StringIO(text)), [])
    width = len(header)

    def _truncate(bad_line: List[str]) -> List[str]:
        # Filas con columnas de más: se conservan las primeras.
        logger.debug("Fila con %d campos truncada a %d", len(bad_line), width)
        return bad_line[:width]

    try:
        return pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_truncate,
        )
    except pd.errors.EmptyDataError as exc:
        raise IngestionError("Error de formato CSV: el archivo está vacío.", line=1) from exc
    except (pd.errors.ParserError, csv.Error) as exc:
        line = _line_from_message(str(exc))
        where = f" en la línea {line}" if line is not None else ""
        raise IngestionError(f"Error de formato CSV: {exc}{where}.", line=line) from exc


def _check_quoting(text: str) -> None:
    """Rechaza comillas sin cerrar antes de que el lector de pandas las absorba."""

    reader = csv.reader(io.StringIO(text), strict=True)
    record_start = 1
    try:
        for _ in reader:
            record_start = reader.line_num + 1
    except csv.Error as exc:
        raise IngestionError(
            f"Error de formato CSV: comillas mal balanceadas en el registro de la línea {record_start}.",
            line=record_start,
        ) from exc


def _line_from_message(message: str) -> int | None:
    match = re.search(r"(?:line|row)\s+(\d+)", message)
    return int(match.group(1)) if match else None


def _as_existing_path(source: str | Path) -> Path | None:
    if isinstance(source, Path):
        return source
    if "\n" in source or len(source) > 1024:
        return None
    candidate = Path(source)
    return candidate if candidate.is_file() else None


def _build_raw_record(row: Mapping) -> RawRecord | None:
    candidate = parse_text(row.get(COLUMN_CANDIDATE))
    if not candidate:
        return None
    votes = parse_votes(row.get(COLUMN_VOTES))
    if votes is None:
        return None
    return RawRecord(
        election=parse_text(row.get(COLUMN_ELECTION)),
        year=parse_year(row.get(COLUMN_YEAR)),
        candidate=candidate,
        political_unit=parse_text(row.get(COLUMN_UNIT)),
        votes=votes,
        is_list_head=parse_flag(row.get(COLUMN_LIST_HEAD)),
        alliance_id=parse_text(row.get(COLUMN_ALLIANCE)),
    )


def _detect_analysis_type(rows: Iterable[RawRecord]) -> AnalysisType:
    if any(normalize(row.candidate) != LIST_ONLY_SENTINEL for row in rows):
        return AnalysisType.CANDIDATE
    return AnalysisType.PARTY


def _alliance_key(row: RawRecord) -> Tuple[str, int | None, str]:
    return (row.election, row.year, row.alliance_id)


def _alliance_sizes(rows: Iterable[RawRecord]) -> Dict[Tuple[str, int | None, str], int]:
    members: Dict[Tuple[str, int | None, str], Set[str]] = {}
    for row in rows:
        if not row.alliance_id:
            continue
        members.setdefault(_alliance_key(row), set()).add(normalize(row.political_unit))
    return {key: len(units) for key, units in members.items()}


def _process_record(
    raw: RawRecord, alliance_sizes: Dict[Tuple[str, int | None, str], int]
) -> ProcessedRecord | None:
    unit = normalize(raw.political_unit)
    if not unit:
        return None

    adjusted = float(raw.votes)
    if raw.is_list_head and normalize(raw.election) == LOWER_CHAMBER_ELECTION:
        adjusted /= 2

    if raw.alliance_id:
        members = alliance_sizes.get(_alliance_key(raw), 1)
        if members > 1:
            adjusted /= members

    return ProcessedRecord(
        election=raw.election,
        year=raw.year,
        candidate=raw.candidate,
        political_unit=unit,
        votes=raw.votes,
        is_list_head=raw.is_list_head,
        alliance_id=raw.alliance_id,
        adjusted_votes=round_half_up(adjusted),
    )


__all__ = [
    "AnalysisType",
    "RawRecord",
    "ProcessedRecord",
    "InvalidVoteCounts",
    "IngestionResult",
    "ingest",
    "read_table",
    "load_dataset",
]
