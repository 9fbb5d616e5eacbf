"""Conversión tolerante de valores numéricos provenientes de tablas."""
from __future__ import annotations

import math
import re

import pandas as pd


_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


def round_half_up(value: float) -> int:
    """Redondea al entero más cercano; los medios suben (2.5 -> 3)."""

    return int(math.floor(value + 0.5))


def parse_votes(value) -> int | None:
    """Entrega el conteo de votos o ``None`` si la celda no es un entero válido."""

    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not value.is_integer() or value < 0:
            return None
        return int(value)
    text = str(value).strip()
    if not _INTEGER_PATTERN.match(text):
        return None
    votes = int(text)
    return votes if votes >= 0 else None


def parse_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    return str(value).strip().lower() == "true"


def parse_year(value) -> int | None:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    digits = re.sub(r"[^0-9]", "", str(value))
    return int(digits) if digits else None


def parse_text(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


__all__ = ["round_half_up", "parse_votes", "parse_flag", "parse_year", "parse_text"]
