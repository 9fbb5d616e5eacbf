"""Normalización de nombres de partidos y candidatos."""
from __future__ import annotations

import re
import unicodedata

from .config import PARTY_COLORS


_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_QUOTES = re.compile(r"['\"“”]")


def normalize(name: str | None) -> str:
    """Canonicaliza un nombre: sin tildes, en mayúsculas, sin comillas.

    ``normalize("José") == "JOSE"``. La función es idempotente y devuelve ``""``
    para valores vacíos.
    """

    if not name:
        return ""
    # Mayúsculas antes de descomponer: algunas letras solo generan tilde al subir.
    decomposed = unicodedata.normalize("NFD", str(name).upper())
    without_marks = _COMBINING_MARKS.sub("", decomposed)
    return _QUOTES.sub("", without_marks).strip()


def _string_hash(text: str) -> int:
    value = 0
    # Unidades UTF-16 para que nombres con caracteres astrales mantengan su color.
    encoded = text.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        code_unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def party_color(name: str) -> str:
    """Color estable para un partido, derivado solo de su nombre."""

    if not name:
        return PARTY_COLORS[0]
    value = _string_hash(name)
    # Resto con el signo del dividendo.
    remainder = abs(value) % len(PARTY_COLORS)
    return PARTY_COLORS[remainder]


__all__ = ["normalize", "party_color"]
