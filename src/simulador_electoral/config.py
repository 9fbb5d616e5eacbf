"""Constantes del modelo electoral: paletas, factores de escenario e ideologías."""
from __future__ import annotations

from typing import Dict, Tuple


# ---------------------------------------------------------------------------
# Ingesta
# ---------------------------------------------------------------------------

# Nombre de candidato que usan las filas con votos "solo por la lista".
LIST_ONLY_SENTINEL = "SOLO POR LA LISTA"

# Tipo de elección (normalizado) en el que el cabeza de lista se divide a la mitad.
LOWER_CHAMBER_ELECTION = "CAMARA"

NULL_VOTES_MARKER = "NULOS"
BLANK_VOTES_MARKER = "EN BLANCO"

# Columnas esperadas en la tabla de resultados.
COLUMN_ELECTION = "Eleccion"
COLUMN_YEAR = "Año"
COLUMN_UNIT = "UnidadPolitica"
COLUMN_CANDIDATE = "Candidato"
COLUMN_VOTES = "Votos"
COLUMN_LIST_HEAD = "EsCabezaDeLista"
COLUMN_ALLIANCE = "AlianzaHistoricaID"

REQUIRED_COLUMNS: Tuple[str, ...] = (COLUMN_CANDIDATE, COLUMN_VOTES, COLUMN_UNIT)


# ---------------------------------------------------------------------------
# Colores de partido
# ---------------------------------------------------------------------------

PARTY_COLORS: Tuple[str, ...] = (
    "#3b82f6", "#10b981", "#ef4444", "#f97316", "#8b5cf6", "#ec4899",
    "#6366f1", "#14b8a6", "#f59e0b", "#d946ef", "#0ea5e9", "#84cc16",
)

FALLBACK_COLOR = "#cccccc"


# ---------------------------------------------------------------------------
# Escenarios
# ---------------------------------------------------------------------------

INCUMBENCY_PENALTY_RANGE: Tuple[float, float] = (0.15, 0.20)

COATTAIL_FACTORS: Dict[str, float] = {"Nulo": 1.0, "Moderado": 1.15, "Fuerte": 1.25}
LOCAL_SUPPORT_FACTORS: Dict[str, float] = {"Nulo": 1.0, "Bajo": 1.05, "Medio": 1.12, "Alto": 1.20}
CAMPAIGN_STRENGTH_FACTORS: Dict[str, float] = {"Baja": 0.90, "Media": 1.0, "Alta": 1.15}

MONTE_CARLO_DEVIATION = 0.10


# ---------------------------------------------------------------------------
# Transferencia de votos
# ---------------------------------------------------------------------------

IDEOLOGY_SPECTRUM: Tuple[str, ...] = (
    "IZQUIERDA",
    "CENTRO-IZQUIERDA",
    "CENTRO",
    "REGIONALISTA",
    "ATRAPA-TODO",
    "OTRO",
    "RELIGIOSO",
    "CENTRO-DERECHA",
    "DERECHA",
)

DEFAULT_IDEOLOGY = "Otro"
UNKNOWN_IDEOLOGY_DISTANCE = 5

# Máxima fracción de los votos de un donante que puede migrar.
VULNERABILITY_FACTOR = 0.65

CREEMOS_PARTY = "PARTIDO POLITICO CREEMOS"
CREEMOS_DONOR_KEYWORDS: Tuple[str, ...] = (
    "PARTIDO CENTRO DEMOCRATICO",
    "PARTIDO LIBERAL COLOMBIANO",
    "PARTIDO CONSERVADOR COLOMBIANO",
    "PARTIDO CAMBIO RADICAL",
    "MIRA",  # incluye coaliciones con MIRA
    "MOVIMIENTO DE SALVACION NACIONAL",
)

KNOWN_COALITIONS: Dict[str, Tuple[str, ...]] = {
    "JUNTOS": ("CAMBIO RADICAL", "MIRA", "PARTIDO DE LA U"),
    "COALICION CAMBIO RADICAL -MIRA": ("PARTIDO CAMBIO RADICAL", "PARTIDO MIRA"),
    "COALICION PARTIDOS CAMBIO RADICAL - COLOMBIA JUSTA LIBRES - MIRA": (
        "PARTIDO CAMBIO RADICAL",
        "COLOMBIA JUSTA LIBRES",
        "PARTIDO MIRA",
    ),
}

# ---------------------------------------------------------------------------
# Historia por partido
# ---------------------------------------------------------------------------

EMA_PERIOD = 3
RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30

OPEN_LIST = "Abierta"
CLOSED_LIST = "Cerrada"
