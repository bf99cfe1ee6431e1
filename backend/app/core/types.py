"""
Canonical score & percentage types
==================================

RULE: scores are Decimal, never float arithmetic.

QualityScore: Decimal 0-10 (one checklist item's calif_valor)
        - Stored as NUMERIC(4, 2)
        - Serialized as string in JSON
Percentage:   int 0-100 (coverage / compliance)
        - Rounded half-up, like the dashboards display them

This module is the single place where rounding rules live.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer, WithJsonSchema


SCORE_MIN = Decimal("0")
SCORE_MAX = Decimal("10")
TWO_PLACES = Decimal("0.01")


def round_half_up(value: Decimal, places: Decimal = TWO_PLACES) -> Decimal:
    """Quantize with half-up rounding (2 decimals by default)."""
    return value.quantize(places, rounding=ROUND_HALF_UP)


def percent(numerator: int, denominator: int) -> int:
    """round(100 * numerator / denominator), half-up; 0 when denominator is 0."""
    if denominator <= 0:
        return 0
    ratio = Decimal(100 * numerator) / Decimal(denominator)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_to_percentage(score: Decimal | int | None) -> int:
    """0-10 score -> 0-100 display percentage."""
    if score is None:
        return 0
    return int((Decimal(score) * 10).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# QUALITY SCORE (Decimal 0-10)
# =============================================================================

def _validate_score(v: Any) -> Decimal:
    """
    Validate and convert to a Decimal quality score.

    Accepts Decimal, int, str, and JSON numbers (floats go through str()
    so 8.5 becomes Decimal("8.5"), not its binary approximation).

    The result is quantized half-up to the column's two decimals, so the
    value scored in memory is the value stored.
    """
    if isinstance(v, bool):
        raise ValueError(f"Invalid score: {v}")

    if isinstance(v, Decimal):
        dec = v
    elif isinstance(v, (int, float, str)):
        try:
            dec = Decimal(str(v))
        except Exception:
            raise ValueError(f"Invalid score: {v}")
    else:
        raise ValueError(f"Invalid score type: {type(v)}")

    if not dec.is_finite() or dec < SCORE_MIN or dec > SCORE_MAX:
        raise ValueError(f"Score must be 0-10, got: {dec}")

    return round_half_up(dec)


def _serialize_decimal(v: Decimal) -> str:
    """Serialize Decimal as string (prevents JSON float issues)."""
    return str(v)


QualityScore = Annotated[
    Decimal,
    BeforeValidator(_validate_score),
    PlainSerializer(_serialize_decimal),
    WithJsonSchema({"type": "string", "description": "Quality score 0-10"}),
]

# Aggregates (area / average score) are already validated by construction.
ScoreValue = Annotated[
    Decimal,
    PlainSerializer(_serialize_decimal),
    WithJsonSchema({"type": "string", "description": "Score 0-10, two decimals"}),
]


__all__ = [
    "QualityScore",
    "ScoreValue",
    "SCORE_MIN",
    "SCORE_MAX",
    "percent",
    "round_half_up",
    "score_to_percentage",
]
