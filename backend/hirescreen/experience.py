"""
Experience evaluation against a job's experience band.

Two policies live here and neither is derived from the other:

- `evaluate()` (screening): a floor check. Meeting the minimum earns 100,
  anything over the maximum is not penalised, shortfalls earn linear credit.
- `evaluate_band_fit()` (ranking): inside the band is 1.0, above it 0.8,
  below it linear credit.
"""

from typing import Optional

from .schemas import ExperienceBand
from .utils import round_half_up

OVERQUALIFIED_FIT = 0.8


def _years(value) -> int:
    return max(0, int(value or 0))


def evaluate(found_experience: int, band: Optional[ExperienceBand]) -> int:
    """Experience match percentage (0–100) for the screening scorer."""
    found = _years(found_experience)
    minimum = _years(band.min_years if band else 0)

    if minimum == 0 or found >= minimum:
        return 100
    return round_half_up(100 * found / minimum)


def evaluate_band_fit(found_experience: int, band: Optional[ExperienceBand]) -> float:
    """Experience fit (0.0–1.0) for the ranking scorer."""
    band = band or ExperienceBand()
    found = _years(found_experience)
    minimum = _years(band.min_years)
    maximum = _years(band.max_years)

    if minimum <= found <= maximum:
        return 1.0
    if found > maximum:
        return OVERQUALIFIED_FIT
    return found / minimum
