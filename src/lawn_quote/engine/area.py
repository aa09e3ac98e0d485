"""Area measurement helpers."""
from typing import Optional

from .errors import InvalidInputError
from .models import AREA_SOURCES, DEFAULT_AREA_ESTIMATES, AreaMeasurement


def measured_area(area) -> AreaMeasurement:
    """Area from a boundary drawn on the map."""
    return AreaMeasurement(area=area, source='measured')


def estimated_area(property_type: Optional[str], estimates: dict = None) -> AreaMeasurement:
    """Default area for a property type when nothing has been measured."""
    estimates = estimates or DEFAULT_AREA_ESTIMATES
    key = (property_type or 'residential').strip().lower()
    if key not in estimates:
        raise InvalidInputError(f"No area estimate for property type '{property_type}'")
    return AreaMeasurement(area=estimates[key], source='estimated')


def make_measurement(area, source: str) -> AreaMeasurement:
    if source not in AREA_SOURCES:
        raise InvalidInputError(
            f"Unknown area source '{source}'; expected one of {', '.join(AREA_SOURCES)}"
        )
    return AreaMeasurement(area=area, source=source)
