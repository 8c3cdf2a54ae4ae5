"""Geographic models - Pure data structures.

All functions are pure with no side effects.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box.

    Attributes:
        min_latitude: Southern boundary
        max_latitude: Northern boundary
        min_longitude: Western boundary
        max_longitude: Eastern boundary
    """
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def coordinate_errors(lat: float, lon: float) -> list[str]:
    """Describe any out-of-range latitude/longitude values.

    Pure function.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(f"Latitude {lat} out of range [-90, 90]")

    if not -180 <= lon <= 180:
        errors.append(f"Longitude {lon} out of range [-180, 180]")

    return errors


def bounds_errors(bounds: BoundingBox) -> list[str]:
    """Describe any problems with a bounding box.

    Pure function.

    Returns:
        List of error messages (empty if valid)
    """
    errors = []
    errors.extend(coordinate_errors(bounds.min_latitude, bounds.min_longitude))
    errors.extend(coordinate_errors(bounds.max_latitude, bounds.max_longitude))

    if bounds.min_latitude > bounds.max_latitude:
        errors.append(
            f"min_latitude ({bounds.min_latitude}) > max_latitude ({bounds.max_latitude})"
        )

    if bounds.min_longitude > bounds.max_longitude:
        errors.append(
            f"min_longitude ({bounds.min_longitude}) > max_longitude ({bounds.max_longitude})"
        )

    return errors
