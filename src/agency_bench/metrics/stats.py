"""Small numeric helpers shared by the metric stores."""


def safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def safe_average(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def percent(numerator: float, denominator: float, digits: int = 1) -> float:
    """Percentage rounded to ``digits`` places; 0 when the denominator is 0."""
    return round(safe_ratio(numerator, denominator) * 100, digits)
