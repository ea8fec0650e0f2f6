"""
Daily statistics math.

Pure helpers that reduce one city's observations for one day to the values
stored on a DailyStatistic row.

ROUNDING RULES:
1. Temperatures: Decimal arithmetic on the reported value, half-up to 2 places
2. Humidity / pressure: integer mean, half-up
3. Collection rate: ratio half-up to 4 places, then x100 at 2 places
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

UNKNOWN_WEATHER = "Unknown"
CLEAR = "Clear"
CLOUDS = "Clouds"
RAIN = "Rain"


# ============================================================================
# ROUNDING
# ============================================================================

def to_decimal(value: float) -> Decimal:
    """Convert a float through its repr so 20.1 stays 20.1."""
    return Decimal(str(value))


def quantize_half_up(value: Decimal, places: Decimal = TWO_PLACES) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


def mean_half_up(values: Sequence[int]) -> Optional[int]:
    """
    Integer mean rounded half-up.

    Returns:
        Rounded mean, or None for an empty sequence
    """
    if not values:
        return None
    mean = Decimal(sum(values)) / Decimal(len(values))
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def collection_rate(total_records: int, expected_records: int) -> Optional[Decimal]:
    """
    Percentage of expected readings actually collected.

    Example:
        >>> collection_rate(1, 24)
        Decimal('4.17')
    """
    if expected_records <= 0:
        return None
    ratio = quantize_half_up(Decimal(total_records) / Decimal(expected_records), FOUR_PLACES)
    return quantize_half_up(ratio * 100)


# ============================================================================
# WEATHER BUCKETS
# ============================================================================

def weather_counts(mains: Iterable[Optional[str]]) -> Counter:
    """Count observations per weather class, keeping first-encounter order."""
    return Counter(main for main in mains if main)


def dominant_weather(counts: Counter) -> str:
    """
    Most frequent weather class.

    Ties go to the class encountered first; no classes at all gives "Unknown".
    """
    if not counts:
        return UNKNOWN_WEATHER
    # max() keeps the first of equal keys and Counter iterates in insertion order
    return max(counts.items(), key=lambda item: item[1])[0]


# ============================================================================
# DAILY SUMMARY
# ============================================================================

@dataclass
class DailySummary:
    """Values derived from one city's observations for one date."""

    total_records: int
    avg_temperature: Optional[Decimal] = None
    max_temperature: Optional[Decimal] = None
    min_temperature: Optional[Decimal] = None
    avg_humidity: Optional[int] = None
    avg_pressure: Optional[int] = None
    dominant_weather: str = UNKNOWN_WEATHER
    weather_counts: Counter = field(default_factory=Counter)
    clear_hours: int = 0
    cloudy_hours: int = 0
    rainy_hours: int = 0
    abnormal_weather_count: int = 0
    max_temperature_change: Decimal = Decimal("0.00")


def summarize_observations(observations: Sequence) -> DailySummary:
    """
    Reduce a day's observations to a DailySummary.

    Args:
        observations: The city's WeatherObservation rows for the date (any order)

    Returns:
        DailySummary; temperature fields stay None when no reading has a temperature
    """
    summary = DailySummary(total_records=len(observations))

    temperatures = [to_decimal(o.temperature) for o in observations if o.temperature is not None]
    if temperatures:
        summary.avg_temperature = quantize_half_up(sum(temperatures) / Decimal(len(temperatures)))
        summary.max_temperature = quantize_half_up(max(temperatures))
        summary.min_temperature = quantize_half_up(min(temperatures))

    summary.avg_humidity = mean_half_up([o.humidity for o in observations if o.humidity is not None])
    summary.avg_pressure = mean_half_up([o.pressure for o in observations if o.pressure is not None])

    counts = weather_counts(o.weather_main for o in observations)
    summary.weather_counts = counts
    summary.dominant_weather = dominant_weather(counts)
    summary.clear_hours = counts.get(CLEAR, 0)
    summary.cloudy_hours = counts.get(CLOUDS, 0)
    summary.rainy_hours = counts.get(RAIN, 0)

    summary.abnormal_weather_count = sum(1 for o in observations if o.is_abnormal)
    changes = [abs(to_decimal(o.temperature_change)) for o in observations
               if o.temperature_change is not None]
    if changes:
        summary.max_temperature_change = quantize_half_up(max(changes))

    return summary
