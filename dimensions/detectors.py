"""
dimensions/detectors.py

Independent scoring functions that recognise one dimension role each.

Every detector looks at the column header and a sample of its values and
reports whether the column looks like its role. The registry keeps them in
priority order so ties resolve deterministically.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from dimensions.types import DimensionType

BASE_CONFIDENCE = 0.5
MATCH_BONUS = 0.4

NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")
PERCENTAGE_PATTERN = re.compile(r"^-?\d+(\.\d+)?%$")
UNIT_PATTERN = re.compile(
    r".*(kg|%|index|million|billion|thousand|USD|EUR|GBP|CNY|JPY).*",
    re.IGNORECASE,
)
URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

YEAR_PATTERN = re.compile(r"^\d{4}$")
MONTH_PATTERN = re.compile(
    r"^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?$",
    re.IGNORECASE,
)
QUARTER_PATTERN = re.compile(r"^Q[1-4]$", re.IGNORECASE)
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DEFAULT_GAZETTEER: tuple[str, ...] = (
    "USA",
    "Canada",
    "Mexico",
    "UK",
    "Germany",
    "France",
    "Spain",
    "Italy",
    "China",
    "Japan",
    "India",
    "Brazil",
    "Australia",
)


def looks_like_time_label(value: str) -> bool:
    candidate = value.strip()
    return bool(
        YEAR_PATTERN.match(candidate)
        or MONTH_PATTERN.match(candidate)
        or QUARTER_PATTERN.match(candidate)
        or ISO_DATE_PATTERN.match(candidate)
    )


def is_numeric_value(value: str) -> bool:
    return bool(NUMBER_PATTERN.match(value) or PERCENTAGE_PATTERN.match(value))


@dataclass(frozen=True)
class DetectorResult:
    matched: bool
    reason: str | None = None

    @property
    def confidence(self) -> float:
        if self.matched:
            return min(1.0, BASE_CONFIDENCE + MATCH_BONUS)
        return BASE_CONFIDENCE


NO_MATCH = DetectorResult(matched=False)


def _fraction(values: Sequence[str], predicate) -> float:
    if not values:
        return 0.0
    return sum(1 for value in values if predicate(value)) / len(values)


class DimensionDetector(ABC):
    """
    Base detector: header keyword match OR a share of sample values.
    """

    dimension_type: str = ""
    header_keywords: tuple[str, ...] = ()
    value_threshold: float = 1.0
    header_reason: str = ""
    value_reason: str = ""

    def detect(self, header: str, samples: Sequence[str], column_index: int) -> DetectorResult:
        lowered = header.lower()
        if any(keyword in lowered for keyword in self.header_keywords):
            return DetectorResult(matched=True, reason=self.header_reason)
        if samples and _fraction(samples, self.matches_value) >= self.value_threshold:
            return DetectorResult(matched=True, reason=self.value_reason)
        return NO_MATCH

    @abstractmethod
    def matches_value(self, value: str) -> bool:
        raise NotImplementedError


class TimeDetector(DimensionDetector):
    dimension_type = DimensionType.TIME
    header_keywords = ("year", "month", "date", "time", "period")
    value_threshold = 0.5
    header_reason = "Header names a time period"
    value_reason = "Detected time patterns in data"

    def matches_value(self, value: str) -> bool:
        return looks_like_time_label(value)


class LocationDetector(DimensionDetector):
    dimension_type = DimensionType.LOCATION
    header_keywords = ("country", "state", "city", "region", "location", "area")
    value_threshold = 0.3
    header_reason = "Header names a geographic location"
    value_reason = "Values match known place names"

    def __init__(self, gazetteer: Iterable[str] = DEFAULT_GAZETTEER) -> None:
        self._places = frozenset(place.strip().lower() for place in gazetteer if place.strip())

    def matches_value(self, value: str) -> bool:
        return value.strip().lower() in self._places


class IndicatorNameDetector(DimensionDetector):
    dimension_type = DimensionType.INDICATOR_NAME
    header_keywords = ("indicator", "metric", "measure", "name", "description")
    value_threshold = 0.7
    header_reason = "Header names an indicator"
    value_reason = "Values are mostly descriptive text"

    def detect(self, header: str, samples: Sequence[str], column_index: int) -> DetectorResult:
        if column_index == 0:
            return DetectorResult(matched=True, reason="First column usually lists indicator names")
        return super().detect(header, samples, column_index)

    def matches_value(self, value: str) -> bool:
        return bool(value) and not is_numeric_value(value)


class IndicatorValueDetector(DimensionDetector):
    dimension_type = DimensionType.INDICATOR_VALUE
    header_keywords = ("value", "amount", "number", "score", "rate")
    value_threshold = 0.7
    header_reason = "Header names a measured value"
    value_reason = "Values are mostly numeric"

    def matches_value(self, value: str) -> bool:
        return is_numeric_value(value)


class UnitDetector(DimensionDetector):
    dimension_type = DimensionType.UNIT
    header_keywords = ("unit", "measurement")
    value_threshold = 0.5
    header_reason = "Header names a unit of measurement"
    value_reason = "Values match known unit tokens"

    def matches_value(self, value: str) -> bool:
        return bool(UNIT_PATTERN.match(value))


class SourceDetector(DimensionDetector):
    dimension_type = DimensionType.SOURCE
    header_keywords = ("source", "reference", "url")
    value_threshold = 0.3
    header_reason = "Header names a data source"
    value_reason = "Values look like URLs"

    def matches_value(self, value: str) -> bool:
        return bool(URL_PATTERN.match(value.strip()))


class DetectorRegistry:
    """
    Ordered detector registry. Registration order is evaluation priority.
    """

    def __init__(self, detectors: Iterable[DimensionDetector] | None = None) -> None:
        self._detectors: dict[str, DimensionDetector] = {}
        for detector in detectors or ():
            self.register(detector)

    def register(self, detector: DimensionDetector) -> None:
        if detector.dimension_type not in DimensionType.ALL:
            raise ValueError(f"Unknown dimension_type='{detector.dimension_type}' for detector registration.")
        self._detectors[detector.dimension_type] = detector

    def detectors(self) -> Mapping[str, DimensionDetector]:
        return dict(self._detectors)

    def score(
        self,
        header: str,
        samples: Sequence[str],
        column_index: int,
    ) -> tuple[str, DetectorResult]:
        """
        Return the best scoring role; earlier registrations win ties.
        Columns nothing recognises fall back to ADDITIONAL.
        """

        best_type = DimensionType.ADDITIONAL
        best_result = NO_MATCH
        for dimension_type, detector in self._detectors.items():
            result = detector.detect(header, samples, column_index)
            if result.confidence > best_result.confidence:
                best_type, best_result = dimension_type, result
        return best_type, best_result


def build_default_registry(*, gazetteer: Iterable[str] = DEFAULT_GAZETTEER) -> DetectorRegistry:
    return DetectorRegistry(
        [
            TimeDetector(),
            LocationDetector(gazetteer),
            IndicatorNameDetector(),
            IndicatorValueDetector(),
            UnitDetector(),
            SourceDetector(),
        ]
    )
