from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from src.domain.exceptions import ValidationFailed


class IssueType(str, Enum):
    # Structural errors
    EMPTY_SPACE = "empty_space"
    INCORRECT_CONNECTION = "incorrect_connection"
    UNREALISTIC_ROUTE = "unrealistic_route"
    INVALID_CITY_FORMAT = "invalid_city_format"
    # Structural warnings
    SIMPLIFIED_PATH = "simplified_path"
    LONG_DISTANCE = "long_distance"
    UNUSUAL_ROUTE = "unusual_route"
    # Plausibility
    DISTANCE_MISMATCH = "distance_mismatch"
    PRICE_MISMATCH = "price_mismatch"
    PATH_MISMATCH = "path_mismatch"
    HUB_MISMATCH = "hub_mismatch"
    TRANSFER_MISMATCH = "transfer_mismatch"


@dataclass(frozen=True, slots=True)
class RouteIssue:
    type: IssueType
    message: str
    segment_id: str | None = None

    def format(self) -> str:
        return f"[{self.type.value}] {self.message}"


@dataclass(frozen=True, slots=True)
class Correction:
    type: str
    suggested_value: float | str | None
    confidence: float


@dataclass(frozen=True, slots=True)
class RealityIssue:
    type: IssueType
    message: str
    segment_id: str | None = None
    expected: float | None = None
    actual: float | None = None
    correction: Correction | None = None


@dataclass(frozen=True, slots=True)
class RealityCheckResult:
    issues: tuple[RealityIssue, ...] = ()
    recommendations: tuple[str, ...] = ()

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)


@dataclass(frozen=True, slots=True)
class SegmentValidation:
    segment_id: str
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True, slots=True)
class ValidationResult:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    segment_validations: tuple[SegmentValidation, ...] = ()
    recommendations: tuple[str, ...] = ()
    corrections: tuple[RealityIssue, ...] = field(default=(), repr=False)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def ensure_valid(self) -> None:
        if self.errors:
            raise ValidationFailed(list(self.errors))
