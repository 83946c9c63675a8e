"""Risk calibration tables — reads the YAML bracket definitions from disk.

The tables are parsed once into frozen dataclasses and tuples so that a
single ``RiskTables`` instance can be shared by every caller.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from wellscale.domains.body_composition.domain_logic.errors import CalibrationError
from wellscale.domains.body_composition.domain_logic.metric_models import (
    DISEASE_CATEGORIES,
    GENDERS,
    RiskVector,
)

DEFAULT_TABLES_PATH = (
    Path(__file__).resolve().parent.parent / "calibration" / "risk_tables.yaml"
)

REQUIRED_METRICS = (
    "body_fat",
    "bmi",
    "body_water",
    "bone_mass",
    "muscle_volume",
    "blood_pressure",
    "heart_rate",
    "hrv",
    "spo2",
    "respiration_rate",
)

# Key used for metrics that do not depend on gender
ANY_GENDER = "any"


@dataclass(frozen=True)
class RiskBracket:
    """Half-open range ``[previous below, below)`` and what it maps to.

    A leaf bracket carries a ``risk`` vector; a companion bracket (body
    weight, height) carries nested ``brackets`` for the metric itself.
    """

    label: str
    below: float | None
    risk: RiskVector | None = None
    brackets: tuple[RiskBracket, ...] = ()

    def matches(self, value: float) -> bool:
        return self.below is None or value < self.below


@dataclass(frozen=True)
class MetricTable:
    name: str
    unit: str
    by_gender: Mapping[str, tuple[RiskBracket, ...]]
    companion: str | None = None

    @property
    def gendered(self) -> bool:
        return ANY_GENDER not in self.by_gender

    def lookup(
        self,
        value: float,
        *,
        gender: str | None = None,
        companion_value: float | None = None,
    ) -> RiskBracket:
        """Return the leaf bracket that ``value`` falls into."""
        key = gender if self.gendered else ANY_GENDER
        if key not in self.by_gender:
            raise CalibrationError(f"No {self.name} brackets for gender {gender!r}")
        brackets = self.by_gender[key]
        if self.companion is not None:
            if companion_value is None:
                raise CalibrationError(f"{self.name} needs a {self.companion} value")
            brackets = _first_match(brackets, companion_value).brackets
        return _first_match(brackets, value)


@dataclass(frozen=True)
class RiskTables:
    version: str
    metrics: Mapping[str, MetricTable] = field(default_factory=dict)

    def __getitem__(self, name: str) -> MetricTable:
        return self.metrics[name]


def _first_match(brackets: tuple[RiskBracket, ...], value: float) -> RiskBracket:
    for bracket in brackets:
        if bracket.matches(value):
            return bracket
    # Unreachable for validated tables: the last bracket is open-ended.
    raise CalibrationError(f"No bracket matches value {value!r}")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_risk_tables(path: str | Path = DEFAULT_TABLES_PATH) -> RiskTables:
    """Parse and validate a risk calibration YAML file.

    Raises:
        CalibrationError: If the file is missing or any table is malformed.
    """
    path = Path(path).expanduser()
    try:
        with open(path) as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}
    except OSError as exc:
        raise CalibrationError(f"Cannot read risk tables from {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise CalibrationError(f"Invalid YAML in {path}: {exc}") from exc

    return parse_risk_tables(data)


def parse_risk_tables(data: dict[str, Any]) -> RiskTables:
    """Build ``RiskTables`` from already-parsed YAML data."""
    raw_metrics = data.get("metrics")
    if not isinstance(raw_metrics, dict):
        raise CalibrationError("Risk tables must define a 'metrics' mapping")

    missing = [name for name in REQUIRED_METRICS if name not in raw_metrics]
    if missing:
        raise CalibrationError(f"Risk tables missing metrics: {missing}")

    metrics = {
        name: _parse_metric(name, definition) for name, definition in raw_metrics.items()
    }
    return RiskTables(
        version=str(data.get("version", "")),
        metrics=MappingProxyType(metrics),
    )


@functools.lru_cache(maxsize=None)
def default_risk_tables() -> RiskTables:
    """The packaged calibration, parsed on first use and shared afterwards."""
    return load_risk_tables(DEFAULT_TABLES_PATH)


def _parse_metric(name: str, definition: Any) -> MetricTable:
    if not isinstance(definition, dict):
        raise CalibrationError(f"{name}: table must be a mapping")

    companion = definition.get("companion")
    if "brackets" in definition:
        by_gender = {
            ANY_GENDER: _parse_brackets(definition["brackets"], name, nested=companion is not None),
        }
    else:
        absent = [g for g in GENDERS if g not in definition]
        if absent:
            raise CalibrationError(f"{name}: missing brackets for {absent}")
        by_gender = {
            gender: _parse_brackets(definition[gender], f"{name}.{gender}", nested=companion is not None)
            for gender in GENDERS
        }

    return MetricTable(
        name=name,
        unit=str(definition.get("unit", "")),
        by_gender=MappingProxyType(by_gender),
        companion=companion,
    )


def _parse_brackets(raw: Any, where: str, *, nested: bool) -> tuple[RiskBracket, ...]:
    if not isinstance(raw, list) or not raw:
        raise CalibrationError(f"{where}: brackets must be a non-empty list")

    brackets: list[RiskBracket] = []
    previous: float | None = None
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise CalibrationError(f"{where}[{index}]: bracket must be a mapping")
        label = str(item.get("label", index))

        below = item.get("below")
        if index == len(raw) - 1:
            if below is not None:
                raise CalibrationError(f"{where}[{label}]: last bracket must be open-ended")
        else:
            if isinstance(below, bool) or not isinstance(below, (int, float)):
                raise CalibrationError(f"{where}[{label}]: 'below' must be a number")
            if previous is not None and below <= previous:
                raise CalibrationError(f"{where}[{label}]: thresholds must increase")
            below = previous = float(below)

        if nested:
            children = _parse_brackets(item.get("brackets"), f"{where}.{label}", nested=False)
            brackets.append(RiskBracket(label=label, below=below, brackets=children))
        else:
            risk = _parse_vector(item.get("risk"), f"{where}[{label}]")
            brackets.append(RiskBracket(label=label, below=below, risk=risk))

    return tuple(brackets)


def _parse_vector(raw: Any, where: str) -> RiskVector:
    if not isinstance(raw, dict):
        raise CalibrationError(f"{where}: 'risk' must be a mapping")
    if set(raw) != set(DISEASE_CATEGORIES):
        raise CalibrationError(
            f"{where}: risk keys must be exactly {list(DISEASE_CATEGORIES)}"
        )
    values = []
    for name in DISEASE_CATEGORIES:
        value = raw[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
            raise CalibrationError(f"{where}: {name} must be a number in 0-100")
        values.append(float(value))
    return RiskVector(*values)
