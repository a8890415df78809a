"""
Loading and saving parameter documents.

Parameters.from_dict() trusts its input. Documents read from disk or received
from a UI pass through parameters_from_dict(), which checks structure and
ranges first and raises ParameterValidationError naming the offending field.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from capacity_model.core.parameters import Parameters
from capacity_model.settings import MAX_DURATION, MIN_DURATION

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

REQUIRED_FIELDS = (
    "modelData",
    "yearConfig",
    "capacityUsage",
    "capacityGrowth",
    "priceTiers",
    "priceGrowth",
    "fixedCosts",
    "variableCosts",
    "loans",
    "yieldLoss",
)


class ParameterValidationError(ValueError):
    """Raised when a parameter document is missing fields or holds invalid values."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, Mapping):
        raise ParameterValidationError(f"{where} must be an object, got {type(data).__name__}")
    if key not in data:
        raise ParameterValidationError(f"{where}.{key} is required")
    return data[key]


def _require_number(data: Mapping[str, Any], key: str, where: str) -> float:
    value = _require(data, key, where)
    if not _is_number(value):
        raise ParameterValidationError(f"{where}.{key} must be a number, got {value!r}")
    return value


def _require_list(data: Mapping[str, Any], key: str, where: str) -> list:
    value = _require(data, key, where)
    if not isinstance(value, list):
        raise ParameterValidationError(f"{where}.{key} must be a list, got {type(value).__name__}")
    return value


def _validate_fixed_cost(item: Mapping[str, Any], where: str) -> None:
    _require(item, "name", where)
    _require_number(item, "cost", where)
    monthly = bool(item.get("monthly", False))
    annual = bool(item.get("annual", False))
    if monthly == annual:
        raise ParameterValidationError(f"{where} must set exactly one of 'monthly' or 'annual'")
    if item.get("type") == "depreciation":
        years = item.get("years")
        if years is not None and (not _is_number(years) or years < 0):
            raise ParameterValidationError(f"{where}.years must be a non-negative number, got {years!r}")


def _validate_variable_cost(item: Mapping[str, Any], where: str) -> None:
    _require(item, "name", where)
    _require_number(item, "unitCost", where)
    has_tier = item.get("tier") is not None
    applies_to_all = bool(item.get("all", False))
    if has_tier == applies_to_all:
        raise ParameterValidationError(f"{where} must set exactly one of 'tier' or 'all'")
    reduction = item.get("volumeReduction")
    if reduction is not None and not _is_number(reduction):
        raise ParameterValidationError(f"{where}.volumeReduction must be a number, got {reduction!r}")


def _validate_loan(item: Mapping[str, Any], where: str) -> None:
    _require(item, "name", where)
    _require_number(item, "amount", where)
    _require_number(item, "interestRate", where)
    _require_number(item, "term", where)
    start_date = _require(item, "startDate", where)
    parts = str(start_date).split("-")
    if len(parts) != 2 or not all(p.isdigit() for p in parts) or not 1 <= int(parts[1]) <= 12:
        raise ParameterValidationError(f"{where}.startDate must be 'YYYY-MM', got {start_date!r}")


def _validate_number_list(data: Mapping[str, Any], key: str) -> None:
    values = data.get(key)
    if values is None:
        return
    if not isinstance(values, list) or not all(_is_number(v) for v in values):
        raise ParameterValidationError(f"{key} must be a list of numbers, got {values!r}")


def validate_document(data: Mapping[str, Any]) -> None:
    """
    Check a camelCase parameter document.

    Raises:
        ParameterValidationError: On the first missing or invalid field.
    """
    if not isinstance(data, Mapping):
        raise ParameterValidationError(f"Parameter document must be an object, got {type(data).__name__}")

    for key in REQUIRED_FIELDS:
        _require(data, key, "parameters")

    model_data = data["modelData"]
    capacity = _require_number(model_data, "capacity", "modelData")
    if capacity < 0:
        raise ParameterValidationError(f"modelData.capacity must be >= 0, got {capacity}")

    year_config = data["yearConfig"]
    _require_number(year_config, "startYear", "yearConfig")
    duration = _require_number(year_config, "duration", "yearConfig")
    if not MIN_DURATION <= duration <= MAX_DURATION:
        raise ParameterValidationError(
            f"yearConfig.duration must be in [{MIN_DURATION}, {MAX_DURATION}], got {duration}"
        )

    for key in ("capacityUsage", "capacityGrowth", "priceGrowth"):
        _require_number(data, key, "parameters")

    yield_loss = _require_number(data, "yieldLoss", "parameters")
    if not 0 <= yield_loss < 100:
        raise ParameterValidationError(f"yieldLoss must be in [0, 100), got {yield_loss}")

    for i, tier in enumerate(_require_list(data, "priceTiers", "parameters")):
        where = f"priceTiers[{i}]"
        _require(tier, "name", where)
        _require_number(tier, "price", where)
        _require_number(tier, "percentage", where)

    for i, item in enumerate(_require_list(data, "fixedCosts", "parameters")):
        _validate_fixed_cost(item, f"fixedCosts[{i}]")

    for i, item in enumerate(_require_list(data, "variableCosts", "parameters")):
        _validate_variable_cost(item, f"variableCosts[{i}]")

    for i, item in enumerate(_require_list(data, "loans", "parameters")):
        _validate_loan(item, f"loans[{i}]")

    _validate_number_list(data, "customGrowthRates")
    _validate_number_list(data, "customMonthlyVolumes")


def parameters_from_dict(data: Mapping[str, Any]) -> Parameters:
    """Validate a document and build Parameters from it."""
    validate_document(data)
    return Parameters.from_dict(dict(data))


def load_parameters(path: PathLike) -> Parameters:
    """
    Read a JSON parameter document.

    Raises:
        ParameterValidationError: If the document is invalid.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        data: Dict[str, Any] = json.load(fh)
    logger.debug("Loaded parameter document from %s", path)
    return parameters_from_dict(data)


def save_parameters(params: Parameters, path: PathLike) -> Path:
    """Write Parameters as an indented JSON document; returns the path written."""
    path = Path(path)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(params.to_dict(), fh, indent=2)
        fh.write("\n")
    logger.debug("Saved parameter document to %s", path)
    return path
