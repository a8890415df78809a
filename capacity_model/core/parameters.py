"""
Parameters: the immutable input record of the capacity investment model.

Every engine function receives a Parameters value (or parts of it) and never
mutates it. Callers create one from defaults or from a stored document, and
derive new ones with ``dataclasses.replace`` or the ScenarioAdjuster.

DOCUMENT FORMAT
---------------
The record maps one-to-one onto the camelCase JSON document used by the
planning UI and its file export:

    {
        "modelData": {"capacity": 8000, "capacityAnnual": 96000, "years": [2023, ...]},
        "yearConfig": {"startYear": 2023, "duration": 35},
        "capacityUsage": 3,
        "capacityGrowth": 20,
        "priceTiers": [{"name": "Em-Pro", "price": 45000, "percentage": 60}, ...],
        "priceGrowth": 2,
        "fixedCosts": [{"name": "Insurance", "cost": 450000, "monthly": true, "type": "regular"}, ...],
        "variableCosts": [{"name": "Paint", "unitCost": 2278.13, "tier": "Em-Pro", "volumeReduction": 5}, ...],
        "loans": [{"name": "Building Loan", "amount": 213000000, "bank": "KBank",
                   "interestRate": 5.91, "term": 91, "startDate": "2023-01", "type": "building"}, ...],
        "yieldLoss": 2
    }

Optional keys ``customGrowthRates`` and ``customMonthlyVolumes`` override the
compounding capacity ramp year by year.

UNITS
-----
    - capacity: tons/month
    - prices, unit costs: base currency per ton
    - fixed costs, loan amounts: base currency
    - capacityUsage, capacityGrowth, priceGrowth, percentage, yieldLoss,
      interestRate, volumeReduction: percent (5 = 5%)
    - term: months

Parameters.from_dict() does not validate; documents coming from outside the
process go through capacity_model.persistence first.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from capacity_model.settings import MAX_DURATION, MIN_DURATION


@dataclass(frozen=True)
class ModelData:
    """Plant capacity and the (informational) list of model years."""

    capacity: float
    capacity_annual: float
    years: Tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ModelData:
        capacity = float(data["capacity"])
        return cls(
            capacity=capacity,
            capacity_annual=float(data.get("capacityAnnual", capacity * 12)),
            years=tuple(int(y) for y in data.get("years", ())),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capacity": self.capacity,
            "capacityAnnual": self.capacity_annual,
            "years": list(self.years),
        }


@dataclass(frozen=True)
class YearConfig:
    """Projection horizon [start_year, start_year + duration)."""

    start_year: int
    duration: int

    def years(self) -> List[int]:
        """Return the calendar years of the horizon in order."""
        return list(range(self.start_year, self.start_year + self.duration))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> YearConfig:
        return cls(start_year=int(data["startYear"]), duration=int(data["duration"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"startYear": self.start_year, "duration": self.duration}


@dataclass(frozen=True)
class PriceTier:
    """A product tier: selling price [per ton] and sales-mix share [%]."""

    name: str
    price: float
    percentage: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PriceTier:
        return cls(
            name=str(data["name"]),
            price=float(data["price"]),
            percentage=float(data["percentage"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "price": self.price, "percentage": self.percentage}


@dataclass(frozen=True)
class FixedCost:
    """
    A fixed cost item.

    Regular items are operating costs quoted per month or per year. Depreciation
    items carry the full asset cost in ``cost`` and are written off over
    ``years`` years from the project start. ``start_year`` is kept for the
    document format but does not shift the depreciation window.
    """

    name: str
    cost: float
    monthly: bool = False
    annual: bool = False
    type: str = "regular"
    years: Optional[int] = None
    start_year: Optional[int] = None

    @property
    def is_depreciation(self) -> bool:
        return self.type == "depreciation"

    @property
    def life_years(self) -> int:
        """Usable life for depreciation items; 1 when missing or zero."""
        return self.years or 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FixedCost:
        years = data.get("years")
        start_year = data.get("startYear")
        return cls(
            name=str(data["name"]),
            cost=float(data["cost"]),
            monthly=bool(data.get("monthly", False)),
            annual=bool(data.get("annual", False)),
            type=str(data.get("type", "regular")),
            years=int(years) if years is not None else None,
            start_year=int(start_year) if start_year is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "cost": self.cost, "type": self.type}
        if self.monthly:
            data["monthly"] = True
        if self.annual:
            data["annual"] = True
        if self.years is not None:
            data["years"] = self.years
        if self.start_year is not None:
            data["startYear"] = self.start_year
        return data


@dataclass(frozen=True)
class VariableCost:
    """
    A variable cost per ton.

    Applies either to one product tier's share of the volume (``tier``) or to
    the whole volume (``applies_to_all``, stored as ``all`` in documents).
    ``volume_reduction`` is a % discount per 1000 tons of monthly volume.
    """

    name: str
    unit_cost: float
    tier: Optional[str] = None
    applies_to_all: bool = False
    volume_reduction: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VariableCost:
        reduction = data.get("volumeReduction")
        tier = data.get("tier")
        return cls(
            name=str(data["name"]),
            unit_cost=float(data["unitCost"]),
            tier=str(tier) if tier is not None else None,
            applies_to_all=bool(data.get("all", False)),
            volume_reduction=float(reduction) if reduction is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "unitCost": self.unit_cost}
        if self.tier is not None:
            data["tier"] = self.tier
        if self.applies_to_all:
            data["all"] = True
        if self.volume_reduction is not None:
            data["volumeReduction"] = self.volume_reduction
        return data


@dataclass(frozen=True)
class Loan:
    """An amortizing loan with monthly payments starting at ``start_date`` ("YYYY-MM")."""

    name: str
    amount: float
    bank: str
    interest_rate: float
    term: int
    start_date: str
    type: str = "other"

    @property
    def start_year(self) -> int:
        return int(self.start_date.split("-")[0])

    @property
    def start_month(self) -> int:
        """Calendar month of the first payment [1-12]."""
        parts = self.start_date.split("-")
        return int(parts[1]) if len(parts) > 1 else 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Loan:
        return cls(
            name=str(data["name"]),
            amount=float(data["amount"]),
            bank=str(data.get("bank", "")),
            interest_rate=float(data["interestRate"]),
            term=int(data["term"]),
            start_date=str(data["startDate"]),
            type=str(data.get("type", "other")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "amount": self.amount,
            "bank": self.bank,
            "interestRate": self.interest_rate,
            "term": self.term,
            "startDate": self.start_date,
            "type": self.type,
        }


@dataclass(frozen=True)
class Parameters:
    """
    Complete input record of the model.

    Sequences are stored as tuples so that a Parameters value can be shared
    between callers without defensive copies.
    """

    model_data: ModelData
    year_config: YearConfig
    capacity_usage: float
    capacity_growth: float
    price_tiers: Tuple[PriceTier, ...]
    price_growth: float
    fixed_costs: Tuple[FixedCost, ...] = ()
    variable_costs: Tuple[VariableCost, ...] = ()
    loans: Tuple[Loan, ...] = ()
    yield_loss: float = 0.0
    custom_growth_rates: Optional[Tuple[float, ...]] = None
    custom_monthly_volumes: Optional[Tuple[float, ...]] = None

    def __post_init__(self) -> None:
        # Accept lists from callers; store tuples
        for name in ("price_tiers", "fixed_costs", "variable_costs", "loans"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        for name in ("custom_growth_rates", "custom_monthly_volumes"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(float(v) for v in value))

    @property
    def capacity(self) -> float:
        """Monthly capacity [tons/month]."""
        return self.model_data.capacity

    def with_year_range(self, start_year: int, duration: int) -> Parameters:
        """
        Return a copy with a new projection horizon.

        The duration is clamped to [MIN_DURATION, MAX_DURATION] and
        modelData.years is regenerated to match.
        """
        duration = max(MIN_DURATION, min(MAX_DURATION, int(duration)))
        year_config = YearConfig(start_year=int(start_year), duration=duration)
        model_data = replace(self.model_data, years=tuple(year_config.years()))
        return replace(self, year_config=year_config, model_data=model_data)

    # ------------------------------------------------------------------
    # Document conversion
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Parameters:
        """Build Parameters from a camelCase document (no validation)."""
        growth_rates = data.get("customGrowthRates")
        monthly_volumes = data.get("customMonthlyVolumes")
        return cls(
            model_data=ModelData.from_dict(data["modelData"]),
            year_config=YearConfig.from_dict(data["yearConfig"]),
            capacity_usage=float(data["capacityUsage"]),
            capacity_growth=float(data["capacityGrowth"]),
            price_tiers=tuple(PriceTier.from_dict(t) for t in data["priceTiers"]),
            price_growth=float(data["priceGrowth"]),
            fixed_costs=tuple(FixedCost.from_dict(c) for c in data.get("fixedCosts", ())),
            variable_costs=tuple(VariableCost.from_dict(c) for c in data.get("variableCosts", ())),
            loans=tuple(Loan.from_dict(loan) for loan in data.get("loans", ())),
            yield_loss=float(data.get("yieldLoss", 0.0)),
            custom_growth_rates=tuple(growth_rates) if growth_rates is not None else None,
            custom_monthly_volumes=tuple(monthly_volumes) if monthly_volumes is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase document for this record (JSON-compatible)."""
        data: Dict[str, Any] = {
            "modelData": self.model_data.to_dict(),
            "yearConfig": self.year_config.to_dict(),
            "capacityUsage": self.capacity_usage,
            "capacityGrowth": self.capacity_growth,
            "priceTiers": [t.to_dict() for t in self.price_tiers],
            "priceGrowth": self.price_growth,
            "fixedCosts": [c.to_dict() for c in self.fixed_costs],
            "variableCosts": [c.to_dict() for c in self.variable_costs],
            "loans": [loan.to_dict() for loan in self.loans],
            "yieldLoss": self.yield_loss,
        }
        if self.custom_growth_rates is not None:
            data["customGrowthRates"] = list(self.custom_growth_rates)
        if self.custom_monthly_volumes is not None:
            data["customMonthlyVolumes"] = list(self.custom_monthly_volumes)
        return data


# ----------------------------------------------------------------------
# Default parameter set
# ----------------------------------------------------------------------

_DEFAULT_DOCUMENT: Dict[str, Any] = {
    "modelData": {
        "capacity": 8000,
        "capacityAnnual": 96000,
        "years": [2023, 2024, 2025, 2026, 2027, 2028, 2029, 2030, 2031, 2032],
    },
    "yearConfig": {"startYear": 2023, "duration": 35},
    "capacityUsage": 3,
    "capacityGrowth": 20,
    "priceTiers": [
        {"name": "Em-Unique", "price": 74000, "percentage": 10},
        {"name": "Em-One", "price": 52000, "percentage": 10},
        {"name": "Em-Pro", "price": 45000, "percentage": 60},
        {"name": "Em-Star", "price": 37000, "percentage": 20},
    ],
    "priceGrowth": 2,
    "fixedCosts": [
        {"name": "Building Depreciation", "cost": 20800000, "annual": True,
         "type": "depreciation", "years": 25, "startYear": 2023},
        {"name": "PPGL Machine Depreciation", "cost": 22500000, "annual": True,
         "type": "depreciation", "years": 20, "startYear": 2023},
        {"name": "Soft Cost Depreciation", "cost": 1000000, "annual": True,
         "type": "depreciation", "years": 20, "startYear": 2023},
        {"name": "Administrative Staff", "cost": 1500000, "monthly": True, "type": "regular"},
        {"name": "Insurance", "cost": 450000, "monthly": True, "type": "regular"},
        {"name": "Other Fixed Costs", "cost": 350000, "monthly": True, "type": "regular"},
    ],
    "variableCosts": [
        {"name": "Raw Materials - Tier 1", "unitCost": 30659.61, "tier": "Em-Unique", "volumeReduction": 10},
        {"name": "Raw Materials - Tier 2", "unitCost": 35616.9, "tier": "Em-One", "volumeReduction": 10},
        {"name": "Raw Materials - Tier 3", "unitCost": 36960.86, "tier": "Em-Pro", "volumeReduction": 10},
        {"name": "Raw Materials - Tier 4", "unitCost": 32326.07, "tier": "Em-Star", "volumeReduction": 10},
        {"name": "Paint - Tier 1", "unitCost": 16815.96, "tier": "Em-Unique", "volumeReduction": 5},
        {"name": "Paint - Tier 2", "unitCost": 5202.86, "tier": "Em-One", "volumeReduction": 5},
        {"name": "Paint - Tier 3", "unitCost": 2278.13, "tier": "Em-Pro", "volumeReduction": 5},
        {"name": "Paint - Tier 4", "unitCost": 1083.73, "tier": "Em-Star", "volumeReduction": 5},
        {"name": "LNG - Tier 1", "unitCost": 4545.45, "tier": "Em-Unique", "volumeReduction": 5},
        {"name": "LNG - Tier 2", "unitCost": 3072.67, "tier": "Em-One", "volumeReduction": 5},
        {"name": "LNG - Tier 3", "unitCost": 2352.48, "tier": "Em-Pro", "volumeReduction": 5},
        {"name": "LNG - Tier 4", "unitCost": 1490.56, "tier": "Em-Star", "volumeReduction": 5},
        {"name": "Consumable - Tier 1", "unitCost": 2784.87, "tier": "Em-Unique", "volumeReduction": 5},
        {"name": "Consumable - Tier 2", "unitCost": 1964.7, "tier": "Em-One", "volumeReduction": 5},
        {"name": "Consumable - Tier 3", "unitCost": 1732.93, "tier": "Em-Pro", "volumeReduction": 5},
        {"name": "Consumable - Tier 4", "unitCost": 849.44, "tier": "Em-Star", "volumeReduction": 5},
        {"name": "Film", "unitCost": 2472.6, "tier": "Em-Unique", "volumeReduction": 5},
        {"name": "Direct Labour", "unitCost": 8351.25, "all": True},
        {"name": "Utility - Tier 1", "unitCost": 19301.23, "tier": "Em-Unique", "volumeReduction": 5},
        {"name": "Utility - Tier 2", "unitCost": 1991.44, "tier": "Em-One", "volumeReduction": 5},
        {"name": "Utility - Tier 3", "unitCost": 2350.53, "tier": "Em-Pro", "volumeReduction": 5},
        {"name": "Utility - Tier 4", "unitCost": 740.95, "tier": "Em-Star", "volumeReduction": 5},
        {"name": "Maintenance Cost", "unitCost": 1840.17, "all": True, "volumeReduction": 5},
        {"name": "Production Supply", "unitCost": 10158.82, "all": True, "volumeReduction": 5},
    ],
    "loans": [
        {"name": "PPGL Machine Loan", "amount": 360000000, "bank": "BBL",
         "interestRate": 4.75, "term": 84, "startDate": "2023-01", "type": "machine"},
        {"name": "Building Loan", "amount": 213000000, "bank": "KBank",
         "interestRate": 5.91, "term": 91, "startDate": "2023-01", "type": "building"},
        {"name": "Crane", "amount": 30690000, "bank": "BSL",
         "interestRate": 4.96, "term": 48, "startDate": "2023-08", "type": "other"},
        {"name": "Overhead Crane", "amount": 23561543.94, "bank": "BSL",
         "interestRate": 6.1, "term": 60, "startDate": "2023-01", "type": "other"},
        {"name": "Solar", "amount": 23261940, "bank": "BSL",
         "interestRate": 5.27, "term": 60, "startDate": "2024-03", "type": "other"},
    ],
    "yieldLoss": 2,
}


def default_parameters() -> Parameters:
    """Return the default plant configuration."""
    return Parameters.from_dict(_DEFAULT_DOCUMENT)
