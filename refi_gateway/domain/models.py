"""Domain models - pure Python dataclasses representing refinance entities"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional

ScenarioId = Literal["stay_current", "refi_same_term", "refi_15yr", "refi_30yr"]
VerdictColor = Literal["green", "yellow", "red"]
CreditTier = Literal["excellent", "good", "fair"]
RateSource = Literal["live", "cached", "fallback"]


@dataclass(frozen=True)
class LoanInput:
    """Borrower's current mortgage position"""

    remaining_balance: float  # dollars
    current_annual_rate: float  # decimal, e.g. 0.065 for 6.5%
    years_remaining: float  # may be fractional
    closing_costs: float  # dollars


@dataclass(frozen=True)
class EngineInput(LoanInput):
    """Loan position plus the candidate refinance rates"""

    refi_rate_same_term: float
    refi_rate_15yr: float
    refi_rate_30yr: float
    horizon_override_months: Optional[int] = None  # None = full remaining term


@dataclass(frozen=True)
class AmortizationRow:
    """One month of a fixed-rate amortization schedule"""

    month: int  # 1-based
    payment: float
    principal_paid: float
    interest_paid: float
    remaining_balance: float


@dataclass(frozen=True)
class ScenarioResult:
    """Full outcome of one candidate (stay or refinance) over the comparison horizon"""

    id: ScenarioId
    label: str
    rate: float  # annual, decimal
    term_months: int  # full loan term
    monthly_payment: float
    monthly_delta: float  # vs baseline, negative = savings
    interest_within_horizon: float
    fees: float  # 0 for baseline
    remaining_balance_at_horizon: float
    payments_within_horizon: float  # payment x min(term, horizon)
    cash_outflow_within_horizon: float  # fees + payments
    net_cost_at_horizon: float  # cash outflow + remaining balance, the ranking metric
    net_savings_at_horizon: float  # baseline net cost - this net cost
    cashflow_break_even_months: Optional[int]
    interest_break_even_months: Optional[int]
    annualized_return: Optional[float] = None  # IRR on closing costs, inf when fees are 0
    is_best_long_term: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Verdict:
    """Three-tier recommendation derived from the winning scenario"""

    color: VerdictColor
    label: str
    message: str
    break_even_months: Optional[int]
    monthly_delta: float
    net_savings: float
    best_scenario_id: ScenarioId


@dataclass(frozen=True)
class EngineOutput:
    """Result of a single engine run"""

    input: EngineInput
    horizon_months: int
    scenarios: List[ScenarioResult]
    verdict: Verdict


@dataclass(frozen=True)
class RateData:
    """Market rate snapshot; rates are percentages (6.85 means 6.85%)"""

    fetched_at: str  # ISO 8601
    fixed_30yr: float
    fixed_15yr: float
    source: str = "freddie_mac_pmms"

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "fetched_at": self.fetched_at,
            "rates": {"fixed_30yr": self.fixed_30yr, "fixed_15yr": self.fixed_15yr},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RateData":
        return cls(
            source=data.get("source", "freddie_mac_pmms"),
            fetched_at=data["fetched_at"],
            fixed_30yr=float(data["rates"]["fixed_30yr"]),
            fixed_15yr=float(data["rates"]["fixed_15yr"]),
        )


@dataclass(frozen=True)
class RateLookup:
    """Rate data tagged with how it was obtained"""

    rates: RateData
    source: RateSource


@dataclass(frozen=True)
class RateBreakdown:
    """Transparent account of how market rates became engine inputs"""

    rate_source: RateSource
    base_rate_30yr: float  # percentage
    base_rate_15yr: float  # percentage
    fetched_at: str
    credit_spread_30: float  # decimal
    credit_spread_15: float  # decimal
    final_rate_same_term: float  # decimal
    final_rate_15yr: float
    final_rate_30yr: float
    using_quoted_rate: bool
    quoted_rate: Optional[float] = None


@dataclass(frozen=True)
class LenderRate:
    """Single lender rate offer"""

    id: str
    lender_name: str
    rate: float  # decimal
    apr: float  # decimal
    monthly_payment: float
    fees: float  # total closing costs in dollars
    points: float  # discount points
    loan_program: str  # "30yr Fixed", "15yr Fixed"
    last_updated: str  # ISO 8601


@dataclass(frozen=True)
class ScoredLenderRate:
    """Lender offer evaluated against the borrower's current loan"""

    lender: LenderRate
    fees: float  # effective closing costs used by the engine
    verdict: Verdict
    monthly_savings: float  # positive = borrower saves
    break_even_months: Optional[int]
    total_savings: float
    engine_output: EngineOutput

