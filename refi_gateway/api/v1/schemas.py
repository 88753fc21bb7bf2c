"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional

CreditTierField = Literal["excellent", "good", "fair"]

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class LoanFields(BaseModel):
    """Borrower's current mortgage"""

    remaining_balance: float = Field(..., gt=0, description="Outstanding principal in dollars")
    current_annual_rate: float = Field(..., gt=0, le=1, description="Current rate as a decimal (0.065)")
    years_remaining: float = Field(..., gt=0, le=50)
    closing_costs: float = Field(..., ge=0, description="Refinance closing costs in dollars")


class AnalyzeRequest(LoanFields):
    """Request body for POST /v1/analyze"""

    credit_tier: CreditTierField = "excellent"
    quoted_rate: Optional[float] = Field(None, gt=0, le=1, description="Lender quote as a decimal")
    horizon_months: Optional[int] = Field(None, gt=0, le=600, description="Comparison horizon override")


class ScenarioSchema(BaseModel):
    """One scenario's metrics at the comparison horizon"""

    id: str
    label: str
    rate: float
    term_months: int
    monthly_payment: float
    monthly_delta: float
    interest_within_horizon: float
    fees: float
    remaining_balance_at_horizon: float
    payments_within_horizon: float
    cash_outflow_within_horizon: float
    net_cost_at_horizon: float
    net_savings_at_horizon: float
    cashflow_break_even_months: Optional[int] = None
    interest_break_even_months: Optional[int] = None
    annualized_return: Optional[float] = Field(None, description="Annualized IRR; null when undefined or unbounded")
    no_cost_refinance: bool = False
    is_best_long_term: bool
    warnings: List[str]


class VerdictSchema(BaseModel):
    color: Literal["green", "yellow", "red"]
    label: str
    message: str
    break_even_months: Optional[int] = None
    monthly_delta: float
    net_savings: float
    best_scenario_id: str


class RateBreakdownSchema(BaseModel):
    """How market rates became the refinance rates used in the analysis"""

    rate_source: str
    base_rate_30yr: float
    base_rate_15yr: float
    fetched_at: str
    credit_spread_30: float
    credit_spread_15: float
    final_rate_same_term: float
    final_rate_15yr: float
    final_rate_30yr: float
    using_quoted_rate: bool
    quoted_rate: Optional[float] = None


class AnalyzeResponse(BaseModel):
    """Response for POST /v1/analyze"""

    horizon_months: int
    scenarios: List[ScenarioSchema]
    verdict: VerdictSchema
    rate_breakdown: RateBreakdownSchema
    trigger_rate: Optional[float] = Field(None, description="Rate that would turn the verdict green")


class RatesSchema(BaseModel):
    fixed_30yr: float
    fixed_15yr: float


class RateDataSchema(BaseModel):
    source: str
    fetched_at: str
    rates: RatesSchema


class MarketRatesResponse(BaseModel):
    """Response for GET /v1/market-rates"""

    rates: RateDataSchema
    rate_source: Literal["live", "cached", "fallback"]
    age_description: str


class LenderRatesRequest(BaseModel):
    """Request body for POST /v1/lender-rates"""

    loan_amount: float = Field(..., ge=10_000, le=2_000_000)
    credit_tier: CreditTierField
    property_value: Optional[float] = Field(None, gt=0)
    zip_code: Optional[str] = Field(None, max_length=10)

    # Supplying the current loan scores each offer against it
    current_annual_rate: Optional[float] = Field(None, gt=0, le=1)
    years_remaining: Optional[float] = Field(None, gt=0, le=50)
    closing_costs: Optional[float] = Field(None, ge=0)


class LenderRateSchema(BaseModel):
    id: str
    lender_name: str
    rate: float
    apr: float
    monthly_payment: float
    fees: float
    points: float
    loan_program: str
    last_updated: str


class ScoredLenderRateSchema(BaseModel):
    lender: LenderRateSchema
    fees: float
    verdict: VerdictSchema
    monthly_savings: float
    break_even_months: Optional[int] = None
    total_savings: float


class LenderRatesResponse(BaseModel):
    """Response for POST /v1/lender-rates"""

    rates: List[LenderRateSchema]
    source: Literal["synthetic", "cache"]
    scored: Optional[List[ScoredLenderRateSchema]] = None


class RateAlertRequest(BaseModel):
    """Request body for POST /v1/rate-alert"""

    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=254)
    trigger_rate: float = Field(..., gt=0, le=0.15, description="Decimal 30yr rate that fires the alert")
    current_rate: float = Field(..., gt=0)


class RateAlertResponse(BaseModel):
    ok: bool = True
    created: bool = False
    updated: bool = False


class UnsubscribeRequest(BaseModel):
    """Request body for POST /v1/unsubscribe (token, or email with resubscribe)"""

    token: Optional[str] = None
    email: Optional[str] = None
    resubscribe: bool = False


class UnsubscribeResponse(BaseModel):
    ok: bool = True
    unsubscribed: bool
