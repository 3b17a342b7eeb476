from __future__ import annotations

from enum import Enum
from typing import Annotated, List

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from baytcalc import presets
from baytcalc.utils import nz

MAX_TERM_YEARS = 30

# Blank form values read as zero; negatives are rejected by the bounds.
Number = Annotated[float, BeforeValidator(nz)]
Amount = Annotated[float, BeforeValidator(nz), Field(ge=0)]
Percent = Annotated[float, BeforeValidator(nz), Field(ge=0, le=100)]
Count = Annotated[int, BeforeValidator(nz)]


def check_term_years(value: int) -> int:
    """``0`` means the field is still blank; anything else must be 1-30."""
    if value != 0 and not 1 <= value <= MAX_TERM_YEARS:
        raise ValueError(f"term must be between 1 and {MAX_TERM_YEARS} years")
    return value


TermYears = Annotated[int, BeforeValidator(nz), AfterValidator(check_term_years)]


class Emirate(str, Enum):
    DUBAI = "dubai"
    ABU_DHABI = "abu_dhabi"
    SHARJAH = "sharjah"
    OTHER = "other"


class PropertyReadiness(str, Enum):
    READY = "ready"
    OFF_PLAN = "off_plan"


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class LoanTerms(ValueObject):
    principal: Number = 0.0
    annual_rate_pct: Amount = 0.0
    term_years: TermYears = 0

    @property
    def months(self) -> int:
        return self.term_years * 12

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate_pct / 12 / 100


class AmortizationResult(ValueObject):
    principal: float = 0.0
    monthly_installment: float = 0.0
    total_interest: float = 0.0
    total_payment: float = 0.0


class PrepaymentScenario(ValueObject):
    lump_sum_amount: Amount = 0.0
    lump_sum_after_month: Count = 0
    extra_monthly_payment: Amount = 0.0

    @model_validator(mode="after")
    def _lump_sum_month_in_range(self):
        if self.lump_sum_amount > 0 and not 1 <= self.lump_sum_after_month <= MAX_TERM_YEARS * 12:
            raise ValueError("lump sum month must fall within the loan tenure")
        return self

    @property
    def is_empty(self) -> bool:
        return self.lump_sum_amount <= 0 and self.extra_monthly_payment <= 0


class PrepaymentCase(ValueObject):
    """A loan paired with the prepayments planned against it."""

    loan: LoanTerms
    scenario: PrepaymentScenario = PrepaymentScenario()

    @model_validator(mode="after")
    def _lump_sum_within_tenure(self):
        months = self.loan.months
        if months and self.scenario.lump_sum_amount > 0 and self.scenario.lump_sum_after_month > months:
            raise ValueError(
                f"lump sum month {self.scenario.lump_sum_after_month} is beyond the {months}-month tenure"
            )
        return self


class PrepaymentResult(ValueObject):
    original_tenure_months: int = 0
    new_tenure_months: int = 0
    months_saved: int = 0
    original_total_interest: float = 0.0
    new_total_interest: float = 0.0
    original_total_payment: float = 0.0
    new_total_payment: float = 0.0
    original_emi: float = 0.0
    new_effective_monthly_payment: float = 0.0
    interest_saved: float = 0.0
    early_settlement_fee: float = 0.0
    net_interest_saved: float = 0.0


class BuyerProfile(ValueObject):
    is_resident: bool = True
    is_first_time_buyer: bool = True
    property_price: Amount = 0.0


class PurchaseFinancing(ValueObject):
    property_price: float = 0.0
    min_down_payment_pct: float = 0.0
    down_payment_pct: float = 0.0
    down_payment: float = 0.0
    loan_amount: float = 0.0


class FeeSchedule(ValueObject):
    """Government fees for one (emirate, readiness) pair."""

    transfer_fee_pct: Percent = 0.0
    oqood_fee_pct: Percent = 0.0
    admin_fee: Amount = 0.0
    mortgage_registration_pct: Percent = 0.0
    mortgage_registration_fixed: Amount = 0.0
    trustee_threshold: Amount = 0.0
    trustee_fee_low: Amount = 0.0
    trustee_fee_high: Amount = 0.0

    def trustee_fee(self, property_price: float) -> float:
        if property_price <= self.trustee_threshold:
            return self.trustee_fee_low
        return self.trustee_fee_high


class PropertyCostInputs(ValueObject):
    property_price: Amount = 0.0
    loan_amount: Amount = 0.0
    emirate: Emirate = Emirate.DUBAI
    agent_commission_pct: Percent = 2.0
    include_vat: bool = True
    valuation_fee: Amount = presets.DEFAULT_VALUATION_FEE
    property_readiness: PropertyReadiness = PropertyReadiness.READY


class UpfrontCostResult(ValueObject):
    dld_fee: float = 0.0
    mortgage_registration: float = 0.0
    valuation_fee: float = 0.0
    bank_processing_fee: float = 0.0
    agent_commission: float = 0.0
    trustee_fee: float = 0.0
    admin_fee: float = 0.0
    oqood_fee: float = 0.0
    vat: float = 0.0
    total_fees: float = 0.0
    total_upfront_cash: float = 0.0


class DBRResult(ValueObject):
    dbr_pct: float = 0.0
    within_guideline: bool = False
    message: str = "Enter salary to check DBR"
    available_emi: float = 0.0


class EligibilityInputs(ValueObject):
    monthly_income: Amount = 0.0
    existing_monthly_obligations: Amount = 0.0
    credit_card_limits: Amount = 0.0
    loan_amount: Amount = 0.0
    property_price: Amount = 0.0
    annual_rate_pct: Amount = presets.ESTIMATION_RATE_PCT
    term_years: TermYears = 25
    is_resident: bool = True
    is_first_time_buyer: bool = True


class EligibilityResults(ValueObject):
    eligible_loan_amount: float = 0.0
    estimated_emi: float = 0.0
    dbr_pct: float = 0.0
    ltv_pct: float = 0.0
    max_ltv_pct: float = 0.0
    is_eligible: bool = False
    # limit checks on the unrounded ratios
    within_dbr_limit: bool = True
    within_ltv_limit: bool = True
    available_emi: float = 0.0
    additional_down_payment_required: float = 0.0
    eligible_banks_count: int = 0
    approx_rate_min: float = presets.INDICATIVE_RATE_RANGE["min"]
    approx_rate_max: float = presets.INDICATIVE_RATE_RANGE["max"]


class AffordabilityResult(ValueObject):
    max_emi: float = 0.0
    max_loan: float = 0.0
    max_property_price: float = 0.0
    dbr_pct: float = 0.0


class LoanOffer(ValueObject):
    label: str = ""
    annual_rate_pct: Amount = 0.0
    term_years: TermYears = 25


class RentVsBuyInputs(ValueObject):
    property_price: Amount = 0.0
    down_payment_pct: Percent = 20.0
    annual_rate_pct: Amount = presets.ESTIMATION_RATE_PCT
    term_years: TermYears = 25
    monthly_rent: Amount = 0.0
    annual_rent_increase_pct: Amount = 5.0
    annual_appreciation_pct: Number = 3.0
    annual_maintenance_cost: Amount = 0.0
    years_to_compare: int = Field(10, ge=1, le=MAX_TERM_YEARS)
    emirate: Emirate = Emirate.DUBAI
    property_readiness: PropertyReadiness = PropertyReadiness.READY


class RentVsBuySnapshot(ValueObject):
    year: int
    cumulative_rent: float
    cumulative_buy_cost: float
    property_value: float
    equity: float
    net_buy_cost: float
    rent_advantage: float


class RentVsBuyResult(ValueObject):
    break_even_year: int = 0
    total_rent_cost: float = 0.0
    total_buy_cost: float = 0.0
    total_buy_cost_net: float = 0.0
    final_property_value: float = 0.0
    final_equity: float = 0.0
    monthly_emi: float = 0.0
    snapshots: List[RentVsBuySnapshot] = Field(default_factory=list)
