from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

import pandas as pd
from pydantic import validate_call

from baytcalc import presets
from baytcalc.models import (
    AffordabilityResult,
    Amount,
    AmortizationResult,
    BuyerProfile,
    DBRResult,
    EligibilityInputs,
    EligibilityResults,
    FeeSchedule,
    LoanOffer,
    LoanTerms,
    Percent,
    PrepaymentCase,
    PrepaymentResult,
    PrepaymentScenario,
    PropertyCostInputs,
    PurchaseFinancing,
    RentVsBuyInputs,
    RentVsBuyResult,
    RentVsBuySnapshot,
    TermYears,
    UpfrontCostResult,
)
from baytcalc.utils import nz, round_aed, round_pct

logger = logging.getLogger(__name__)

__all__ = [
    "nz",
    "round_aed",
    "round_pct",
    "monthly_payment",
    "principal_from_payment",
    "amortize",
    "amortization_schedule",
    "yearly_summary",
    "simulate_prepayment",
    "min_down_payment_pct",
    "effective_down_payment_pct",
    "purchase_financing",
    "fee_schedule_for",
    "upfront_costs",
    "debt_burden_ratio",
    "affordability",
    "evaluate_eligibility",
    "compare_loans",
    "rent_vs_buy",
]

# Balances below half a fils count as settled.
_SETTLED = 0.005

SCHEDULE_COLUMNS = [
    "Month",
    "Year",
    "OpeningBalance",
    "EMI",
    "Principal",
    "Interest",
    "ClosingBalance",
    "CumulativeInterest",
    "CumulativePrincipal",
]
_SCHEDULE_MONEY = SCHEDULE_COLUMNS[2:]


def _installment(loan: LoanTerms) -> float:
    L = loan.principal
    n = loan.months
    if L <= 0 or n <= 0:
        return 0.0
    r = loan.monthly_rate
    if r == 0:
        return L / n
    growth = (1 + r) ** n
    return L * r * growth / (growth - 1)


def monthly_payment(principal, annual_rate_pct, term_years):
    """Calculate the fully amortizing monthly payment (EMI) for a loan.

    ``principal`` is the loan amount in AED, ``annual_rate_pct`` is the
    nominal yearly rate (e.g. ``4.5`` for 4.5%) and ``term_years`` the tenure.
    The value is not rounded; other calculators build on it and round only
    their final output.
    """

    return _installment(LoanTerms(principal=principal, annual_rate_pct=annual_rate_pct, term_years=term_years))


def principal_from_payment(payment, annual_rate_pct, term_years):
    """Reverse amortization to find the loan amount for a given payment.

    Used to size the largest loan an applicant can carry: given the EMI they
    can afford, the rate and the tenure, solve the EMI formula for principal.
    """

    loan = LoanTerms(principal=0, annual_rate_pct=annual_rate_pct, term_years=term_years)
    P = nz(payment)
    n = loan.months
    if P <= 0 or n <= 0:
        return 0.0
    r = loan.monthly_rate
    if r == 0:
        return P * n
    growth = (1 + r) ** n
    return P * (growth - 1) / (r * growth)


def amortize(principal, annual_rate_pct, term_years) -> AmortizationResult:
    """Fixed installment and lifetime totals for a standard fixed-rate loan.

    Blank or zero principal/term gives an all-zero result so a half-filled
    form still renders.  A negative rate or a term outside 1-30 years raises
    ``pydantic.ValidationError``.
    """

    loan = LoanTerms(principal=principal, annual_rate_pct=annual_rate_pct, term_years=term_years)
    emi = _installment(loan)
    if emi <= 0:
        return AmortizationResult()
    total_payment = round_aed(emi * loan.months)
    principal_aed = round_aed(loan.principal)
    return AmortizationResult(
        principal=principal_aed,
        monthly_installment=round_aed(emi),
        total_payment=total_payment,
        total_interest=total_payment - principal_aed,
    )


def _schedule_rows(loan: LoanTerms) -> pd.DataFrame:
    emi = _installment(loan)
    if emi <= 0:
        return pd.DataFrame(columns=SCHEDULE_COLUMNS)
    r = loan.monthly_rate
    n = loan.months
    rows = []
    balance = loan.principal
    cum_interest = 0.0
    cum_principal = 0.0
    for month in range(1, n + 1):
        interest = balance * r
        # the last installment clears whatever float residue is left
        principal_paid = balance if month == n else emi - interest
        closing = max(0.0, balance - principal_paid)
        cum_interest += interest
        cum_principal += principal_paid
        rows.append(
            {
                "Month": month,
                "Year": (month - 1) // 12 + 1,
                "OpeningBalance": balance,
                "EMI": emi,
                "Principal": principal_paid,
                "Interest": interest,
                "ClosingBalance": closing,
                "CumulativeInterest": cum_interest,
                "CumulativePrincipal": cum_principal,
            }
        )
        balance = closing
    return pd.DataFrame(rows, columns=SCHEDULE_COLUMNS)


def _round_money(df: pd.DataFrame, cols) -> pd.DataFrame:
    out = df.copy()
    for c in cols:
        out[c] = out[c].map(round_aed)
    return out


def amortization_schedule(principal, annual_rate_pct, term_years) -> pd.DataFrame:
    """Month-by-month schedule with opening/closing balances.

    Each month's interest is charged on the opening balance and the rest of
    the EMI reduces principal.  Money columns are rounded to whole AED after
    the full schedule is built.
    """

    loan = LoanTerms(principal=principal, annual_rate_pct=annual_rate_pct, term_years=term_years)
    df = _schedule_rows(loan)
    if df.empty:
        return df
    return _round_money(df, _SCHEDULE_MONEY)


def yearly_summary(principal, annual_rate_pct, term_years) -> pd.DataFrame:
    """Aggregate the amortization schedule by loan year."""

    loan = LoanTerms(principal=principal, annual_rate_pct=annual_rate_pct, term_years=term_years)
    df = _schedule_rows(loan)
    if df.empty:
        return pd.DataFrame(columns=["Year", "Principal", "Interest", "Payment", "ClosingBalance"])
    agg = (
        df.groupby("Year")
        .agg(
            Principal=("Principal", "sum"),
            Interest=("Interest", "sum"),
            Payment=("EMI", "sum"),
            ClosingBalance=("ClosingBalance", "last"),
        )
        .reset_index()
    )
    return _round_money(agg, ["Principal", "Interest", "Payment", "ClosingBalance"])


def simulate_prepayment(loan: LoanTerms, scenario: Optional[PrepaymentScenario] = None) -> PrepaymentResult:
    """Replay the loan month by month with a lump sum and/or extra payments.

    Each month interest accrues on the outstanding balance, then the regular
    EMI plus ``extra_monthly_payment`` comes off it (never below zero).  In
    ``lump_sum_after_month`` the lump sum is also applied, capped at the
    balance; any excess is dropped.  The loop stops once the balance is
    settled.  With no prepayment configured the result is the unmodified
    baseline.

    Most UAE banks charge an early settlement fee on amounts prepaid, so the
    result also reports the fee on the lump sum actually applied and the
    savings net of it.
    """

    case = PrepaymentCase(loan=loan, scenario=scenario or PrepaymentScenario())
    loan, scenario = case.loan, case.scenario
    emi = _installment(loan)
    if emi <= 0:
        logger.debug("Prepayment skipped for incomplete loan terms: %s", loan)
        return PrepaymentResult()

    n = loan.months
    baseline = amortize(loan.principal, loan.annual_rate_pct, loan.term_years)
    if scenario.is_empty:
        return PrepaymentResult(
            original_tenure_months=n,
            new_tenure_months=n,
            original_total_interest=baseline.total_interest,
            new_total_interest=baseline.total_interest,
            original_total_payment=baseline.total_payment,
            new_total_payment=baseline.total_payment,
            original_emi=baseline.monthly_installment,
            new_effective_monthly_payment=baseline.monthly_installment,
        )

    r = loan.monthly_rate
    payment = emi + scenario.extra_monthly_payment
    balance = loan.principal
    interest_paid = 0.0
    lump_applied = 0.0
    month = 0
    while balance > _SETTLED and month < n:
        month += 1
        interest = balance * r
        interest_paid += interest
        balance = max(0.0, balance + interest - payment)
        if month == scenario.lump_sum_after_month and scenario.lump_sum_amount > 0:
            applied = min(scenario.lump_sum_amount, balance)
            balance -= applied
            lump_applied += applied
    logger.debug("Prepayment settled loan in %s of %s months", month, n)

    new_interest = round_aed(interest_paid)
    new_total = round_aed(loan.principal) + new_interest
    interest_saved = max(0.0, baseline.total_interest - new_interest)
    fee = round_aed(lump_applied * presets.EARLY_SETTLEMENT_FEE_PCT / 100)
    return PrepaymentResult(
        original_tenure_months=n,
        new_tenure_months=month,
        months_saved=n - month,
        original_total_interest=baseline.total_interest,
        new_total_interest=new_interest,
        original_total_payment=baseline.total_payment,
        new_total_payment=new_total,
        original_emi=baseline.monthly_installment,
        new_effective_monthly_payment=round_aed((loan.principal + interest_paid) / month) if month else 0.0,
        interest_saved=interest_saved,
        early_settlement_fee=fee,
        net_interest_saved=max(0.0, interest_saved - fee),
    )


def _buyer_class(is_resident: bool, is_first_time_buyer: bool) -> str:
    if not is_resident:
        return "non_resident"
    return "resident_first" if is_first_time_buyer else "resident_repeat"


@validate_call
def min_down_payment_pct(
    is_resident: bool,
    is_first_time_buyer: bool,
    property_price: Amount,
    tiers: Optional[Dict[str, Dict[str, float]]] = None,
    threshold: Optional[float] = None,
) -> float:
    """Minimum down payment percent for a buyer profile.

    Residents buying their first home put down 20% up to AED 5M and 30%
    above it; repeat buyers 25%/35%; non-residents 40% at any price.  The
    tiers are business data and can be swapped via ``tiers``/``threshold``.
    """

    tiers = tiers if tiers is not None else presets.DOWN_PAYMENT_TIERS
    threshold = presets.DOWN_PAYMENT_THRESHOLD if threshold is None else threshold
    row = tiers[_buyer_class(is_resident, is_first_time_buyer)]
    band = "<=threshold" if property_price <= threshold else ">threshold"
    return float(row[band])


@validate_call
def effective_down_payment_pct(
    chosen_pct: Percent,
    is_resident: bool,
    is_first_time_buyer: bool,
    property_price: Amount,
) -> float:
    """Buyers may put down more than the minimum, never less."""

    return max(chosen_pct, min_down_payment_pct(is_resident, is_first_time_buyer, property_price))


def purchase_financing(profile: BuyerProfile, chosen_pct=0.0) -> PurchaseFinancing:
    """Split the price into down payment and loan at the effective percent."""

    price = profile.property_price
    min_pct = min_down_payment_pct(profile.is_resident, profile.is_first_time_buyer, price)
    pct = effective_down_payment_pct(chosen_pct, profile.is_resident, profile.is_first_time_buyer, price)
    down_payment = round_aed(price * pct / 100)
    return PurchaseFinancing(
        property_price=round_aed(price),
        min_down_payment_pct=min_pct,
        down_payment_pct=pct,
        down_payment=down_payment,
        loan_amount=round_aed(price) - down_payment,
    )


def fee_schedule_for(emirate, readiness, schedules=None) -> FeeSchedule:
    """Look up the government fee row for an (emirate, readiness) pair.

    Emirates without their own row fall back to the ``"other"`` row, so a
    new emirate only needs a table entry once its tariff is known.
    """

    schedules = schedules if schedules is not None else presets.FEE_SCHEDULES
    emirate = getattr(emirate, "value", emirate)
    readiness = getattr(readiness, "value", readiness)
    row = schedules.get((emirate, readiness))
    if row is None:
        row = schedules.get(("other", readiness))
    if row is None:
        raise ValueError(f"no fee schedule for {(emirate, readiness)!r} and no ('other', {readiness!r}) fallback")
    return FeeSchedule(**row)


@validate_call
def upfront_costs(
    inputs: PropertyCostInputs,
    down_payment: Amount = 0.0,
    schedules: Optional[dict] = None,
) -> UpfrontCostResult:
    """One-time cash needed at transfer on top of the down payment.

    Government fees come from the ``(emirate, readiness)`` schedule:
    transfer (DLD) or Oqood fee on the price, the land department admin fee,
    mortgage registration on the loan and the trustee office fee.  Bank
    processing (1% of the loan, at least AED 5,000), valuation and agent
    commission apply everywhere; VAT is 5% of the bank, valuation, agent and
    trustee fees.  A cash purchase (no loan) carries no mortgage registration
    or processing fee.
    """

    down_payment = round_aed(down_payment)
    price = inputs.property_price
    if price <= 0:
        logger.debug("Upfront costs skipped: no property price entered")
        return UpfrontCostResult(total_upfront_cash=down_payment)

    schedule = fee_schedule_for(inputs.emirate, inputs.property_readiness, schedules)
    loan = inputs.loan_amount

    dld = price * schedule.transfer_fee_pct / 100
    oqood = price * schedule.oqood_fee_pct / 100
    trustee = schedule.trustee_fee(price)
    if loan > 0:
        registration = loan * schedule.mortgage_registration_pct / 100 + schedule.mortgage_registration_fixed
        processing = max(loan * presets.BANK_FEES["processing_pct"] / 100, presets.BANK_FEES["processing_min"])
    else:
        registration = 0.0
        processing = 0.0
    valuation = inputs.valuation_fee
    agent = price * inputs.agent_commission_pct / 100
    vat = (processing + valuation + agent + trustee) * presets.VAT_PCT / 100 if inputs.include_vat else 0.0

    items = {
        "dld_fee": round_aed(dld),
        "mortgage_registration": round_aed(registration),
        "valuation_fee": round_aed(valuation),
        "bank_processing_fee": round_aed(processing),
        "agent_commission": round_aed(agent),
        "trustee_fee": round_aed(trustee),
        "admin_fee": round_aed(schedule.admin_fee),
        "oqood_fee": round_aed(oqood),
        "vat": round_aed(vat),
    }
    total_fees = sum(items.values())
    return UpfrontCostResult(**items, total_fees=total_fees, total_upfront_cash=down_payment + total_fees)


def _dbr_message(dbr_pct: float) -> str:
    for limit, message in presets.DBR_BANDS:
        if dbr_pct <= limit:
            return message
    return presets.DBR_OVER_MESSAGE


def _monthly_obligations(existing, credit_card_limits):
    return existing + credit_card_limits * presets.CREDIT_CARD_OBLIGATION_PCT / 100


@validate_call
def debt_burden_ratio(
    monthly_income: Amount,
    existing_emis: Amount,
    new_emi: Amount,
    credit_card_limits: Amount = 0.0,
) -> DBRResult:
    """Debt burden ratio per the UAE Central Bank guideline.

    DBR = (existing EMIs + 5% of card limits + new EMI) / monthly salary.
    The guideline caps it at 50%; ``available_emi`` is the room left under
    that cap before the new loan.
    """

    if monthly_income <= 0:
        return DBRResult()
    existing = _monthly_obligations(existing_emis, credit_card_limits)
    dbr = (existing + new_emi) / monthly_income * 100
    return DBRResult(
        dbr_pct=round_pct(dbr),
        within_guideline=dbr <= presets.DBR_LIMIT_PCT,
        message=_dbr_message(dbr),
        available_emi=round_aed(max(0.0, monthly_income * presets.DBR_LIMIT_PCT / 100 - existing)),
    )


@validate_call
def affordability(
    monthly_income: Amount,
    existing_emis: Amount,
    annual_rate_pct: Amount,
    term_years: TermYears,
    down_payment_pct: Percent = 20.0,
) -> AffordabilityResult:
    """Largest loan and property price the salary supports at 50% DBR."""

    if monthly_income <= 0:
        return AffordabilityResult()
    max_emi = max(0.0, monthly_income * presets.DBR_LIMIT_PCT / 100 - existing_emis)
    max_loan = principal_from_payment(max_emi, annual_rate_pct, term_years)
    max_property = max_loan / (1 - down_payment_pct / 100) if down_payment_pct < 100 else 0.0
    return AffordabilityResult(
        max_emi=round_aed(max_emi),
        max_loan=round_aed(max_loan),
        max_property_price=round_aed(max_property),
        dbr_pct=round_pct((existing_emis + max_emi) / monthly_income * 100),
    )


def _eligible_banks(dbr_pct: float) -> int:
    for limit, count in presets.BANK_COUNT_BANDS:
        if dbr_pct <= limit:
            return count
    return 0


def evaluate_eligibility(inputs: EligibilityInputs) -> EligibilityResults:
    """Assess an application against the DBR and LTV limits.

    The applicant qualifies when DBR stays within 50% and the loan-to-value
    ratio is within ``100 - minimum down payment %`` for their profile.  The
    eligible loan amount is the principal whose EMI uses up exactly the room
    left under the 50% DBR cap, at the same rate and tenure.
    """

    emi = monthly_payment(inputs.loan_amount, inputs.annual_rate_pct, inputs.term_years)
    income = inputs.monthly_income
    price = inputs.property_price
    if income <= 0 or price <= 0:
        logger.debug("Eligibility needs both income and property price")
        return EligibilityResults(estimated_emi=round_aed(emi))

    obligations = _monthly_obligations(inputs.existing_monthly_obligations, inputs.credit_card_limits)
    dbr = (obligations + emi) / income * 100
    ltv = inputs.loan_amount * 100 / price
    min_pct = min_down_payment_pct(inputs.is_resident, inputs.is_first_time_buyer, price)
    max_ltv = 100 - min_pct
    max_emi = max(0.0, income * presets.DBR_LIMIT_PCT / 100 - obligations)
    ceiling = principal_from_payment(max_emi, inputs.annual_rate_pct, inputs.term_years)
    shortfall = max(0.0, price * min_pct / 100 - (price - inputs.loan_amount))
    within_dbr = dbr <= presets.DBR_LIMIT_PCT
    within_ltv = ltv <= max_ltv
    return EligibilityResults(
        eligible_loan_amount=round_aed(ceiling),
        estimated_emi=round_aed(emi),
        dbr_pct=round_pct(dbr),
        ltv_pct=round_pct(ltv),
        max_ltv_pct=max_ltv,
        is_eligible=within_dbr and within_ltv,
        within_dbr_limit=within_dbr,
        within_ltv_limit=within_ltv,
        available_emi=round_aed(max_emi),
        additional_down_payment_required=round_aed(shortfall),
        eligible_banks_count=_eligible_banks(dbr),
    )


def compare_loans(principal, offers: Iterable[LoanOffer]) -> pd.DataFrame:
    """Compare EMI and lifetime cost of several rate/tenure offers.

    One row per offer, flagged where it has the lowest EMI or the lowest
    total payment.
    """

    cols = ["Offer", "RatePct", "TermYears", "EMI", "TotalPayment", "TotalInterest", "InterestPct"]
    rows = []
    for offer in offers:
        res = amortize(principal, offer.annual_rate_pct, offer.term_years)
        rows.append(
            {
                "Offer": offer.label,
                "RatePct": offer.annual_rate_pct,
                "TermYears": offer.term_years,
                "EMI": res.monthly_installment,
                "TotalPayment": res.total_payment,
                "TotalInterest": res.total_interest,
                "InterestPct": round_pct(res.total_interest / res.principal * 100) if res.principal else 0.0,
            }
        )
    out = pd.DataFrame(rows, columns=cols)
    out["LowestEMI"] = out["EMI"].eq(out["EMI"].min())
    out["LowestTotal"] = out["TotalPayment"].eq(out["TotalPayment"].min())
    return out


def rent_vs_buy(inputs: RentVsBuyInputs) -> RentVsBuyResult:
    """Compare cumulative rent against the net cost of owning.

    The buy side starts with the upfront cash (down payment plus fees), then
    adds the EMI while the loan runs and yearly maintenance.  Equity is the
    appreciated property value less the outstanding balance; net buy cost is
    cash spent minus equity.  Break-even is the first year net buy cost is
    no higher than the rent paid so far.
    """

    price = inputs.property_price
    if price <= 0:
        return RentVsBuyResult()
    down_payment = price * inputs.down_payment_pct / 100
    loan = LoanTerms(
        principal=price - down_payment,
        annual_rate_pct=inputs.annual_rate_pct,
        term_years=inputs.term_years,
    )
    emi = _installment(loan)
    costs = upfront_costs(
        PropertyCostInputs(
            property_price=price,
            loan_amount=loan.principal,
            emirate=inputs.emirate,
            agent_commission_pct=presets.RENT_VS_BUY_AGENT_COMMISSION_PCT,
            include_vat=True,
            property_readiness=inputs.property_readiness,
        ),
        down_payment,
    )

    r = loan.monthly_rate
    balance = loan.principal
    rent = inputs.monthly_rent
    cumulative_rent = 0.0
    cumulative_buy = costs.total_upfront_cash
    break_even = 0
    snapshots = []
    for year in range(1, inputs.years_to_compare + 1):
        cumulative_rent += rent * 12
        in_tenure = year <= inputs.term_years
        cumulative_buy += (emi * 12 if in_tenure else 0.0) + inputs.annual_maintenance_cost
        if in_tenure:
            for _ in range(12):
                if balance <= _SETTLED:
                    balance = 0.0
                    break
                balance = max(0.0, balance - (emi - balance * r))
        value = price * (1 + inputs.annual_appreciation_pct / 100) ** year
        equity = value - balance
        net_buy = cumulative_buy - equity
        advantage = net_buy - cumulative_rent
        snapshots.append(
            RentVsBuySnapshot(
                year=year,
                cumulative_rent=round_aed(cumulative_rent),
                cumulative_buy_cost=round_aed(cumulative_buy),
                property_value=round_aed(value),
                equity=round_aed(equity),
                net_buy_cost=round_aed(net_buy),
                rent_advantage=round_aed(advantage),
            )
        )
        if not break_even and advantage <= 0:
            break_even = year
        rent *= 1 + inputs.annual_rent_increase_pct / 100

    last = snapshots[-1]
    return RentVsBuyResult(
        break_even_year=break_even,
        total_rent_cost=last.cumulative_rent,
        total_buy_cost=last.cumulative_buy_cost,
        total_buy_cost_net=last.net_buy_cost,
        final_property_value=last.property_value,
        final_equity=last.equity,
        monthly_emi=round_aed(emi),
        snapshots=snapshots,
    )
