from __future__ import annotations
from typing import Literal, List, Dict, Any
from pydantic import BaseModel, Field

from baytcalc.models import EligibilityInputs, EligibilityResults
from baytcalc.presets import DBR_BANDS, DBR_LIMIT_PCT


class RuleResult(BaseModel):
    code: str
    severity: Literal["info", "warn", "critical"]
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


def eligibility_state(inputs: EligibilityInputs, results: EligibilityResults) -> dict:
    """Flatten an evaluated application into the dict ``evaluate_rules`` reads."""
    state = inputs.model_dump()
    state.update(results.model_dump())
    return state


def evaluate_rules(state: dict) -> List[RuleResult]:
    res: List[RuleResult] = []

    income = float(state.get("monthly_income", 0.0))
    price = float(state.get("property_price", 0.0))
    loan = float(state.get("loan_amount", 0.0))
    dbr = float(state.get("dbr_pct", 0.0))
    ltv = float(state.get("ltv_pct", 0.0))
    max_ltv = float(state.get("max_ltv_pct", 100.0))
    dbr_limit = float(state.get("dbr_limit_pct", DBR_LIMIT_PCT))
    near_limit = DBR_BANDS[0][0]

    if income <= 0:
        res.append(
            RuleResult(
                code="NO_INCOME",
                severity="critical",
                message="No income entered; DBR is not meaningful.",
            )
        )

    if price <= 0:
        res.append(
            RuleResult(
                code="NO_PROPERTY_PRICE",
                severity="info",
                message="Enter the property price to check loan-to-value.",
            )
        )

    dbr_over = dbr > dbr_limit or (income > 0 and state.get("within_dbr_limit") is False)
    if dbr_over:
        res.append(
            RuleResult(
                code="DBR_OVER_LIMIT",
                severity="critical",
                message="Debt burden ratio exceeds the UAE Central Bank limit.",
                context={"actual": dbr, "limit": dbr_limit},
            )
        )
    elif dbr > near_limit:
        res.append(
            RuleResult(
                code="DBR_NEAR_LIMIT",
                severity="warn",
                message="Within guideline but near limit; banks may apply conditions.",
                context={"actual": dbr, "limit": dbr_limit},
            )
        )

    if price > 0 and (ltv > max_ltv or state.get("within_ltv_limit") is False):
        res.append(
            RuleResult(
                code="LTV_OVER_LIMIT",
                severity="critical",
                message="Loan-to-value exceeds the maximum for this buyer profile.",
                context={"actual": ltv, "limit": max_ltv},
            )
        )

    if price > 0 and loan > price:
        res.append(
            RuleResult(
                code="LOAN_EXCEEDS_PRICE",
                severity="critical",
                message="Loan amount is larger than the property price.",
                context={"loan": loan, "price": price},
            )
        )

    shortfall = float(state.get("additional_down_payment_required", 0.0))
    if shortfall > 0:
        res.append(
            RuleResult(
                code="DOWN_PAYMENT_SHORTFALL",
                severity="warn",
                message="Down payment is below the minimum required.",
                context={"additional_required": shortfall},
            )
        )

    ceiling = float(state.get("eligible_loan_amount", 0.0))
    if income > 0 and loan > ceiling:
        res.append(
            RuleResult(
                code="LOAN_ABOVE_ELIGIBLE",
                severity="warn",
                message="Requested loan is larger than the eligible loan amount.",
                context={"requested": loan, "eligible": ceiling},
            )
        )

    if state.get("is_resident") is False:
        res.append(
            RuleResult(
                code="NON_RESIDENT_TERMS",
                severity="info",
                message="Non-resident financing is offered by fewer banks and needs a larger down payment.",
            )
        )

    return res


def has_blocking(res: List[RuleResult]) -> bool:
    return any(r.severity == "critical" for r in res)
