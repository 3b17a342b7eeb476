import pytest
from pydantic import ValidationError

from baytcalc import presets
from baytcalc.calculators import (
    affordability,
    amortize,
    debt_burden_ratio,
    evaluate_eligibility,
)
from baytcalc.models import AffordabilityResult, DBRResult, EligibilityInputs


def _app(**kw):
    base = dict(
        monthly_income=50_000,
        existing_monthly_obligations=2_000,
        loan_amount=1_200_000,
        property_price=1_500_000,
        annual_rate_pct=4.5,
        term_years=25,
    )
    base.update(kw)
    return EligibilityInputs(**base)


def test_eligible_application():
    res = evaluate_eligibility(_app())
    assert res.estimated_emi == amortize(1_200_000, 4.5, 25).monthly_installment
    assert res.ltv_pct == 80.0
    assert res.max_ltv_pct == 80.0
    assert res.is_eligible is True
    assert res.available_emi == 23_000
    assert res.additional_down_payment_required == 0
    assert res.eligible_banks_count == 8
    assert res.eligible_loan_amount > 1_200_000
    assert res.approx_rate_min == presets.INDICATIVE_RATE_RANGE["min"]
    assert res.approx_rate_max == presets.INDICATIVE_RATE_RANGE["max"]


def test_ltv_over_limit_needs_more_down_payment():
    res = evaluate_eligibility(_app(loan_amount=1_300_000))
    assert res.ltv_pct == 86.67
    assert res.is_eligible is False
    assert res.additional_down_payment_required == 100_000


def test_non_resident_max_ltv():
    res = evaluate_eligibility(_app(is_resident=False))
    assert res.max_ltv_pct == 60.0
    assert res.is_eligible is False
    assert res.additional_down_payment_required == 300_000


def test_dbr_near_limit_fewer_banks():
    res = evaluate_eligibility(_app(monthly_income=20_000, existing_monthly_obligations=2_500))
    assert 45 < res.dbr_pct <= 50
    assert res.is_eligible is True
    assert res.eligible_banks_count == 2


def test_dbr_over_limit_not_eligible():
    res = evaluate_eligibility(_app(monthly_income=20_000, existing_monthly_obligations=4_000))
    assert res.dbr_pct > 50
    assert res.is_eligible is False
    assert res.eligible_banks_count == 0
    assert res.eligible_loan_amount < 1_200_000


def test_credit_card_limits_count_toward_obligations():
    without = evaluate_eligibility(_app(monthly_income=20_000, existing_monthly_obligations=0))
    with_cards = evaluate_eligibility(
        _app(monthly_income=20_000, existing_monthly_obligations=0, credit_card_limits=40_000)
    )
    assert with_cards.dbr_pct == pytest.approx(without.dbr_pct + 10, abs=0.01)
    assert with_cards.available_emi == without.available_emi - 2_000


def test_eligible_loan_amount_is_dbr_ceiling():
    res = evaluate_eligibility(_app(annual_rate_pct=0, existing_monthly_obligations=0))
    assert res.eligible_loan_amount == 25_000 * 300


def test_missing_income_or_price_gives_zeroed_result():
    emi = amortize(1_200_000, 4.5, 25).monthly_installment
    for app in (_app(monthly_income=0), _app(property_price=0, loan_amount=0), _app(monthly_income=None)):
        res = evaluate_eligibility(app)
        assert res.is_eligible is False
        assert res.dbr_pct == 0
        assert res.ltv_pct == 0
        assert res.eligible_banks_count == 0
    assert evaluate_eligibility(_app(monthly_income=0)).estimated_emi == emi


def test_loan_above_price_is_not_eligible():
    res = evaluate_eligibility(_app(loan_amount=1_800_000))
    assert res.ltv_pct == 120.0
    assert res.is_eligible is False
    assert res.within_ltv_limit is False
    assert res.additional_down_payment_required == 600_000


def test_price_entered_after_loan():
    res = evaluate_eligibility(_app(loan_amount=1_200_000, property_price=0))
    assert res.is_eligible is False
    assert res.estimated_emi == amortize(1_200_000, 4.5, 25).monthly_installment


def test_ltv_just_over_limit_is_not_eligible():
    res = evaluate_eligibility(
        EligibilityInputs(monthly_income=100_000, loan_amount=800_040, property_price=1_000_000)
    )
    # reported ltv rounds down to the limit, the comparison does not
    assert res.ltv_pct == 80.0
    assert res.max_ltv_pct == 80.0
    assert res.within_ltv_limit is False
    assert res.is_eligible is False
    assert res.additional_down_payment_required == 40


def test_dbr_just_over_limit_is_not_eligible():
    res = evaluate_eligibility(
        EligibilityInputs(
            monthly_income=10_000,
            existing_monthly_obligations=5_000.3,
            loan_amount=0,
            property_price=1_000_000,
        )
    )
    assert res.dbr_pct == 50.0
    assert res.within_dbr_limit is False
    assert res.is_eligible is False


def test_dbr_excellent_band():
    res = debt_burden_ratio(20_000, 3_000, 5_000)
    assert res.dbr_pct == 40.0
    assert res.within_guideline is True
    assert res.message == presets.DBR_BANDS[0][1]
    assert res.available_emi == 7_000


def test_dbr_near_limit_band():
    res = debt_burden_ratio(20_000, 0, 9_000)
    assert res.dbr_pct == 45.0
    assert res.within_guideline is True
    assert res.message == presets.DBR_BANDS[1][1]


def test_dbr_with_credit_cards_above_guideline():
    res = debt_burden_ratio(20_000, 0, 9_000, credit_card_limits=40_000)
    assert res.dbr_pct == 55.0
    assert res.within_guideline is False
    assert res.message == presets.DBR_BANDS[2][1]
    assert res.available_emi == 8_000


def test_dbr_far_above_guideline():
    res = debt_burden_ratio(10_000, 5_000, 2_000)
    assert res.dbr_pct == 70.0
    assert res.message == presets.DBR_OVER_MESSAGE
    assert res.available_emi == 0


def test_dbr_without_income():
    assert debt_burden_ratio(0, 1_000, 2_000) == DBRResult()
    assert debt_burden_ratio(None, None, None).message == "Enter salary to check DBR"


def test_dbr_rejects_negative_amounts():
    with pytest.raises(ValidationError):
        debt_burden_ratio(20_000, -1, 5_000)


def test_affordability_zero_rate():
    res = affordability(20_000, 2_000, 0, 25)
    assert res.max_emi == 8_000
    assert res.max_loan == 2_400_000
    assert res.max_property_price == 3_000_000
    assert res.dbr_pct == 50.0


def test_affordability_rate_lowers_loan():
    assert affordability(20_000, 2_000, 4.5, 25).max_loan < affordability(20_000, 2_000, 0, 25).max_loan


def test_affordability_edge_cases():
    assert affordability(0, 0, 4.5, 25) == AffordabilityResult()
    assert affordability(20_000, 2_000, 0, 25, down_payment_pct=100).max_property_price == 0
    assert affordability(20_000, 15_000, 4.5, 25).max_loan == 0
