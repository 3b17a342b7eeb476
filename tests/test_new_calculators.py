from baytcalc.calculators import amortize, compare_loans, rent_vs_buy, upfront_costs
from baytcalc.models import LoanOffer, PropertyCostInputs, RentVsBuyInputs, RentVsBuyResult


OFFERS = [
    LoanOffer(label="A", annual_rate_pct=4.0, term_years=25),
    LoanOffer(label="B", annual_rate_pct=4.5, term_years=25),
    LoanOffer(label="C", annual_rate_pct=4.0, term_years=15),
]


def test_compare_loans_flags_cheapest_offers():
    df = compare_loans(1_000_000, OFFERS)
    assert list(df["Offer"]) == ["A", "B", "C"]
    assert list(df.loc[df["LowestEMI"], "Offer"]) == ["A"]
    assert list(df.loc[df["LowestTotal"], "Offer"]) == ["C"]
    row = df.set_index("Offer").loc["B"]
    res = amortize(1_000_000, 4.5, 25)
    assert row["EMI"] == res.monthly_installment
    assert row["TotalInterest"] == res.total_interest


def test_compare_loans_interest_pct():
    df = compare_loans(1_000_000, [LoanOffer(label="free", annual_rate_pct=0, term_years=10)])
    assert df["InterestPct"].iloc[0] == 0.0
    assert bool(df["LowestEMI"].iloc[0]) and bool(df["LowestTotal"].iloc[0])


def test_compare_loans_no_offers():
    df = compare_loans(1_000_000, [])
    assert df.empty
    assert "LowestEMI" in df.columns


def _rvb(**kw):
    base = dict(
        property_price=1_500_000,
        down_payment_pct=20,
        annual_rate_pct=4.5,
        term_years=25,
        annual_maintenance_cost=15_000,
        annual_appreciation_pct=3,
        annual_rent_increase_pct=5,
    )
    base.update(kw)
    return RentVsBuyInputs(**base)


def test_rent_vs_buy_high_rent_breaks_even_first_year():
    res = rent_vs_buy(_rvb(monthly_rent=20_000))
    assert res.break_even_year == 1
    assert len(res.snapshots) == 10
    assert res.monthly_emi == amortize(1_200_000, 4.5, 25).monthly_installment
    assert res.snapshots[0].cumulative_rent == 240_000


def test_rent_vs_buy_upfront_cash_is_included():
    res = rent_vs_buy(_rvb(monthly_rent=20_000, years_to_compare=1))
    costs = upfront_costs(PropertyCostInputs(property_price=1_500_000, loan_amount=1_200_000), 300_000)
    first = res.snapshots[0]
    assert abs(first.cumulative_buy_cost - (costs.total_upfront_cash + 12 * res.monthly_emi + 15_000)) <= 12
    assert first.property_value == 1_545_000


def test_rent_vs_buy_low_rent_never_breaks_even():
    res = rent_vs_buy(_rvb(monthly_rent=1_000, years_to_compare=5))
    assert res.break_even_year == 0
    assert len(res.snapshots) == 5
    assert res.total_rent_cost == res.snapshots[-1].cumulative_rent
    assert res.total_buy_cost_net > res.total_rent_cost


def test_rent_vs_buy_loan_paid_off_within_horizon():
    res = rent_vs_buy(_rvb(monthly_rent=8_000, term_years=5, years_to_compare=8))
    last = res.snapshots[-1]
    assert last.equity == last.property_value
    # no EMI after the loan ends, only maintenance
    assert res.snapshots[-1].cumulative_buy_cost - res.snapshots[-2].cumulative_buy_cost == 15_000


def test_rent_grows_each_year():
    res = rent_vs_buy(_rvb(monthly_rent=10_000, years_to_compare=3))
    yearly = [s.cumulative_rent for s in res.snapshots]
    assert yearly[0] == 120_000
    assert yearly[1] == 120_000 + 126_000
    assert yearly[2] == 120_000 + 126_000 + 132_300


def test_rent_vs_buy_without_price():
    assert rent_vs_buy(RentVsBuyInputs(monthly_rent=5_000)) == RentVsBuyResult()
