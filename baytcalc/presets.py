DISCLAIMER = (
    "Figures are estimates based on commonly published UAE fee schedules and "
    "Central Bank lending guidelines. Bank offers, developer charges and land "
    "department tariffs change over time; confirm every amount with the lender "
    "and the relevant land department before committing to a purchase."
)

# Minimum down payment (% of price) by buyer class, split at the price
# threshold.  Keys are (is_resident, is_first_time_buyer); non-residents use
# the same row regardless of first-time status.
DOWN_PAYMENT_THRESHOLD = 5_000_000.0
DOWN_PAYMENT_TIERS = {
    "resident_first": {"<=threshold": 20.0, ">threshold": 30.0},
    "resident_repeat": {"<=threshold": 25.0, ">threshold": 35.0},
    "non_resident": {"<=threshold": 40.0, ">threshold": 40.0},
}

# One-time government fees keyed by (emirate, readiness).  Percentages apply
# to the property price (transfer, oqood) or the loan amount (registration).
_DUBAI_COMMON = {
    "admin_fee": 580.0,
    "mortgage_registration_pct": 0.25,
    "mortgage_registration_fixed": 290.0,
    "trustee_threshold": 500_000.0,
    "trustee_fee_low": 2_000.0,
    "trustee_fee_high": 4_000.0,
}
_ABU_DHABI = {
    "transfer_fee_pct": 2.0,
    "oqood_fee_pct": 0.0,
    "admin_fee": 0.0,
    "mortgage_registration_pct": 0.1,
    "mortgage_registration_fixed": 0.0,
}
# Sharjah and the northern emirates publish no schedule we can rely on.  This
# row is the fallback quote used in the app: a 4% transfer fee and 0.25%
# mortgage registration, with no Dubai-only admin or trustee charges.
_DEFAULT_EMIRATE = {
    "transfer_fee_pct": 4.0,
    "oqood_fee_pct": 0.0,
    "admin_fee": 0.0,
    "mortgage_registration_pct": 0.25,
    "mortgage_registration_fixed": 0.0,
}
FEE_SCHEDULES = {
    ("dubai", "ready"): {"transfer_fee_pct": 4.0, "oqood_fee_pct": 0.0, **_DUBAI_COMMON},
    ("dubai", "off_plan"): {"transfer_fee_pct": 0.0, "oqood_fee_pct": 4.0, **_DUBAI_COMMON},
    ("abu_dhabi", "ready"): dict(_ABU_DHABI),
    ("abu_dhabi", "off_plan"): dict(_ABU_DHABI),
    ("sharjah", "ready"): dict(_DEFAULT_EMIRATE),
    ("sharjah", "off_plan"): dict(_DEFAULT_EMIRATE),
    ("other", "ready"): dict(_DEFAULT_EMIRATE),
    ("other", "off_plan"): dict(_DEFAULT_EMIRATE),
}

BANK_FEES = {"processing_pct": 1.0, "processing_min": 5_000.0}
VAT_PCT = 5.0
DEFAULT_VALUATION_FEE = 3_000.0

# Central Bank guideline: total monthly obligations may not exceed 50% of
# salary.  Banks count 5% of the total credit card limit as an obligation.
DBR_LIMIT_PCT = 50.0
CREDIT_CARD_OBLIGATION_PCT = 5.0
DBR_BANDS = [
    (40.0, "Excellent - well within the UAE Central Bank guideline (<=50%)"),
    (50.0, "Within guideline but near limit - banks may apply conditions"),
    (60.0, "Above guideline - most banks will decline without adjustments"),
]
DBR_OVER_MESSAGE = "Significantly above guideline - reduce liabilities before applying"

# Rough count of lenders likely to approve at a given DBR.
BANK_COUNT_BANDS = [(35.0, 8), (40.0, 6), (45.0, 4), (50.0, 2)]
INDICATIVE_RATE_RANGE = {"min": 3.99, "max": 5.49}
ESTIMATION_RATE_PCT = 4.5

# Most UAE banks charge 1% of the amount settled early.
EARLY_SETTLEMENT_FEE_PCT = 1.0

RENT_VS_BUY_AGENT_COMMISSION_PCT = 2.0
