
from __future__ import annotations
import logging
from typing import List, Optional
from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet
from baytcalc.models import EligibilityResults, PurchaseFinancing, UpfrontCostResult
from baytcalc.presets import DISCLAIMER
from core.rules import RuleResult
from core.version import __version__

logger = logging.getLogger(__name__)

GRID = TableStyle([('BACKGROUND',(0,0),(-1,0), colors.lightgrey),('BOX',(0,0),(-1,-1),1,colors.black),('INNERGRID',(0,0),(-1,-1),0.5,colors.grey)])

COST_LABELS = [
    ("dld_fee", "DLD / Transfer Fee"),
    ("oqood_fee", "Oqood Fee"),
    ("admin_fee", "Land Department Admin Fee"),
    ("mortgage_registration", "Mortgage Registration"),
    ("trustee_fee", "Trustee Fee"),
    ("bank_processing_fee", "Bank Processing Fee"),
    ("valuation_fee", "Valuation Fee"),
    ("agent_commission", "Agent Commission"),
    ("vat", "VAT"),
    ("total_fees", "Total Fees"),
    ("total_upfront_cash", "Total Upfront Cash"),
]


def aed(value: float) -> str:
    return f"AED {value:,.0f}"


def _pairs_table(title: str, rows: list[list[str]]) -> Table:
    t = Table([[title, ""]] + rows, hAlign='LEFT', colWidths=[220, 300])
    t.setStyle(GRID)
    return t


def build_cost_sheet_pdf(
    out_path: str,
    branding: dict,
    costs: UpfrontCostResult,
    financing: Optional[PurchaseFinancing] = None,
    eligibility: Optional[EligibilityResults] = None,
    warnings: Optional[List[RuleResult]] = None,
    override_reason: Optional[str] = None,
):
    """Write a one-page purchase cost and eligibility summary.

    A sheet with critical warnings is only produced when ``override_reason``
    explains why it is being shared anyway; the reason is printed on it.
    """
    warnings = warnings or []
    if any(w.severity == "critical" for w in warnings) and not override_reason:
        raise ValueError("override_reason required when critical warnings exist")

    styles = getSampleStyleSheet()
    doc = SimpleDocTemplate(out_path, pagesize=A4, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36)
    story = []
    title = branding.get("title","Purchase Cost Summary")
    story += [Paragraph(f"<b>{title}</b>", styles['Title']), Spacer(1,6)]
    if branding.get("agent"): story.append(Paragraph(f"Advisor: {branding['agent']}", styles['Normal']))
    if branding.get("contact"): story.append(Paragraph(f"Contact: {branding['contact']}", styles['Normal']))
    story += [Spacer(1, 12)]
    if financing is not None:
        rows = [
            ["Property Price", aed(financing.property_price)],
            ["Down Payment", f"{aed(financing.down_payment)} ({financing.down_payment_pct:g}%)"],
            ["Minimum Down Payment", f"{financing.min_down_payment_pct:g}%"],
            ["Loan Amount", aed(financing.loan_amount)],
        ]
        story += [_pairs_table("Financing", rows), Spacer(1, 12)]
    cost_rows = [[label, aed(getattr(costs, field))] for field, label in COST_LABELS]
    story += [_pairs_table("Upfront Costs", cost_rows), Spacer(1, 12)]
    if eligibility is not None:
        rows = [
            ["Estimated EMI", aed(eligibility.estimated_emi)],
            ["Eligible Loan Amount", aed(eligibility.eligible_loan_amount)],
            ["DBR", f"{eligibility.dbr_pct:.2f}%"],
            ["LTV", f"{eligibility.ltv_pct:.2f}% (max {eligibility.max_ltv_pct:g}%)"],
            ["Eligible", "Yes" if eligibility.is_eligible else "No"],
            ["Indicative Rate", f"{eligibility.approx_rate_min}-{eligibility.approx_rate_max}%"],
        ]
        story += [_pairs_table("Eligibility", rows), Spacer(1, 12)]
    if warnings:
        w_rows = [["Code","Severity","Message"]]+[[w.code, w.severity, w.message] for w in warnings]
        t = Table(w_rows, hAlign='LEFT')
        t.setStyle(GRID)
        story += [Paragraph("<b>Warnings</b>", styles['Heading3']), Spacer(1,6), t, Spacer(1,12)]
    if override_reason:
        story.append(Paragraph(f"Override Reason: {override_reason}", styles['Normal']))
    story += [Spacer(1, 12), Paragraph(f"<font size=8>{DISCLAIMER}</font>", styles['Normal']),
              Paragraph(f"<font size=7>baytcalc v{__version__}</font>", styles['Normal'])]
    doc.build(story)
    logger.info("Wrote cost sheet to %s", out_path)
