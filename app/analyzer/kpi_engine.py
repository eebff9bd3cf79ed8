"""AdsIntel — KPI Engine.

Derived ratios shared by every rollup: CPL, CTR, CPC, CPM, frequency,
CPR and ROI. A zero denominator always yields 0, never NaN or inf.
"""

from typing import Dict


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return round(numerator / denominator * scale, 4)


def derive_ratios(
    spend: float, leads: float, impressions: float, clicks: float
) -> Dict[str, float]:
    """Compute the standard ratio set from summed totals."""
    return {
        # CPL
        "cpl": safe_ratio(spend, leads),
        # CTR (%)
        "ctr": safe_ratio(clicks, impressions, 100),
        # CPC
        "cpc": safe_ratio(spend, clicks),
        # CPM
        "cpm": safe_ratio(spend, impressions, 1000),
    }


def frequency(impressions: float, reach: float) -> float:
    return safe_ratio(impressions, reach)


def cost_per_real_lead(spend: float, real_leads: int) -> float:
    return safe_ratio(spend, real_leads)


def roi_percent(revenue: float, spend: float) -> float:
    """(revenue - spend) / spend as a percentage."""
    return safe_ratio(revenue - spend, spend, 100)
