"""
Markdown rendering of analysis results for chat and MCP clients
"""

from typing import Any, Dict, List, Optional

from .assembler import has_in_band_error

NA = "N/A"

_PERCENTILE_METRICS = [
    ("riskPremium", "Risk Premium", "percent"),
    ("JobsSupported", "Jobs Supported", "number"),
    ("inflationAdjustedLoanAmount", "Inflation-Adjusted Loan Amount", "currency"),
]

_SIZE_CLASSES = [
    ("micro_0_4", "Micro (0-4)"),
    ("small_5_19", "Small (5-19)"),
    ("medium_20_99", "Medium (20-99)"),
    ("large_100_499", "Large (100-499)"),
    ("very_large_500_plus", "Very Large (500+)"),
]


def format_percent(value: Optional[float]) -> str:
    """Values arrive already scaled to 0-100"""
    return f"{value:.2f}%" if value is not None else NA


def format_currency(value: Optional[float]) -> str:
    return f"${value:,.0f}" if value is not None else NA


def format_number(value: Optional[float], decimals: int = 2) -> str:
    return f"{value:,.{decimals}f}" if value is not None else NA


def format_loan_count(count: int) -> str:
    return f"{count} {'loan' if count == 1 else 'loans'}"


def format_zip(zip_code: Any) -> str:
    text = str(zip_code) if zip_code is not None else ""
    return text[:-2] if text.endswith(".0") else text


_FORMATTERS = {
    "percent": format_percent,
    "currency": format_currency,
    "number": format_number,
}


def format_loan_statistics(loan_statistics: Dict[str, Any]) -> str:
    data_stats = loan_statistics.get("dataStats") or {}
    loan_stats = loan_statistics.get("loanStats") or {}

    lines = ["## Market & Default Rates"]
    lines.append(f"- **Sold to secondary market (pre-2020)**: {format_percent(data_stats.get('pctSoldBefore2020'))}")
    lines.append(f"- **Pre-COVID default rate**: {format_percent(data_stats.get('preCovidDefaultRate'))}")
    lines.append(f"- **Recent 3-year default rate**: {format_percent(data_stats.get('recent3yrDefaultRate'))}")
    lines.append(f"- **Avg months to paid in full**: {format_number(data_stats.get('avgMonthsToPif'))}")
    lines.append(f"- **Avg months to charge-off**: {format_number(data_stats.get('avgMonthsToChgoff'))}")

    for key, title, kind in _PERCENTILE_METRICS:
        metric = loan_stats.get(key)
        if not metric:
            continue
        fmt = _FORMATTERS[kind]
        lines.append("")
        lines.append(f"## {title}")
        lines.append(f"- **Median**: {fmt(metric.get('median'))}")
        lines.append(f"- **Mean**: {fmt(metric.get('mean'))}")
        lines.append(f"- **Typical range (p25-p75)**: {fmt(metric.get('p25'))} - {fmt(metric.get('p75'))}")
        lines.append(f"- **Loans**: {metric.get('count', 0)}")

    return "\n".join(lines)


def format_top_banks(bank_results: Dict[str, Any]) -> str:
    lines = ["## Top Banks"]
    top_banks: List[Dict[str, Any]] = bank_results.get("topBanks") or []
    if not top_banks:
        lines.append("No banks found for this location and NAICS selection.")
    for i, bank in enumerate(top_banks, 1):
        lines.append(f"{i}. **{bank.get('bankName', '')}** ({format_loan_count(bank.get('count', 0))})")

    by_method: Dict[str, List[Dict[str, Any]]] = bank_results.get("topBanksByProcessingMethod") or {}
    for method, banks in by_method.items():
        lines.append("")
        lines.append(f"### {method}")
        for bank in banks:
            address = (
                f"{bank.get('street', '')}, {str(bank.get('city', '')).title()}, "
                f"{bank.get('state', '')} {format_zip(bank.get('zip'))}"
            )
            lines.append(
                f"- **{bank.get('bankName', '')}** ({format_loan_count(bank.get('count', 0))}): {address.strip()}"
            )

    return "\n".join(lines)


def _no_data_message(competitive_landscape: Dict[str, Any]) -> str:
    analysis = competitive_landscape.get("analysis") or {}
    candidates = (
        analysis.get("error"),
        competitive_landscape.get("error"),
        analysis.get("message"),
        competitive_landscape.get("message"),
    )
    for message in candidates:
        if isinstance(message, str) and message:
            return message
    scope = "state" if "state_info" in competitive_landscape else "ZIP code"
    return f"No competitive landscape data found for this {scope} and NAICS code combination."


def format_competitive_landscape(competitive_landscape: Dict[str, Any]) -> str:
    lines = ["## Competitive Landscape"]

    if has_in_band_error(competitive_landscape):
        lines.append(_no_data_message(competitive_landscape))
        return "\n".join(lines)

    zip_info = competitive_landscape.get("zip_info")
    state_info = competitive_landscape.get("state_info")
    if zip_info:
        lines.append(
            f"**Market**: ZIP {zip_info.get('zip_code')} ({zip_info.get('county')} County, {zip_info.get('state')})"
        )
    elif state_info:
        lines.append(f"**Market**: {state_info.get('state_abbr')} statewide")

    analysis = competitive_landscape.get("analysis") or {}

    workforce = analysis.get("workforce_analysis") or {}
    if workforce:
        lines.append(
            f"- **Establishments**: {workforce.get('total_establishments')}, "
            f"**Employees**: {workforce.get('total_employees')}, "
            f"avg {format_number(workforce.get('avg_employees_per_establishment'))} per establishment"
        )

    positioning = analysis.get("company_positioning") or {}
    if positioning:
        lines.append(
            f"- **Your position**: {positioning.get('size_class')} firm, "
            f"{format_percent(positioning.get('size_percentile'))} percentile, larger than "
            f"{format_percent(positioning.get('larger_than_x_percent_of_competitors'))} of competitors"
        )

    concentration = analysis.get("market_concentration") or {}
    if concentration:
        lines.append(
            f"- **Market concentration**: {concentration.get('concentration_level')} "
            f"({concentration.get('market_type')}), HHI {format_number(concentration.get('estimated_hhi'), 0)}, "
            f"small firms {format_percent(concentration.get('small_firms_percentage'))}"
        )

    barriers = analysis.get("entry_barriers") or {}
    if barriers:
        lines.append(
            f"- **Entry barriers**: avg annual pay {format_currency(barriers.get('avg_annual_pay'))} "
            f"({barriers.get('labor_cost_barrier')} labor cost), weighted avg firm size "
            f"{format_number(barriers.get('weighted_avg_firm_size'))} employees, "
            f"minimum efficient scale {barriers.get('minimum_efficient_scale')}"
        )

    specificity = analysis.get("industry_specificity") or {}
    if specificity:
        lines.append(
            f"- **Industry specificity**: {specificity.get('specialization')}, "
            f"location quotient {format_number(specificity.get('location_quotient'))}"
        )

    distribution = analysis.get("size_distribution") or {}
    if distribution:
        parts = []
        for key, label in _SIZE_CLASSES:
            bucket = distribution.get(key) or {}
            parts.append(f"{label} {format_percent(bucket.get('percentage'))}")
        lines.append(f"- **Size distribution**: {', '.join(parts)}")

    geography = analysis.get("geographic_comparison") or {}
    top_counties = geography.get("top_5_counties_by_employment") or []
    if top_counties:
        counties = ", ".join(
            f"county {c.get('fips_county')} ({c.get('employees')})" for c in top_counties
        )
        lines.append(f"- **Top counties by employment**: {counties}")

    payroll = analysis.get("payroll_analysis") or {}
    if payroll:
        lines.append(
            f"- **Payroll**: total {format_currency(payroll.get('total_annual_payroll'))}, "
            f"avg {format_currency(payroll.get('avg_annual_pay_per_employee'))} per employee"
        )

    return "\n".join(lines)


def format_full_analysis(result: Dict[str, Any]) -> str:
    """Render an AnalysisResult; a missing competitive landscape is simply not shown"""
    sections = [
        "# Loan Analysis",
        format_loan_statistics(result.get("loanStatistics") or {}),
        format_top_banks(result.get("bankResults") or {}),
    ]
    if "competitiveLandscape" in result:
        sections.append(format_competitive_landscape(result["competitiveLandscape"]))
    return "\n\n".join(sections)
