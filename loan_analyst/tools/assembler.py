"""
Response assembler: settled analysis legs -> response envelope
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models.schemas import AnalysisMetadata


def assemble_result(
    loan_statistics: Dict[str, Any],
    bank_results: Dict[str, Any],
    competitive_landscape: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Merge the analysis legs into one AnalysisResult.

    ``competitiveLandscape`` is only present when the leg ran and returned a payload;
    an in-band ``error`` inside it is kept as-is.
    """
    result: Dict[str, Any] = {
        "loanStatistics": loan_statistics,
        "bankResults": bank_results,
    }
    if competitive_landscape is not None:
        result["competitiveLandscape"] = competitive_landscape
    return result


def has_in_band_error(competitive_landscape: Optional[Dict[str, Any]]) -> bool:
    """True when the remote function ran but found no data for the area/NAICS pair"""
    if not competitive_landscape:
        return False
    if competitive_landscape.get("error"):
        return True
    analysis = competitive_landscape.get("analysis")
    return isinstance(analysis, dict) and bool(analysis.get("error"))


def utc_timestamp() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def build_metadata(
    naics_codes: List[int], location: Dict[str, Any], started_at: float
) -> AnalysisMetadata:
    """
    Args:
        naics_codes: NAICS codes parsed from the request
        location: Location as received, echoed back
        started_at: time.perf_counter() value taken when the request arrived
    """
    return AnalysisMetadata(
        timestamp=utc_timestamp(),
        naics_codes=list(naics_codes),
        location=location,
        execution_time=int(round((time.perf_counter() - started_at) * 1000)),
    )


def success_response(result: Dict[str, Any], metadata: AnalysisMetadata) -> Dict[str, Any]:
    return {
        "success": True,
        "data": result,
        "metadata": metadata.model_dump(by_alias=True),
    }


def error_response(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}
