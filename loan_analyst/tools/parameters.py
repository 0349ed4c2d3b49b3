"""
Parameter normalizer: raw request / tool input -> AnalysisParams
"""

import logging
from typing import List, Optional, Sequence, Union

from ..models.errors import ValidationError
from ..models.schemas import AnalysisParams, AnalysisRequest
from .naics import is_valid_state_code, is_valid_zip_code, parse_naics_input

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 3
DEFAULT_EMPLOYEE_COUNT = 25

# The standalone loan/bank queries search a 40 mile area by default. The
# combined analysis defaults to the exact ZIP, because a zero range is also
# what switches the ZIP-level competitive landscape on.
LOAN_QUERY_ZIP_RANGE = 40
FULL_ANALYSIS_ZIP_RANGE = 0


def _coerce_zip(value: Union[str, int]) -> int:
    try:
        zip_code = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid ZIP code: {value!r}") from exc

    if zip_code <= 0 or not is_valid_zip_code(pad_zip_code(zip_code)):
        raise ValidationError(f"Invalid ZIP code: {value!r}")
    return zip_code


def normalize_params(
    naics_codes: Optional[Sequence[int]],
    state: Optional[str] = None,
    zip_code: Optional[Union[str, int]] = None,
    zip_range: Optional[int] = None,
    top_n: Optional[int] = None,
    employee_count: Optional[int] = None,
    default_zip_range: int = LOAN_QUERY_ZIP_RANGE,
) -> AnalysisParams:
    """
    Build canonical query parameters.

    Args:
        naics_codes: NAICS codes or prefixes, must be non-empty
        state: Two-letter state code (50 states plus DC), passed through as-is
        zip_code: ZIP code as int or numeric string, at most 5 digits
        zip_range: Caller-supplied range in miles, kept unchanged in
            ``requested_zip_range``; the loan functions get the default
            unless it is positive
        top_n: Number of banks to rank (default 3)
        employee_count: Company size for competitive positioning (default 25)
        default_zip_range: Range used when the caller did not supply a positive one

    Raises:
        ValidationError: empty NAICS list, no location, both locations,
            unknown state or malformed ZIP
    """
    if not naics_codes:
        raise ValidationError("NAICS codes are required")

    has_state = bool(state)
    has_zip = zip_code is not None and str(zip_code).strip() != ""
    if not has_state and not has_zip:
        raise ValidationError("Location information is required")
    if has_state and has_zip:
        raise ValidationError("Provide either a state or a ZIP code, not both")
    if has_state and not is_valid_state_code(str(state)):
        raise ValidationError(f'Unknown state code: {state!r} (use e.g. "TX", "CA")')

    return AnalysisParams(
        naics_codes=list(naics_codes),
        state=str(state) if has_state else None,
        zip_code=_coerce_zip(zip_code) if has_zip else None,
        zip_range=zip_range if zip_range and zip_range > 0 else default_zip_range,
        requested_zip_range=zip_range,
        top_n=top_n or DEFAULT_TOP_N,
        employee_count=employee_count or DEFAULT_EMPLOYEE_COUNT,
    )


def request_naics_codes(request: AnalysisRequest) -> List[int]:
    """NAICS codes from a request body, parsing free text when it was sent as a string"""
    if isinstance(request.naics_codes, str):
        return parse_naics_input(request.naics_codes)
    return list(request.naics_codes)


def normalize_request(
    request: AnalysisRequest, default_zip_range: int = LOAN_QUERY_ZIP_RANGE
) -> AnalysisParams:
    """Normalize an HTTP AnalysisRequest body"""
    naics_codes = request_naics_codes(request)
    if not naics_codes:
        raise ValidationError("NAICS codes are required")

    location = request.location
    if location is None or location.value is None or location.value == "":
        raise ValidationError("Location information is required")

    return normalize_params(
        naics_codes,
        state=location.value if location.type == "state" else None,
        zip_code=location.value if location.type == "zipCode" else None,
        zip_range=location.zip_range,
        top_n=request.options.top_n,
        employee_count=request.options.employee_count,
        default_zip_range=default_zip_range,
    )


def competitive_naics_code(naics_codes: List[int]) -> str:
    """First NAICS code, cut to its first 4 characters"""
    if not naics_codes:
        raise ValidationError("NAICS codes are required")
    return str(naics_codes[0])[:4]


def pad_zip_code(zip_code: Union[str, int]) -> str:
    """Left-pad a ZIP code with zeros to 5 characters"""
    return str(zip_code).strip().zfill(5)
