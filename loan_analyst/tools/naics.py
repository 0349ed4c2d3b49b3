"""
NAICS code and location validation helpers
"""

import re
from typing import List, Optional, Union

_NAICS_PATTERN = re.compile(r"^\d{2,6}$")
_ZIP_PATTERN = re.compile(r"^\d{5}$")
_DELIMITERS = re.compile(r"[,;\s|]+")

# 50 states plus DC
STATE_CODES = frozenset(
    [
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
        "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
        "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
        "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
        "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
        "DC",
    ]
)

def is_valid_naics(code: Union[str, int]) -> bool:
    """NAICS codes are 2-6 digits"""
    return bool(_NAICS_PATTERN.match(str(code)))


def format_naics(code: Union[str, int]) -> Optional[int]:
    code_str = str(code).strip()
    if not is_valid_naics(code_str):
        return None
    return int(code_str)


def parse_naics_input(text: str) -> List[int]:
    """
    Parse free-form NAICS input such as "541110, 541211; 5413".

    Invalid tokens are dropped and duplicates removed, keeping first-seen order.
    """
    codes: List[int] = []
    for part in _DELIMITERS.split(text or ""):
        if not part.strip():
            continue
        formatted = format_naics(part)
        if formatted is not None and formatted not in codes:
            codes.append(formatted)
    return codes


def is_valid_state_code(code: str) -> bool:
    return (code or "").upper() in STATE_CODES


def is_valid_zip_code(zip_code: Union[str, int]) -> bool:
    return bool(_ZIP_PATTERN.match(str(zip_code)))
