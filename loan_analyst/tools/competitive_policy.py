"""
Decides whether a request gets a competitive-landscape enrichment, and which one.

    location   zip range        competitive landscape
    --------   -------------    ---------------------
    state      (ignored)        state-level
    zipCode    absent or 0      ZIP-level
    zipCode    any other value  none (areal query)
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..models.schemas import AnalysisParams
from .parameters import competitive_naics_code, pad_zip_code

logger = logging.getLogger(__name__)


class CompetitiveTarget(str, Enum):
    ZIP = "zip"
    STATE = "state"


class CompetitivePlan(BaseModel):
    """Arguments for the one competitive-landscape call a request will make"""

    target: CompetitiveTarget
    naics_code: str
    employee_count: int
    zip_code: Optional[str] = None
    state_code: Optional[str] = None


def plan_competitive_landscape(params: AnalysisParams) -> Optional[CompetitivePlan]:
    """Return the competitive-landscape call to make, or None when it should not run"""
    if not params.naics_codes:
        return None

    naics_code = competitive_naics_code(params.naics_codes)

    if params.state:
        return CompetitivePlan(
            target=CompetitiveTarget.STATE,
            state_code=params.state,
            naics_code=naics_code,
            employee_count=params.employee_count,
        )

    if params.zip_code is not None:
        requested = params.requested_zip_range
        if requested is not None and requested != 0:
            logger.debug(
                "Skipping competitive landscape for ZIP %s: range %s mi",
                params.zip_code,
                requested,
            )
            return None
        return CompetitivePlan(
            target=CompetitiveTarget.ZIP,
            zip_code=pad_zip_code(params.zip_code),
            naics_code=naics_code,
            employee_count=params.employee_count,
        )

    return None
