"""
Loan analysis service: the five agent-facing operations plus the HTTP analysis.

Each call is independent; nothing is kept between calls.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Union

from ..models.schemas import AnalysisRequest
from .assembler import assemble_result, build_metadata, success_response
from .competitive_policy import (
    CompetitivePlan,
    CompetitiveTarget,
    plan_competitive_landscape,
)
from .dispatcher import AnalysisDispatcher
from .loan_functions import LoanFunctions
from .parameters import (
    DEFAULT_EMPLOYEE_COUNT,
    DEFAULT_TOP_N,
    FULL_ANALYSIS_ZIP_RANGE,
    LOAN_QUERY_ZIP_RANGE,
    normalize_params,
    normalize_request,
    pad_zip_code,
)

logger = logging.getLogger(__name__)


class LoanAnalysisService:
    """Orchestrates loan statistics, bank rankings and competitive landscape queries"""

    def __init__(
        self,
        functions: Optional[LoanFunctions] = None,
        timeout: Optional[float] = None,
    ):
        self.functions = functions or LoanFunctions()
        self.dispatcher = AnalysisDispatcher(self.functions, timeout=timeout)

    async def get_loan_statistics(
        self,
        naics_codes: List[int],
        state: Optional[str] = None,
        zip_code: Optional[int] = None,
        zip_range: int = LOAN_QUERY_ZIP_RANGE,
    ) -> Dict[str, Any]:
        """Default rates, risk premium, jobs supported and loan amounts"""
        params = normalize_params(
            naics_codes,
            state=state,
            zip_code=zip_code,
            zip_range=zip_range,
            default_zip_range=LOAN_QUERY_ZIP_RANGE,
        )
        logger.info(
            "Loan statistics for NAICS %s in %s",
            params.naics_codes,
            params.state or params.zip_code,
        )
        return await self.dispatcher.get_loan_statistics(params.loan_query())

    async def get_top_banks(
        self,
        naics_codes: List[int],
        state: Optional[str] = None,
        zip_code: Optional[int] = None,
        zip_range: int = LOAN_QUERY_ZIP_RANGE,
        top_n: int = DEFAULT_TOP_N,
    ) -> Dict[str, Any]:
        """Top banks by loan volume, overall and by processing method"""
        params = normalize_params(
            naics_codes,
            state=state,
            zip_code=zip_code,
            zip_range=zip_range,
            top_n=top_n,
            default_zip_range=LOAN_QUERY_ZIP_RANGE,
        )
        logger.info(
            "Top %d banks for NAICS %s in %s",
            params.top_n,
            params.naics_codes,
            params.state or params.zip_code,
        )
        return await self.dispatcher.get_top_banks(params.top_banks_query())

    async def run_full_analysis(
        self,
        naics_codes: List[int],
        state: Optional[str] = None,
        zip_code: Optional[int] = None,
        zip_range: int = FULL_ANALYSIS_ZIP_RANGE,
        top_n: int = DEFAULT_TOP_N,
        employee_count: int = DEFAULT_EMPLOYEE_COUNT,
    ) -> Dict[str, Any]:
        """
        Loan statistics, top banks and, when applicable, competitive landscape.

        Returns:
            AnalysisResult dict (loanStatistics, bankResults, competitiveLandscape?)
        """
        params = normalize_params(
            naics_codes,
            state=state,
            zip_code=zip_code,
            zip_range=zip_range,
            top_n=top_n,
            employee_count=employee_count,
            default_zip_range=FULL_ANALYSIS_ZIP_RANGE,
        )
        plan = plan_competitive_landscape(params)
        legs = await self.dispatcher.dispatch(params, plan)
        return assemble_result(*legs)

    async def get_competitive_landscape_zip(
        self,
        zip_code: Union[str, int],
        naics_code: Union[str, int],
        employee_count: int = DEFAULT_EMPLOYEE_COUNT,
    ) -> Dict[str, Any]:
        return await self.dispatcher.get_competitive_landscape(
            CompetitivePlan(
                target=CompetitiveTarget.ZIP,
                zip_code=pad_zip_code(zip_code) if str(zip_code).strip().isdigit() else zip_code,
                naics_code=str(naics_code),
                employee_count=employee_count or DEFAULT_EMPLOYEE_COUNT,
            )
        )

    async def get_competitive_landscape_state(
        self,
        state_code: str,
        naics_code: Union[str, int],
        employee_count: int = DEFAULT_EMPLOYEE_COUNT,
    ) -> Dict[str, Any]:
        return await self.dispatcher.get_competitive_landscape(
            CompetitivePlan(
                target=CompetitiveTarget.STATE,
                state_code=state_code,
                naics_code=str(naics_code),
                employee_count=employee_count or DEFAULT_EMPLOYEE_COUNT,
            )
        )

    async def analyze(self, request: AnalysisRequest) -> Dict[str, Any]:
        """
        Handle one POST /api/analysis body.

        The loan and bank legs search 40 miles around a ZIP unless a positive
        range is given; the ZIP-level competitive landscape only runs when no
        range was given.

        Raises:
            ValidationError: NAICS codes or location missing
            RemoteQueryError: a primary leg failed
            AnalysisTimeoutError: the outer deadline expired
        """
        started_at = time.perf_counter()
        params = normalize_request(request, default_zip_range=LOAN_QUERY_ZIP_RANGE)
        plan = plan_competitive_landscape(params)
        logger.info(
            "Running analysis: NAICS=%s location=%s competitive=%s",
            params.naics_codes,
            params.state or params.zip_code,
            plan.target.value if plan else "none",
        )

        legs = await self.dispatcher.dispatch(params, plan)
        metadata = build_metadata(
            params.naics_codes,
            request.location.model_dump(by_alias=True, exclude_none=True),
            started_at,
        )
        logger.info("Analysis completed in %d ms", metadata.execution_time)
        return success_response(assemble_result(*legs), metadata)
