"""
Parallel analysis dispatcher.

Runs the loan-statistics, top-banks and (optional) competitive-landscape legs
concurrently under one outer deadline. The two primary legs fail the whole
operation; the competitive leg never does.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, NamedTuple, Optional, TypeVar

from ..config.settings import settings
from ..models.errors import AnalysisTimeoutError
from ..models.schemas import AnalysisParams, LoanQueryParams, TopBanksParams
from .competitive_policy import CompetitivePlan, CompetitiveTarget
from .loan_functions import LoanFunctions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisLegs(NamedTuple):
    loan_statistics: Dict[str, Any]
    bank_results: Dict[str, Any]
    competitive_landscape: Optional[Dict[str, Any]] = None


class AnalysisDispatcher:
    """Fan-out / join over the remote loan functions"""

    def __init__(self, functions: LoanFunctions, timeout: Optional[float] = None):
        self.functions = functions
        self.timeout = settings.analysis_timeout_seconds if timeout is None else timeout

    async def _with_deadline(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("Analysis exceeded the %.0fs deadline", self.timeout)
            raise AnalysisTimeoutError(
                f"Analysis timed out after {self.timeout:g} seconds"
            ) from e

    async def _loan_statistics(self, params: LoanQueryParams) -> Dict[str, Any]:
        data_stats, loan_stats = await _join(
            self.functions.get_loan_data_stats(params),
            self.functions.get_loan_stats(params),
        )
        return {"dataStats": data_stats, "loanStats": loan_stats}

    async def _competitive_landscape(self, plan: CompetitivePlan) -> Dict[str, Any]:
        if plan.target is CompetitiveTarget.STATE:
            return await self.functions.get_competitive_landscape_by_state(
                plan.state_code, plan.naics_code, plan.employee_count
            )
        return await self.functions.get_competitive_landscape_by_zip(
            plan.zip_code, plan.naics_code, plan.employee_count
        )

    async def _enrichment(self, plan: Optional[CompetitivePlan]) -> Optional[Dict[str, Any]]:
        if plan is None:
            return None
        try:
            return await self._competitive_landscape(plan)
        except Exception as e:
            logger.warning(
                "Competitive landscape (%s) failed, omitting it: %s", plan.target.value, e
            )
            return None

    async def get_loan_statistics(self, params: LoanQueryParams) -> Dict[str, Any]:
        """dataStats and loanStats for one location / NAICS set"""
        return await self._with_deadline(self._loan_statistics(params))

    async def get_top_banks(self, params: TopBanksParams) -> Dict[str, Any]:
        return await self._with_deadline(self.functions.get_top_banks_info(params))

    async def get_competitive_landscape(self, plan: CompetitivePlan) -> Dict[str, Any]:
        """Standalone competitive call; errors propagate to the caller"""
        return await self._with_deadline(self._competitive_landscape(plan))

    async def dispatch(
        self, params: AnalysisParams, plan: Optional[CompetitivePlan]
    ) -> AnalysisLegs:
        """
        Run all legs and wait for every one of them.

        Raises:
            RemoteQueryError: loan statistics or top banks failed
            AnalysisTimeoutError: the outer deadline expired
        """
        loan_statistics, bank_results, competitive = await self._with_deadline(
            _join(
                self._loan_statistics(params.loan_query()),
                self.functions.get_top_banks_info(params.top_banks_query()),
                self._enrichment(plan),
            )
        )
        return AnalysisLegs(loan_statistics, bank_results, competitive)


async def _join(*awaitables: Awaitable[Any]) -> list:
    """gather() that cancels the remaining legs as soon as one fails"""
    tasks = [asyncio.ensure_future(a) for a in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
