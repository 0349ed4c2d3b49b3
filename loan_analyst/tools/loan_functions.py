"""
Async wrappers around the Supabase loan-data RPC functions.

Every wrapper validates its own inputs before touching the network, then
calls one stored procedure and returns the parsed JSON payload.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from supabase import AsyncClient, acreate_client

from ..config.settings import settings
from ..models.errors import RemoteQueryError, ValidationError
from ..models.schemas import LoanQueryParams, TopBanksParams
from .naics import is_valid_naics, is_valid_state_code, is_valid_zip_code

logger = logging.getLogger(__name__)

MAX_EMPLOYEE_COUNT = 1_000_000


async def get_supabase_client() -> AsyncClient:
    """
    Get an async Supabase client with the URL and key from settings.

    Returns:
        Supabase client instance
    """
    url = settings.supabase_url
    key = settings.supabase_key

    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")

    return await acreate_client(url, key)


def _require_naics(params: LoanQueryParams) -> None:
    if not params.naics_prefixes:
        raise ValidationError("At least one NAICS prefix is required")


def _loan_rpc_params(params: LoanQueryParams) -> Dict[str, Any]:
    return {
        "p_state": params.state or None,
        "p_zip_code": params.zip_code or None,
        "p_naics_prefixes": list(params.naics_prefixes),
        "p_zip_range": params.zip_range,
    }


def _validate_competitive_inputs(naics_code: str, employee_count: Optional[int]) -> None:
    if not is_valid_naics(naics_code):
        raise ValidationError("NAICS code must be between 2 and 6 digits")

    if employee_count is not None and not 1 <= employee_count <= MAX_EMPLOYEE_COUNT:
        raise ValidationError("Employee count must be between 1 and 1,000,000")


class LoanFunctions:
    """Gateway to the remote loan statistics, bank ranking and market functions"""

    def __init__(self, client: Optional[Any] = None):
        self._client = client
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> Any:
        if self._client is None:
            async with self._client_lock:
                if self._client is None:
                    self._client = await get_supabase_client()
        return self._client

    async def _call(self, function_name: str, rpc_params: Dict[str, Any], label: str) -> Any:
        client = await self._get_client()
        logger.info("Calling %s", function_name)
        try:
            response = await client.rpc(function_name, rpc_params).execute()
        except Exception as e:
            detail = getattr(e, "message", None) or str(e)
            logger.error("Error calling %s: %s", function_name, detail)
            raise RemoteQueryError(f"Failed to fetch {label}: {detail}", function_name) from e

        if response.data is None:
            raise RemoteQueryError(f"No data returned from {function_name}", function_name)
        return response.data

    async def get_loan_data_stats(self, params: LoanQueryParams) -> Dict[str, Any]:
        """
        Default rates, secondary-market sales and average durations.

        Returns:
            dict with pctSoldBefore2020, preCovidDefaultRate, recent3yrDefaultRate,
            avgMonthsToPif and avgMonthsToChgoff
        """
        _require_naics(params)
        return await self._call(
            "get_loan_data_stats", _loan_rpc_params(params), "loan data stats"
        )

    async def get_loan_stats(self, params: LoanQueryParams) -> Dict[str, Any]:
        """
        Percentile statistics (p25, p75, mean, median, count) keyed by metric,
        e.g. riskPremium, JobsSupported, inflationAdjustedLoanAmount.
        """
        _require_naics(params)
        return await self._call("get_loan_stats", _loan_rpc_params(params), "loan stats")

    async def get_top_banks_info(self, params: TopBanksParams) -> Dict[str, Any]:
        """
        Top N banks overall and by processing method, with addresses.

        Returns:
            dict with topBanks and topBanksByProcessingMethod
        """
        _require_naics(params)
        if not 1 <= params.top_n <= 100:
            raise ValidationError("topN must be between 1 and 100")

        rpc_params = _loan_rpc_params(params)
        rpc_params["p_top_n"] = params.top_n
        return await self._call("get_top_banks_info", rpc_params, "top banks info")

    async def get_competitive_landscape_by_zip(
        self, zip_code: str, naics_code: str, employee_count: Optional[int] = 25
    ) -> Dict[str, Any]:
        """
        Market analysis for one ZIP code: entry barriers, concentration (HHI),
        size distribution, company positioning and industry specificity.

        A payload carrying an ``error`` key (e.g. ZIP not found) is returned
        unchanged for the caller to display.
        """
        if not is_valid_zip_code(zip_code):
            raise ValidationError("ZIP code must be a 5-digit string")
        _validate_competitive_inputs(naics_code, employee_count)

        data = await self._call(
            "analyze_competitive_landscape_by_zip",
            {
                "p_zip_code": zip_code,
                "p_naics_code": naics_code,
                "p_company_employee_count": employee_count or 25,
            },
            "competitive landscape",
        )
        return self._require_object(data, "analyze_competitive_landscape_by_zip")

    async def get_competitive_landscape_by_state(
        self, state_code: str, naics_code: str, employee_count: Optional[int] = 25
    ) -> Dict[str, Any]:
        """State-wide market analysis aggregated across all counties"""
        if not is_valid_state_code(state_code):
            raise ValidationError('State code must be a 2-letter string (e.g., "TX", "CA")')
        _validate_competitive_inputs(naics_code, employee_count)

        data = await self._call(
            "analyze_competitive_landscape_by_state",
            {
                "p_state_abbr": state_code.upper(),
                "p_naics_code": naics_code,
                "p_company_employee_count": employee_count or 25,
            },
            "competitive landscape",
        )
        return self._require_object(data, "analyze_competitive_landscape_by_state")

    @staticmethod
    def _require_object(data: Any, function_name: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise RemoteQueryError(
                f"Malformed response from {function_name}: expected an object",
                function_name,
            )
        return data
