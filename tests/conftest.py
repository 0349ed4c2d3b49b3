"""
Shared fixtures: an in-memory stand-in for the Supabase RPC client
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from loan_analyst.tools.analysis_service import LoanAnalysisService
from loan_analyst.tools.loan_functions import LoanFunctions

DATA_STATS = {
    "pctSoldBefore2020": 41.27,
    "preCovidDefaultRate": 6.5,
    "recent3yrDefaultRate": 2.13,
    "avgMonthsToPif": 58.4,
    "avgMonthsToChgoff": 31.9,
}

LOAN_STATS = {
    "riskPremium": {"p25": 2.0, "p75": 2.75, "mean": 2.31, "median": 2.25, "count": 412},
    "JobsSupported": {"p25": 3.0, "p75": 14.0, "mean": 11.6, "median": 6.0, "count": 412},
    "inflationAdjustedLoanAmount": {
        "p25": 85000.0,
        "p75": 610000.0,
        "mean": 402113.4,
        "median": 250000.0,
        "count": 412,
    },
}

TOP_BANKS = {
    "topBanks": [
        {"bankName": "Live Oak Banking Company", "count": 37},
        {"bankName": "Wells Fargo Bank", "count": 1},
    ],
    "topBanksByProcessingMethod": {
        "7(a) General": [
            {
                "bankName": "Live Oak Banking Company",
                "street": "1741 Tiburon Dr",
                "city": "WILMINGTON",
                "state": "NC",
                "zip": "28403.0",
                "count": 20,
            }
        ]
    },
}

COMPETITIVE_ZIP = {
    "zip_info": {
        "zip_code": "90001",
        "state": "CA",
        "county": "Los Angeles",
        "fips_state": "06",
        "fips_county": "037",
    },
    "analysis": {
        "company_info": {"fips_state": "06", "naics_code": "5411", "fips_county": "037", "employee_count": 25},
        "workforce_analysis": {
            "total_employees": 5400,
            "employee_noise_flag": "G",
            "total_establishments": 310,
            "avg_employees_per_establishment": 17.42,
        },
        "company_positioning": {
            "size_class": "medium",
            "size_percentile": 78.5,
            "market_share_by_employment": 0.46,
            "peer_establishments_in_size_class": 42,
            "larger_than_x_percent_of_competitors": 78.5,
        },
        "market_concentration": {
            "market_type": "fragmented",
            "estimated_hhi": 412.0,
            "concentration_level": "Unconcentrated",
            "total_establishments": 310,
            "small_firms_percentage": 81.2,
        },
    },
}

COMPETITIVE_STATE = {
    "state_info": {"state_abbr": "TX", "fips_state": "48", "naics_code": "5411"},
    "analysis": {
        "market_concentration": {
            "market_type": "competitive",
            "estimated_hhi": 130.0,
            "concentration_level": "Unconcentrated",
            "total_establishments": 9800,
            "small_firms_percentage": 88.0,
        },
        "geographic_comparison": {
            "state_avg_employees": 620.0,
            "state_total_counties": 254,
            "state_avg_establishments": 38.0,
            "target_county_rank_employees": 1,
            "top_5_counties_by_employment": [
                {"employees": 21000, "fips_county": 201},
                {"employees": 18500, "fips_county": 113},
            ],
            "target_county_rank_establishments": 1,
        },
    },
}

COMPETITIVE_NO_DATA = {
    "zip_info": {"zip_code": "99950", "state": "AK", "county": "Ketchikan", "fips_state": "02", "fips_county": "130"},
    "analysis": {
        "error": "No establishments found for this NAICS code in the county",
        "company_info": {"fips_state": "02", "naics_code": "3311", "fips_county": "130", "employee_count": 25},
    },
}

DEFAULT_RESPONSES = {
    "get_loan_data_stats": DATA_STATS,
    "get_loan_stats": LOAN_STATS,
    "get_top_banks_info": TOP_BANKS,
    "analyze_competitive_landscape_by_zip": COMPETITIVE_ZIP,
    "analyze_competitive_landscape_by_state": COMPETITIVE_STATE,
}


class FakeResponse:
    def __init__(self, data: Any):
        self.data = data


class FakeRPCCall:
    def __init__(self, client: "FakeSupabase", name: str):
        self.client = client
        self.name = name

    async def execute(self) -> FakeResponse:
        delay = self.client.delays.get(self.name)
        if delay:
            await asyncio.sleep(delay)
        outcome = self.client.responses.get(self.name)
        if isinstance(outcome, BaseException):
            raise outcome
        self.client.completed.append(self.name)
        return FakeResponse(copy.deepcopy(outcome))


class FakeSupabase:
    """Records rpc() calls; each function returns, raises or sleeps as configured"""

    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.responses = {**DEFAULT_RESPONSES, **(responses or {})}
        self.delays = delays or {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.completed: List[str] = []

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRPCCall:
        self.calls.append((name, params))
        return FakeRPCCall(self, name)

    def called(self, name: str) -> bool:
        return any(call_name == name for call_name, _ in self.calls)

    def params_for(self, name: str) -> Dict[str, Any]:
        for call_name, params in self.calls:
            if call_name == name:
                return params
        raise AssertionError(f"{name} was not called")


class APIError(Exception):
    """Mimics postgrest.exceptions.APIError, which carries a .message"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@pytest.fixture
def fake_client() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def make_service():
    def _make(client: FakeSupabase, timeout: float = 2.0) -> LoanAnalysisService:
        return LoanAnalysisService(LoanFunctions(client), timeout=timeout)

    return _make


@pytest.fixture
def service(fake_client, make_service) -> LoanAnalysisService:
    return make_service(fake_client)
