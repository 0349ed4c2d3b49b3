"""
Tests for the Supabase RPC gateway
"""

import asyncio

import pytest

from conftest import APIError, COMPETITIVE_NO_DATA, FakeSupabase
from loan_analyst.models.errors import RemoteQueryError, ValidationError
from loan_analyst.models.schemas import LoanQueryParams, TopBanksParams
from loan_analyst.tools.loan_functions import LoanFunctions


class TestLoanFunctions:

    def setup_method(self):
        self.client = FakeSupabase()
        self.functions = LoanFunctions(self.client)

    def test_loan_rpc_parameters(self):
        params = LoanQueryParams(state="TX", naics_prefixes=[5413, 5416], zip_range=40)
        asyncio.run(self.functions.get_loan_data_stats(params))

        assert self.client.params_for("get_loan_data_stats") == {
            "p_state": "TX",
            "p_zip_code": None,
            "p_naics_prefixes": [5413, 5416],
            "p_zip_range": 40,
        }

    def test_top_banks_rpc_parameters(self):
        params = TopBanksParams(zip_code=90001, naics_prefixes=[5413], zip_range=25, top_n=5)
        result = asyncio.run(self.functions.get_top_banks_info(params))

        assert result["topBanks"][0]["bankName"] == "Live Oak Banking Company"
        sent = self.client.params_for("get_top_banks_info")
        assert sent["p_state"] is None
        assert sent["p_zip_code"] == 90001
        assert sent["p_top_n"] == 5

    def test_empty_prefixes_rejected_before_rpc(self):
        params = LoanQueryParams(state="TX", naics_prefixes=[])
        with pytest.raises(ValidationError):
            asyncio.run(self.functions.get_loan_stats(params))
        assert self.client.calls == []

    @pytest.mark.parametrize("top_n", [0, 101])
    def test_top_n_bounds(self, top_n):
        params = TopBanksParams(state="TX", naics_prefixes=[5413], top_n=top_n)
        with pytest.raises(ValidationError, match="topN"):
            asyncio.run(self.functions.get_top_banks_info(params))
        assert self.client.calls == []

    def test_api_error_is_wrapped(self):
        client = FakeSupabase({"get_loan_stats": APIError("permission denied")})
        functions = LoanFunctions(client)

        with pytest.raises(RemoteQueryError) as excinfo:
            asyncio.run(functions.get_loan_stats(LoanQueryParams(state="TX", naics_prefixes=[54])))

        assert str(excinfo.value) == "Failed to fetch loan stats: permission denied"
        assert excinfo.value.function_name == "get_loan_stats"

    def test_missing_data_is_an_error(self):
        functions = LoanFunctions(FakeSupabase({"get_loan_data_stats": None}))

        with pytest.raises(RemoteQueryError, match="No data returned from get_loan_data_stats"):
            asyncio.run(
                functions.get_loan_data_stats(LoanQueryParams(state="TX", naics_prefixes=[54]))
            )

    def test_competitive_zip_rpc_parameters(self):
        asyncio.run(self.functions.get_competitive_landscape_by_zip("09001", "3311", 40))

        assert self.client.params_for("analyze_competitive_landscape_by_zip") == {
            "p_zip_code": "09001",
            "p_naics_code": "3311",
            "p_company_employee_count": 40,
        }

    def test_competitive_state_is_uppercased(self):
        asyncio.run(self.functions.get_competitive_landscape_by_state("tx", "5411"))

        sent = self.client.params_for("analyze_competitive_landscape_by_state")
        assert sent["p_state_abbr"] == "TX"
        assert sent["p_company_employee_count"] == 25

    @pytest.mark.parametrize(
        "zip_code,naics_code,employee_count",
        [
            ("9001", "3311", 25),
            ("9000A", "3311", 25),
            ("90001", "3", 25),
            ("90001", "3311101", 25),
            ("90001", "33a1", 25),
            ("90001", "3311", 0),
        ],
    )
    def test_competitive_zip_validation(self, zip_code, naics_code, employee_count):
        with pytest.raises(ValidationError):
            asyncio.run(
                self.functions.get_competitive_landscape_by_zip(zip_code, naics_code, employee_count)
            )
        assert self.client.calls == []

    @pytest.mark.parametrize("state_code", ["Texas", "XX"])
    def test_competitive_state_validation(self, state_code):
        with pytest.raises(ValidationError):
            asyncio.run(self.functions.get_competitive_landscape_by_state(state_code, "5411"))
        assert self.client.calls == []

    def test_in_band_error_is_returned_not_raised(self):
        functions = LoanFunctions(
            FakeSupabase({"analyze_competitive_landscape_by_zip": COMPETITIVE_NO_DATA})
        )
        result = asyncio.run(functions.get_competitive_landscape_by_zip("99950", "3311"))

        assert result["analysis"]["error"]

    def test_malformed_competitive_payload(self):
        functions = LoanFunctions(
            FakeSupabase({"analyze_competitive_landscape_by_state": ["not", "an", "object"]})
        )
        with pytest.raises(RemoteQueryError, match="Malformed"):
            asyncio.run(functions.get_competitive_landscape_by_state("TX", "5411"))
