"""
Data models and schemas for the SBA Loan Analyst
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LocationType = Literal["state", "zipCode"]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# HTTP request / response
# ---------------------------------------------------------------------------


class Location(CamelModel):
    """Where to run the analysis: a state code or a ZIP code"""

    type: LocationType
    value: Optional[Union[str, int]] = None
    zip_range: Optional[int] = None


class AnalysisOptions(CamelModel):
    top_n: Optional[int] = None
    employee_count: Optional[int] = None


class AnalysisRequest(CamelModel):
    """Body of POST /api/analysis

    ``naicsCodes`` is a list of codes or the raw text of the NAICS input box,
    e.g. "541110, 541211; 5413".
    """

    naics_codes: Union[List[int], str] = Field(default_factory=list)
    location: Optional[Location] = None
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class AnalysisMetadata(CamelModel):
    timestamp: str
    naics_codes: List[int]
    location: Dict[str, Any]
    execution_time: int = Field(description="Wall-clock duration in milliseconds")


# ---------------------------------------------------------------------------
# Normalized query parameters
# ---------------------------------------------------------------------------


class LoanQueryParams(BaseModel):
    """Parameters shared by the loan data functions"""

    model_config = ConfigDict(frozen=True)

    state: Optional[str] = None
    zip_code: Optional[int] = None
    naics_prefixes: List[int]
    zip_range: int = 40


class TopBanksParams(LoanQueryParams):
    top_n: int = 3


class AnalysisParams(BaseModel):
    """Canonical parameters derived from one request or tool invocation.

    ``zip_range`` is the effective range sent to the loan/bank functions,
    while ``requested_zip_range`` keeps what the caller actually supplied
    so the competitive-landscape policy can tell "absent" from "40".
    """

    model_config = ConfigDict(frozen=True)

    naics_codes: List[int]
    state: Optional[str] = None
    zip_code: Optional[int] = None
    zip_range: int
    requested_zip_range: Optional[int] = None
    top_n: int = 3
    employee_count: int = 25

    def loan_query(self) -> LoanQueryParams:
        return LoanQueryParams(
            state=self.state,
            zip_code=self.zip_code,
            naics_prefixes=list(self.naics_codes),
            zip_range=self.zip_range,
        )

    def top_banks_query(self) -> TopBanksParams:
        return TopBanksParams(
            state=self.state,
            zip_code=self.zip_code,
            naics_prefixes=list(self.naics_codes),
            zip_range=self.zip_range,
            top_n=self.top_n,
        )


# ---------------------------------------------------------------------------
# Tool inputs (conversational-agent / MCP contract)
# ---------------------------------------------------------------------------


class LoanStatisticsInput(CamelModel):
    naics_codes: List[int] = Field(
        description="Array of NAICS code prefixes (e.g., [5413] for architectural/engineering services)"
    )
    state: Optional[str] = Field(
        None, description='Two-letter state code (e.g., "TX", "CA")'
    )
    zip_code: Optional[int] = Field(None, description="5-digit zip code")
    zip_range: int = Field(
        40, description="Range around zip code in miles (default: 40)"
    )


class TopBanksInput(LoanStatisticsInput):
    top_n: int = Field(3, description="Number of top banks to return (default: 3)")


class FullAnalysisInput(CamelModel):
    naics_codes: List[int] = Field(
        description="Array of NAICS code prefixes (e.g., [331110, 331210])"
    )
    state: Optional[str] = Field(
        None, description='Two-letter state code (e.g., "TX", "CA")'
    )
    zip_code: Optional[int] = Field(None, description="5-digit zip code")
    zip_range: int = Field(
        0,
        description=(
            "Range around zip code in miles - use 0 for direct ZIP "
            "(enables competitive landscape), or 40+ for nearby area"
        ),
    )
    top_n: int = Field(3, description="Number of top banks to return (default: 3)")
    employee_count: int = Field(
        25,
        description="Company employee count for competitive positioning (default: 25)",
    )


class CompetitiveZipInput(CamelModel):
    zip_code: str = Field(
        min_length=5,
        max_length=5,
        description='5-digit ZIP code (e.g., "90001", "78201")',
    )
    naics_code: str = Field(
        min_length=2,
        max_length=6,
        description=(
            "NAICS code 2-6 digits - use first 4 digits of the first NAICS code "
            'from prior analysis (e.g., "5413" for 541310)'
        ),
    )
    employee_count: int = Field(
        25,
        description=(
            "Company employee count for positioning analysis - ask user if they "
            "mention company size, otherwise default to 25"
        ),
    )


class CompetitiveStateInput(CamelModel):
    state_code: str = Field(
        min_length=2,
        max_length=2,
        description=(
            'Two-letter state code (e.g., "TX", "CA", "FL") - if user says full '
            'name like "Texas", convert to "TX"'
        ),
    )
    naics_code: str = Field(
        min_length=2,
        max_length=6,
        description=(
            "NAICS code 2-6 digits - use first 4 digits of the first NAICS code "
            'from prior analysis (e.g., "5413" for 541310)'
        ),
    )
    employee_count: int = Field(
        25,
        description=(
            "Company employee count for positioning analysis - ask user if they "
            "mention company size, otherwise default to 25"
        ),
    )


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)
