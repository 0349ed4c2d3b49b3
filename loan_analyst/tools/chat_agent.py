"""
Conversational SBA loan analyst built on Pydantic AI.

The agent gathers a business description and location, proposes NAICS codes,
and after confirmation calls the loan analysis tools. Every tool call is
handled as an independent request against LoanAnalysisService.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic_ai import Agent, ModelRetry, RunContext, Tool, WebSearchTool
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model

from ..config.settings import settings
from ..models.errors import ValidationError
from ..models.schemas import ChatMessage
from .analysis_service import LoanAnalysisService

logger = logging.getLogger(__name__)

COVERED_STATES = (
    "AK, AL, AR, AZ, CA, CO, CT, DC, DE, FL, GA, HI, IA, ID, IL, IN, KS, KY, LA, MA, MD, ME, TX"
)

SYSTEM_PROMPT = (
    "You're a friendly, concise AI analyst helping people research companies with SBA loan data.\n\n"
    "WORKFLOW:\n"
    "1) Gather information if missing:\n"
    "• Ask what type of business they're researching.\n"
    "• Ask for a location: a state (e.g. \"TX\") OR a zip code, never both.\n"
    "• A full state name (\"Texas\") means its 2-letter code; \"all\" or \"statewide\" means the whole state.\n"
    "• Accept typos like \"NACIS\" as \"NAICS\".\n\n"
    "2) Find 3-6 highly relevant NAICS codes:\n"
    "• Prefer a short balanced list across likely segments, not exhaustive sets.\n"
    "• For \"steel\", focus on ferrous categories (e.g. 331110, 331210, 332312, 423510) and exclude "
    "nonferrous codes unless asked.\n"
    "• Present only the codes with one-line descriptions.\n\n"
    "3) Confirm before running:\n"
    "• Ask: \"Want me to run an analysis on these for [location]?\" and STOP. Do not call tools in the "
    "same message that presents NAICS codes.\n"
    "• A direct request (\"yes\", \"run it\", \"analyze these\") counts as confirmation. Never double-confirm.\n\n"
    "4) Run the analysis after confirmation:\n"
    "• Always use runFullAnalysis: it returns loan statistics, top banks AND competitive landscape.\n"
    "• Pass every NAICS code in one array. Use state OR zipCode, never both.\n"
    "• Statewide: competitive landscape is included automatically.\n"
    "• ZIP: zipRange 0 (the default) includes competitive landscape; 40+ searches the nearby area instead.\n"
    "• If the user changes filters, re-run runFullAnalysis with the new parameters.\n\n"
    "5) Explain results:\n"
    "• Give ONE brief 2-3 sentence strategic insight; do not repeat every number.\n"
    "• Never show placeholder numbers; only use real results.\n"
    "• If competitive landscape reports an error, explain that no market data exists for that "
    "area/NAICS combination.\n\n"
    "Use getCompetitiveLandscapeZip / getCompetitiveLandscapeState only when the user wants "
    "competitive analysis alone or asks a follow-up after a full analysis. "
    "Use getLoanStatistics / getTopBanks only after confirmation.\n\n"
    f"States with competitive coverage: {COVERED_STATES}"
)


def _retry_on_invalid(e: ValidationError) -> ModelRetry:
    logger.warning("Tool input rejected: %s", e.message)
    return ModelRetry(e.message)


async def get_loan_statistics(
    ctx: RunContext[LoanAnalysisService],
    naics_codes: List[int],
    state: Optional[str] = None,
    zip_code: Optional[int] = None,
    zip_range: int = 40,
) -> Dict[str, Any]:
    """Get comprehensive loan statistics including default rates, risk premium, jobs supported,
    and inflation adjusted amounts for specific NAICS codes and location.

    Args:
        naics_codes: NAICS code prefixes, e.g. [5413] for architectural/engineering services.
        state: Two-letter state code, e.g. "TX".
        zip_code: 5-digit zip code.
        zip_range: Range around the zip code in miles.
    """
    logger.info("Tool getLoanStatistics called")
    try:
        return await ctx.deps.get_loan_statistics(naics_codes, state, zip_code, zip_range)
    except ValidationError as e:
        raise _retry_on_invalid(e) from e


async def get_top_banks(
    ctx: RunContext[LoanAnalysisService],
    naics_codes: List[int],
    state: Optional[str] = None,
    zip_code: Optional[int] = None,
    zip_range: int = 40,
    top_n: int = 3,
) -> Dict[str, Any]:
    """Get top banks by loan volume for specific NAICS codes and location, including banks
    by processing method with full address information.

    Args:
        naics_codes: NAICS code prefixes, e.g. [5413].
        state: Two-letter state code, e.g. "TX".
        zip_code: 5-digit zip code.
        zip_range: Range around the zip code in miles.
        top_n: Number of top banks to return.
    """
    logger.info("Tool getTopBanks called")
    try:
        return await ctx.deps.get_top_banks(naics_codes, state, zip_code, zip_range, top_n)
    except ValidationError as e:
        raise _retry_on_invalid(e) from e


async def run_full_analysis(
    ctx: RunContext[LoanAnalysisService],
    naics_codes: List[int],
    state: Optional[str] = None,
    zip_code: Optional[int] = None,
    zip_range: int = 0,
    top_n: int = 3,
    employee_count: int = 25,
) -> Dict[str, Any]:
    """Run comprehensive analysis: loan statistics, top banks, AND competitive landscape
    (when applicable) together with identical parameters. This is the primary tool for
    complete market analysis.

    Args:
        naics_codes: NAICS code prefixes, e.g. [331110, 331210].
        state: Two-letter state code, e.g. "TX".
        zip_code: 5-digit zip code.
        zip_range: 0 for the direct ZIP (enables competitive landscape), 40+ for the nearby area.
        top_n: Number of top banks to return.
        employee_count: Company employee count for competitive positioning.
    """
    logger.info("Tool runFullAnalysis called")
    try:
        return await ctx.deps.run_full_analysis(
            naics_codes, state, zip_code, zip_range, top_n, employee_count
        )
    except ValidationError as e:
        raise _retry_on_invalid(e) from e


async def get_competitive_landscape_zip(
    ctx: RunContext[LoanAnalysisService],
    zip_code: str,
    naics_code: str,
    employee_count: int = 25,
) -> Dict[str, Any]:
    """Get detailed competitive landscape analysis for a specific ZIP code: market
    concentration (HHI), entry barriers, size distribution, company positioning,
    industry specificity and geographic comparison.

    Args:
        zip_code: 5-digit ZIP code, e.g. "90001".
        naics_code: 2-6 digit NAICS code; use the first 4 digits of the first NAICS code from prior analysis.
        employee_count: Company employee count for positioning; default to 25 unless the user mentions size.
    """
    logger.info("Tool getCompetitiveLandscapeZip called")
    try:
        return await ctx.deps.get_competitive_landscape_zip(zip_code, naics_code, employee_count)
    except ValidationError as e:
        raise _retry_on_invalid(e) from e


async def get_competitive_landscape_state(
    ctx: RunContext[LoanAnalysisService],
    state_code: str,
    naics_code: str,
    employee_count: int = 25,
) -> Dict[str, Any]:
    """Get state-wide competitive landscape analysis aggregated across all counties. Use when the
    user asks about "the whole state", "statewide", or which counties are the major markets.

    Args:
        state_code: Two-letter state code, e.g. "TX"; convert full names like "Texas".
        naics_code: 2-6 digit NAICS code; use the first 4 digits of the first NAICS code from prior analysis.
        employee_count: Company employee count for positioning; default to 25 unless the user mentions size.
    """
    logger.info("Tool getCompetitiveLandscapeState called")
    try:
        return await ctx.deps.get_competitive_landscape_state(state_code, naics_code, employee_count)
    except ValidationError as e:
        raise _retry_on_invalid(e) from e


TOOLS = [
    Tool(get_loan_statistics, takes_ctx=True, name="getLoanStatistics"),
    Tool(get_top_banks, takes_ctx=True, name="getTopBanks"),
    Tool(run_full_analysis, takes_ctx=True, name="runFullAnalysis"),
    Tool(get_competitive_landscape_zip, takes_ctx=True, name="getCompetitiveLandscapeZip"),
    Tool(get_competitive_landscape_state, takes_ctx=True, name="getCompetitiveLandscapeState"),
]


def build_chat_agent(
    model: Union[str, Model, None] = None,
    web_search: Optional[bool] = None,
) -> Agent[LoanAnalysisService, str]:
    """Create the analyst agent.

    Args:
        model: Pydantic AI model or model name (default: settings.model_choice)
        web_search: Attach the provider's web search for NAICS lookup (default: settings.chat_web_search)
    """
    model = model or settings.model_choice
    web_search = settings.chat_web_search if web_search is None else web_search
    agent = Agent(
        model,
        deps_type=LoanAnalysisService,
        output_type=str,
        system_prompt=SYSTEM_PROMPT,
        tools=TOOLS,
        builtin_tools=[WebSearchTool()] if web_search else [],
    )
    logger.info("Initialized chat agent with model: %s", model)
    return agent


def to_message_history(messages: List[ChatMessage]) -> List[ModelMessage]:
    """Convert plain chat turns into Pydantic AI message history"""
    history: List[ModelMessage] = []
    for message in messages:
        if message.role == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=message.content)]))
        else:
            history.append(ModelResponse(parts=[TextPart(content=message.content)]))
    return history


class ChatAnalyst:
    """Runs one chat turn against the analyst agent"""

    def __init__(self, service: LoanAnalysisService, agent: Optional[Agent] = None):
        self.service = service
        self.agent = agent or build_chat_agent()

    async def reply(self, messages: List[ChatMessage]) -> Dict[str, Any]:
        """
        Args:
            messages: Conversation so far, ending with the user's latest message

        Returns:
            dict with the assistant reply and the raw results of any tools it called
        """
        if not messages or messages[-1].role != "user":
            raise ValidationError("The last message must come from the user")

        history = to_message_history(messages[:-1])
        result = await self.agent.run(
            messages[-1].content, message_history=history, deps=self.service
        )

        tool_results = []
        for message in result.new_messages():
            for part in message.parts:
                if isinstance(part, ToolReturnPart):
                    tool_results.append({"toolName": part.tool_name, "result": part.content})

        return {"reply": result.output, "toolResults": tool_results}
