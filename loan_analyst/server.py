#!/usr/bin/env python3
"""
SBA Loan Analyst - MCP Server
Exposes the loan analysis tools to MCP-capable language-model clients
"""

import asyncio
import json
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool
from pydantic import BaseModel

from .config.settings import settings
from .models.schemas import (
    CompetitiveStateInput,
    CompetitiveZipInput,
    FullAnalysisInput,
    LoanStatisticsInput,
    TopBanksInput,
)
from .tools.analysis_service import LoanAnalysisService
from .tools.formatter import (
    format_competitive_landscape,
    format_full_analysis,
    format_loan_statistics,
    format_top_banks,
)
from .utils.logger import setup_logger

logger = setup_logger(__name__, settings.log_level)

# Initialize MCP server
server = Server(settings.server_name)

# Supabase connects lazily on the first tool call
service = LoanAnalysisService()


def _schema(model: type[BaseModel]) -> Dict[str, Any]:
    return model.model_json_schema(by_alias=True)


@server.list_tools()
async def list_tools() -> List[Tool]:
    """List available tools"""
    return [
        Tool(
            name="getLoanStatistics",
            description=(
                "Get comprehensive loan statistics including default rates, risk premium, "
                "jobs supported, and inflation adjusted amounts for specific NAICS codes and location"
            ),
            inputSchema=_schema(LoanStatisticsInput),
        ),
        Tool(
            name="getTopBanks",
            description=(
                "Get top banks by loan volume for specific NAICS codes and location, including "
                "banks by processing method with full address information"
            ),
            inputSchema=_schema(TopBanksInput),
        ),
        Tool(
            name="runFullAnalysis",
            description=(
                "Run comprehensive analysis including loan statistics, top banks, AND competitive "
                "landscape (when applicable) together with identical parameters. This is the "
                "primary tool to use for complete market analysis."
            ),
            inputSchema=_schema(FullAnalysisInput),
        ),
        Tool(
            name="getCompetitiveLandscapeZip",
            description=(
                "Get detailed competitive landscape analysis for a specific ZIP code: market "
                "concentration (HHI), entry barriers, size distribution, company positioning, "
                "industry specificity, and geographic comparison."
            ),
            inputSchema=_schema(CompetitiveZipInput),
        ),
        Tool(
            name="getCompetitiveLandscapeState",
            description=(
                "Get state-wide competitive landscape analysis aggregated across all counties "
                "in the state, including the top 5 counties by employment."
            ),
            inputSchema=_schema(CompetitiveStateInput),
        ),
        Tool(
            name="health_check",
            description="Check if the MCP server is running and list available tools",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


def _result(payload: Dict[str, Any], markdown: str) -> List[TextContent]:
    return [
        TextContent(type="text", text=json.dumps(payload, ensure_ascii=False)),
        TextContent(type="text", text=markdown),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    """Handle tool calls"""

    arguments = arguments or {}
    try:
        if name == "health_check":
            return [
                TextContent(
                    type="text",
                    text="✅ SBA Loan Analyst MCP Server is running!",
                )
            ]

        elif name == "getLoanStatistics":
            args = LoanStatisticsInput.model_validate(arguments)
            logger.info("Loan statistics for NAICS %s", args.naics_codes)
            result = await service.get_loan_statistics(
                args.naics_codes, args.state, args.zip_code, args.zip_range
            )
            return _result(result, format_loan_statistics(result))

        elif name == "getTopBanks":
            args = TopBanksInput.model_validate(arguments)
            logger.info("Top %d banks for NAICS %s", args.top_n, args.naics_codes)
            result = await service.get_top_banks(
                args.naics_codes, args.state, args.zip_code, args.zip_range, args.top_n
            )
            return _result(result, format_top_banks(result))

        elif name == "runFullAnalysis":
            args = FullAnalysisInput.model_validate(arguments)
            logger.info("Full analysis for NAICS %s", args.naics_codes)
            result = await service.run_full_analysis(
                args.naics_codes,
                args.state,
                args.zip_code,
                args.zip_range,
                args.top_n,
                args.employee_count,
            )
            return _result(result, format_full_analysis(result))

        elif name == "getCompetitiveLandscapeZip":
            args = CompetitiveZipInput.model_validate(arguments)
            logger.info("Competitive landscape for ZIP %s", args.zip_code)
            result = await service.get_competitive_landscape_zip(
                args.zip_code, args.naics_code, args.employee_count
            )
            return _result(result, format_competitive_landscape(result))

        elif name == "getCompetitiveLandscapeState":
            args = CompetitiveStateInput.model_validate(arguments)
            logger.info("Competitive landscape for state %s", args.state_code)
            result = await service.get_competitive_landscape_state(
                args.state_code, args.naics_code, args.employee_count
            )
            return _result(result, format_competitive_landscape(result))

        else:
            return [
                TextContent(
                    type="text",
                    text=f"Unknown tool: {name}",
                )
            ]

    except Exception as e:
        logger.error("Error in tool %s: %s", name, e)
        return [
            TextContent(
                type="text",
                text=f"Error executing {name}: {str(e)}",
            )
        ]


async def main():
    """Main entry point"""
    logger.info("Starting MCP Server")

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )


if __name__ == "__main__":
    asyncio.run(main())
