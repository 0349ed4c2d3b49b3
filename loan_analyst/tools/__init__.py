"""
SBA Loan Analyst Tools
Remote loan functions, analysis orchestration, formatting and the chat agent
"""

from .loan_functions import LoanFunctions
from .dispatcher import AnalysisDispatcher
from .analysis_service import LoanAnalysisService
from .competitive_policy import CompetitivePlan, CompetitiveTarget, plan_competitive_landscape
from .parameters import normalize_params, normalize_request

__all__ = [
    "LoanFunctions",
    "AnalysisDispatcher",
    "LoanAnalysisService",
    "CompetitivePlan",
    "CompetitiveTarget",
    "plan_competitive_landscape",
    "normalize_params",
    "normalize_request",
]
