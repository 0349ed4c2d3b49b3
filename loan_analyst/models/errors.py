"""
Error taxonomy for loan analysis requests
"""

from typing import Optional


class LoanAnalystError(Exception):
    """Base class for every error raised by the analysis layer"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LoanAnalystError, ValueError):
    """Request input is missing or malformed; raised before any remote call"""


class RemoteQueryError(LoanAnalystError, RuntimeError):
    """A remote database function failed or returned nothing"""

    def __init__(self, message: str, function_name: Optional[str] = None):
        super().__init__(message)
        self.function_name = function_name


class AnalysisTimeoutError(LoanAnalystError, TimeoutError):
    """The outer analysis deadline expired before every leg settled"""
