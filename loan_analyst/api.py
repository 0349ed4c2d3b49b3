"""
HTTP API: direct-input analysis and the chat endpoint
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config.settings import settings
from .models.errors import ValidationError
from .models.schemas import AnalysisRequest, ChatRequest
from .tools.analysis_service import LoanAnalysisService
from .tools.assembler import error_response
from .tools.chat_agent import ChatAnalyst

logger = logging.getLogger(__name__)

app = FastAPI(title="SBA Loan Analyst")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: Optional[LoanAnalysisService] = None
_chat: Optional[ChatAnalyst] = None


def get_service() -> LoanAnalysisService:
    global _service
    if _service is None:
        _service = LoanAnalysisService()
    return _service


def get_chat_analyst(service: LoanAnalysisService = Depends(get_service)) -> ChatAnalyst:
    # Built on first use so the API starts without model credentials
    global _chat
    if _chat is None:
        _chat = ChatAnalyst(service)
    return _chat


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning("Rejected %s body: %s", request.url.path, message)
    return JSONResponse(status_code=400, content=error_response(message))


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/analysis")
async def run_analysis(
    body: AnalysisRequest, service: LoanAnalysisService = Depends(get_service)
):
    try:
        return await service.analyze(body)
    except ValidationError as e:
        logger.warning("Analysis request rejected: %s", e.message)
        return JSONResponse(status_code=400, content=error_response(e.message))
    except Exception as e:
        logger.exception("Analysis error: %s", e)
        message = str(e) or "An error occurred while running the analysis"
        return JSONResponse(status_code=500, content=error_response(message))


@app.post("/api/chat")
async def chat(body: ChatRequest, analyst: ChatAnalyst = Depends(get_chat_analyst)):
    try:
        reply = await analyst.reply(body.messages)
    except ValidationError as e:
        return JSONResponse(status_code=400, content=error_response(e.message))
    except Exception as e:
        logger.exception("Chat error: %s", e)
        return JSONResponse(status_code=500, content=error_response(str(e)))
    return {"success": True, **reply}
