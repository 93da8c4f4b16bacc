"""
Extraction Router

Endpoints:
    POST /analyze-form - Extract field values from one utterance
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from core.dependencies import get_extraction_engine
from core.schemas import AnalyzeFormRequest, AnalyzeFormResponse
from services.ai.extraction import ExtractionEngine
from utils.exceptions import InvalidRequestError
from utils.logging import get_logger
from utils.rate_limit import limit_ai

logger = get_logger(__name__)

router = APIRouter(tags=["Extraction"])


@router.post(
    "/analyze-form",
    response_model=AnalyzeFormResponse,
    summary="Analyze utterance",
    description="Merge values spoken in `transcript` into `existingValues`"
)
@limit_ai
async def analyze_form(
    request: Request,
    payload: AnalyzeFormRequest,
    engine: ExtractionEngine = Depends(get_extraction_engine)
):
    """
    Extract values for `formFields` from `transcript`.

    Backend failures never surface here: the engine falls back to pattern
    extraction. Only a missing transcript or field schema is rejected.
    """
    if payload.formFields is None or not (payload.transcript or "").strip():
        error = InvalidRequestError()
        logger.warning(f"Rejected /analyze-form: {error.message}")
        return JSONResponse(status_code=error.status_code, content={"error": error.message})

    result = await engine.extract(payload.transcript, payload.formFields, payload.existingValues)
    return AnalyzeFormResponse(**result.to_response())
