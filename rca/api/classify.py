"""
POST /classify, POST /remediate, GET /domains
=============================================
HTTP adapter over the dispatcher and the remediation generators.

The dispatcher is built once at application start and stored on
app.state.dispatcher; handlers read it from the request. "No match" is a
normal response (diagnosis: null), never an HTTP error.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from rca.core.remediation import format_summary, remediate
from rca.models.diagnosis import Diagnosis
from rca.models.remediation import RemediationArtifact
from rca.parser.dispatcher import Dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Diagnostics"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------
class ClassifyRequest(BaseModel):
    text: Optional[str] = None


class ClassifyResponse(BaseModel):
    diagnosis: Optional[Diagnosis] = None
    summary: Optional[str] = None
    remediation: List[RemediationArtifact] = []


def _dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("/classify", response_model=ClassifyResponse)
async def classify(body: ClassifyRequest, request: Request) -> ClassifyResponse:
    diagnosis = _dispatcher(request).classify_any(body.text)
    if diagnosis is None:
        logger.info("Classify: no match (%d chars)", len(body.text or ""))
        return ClassifyResponse()

    logger.info("Classify: %s at %s:%d", diagnosis.type, diagnosis.file_path, diagnosis.line)
    return ClassifyResponse(
        diagnosis=diagnosis,
        summary=format_summary(diagnosis),
        remediation=remediate(diagnosis),
    )


@router.post("/remediate", response_model=List[RemediationArtifact])
async def remediate_diagnosis(diagnosis: Diagnosis) -> List[RemediationArtifact]:
    return remediate(diagnosis)


@router.get("/domains")
async def list_domains(request: Request):
    return {"domains": _dispatcher(request).domains}
