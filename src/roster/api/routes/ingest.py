"""Upload endpoint that runs the ingest pipeline over a posted file."""

from __future__ import annotations

import io

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from roster.core.config import AppSettings
from roster.core.exceptions import IngestError, SourceDecodeError
from roster.ingest.pipeline import ingest
from roster.models.employee import Department
from roster.models.ingest import RunDiagnostics
from roster.report.statistics import RosterSummary, summarize

router = APIRouter(tags=["ingest"])


class IngestResponse(BaseModel):
    summary: RosterSummary
    diagnostics: RunDiagnostics
    departments: dict[str, Department]


def _settings(request: Request) -> AppSettings:
    return getattr(request.app.state, "settings", None) or AppSettings()


@router.post("/ingest", response_model=IngestResponse)
def ingest_upload(request: Request, file: UploadFile = File(...)) -> IngestResponse:
    """Plain def: FastAPI runs it in the threadpool, off the event loop."""
    settings = _settings(request)
    raw = file.file.read()

    try:
        try:
            text = raw.decode(settings.ingest.encoding)
        except UnicodeDecodeError as exc:
            raise SourceDecodeError(settings.ingest.encoding, str(exc)) from exc
        result = ingest(io.StringIO(text, newline=""), settings, source=file.filename)
    except IngestError as exc:
        raise HTTPException(status_code=422, detail={"error": str(exc), "hint": exc.hint}) from exc

    return IngestResponse(
        summary=summarize(result),
        diagnostics=result.diagnostics,
        departments=dict(result.departments),
    )
