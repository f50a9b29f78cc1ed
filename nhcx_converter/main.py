import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from . import models, schemas, database
from .config import settings
from .errors import FailureReason, MappingProfileError
from .mapping import load_profile, check_profile
from .services.conversion_service import ConversionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, create tables and check the mapping profile on startup"""
    logging.basicConfig(level=settings.log_level)
    models.Base.metadata.create_all(bind=database.engine)
    logger.info("Database tables created")
    
    try:
        profile = load_profile(settings.mapping_profile_path)
    except MappingProfileError as e:
        logger.warning("Mapping profile not loaded: %s", e)
        profile = None
    else:
        for problem in check_profile(profile):
            logger.warning("Mapping profile %s: %s", profile.profile, problem)
    app.state.mapping_profile = profile
    yield

# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="HL7 v2 to FHIR CoverageEligibilityRequest converter",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan
)

FAILURE_STATUS_CODES = {
    FailureReason.NO_PID_SEGMENT: status.HTTP_400_BAD_REQUEST,
    FailureReason.BUILD_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@app.get("/health", response_model=schemas.HealthResponse)
def health_check():
    """Health check endpoint - returns {"status": "ok"}"""
    return {"status": "ok"}


@app.post(
    "/api/convert/coverage",
    responses={
        200: {"content": {"application/json": {}}, "description": "FHIR Bundle"},
        400: {"model": schemas.ConversionErrorResponse},
        500: {"model": schemas.ConversionErrorResponse},
    },
)
async def convert_coverage(request: Request, db: Session = Depends(database.get_db)):
    """
    Convert a raw HL7 message to a FHIR Bundle
    
    The request body is the HL7 message as plain text. The response is a
    Bundle with Patient, Coverage and CoverageEligibilityRequest. A message
    that was already converted returns the same Bundle as before.
    
    Example:
        curl -X POST http://localhost:8000/api/convert/coverage \\
             -H "Content-Type: text/plain" \\
             -d "PID|1||ABHA123||Sharma^Rahul||19900415|M"
    """
    body = await request.body()
    try:
        raw_hl7 = body.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Request body must be UTF-8 text")
    
    # Database work and the pipeline are blocking; keep them off the event loop
    outcome = await run_in_threadpool(ConversionService(db).convert, raw_hl7)
    
    if not outcome.success:
        error = schemas.ConversionErrorResponse(
            reason=outcome.reason.value,
            message=outcome.error,
            content_hash=outcome.content_hash,
        )
        return JSONResponse(
            status_code=FAILURE_STATUS_CODES[outcome.reason],
            content=error.model_dump(),
        )
    
    return Response(
        content=outcome.fhir_json,
        media_type="application/json",
        headers={
            "X-Content-Hash": outcome.content_hash,
            "X-Deduplicated": "true" if outcome.deduplicated else "false",
        },
    )


@app.get("/api/convert/history", response_model=List[schemas.ConversionRecordResponse])
def get_history(db: Session = Depends(database.get_db)):
    """All conversion attempts, oldest first"""
    return ConversionService(db).get_history()


@app.get("/api/convert/history/{content_hash}", response_model=schemas.ConversionRecordResponse)
def get_history_record(content_hash: str, db: Session = Depends(database.get_db)):
    """
    Fetch a conversion attempt by message hash
    
    Returns 404 if no message with this hash was ever submitted.
    """
    record = ConversionService(db).get_record(content_hash)
    if not record:
        raise HTTPException(status_code=404, detail="Conversion record not found")
    return record
