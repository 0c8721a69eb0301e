"""
Mock Interview Assistant - FastAPI Backend

Drives the interview state machine from the browser:
- Résumé upload with candidate detail pre-fill
- Detail collection and six timed questions over a chat interface
- Resume-or-restart recovery of interrupted interviews
- Searchable dashboard of completed interviews
"""
import sys
import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from utils.config import config
from models.schemas import (
    CandidateDetails,
    InProgressStatus,
    ResumeUploadResponse,
    SessionView,
    TextResponseRequest,
)
from interview.questions import default_question_bank
from interview.state import InterviewStateMachine, InterviewStateError
from resume.intake import ResumeIntake
from storage.kv_store import create_store
from storage.persistence import SessionPersistence
from dashboard.query import SORTERS, delete_session, filter_sessions, find_session

logging.basicConfig(level=config.logging.level.upper())
logger = logging.getLogger(__name__)

# ================================================================
# Session Management
# ================================================================

# Single user, single interview per process
_persistence: Optional[SessionPersistence] = None
_machine: Optional[InterviewStateMachine] = None
_intake: Optional[ResumeIntake] = None


def get_persistence() -> SessionPersistence:
    """Get the persistence adapter over the configured store."""
    global _persistence
    if _persistence is None:
        _persistence = SessionPersistence(
            create_store(config.storage.path),
            max_question_index=len(default_question_bank),
        )
    return _persistence


def get_machine() -> InterviewStateMachine:
    """Get the interview state machine."""
    global _machine
    if _machine is None:
        _machine = InterviewStateMachine(get_persistence())
    return _machine


def get_intake() -> ResumeIntake:
    global _intake
    if _intake is None:
        _intake = ResumeIntake()
    return _intake


@asynccontextmanager
async def lifespan(app: FastAPI):
    if get_persistence().has_in_progress():
        logger.info("Found an interview in progress; waiting for resume or restart")
    yield


# ================================================================
# FastAPI App Initialization
# ================================================================

app = FastAPI(
    title="Mock Interview Assistant API",
    description="Timed mock interviews with résumé pre-fill and a results dashboard",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ================================================================
# Interview Endpoints
# ================================================================


@app.get("/")
async def root(persistence: SessionPersistence = Depends(get_persistence)):
    """Health check endpoint."""
    return {
        "status": "running",
        "version": "1.0.0",
        "service": "Mock Interview Assistant",
        "archived_interviews": len(persistence.load_completed()),
    }


@app.get("/questions")
async def list_questions():
    return {"questions": default_question_bank.get_all_questions_info()}


@app.post("/resume-upload", response_model=ResumeUploadResponse)
async def upload_resume(
    file: UploadFile = File(...),
    machine: InterviewStateMachine = Depends(get_machine),
    intake: ResumeIntake = Depends(get_intake),
):
    """
    Extract candidate details from an uploaded PDF résumé and pre-fill them.

    Args:
        file: The résumé PDF

    Returns:
        The extracted details (fields that were not found are null)
    """
    content_type = file.content_type or ""
    filename = file.filename or ""
    if "pdf" not in content_type and not filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=400,
            detail=f"Résumé must be a PDF. Got: {content_type or filename}"
        )
    if machine.started:
        raise HTTPException(status_code=409, detail="An interview is already in progress.")

    data = await file.read()
    details = await intake.process(data)
    if details is None:
        return ResumeUploadResponse(filename=filename, candidate=CandidateDetails(), superseded=True)

    try:
        machine.prefill_candidate(details)
    except InterviewStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ResumeUploadResponse(filename=filename, candidate=details)


@app.post("/start-interview", response_model=SessionView)
async def start_interview(machine: InterviewStateMachine = Depends(get_machine)):
    """Start the interview; missing candidate details are collected first."""
    try:
        return machine.start()
    except InterviewStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.post("/text-response")
async def text_response(
    request: TextResponseRequest,
    machine: InterviewStateMachine = Depends(get_machine),
):
    """
    Send the candidate's chat input into the interview.

    Returns:
        Whether the input was accepted, and the updated session
    """
    accepted = machine.submit(request.text)
    return {"accepted": accepted, "session": machine.snapshot()}


@app.get("/interview-status", response_model=SessionView)
async def get_interview_status(machine: InterviewStateMachine = Depends(get_machine)):
    return machine.snapshot()


@app.get("/in-progress", response_model=InProgressStatus)
async def get_in_progress(persistence: SessionPersistence = Depends(get_persistence)):
    """Report whether an interrupted interview can be resumed."""
    return InProgressStatus(resume_available=persistence.has_in_progress())


@app.post("/resume-interview")
async def resume_interview(machine: InterviewStateMachine = Depends(get_machine)):
    resumed = machine.resume()
    return {"resumed": resumed, "session": machine.snapshot()}


@app.post("/reset-interview")
async def reset_interview(machine: InterviewStateMachine = Depends(get_machine)):
    """
    Discard any saved interview and start fresh.

    Returns:
        Confirmation message
    """
    machine.discard()
    return {"status": "Interview reset successfully", "session": machine.snapshot()}


# ================================================================
# Dashboard Endpoints
# ================================================================


@app.get("/interviews")
async def list_interviews(
    search: str = Query(""),
    sort: str = Query("score", pattern="^(score|name|none)$"),
    persistence: SessionPersistence = Depends(get_persistence),
):
    """
    List completed interviews.

    Args:
        search: Case-insensitive text matched against name or email
        sort: "score" (highest first), "name", or "none" for completion order
    """
    results = filter_sessions(persistence.load_completed(), search)
    if sort in SORTERS:
        results = SORTERS[sort](results)
    return {"interviews": results, "total": len(results)}


@app.get("/interviews/{identity}")
async def get_interview(identity: str, persistence: SessionPersistence = Depends(get_persistence)):
    interview = find_session(persistence.load_completed(), identity)
    if interview is None:
        raise HTTPException(status_code=404, detail="Interview not found.")
    return interview


@app.delete("/interviews/{identity}")
async def delete_interview(identity: str, persistence: SessionPersistence = Depends(get_persistence)):
    archive = persistence.load_completed()
    if find_session(archive, identity) is None:
        raise HTTPException(status_code=404, detail="Interview not found.")

    updated = delete_session(archive, identity)
    if not persistence.save_completed(updated):
        raise HTTPException(status_code=503, detail="Could not save the updated interview list.")

    logger.info(f"Deleted interview {identity}")
    return {"status": "Interview deleted", "remaining": len(updated)}


# ================================================================
# Main Entry Point
# ================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.server.host, port=config.server.port)
