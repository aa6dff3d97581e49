"""Main FastAPI application for anonymous anti-ragging reports."""
import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse

from ai_gateway import TranscriptionError
from controller import AUDIO_FAILURE_NOTICE, ReportingController
from schemas import (
    AdminProfile,
    AudioComplaintRequest,
    ChatRequest,
    ChatResponse,
    Complaint,
    ComplaintRequest,
    GroundingResult,
    SearchRequest,
    SpeechPayload,
    StatusFilter,
)
from store import ComplaintNotFound

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize services
controller = ReportingController()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info(f"Application started with {len(controller.store)} complaints loaded")
    yield
    logger.info("Application shutting down, waiting for pending categorizations")
    await controller.close()


app = FastAPI(
    title="UnMute Anti-Ragging Reporting API",
    description="Anonymous ragging reports with AI categorization, analysis and support",
    version="1.0.0",
    lifespan=lifespan
)


def get_controller() -> ReportingController:
    return controller


def require_admin(ctrl: ReportingController = Depends(get_controller)) -> AdminProfile:
    """Dashboard routes need an admin profile for the current session.

    There is no credential check; the profile only identifies who is
    looking at the dashboard.
    """
    if ctrl.profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin login required"
        )
    return ctrl.profile


# ---------------------------------------------------------------------------
# Student
# ---------------------------------------------------------------------------

@app.post("/complaints", response_model=Complaint, status_code=status.HTTP_201_CREATED)
async def submit_complaint(
    request: ComplaintRequest,
    ctrl: ReportingController = Depends(get_controller)
):
    """Submit a typed complaint.

    The complaint is stored immediately with a placeholder category;
    categorization finishes in the background.
    """
    return await ctrl.submit_text(request.text)


@app.post("/complaints/audio", response_model=Complaint, status_code=status.HTTP_201_CREATED)
async def submit_audio_complaint(
    request: AudioComplaintRequest,
    ctrl: ReportingController = Depends(get_controller)
):
    """Submit a recorded complaint.

    The recording is transcribed first. If that fails nothing is stored
    and the student is asked to try again.
    """
    try:
        return await ctrl.submit_audio(request.audio, request.mime_type)
    except TranscriptionError as e:
        logger.warning(f"Audio complaint rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=AUDIO_FAILURE_NOTICE
        )


@app.get("/chat", response_model=ChatResponse)
async def chat_history(ctrl: ReportingController = Depends(get_controller)):
    return ChatResponse(messages=ctrl.chat_messages)


@app.post("/chat", response_model=ChatResponse)
async def send_chat(
    request: ChatRequest,
    ctrl: ReportingController = Depends(get_controller)
):
    reply = await ctrl.send_chat(request.message)
    return ChatResponse(reply=reply, messages=ctrl.chat_messages)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

@app.post("/admin/login", response_model=AdminProfile)
async def admin_login(
    profile: AdminProfile,
    ctrl: ReportingController = Depends(get_controller)
):
    return ctrl.login(profile.name, profile.role, profile.department)


@app.post("/admin/logout", status_code=status.HTTP_204_NO_CONTENT)
async def admin_logout(ctrl: ReportingController = Depends(get_controller)):
    ctrl.logout()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/admin/profile", response_model=AdminProfile)
async def admin_profile(profile: AdminProfile = Depends(require_admin)):
    return profile


@app.get("/complaints", response_model=List[Complaint])
async def list_complaints(
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status"),
    ctrl: ReportingController = Depends(get_controller),
    _: AdminProfile = Depends(require_admin)
):
    """List complaints newest first, optionally filtered by status."""
    return ctrl.complaints(status_filter)


@app.post("/complaints/{complaint_id}/toggle", response_model=Complaint)
async def toggle_complaint(
    complaint_id: str,
    ctrl: ReportingController = Depends(get_controller),
    _: AdminProfile = Depends(require_admin)
):
    return ctrl.toggle_resolution(complaint_id)


@app.post("/complaints/{complaint_id}/analysis", response_model=Complaint)
async def analyze_complaint(
    complaint_id: str,
    ctrl: ReportingController = Depends(get_controller),
    _: AdminProfile = Depends(require_admin)
):
    """Run deep severity analysis for one complaint."""
    complaint = await ctrl.request_analysis(complaint_id)
    if complaint is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Analysis already in progress for this complaint"
        )
    return complaint


@app.post("/complaints/{complaint_id}/speech", response_model=SpeechPayload)
async def complaint_speech(
    complaint_id: str,
    ctrl: ReportingController = Depends(get_controller),
    _: AdminProfile = Depends(require_admin)
):
    """Synthesize the complaint text as raw PCM for the caller to play."""
    ctrl.store.get(complaint_id)
    payload = await ctrl.synthesize(complaint_id)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Speech unavailable"
        )
    return payload


@app.post("/resources/search", response_model=GroundingResult)
async def search_resources(
    request: SearchRequest,
    ctrl: ReportingController = Depends(get_controller),
    _: AdminProfile = Depends(require_admin)
):
    """Find helplines, legal acts and support resources with cited sources."""
    result = await ctrl.search_resources(request.query)
    return result or GroundingResult()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

@app.get("/health")
async def health_check(ctrl: ReportingController = Depends(get_controller)):
    """Health check endpoint.

    Returns system status including AI availability and complaint count.
    """
    ai_status = "healthy" if ctrl.gateway.available else "degraded"

    return {
        "status": "healthy",
        "ai_provider": ai_status,
        "complaints": len(ctrl.store)
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "UnMute Anti-Ragging Reporting API",
        "version": "1.0.0",
        "endpoints": {
            "submit": "POST /complaints",
            "submit_audio": "POST /complaints/audio",
            "chat": "POST /chat",
            "admin_login": "POST /admin/login",
            "dashboard": "GET /complaints",
            "search": "POST /resources/search",
            "health": "GET /health"
        }
    }


@app.exception_handler(ComplaintNotFound)
async def complaint_not_found_handler(request, exc):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": f"Complaint {exc.args[0]} not found"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )
