"""
FastAPI Backend for the Adaptive Career Assessment

Provides REST API endpoints for:
- Adaptive assessments (start, answer, next question, reset, summary)
- The AI collaborator functions (generate-question, evaluate-answer, ai-profile)
- Skill profiling with persistence
"""

import os
import sys
import time
import uuid
import signal
import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Add the adaptive_career_assessment package to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)
package_src = os.path.join(project_root, 'adaptive_career_assessment', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from adaptive_career_assessment.assessment_ai import AssessmentAI
from adaptive_career_assessment.assessment_controller import AssessmentController
from adaptive_career_assessment.assessment_state import AssessmentStatus
from adaptive_career_assessment.assessment_store import AssessmentStore
from adaptive_career_assessment.assessment_summary import summarize
from adaptive_career_assessment.config import get_config
from adaptive_career_assessment.exceptions import (
    AssessmentError,
    AssessmentValidationError,
    CollaboratorError,
    InvalidTransitionError,
    StoreError,
)
from adaptive_career_assessment.session_registry import SessionRegistry
from adaptive_career_assessment.user_profile_manager import ProfileInput, UserProfileManager

from lib.logger import setup_logging, get_logger
from lib.supabase_client import get_supabase_client

config = get_config()
config.validate_config()

setup_logging(
    level=getattr(logging, config.LOGGING_CONFIG["level"]),
    use_colors=config.LOGGING_CONFIG["use_colors"]
)
logger = get_logger("backend.main")

app = FastAPI(
    title=config.API_CONFIG["title"],
    description="Adaptive technical assessment with AI-generated questions and evaluations",
    version=config.API_CONFIG["version"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Singletons ====================

_assessment_ai: Optional[AssessmentAI] = None
_assessment_store: Optional[AssessmentStore] = None
_profile_manager: Optional[UserProfileManager] = None

# Live controllers keyed by session token; completed and idle sessions expire
_sessions = SessionRegistry(
    completed_ttl_minutes=config.SESSION_COMPLETED_TTL_MINUTES,
    idle_ttl_minutes=config.SESSION_IDLE_TTL_MINUTES,
    max_sessions=config.MAX_ACTIVE_SESSIONS
)


def get_assessment_ai() -> AssessmentAI:
    """Get or create the AI collaborator."""
    global _assessment_ai
    if _assessment_ai is None:
        try:
            _assessment_ai = AssessmentAI()
        except ValueError as e:
            raise CollaboratorError(str(e), status_code=503)
    return _assessment_ai


def get_assessment_store() -> AssessmentStore:
    """Get or create the assessment store."""
    global _assessment_store
    if _assessment_store is None:
        _assessment_store = AssessmentStore(supabase_client=get_supabase_client())
    return _assessment_store


def get_profile_manager() -> UserProfileManager:
    """Get or create the profile manager."""
    global _profile_manager
    if _profile_manager is None:
        _profile_manager = UserProfileManager(supabase_client=get_supabase_client())
    return _profile_manager


def get_controller(session_id: str) -> AssessmentController:
    controller = _sessions.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Assessment session not found")
    return controller


# ==================== Error Handling ====================

@app.exception_handler(CollaboratorError)
async def collaborator_error_handler(request: Request, exc: CollaboratorError):
    logger.error(f"Collaborator error on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code or 500, content={"error": exc.message})


@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError):
    if isinstance(exc, InvalidTransitionError):
        status_code = 409
    elif isinstance(exc, AssessmentValidationError):
        status_code = 422
    elif isinstance(exc, StoreError):
        status_code = 503
    else:
        status_code = 500
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.message})


# ==================== Pydantic Models ====================

class GenerateQuestionRequest(BaseModel):
    topic: str
    difficulty: str = "medium"
    bloomLevel: Optional[str] = None
    previousQuestions: List[str] = []
    questionType: Optional[str] = None


class EvaluateAnswerRequest(BaseModel):
    question: str
    answer: str
    questionType: str = "coding"
    difficulty: str = "medium"
    bloomLevel: str = "Apply"


class ProfileRequest(BaseModel):
    name: Optional[str] = None
    experience: Optional[str] = None
    skills: Optional[str] = None
    goals: Optional[str] = None


class StartAssessmentRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    totalQuestions: int = Field(5, ge=config.MIN_QUESTIONS, le=config.MAX_QUESTIONS)
    difficulty: str = "medium"


class AnswerSubmission(BaseModel):
    answer: str
    timeSpentSeconds: Optional[int] = Field(None, ge=0)


# ==================== Collaborator Function Endpoints ====================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": config.API_CONFIG["title"],
        "version": config.API_CONFIG["version"],
        "supabase_connected": get_supabase_client() is not None,
        "active_assessments": len(_sessions),
    }


@app.post("/functions/generate-question")
async def generate_question(body: GenerateQuestionRequest, ai: AssessmentAI = Depends(get_assessment_ai)):
    """Generate one question; errors come back as {"error": ...}."""
    logger.request("POST", "/functions/generate-question", data={
        "topic": body.topic,
        "difficulty": body.difficulty,
        "bloom_level": body.bloomLevel,
        "previous_questions": len(body.previousQuestions),
    })
    question = await ai.generate_question(
        topic=body.topic,
        difficulty=body.difficulty,
        bloom_level=body.bloomLevel or "Apply",
        previous_questions=body.previousQuestions,
        question_type=body.questionType,
    )
    return {"success": True, "question": question.to_dict()}


@app.post("/functions/evaluate-answer")
async def evaluate_answer(body: EvaluateAnswerRequest, ai: AssessmentAI = Depends(get_assessment_ai)):
    """Evaluate one answer; errors come back as {"error": ...}."""
    logger.request("POST", "/functions/evaluate-answer", data={
        "question_type": body.questionType,
        "difficulty": body.difficulty,
        "answer_length": len(body.answer),
    })
    evaluation = await ai.evaluate_answer(
        question=body.question,
        answer=body.answer,
        question_type=body.questionType,
        difficulty=body.difficulty,
        bloom_level=body.bloomLevel,
    )
    return {"success": True, "evaluation": evaluation.to_dict()}


@app.post("/functions/ai-profile")
async def ai_profile(body: ProfileRequest, ai: AssessmentAI = Depends(get_assessment_ai)):
    """Extract a skill profile without saving it."""
    profile = await ai.analyze_profile(body.name, body.experience, body.skills, body.goals)
    return {"success": True, "profile": profile.to_dict()}


# ==================== Profiling ====================

@app.post("/api/profiles", status_code=201)
async def create_profile(
    body: ProfileRequest,
    ai: AssessmentAI = Depends(get_assessment_ai),
    profile_manager: UserProfileManager = Depends(get_profile_manager)
):
    """Analyse the user's background and save the resulting profile."""
    inputs = ProfileInput(name=body.name, experience=body.experience, skills=body.skills, goals=body.goals)
    if inputs.is_empty():
        raise AssessmentValidationError("Please provide at least your experience or skills.")

    logger.section("PROFILE ANALYSIS", {"has_name": bool(body.name), "has_goals": bool(body.goals)})
    logger.subsection("Extracting skills")
    profile = await ai.analyze_profile(inputs.name, inputs.experience, inputs.skills, inputs.goals)

    logger.subsection("Saving profile")
    session_id = str(uuid.uuid4())
    profile_id = await profile_manager.save_profile(session_id, inputs, profile)
    if profile_id is None:
        logger.warning("Profile analysed but not saved", data={"session_id": session_id})
    else:
        logger.success("Profile saved", data={"profile_id": profile_id, "career_cluster": profile.career_cluster})

    return {"session_id": session_id, "profile_id": profile_id, "profile": profile.to_dict()}


@app.get("/api/profiles/{profile_id}")
async def get_profile(profile_id: str, profile_manager: UserProfileManager = Depends(get_profile_manager)):
    """Load a saved profile record."""
    profile = await profile_manager.get_profile(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


# ==================== Assessment Endpoints ====================

@app.post("/api/assessments", status_code=201)
async def start_assessment(
    body: StartAssessmentRequest,
    ai: AssessmentAI = Depends(get_assessment_ai),
    store: AssessmentStore = Depends(get_assessment_store)
):
    """
    Start an assessment and generate its first question.

    Collaborator failures are reported in the returned state's `error` with
    status `setup`; such sessions are not kept.
    """
    start_time = time.time()
    logger.section("START ASSESSMENT", {
        "topic": body.topic,
        "total_questions": body.totalQuestions,
        "difficulty": body.difficulty,
    })

    controller = AssessmentController(ai, store)
    state = await controller.start(body.topic, body.totalQuestions, body.difficulty)

    if state.session_id and state.status != AssessmentStatus.SETUP:
        _sessions.add(state.session_id, controller)

    logger.response(201, "/api/assessments", duration=time.time() - start_time, data={
        "session_id": state.session_id,
        "status": state.status.value,
        "error": state.error or None,
    })
    return state.to_dict()


@app.get("/api/assessments/{session_id}")
async def get_assessment(session_id: str):
    """Current state of an assessment."""
    return get_controller(session_id).state.to_dict()


@app.post("/api/assessments/{session_id}/answers")
async def submit_answer(session_id: str, body: AnswerSubmission):
    """Submit an answer to the current question."""
    controller = get_controller(session_id)
    start_time = time.time()
    logger.request("POST", f"/api/assessments/{session_id[:8]}.../answers", data={
        "question_number": controller.state.current_question_number,
        "answer_length": len(body.answer),
    })

    state = await controller.submit(body.answer, body.timeSpentSeconds)

    logger.response(200, "/answers", duration=time.time() - start_time, data={
        "status": state.status.value,
        "questions_answered": state.questions_answered,
        "current_difficulty": state.current_difficulty,
    })
    return state.to_dict()


@app.post("/api/assessments/{session_id}/next")
async def next_question(session_id: str):
    """Generate the next question at the adjusted difficulty."""
    state = await get_controller(session_id).next_question()
    return state.to_dict()


@app.post("/api/assessments/{session_id}/reset")
async def reset_assessment(session_id: str):
    """Discard the session and return the initial state."""
    controller = _sessions.pop(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Assessment session not found")
    logger.info(f"🔁 Assessment {session_id[:8]}... reset")
    return controller.reset().to_dict()


@app.get("/api/assessments/{session_id}/summary")
async def get_summary(session_id: str):
    """Score summary; available once at least one answer has been evaluated."""
    state = get_controller(session_id).state
    if not state.evaluations:
        raise HTTPException(status_code=409, detail="No answers evaluated yet")
    summary = summarize(state)
    logger.debug(f"Summary for {session_id[:8]}...", data={"average_score": summary.average_score, "grade": summary.grade})
    return summary.to_dict()


@app.get("/api/assessments/{session_id}/questions")
async def get_question_history(session_id: str, store: AssessmentStore = Depends(get_assessment_store)):
    """Persisted question records for this assessment."""
    state = get_controller(session_id).state
    questions = await store.get_questions(state.assessment_id)
    logger.debug(f"Loaded {len(questions)} question record(s) for {session_id[:8]}...")
    return {"questions": questions}


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    uvicorn.run(app, host=config.API_CONFIG["host"], port=config.API_CONFIG["port"])
