"""
Assessment Store

Persists assessment sessions and their questions in Supabase
(`assessment_sessions` / `assessment_questions`).

Only session creation is gating: it raises StoreError so the controller can
refuse to start. Every other write is best-effort; a failure is logged and
reported by a False return, and the caller carries on with its in-memory
state.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from adaptive_career_assessment.assessment_state import Evaluation, Question
from adaptive_career_assessment.exceptions import StoreError

logger = logging.getLogger(__name__)

SESSIONS_TABLE = "assessment_sessions"
QUESTIONS_TABLE = "assessment_questions"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AssessmentStore:
    """
    Session/question CRUD in Supabase.

    Without a Supabase client the store keeps rows in memory, which is what
    the tests and local runs without credentials use.
    """

    def __init__(self, supabase_client=None):
        """
        Initialize AssessmentStore.

        Args:
            supabase_client: Supabase client instance (optional)
        """
        self.supabase = supabase_client
        self.use_supabase = supabase_client is not None

        self._in_memory_sessions: Dict[str, Dict[str, Any]] = {}
        self._in_memory_questions: List[Dict[str, Any]] = []

        if not self.use_supabase:
            logger.warning("⚠️ [AssessmentStore] Supabase not available, using in-memory storage")

    async def create_session(
        self,
        session_id: str,
        topic: str,
        difficulty: str,
        total_questions: int
    ) -> str:
        """
        Insert a new session record.

        Args:
            session_id: Client-generated session token
            topic: Assessment topic
            difficulty: Starting difficulty
            total_questions: Requested question count

        Returns:
            The record id assigned by the store

        Raises:
            StoreError: If the record could not be created
        """
        row = {
            "session_id": session_id,
            "topic": topic,
            "difficulty": difficulty,
            "current_difficulty": difficulty,
            "total_questions": total_questions,
            "questions_answered": 0,
            "correct_answers": 0,
            "status": "in_progress",
        }

        if not self.use_supabase:
            record_id = str(uuid.uuid4())
            self._in_memory_sessions[record_id] = {
                **row,
                "id": record_id,
                "completed_at": None,
                "bloom_distribution": None,
                "created_at": _now_iso(),
            }
            return record_id

        try:
            result = self.supabase.table(SESSIONS_TABLE).insert(row).execute()
        except Exception as e:
            logger.error(f"❌ [AssessmentStore] Error creating session: {e}")
            raise StoreError(f"Could not create assessment session: {e}", original_exception=e)

        if not result.data:
            raise StoreError("Could not create assessment session: store returned no record")

        record_id = result.data[0].get("id")
        logger.info(f"💾 [AssessmentStore] Created session {record_id}")
        return record_id

    async def insert_question(self, assessment_id: str, question_number: int, question: Question) -> bool:
        """Insert a generated question under its session."""
        row = {
            "assessment_id": assessment_id,
            "question_number": question_number,
            "question_text": question.question_text,
            "question_type": question.question_type,
            "difficulty": question.difficulty,
            "bloom_level": question.bloom_level,
            "time_estimate_minutes": question.time_estimate_minutes,
        }

        if not self.use_supabase:
            self._in_memory_questions.append({
                **row,
                "id": str(uuid.uuid4()),
                "user_answer": None,
                "ai_evaluation": None,
                "score": None,
                "answered_at": None,
                "time_spent_seconds": None,
                "created_at": _now_iso(),
            })
            return True

        try:
            self.supabase.table(QUESTIONS_TABLE).insert(row).execute()
            return True
        except Exception as e:
            logger.warning(f"⚠️ [AssessmentStore] Error saving question {question_number}: {e}")
            return False

    async def record_answer(
        self,
        assessment_id: str,
        question_number: int,
        answer: str,
        evaluation: Evaluation,
        time_spent_seconds: Optional[int] = None
    ) -> bool:
        """Store the answer and its evaluation on the question record."""
        update_data = {
            "user_answer": answer,
            "ai_evaluation": evaluation.to_dict(),
            "score": evaluation.score,
            "answered_at": _now_iso(),
            "time_spent_seconds": time_spent_seconds,
        }

        if not self.use_supabase:
            for row in self._in_memory_questions:
                if row["assessment_id"] == assessment_id and row["question_number"] == question_number:
                    row.update(update_data)
                    return True
            return False

        try:
            self.supabase.table(QUESTIONS_TABLE) \
                .update(update_data) \
                .eq("assessment_id", assessment_id) \
                .eq("question_number", question_number) \
                .execute()
            return True
        except Exception as e:
            logger.warning(f"⚠️ [AssessmentStore] Error saving answer for question {question_number}: {e}")
            return False

    async def update_progress(
        self,
        assessment_id: str,
        questions_answered: int,
        correct_answers: int,
        current_difficulty: str
    ) -> bool:
        """Update session counters and current difficulty."""
        update_data = {
            "questions_answered": questions_answered,
            "correct_answers": correct_answers,
            "current_difficulty": current_difficulty,
        }
        return await self._update_session(assessment_id, update_data, "progress")

    async def mark_completed(
        self,
        assessment_id: str,
        bloom_distribution: Optional[Dict[str, int]] = None
    ) -> bool:
        """Mark the session completed with a completion timestamp."""
        update_data = {"status": "completed", "completed_at": _now_iso()}
        if bloom_distribution is not None:
            update_data["bloom_distribution"] = bloom_distribution
        return await self._update_session(assessment_id, update_data, "completion")

    async def _update_session(self, assessment_id: str, update_data: Dict[str, Any], what: str) -> bool:
        if not self.use_supabase:
            session = self._in_memory_sessions.get(assessment_id)
            if session is None:
                return False
            session.update(update_data)
            return True

        try:
            self.supabase.table(SESSIONS_TABLE).update(update_data).eq("id", assessment_id).execute()
            return True
        except Exception as e:
            logger.warning(f"⚠️ [AssessmentStore] Error saving session {what}: {e}")
            return False

    async def get_session(self, assessment_id: str) -> Optional[Dict[str, Any]]:
        """Load a session record by id."""
        if not self.use_supabase:
            session = self._in_memory_sessions.get(assessment_id)
            return dict(session) if session else None

        try:
            result = self.supabase.table(SESSIONS_TABLE).select("*").eq("id", assessment_id).execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.warning(f"⚠️ [AssessmentStore] Error loading session {assessment_id}: {e}")
            return None

    async def get_questions(self, assessment_id: str) -> List[Dict[str, Any]]:
        """Load a session's question records ordered by question number."""
        if not self.use_supabase:
            rows = [dict(r) for r in self._in_memory_questions if r["assessment_id"] == assessment_id]
            return sorted(rows, key=lambda r: r["question_number"])

        try:
            result = self.supabase.table(QUESTIONS_TABLE) \
                .select("*") \
                .eq("assessment_id", assessment_id) \
                .order("question_number", desc=False) \
                .execute()
            return result.data if result.data else []
        except Exception as e:
            logger.warning(f"⚠️ [AssessmentStore] Error loading questions for {assessment_id}: {e}")
            return []
