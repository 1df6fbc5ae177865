"""
Test doubles for end-to-end assessment tests.

ScriptedAI stands in for AssessmentAI: it hands out queued questions and
evaluations, records what it was asked, and can be told to fail or to block
until released.
"""

import asyncio
import os
import sys
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Set, Tuple

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "adaptive_career_assessment", "src"))

from adaptive_career_assessment.assessment_state import Evaluation, Question, SkillProfile
from adaptive_career_assessment.assessment_store import AssessmentStore
from adaptive_career_assessment.exceptions import CollaboratorError, StoreError


def make_evaluation(score: int = 80, recommendation: str = "same", bloom: str = "Apply", **extra) -> Evaluation:
    payload = {
        "score": score,
        "feedback": f"Scored {score}",
        "strengths": ["clear reasoning"],
        "weaknesses": [],
        "suggestions": [],
        "bloom_achievement": bloom,
        "confidence": 85,
        "next_difficulty_recommendation": recommendation,
    }
    payload.update(extra)
    return Evaluation.from_dict(payload)


class ScriptedAI:
    """Fake collaborator with scripted answers."""

    def __init__(self):
        self.evaluations: List[Evaluation] = []
        self.generate_calls: List[Dict[str, Any]] = []
        self.evaluate_calls: List[Dict[str, Any]] = []
        self.profile_calls: List[Dict[str, Any]] = []
        self.generate_errors: List[CollaboratorError] = []
        self.evaluate_errors: List[CollaboratorError] = []
        self.evaluate_gate: Optional[asyncio.Event] = None

    async def generate_question(self, topic, difficulty, bloom_level, previous_questions=(), question_type=None):
        self.generate_calls.append({
            "topic": topic,
            "difficulty": difficulty,
            "bloom_level": bloom_level,
            "previous_questions": list(previous_questions),
        })
        if self.generate_errors:
            raise self.generate_errors.pop(0)
        number = len(self.generate_calls)
        return Question(
            question_text=f"{topic} question {number}",
            question_type="theory",
            difficulty=difficulty,
            bloom_level=bloom_level,
            time_estimate_minutes=5,
        )

    async def evaluate_answer(self, question, answer, question_type, difficulty, bloom_level):
        self.evaluate_calls.append({
            "question": question,
            "answer": answer,
            "question_type": question_type,
            "difficulty": difficulty,
            "bloom_level": bloom_level,
        })
        if self.evaluate_gate is not None:
            await self.evaluate_gate.wait()
        if self.evaluate_errors:
            raise self.evaluate_errors.pop(0)
        if self.evaluations:
            return self.evaluations.pop(0)
        return make_evaluation()

    async def analyze_profile(self, name=None, experience=None, skills=None, goals=None):
        self.profile_calls.append({"name": name, "experience": experience, "skills": skills, "goals": goals})
        return SkillProfile.from_dict({
            "extracted_skills": [{"name": "Python", "category": "Languages", "confidence": 90}],
            "skill_levels": {"Python": 80},
            "career_trajectory": "IC track",
            "career_cluster": "Backend Engineer",
            "skill_vector": [{"category": "Backend", "weight": 1.0}],
            "hidden_skills": [],
            "ai_confidence": 75,
            "summary": "Backend developer.",
        })


class SpyStore(AssessmentStore):
    """In-memory store that counts completion writes."""

    def __init__(self):
        super().__init__(supabase_client=None)
        self.completed_calls: List[str] = []

    async def mark_completed(self, assessment_id, bloom_distribution=None):
        self.completed_calls.append(assessment_id)
        return await super().mark_completed(assessment_id, bloom_distribution)


class FailingStore(AssessmentStore):
    """Store that refuses to create sessions."""

    def __init__(self):
        super().__init__(supabase_client=None)

    async def create_session(self, session_id, topic, difficulty, total_questions):
        raise StoreError("Could not create assessment session: database unavailable")


class BlockingStore(AssessmentStore):
    """In-memory store whose named write waits on `gate` before completing."""

    def __init__(self, blocked_method: str):
        super().__init__(supabase_client=None)
        self.blocked_method = blocked_method
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()

    async def _block(self, method: str):
        if method == self.blocked_method:
            self.entered.set()
            await self.gate.wait()

    async def insert_question(self, assessment_id, question_number, question):
        await self._block("insert_question")
        return await super().insert_question(assessment_id, question_number, question)

    async def record_answer(self, assessment_id, question_number, answer, evaluation, time_spent_seconds=None):
        await self._block("record_answer")
        return await super().record_answer(assessment_id, question_number, answer, evaluation, time_spent_seconds)

    async def update_progress(self, assessment_id, questions_answered, correct_answers, current_difficulty):
        await self._block("update_progress")
        return await super().update_progress(assessment_id, questions_answered, correct_answers, current_difficulty)

    async def mark_completed(self, assessment_id, bloom_distribution=None):
        await self._block("mark_completed")
        return await super().mark_completed(assessment_id, bloom_distribution)


class FakeQuery:
    """Chainable stand-in for a Supabase table query."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table
        self.operation = "select"
        self.payload: Dict[str, Any] = {}

    def insert(self, row):
        self.operation = "insert"
        self.payload = row
        return self

    def update(self, data):
        self.operation = "update"
        self.payload = data
        return self

    def select(self, *columns):
        self.operation = "select"
        return self

    def eq(self, column, value):
        return self

    def order(self, column, desc=False):
        return self

    def limit(self, count):
        return self

    def execute(self):
        self.client.calls.append((self.table, self.operation))
        if (self.table, self.operation) in self.client.failing:
            raise ConnectionError(f"{self.table} {self.operation} failed: connection reset")
        if self.operation == "insert":
            return SimpleNamespace(data=[{**self.payload, "id": f"{self.table}-1"}])
        return SimpleNamespace(data=[])


class FakeSupabase:
    """Supabase client double; (table, operation) pairs in `failing` raise on execute."""

    def __init__(self, failing: Optional[Set[Tuple[str, str]]] = None):
        self.failing = failing or set()
        self.calls: List[Tuple[str, str]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)
