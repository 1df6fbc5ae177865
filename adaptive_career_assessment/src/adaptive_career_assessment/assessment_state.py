"""
Assessment State Data Model

Immutable records for one assessment attempt. The controller never mutates
an AssessmentState; every transition builds a new one with
dataclasses.replace, so each transition is atomic from the reader's side.
"""

import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class AssessmentStatus(Enum):
    """Assessment session statuses."""
    IDLE = "idle"
    SETUP = "setup"
    GENERATING = "generating"
    ANSWERING = "answering"
    EVALUATING = "evaluating"
    REVIEWED = "reviewed"
    COMPLETED = "completed"


QUESTION_TYPES = ("coding", "theory", "system_design", "debugging")
DIFFICULTY_RECOMMENDATIONS = ("easier", "same", "harder")


def _as_str_tuple(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item) for item in value)


def _is_number(value: Any) -> bool:
    """Finite int/float; bools and the NaN/Infinity that json.loads accepts are not numbers here."""
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))


def _clamp_int(value: Any, low: int = 0, high: int = 100) -> int:
    if not _is_number(value):
        raise ValueError(f"not a finite number: {value!r}")
    return max(low, min(high, int(round(value))))


@dataclass(frozen=True)
class Question:
    """A generated question. Rubric, hints and expected concepts pass through untouched."""
    question_text: str
    question_type: str = "coding"
    difficulty: str = "medium"
    bloom_level: str = "Apply"
    time_estimate_minutes: Optional[float] = None
    evaluation_rubric: Optional[Dict[str, Any]] = None
    hints: Optional[Tuple[str, ...]] = None
    expected_concepts: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        """
        Build a Question from a collaborator payload.

        Raises:
            ValueError: If the payload has no usable question text
        """
        if not isinstance(data, dict):
            raise ValueError("question payload is not an object")
        text = data.get("question_text")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("question payload has no question_text")

        question_type = data.get("question_type")
        if question_type not in QUESTION_TYPES:
            question_type = "coding"

        time_estimate = data.get("time_estimate_minutes")
        if not _is_number(time_estimate):
            time_estimate = None

        hints = data.get("hints")
        concepts = data.get("expected_concepts")
        return cls(
            question_text=text.strip(),
            question_type=question_type,
            difficulty=str(data.get("difficulty") or "medium"),
            bloom_level=str(data.get("bloom_level") or "Apply"),
            time_estimate_minutes=time_estimate,
            evaluation_rubric=data.get("evaluation_rubric"),
            hints=_as_str_tuple(hints) if hints is not None else None,
            expected_concepts=_as_str_tuple(concepts) if concepts is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.hints is not None:
            data["hints"] = list(self.hints)
        if self.expected_concepts is not None:
            data["expected_concepts"] = list(self.expected_concepts)
        return data


@dataclass(frozen=True)
class ComplexityAnalysis:
    """Time/space complexity reported for coding answers."""
    time: str
    space: str


@dataclass(frozen=True)
class Evaluation:
    """Scored outcome of one answered question."""
    score: int
    is_correct: bool
    feedback: str = ""
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()
    complexity_analysis: Optional[ComplexityAnalysis] = None
    bloom_achievement: str = ""
    confidence: int = 0
    next_difficulty_recommendation: str = "same"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Evaluation":
        """
        Build an Evaluation from a collaborator payload.

        Score and confidence are clamped to 0-100. A missing correctness flag
        falls back to score >= 60; an unknown recommendation becomes "same".

        Raises:
            ValueError: If the payload has no numeric score
        """
        if not isinstance(data, dict):
            raise ValueError("evaluation payload is not an object")
        raw_score = data.get("score")
        if not _is_number(raw_score):
            raise ValueError("evaluation payload has no numeric score")
        score = _clamp_int(raw_score)

        is_correct = data.get("is_correct")
        if not isinstance(is_correct, bool):
            is_correct = score >= 60

        complexity = data.get("complexity_analysis")
        if isinstance(complexity, dict):
            complexity = ComplexityAnalysis(
                time=str(complexity.get("time", "")),
                space=str(complexity.get("space", "")),
            )
        else:
            complexity = None

        confidence = data.get("confidence")
        if _is_number(confidence):
            confidence = _clamp_int(confidence)
        else:
            confidence = 0

        recommendation = str(data.get("next_difficulty_recommendation") or "same").lower()
        if recommendation not in DIFFICULTY_RECOMMENDATIONS:
            recommendation = "same"

        return cls(
            score=score,
            is_correct=is_correct,
            feedback=str(data.get("feedback") or ""),
            strengths=_as_str_tuple(data.get("strengths")),
            weaknesses=_as_str_tuple(data.get("weaknesses")),
            suggestions=_as_str_tuple(data.get("suggestions")),
            complexity_analysis=complexity,
            bloom_achievement=str(data.get("bloom_achievement") or ""),
            confidence=confidence,
            next_difficulty_recommendation=recommendation,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("strengths", "weaknesses", "suggestions"):
            data[key] = list(data[key])
        return data


@dataclass(frozen=True)
class AssessmentState:
    """State of one assessment attempt, replaced wholesale on every transition."""
    session_id: Optional[str] = None
    assessment_id: Optional[str] = None
    topic: str = ""
    current_question: Optional[Question] = None
    current_question_number: int = 0
    total_questions: int = 5
    current_difficulty: str = "medium"
    questions_answered: int = 0
    correct_answers: int = 0
    evaluations: Tuple[Evaluation, ...] = ()
    previous_questions: Tuple[str, ...] = ()
    status: AssessmentStatus = AssessmentStatus.IDLE
    error: str = ""

    @property
    def is_busy(self) -> bool:
        """True while a collaborator request is outstanding."""
        return self.status in (AssessmentStatus.GENERATING, AssessmentStatus.EVALUATING)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "assessment_id": self.assessment_id,
            "topic": self.topic,
            "current_question": self.current_question.to_dict() if self.current_question else None,
            "current_question_number": self.current_question_number,
            "total_questions": self.total_questions,
            "current_difficulty": self.current_difficulty,
            "questions_answered": self.questions_answered,
            "correct_answers": self.correct_answers,
            "evaluations": [e.to_dict() for e in self.evaluations],
            "previous_questions": list(self.previous_questions),
            "status": self.status.value,
            "error": self.error,
        }


@dataclass
class SkillProfile:
    """AI-extracted career profile."""
    extracted_skills: List[Dict[str, Any]] = field(default_factory=list)
    skill_levels: Dict[str, Any] = field(default_factory=dict)
    career_trajectory: str = ""
    career_cluster: str = ""
    skill_vector: List[Dict[str, Any]] = field(default_factory=list)
    hidden_skills: List[Dict[str, Any]] = field(default_factory=list)
    ai_confidence: int = 0
    summary: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkillProfile":
        if not isinstance(data, dict):
            raise ValueError("profile payload is not an object")
        confidence = data.get("ai_confidence")
        if _is_number(confidence):
            confidence = _clamp_int(confidence)
        else:
            confidence = 0
        return cls(
            extracted_skills=[s for s in data.get("extracted_skills") or [] if isinstance(s, dict)],
            skill_levels=data.get("skill_levels") if isinstance(data.get("skill_levels"), dict) else {},
            career_trajectory=str(data.get("career_trajectory") or ""),
            career_cluster=str(data.get("career_cluster") or ""),
            skill_vector=[v for v in data.get("skill_vector") or [] if isinstance(v, dict)],
            hidden_skills=[h for h in data.get("hidden_skills") or [] if isinstance(h, dict)],
            ai_confidence=confidence,
            summary=str(data.get("summary") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
