"""
Assessment Summary

Statistics shown when an assessment ends: average score, accuracy, letter
grade, per-question breakdown and how often each Bloom level was reached.
"""

from collections import Counter
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Sequence

from adaptive_career_assessment.assessment_state import AssessmentState, Evaluation

GRADE_BOUNDARIES = [
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
]


@dataclass
class QuestionBreakdown:
    question_number: int
    score: int
    is_correct: bool
    bloom_achievement: str


@dataclass
class AssessmentSummary:
    """Summary of an assessment's evaluations."""
    topic: str
    average_score: int
    accuracy: int
    grade: str
    correct_answers: int
    total_questions: int
    questions_answered: int
    final_difficulty: str
    breakdown: List[QuestionBreakdown] = field(default_factory=list)
    bloom_distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)


def letter_grade(average_score: float) -> str:
    for boundary, grade in GRADE_BOUNDARIES:
        if average_score >= boundary:
            return grade
    return "F"


def bloom_distribution(evaluations: Sequence[Evaluation]) -> Dict[str, int]:
    """Count of evaluations per achieved Bloom level, in first-seen order."""
    return dict(Counter(e.bloom_achievement for e in evaluations if e.bloom_achievement))


def summarize(state: AssessmentState) -> AssessmentSummary:
    """
    Build the summary for a session.

    Args:
        state: Session with at least one evaluation

    Raises:
        ValueError: If nothing has been evaluated yet
    """
    if not state.evaluations:
        raise ValueError("No evaluations to summarize")

    average_score = round(sum(e.score for e in state.evaluations) / len(state.evaluations))
    accuracy = round(state.correct_answers / state.total_questions * 100)

    return AssessmentSummary(
        topic=state.topic,
        average_score=average_score,
        accuracy=accuracy,
        grade=letter_grade(average_score),
        correct_answers=state.correct_answers,
        total_questions=state.total_questions,
        questions_answered=state.questions_answered,
        final_difficulty=state.current_difficulty,
        breakdown=[
            QuestionBreakdown(
                question_number=i,
                score=e.score,
                is_correct=e.is_correct,
                bloom_achievement=e.bloom_achievement
            )
            for i, e in enumerate(state.evaluations, 1)
        ],
        bloom_distribution=bloom_distribution(state.evaluations),
    )
