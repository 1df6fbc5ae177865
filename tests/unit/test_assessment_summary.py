"""
Unit Tests for Assessment Summary
"""

import pytest
import sys
import os

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "adaptive_career_assessment", "src"))

from adaptive_career_assessment.assessment_state import AssessmentState, AssessmentStatus, Evaluation
from adaptive_career_assessment.assessment_summary import bloom_distribution, letter_grade, summarize


def _evaluation(score, is_correct, bloom):
    return Evaluation.from_dict({"score": score, "is_correct": is_correct, "bloom_achievement": bloom})


class TestLetterGrade:
    """Test suite for letter_grade."""

    @pytest.mark.parametrize("score,grade", [
        (100, "A+"),
        (90, "A+"),
        (89, "A"),
        (80, "A"),
        (70, "B"),
        (60, "C"),
        (50, "D"),
        (49, "F"),
        (0, "F"),
    ])
    def test_boundaries(self, score, grade):
        assert letter_grade(score) == grade


class TestSummarize:
    """Test suite for summarize."""

    @pytest.fixture
    def completed_state(self):
        evaluations = (
            _evaluation(80, True, "Remember"),
            _evaluation(60, True, "Apply"),
            _evaluation(40, False, "Apply"),
        )
        return AssessmentState(
            topic="SQL & Databases",
            total_questions=3,
            questions_answered=3,
            correct_answers=2,
            current_difficulty="hard",
            evaluations=evaluations,
            status=AssessmentStatus.COMPLETED,
        )

    def test_scores(self, completed_state):
        summary = summarize(completed_state)

        assert summary.average_score == 60
        assert summary.accuracy == 67
        assert summary.grade == "C"
        assert summary.final_difficulty == "hard"

    def test_breakdown(self, completed_state):
        summary = summarize(completed_state)

        assert [b.question_number for b in summary.breakdown] == [1, 2, 3]
        assert [b.is_correct for b in summary.breakdown] == [True, True, False]

    def test_bloom_distribution(self, completed_state):
        assert summarize(completed_state).bloom_distribution == {"Remember": 1, "Apply": 2}

    def test_to_dict(self, completed_state):
        data = summarize(completed_state).to_dict()

        assert data["grade"] == "C"
        assert data["breakdown"][2]["score"] == 40

    def test_no_evaluations_rejected(self):
        with pytest.raises(ValueError):
            summarize(AssessmentState())

    def test_bloom_distribution_skips_blank_levels(self):
        evaluations = [_evaluation(70, True, ""), _evaluation(70, True, "Analyze")]
        assert bloom_distribution(evaluations) == {"Analyze": 1}
