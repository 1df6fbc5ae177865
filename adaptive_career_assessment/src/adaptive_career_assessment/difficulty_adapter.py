"""
Difficulty and Bloom-Level Adaptation

Adjusts question difficulty from the evaluator's recommendation and picks the
target Bloom's Taxonomy level for each question from its position in the
assessment.
"""

from dataclasses import dataclass
from typing import Optional


BLOOM_LEVELS = ["Remember", "Understand", "Apply", "Analyze", "Evaluate", "Create"]

# Upper bound of the progress ratio (question_number / total) for each level.
# Anything above the last bound targets "Create".
BLOOM_THRESHOLDS = [
    (0.2, "Remember"),
    (0.4, "Understand"),
    (0.6, "Apply"),
    (0.8, "Analyze"),
    (0.9, "Evaluate"),
]


@dataclass
class DifficultyAdjustment:
    """Result of applying a difficulty recommendation."""
    should_adjust: bool
    direction: Optional[str]  # "increase", "decrease", or None
    reason: str
    new_difficulty: str


class DifficultyAdapter:
    """
    Moves difficulty one step at a time along a fixed ladder.

    Algorithm:
    - "harder" → next level up, unless already at the top
    - "easier" → next level down, unless already at the bottom
    - anything else → keep the current level
    """

    DIFFICULTY_LEVELS = ["easy", "medium", "hard", "expert"]

    def is_valid(self, difficulty: str) -> bool:
        return difficulty in self.DIFFICULTY_LEVELS

    def check_adjustment(self, current_difficulty: str, recommendation: str) -> DifficultyAdjustment:
        """
        Work out the next difficulty.

        Args:
            current_difficulty: Current difficulty level
            recommendation: "easier", "same" or "harder"

        Returns:
            DifficultyAdjustment; new_difficulty is always a valid level
        """
        if not self.is_valid(current_difficulty):
            raise ValueError(f"Unknown difficulty level: {current_difficulty!r}")

        if recommendation == "harder":
            new_difficulty = self._raise_difficulty(current_difficulty)
            if new_difficulty != current_difficulty:
                return DifficultyAdjustment(
                    should_adjust=True,
                    direction="increase",
                    reason="Evaluator recommended a harder question",
                    new_difficulty=new_difficulty
                )
            return DifficultyAdjustment(
                should_adjust=False,
                direction=None,
                reason=f"Already at the highest level ({current_difficulty})",
                new_difficulty=current_difficulty
            )

        if recommendation == "easier":
            new_difficulty = self._lower_difficulty(current_difficulty)
            if new_difficulty != current_difficulty:
                return DifficultyAdjustment(
                    should_adjust=True,
                    direction="decrease",
                    reason="Evaluator recommended an easier question",
                    new_difficulty=new_difficulty
                )
            return DifficultyAdjustment(
                should_adjust=False,
                direction=None,
                reason=f"Already at the lowest level ({current_difficulty})",
                new_difficulty=current_difficulty
            )

        return DifficultyAdjustment(
            should_adjust=False,
            direction=None,
            reason=f"Difficulty stable (recommendation={recommendation})",
            new_difficulty=current_difficulty
        )

    def next_difficulty(self, current_difficulty: str, recommendation: str) -> str:
        """Shortcut returning only the resulting level."""
        return self.check_adjustment(current_difficulty, recommendation).new_difficulty

    def _raise_difficulty(self, current: str) -> str:
        """Raise difficulty level."""
        current_idx = self.DIFFICULTY_LEVELS.index(current)
        if current_idx < len(self.DIFFICULTY_LEVELS) - 1:
            return self.DIFFICULTY_LEVELS[current_idx + 1]
        return current  # Already at max

    def _lower_difficulty(self, current: str) -> str:
        """Lower difficulty level."""
        current_idx = self.DIFFICULTY_LEVELS.index(current)
        if current_idx > 0:
            return self.DIFFICULTY_LEVELS[current_idx - 1]
        return current  # Already at min


def bloom_for_question(question_number: int, total_questions: int) -> str:
    """
    Target Bloom level for a question, from its position in the assessment.

    Args:
        question_number: 1-based ordinal of the question
        total_questions: Number of questions in the assessment

    Returns:
        One of BLOOM_LEVELS
    """
    if total_questions <= 0:
        raise ValueError("total_questions must be positive")
    progress = question_number / total_questions
    for upper_bound, level in BLOOM_THRESHOLDS:
        if progress <= upper_bound:
            return level
    return "Create"
