"""
Assessment Session Controller

Drives one assessment attempt through
idle → setup → generating → answering → evaluating → reviewed → completed,
calling the AI collaborator for questions and evaluations and the store for
persistence.

State is an immutable AssessmentState replaced wholesale on every
transition. Collaborator failures never escape: they land in `state.error`
and the session returns to the nearest point the user can retry from.
"""

import logging
import uuid
from dataclasses import replace
from typing import Callable, List, Optional

from adaptive_career_assessment.assessment_state import AssessmentState, AssessmentStatus
from adaptive_career_assessment.assessment_summary import bloom_distribution
from adaptive_career_assessment.config import Config
from adaptive_career_assessment.difficulty_adapter import DifficultyAdapter, bloom_for_question
from adaptive_career_assessment.exceptions import (
    AssessmentValidationError,
    CollaboratorError,
    InvalidTransitionError,
    StoreError,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[AssessmentState], None]


class AssessmentController:
    """
    State machine for a single assessment session.

    One caller at a time: the presentation layer is expected not to trigger
    an action while the state is generating/evaluating, and the guards below
    reject such calls.
    """

    def __init__(self, ai, store, difficulty_adapter: Optional[DifficultyAdapter] = None):
        """
        Initialize the controller.

        Args:
            ai: Collaborator exposing async generate_question / evaluate_answer
            store: AssessmentStore (or compatible) for persistence
            difficulty_adapter: Difficulty ladder (default four-level ladder)
        """
        self.ai = ai
        self.store = store
        self.difficulty_adapter = difficulty_adapter or DifficultyAdapter()
        self._state = AssessmentState()
        self._listeners: List[StateListener] = []
        # Bumped by reset(); a transition whose await straddles a reset is dropped
        self._epoch = 0

    @property
    def state(self) -> AssessmentState:
        return self._state

    def add_listener(self, callback: StateListener):
        """Register a callback invoked with every new state."""
        self._listeners.append(callback)

    def _set_state(self, new_state: AssessmentState):
        old_status = self._state.status
        self._state = new_state
        if old_status != new_state.status:
            logger.info(
                f"🔄 [AssessmentController] {old_status.value} → {new_state.status.value}"
                + (f" (error: {new_state.error})" if new_state.error else "")
            )
        for callback in self._listeners:
            callback(new_state)

    def _update(self, **changes):
        self._set_state(replace(self._state, **changes))

    def _validate_start(self, topic: str, total_questions: int, difficulty: str):
        if not topic or not topic.strip():
            raise AssessmentValidationError("Topic is required")
        if not Config.MIN_QUESTIONS <= total_questions <= Config.MAX_QUESTIONS:
            raise AssessmentValidationError(
                f"Question count must be between {Config.MIN_QUESTIONS} and {Config.MAX_QUESTIONS}"
            )
        if not self.difficulty_adapter.is_valid(difficulty):
            raise AssessmentValidationError(
                f"Difficulty must be one of: {', '.join(self.difficulty_adapter.DIFFICULTY_LEVELS)}"
            )

    async def start(self, topic: str, total_questions: int, difficulty: str) -> AssessmentState:
        """
        Create the session record and generate question #1.

        Args:
            topic: Free-text topic
            total_questions: Number of questions (3-10)
            difficulty: Starting difficulty

        Returns:
            The resulting state (answering on success, setup with error otherwise)

        Raises:
            InvalidTransitionError: If not in idle/setup
            AssessmentValidationError: If the parameters are out of bounds
        """
        if self._state.status not in (AssessmentStatus.IDLE, AssessmentStatus.SETUP):
            raise InvalidTransitionError(f"Cannot start an assessment while {self._state.status.value}")
        self._validate_start(topic, total_questions, difficulty)
        topic = topic.strip()

        epoch = self._epoch
        session_id = str(uuid.uuid4())
        try:
            assessment_id = await self.store.create_session(session_id, topic, difficulty, total_questions)
        except StoreError as e:
            if epoch == self._epoch:
                self._update(status=AssessmentStatus.SETUP, error=e.message)
            return self._state
        if epoch != self._epoch:
            return self._state

        logger.info(f"🎯 [AssessmentController] Started '{topic}' ({total_questions} questions, {difficulty})")
        self._set_state(AssessmentState(
            session_id=session_id,
            assessment_id=assessment_id,
            topic=topic,
            total_questions=total_questions,
            current_difficulty=difficulty,
            status=AssessmentStatus.SETUP,
        ))

        await self._generate_question(1)
        return self._state

    async def _generate_question(self, question_number: int):
        """Request, persist and display question `question_number`."""
        epoch = self._epoch
        self._update(status=AssessmentStatus.GENERATING)
        state = self._state
        bloom_level = bloom_for_question(question_number, state.total_questions)

        try:
            question = await self.ai.generate_question(
                topic=state.topic,
                difficulty=state.current_difficulty,
                bloom_level=bloom_level,
                previous_questions=list(state.previous_questions),
            )
        except CollaboratorError as e:
            if epoch != self._epoch:
                return
            retry_status = AssessmentStatus.SETUP if question_number == 1 else AssessmentStatus.REVIEWED
            self._update(status=retry_status, error=e.message or "Failed to generate question")
            return
        if epoch != self._epoch:
            logger.info("🔄 [AssessmentController] Discarding question generated before reset")
            return

        await self.store.insert_question(state.assessment_id, question_number, question)
        if epoch != self._epoch:
            return

        self._update(
            current_question=question,
            current_question_number=question_number,
            status=AssessmentStatus.ANSWERING,
            error="",
        )

    async def submit(self, answer: str, time_spent_seconds: Optional[int] = None) -> AssessmentState:
        """
        Evaluate the answer to the current question.

        Args:
            answer: The user's answer text
            time_spent_seconds: Time the user spent on the question

        Returns:
            The resulting state (reviewed/completed, or answering with error)

        Raises:
            InvalidTransitionError: If there is no question awaiting an answer
            AssessmentValidationError: If the answer is blank
        """
        state = self._state
        if state.status != AssessmentStatus.ANSWERING or state.current_question is None or not state.assessment_id:
            raise InvalidTransitionError(f"Cannot submit an answer while {state.status.value}")
        if not answer or not answer.strip():
            raise AssessmentValidationError("Answer is required")

        epoch = self._epoch
        question = state.current_question
        self._update(status=AssessmentStatus.EVALUATING)

        try:
            evaluation = await self.ai.evaluate_answer(
                question=question.question_text,
                answer=answer,
                question_type=question.question_type,
                difficulty=question.difficulty,
                bloom_level=question.bloom_level,
            )
        except CollaboratorError as e:
            if epoch == self._epoch:
                self._update(status=AssessmentStatus.ANSWERING, error=e.message or "Failed to evaluate answer")
            return self._state
        if epoch != self._epoch:
            logger.info("🔄 [AssessmentController] Discarding evaluation received after reset")
            return self._state

        questions_answered = state.questions_answered + 1
        correct_answers = state.correct_answers + (1 if evaluation.is_correct else 0)
        evaluations = state.evaluations + (evaluation,)
        adjustment = self.difficulty_adapter.check_adjustment(
            state.current_difficulty,
            evaluation.next_difficulty_recommendation
        )
        if adjustment.should_adjust:
            logger.info(
                f"📊 [AssessmentController] Difficulty adjusted: "
                f"{state.current_difficulty} → {adjustment.new_difficulty} ({adjustment.reason})"
            )
        is_completed = questions_answered >= state.total_questions

        # Store writes may yield; a reset during any of them wins
        await self.store.record_answer(
            state.assessment_id,
            state.current_question_number,
            answer,
            evaluation,
            time_spent_seconds,
        )
        if epoch != self._epoch:
            return self._state

        await self.store.update_progress(
            state.assessment_id,
            questions_answered,
            correct_answers,
            adjustment.new_difficulty,
        )
        if epoch != self._epoch:
            return self._state

        if is_completed:
            await self.store.mark_completed(state.assessment_id, bloom_distribution(evaluations))
            if epoch != self._epoch:
                return self._state

        self._set_state(replace(
            state,
            questions_answered=questions_answered,
            correct_answers=correct_answers,
            previous_questions=state.previous_questions + (question.question_text,),
            current_difficulty=adjustment.new_difficulty,
            evaluations=evaluations,
            status=AssessmentStatus.COMPLETED if is_completed else AssessmentStatus.REVIEWED,
            error="",
        ))
        return self._state

    async def next_question(self) -> AssessmentState:
        """
        Move on to the next question at the updated difficulty.

        Raises:
            InvalidTransitionError: Unless the last answer has been reviewed
        """
        state = self._state
        if state.status != AssessmentStatus.REVIEWED or not state.assessment_id:
            raise InvalidTransitionError(f"Cannot move to the next question while {state.status.value}")
        await self._generate_question(state.current_question_number + 1)
        return self._state

    def reset(self) -> AssessmentState:
        """Discard everything and return to the initial idle state."""
        self._epoch += 1
        self._set_state(AssessmentState())
        return self._state
