"""
AI Collaborator

Question generation, answer evaluation and skill profiling over an
OpenAI-compatible chat completions API. Each call is bounded by an explicit
timeout and every failure surfaces as a CollaboratorError whose message is
safe to show to the user.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

from openai import AsyncOpenAI, APIConnectionError, APIStatusError, RateLimitError

from adaptive_career_assessment.assessment_state import Evaluation, Question, SkillProfile
from adaptive_career_assessment.config import get_config
from adaptive_career_assessment.exceptions import CollaboratorError, ResponseParseError
from adaptive_career_assessment.json_extraction import extract_json, unwrap_payload

logger = logging.getLogger(__name__)


QUESTION_SYSTEM_PROMPT = """You generate assessment questions for a computerized adaptive test, classified with Bloom's Taxonomy.

Each question must:
1. Match the requested difficulty level exactly
2. Target the requested Bloom's Taxonomy level
3. Differ from every previously asked question
4. Come with clear evaluation criteria

Bloom's Taxonomy levels, lowest to highest:
- Remember: recall facts and basic concepts
- Understand: explain ideas or concepts
- Apply: use information in new situations
- Analyze: draw connections among ideas
- Evaluate: justify a stand or decision
- Create: produce new or original work

Return ONLY valid JSON:
{
  "question_text": "The full question text",
  "question_type": "coding|theory|system_design|debugging",
  "difficulty": "easy|medium|hard|expert",
  "bloom_level": "Remember|Understand|Apply|Analyze|Evaluate|Create",
  "time_estimate_minutes": number,
  "evaluation_rubric": {
    "criteria": [{"name": "string", "weight": number, "description": "string"}],
    "max_score": 100
  },
  "hints": ["string"],
  "expected_concepts": ["string"]
}"""

EVALUATION_SYSTEM_PROMPT = """You evaluate answers to technical assessment questions.

For CODING questions judge correctness and logic, time and space complexity,
code quality, edge-case handling, and give partial credit where earned.
For THEORY questions judge accuracy, completeness, terminology and depth.
For SYSTEM DESIGN questions judge scalability, component choice, trade-offs
and real-world applicability.
For DEBUGGING questions judge whether the root cause is found and the fix is sound.

Score from 0 to 100. Be fair but rigorous.

Return ONLY valid JSON:
{
  "score": number (0-100),
  "is_correct": boolean (score >= 60),
  "feedback": "Detailed feedback",
  "strengths": ["string"],
  "weaknesses": ["string"],
  "suggestions": ["string"],
  "complexity_analysis": {"time": "string", "space": "string"} | null,
  "bloom_achievement": "Remember|Understand|Apply|Analyze|Evaluate|Create",
  "confidence": number (0-100),
  "next_difficulty_recommendation": "easier|same|harder"
}"""

PROFILE_SYSTEM_PROMPT = """You are a career profiler and skill extraction engine. Analyze the user's background and return structured JSON.

1. Extract every skill mentioned: technical skills, soft skills, tools, frameworks, methodologies.
2. Infer a proficiency level (0-100) for each skill from context such as years of experience and project complexity.
3. Describe the career trajectory (e.g. "IC track", "Management track", "Transitioning to ML").
4. Classify into one primary career cluster (e.g. "Full-Stack Engineer", "Data Scientist", "DevOps Engineer").
5. Build a skill vector of top skill categories with weights summing to 1.0.
6. Infer hidden skills implied but not stated, with the reason.
7. Rate your overall confidence (0-100).

Return ONLY valid JSON:
{
  "extracted_skills": [{"name": "string", "category": "string", "confidence": number}],
  "skill_levels": {"skill_name": number},
  "career_trajectory": "string",
  "career_cluster": "string",
  "skill_vector": [{"category": "string", "weight": number}],
  "hidden_skills": [{"name": "string", "reason": "string"}],
  "ai_confidence": number,
  "summary": "2-3 sentence profile summary"
}"""

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
CREDITS_EXHAUSTED_MESSAGE = "AI credits exhausted. Please add credits in Settings."


def build_question_prompt(
    topic: str,
    difficulty: str,
    bloom_level: str,
    previous_questions: Sequence[str],
    question_type: Optional[str] = None
) -> str:
    prompt = (
        f"Generate a {difficulty} difficulty {question_type or 'coding'} question about: {topic}\n\n"
        f"Target Bloom's Level: {bloom_level or 'Apply'}\n\n"
    )
    if previous_questions:
        numbered = "\n".join(f"{i}. {q}" for i, q in enumerate(previous_questions, 1))
        prompt += f"Previously asked questions (DO NOT repeat):\n{numbered}"
    else:
        prompt += "This is the first question."
    return prompt


def build_evaluation_prompt(
    question: str,
    answer: str,
    question_type: str,
    difficulty: str,
    bloom_level: str
) -> str:
    return (
        "Evaluate this answer:\n\n"
        f"**Question** ({question_type}, {difficulty}, Bloom: {bloom_level}):\n{question}\n\n"
        f"**User's Answer**:\n{answer}"
    )


def build_profile_prompt(
    name: Optional[str],
    experience: Optional[str],
    skills: Optional[str],
    goals: Optional[str]
) -> str:
    return (
        "Analyze this professional profile:\n\n"
        f"**Name**: {name or 'Not provided'}\n\n"
        f"**Experience & Background**:\n{experience or 'Not provided'}\n\n"
        f"**Skills & Technologies**:\n{skills or 'Not provided'}\n\n"
        f"**Career Goals**:\n{goals or 'Not provided'}"
    )


class AssessmentAI:
    """
    Generation/evaluation collaborator backed by an LLM.

    The controller only relies on generate_question and evaluate_answer, so
    any object with those two coroutines can stand in for this class.
    """

    def __init__(
        self,
        llm_client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        temperature: Optional[float] = None
    ):
        """
        Initialize the AI collaborator.

        Args:
            llm_client: Preconfigured AsyncOpenAI client (built from env if None)
            model: Chat model name (OPENAI_MODEL if None)
            timeout_seconds: Per-call timeout (LLM_TIMEOUT_SECONDS if None)
            temperature: Sampling temperature (LLM_TEMPERATURE if None)
        """
        config = get_config()
        if llm_client is None:
            if not config.OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            llm_client = AsyncOpenAI(api_key=config.OPENAI_API_KEY, base_url=config.OPENAI_BASE_URL)
        self.llm_client = llm_client
        self.model = model or config.OPENAI_MODEL
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.LLM_TIMEOUT_SECONDS
        self.temperature = temperature if temperature is not None else config.LLM_TEMPERATURE

    async def _complete_json(self, system_prompt: str, user_prompt: str, task: str) -> Dict[str, Any]:
        """Run one chat completion and return its parsed JSON object."""
        try:
            response = await asyncio.wait_for(
                self.llm_client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=self.temperature,
                ),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error(f"❌ [AssessmentAI] {task} timed out after {self.timeout_seconds:.0f}s")
            raise CollaboratorError(
                f"AI {task} timed out. Please try again.",
                status_code=504,
                original_exception=e
            )
        except RateLimitError as e:
            logger.warning(f"⚠️ [AssessmentAI] {task} rate limited")
            raise CollaboratorError(RATE_LIMIT_MESSAGE, status_code=429, original_exception=e)
        except APIStatusError as e:
            if e.status_code == 402:
                raise CollaboratorError(CREDITS_EXHAUSTED_MESSAGE, status_code=402, original_exception=e)
            logger.error(f"❌ [AssessmentAI] AI gateway error during {task}: {e.status_code} {e.message}")
            raise CollaboratorError("AI gateway error", original_exception=e)
        except APIConnectionError as e:
            logger.error(f"❌ [AssessmentAI] Could not reach AI gateway during {task}: {e}")
            raise CollaboratorError("Could not reach the AI service. Please try again.", original_exception=e)

        content = response.choices[0].message.content if response.choices else ""
        try:
            return unwrap_payload(extract_json(content or ""))
        except ResponseParseError:
            logger.error(f"❌ [AssessmentAI] Failed to parse {task} response: {(content or '')[:200]}")
            raise

    async def generate_question(
        self,
        topic: str,
        difficulty: str,
        bloom_level: str,
        previous_questions: Sequence[str] = (),
        question_type: Optional[str] = None
    ) -> Question:
        """
        Generate one question.

        Args:
            topic: Free-text assessment topic
            difficulty: Target difficulty level
            bloom_level: Target Bloom level (a hint, not enforced on the result)
            previous_questions: Texts already asked in this session
            question_type: Preferred question type (defaults to coding)

        Returns:
            The generated Question

        Raises:
            CollaboratorError: On any transport, gateway or parse failure
        """
        user_prompt = build_question_prompt(topic, difficulty, bloom_level, previous_questions, question_type)
        payload = await self._complete_json(QUESTION_SYSTEM_PROMPT, user_prompt, "question generation")
        try:
            question = Question.from_dict(payload)
        except ValueError as e:
            raise ResponseParseError("Failed to parse AI question", original_exception=e)
        logger.info(f"🧩 [AssessmentAI] Generated {question.question_type} question ({question.difficulty}, {question.bloom_level})")
        return question

    async def evaluate_answer(
        self,
        question: str,
        answer: str,
        question_type: str,
        difficulty: str,
        bloom_level: str
    ) -> Evaluation:
        """
        Score an answer.

        Raises:
            CollaboratorError: On any transport, gateway or parse failure
        """
        user_prompt = build_evaluation_prompt(question, answer, question_type, difficulty, bloom_level)
        payload = await self._complete_json(EVALUATION_SYSTEM_PROMPT, user_prompt, "answer evaluation")
        try:
            evaluation = Evaluation.from_dict(payload)
        except ValueError as e:
            raise ResponseParseError("Failed to parse AI evaluation", original_exception=e)
        logger.info(
            f"📝 [AssessmentAI] Evaluated answer: score={evaluation.score} "
            f"recommendation={evaluation.next_difficulty_recommendation}"
        )
        return evaluation

    async def analyze_profile(
        self,
        name: Optional[str] = None,
        experience: Optional[str] = None,
        skills: Optional[str] = None,
        goals: Optional[str] = None
    ) -> SkillProfile:
        """
        Extract a skill profile from free-text background information.

        Raises:
            CollaboratorError: On any transport, gateway or parse failure
        """
        user_prompt = build_profile_prompt(name, experience, skills, goals)
        payload = await self._complete_json(PROFILE_SYSTEM_PROMPT, user_prompt, "profile analysis")
        try:
            profile = SkillProfile.from_dict(payload)
        except ValueError as e:
            raise ResponseParseError("Failed to parse AI analysis", original_exception=e)
        logger.info(f"🧭 [AssessmentAI] Profile analysed: cluster={profile.career_cluster or 'unknown'}")
        return profile
