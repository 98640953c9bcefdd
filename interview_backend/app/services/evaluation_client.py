from __future__ import annotations

import json
import logging
import math
import re
import time
from typing import Any, Callable, List, Literal, Mapping, Optional, Sequence, cast

from openai import OpenAI
from openai.types.chat import ChatCompletionMessageParam

from interview_backend.app.config import settings
from interview_backend.app.schemas.evaluation import EvaluationRequest, EvaluationResponse
from interview_backend.app.schemas.interview import AnsweredQuestion
from interview_backend.app.services.errors import EvaluationError

logger = logging.getLogger(__name__)

Scorer = Callable[[str], str]

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_OBJ_COMMA_RE = re.compile(r",\s*}")
_TRAILING_ARR_COMMA_RE = re.compile(r",\s*]")
_WHITESPACE_RE = re.compile(r"\s+")


def difficulty_for_index(index: int) -> str:
    if index < 2:
        return "Easy"
    if index < 4:
        return "Medium"
    return "Hard"


def build_prompt(request: EvaluationRequest) -> str:
    answers_text = "\n".join(
        f'\nQ{i + 1}: {a.question}\nAnswer: "{a.answer}"\nTime Spent: {a.time_spent}s\n'
        f"Difficulty: {difficulty_for_index(i)}\n---"
        for i, a in enumerate(request.answers)
    )
    score_lines = ",\n".join(
        f'    {{"questionIndex": {i}, "score": <number>, "feedback": "<feedback>"}}'
        for i in range(len(request.answers))
    )
    return (
        "You are a STRICT technical interviewer. Score each answer 0-100 based on technical accuracy.\n\n"
        f"Candidate: {request.candidate_name}\n"
        "Interview Answers:\n"
        f"{answers_text}\n\n"
        "CRITICAL: Respond with ONLY valid JSON. No extra text before or after.\n\n"
        "{\n"
        '  "overallScore": <number>,\n'
        '  "individualScores": [\n'
        f"{score_lines}\n"
        "  ],\n"
        '  "strengths": ["strength1", "strength2"],\n'
        '  "improvements": ["improvement1", "improvement2"],\n'
        '  "recommendation": "Hire",\n'
        '  "summary": "Assessment summary"\n'
        "}"
    )


def sanitize_response(raw: str) -> str:
    """
    Reduce a raw model reply to something ``json.loads`` can read.

    Strips code fences, keeps the span from the first ``{`` to the last ``}``,
    drops trailing commas and collapses newlines and whitespace runs.
    """
    text = _FENCE_RE.sub("", raw or "").strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ValueError("No JSON object found")

    payload = text[start:end + 1]
    payload = _TRAILING_OBJ_COMMA_RE.sub("}", payload)
    payload = _TRAILING_ARR_COMMA_RE.sub("]", payload)
    payload = payload.replace("\n", " ")
    return _WHITESPACE_RE.sub(" ", payload)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number in AI response: {name}")


def parse_response(raw: str) -> Any:
    try:
        return json.loads(sanitize_response(raw), parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse AI response: {exc}") from exc


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_evaluation(payload: Any, expected_questions: int) -> bool:
    if not isinstance(payload, Mapping):
        return False
    if not _is_number(payload.get("overallScore")):
        return False

    scores = payload.get("individualScores")
    if not isinstance(scores, list) or len(scores) != expected_questions:
        return False
    for item in scores:
        if not isinstance(item, Mapping):
            return False
        if not _is_number(item.get("questionIndex")):
            return False
        if not _is_number(item.get("score")):
            return False
        if not isinstance(item.get("feedback"), str):
            return False
        if item["score"] < 0 or item["score"] > 100:
            return False

    if not isinstance(payload.get("strengths"), list):
        return False
    if not isinstance(payload.get("improvements"), list):
        return False
    if not isinstance(payload.get("recommendation"), str):
        return False
    if not isinstance(payload.get("summary"), str):
        return False
    return True


def to_response(payload: Mapping[str, Any]) -> EvaluationResponse:
    data = dict(payload)
    data["strengths"] = [str(x) for x in payload.get("strengths", [])]
    data["improvements"] = [str(x) for x in payload.get("improvements", [])]
    return EvaluationResponse.model_validate(data)


def _chat_message(role: Literal["system", "user"], content: str) -> ChatCompletionMessageParam:
    return cast(ChatCompletionMessageParam, {"role": role, "content": content})


class OpenAIScorer:
    """Default scorer: one chat completion per prompt."""

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None) -> None:
        self.model = model or settings.OPENAI_MODEL
        self._api_key = api_key or settings.OPENAI_API_KEY
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key) if self._api_key else OpenAI()
        return self._client

    def __call__(self, prompt: str) -> str:
        response = self._get_client().chat.completions.create(
            model=self.model,
            messages=[_chat_message("user", prompt)],
            temperature=0.2,
        )
        return (response.choices[0].message.content or "").strip()


class EvaluationClient:
    """
    Scores a finished interview.

    Makes up to ``max_attempts`` scorer calls with a fixed delay between them.
    Each reply is sanitized, parsed and structurally validated; the first valid
    one wins. If none is valid an ``EvaluationError`` is raised.
    """

    def __init__(
        self,
        scorer: Optional[Scorer] = None,
        *,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.scorer: Scorer = scorer if scorer is not None else OpenAIScorer()
        self.max_attempts = max_attempts if max_attempts is not None else settings.EVALUATION_MAX_ATTEMPTS
        self.retry_delay = retry_delay if retry_delay is not None else settings.EVALUATION_RETRY_DELAY_SECONDS
        self._sleep = sleep

    def evaluate(
        self,
        answers: Sequence[AnsweredQuestion],
        candidate_name: str,
        resume_content: str = "",
    ) -> EvaluationResponse:
        request = EvaluationRequest(
            answers=list(answers),
            candidate_name=candidate_name,
            resume_content=resume_content or "",
        )
        prompt = build_prompt(request)
        errors: List[str] = []

        for attempt in range(1, self.max_attempts + 1):
            try:
                raw = self.scorer(prompt)
                payload = parse_response(raw)
                if not validate_evaluation(payload, len(request.answers)):
                    raise ValueError("Invalid evaluation structure")
                response = to_response(payload)
                logger.info(
                    f"Evaluation for {candidate_name} succeeded on attempt {attempt}: "
                    f"{response.overall_score} ({response.recommendation})"
                )
                return response
            # scorer is an external collaborator; any failure is a failed attempt
            except Exception as exc:
                errors.append(str(exc))
                logger.warning(f"Evaluation attempt {attempt} failed: {exc}")
                if attempt < self.max_attempts:
                    self._sleep(self.retry_delay)

        last = errors[-1] if errors else "no attempts made"
        raise EvaluationError(
            f"AI evaluation failed after {self.max_attempts} attempts: {last}",
            attempts=self.max_attempts,
            details={"errors": errors},
        )
