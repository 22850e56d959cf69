"""
Scoring oracle - rates free-text answers 0-100 with a language model.
"""

import re
from typing import Optional, Protocol

from src.config import Settings, get_settings
from src.kernel.errors import UpstreamFailure
from src.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_RUBRIC = "Rate this answer on accuracy and completeness (0-100)"

_SYSTEM_PROMPT = (
    "You are a strict but fair grader for an online course. Compare the learner's "
    "answer with the reference answer using the rubric. Respond with a single "
    "integer from 0 to 100 and nothing else."
)

_SCORE_RE = re.compile(r"^\s*(\d{1,3})\s*$")


class ScoringOracle(Protocol):
    """Anything that can rate a free-text answer."""

    async def score(self, question: str, answer: str, reference: str, rubric: str) -> int:
        ...


def parse_score(raw: str) -> int:
    """The model output must be a bare integer from 0 to 100."""
    match = _SCORE_RE.match(raw or "")
    if not match:
        raise ValueError(f"No score in oracle response: {raw!r}")
    value = int(match.group(1))
    if not 0 <= value <= 100:
        raise ValueError(f"Oracle score out of range: {value}")
    return value


class OpenAIScoringOracle:
    """Oracle backed by the OpenAI chat completions API."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def score(self, question: str, answer: str, reference: str, rubric: str) -> int:
        key = (self.settings.openai_api_key or "").strip()
        is_placeholder = not key or key.startswith("sk-your-")
        if is_placeholder:
            raise UpstreamFailure("No OpenAI API key configured", operation="score_text_answer")

        from openai import AsyncOpenAI
        client = AsyncOpenAI(api_key=key, timeout=self.settings.scoring_timeout_seconds)

        user_prompt = (
            f"QUESTION:\n{question}\n\n"
            f"REFERENCE ANSWER:\n{reference}\n\n"
            f"LEARNER ANSWER:\n{answer}\n\n"
            f"RUBRIC:\n{rubric or DEFAULT_RUBRIC}"
        )

        try:
            response = await client.chat.completions.create(
                model=self.settings.scoring_model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=10,
                temperature=0.0,
            )
            raw_text = (response.choices[0].message.content or "").strip()
            return parse_score(raw_text)
        except Exception as exc:
            raise UpstreamFailure(
                f"Answer scoring failed: {exc}",
                operation="score_text_answer",
            ) from exc
