# app/gameplay/grader.py
import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

import requests
from django.conf import settings

from app.common.exceptions import DomainError
from app.prompts.catalog import describe_position

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

GRADING_PROMPT = """You are grading an Ideological Turing Test submission. A player has attempted to write from a specific political perspective.

**Scenario:** {scenario}

**Position they're claiming to embody:** {position}

**Their response:**
{user_response}

---

Determine whether they truly understand this ideology or are only mimicking surface-level language. Focus on the underlying values and priorities, the reasoning patterns and trade-offs, and the real concerns and motivations of people holding this view (not stereotypes).

**Scoring criteria (total 100 points):**
1. **Understanding (65 points)** - core values, reasoning, why someone holds this view.
2. **Authenticity (20 points)** - natural and genuine, not a caricature.
3. **Execution (15 points)** - right tone and register for the medium.

Generally 70+ means undetected, below 70 means detected (use your judgment).
Address the user directly in second person. Comment only on ideological understanding, never on etiquette or social dynamics.

Return JSON only:
{{
  "grading": {{
    "detected": boolean,
    "score": number,
    "rubricScores": {{"understanding": number, "authenticity": number, "execution": number}},
    "feedback": "One playful, direct paragraph (3-5 sentences)."
  }},
  "aiComparison": {{
    "aiResponse": "Your own response to the same scenario from the same position, matching the requested length and format."
  }}
}}"""


class GradingFailed(DomainError):
    code = "GRADING_FAILED"
    status_code = 502
    default_message = "grading service unavailable"


@dataclass
class GradingResult:
    detected: bool
    score: int
    feedback: str
    understanding: Optional[int] = None
    authenticity: Optional[int] = None
    execution: Optional[int] = None
    ai_response: str = ""

    def to_dict(self):
        return {
            "detected": self.detected,
            "score": self.score,
            "feedback": self.feedback,
            "rubricScores": {
                "understanding": self.understanding,
                "authenticity": self.authenticity,
                "execution": self.execution,
            },
        }


def build_grading_prompt(scenario: str, position: str, user_response: str) -> str:
    return GRADING_PROMPT.format(
        scenario=scenario,
        position=describe_position(position),
        user_response=user_response,
    )


def _extract_json(text: str) -> dict:
    # ```json ... ``` 코드블록으로 감싸서 줄 때가 있음
    fenced = re.search(r"```(?:json)?\s*\n(.*?)\n```", text, re.DOTALL)
    candidate = fenced.group(1) if fenced else None
    if candidate is None:
        braces = re.search(r"\{.*\}", text, re.DOTALL)
        candidate = braces.group(0) if braces else None
    if candidate is None:
        raise GradingFailed("Could not parse response from grader")
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise GradingFailed(f"Grader returned invalid JSON: {e}")


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(round(float(value)))


def parse_grader_output(text: str) -> GradingResult:
    data = _extract_json(text)
    # 구버전 포맷(최상위에 바로 grading 필드)도 허용
    grading = data.get("grading") if isinstance(data.get("grading"), dict) else data
    comparison = data.get("aiComparison") or {}
    rubric = grading.get("rubricScores") or {}

    try:
        score = int(round(float(grading["score"])))
        detected = bool(grading["detected"])
    except (KeyError, TypeError, ValueError):
        raise GradingFailed("Grader response missing score/detected")

    return GradingResult(
        detected=detected,
        score=max(0, min(100, score)),
        feedback=str(grading.get("feedback") or ""),
        understanding=_optional_int(rubric.get("understanding")),
        authenticity=_optional_int(rubric.get("authenticity")),
        execution=_optional_int(rubric.get("execution")),
        ai_response=str(comparison.get("aiResponse") or ""),
    )


def grade_response(scenario: str, position: str, user_response: str) -> GradingResult:
    if not settings.ANTHROPIC_API_KEY:
        raise GradingFailed("ANTHROPIC_API_KEY not set")

    try:
        resp = requests.post(
            settings.ANTHROPIC_API_URL,
            headers={
                "x-api-key": settings.ANTHROPIC_API_KEY,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            json={
                "model": settings.GRADER_MODEL,
                "max_tokens": 2000,
                "temperature": 0.7,
                "messages": [
                    {
                        "role": "user",
                        "content": build_grading_prompt(scenario, position, user_response),
                    }
                ],
            },
            timeout=settings.GRADER_TIMEOUT_SEC,
        )
    except requests.RequestException as e:
        logger.error("grader request failed: %s", e)
        raise GradingFailed(f"grader request failed: {e}")

    if resp.status_code != 200:
        logger.error("grader returned %s: %s", resp.status_code, resp.text[:500])
        raise GradingFailed(f"grader returned HTTP {resp.status_code}")

    content = resp.json().get("content") or []
    text = "".join(block.get("text", "") for block in content if block.get("type") == "text")
    return parse_grader_output(text)
