from datetime import datetime, timezone
import logging
import os

from openai import AsyncOpenAI

from models import CoachingStatus, CoachingSummary
from prompts import COACH_SYSTEM_PROMPT, COACH_USER_PROMPT, NO_DATA_PROMPT

logger = logging.getLogger(__name__)

OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY_HABIT_COACH")
COACH_MODEL = os.environ.get("HABIT_COACH_MODEL", "gpt-4o")
COACH_MAX_RETRIES = int(os.environ.get("HABIT_COACH_MAX_RETRIES", "5"))
COACH_TIMEOUT = float(os.environ.get("HABIT_COACH_TIMEOUT", "30"))


def get_client() -> AsyncOpenAI:
    # Retries with backoff are handled by the client itself
    return AsyncOpenAI(api_key=OPENAI_API_KEY, max_retries=COACH_MAX_RETRIES, timeout=COACH_TIMEOUT)


async def get_coaching_summary(prompt_data: str) -> CoachingSummary:
    """
    Request a personalized coaching summary for the rendered habit data.

    Failures never propagate: they come back as an "unavailable" summary so
    callers can keep showing the insights they already have.
    """
    if prompt_data == NO_DATA_PROMPT:
        return CoachingSummary(status=CoachingStatus.NO_DATA, error=NO_DATA_PROMPT)

    try:
        client = get_client()
        completion = await client.chat.completions.create(
            model=COACH_MODEL,
            messages=[
                {"role": "system", "content": COACH_SYSTEM_PROMPT},
                {"role": "user", "content": COACH_USER_PROMPT.format(prompt_data=prompt_data)}
            ],
            #temperature=0.7,
        )

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            logger.error("Coaching summary response had no text content")
            return CoachingSummary(status=CoachingStatus.UNAVAILABLE, error="Failed to parse API response structure.")

        return CoachingSummary(
            status=CoachingStatus.OK,
            summary=text.strip(),
            generatedAt=datetime.now(timezone.utc).isoformat(),
        )
    except Exception as e:
        logger.error(f"Error generating coaching summary: {e}")
        return CoachingSummary(status=CoachingStatus.UNAVAILABLE, error=str(e))
