"""Intent classification: free text to a structured hospital request."""

from __future__ import annotations

import json
import re

from llama_index.core.llms import LLM
from llama_index.llms.openai import OpenAI  # type: ignore
from pydantic import ValidationError

from hospital_match.config import Settings
from hospital_match.core.logging import get_logger
from hospital_match.matching.locations import LocationConfig
from hospital_match.schemas.intent import Intent

logger = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.I)

INTENT_PROMPT = """You parse requests sent to a hospital network assistant.
Reply with a single JSON object and nothing else, using these fields:
- action: "search", "confirm" or "out_of_scope"
- city: optional string, the city mentioned (any common spelling)
- hospital_name: optional string, the hospital as the user named it, including
  any branch or locality words (e.g. "Manipal Sarjapur", "Apollo Cradle Jayanagar")
- limit: optional integer, how many hospitals the user wants

Use "search" for requests to list hospitals, "confirm" for questions about
whether a specific hospital is in the network, and "out_of_scope" for anything else.

Examples:
"Tell me 3 hospitals around Bangalore" -> {{"action": "search", "city": "Bangalore", "limit": 3}}
"Can you confirm if Manipal Sarjapur in Bangalore is in my network" -> {{"action": "confirm", "city": "Bangalore", "hospital_name": "Manipal Sarjapur"}}
"Is Apollo Cradle Jayanagar covered?" -> {{"action": "confirm", "hospital_name": "Apollo Cradle Jayanagar"}}
"Find Fortis Hospital Bannerghatta Road" -> {{"action": "confirm", "hospital_name": "Fortis Hospital Bannerghatta Road"}}
"What's the weather like?" -> {{"action": "out_of_scope"}}

Do not wrap the JSON in Markdown.

User text: \"\"\"{text}\"\"\"
"""


def strip_code_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", text).replace("```", "").strip()


class IntentClassifier:
    """Turns a user turn into an :class:`Intent`; unparsable output is out of scope."""

    def __init__(
        self,
        settings: Settings,
        locations: LocationConfig,
        llm: LLM | None = None,
    ):
        self.locations = locations
        self.llm = llm or OpenAI(
            api_key=settings.openai_api_key,
            model=settings.openai_llm_model,
            temperature=0.0,
            max_tokens=350,
            max_retries=settings.openai_max_retries,
        )

    async def classify(self, text: str) -> Intent:
        """Classify ``text``. Never raises; failures degrade to out_of_scope."""
        try:
            response = await self.llm.acomplete(INTENT_PROMPT.format(text=text))
        except Exception as exc:
            logger.error("Intent model call failed: %s", exc, exc_info=True)
            return Intent.out_of_scope()

        return self.parse(response.text or "")

    def parse(self, raw: str) -> Intent:
        """Parse model output into an Intent, normalizing city aliases."""
        cleaned = strip_code_fences(raw)
        try:
            data = json.loads(cleaned)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            intent = Intent.model_validate(data)
        except (ValueError, ValidationError) as exc:
            logger.warning("Failed to parse intent from model output %r: %s", cleaned, exc)
            return Intent.out_of_scope()

        if intent.city:
            intent = intent.model_copy(update={"city": self.locations.canonical_city(intent.city)})

        logger.info(
            "Intent: action=%s city=%s hospital_name=%s limit=%s",
            intent.action,
            intent.city,
            intent.hospital_name,
            intent.limit,
        )
        return intent
