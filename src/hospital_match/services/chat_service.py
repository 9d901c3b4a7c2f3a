"""Conversation turn handling: intent, action and confidence-banded replies."""

from __future__ import annotations

from hospital_match.config import Settings
from hospital_match.core.constants import DEFAULT_SEARCH_LIMIT
from hospital_match.core.exceptions import UpstreamUnavailableError
from hospital_match.core.logging import get_logger
from hospital_match.core.models import ConfidenceBand, HospitalRecord, ScoredMatch
from hospital_match.schemas.chat import ChatResponse
from hospital_match.schemas.intent import Intent
from hospital_match.schemas.search import HospitalHit, MatchItem
from hospital_match.services.confirmation_service import ConfirmationService
from hospital_match.services.handoff_service import HumanHandoffNotifier
from hospital_match.services.intent_service import IntentClassifier
from hospital_match.services.search_service import HospitalSearchService
from hospital_match.services.session_store import SessionStore
from hospital_match.services.speech_service import SpeechService

logger = get_logger(__name__)

OUT_OF_SCOPE_REPLY = "I'm sorry, I can't help with that. Forwarding to a human agent."
ASK_HOSPITAL_REPLY = "Which hospital would you like me to check?"
MAX_SUGGESTIONS = 2


def _describe(record: HospitalRecord) -> str:
    place = ", ".join(part for part in (record.address, record.city) if part)
    return f"{record.name} at {place}" if place else record.name


def confirmation_reply(hospital_name: str, city: str | None, matches: list[ScoredMatch]) -> str:
    """Phrase the confirmation outcome according to the best match's band."""
    in_city = f" in {city}" if city else ""
    if not matches:
        return (
            f'I could not find "{hospital_name}"{in_city} in the network. '
            "Could you check the spelling or try a different name?"
        )

    best = matches[0]
    if best.band is ConfidenceBand.CONFIRMED:
        return f"Yes, {_describe(best.record)} is in your network."
    if best.band is ConfidenceBand.TENTATIVE:
        return f"I found {_describe(best.record)}. Is this the hospital you're looking for?"

    alternatives = ", ".join(m.record.name for m in matches[:MAX_SUGGESTIONS])
    return f'I couldn\'t find an exact match for "{hospital_name}"{in_city}. Did you mean: {alternatives}?'


def search_reply(city: str | None, hospitals: list[HospitalHit]) -> str:
    in_city = f" in {city}" if city else ""
    if not hospitals:
        return f"I couldn't find any hospitals{in_city}."
    count = len(hospitals)
    verb, noun = ("are", "hospitals") if count != 1 else ("is", "hospital")
    listing = ", ".join(f"{h.name} in {h.city}" for h in hospitals)
    return f"Here {verb} {count} {noun}{in_city}: {listing}"


class ChatService:
    """Handles one user turn end to end."""

    def __init__(
        self,
        settings: Settings,
        classifier: IntentClassifier,
        confirmation_service: ConfirmationService,
        search_service: HospitalSearchService,
        sessions: SessionStore,
        speech_service: SpeechService | None = None,
        notifier: HumanHandoffNotifier | None = None,
    ):
        self.greeting = settings.greeting
        self.classifier = classifier
        self.confirmation_service = confirmation_service
        self.search_service = search_service
        self.sessions = sessions
        self.speech_service = speech_service
        self.notifier = notifier or HumanHandoffNotifier(settings)

    async def handle(self, session_id: str, text: str) -> ChatResponse:
        async with self.sessions.open(session_id) as session:
            if session.is_empty:
                session.append("assistant", self.greeting)
            session.append("user", text)

            intent = await self.classifier.classify(text)
            response = await self._respond(session_id, text, intent)
            session.append("assistant", response.reply)

        return await self._with_audio(response)

    async def _respond(self, session_id: str, text: str, intent: Intent) -> ChatResponse:
        if intent.action == "confirm":
            return await self._confirm(intent)
        if intent.action == "search":
            return await self._search(intent)

        await self.notifier.notify(session_id, text)
        return ChatResponse(reply=OUT_OF_SCOPE_REPLY, action="out_of_scope")

    async def _confirm(self, intent: Intent) -> ChatResponse:
        if not intent.hospital_name:
            return ChatResponse(reply=ASK_HOSPITAL_REPLY, action="confirm")

        matches = await self.confirmation_service.resolve_confirmation(
            intent.hospital_name, intent.city
        )
        return ChatResponse(
            reply=confirmation_reply(intent.hospital_name, intent.city, matches),
            action="confirm",
            matches=[MatchItem.from_match(m) for m in matches],
        )

    async def _search(self, intent: Intent) -> ChatResponse:
        hospitals = await self.search_service.resolve_search(
            intent.city, intent.limit or DEFAULT_SEARCH_LIMIT
        )
        return ChatResponse(
            reply=search_reply(intent.city, hospitals),
            action="search",
            hospitals=hospitals,
        )

    async def _with_audio(self, response: ChatResponse) -> ChatResponse:
        if self.speech_service is None or not self.speech_service.enabled:
            return response
        try:
            audio = await self.speech_service.synthesize(response.reply)
        except UpstreamUnavailableError as exc:
            logger.warning("Reply audio unavailable: %s", exc.message)
            return response
        return response.model_copy(
            update={"audio_base64": audio.audio_base64, "content_type": audio.content_type}
        )
