"""Tests for conversation turn handling."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from hospital_match.core.exceptions import UpstreamUnavailableError
from hospital_match.core.models import ConfidenceBand, HospitalRecord, ScoredMatch
from hospital_match.schemas.intent import Intent
from hospital_match.schemas.search import HospitalHit
from hospital_match.services.chat_service import (
    ASK_HOSPITAL_REPLY,
    OUT_OF_SCOPE_REPLY,
    ChatService,
    confirmation_reply,
    search_reply,
)
from hospital_match.services.session_store import SessionStore
from hospital_match.services.speech_service import SpeechAudio


def _match(name: str, address: str, city: str, total: float, band: ConfidenceBand) -> ScoredMatch:
    return ScoredMatch(
        record=HospitalRecord.create(name, address, city),
        name_score=0.0,
        location_score=0.0,
        address_score=0.0,
        overall_name_score=0.0,
        total_score=total,
        source="semantic",
        band=band,
    )


CONFIRMED = _match("Manipal Hospital", "Sarjapur Road", "Bengaluru", 0.85, ConfidenceBand.CONFIRMED)
TENTATIVE = _match(
    "Manipal Hospital", "Old Airport Road", "Bengaluru", 0.45, ConfidenceBand.TENTATIVE
)
SUGGESTED = _match("Apollo Clinic", "Greams Road", "Chennai", 0.3, ConfidenceBand.SUGGESTED)


@pytest.fixture
def collaborators():
    classifier = MagicMock()
    classifier.classify = AsyncMock(return_value=Intent.out_of_scope())
    confirmation = MagicMock()
    confirmation.resolve_confirmation = AsyncMock(return_value=[])
    search = MagicMock()
    search.resolve_search = AsyncMock(return_value=[])
    notifier = MagicMock()
    notifier.notify = AsyncMock()
    return classifier, confirmation, search, notifier


@pytest.fixture
def chat_service(test_settings, collaborators) -> ChatService:
    classifier, confirmation, search, notifier = collaborators
    return ChatService(
        settings=test_settings,
        classifier=classifier,
        confirmation_service=confirmation,
        search_service=search,
        sessions=SessionStore(),
        notifier=notifier,
    )


def test_confirmed_reply_states_membership():
    reply = confirmation_reply("Manipal Sarjapur", "Bengaluru", [CONFIRMED, TENTATIVE])
    assert reply == "Yes, Manipal Hospital at Sarjapur Road, Bengaluru is in your network."


def test_tentative_reply_asks_for_confirmation():
    reply = confirmation_reply("Manipal", None, [TENTATIVE])
    assert reply.startswith("I found Manipal Hospital at Old Airport Road, Bengaluru.")
    assert reply.endswith("Is this the hospital you're looking for?")


def test_suggested_reply_lists_alternatives():
    other = _match("Apollo Hospital", "Greams Road", "Chennai", 0.26, ConfidenceBand.SUGGESTED)
    reply = confirmation_reply("Apolo", "Chennai", [SUGGESTED, other])
    assert reply == (
        'I couldn\'t find an exact match for "Apolo" in Chennai. '
        "Did you mean: Apollo Clinic, Apollo Hospital?"
    )


def test_not_found_reply():
    reply = confirmation_reply("Apollo", "Delhi", [])
    assert reply.startswith('I could not find "Apollo" in Delhi in the network.')


def test_search_reply():
    hospitals = [
        HospitalHit(name="Fortis Hospital", address="Mulund West", city="Mumbai", score=0.6),
        HospitalHit(name="Lilavati Hospital", address="Bandra West", city="Mumbai", score=0.5),
    ]
    assert search_reply("Mumbai", hospitals) == (
        "Here are 2 hospitals in Mumbai: Fortis Hospital in Mumbai, Lilavati Hospital in Mumbai"
    )
    assert search_reply("Jaipur", []) == "I couldn't find any hospitals in Jaipur."


@pytest.mark.asyncio
async def test_first_turn_records_greeting(chat_service, test_settings):
    response = await chat_service.handle("s1", "What's the weather?")

    turns = chat_service.sessions.transcript("s1")
    assert [t.role for t in turns] == ["assistant", "user", "assistant"]
    assert turns[0].text == test_settings.greeting
    assert turns[2].text == response.reply

    await chat_service.handle("s1", "Anything else?")
    assert len(chat_service.sessions.transcript("s1")) == 5


@pytest.mark.asyncio
async def test_out_of_scope_is_forwarded(chat_service, collaborators):
    _, _, _, notifier = collaborators
    response = await chat_service.handle("s1", "What's the weather?")

    assert response.action == "out_of_scope"
    assert response.reply == OUT_OF_SCOPE_REPLY
    notifier.notify.assert_awaited_once_with("s1", "What's the weather?")


@pytest.mark.asyncio
async def test_confirm_turn(chat_service, collaborators):
    classifier, confirmation, _, _ = collaborators
    classifier.classify.return_value = Intent(
        action="confirm", city="Bengaluru", hospital_name="Manipal Sarjapur"
    )
    confirmation.resolve_confirmation.return_value = [CONFIRMED]

    response = await chat_service.handle("s1", "Is Manipal Sarjapur in Bangalore covered?")

    confirmation.resolve_confirmation.assert_awaited_once_with("Manipal Sarjapur", "Bengaluru")
    assert response.action == "confirm"
    assert response.reply.startswith("Yes, Manipal Hospital")
    assert response.matches[0].band == "confirmed"


@pytest.mark.asyncio
async def test_confirm_without_hospital_asks_for_one(chat_service, collaborators):
    classifier, confirmation, _, _ = collaborators
    classifier.classify.return_value = Intent(action="confirm")

    response = await chat_service.handle("s1", "Is it covered?")

    assert response.reply == ASK_HOSPITAL_REPLY
    confirmation.resolve_confirmation.assert_not_awaited()


@pytest.mark.asyncio
async def test_search_turn_uses_default_limit(chat_service, collaborators):
    classifier, _, search, _ = collaborators
    classifier.classify.return_value = Intent(action="search", city="Mumbai")
    search.resolve_search.return_value = [
        HospitalHit(name="Fortis Hospital", address="Mulund West", city="Mumbai", score=0.6)
    ]

    response = await chat_service.handle("s1", "Hospitals in Mumbai")

    search.resolve_search.assert_awaited_once_with("Mumbai", 3)
    assert response.action == "search"
    assert response.reply == "Here is 1 hospital in Mumbai: Fortis Hospital in Mumbai"
    assert response.hospitals[0].name == "Fortis Hospital"


@pytest.mark.asyncio
async def test_reply_audio_is_attached(chat_service):
    speech = MagicMock()
    speech.enabled = True
    speech.synthesize = AsyncMock(return_value=SpeechAudio("UklGRg==", "audio/mpeg"))
    chat_service.speech_service = speech

    response = await chat_service.handle("s1", "What's the weather?")

    speech.synthesize.assert_awaited_once_with(OUT_OF_SCOPE_REPLY)
    assert response.audio_base64 == "UklGRg=="
    assert response.content_type == "audio/mpeg"


@pytest.mark.asyncio
async def test_speech_failure_falls_back_to_text(chat_service):
    speech = MagicMock()
    speech.enabled = True
    speech.synthesize = AsyncMock(side_effect=UpstreamUnavailableError("elevenlabs", "timed out"))
    chat_service.speech_service = speech

    response = await chat_service.handle("s1", "What's the weather?")

    assert response.reply == OUT_OF_SCOPE_REPLY
    assert response.audio_base64 is None
