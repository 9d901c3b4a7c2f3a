"""Weighted multi-factor similarity between a hospital query and a candidate record.

The total score fuses four signals:

- name: decomposed main name vs. candidate name (weight 0.4)
- location: extracted locality terms found in candidate address/name (0.35)
- address: raw query tokens found in candidate address (0.15)
- overall name: full raw query vs. candidate name (0.1)

It is a heuristic confidence in [0, 1], not a probability.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from hospital_match.core.constants import (
    ADDRESS_STOPWORDS,
    ADDRESS_WEIGHT,
    CONFIRMED_THRESHOLD,
    KEY_TERM_BONUS,
    KEY_TERM_MIN_LENGTH,
    LOCATION_WEIGHT,
    NAME_WEIGHT,
    OVERALL_NAME_WEIGHT,
    SUGGESTION_THRESHOLD,
    TENTATIVE_THRESHOLD,
)
from hospital_match.core.models import ConfidenceBand, HospitalRecord, MatchSource, ScoredMatch

_TERM_PART_SPLIT = re.compile(r"[\s-]+")


def name_similarity(query: str, candidate: str) -> float:
    """Token-overlap similarity between two hospital names, in [0, 1]."""
    search = query.lower().strip()
    hospital = candidate.lower().strip()

    if not search or not hospital:
        return 0.0
    if search == hospital:
        return 1.0
    if search in hospital or hospital in search:
        return 0.9

    search_words = search.split()
    hospital_words = hospital.split()

    matched = sum(
        1
        for word in search_words
        if any(h_word in word or word in h_word for h_word in hospital_words)
    )
    score = matched / max(len(search_words), len(hospital_words))

    if any(
        len(word) >= KEY_TERM_MIN_LENGTH and word in h_word
        for word in search_words
        for h_word in hospital_words
    ):
        score += KEY_TERM_BONUS

    return min(1.0, max(0.0, score))


def location_similarity(location_terms: Sequence[str], name: str, address: str) -> float:
    """Fraction of locality terms found in the candidate address or name.

    A term found whole earns full credit; otherwise a term longer than four
    characters earns half credit for its first sub-part (of three or more
    characters) that is found.
    """
    if not location_terms:
        return 0.0

    address_lower = address.lower()
    name_lower = name.lower()

    def found(text: str) -> bool:
        return text in address_lower or text in name_lower

    matched = 0.0
    for term in location_terms:
        term_lower = term.lower().strip()
        if not term_lower:
            continue
        if found(term_lower):
            matched += 1.0
        elif len(term_lower) > 4:
            for part in _TERM_PART_SPLIT.split(term_lower):
                if len(part) >= 3 and found(part):
                    matched += 0.5
                    break

    return min(1.0, matched / len(location_terms))


def address_similarity(query: str, address: str) -> float:
    """Fraction of meaningful raw-query tokens that appear in the address."""
    address_lower = address.lower()
    terms = [
        term
        for term in query.lower().split()
        if len(term) >= 3 and term not in ADDRESS_STOPWORDS
    ]
    if not terms:
        return 0.0
    return sum(1 for term in terms if term in address_lower) / len(terms)


def confidence_band(total_score: float) -> ConfidenceBand:
    if total_score >= CONFIRMED_THRESHOLD:
        return ConfidenceBand.CONFIRMED
    if total_score >= TENTATIVE_THRESHOLD:
        return ConfidenceBand.TENTATIVE
    if total_score >= SUGGESTION_THRESHOLD:
        return ConfidenceBand.SUGGESTED
    return ConfidenceBand.EXCLUDED


def score_candidate(
    original_query: str,
    main_name: str,
    location_terms: Sequence[str],
    record: HospitalRecord,
    source: MatchSource,
) -> ScoredMatch:
    """Score one candidate record against a decomposed query.

    Args:
        original_query: The raw hospital mention.
        main_name: Decomposed brand name; the raw query is used when empty.
        location_terms: Locality terms extracted from the raw query.
        record: Candidate hospital.
        source: Retrieval strategy that produced the candidate.
    """
    identity = main_name or original_query

    name_score = name_similarity(identity, record.name) * NAME_WEIGHT
    location_score = (
        location_similarity(location_terms, record.name, record.address) * LOCATION_WEIGHT
    )
    address_score = address_similarity(original_query, record.address) * ADDRESS_WEIGHT
    overall_name_score = name_similarity(original_query, record.name) * OVERALL_NAME_WEIGHT

    total = name_score + location_score + address_score + overall_name_score

    return ScoredMatch(
        record=record,
        name_score=name_score,
        location_score=location_score,
        address_score=address_score,
        overall_name_score=overall_name_score,
        total_score=total,
        source=source,
        band=confidence_band(total),
    )
