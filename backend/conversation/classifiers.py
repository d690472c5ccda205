"""
Keyword classifiers for inbound WhatsApp text.

Both checks are plain substring containment over a fixed lexicon. That is a
deterministic baseline with known false positives (a reply like "ok, no
thanks" reads as a yes). The state machine only talks to the IntentClassifier
protocol, so a smarter classifier can replace KeywordClassifier.
"""

from typing import Iterable, Optional, Protocol
from .script import UNKNOWN

UNKNOWN_PHRASES = (
    "not sure",
    "don't know",
    "dont know",
    "don’t know",
    "do not know",
    "unknown",
    "idk",
    "not certain",
    "no idea",
    "unsure",
)

AFFIRMATIVE_WORDS = (
    "yes", "yeah", "yep", "sure", "ok", "okay",
    "sounds good", "perfect", "great", "awesome",
    "bet", "definitely", "absolutely", "lets do it", "let's do it", "let’s do it",
    "schedule", "call me", "call", "meeting",
    "please", "ready",
)

def _contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(p in text for p in phrases)

def is_unknown_answer(text: Optional[str]) -> bool:
    if not text:
        return False
    return _contains_any(text.lower(), UNKNOWN_PHRASES)

def classify_answer(text: Optional[str]) -> str:
    """Value to store for a qualification answer: the trimmed text or the "unknown" sentinel."""
    answer = (text or "").strip()
    return UNKNOWN if is_unknown_answer(answer) else answer

def is_affirmative(text: Optional[str]) -> bool:
    if not text:
        return False
    return _contains_any(text.lower().strip(), AFFIRMATIVE_WORDS)


class IntentClassifier(Protocol):
    def classify_answer(self, text: Optional[str]) -> str: ...
    def is_affirmative(self, text: Optional[str]) -> bool: ...


class KeywordClassifier:
    def classify_answer(self, text: Optional[str]) -> str:
        return classify_answer(text)

    def is_affirmative(self, text: Optional[str]) -> bool:
        return is_affirmative(text)


__all__ = [
    "UNKNOWN_PHRASES", "AFFIRMATIVE_WORDS", "is_unknown_answer", "classify_answer",
    "is_affirmative", "IntentClassifier", "KeywordClassifier",
]
