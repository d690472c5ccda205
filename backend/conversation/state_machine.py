import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence
from .classifiers import IntentClassifier, KeywordClassifier
from .script import QUALIFICATION_SCRIPT, SCRIPT_LENGTH, prompt_for
from .scoring import score_lead

logger = logging.getLogger(__name__)

ALREADY_HANDLED_REPLY = "Thanks for your message! Our team will be in touch shortly to confirm the meeting details."
FALLBACK_REPLY = "Thanks for your message! Our team will review your information and get back to you shortly."
DECLINED_REPLY = (
    "Thank you for your interest! We will keep your information on file and reach out "
    "if we find properties that match your criteria."
)
TIER_EMOJI = {"hot": "🔥", "warm": "☀️", "cold": "❄️"}

def scheduling_offer(score: Optional[str]) -> str:
    return (
        f"{TIER_EMOJI.get(score or '', '')} Thanks for the information! Based on what you've shared, "
        f"you're a {score} lead. Would you like to schedule a meeting with one of our agents?"
    ).strip()

def meeting_confirmation(booking_link: str = "") -> str:
    msg = "🎉 Great! An agent will reach out to you within the next hour to schedule the meeting."
    if booking_link:
        msg += f" You can also pick a time that suits you here: {booking_link}"
    return msg + " Thank you!"


@dataclass
class Step:
    """
    One turn's outcome: the reply for the lead plus the partial-field patches
    the host must persist, in order.
    """
    kind: str        # already_handled | question | scheduling | meeting_confirmed | meeting_declined | fallback
    message: str
    updates: List[Dict[str, Any]] = field(default_factory=list)


def apply_updates(lead: Mapping[str, Any], step: Step) -> Dict[str, Any]:
    snapshot = dict(lead)
    for patch in step.updates:
        snapshot.update(patch)
    return snapshot


class ConversationStrategy:
    """
    Shared turn logic. Subclasses fill the qualification branch; terminal,
    scheduling-response and fallback handling are the same for every strategy.
    Pure: plain data in, Step out; persistence and delivery live in the host.
    """

    needs_history = False

    def __init__(self, classifier: Optional[IntentClassifier] = None, booking_link: str = ""):
        self.classifier = classifier or KeywordClassifier()
        self.booking_link = booking_link

    def next_step(self, lead: Mapping[str, Any], history: Sequence[Mapping[str, Any]], text: str) -> Step:
        logger.debug(
            "Conversation state: index=%s asked_for_meeting=%s meeting_scheduled=%s",
            lead.get("current_question_index"), lead.get("asked_for_meeting"), lead.get("meeting_scheduled"),
        )
        if lead.get("meeting_scheduled"):
            return Step("already_handled", ALREADY_HANDLED_REPLY)

        step = self._qualify(lead, history, text)
        if step is not None:
            return step

        if lead.get("asked_for_meeting"):
            return self._scheduling_response(text)

        return Step("fallback", FALLBACK_REPLY)

    def _qualify(self, lead: Mapping[str, Any], history: Sequence[Mapping[str, Any]], text: str) -> Optional[Step]:
        raise NotImplementedError

    def _scheduling_response(self, text: str) -> Step:
        if self.classifier.is_affirmative(text):
            return Step(
                "meeting_confirmed",
                meeting_confirmation(self.booking_link),
                [{"meeting_scheduled": True, "wants_meeting": True, "meeting_notes": text}],
            )
        return Step(
            "meeting_declined",
            DECLINED_REPLY,
            [{"meeting_scheduled": True, "wants_meeting": False}],
        )


class ScriptedStrategy(ConversationStrategy):
    """Fixed interview: each inbound message answers the question at current_question_index."""

    def _qualify(self, lead, history, text):
        index = int(lead.get("current_question_index") or 0)
        if index >= SCRIPT_LENGTH:
            return None

        field_name = QUALIFICATION_SCRIPT[index][0]
        patch: Dict[str, Any] = {
            field_name: self.classifier.classify_answer(text),
            "current_question_index": index + 1,
        }
        if index + 1 == SCRIPT_LENGTH:
            patch["qualification_complete"] = True
            patch["lead_score"] = score_lead({**lead, **patch})
            logger.info("Qualification complete phone=%s score=%s", lead.get("phone"), patch["lead_score"])
            return Step("scheduling", scheduling_offer(patch["lead_score"]), [patch, {"asked_for_meeting": True}])

        return Step("question", prompt_for(index + 1), [patch])
