import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence
from conversation.classifiers import IntentClassifier, is_unknown_answer
from conversation.script import QUALIFICATION_FIELDS, SCRIPT_LENGTH, UNKNOWN, prompt_for_field
from conversation.scoring import score_lead
from conversation.state_machine import ConversationStrategy, Step, scheduling_offer
from .prompt import EXTRACTION_PROMPT, REPLY_PROMPT, FIELD_TOPICS

logger = logging.getLogger(__name__)

Complete = Callable[[str, str], str]

SENDER_LABELS = {"lead": "Buyer", "ai": "Assistant", "agent": "Agent"}
FIELD_LABELS = {
    "location": "Area",
    "home_type": "Home type",
    "bedrooms": "Bedrooms",
    "budget": "Budget",
    "timeline": "Timeline",
    "preapproval": "Financing",
    "motivation": "Motivation",
}

def empty_fields() -> Dict[str, Optional[str]]:
    return {f: None for f in QUALIFICATION_FIELDS}

def render_transcript(history: Sequence[Mapping[str, Any]], text: str) -> str:
    lines = [f"{SENDER_LABELS.get(m.get('sender'), 'Buyer')}: {m.get('message', '')}" for m in history]
    lines.append(f"Buyer: {text}")
    return "\n".join(lines)

def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.strip("`").strip()
        if raw.lower().startswith("json"):
            raw = raw[4:]
    return raw.strip()

def parse_extraction(raw: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Model output -> seven-field dict. Anything that is not a JSON object
    yields the all-unset state instead of an error.
    """
    try:
        data = json.loads(_strip_fences(raw or ""))
        if not isinstance(data, dict):
            raise ValueError("not a JSON object")
    except ValueError as e:
        logger.warning("Unusable extraction output (%s): %r", e, (raw or "")[:200])
        return empty_fields()

    fields = empty_fields()
    for name in QUALIFICATION_FIELDS:
        value = data.get(name)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if not text or text.lower() in ("null", "none", "n/a"):
            continue
        fields[name] = UNKNOWN if is_unknown_answer(text) else text
    return fields

def merge_fields(lead: Mapping[str, Any], extracted: Mapping[str, Optional[str]]) -> Dict[str, Optional[str]]:
    # newest extraction wins; a field the model dropped keeps its stored value
    return {f: extracted.get(f) or lead.get(f) for f in QUALIFICATION_FIELDS}

def next_missing_field(fields: Mapping[str, Any]) -> Optional[str]:
    """First unset field in interview order. The "unknown" sentinel counts as set."""
    for name in QUALIFICATION_FIELDS:
        value = fields.get(name)
        if value is None or not str(value).strip():
            return name
    return None

def reply_instruction(fields: Mapping[str, Any], missing: str) -> str:
    known = [f"- {FIELD_LABELS[f]}: {fields[f]}" for f in QUALIFICATION_FIELDS if fields.get(f)]
    lines = ["What we know about the buyer so far:"]
    lines += known or ["- nothing yet"]
    lines.append(f"Ask the buyer about: {FIELD_TOPICS[missing]}.")
    return "\n".join(lines)

def summarize(fields: Mapping[str, Any]) -> str:
    parts = [f"{FIELD_LABELS[f]}: {fields.get(f)}" for f in QUALIFICATION_FIELDS]
    return "Here's what I have so far:\n" + "\n".join(parts)


class ExtractionStrategy(ConversationStrategy):
    """
    Free-form qualification. Every turn rebuilds the seven fields from the
    whole conversation, then asks about the first one still missing.
    """

    needs_history = True

    def __init__(self, complete: Complete, classifier: Optional[IntentClassifier] = None, booking_link: str = ""):
        super().__init__(classifier=classifier, booking_link=booking_link)
        self.complete = complete

    def _qualify(self, lead, history, text):
        if lead.get("qualification_complete"):
            return None

        fields = merge_fields(lead, self.extract(lead, history, text))
        answered = sum(1 for f in QUALIFICATION_FIELDS if fields.get(f))
        patch: Dict[str, Any] = {
            **fields,
            "current_question_index": max(int(lead.get("current_question_index") or 0), answered),
        }

        missing = next_missing_field(fields)
        if missing:
            return Step("question", self.ask(fields, missing), [patch])

        patch["current_question_index"] = SCRIPT_LENGTH
        patch["qualification_complete"] = True
        patch["lead_score"] = score_lead(fields)
        logger.info("Qualification complete phone=%s score=%s", lead.get("phone"), patch["lead_score"])
        message = f"{summarize(fields)}\n\n{scheduling_offer(patch['lead_score'])}"
        return Step("scheduling", message, [patch, {"asked_for_meeting": True}])

    def extract(self, lead: Mapping[str, Any], history: Sequence[Mapping[str, Any]], text: str) -> Dict[str, Optional[str]]:
        try:
            raw = self.complete(EXTRACTION_PROMPT, render_transcript(history, text))
        except Exception:
            logger.exception("Extraction call failed")
            return empty_fields()
        if not (raw or "").strip():
            return self._fallback(lead, text)
        return parse_extraction(raw)

    def _fallback(self, lead: Mapping[str, Any], text: str) -> Dict[str, Optional[str]]:
        # no model output: the message answers the first field still missing, in script order
        fields = empty_fields()
        missing = next_missing_field(lead)
        if missing:
            fields[missing] = self.classifier.classify_answer(text)
        return fields

    def ask(self, fields: Mapping[str, Any], missing: str) -> str:
        try:
            reply = (self.complete(REPLY_PROMPT, reply_instruction(fields, missing)) or "").strip()
        except Exception:
            logger.exception("Reply generation failed")
            reply = ""
        return reply or prompt_for_field(missing)


__all__ = [
    "ExtractionStrategy", "parse_extraction", "merge_fields", "next_missing_field",
    "reply_instruction", "render_transcript", "summarize", "empty_fields",
]
