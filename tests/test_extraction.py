import json

from conftest import FakeMessenger
from conversation.script import QUALIFICATION_FIELDS, prompt_for_field
from conversation.service import ConversationService
from conversation.state_machine import apply_updates
from data.store import default_lead_state
from llm.extraction import (
    ExtractionStrategy, empty_fields, merge_fields, next_missing_field, parse_extraction,
    render_transcript, reply_instruction,
)
from llm.openai_client import ResponsesClient
from llm.prompt import EXTRACTION_PROMPT, REPLY_PROMPT


class ScriptedLLM:
    """complete(system, user) fake: extraction calls get `extraction`, reply calls get `reply`."""

    def __init__(self, extraction, reply="What's your budget?"):
        self.extraction = extraction
        self.reply = reply
        self.calls = []

    def __call__(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if system_prompt == EXTRACTION_PROMPT:
            return self.extraction if isinstance(self.extraction, str) else json.dumps(self.extraction)
        return self.reply


def test_parse_extraction_valid_and_fenced():
    raw = '```json\n{"location": " Phoenix ", "bedrooms": 3, "budget": "not sure", "timeline": null}\n```'
    fields = parse_extraction(raw)
    assert fields["location"] == "Phoenix"
    assert fields["bedrooms"] == "3"
    assert fields["budget"] == "unknown"
    assert fields["timeline"] is None


def test_parse_extraction_malformed_falls_back():
    for raw in ["", "not json", "[1, 2]", '"text"', None]:
        assert parse_extraction(raw) == empty_fields()


def test_next_missing_field_skips_unknown_sentinel():
    fields = dict(empty_fields(), location="Austin", home_type="unknown")
    assert next_missing_field(fields) == "bedrooms"
    assert next_missing_field({f: "x" for f in QUALIFICATION_FIELDS}) is None


def test_merge_keeps_stored_values_model_dropped():
    lead = dict(default_lead_state("1"), location="Austin", budget="200k")
    merged = merge_fields(lead, dict(empty_fields(), budget="250k"))
    assert merged["location"] == "Austin"
    assert merged["budget"] == "250k"


def test_reply_instruction_mentions_only_missing_topic():
    text = reply_instruction(dict(empty_fields(), location="Austin"), "budget")
    assert "Area: Austin" in text
    assert "budget or price range" in text
    assert "bedrooms they need" not in text


def test_transcript_includes_new_message():
    history = [{"sender": "ai", "message": "Where?"}, {"sender": "lead", "message": "Austin"}]
    assert render_transcript(history, "3 beds") == "Assistant: Where?\nBuyer: Austin\nBuyer: 3 beds"


def test_asks_for_first_missing_field():
    llm = ScriptedLLM({"location": "Austin", "home_type": "condo", "bedrooms": "2"})
    step = ExtractionStrategy(llm).next_step(default_lead_state("1"), [], "condo in Austin, 2 beds")

    assert step.kind == "question"
    assert step.message == "What's your budget?"
    patch = step.updates[0]
    assert patch["location"] == "Austin"
    assert patch["current_question_index"] == 3
    assert llm.calls[1][0] == REPLY_PROMPT
    assert "budget" in llm.calls[1][1]


def test_reply_falls_back_to_script_prompt():
    llm = ScriptedLLM({"location": "Austin"}, reply="")
    step = ExtractionStrategy(llm).next_step(default_lead_state("1"), [], "Austin")
    assert step.message == prompt_for_field("home_type")


def test_llm_failure_falls_back_to_default_state():
    def broken(system_prompt, user_prompt):
        raise RuntimeError("api down")

    step = ExtractionStrategy(broken).next_step(default_lead_state("1"), [], "hello")
    assert step.kind == "question"
    assert step.message == prompt_for_field("location")
    assert all(step.updates[0][f] is None for f in QUALIFICATION_FIELDS)


def test_complete_fields_score_and_offer_meeting():
    llm = ScriptedLLM({
        "location": "Dallas", "home_type": "condo", "bedrooms": "2", "budget": "unknown",
        "timeline": "asap", "preapproval": "cash", "motivation": "job",
    })
    step = ExtractionStrategy(llm).next_step(default_lead_state("1"), [], "everything at once")

    assert step.kind == "scheduling"
    first, second = step.updates
    assert first["qualification_complete"] is True
    assert first["current_question_index"] == 7
    assert first["lead_score"] == "warm"
    assert second == {"asked_for_meeting": True}
    assert "Dallas" in step.message and "warm" in step.message


def test_after_completion_uses_scheduling_branch():
    llm = ScriptedLLM({})
    lead = dict(default_lead_state("1"), qualification_complete=True, asked_for_meeting=True, current_question_index=7)
    step = ExtractionStrategy(llm).next_step(lead, [], "sure, call me")
    assert step.kind == "meeting_confirmed"
    assert llm.calls == []

    lead = apply_updates(lead, step)
    assert ExtractionStrategy(llm).next_step(lead, [], "hi").kind == "already_handled"


def test_index_never_decreases():
    llm = ScriptedLLM({})
    lead = dict(default_lead_state("1"), location="Austin", home_type="condo", current_question_index=2)
    step = ExtractionStrategy(llm).next_step(lead, [], "hmm")
    assert step.updates[0]["current_question_index"] == 2
    assert step.updates[0]["location"] == "Austin"


def test_no_model_output_records_answer_in_script_order():
    lead = dict(default_lead_state("1"), location="Austin", current_question_index=1)
    step = ExtractionStrategy(lambda system_prompt, user_prompt: "").next_step(lead, [], "no idea honestly")

    patch = step.updates[0]
    assert patch["location"] == "Austin"
    assert patch["home_type"] == "unknown"
    assert patch["current_question_index"] == 2
    assert step.message == prompt_for_field("bedrooms")


def test_interview_completes_without_api_key(store):
    messenger = FakeMessenger()
    service = ConversationService(store, messenger, ExtractionStrategy(ResponsesClient(api_key="").complete))
    answers = ["Phoenix", "house", "3", "450k", "asap", "pre-approved", "new job", "yes"]
    replies = [service.handle_inbound("whatsapp:+15551234567", a) for a in answers]

    assert replies[:6] == [prompt_for_field(f) for f in QUALIFICATION_FIELDS[1:]]
    assert "hot" in replies[6]
    lead = store.get_lead("15551234567")
    assert lead["location"] == "Phoenix"
    assert lead["motivation"] == "new job"
    assert lead["current_question_index"] == 7
    assert lead["lead_score"] == "hot"
    assert lead["asked_for_meeting"] is True
    assert lead["wants_meeting"] is True
    assert lead["meeting_scheduled"] is True
