EXTRACTION_PROMPT = """
You read a WhatsApp conversation between a real estate assistant and a home buyer
and rebuild what the buyer has told us so far. Return ONLY one JSON object:

{
  "location": "string or null",
  "home_type": "string or null",
  "bedrooms": "string or null",
  "budget": "string or null",
  "timeline": "string or null",
  "preapproval": "string or null",
  "motivation": "string or null"
}

Rules:
- Use only what the buyer said. Never guess; use null for anything not mentioned.
- If the buyer says they don't know or aren't sure about something they were asked, use "unknown".
- A short answer ("3", "next month", "cash") belongs to the field the assistant asked about just before it.
- If the buyer changes an answer, the most recent statement wins.
- Keep values short and in the buyer's words.
"""

REPLY_PROMPT = """
You are a friendly real estate assistant chatting with a home buyer on WhatsApp.
Write the next message only: one or two short sentences, warm and natural.
Ask about exactly one thing, the topic you are given. Do not repeat earlier questions.
No lists, no markdown.
"""

FIELD_TOPICS = {
    "location": "the area or city they want to buy in",
    "home_type": "the type of home they want (house, condo, apartment, ...)",
    "bedrooms": "how many bedrooms they need",
    "budget": "their budget or price range",
    "timeline": "when they are looking to move",
    "preapproval": "whether they are pre-approved for a mortgage or paying cash",
    "motivation": "what is motivating the move",
}
