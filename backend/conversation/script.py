from typing import List, Tuple, Optional

UNKNOWN = "unknown"

# Interview order. Each entry: (lead field, question sent to the lead)
QUALIFICATION_SCRIPT: List[Tuple[str, str]] = [
    ("location",    "What area or city are you looking in?"),
    ("home_type",   "What type of home are you looking for? (house, condo, apartment, etc.)"),
    ("bedrooms",    "How many bedrooms do you need?"),
    ("budget",      "What's your budget or price range?"),
    ("timeline",    "When are you looking to move?"),
    ("preapproval", "Are you pre-approved for a mortgage or planning to pay cash?"),
    ("motivation",  "What's motivating your move? (new job, bigger space, investment, etc.)"),
]

QUALIFICATION_FIELDS: List[str] = [field for field, _ in QUALIFICATION_SCRIPT]
SCRIPT_LENGTH = len(QUALIFICATION_SCRIPT)

def prompt_for(index: int) -> Optional[str]:
    if 0 <= index < SCRIPT_LENGTH:
        return QUALIFICATION_SCRIPT[index][1]
    return None

def prompt_for_field(field: str) -> Optional[str]:
    for name, question in QUALIFICATION_SCRIPT:
        if name == field:
            return question
    return None
