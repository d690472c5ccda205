import re
from typing import Optional

_NON_DIGIT = re.compile(r"\D")

def normalize_phone(raw: Optional[str]) -> str:
    """
    Canonical lead key: digits only.
    "whatsapp:+1 (555) 123-4567" -> "15551234567"; None/"" -> "".
    """
    if not raw:
        return ""
    return _NON_DIGIT.sub("", str(raw))

def whatsapp_address(phone: Optional[str]) -> str:
    digits = normalize_phone(phone)
    return f"whatsapp:+{digits}" if digits else ""
