import logging
from typing import Any, Dict, Optional
from openai import OpenAI

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-5"

class ResponsesClient:
    """
    Text completion over the OpenAI Responses API: complete(system, user) -> text.
    Without an API key it answers with an empty string, which callers treat as
    "no usable output" and fall back on.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL, client: Optional[OpenAI] = None):
        self.model = model
        self._client = client or (OpenAI(api_key=api_key) if api_key else None)

    def available(self) -> bool:
        return self._client is not None

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        if not self.available():
            return ""

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "instructions": system_prompt,
            "input": [{"role": "user", "content": user_prompt}],
            "store": False,
        }
        resp = self._client.responses.create(**kwargs)
        logger.debug("LLM response id=%s", resp.id)
        return resp.output_text or ""
