import re
from typing import Optional

_OPENAI_STYLE_KEY = re.compile(r"sk-[A-Za-z0-9]{48}")


def redact_secrets(text: Optional[str]) -> str:
    """Mask sk- style API keys before a string is logged or returned."""
    if not text:
        return "Unknown error"
    return _OPENAI_STYLE_KEY.sub("sk-***", text)
