"""
Default free-text cleaner for chat messages and blank-card text.

Any callable taking and returning a string can replace it (a profanity
filter, for example); the manager only ever calls ``clean(text)``.
"""

import re
from typing import Callable

Sanitizer = Callable[[str], str]

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


def clean(text: str) -> str:
    text = _CONTROL_CHARS.sub("", text or "")
    return _WHITESPACE.sub(" ", text).strip()
