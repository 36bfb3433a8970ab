"""Wake phrase matching against live recognition text."""

import re
from typing import Dict, List, Optional

# Words recognizers commonly produce instead of the assistant's name
NAME_VARIANTS: Dict[str, List[str]] = {
    "veer": [
        "veer", "vir", "vear", "beer", "fear", "dear", "via", "vera",
        "veera", "feer", "bier", "vier", "vere", "veir", "vire",
    ],
}

GREETINGS = ["hey", "hi", "hay", "he", "a"]

_WHITESPACE = re.compile(r"\s+")


class WakePhraseMatcher:
    """Case-insensitive wake phrase matcher.

    A transcript matches when it contains the phrase directly, contains it
    once all whitespace is removed ("heyveer"), or - for phrases naming a
    known assistant - contains a greeting followed by a common
    misrecognition of the name ("hey beer").
    """

    def __init__(self, phrase: str):
        self.phrase = phrase.strip().lower()
        self._compact = _WHITESPACE.sub("", self.phrase)
        self._fuzzy: List[str] = []

        for name, variants in NAME_VARIANTS.items():
            if name in self.phrase:
                for greeting in GREETINGS:
                    for variant in variants:
                        self._fuzzy.append(f"{greeting} {variant}")
                        self._fuzzy.append(f"{greeting}{variant}")

    def matches(self, transcript: str) -> bool:
        return self._find(transcript) is not None

    def trailing_text(self, transcript: str) -> str:
        """Return what was said after the wake phrase, or "" if it did not match."""
        span_end = self._find(transcript)
        if span_end is None:
            return ""
        return transcript.strip().lower()[span_end:].lstrip(" ,.!?").strip()

    def _find(self, transcript: str) -> Optional[int]:
        # End offset of the match in the lowercased transcript; when only the
        # whitespace-free form matches the whole transcript is consumed.
        norm = transcript.strip().lower()
        if not norm or not self.phrase:
            return None

        index = norm.find(self.phrase)
        if index >= 0:
            return index + len(self.phrase)

        for candidate in self._fuzzy:
            index = norm.find(candidate)
            if index >= 0:
                return index + len(candidate)

        compact = _WHITESPACE.sub("", norm)
        if self._compact and self._compact in compact:
            return len(norm)
        for candidate in self._fuzzy:
            if " " not in candidate and candidate in compact:
                return len(norm)

        return None
