"""In-memory memoization of translated text."""

import hashlib
from typing import Any, Awaitable, Callable, Dict, Tuple

from ...logging import debug, LogRecord, LogEvent

Translator = Callable[[str, str], Awaitable[str]]


class TranslationCache:
    """
    Memoizes a translator by (target language, text).

    Only successful translations are stored; translator errors propagate to
    the caller and the next call retries.
    """

    def __init__(self, translator: Translator):
        self._translator = translator
        self._entries: Dict[Tuple[str, str], str] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def cache_key(text: str, target_language: str) -> Tuple[str, str]:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return target_language.lower(), digest

    async def translate(self, text: str, target_language: str) -> str:
        key = self.cache_key(text, target_language)
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        translated = await self._translator(text, target_language)
        self._entries[key] = translated

        debug(
            LogRecord(
                event=LogEvent.TRANSLATION_EVENT.value,
                message="Translation cached",
                key=key[0],
                data={"source_length": len(text), "translated_length": len(translated)},
            )
        )
        return translated

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> int:
        """Drop every memoized translation and return how many were dropped."""
        removed = len(self._entries)
        self._entries.clear()
        return removed

    def get_stats(self) -> Dict[str, Any]:
        return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}
