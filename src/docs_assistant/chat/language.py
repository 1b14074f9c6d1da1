"""
Language detection for free-chat messages.
"""

from __future__ import annotations

import logging

from langdetect import DetectorFactory, LangDetectException, detect

logger = logging.getLogger("docs.chat")

# langdetect is probabilistic; a fixed seed makes results repeatable.
DetectorFactory.seed = 0

UNKNOWN_LANGUAGE = "unknown"


def detect_language(text: str) -> str:
    """
    Return the ISO 639-1 code of the language of `text`, or "unknown" when
    the text carries no detectable language features.
    """
    if not text or not text.strip():
        return UNKNOWN_LANGUAGE
    try:
        return detect(text)
    except LangDetectException:
        logger.debug("Language detection failed for %r", text[:40])
        return UNKNOWN_LANGUAGE
