"""
keysync - translation key extraction, synchronization and batch translation.
"""

from .config.schema import KeySyncConfig
from .core.types import ExtractedKey, HashEntry, TranslationValue
from .runtime import TFunction, Translator, use_translation

__version__ = "1.0.0"

__all__ = [
    "ExtractedKey",
    "HashEntry",
    "KeySyncConfig",
    "TFunction",
    "TranslationValue",
    "Translator",
    "use_translation",
]
