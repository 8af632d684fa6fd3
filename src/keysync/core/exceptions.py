"""
Exception classes for keysync.

This module contains the exception hierarchy shared by the scanner, the
document store and the batch translator, kept free of other imports to
avoid import cycles.
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(Enum):
    """Categories of errors for appropriate handling strategies."""

    CONFIGURATION = "configuration"
    SCAN = "scan"
    STORAGE = "storage"
    TRANSLATION_SERVICE = "translation_service"
    UNKNOWN = "unknown"


class KeySyncError(Exception):
    """Base exception class for keysync specific errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: object | None = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message)
        self.category: ErrorCategory = category
        self.context: object | None = context
        self.recoverable: bool = recoverable


class ConfigurationError(KeySyncError):
    """Invalid configuration or missing credentials."""

    def __init__(self, message: str, context: object | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            context=context,
            recoverable=False,
        )


class ScanError(KeySyncError):
    """A source file could not be read or parsed."""

    def __init__(self, message: str, context: object | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.SCAN,
            context=context,
        )


class TranslationServiceError(KeySyncError):
    """A single batch could not be translated by the external service."""

    def __init__(
        self,
        message: str,
        language: str | None = None,
        batch_id: int | None = None,
        context: object | None = None,
    ) -> None:
        super().__init__(
            message,
            category=ErrorCategory.TRANSLATION_SERVICE,
            context=context,
        )
        self.language: str | None = language
        self.batch_id: int | None = batch_id


class StorageError(KeySyncError):
    """A document, index or snapshot file could not be written."""

    def __init__(self, message: str, context: object | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.STORAGE,
            context=context,
            recoverable=False,
        )
