"""Translation of raw failures into :class:`DesignError` values.

The generation backend fails in many shapes: SDK exceptions, HTTP errors,
connection resets, timeouts, or plain strings.  :class:`ErrorClassifier`
maps all of them onto the closed taxonomy in
:mod:`creative_design.core.errors`.

Precedence
----------
Rules are checked in order and the first match wins::

    1. quota / rate-limit phrase        -> QUOTA_EXCEEDED        retryable
    2. permission / unauthorized phrase -> AUTHENTICATION_ERROR  permanent
    3. model not found / invalid model  -> API_ERROR             permanent
    4. content policy / safety phrase   -> CONTENT_POLICY_ERROR  permanent
    5. network / fetch signal           -> NETWORK_ERROR         retryable
    6. timeout / abort signal           -> TIMEOUT_ERROR         retryable
    7. HTTP 5xx signal                  -> API_ERROR             retryable
    8. anything else                    -> API_ERROR             retryable

Specific permanent conditions come before the generic transient ones so a
message such as "permission denied (network policy)" is not retried.
Status codes (401, 403, 429, 5xx) match as whole numbers only.
Values that already are a :class:`DesignError` pass through unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from creative_design.core.errors import DesignError, DesignErrorType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Signal phrases, matched case-insensitively against the failure text.
# ---------------------------------------------------------------------------
_QUOTA_PHRASES = ("quota", "rate limit", "rate_limit", "resource exhausted", "resource_exhausted")
_AUTH_PHRASES = ("permission", "unauthorized", "unauthenticated", "authentication", "api key")
_QUOTA_STATUS = re.compile(r"\b429\b")
_AUTH_STATUS = re.compile(r"\b40[13]\b")
_MODEL_PHRASES = ("model not found", "invalid model")
_POLICY_PHRASES = ("content policy", "safety", "blocked by policy")
_NETWORK_PHRASES = ("network", "fetch", "connection", "networkerror")
_TIMEOUT_PHRASES = ("timeout", "timed out", "aborterror", "deadline exceeded")
_SERVER_ERROR = re.compile(r"\b5\d\d\b")

_NETWORK_ERROR_TYPES = (ConnectionError,)
_TIMEOUT_ERROR_TYPES = (TimeoutError, asyncio.TimeoutError)


def _failure_text(raw: Any) -> str:
    if isinstance(raw, BaseException):
        text = str(raw)
        return f"{type(raw).__name__}: {text}" if text else type(raw).__name__
    return str(raw)


def _contains(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)


class ErrorClassifier:
    """Map heterogeneous failures onto the closed error taxonomy."""

    def classify(self, raw_failure: Any, context: str = "") -> DesignError:
        """Return the structured error for ``raw_failure``.

        Args:
            raw_failure: Exception, string, or an existing DesignError.
            context: Name of the operation that failed, for logging and
                ``details``.

        Returns:
            A fresh DesignError, or ``raw_failure`` itself if it already is one.
        """
        if isinstance(raw_failure, DesignError):
            return raw_failure

        original = _failure_text(raw_failure)
        text = original.lower()
        details = {"original_error": original, "context": context}

        if _contains(text, _QUOTA_PHRASES) or _QUOTA_STATUS.search(text):
            error = DesignError(
                DesignErrorType.QUOTA_EXCEEDED,
                "The generation quota has been used up. Please try again later.",
                retryable=True,
                details=details,
            )
        elif _contains(text, _AUTH_PHRASES) or _AUTH_STATUS.search(text):
            error = DesignError(
                DesignErrorType.AUTHENTICATION_ERROR,
                "The generation service rejected the credentials. Check the API key configuration.",
                retryable=False,
                details=details,
            )
        elif _contains(text, _MODEL_PHRASES):
            error = DesignError(
                DesignErrorType.API_ERROR,
                "The generation model is unavailable. Please contact support.",
                retryable=False,
                details=details,
            )
        elif _contains(text, _POLICY_PHRASES):
            error = DesignError(
                DesignErrorType.CONTENT_POLICY_ERROR,
                "The request was blocked by the content policy. Please revise your prompt.",
                retryable=False,
                details=details,
            )
        elif isinstance(raw_failure, _NETWORK_ERROR_TYPES) or _contains(text, _NETWORK_PHRASES):
            error = DesignError(
                DesignErrorType.NETWORK_ERROR,
                "Network connection failed. Check your connection and try again.",
                retryable=True,
                details=details,
            )
        elif isinstance(raw_failure, _TIMEOUT_ERROR_TYPES) or _contains(text, _TIMEOUT_PHRASES):
            error = DesignError(
                DesignErrorType.TIMEOUT_ERROR,
                "The request timed out. Please try again shortly.",
                retryable=True,
                details=details,
            )
        elif _SERVER_ERROR.search(text):
            error = DesignError(
                DesignErrorType.API_ERROR,
                "The generation service is temporarily unavailable. Please try again shortly.",
                retryable=True,
                details=details,
            )
        else:
            error = DesignError(
                DesignErrorType.API_ERROR,
                f"An error occurred while generating the design: {original}",
                retryable=True,
                details=details,
            )

        logger.error(
            f"[{context or 'unknown'}] {error.kind.value} "
            f"(retryable={error.retryable}): {original}"
        )
        return error
