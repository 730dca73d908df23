"""google-genai failures -> ProviderCallError.

The SDK reports HTTP failures as ``google.genai.errors.APIError`` with the
status on ``.code``; transport failures surface as httpx exceptions. Both are
mapped onto one error type with a status code and, where the cause is
recognizable, an actionable hint.
"""

from __future__ import annotations

import asyncio

import httpx

from geminichat.errors import ProviderCallError, RateLimitError, _walk_exception_chain


def extract_status_code(exc: BaseException) -> int | None:
    """First HTTP status found along the exception chain."""
    for e in _walk_exception_chain(exc):
        candidates = (
            getattr(e, "code", None),
            getattr(e, "status_code", None),
            getattr(getattr(e, "response", None), "status_code", None),
        )
        for value in candidates:
            if isinstance(value, int) and 100 <= value <= 599:
                return value
    return None


def _hint_for(exc: BaseException, status_code: int | None) -> str | None:
    text = str(exc).lower()
    if status_code in {401, 403} or (status_code == 400 and "api key" in text):
        # Gemini answers 400, not 401, for a malformed key.
        return (
            "Check credentials: set GEMINI_API_KEY, or GOOGLE_CLOUD_PROJECT "
            "with vertexai=True."
        )
    if status_code == 404:
        return "Check the model name; ChatModelName lists known identifiers."
    if status_code == 429:
        return "Quota or rate limit exhausted; slow down or raise the quota."
    for e in _walk_exception_chain(exc):
        if isinstance(e, httpx.TimeoutException):
            return "The request timed out before Gemini answered."
        if isinstance(e, httpx.TransportError):
            return "Could not reach the Gemini endpoint; check network or proxy settings."
    return None


def wrap_provider_error(
    exc: BaseException,
    *,
    provider: str,
    phase: str,
    message: str | None = None,
) -> ProviderCallError:
    """Return *exc* as a ProviderCallError; cancellation is re-raised as is."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    if isinstance(exc, ProviderCallError):
        exc.provider = exc.provider or provider
        exc.phase = exc.phase or phase
        return exc

    status_code = extract_status_code(exc)
    err_cls = RateLimitError if status_code == 429 else ProviderCallError

    summary = message or f"{provider} {phase} failed"
    if status_code is not None:
        summary = f"{summary} (status={status_code})"
    cause = str(exc)
    return err_cls(
        f"{summary}: {cause}" if cause else summary,
        hint=_hint_for(exc, status_code),
        status_code=status_code,
        provider=provider,
        phase=phase,
    )
