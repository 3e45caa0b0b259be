"""Single mapping from OpenAI SDK exceptions to the knowme error hierarchy.

Every OpenAI-backed provider funnels its failures through
:func:`classify_openai_error` so that the rest of the application only
ever sees :class:`~knowme.utils.errors.KnowMeError` subclasses.

Classification prefers the SDK's structured fields (exception type,
``status_code``, ``code``).  Matching on message text is a last resort
and lives only in :func:`_mentions_quota`.
"""

from __future__ import annotations

import httpx
import openai

from knowme.utils.errors import (
    ChatError,
    KnowMeError,
    ProviderUnavailableError,
    RateLimitError,
    UpstreamTimeoutError,
)

# Error codes OpenAI returns when the account, not the request, is the problem.
_UNAVAILABLE_CODES = frozenset(
    {
        "insufficient_quota",
        "billing_hard_limit_reached",
        "billing_not_active",
        "invalid_api_key",
        "account_deactivated",
    }
)

_QUOTA_MARKERS = ("quota", "billing", "credit balance")


def _mentions_quota(message: str) -> bool:
    """Best-effort text match for quota/billing failures without a structured code."""
    lowered = message.lower()
    return any(marker in lowered for marker in _QUOTA_MARKERS)


def classify_openai_error(
    exc: BaseException,
    *,
    provider_name: str = "openai",
    default: type[KnowMeError] = ChatError,
    default_message: str | None = None,
) -> KnowMeError:
    """Return the knowme error that best describes *exc*.

    Parameters
    ----------
    exc:
        The exception raised by the openai SDK (or by httpx while reading a
        streamed body).
    provider_name:
        Stamped on the returned error for log output.
    default:
        Error class used when *exc* is not a rate limit, an availability
        problem or a timeout.  Chat callers keep :class:`ChatError`;
        indexing and extraction pass their own class.
    default_message:
        Message for the *default* class; its built-in default when ``None``.
    """
    if isinstance(exc, KnowMeError):
        return exc

    if isinstance(exc, (openai.APITimeoutError, httpx.TimeoutException)):
        return UpstreamTimeoutError(provider_name=provider_name)

    if isinstance(exc, openai.APIStatusError):
        code = getattr(exc, "code", None)
        status = exc.status_code
        if code in _UNAVAILABLE_CODES:
            return ProviderUnavailableError(provider_name=provider_name)
        if status in (401, 402, 403):
            return ProviderUnavailableError(provider_name=provider_name)
        if status == 429:
            # OpenAI reports an exhausted quota as 429 too.
            if _mentions_quota(str(exc.message)):
                return ProviderUnavailableError(provider_name=provider_name)
            return RateLimitError(provider_name=provider_name)
        if status in (408, 504):
            return UpstreamTimeoutError(provider_name=provider_name)

    if isinstance(exc, openai.APIError) and _mentions_quota(str(exc.message)):
        return ProviderUnavailableError(provider_name=provider_name)

    if default_message is None:
        return default(provider_name=provider_name)
    return default(message=default_message, provider_name=provider_name)


def classify_stream_error(code: str | None, message: str | None, *, provider_name: str = "openai") -> KnowMeError:
    """Map an ``error`` / ``response.failed`` event inside an SSE body."""
    if code in _UNAVAILABLE_CODES or (message and _mentions_quota(message)):
        return ProviderUnavailableError(provider_name=provider_name)
    if code == "rate_limit_exceeded":
        return RateLimitError(provider_name=provider_name)
    if code in ("timeout", "server_timeout"):
        return UpstreamTimeoutError(provider_name=provider_name)
    return ChatError(provider_name=provider_name)
