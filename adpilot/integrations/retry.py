import aiohttp
import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from adpilot.logging import get_logger

_logger = get_logger(__name__)

RETRYABLE_STATUSES = {408, 409, 429}


def _retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUSES or status >= 500


def _is_retryable(exc: BaseException) -> bool:
    from google.genai.errors import APIError as GeminiError

    if isinstance(exc, httpx.HTTPStatusError):
        return _retryable_status(exc.response.status_code)

    if isinstance(exc, aiohttp.ClientResponseError):
        return _retryable_status(exc.status)

    if isinstance(exc, GeminiError):
        return exc.code in {408, 429} or exc.code >= 500

    return isinstance(exc, httpx.TransportError | aiohttp.ClientConnectionError)


def _log_retry(retry_state) -> None:
    _logger.warning(
        "Remote call failed (attempt %d/3), retrying: %s",
        retry_state.attempt_number,
        retry_state.outcome.exception(),
    )


@retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(3),
    wait=wait_exponential_jitter(initial=0.5, max=8, jitter=2),
    reraise=True,
    before_sleep=_log_retry,
)
async def with_retry(fn, *args, **kwargs):
    return await fn(*args, **kwargs)
