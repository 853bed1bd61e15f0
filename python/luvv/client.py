"""Async client for the generation gateway.

The wizard front end always gets three messages back: when the gateway is
unreachable, answers non-2xx, or returns a body without a message list, the
client substitutes generic greetings that mention only the two names.
"""

import httpx

from luvv.logging import get_logger
from luvv.services.redact import safe_kv

logger = get_logger(__name__)

GENERATE_PATH = "/api/generate-luvv"
DEFAULT_TIMEOUT_S = 60.0

FALLBACK_TEMPLATES = (
    "To {recipient}, Wishing you a wonderful Valentine's Day filled with joy. "
    "You are truly appreciated. With love, {sender}",
    "Dearest {recipient}, thank you for being such a wonderful part of my life. "
    "Happy Valentine's Day! Best, {sender}",
    "Happy Valentine's Day, {recipient}! Sending you warmth and happiness today and always. "
    "From {sender}",
)


def fallback_messages(recipient: str, sender: str) -> list[str]:
    """Generic messages used when the gateway cannot answer."""
    return [template.format(recipient=recipient, sender=sender) for template in FALLBACK_TEMPLATES]


class LuvvClient:
    """Calls POST /api/generate-luvv on a gateway.

    Args:
        base_url: Gateway origin, e.g. "https://luvv.example".
        client: Shared httpx.AsyncClient; the caller owns its lifecycle.
        timeout_s: Whole-request timeout.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        self._url = base_url.rstrip("/") + GENERATE_PATH
        self._client = client
        self._timeout_s = timeout_s

    async def generate_messages(
        self, recipient: str, sender: str, relationship: str, tone: str
    ) -> list[str]:
        """Return the gateway's messages, or the generic fallback on any failure."""
        try:
            response = await self._client.post(
                self._url,
                json={
                    "recipient": recipient,
                    "sender": sender,
                    "relationship": relationship,
                    "tone": tone,
                },
                timeout=self._timeout_s,
            )
        except httpx.HTTPError as e:
            logger.warning("client.generate.transport_error", error_type=type(e).__name__)
            return fallback_messages(recipient, sender)

        if response.is_error:
            logger.warning(
                "client.generate.http_error",
                status_code=response.status_code,
                error_code=self._error_code(response),
            )
            return fallback_messages(recipient, sender)

        try:
            data = response.json()
        except ValueError:
            logger.warning("client.generate.malformed_body")
            return fallback_messages(recipient, sender)

        messages = data.get("messages") if isinstance(data, dict) else None
        if not isinstance(messages, list) or not messages:
            logger.warning("client.generate.malformed_body")
            return fallback_messages(recipient, sender)

        logger.info(
            "client.generate.finished",
            **safe_kv(provider=data.get("provider"), messages_count=len(messages)),
        )
        return [str(message) for message in messages]

    def _error_code(self, response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("code") if isinstance(body, dict) else None
