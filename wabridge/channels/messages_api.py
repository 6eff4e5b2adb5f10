from __future__ import annotations
from typing import Any
import httpx
from wabridge.channels.base import MessageSender
from wabridge.config import Settings
from wabridge.core.retry import RateLimitError, RetryableError, TransientError, retry_async
from wabridge.domain.models import CredentialBundle, DispatchOutcome, DispatchResult
from wabridge.observability.logging import get_logger

log = get_logger("messages_api")

class MessagesApiClient(MessageSender):
    """Sends WhatsApp text messages through the Messages API.

    Auth is the per-account bearer token carried in the credential bundle,
    so one client serves every registered account.
    """
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.url = settings.provider_messages_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.provider_timeout_s),
                transport=self._transport,
            )
        return self._client

    def build_payload(self, from_number: str, to: str, text: str) -> dict[str, Any]:
        return {
            "from": {"type": "whatsapp", "number": from_number},
            "to": {"type": "whatsapp", "number": to},
            "message": {
                "content": {"type": "text", "text": text},
                "whatsapp": {
                    "policy": self.settings.whatsapp_policy,
                    "locale": self.settings.whatsapp_locale,
                },
            },
        }

    async def _post(self, payload: dict[str, Any], jwt: str) -> httpx.Response:
        resp = await self._get_client().post(
            self.url,
            json=payload,
            headers={
                "Authorization": f"Bearer {jwt}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )
        if resp.status_code == 429:
            raise RateLimitError("provider rate limited", status_code=resp.status_code)
        if resp.status_code >= 500:
            raise TransientError(f"provider error {resp.status_code}", status_code=resp.status_code)
        return resp

    async def send_text(self, bundle: CredentialBundle, to: str, text: str) -> DispatchResult:
        payload = self.build_payload(bundle.whatsapp_number, to, text)
        log.debug("provider_send", to=to, from_number=bundle.whatsapp_number, url=self.url)
        attempts = 0

        def _count(n: int) -> None:
            nonlocal attempts
            attempts = n

        try:
            resp = await retry_async(
                self._post,
                payload,
                bundle.jwt,
                max_attempts=self.settings.provider_retry_attempts,
                min_wait=self.settings.provider_retry_min_wait_s,
                max_wait=self.settings.provider_retry_max_wait_s,
                on_attempt=_count,
            )
        except RetryableError as e:
            return DispatchResult(
                outcome=DispatchOutcome.provider_rejected,
                to=to,
                status_code=e.status_code,
                attempts=attempts,
                error=str(e),
            )
        except httpx.HTTPError as e:
            return DispatchResult(
                outcome=DispatchOutcome.network_failure,
                to=to,
                attempts=attempts,
                error=f"{type(e).__name__}: {e}",
            )

        if not resp.is_success:
            return DispatchResult(
                outcome=DispatchOutcome.provider_rejected,
                to=to,
                status_code=resp.status_code,
                attempts=attempts,
                error=resp.text[:500],
            )
        return DispatchResult(
            outcome=DispatchOutcome.delivered,
            to=to,
            status_code=resp.status_code,
            provider_message_id=_message_uuid(resp),
            attempts=attempts,
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

def _message_uuid(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message_uuid")
    return None
