from __future__ import annotations
import asyncio, uuid
from datetime import datetime, timezone
from wabridge.channels.base import MessageSender
from wabridge.channels.messages_api import MessagesApiClient
from wabridge.config import Settings
from wabridge.core.queue_store import QueueStore
from wabridge.domain.models import (
    Author, AuthorField, ChannelbackAck, CredentialBundle, DispatchOutcome, DispatchResult,
    ExternalResource, Manifest, MessageRecord, PullResponse,
)
from wabridge.observability.logging import get_logger
from wabridge.observability import metrics

log = get_logger("relay")

TICKET_SUBJECT = "Customer request through WhatsApp"

def gen_id() -> str:
    return str(uuid.uuid4())

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def to_external_resource(record: MessageRecord, created_at: str) -> ExternalResource:
    # every message from one sender lands on the same ticket
    return ExternalResource(
        external_id=gen_id(),
        thread_id=record.sender,
        message=record.content,
        html_message=record.content,
        created_at=created_at,
        author=Author(
            external_id=record.sender,
            fields=[
                AuthorField(id="notes", value=f"Sent from WhatsApp number {record.sender}"),
                AuthorField(id="subject", value=TICKET_SUBJECT),
            ],
        ),
        allow_channelback=True,
    )

class Relay:
    """Single authority: owns the recipient queues and the outbound sender.

    Inbound provider events are queued per business number; the ticketing
    platform drains them with pull and answers through channelback.
    """
    def __init__(self, settings: Settings, store: QueueStore | None = None, sender: MessageSender | None = None):
        self.settings = settings
        self.store = store or QueueStore()
        self.sender = sender or MessagesApiClient(settings)
        self._dispatch_tasks: set[asyncio.Task] = set()

    async def start(self) -> None:
        for number in self.settings.registered_numbers:
            self.register(number)
        log.info("relay_started", registered=self.store.recipients())

    async def stop(self) -> None:
        try:
            results = await self.wait_for_dispatches()
            if results:
                log.info("relay_dispatches_flushed", count=len(results))
        finally:
            await self.sender.aclose()

    def manifest(self) -> Manifest:
        s = self.settings
        return Manifest(name=s.manifest_name, id=s.manifest_id, author=s.manifest_author, version=s.manifest_version)

    def register(self, whatsapp_number: str) -> bool:
        created = self.store.register(whatsapp_number)
        log.info("queue_registered" if created else "queue_already_registered", recipient=whatsapp_number)
        return created

    def complete_setup(self, name: str, jwt: str, whatsapp_number: str) -> CredentialBundle:
        """Register the account's queue and build the bundle the platform will store."""
        self.register(whatsapp_number)
        return CredentialBundle(name=name, jwt=jwt, whatsapp_number=whatsapp_number)

    async def on_message_received(self, sender: str, recipient: str, content: str) -> bool:
        record = MessageRecord(sender=sender, content=content)
        if not await self.store.append(recipient, record):
            metrics.inbound_messages.labels(result="dropped").inc()
            log.warning("inbound_dropped_unregistered", sender=sender, recipient=recipient)
            return False
        metrics.inbound_messages.labels(result="queued").inc()
        log.info("inbound_queued", sender=sender, recipient=recipient, depth=self.store.depth(recipient))
        return True

    async def pull(self, bundle: CredentialBundle) -> PullResponse:
        metrics.pull_requests.inc()
        recipient = bundle.whatsapp_number
        if not self.store.is_registered(recipient):
            log.info("pull_unregistered", recipient=recipient)
            return PullResponse()
        records = await self.store.drain(recipient)
        created_at = utc_now_iso()
        resources = [to_external_resource(r, created_at) for r in records]
        metrics.pulled_resources.inc(len(resources))
        log.info("pull_drained", recipient=recipient, count=len(resources))
        return PullResponse(external_resources=resources)

    async def channelback(self, bundle: CredentialBundle, thread_id: str, message: str) -> ChannelbackAck:
        """Hand the reply to the provider in the background and acknowledge immediately."""
        task = asyncio.create_task(self._dispatch(bundle, thread_id, message))
        self._dispatch_tasks.add(task)
        task.add_done_callback(self._dispatch_tasks.discard)
        ack = ChannelbackAck(external_id=gen_id())
        log.info("channelback_dispatched", to=thread_id, external_id=ack.external_id)
        return ack

    async def _dispatch(self, bundle: CredentialBundle, to: str, text: str) -> DispatchResult:
        try:
            result = await self.sender.send_text(bundle, to, text)
        except Exception as e:
            log.exception("channelback_dispatch_crashed", to=to)
            result = DispatchResult(outcome=DispatchOutcome.network_failure, to=str(to), error=f"{type(e).__name__}: {e}")
        metrics.channelbacks.labels(outcome=result.outcome.value).inc()
        if result.ok:
            log.info("channelback_result", **result.log_context())
        else:
            log.warning("channelback_result", **result.log_context())
        return result

    async def wait_for_dispatches(self) -> list[DispatchResult]:
        """Wait for in-flight channelback dispatches and return their results."""
        if not self._dispatch_tasks:
            return []
        results = []
        for outcome in await asyncio.gather(*list(self._dispatch_tasks), return_exceptions=True):
            if isinstance(outcome, BaseException):
                log.error("channelback_dispatch_failed", error=f"{type(outcome).__name__}: {outcome}")
                continue
            results.append(outcome)
        return results
