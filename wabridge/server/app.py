from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import ValidationError
from wabridge.config import Settings, load_settings
from wabridge.core.relay import Relay
from wabridge.domain.models import AdminSetupForm, AdminUiForm, ChannelbackRequest, CredentialBundle, InboundEvent
from wabridge.observability.logging import configure_logging, get_logger, bind_request, clear_request
from wabridge.observability import metrics
from wabridge.server import params
from wabridge.server.admin_html import admin_ui_html, finish_setup_html

log = get_logger("app")

def create_app(settings: Settings | None = None, relay: Relay | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level, settings.json_logs)
    relay = relay or Relay(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await relay.start()
        log.info("relay_listening", host=settings.host, port=settings.port)
        yield
        await relay.stop()

    app = FastAPI(title="Messages API Relay", version="0.1.0", lifespan=lifespan)
    app.state.relay = relay

    @app.middleware("http")
    async def _bind_log_context(request: Request, call_next):
        bind_request(request.url.path, uuid.uuid4().hex[:12])
        try:
            return await call_next(request)
        finally:
            clear_request()

    @app.get(settings.metrics_path)
    async def metrics_endpoint():
        return PlainTextResponse(generate_latest().decode("utf-8"), media_type=CONTENT_TYPE_LATEST)

    # Ticketing platform routes

    @app.get("/manifest")
    async def manifest():
        log.info("manifest_requested")
        return relay.manifest().model_dump()

    @app.post("/admin_ui", response_class=HTMLResponse)
    async def admin_ui(request: Request):
        body = await params.read_body(request)
        f = params.form(AdminUiForm, body)
        log.info("admin_ui_requested")
        return HTMLResponse(admin_ui_html(f.name, params.metadata(body), f.return_url))

    @app.post("/admin_ui_2", response_class=HTMLResponse)
    async def admin_ui_2(request: Request):
        f = params.form(AdminSetupForm, await params.read_body(request))
        name, jwt, return_url = f.name, f.jwt, f.return_url
        number = f.whatsapp_number.strip()
        if not number:
            log.warning("admin_setup_rejected", reason="missing_whatsapp_number")
            return HTMLResponse(admin_ui_html(name, CredentialBundle(jwt=jwt), return_url, warning="WhatsApp number is required."))
        bundle = relay.complete_setup(name=name, jwt=jwt, whatsapp_number=number)
        log.info("admin_setup_completed", name=name, recipient=number)
        return HTMLResponse(finish_setup_html(name, bundle, return_url))

    @app.post("/pull")
    async def pull(request: Request):
        body = await params.read_body(request)
        bundle = params.metadata(body)
        log.debug("pull_requested", recipient=bundle.whatsapp_number, state=params.state(body))
        res = await relay.pull(bundle)
        return res.model_dump()

    @app.post("/channelback")
    async def channelback(request: Request):
        body = await params.read_body(request)
        bundle = params.metadata(body, required=True)
        f = params.form(ChannelbackRequest, body)
        ack = await relay.channelback(bundle, f.thread_id, f.message)
        return JSONResponse(ack.model_dump(), status_code=200)

    @app.get("/clickthrough")
    async def clickthrough(external_id: str | None = None):
        log.info("clickthrough_requested", external_id=external_id)
        raise HTTPException(status_code=501, detail="clickthrough_not_supported")

    @app.get("/healthcheck")
    async def healthcheck():
        return PlainTextResponse("OK")

    @app.post("/event_callback")
    async def event_callback(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = {}
        events = body.get("events") if isinstance(body, dict) else None
        for evt in events or []:
            log.info("platform_event", event=evt)
        return PlainTextResponse("OK")

    # Provider routes

    @app.post("/inbound")
    async def inbound(request: Request):
        try:
            raw = await request.json()
            evt = InboundEvent.model_validate(raw)
        except (ValueError, ValidationError) as e:
            metrics.inbound_messages.labels(result="malformed").inc()
            log.warning("inbound_malformed", error=str(e))
            return PlainTextResponse("OK")

        if evt.direction != "inbound":
            metrics.inbound_messages.labels(result="ignored").inc()
            log.info("inbound_ignored", direction=evt.direction, message_uuid=evt.message_uuid)
            return PlainTextResponse("OK")

        text = evt.message.content.text if evt.message else None
        if evt.sender is None or evt.to is None or text is None:
            metrics.inbound_messages.labels(result="unsupported").inc()
            log.warning(
                "inbound_unsupported_content",
                message_uuid=evt.message_uuid,
                content_type=evt.message.content.type if evt.message else None,
            )
            return PlainTextResponse("OK")

        await relay.on_message_received(evt.sender.number, evt.to.number, text)
        return PlainTextResponse("OK")

    return app
