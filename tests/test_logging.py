from wabridge.observability.logging import REDACTED, redact_secrets


def test_redacts_top_level_tokens():
    out = redact_secrets(None, "info", {"event": "provider_send", "jwt": "secret", "to": "+1555"})
    assert out == {"event": "provider_send", "jwt": REDACTED, "to": "+1555"}


def test_redacts_tokens_inside_dict_values():
    out = redact_secrets(None, "info", {
        "event": "platform_event",
        "metadata": {"name": "acme", "jwt": "secret", "whatsappNumber": "+1999"},
        "headers": {"Authorization": "Bearer secret"},
    })
    assert out["metadata"] == {"name": "acme", "jwt": REDACTED, "whatsappNumber": "+1999"}
    assert out["headers"] == {"Authorization": REDACTED}


def test_leaves_other_fields_alone():
    event = {"event": "inbound_queued", "sender": "+1555", "depth": 3}
    assert redact_secrets(None, "info", dict(event)) == event
