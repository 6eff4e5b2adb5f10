import httpx
from typer.testing import CliRunner
from wabridge import cli

runner = CliRunner()


def fake_post(status, body=None, text=None):
    calls = []

    def post(url, **kwargs):
        calls.append((url, kwargs))
        req = httpx.Request("POST", url)
        if body is not None:
            return httpx.Response(status, json=body, request=req)
        return httpx.Response(status, text=text or "", request=req)

    return post, calls


def test_register_reports_success(monkeypatch):
    post, calls = fake_post(200, text='<form id="finish" method="post" action="about:blank"></form>')
    monkeypatch.setattr(cli.httpx, "post", post)
    res = runner.invoke(cli.app, ["register", "+1999"])
    assert res.exit_code == 0
    assert "registered +1999" in res.output
    assert calls[0][1]["data"]["whatsappNumber"] == "+1999"


def test_register_fails_when_form_is_rerendered(monkeypatch):
    post, _ = fake_post(200, text="WhatsApp number is required.<br>")
    monkeypatch.setattr(cli.httpx, "post", post)
    res = runner.invoke(cli.app, ["register", " "])
    assert res.exit_code == 1
    assert "was not registered" in res.output


def test_register_fails_on_http_error(monkeypatch):
    post, _ = fake_post(400, body={"detail": "bad"})
    monkeypatch.setattr(cli.httpx, "post", post)
    res = runner.invoke(cli.app, ["register", "+1999"])
    assert res.exit_code == 1
    assert "400" in res.output


def test_pull_prints_table(monkeypatch):
    post, _ = fake_post(200, body={"external_resources": [{
        "external_id": "e-1", "thread_id": "+1555", "created_at": "2026-01-01T00:00:00.000Z", "message": "hello",
    }]})
    monkeypatch.setattr(cli.httpx, "post", post)
    res = runner.invoke(cli.app, ["pull", "+1999"])
    assert res.exit_code == 0
    assert "+1555" in res.output and "hello" in res.output


def test_pull_fails_cleanly_on_error(monkeypatch):
    post, _ = fake_post(400, text="invalid_metadata")
    monkeypatch.setattr(cli.httpx, "post", post)
    res = runner.invoke(cli.app, ["pull", "+1999"])
    assert res.exit_code == 1
    assert "invalid_metadata" in res.output


def test_channelback_fails_cleanly_on_error(monkeypatch):
    post, _ = fake_post(400, body={"detail": {"error": "invalid_fields", "fields": ["thread_id"]}})
    monkeypatch.setattr(cli.httpx, "post", post)
    res = runner.invoke(cli.app, ["channelback", "+1555", "hi", "+1999"])
    assert res.exit_code == 1
