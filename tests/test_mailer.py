import httpx
import pytest

import mailer
from config import settings

# the autouse outbox fixture replaces mailer.send_email
send_email = mailer.send_email


def test_send_email_posts_to_brevo(monkeypatch):
    captured = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        captured.update(url=url, json=json, headers=headers)
        return httpx.Response(201, request=httpx.Request("POST", url))

    monkeypatch.setattr(mailer.httpx, "post", fake_post)

    send_email(["a@example.com", "b@example.com"], "Over budget", "<p>hi</p>")

    assert captured["url"] == settings.BREVO_API_URL
    assert captured["headers"]["api-key"] == "test-brevo-key"
    assert captured["json"]["to"] == [{"email": "a@example.com"}, {"email": "b@example.com"}]
    assert captured["json"]["subject"] == "Over budget"
    assert captured["json"]["htmlContent"] == "<p>hi</p>"


def test_send_email_raises_on_provider_error(monkeypatch):
    def fake_post(url, json=None, headers=None, timeout=None):
        return httpx.Response(500, request=httpx.Request("POST", url))

    monkeypatch.setattr(mailer.httpx, "post", fake_post)

    with pytest.raises(mailer.EmailError):
        send_email(["a@example.com"], "Over budget", "<p>hi</p>")


def test_send_email_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "BREVO_API_KEY", None)
    with pytest.raises(mailer.EmailError):
        send_email(["a@example.com"], "Over budget", "<p>hi</p>")


def test_send_email_requires_recipients():
    with pytest.raises(mailer.EmailError):
        send_email([], "Over budget", "<p>hi</p>")
