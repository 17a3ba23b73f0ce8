"""Tests for notification email delivery."""

import logging

import httpx

from volunteer_hub.core.config import settings
from volunteer_hub.services import email_service


def _use_resend(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_PROVIDER", "resend")
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")


def _message() -> email_service.EmailMessage:
    return email_service.EmailMessage("vol@helping.org", "Task completed: Sort cans", "<p>x</p>", "x")


def test_resend_failure_is_sent_once_and_logged(monkeypatch, caplog):
    _use_resend(monkeypatch)
    calls = []

    def capture_post(self, url, **kwargs):
        calls.append(url)
        return httpx.Response(503, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.Client, "post", capture_post)

    with caplog.at_level(logging.WARNING, logger=email_service.__name__):
        assert email_service.send_email(_message()) is False

    assert calls == [email_service.RESEND_SEND_URL]
    assert "Email delivery failed: Task completed: Sort cans" in caplog.text


def test_resend_network_error_is_not_retried(monkeypatch):
    _use_resend(monkeypatch)
    calls = []

    def failing_post(self, url, **kwargs):
        calls.append(url)
        raise httpx.ConnectError("down")

    monkeypatch.setattr(httpx.Client, "post", failing_post)

    assert email_service.send_email(_message()) is False
    assert len(calls) == 1


def test_resend_success_posts_payload(monkeypatch):
    _use_resend(monkeypatch)
    captured = {}

    def capture_post(self, url, **kwargs):
        captured.update(kwargs)
        return httpx.Response(200, json={"id": "email_1"}, request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.Client, "post", capture_post)

    assert email_service.send_email(_message()) is True
    assert captured["json"]["to"] == ["vol@helping.org"]
    assert captured["headers"]["Authorization"] == "Bearer re_test"


def test_log_provider_does_not_call_out(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_PROVIDER", "log")

    def unexpected_post(self, url, **kwargs):
        raise AssertionError("no HTTP call expected")

    monkeypatch.setattr(httpx.Client, "post", unexpected_post)

    assert email_service.send_welcome("vol@helping.org", "Victor", "Helping Hands", "volunteer") is True
