"""Tests for the email service and post-commit notification hooks."""

import threading
from unittest.mock import MagicMock

import pytest

from app.services.email_service import EmailResult, EmailService, build_branded_html, fmt_time, sanitize_subject
from app.services.notification_service import NotificationSummary, PostCommitHooks

APPOINTMENT = {
    "clientName": "Alice <script>",
    "clientEmail": "alice@example.com",
    "typeName": "Checkup",
    "date": "2026-02-20",
    "time": "14:30",
    "durationMinutes": 45,
    "location": "office",
    "status": "confirmed",
    "source": "owner",
}


def simulated_service() -> EmailService:
    service = EmailService()
    service.client = None
    return service


@pytest.mark.asyncio
async def test_email_simulated_when_sendgrid_not_configured():
    result = await simulated_service().send_booking_confirmation("alice@example.com", "Studio", APPOINTMENT)
    assert result == EmailResult(ok=True, provider="simulation")


@pytest.mark.asyncio
async def test_email_without_recipient_is_not_sent():
    result = await simulated_service().send_email(None, "Hi", "<p>Hi</p>")
    assert result.ok is False
    assert result.provider == "none"
    assert result.reason == "missing-to"


@pytest.mark.asyncio
async def test_sendgrid_failure_is_reported_not_raised():
    service = simulated_service()
    service.client = MagicMock()
    service.client.send.side_effect = RuntimeError("connection reset")
    result = await service.send_status_change("alice@example.com", "Studio", APPOINTMENT)
    assert result.ok is False
    assert result.provider == "sendgrid"
    assert "connection reset" in result.reason


@pytest.mark.asyncio
async def test_sendgrid_success():
    service = simulated_service()
    service.client = MagicMock()
    service.client.send.return_value = MagicMock(status_code=202)
    result = await service.send_owner_alert("owner@example.com", "Studio", APPOINTMENT)
    assert result == EmailResult(ok=True, provider="sendgrid")
    message = service.client.send.call_args.args[0]
    assert "[Owner Alert]" in message.subject.subject


def test_branded_html_escapes_values():
    html = build_branded_html("Studio & Co", "Title", "Hi Alice <script>", [("Client", "<b>x</b>")])
    assert "<script>" not in html
    assert "&lt;b&gt;x&lt;/b&gt;" in html
    assert "Studio &amp; Co" in html


def test_fmt_time_and_subject_sanitizing():
    assert fmt_time("00:05") == "12:05 AM"
    assert fmt_time("12:00") == "12:00 PM"
    assert fmt_time("14:30") == "2:30 PM"
    assert sanitize_subject("Hello\r\nBcc: evil@example.com") == "Hello Bcc: evil@example.com"


@pytest.mark.asyncio
async def test_hooks_summary_counts_successes():
    hooks = PostCommitHooks()

    async def ok():
        return EmailResult(ok=True, provider="simulation")

    async def missing():
        return EmailResult(ok=False, provider="none", reason="missing-to")

    hooks.add("client", ok)
    hooks.add("owner", ok)
    hooks.add("nobody", missing)
    assert len(hooks) == 3

    summary = await hooks.run()
    assert summary == NotificationSummary(mode="simulation", sent=2)
    assert len(hooks) == 0


@pytest.mark.asyncio
async def test_hooks_swallow_exceptions():
    hooks = PostCommitHooks()

    async def boom():
        raise RuntimeError("provider exploded")

    async def ok():
        return EmailResult(ok=True, provider="sendgrid")

    hooks.add("boom", boom)
    hooks.add("ok", ok)
    summary = await hooks.run()
    assert summary.as_dict() == {"mode": "sendgrid", "sent": 1}


@pytest.mark.asyncio
async def test_no_hooks_means_no_notifications():
    assert (await PostCommitHooks().run()).as_dict() == {"mode": "none", "sent": 0}


@pytest.mark.asyncio
async def test_sendgrid_sends_from_hooks_run_concurrently():
    # Each send waits until the other one is also in flight
    barrier = threading.Barrier(2, timeout=5)

    def send(message):
        barrier.wait()
        return MagicMock(status_code=202)

    service = simulated_service()
    service.client = MagicMock()
    service.client.send.side_effect = send

    hooks = PostCommitHooks()
    hooks.add("client", lambda: service.send_booking_confirmation("alice@example.com", "Studio", APPOINTMENT))
    hooks.add("owner", lambda: service.send_owner_alert("owner@example.com", "Studio", APPOINTMENT))

    summary = await hooks.run()
    assert summary.as_dict() == {"mode": "sendgrid", "sent": 2}
    assert service.client.send.call_count == 2
