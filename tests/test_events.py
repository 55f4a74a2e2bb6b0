"""Tests for event fan-out, the audit log and webhook delivery."""

import json
import tempfile
import urllib.error
from pathlib import Path

import pytest

from appreg.config import Settings
from appreg.events.notifier import EventNotifier
from appreg.registry.store import Registry
from appreg.runtime import build_notifier
from appreg.security.audit_log import AuditLogger
from appreg.security.webhook_manager import WebhookManager


class _FakeResponse:
    def __init__(self, status=200, body=b"ok"):
        self.status = status
        self._body = body

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


# --- Notifier ---


def test_subscription_filters_by_kind():
    notifier = EventNotifier()
    nodes, everything = [], []
    notifier.subscribe(nodes.append, kinds=["node-added", "node-removed"])
    notifier.subscribe(everything.append)

    notifier.publish("metadata-updated", "owner", version="1.0")
    notifier.publish("node-added", "owner", url="https://a", is_approved=True)

    assert [e.kind for e in nodes] == ["node-added"]
    assert [e.sequence for e in everything] == [1, 2]
    assert everything[1].payload == {"url": "https://a", "is_approved": True}
    assert everything[0].emitted_at


def test_unsubscribe():
    notifier = EventNotifier()
    seen = []
    sub = notifier.subscribe(seen.append)
    assert notifier.unsubscribe(sub)
    assert not notifier.unsubscribe(sub)
    notifier.publish("node-removed", "owner", url="https://a")
    assert seen == []
    assert notifier.subscriber_count == 0


def test_unknown_kinds_rejected():
    notifier = EventNotifier()
    with pytest.raises(ValueError):
        notifier.subscribe(print, kinds=["node-exploded"])
    with pytest.raises(ValueError):
        notifier.publish("node-exploded", "owner")


def test_subscriber_error_is_isolated(caplog):
    notifier = EventNotifier()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(seen.append)

    event = notifier.publish("node-added", "owner", url="https://a", is_approved=True)

    assert seen == [event]
    assert "failed on node-added" in caplog.text


def test_events_prepared_out_of_order_are_delivered_in_sequence():
    notifier = EventNotifier()
    seen = []
    notifier.subscribe(lambda event: seen.append(event.sequence))

    first = notifier.prepare("node-added", "owner", url="https://a", is_approved=True)
    second = notifier.prepare("node-removed", "owner", url="https://a")

    notifier.deliver([second])
    assert seen == []
    notifier.deliver([first])
    assert seen == [1, 2]


# --- Audit log ---


def test_audit_log_records_registry_events():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        notifier = EventNotifier()
        notifier.subscribe(audit.handle_event)
        reg = Registry("owner", notifier=notifier)

        reg.add_node("stranger", "https://p")
        reg.approve_node("owner", "https://p")
        reg.update_app_info("owner", "1.0", "", "")

        entries = audit.get_events()
        assert [e.action for e in entries] == [
            "metadata-updated",
            "node-status-changed",
            "node-added",
        ]
        added = audit.get_events(action="node-added")[0]
        assert added.actor == "stranger"
        assert added.resource_type == "node"
        assert added.resource_id == "https://p"
        assert added.details == {"url": "https://p", "is_approved": False}

        assert len(audit.get_events(actor="owner")) == 2
        assert len(audit.get_events(resource_id="https://p")) == 2


def test_audit_export_formats():
    with tempfile.TemporaryDirectory() as tmpdir:
        audit = AuditLogger(Path(tmpdir))
        audit.log_event("owner", "manager-added", "manager", "mgr", {"manager": "mgr"}, sequence=1)

        csv = audit.export_events("csv")
        assert csv.splitlines()[0].startswith("id,timestamp,sequence,actor")
        assert "manager-added" in csv

        data = json.loads(audit.export_events("json"))
        assert data[0]["resource_id"] == "mgr"


# --- Webhooks ---


def test_register_webhook_defaults_to_all_events():
    with tempfile.TemporaryDirectory() as tmpdir:
        manager = WebhookManager(Path(tmpdir))
        wh = manager.register_webhook("https://hooks.example/x")
        assert "node-added" in wh.events
        assert manager.get_webhook(wh.id).url == "https://hooks.example/x"
        with pytest.raises(ValueError):
            manager.register_webhook("https://hooks.example/y", ["bogus"])


def test_webhook_delivery_is_signed(monkeypatch):
    sent = []

    def fake_urlopen(req, timeout=None):
        sent.append(req)
        return _FakeResponse()

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)

    with tempfile.TemporaryDirectory() as tmpdir:
        manager = WebhookManager(Path(tmpdir))
        wh = manager.register_webhook("https://hooks.example/x", ["node-added"], secret="s3cret")
        manager.register_webhook("https://hooks.example/other", ["node-removed"])

        notifier = EventNotifier()
        notifier.subscribe(manager.handle_event)
        reg = Registry("owner", notifier=notifier)
        reg.add_node("owner", "https://a")

        assert len(sent) == 1
        req = sent[0]
        assert req.full_url == "https://hooks.example/x"
        assert req.get_header("X-appreg-event") == "node-added"
        assert req.get_header("X-appreg-signature") == WebhookManager.compute_signature(
            req.data, "s3cret"
        )
        body = json.loads(req.data)
        assert body["payload"] == {"url": "https://a", "is_approved": True}

        deliveries = manager.get_deliveries(wh.id)
        assert len(deliveries) == 1
        assert deliveries[0].success


def test_failed_delivery_is_recorded_and_retryable(monkeypatch):
    calls = []

    def flaky_urlopen(req, timeout=None):
        calls.append(req)
        if len(calls) == 1:
            raise urllib.error.URLError("connection refused")
        return _FakeResponse(status=204, body=b"")

    monkeypatch.setattr("urllib.request.urlopen", flaky_urlopen)

    with tempfile.TemporaryDirectory() as tmpdir:
        manager = WebhookManager(Path(tmpdir))
        manager.register_webhook("https://hooks.example/x", ["node-removed"])

        first = manager.fire_webhook("node-removed", {"url": "https://a"})[0]
        assert not first.success
        assert "connection refused" in first.response_body

        retried = manager.retry_delivery(first.id)
        assert retried.success
        assert retried.response_status == 204
        assert len(manager.get_deliveries()) == 2


def test_inactive_webhook_not_fired(monkeypatch):
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda req, timeout=None: pytest.fail("should not deliver")
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        manager = WebhookManager(Path(tmpdir))
        wh = manager.register_webhook("https://hooks.example/x")
        manager.toggle_webhook(wh.id, active=False)
        assert manager.fire_webhook("node-added", {}) == []
        assert manager.delete_webhook(wh.id)
        assert manager.list_webhooks() == []


def test_build_notifier_wires_audit_and_webhooks():
    with tempfile.TemporaryDirectory() as tmpdir:
        settings = Settings(
            state_path=str(Path(tmpdir) / "registry.json"),
            audit_dir=str(Path(tmpdir) / "audit"),
            webhook_dir=str(Path(tmpdir) / "hooks"),
        )
        notifier = build_notifier(settings)
        assert notifier.subscriber_count == 2

        reg = Registry("owner", notifier=notifier)
        reg.add_node("owner", "https://a")
        entries = AuditLogger(Path(settings.audit_dir)).get_events()
        assert [e.action for e in entries] == ["node-added"]
