"""Outbound integrations driven by registry events: webhooks and the audit log."""
