"""Tests for the appreg command line."""

import json

from click.testing import CliRunner

from appreg.cli import main


def _invoke(tmp_path, *args):
    runner = CliRunner()
    env = {
        "APPREG_AUDIT_DIR": str(tmp_path / "audit"),
        "APPREG_WEBHOOK_DIR": str(tmp_path / "hooks"),
        "APPREG_LOG_LEVEL": "ERROR",
    }
    return runner.invoke(
        main, ["--state", str(tmp_path / "registry.json"), *args], env=env, catch_exceptions=False
    )


def test_init_and_owner(tmp_path):
    result = _invoke(tmp_path, "init", "alice")
    assert result.exit_code == 0
    assert "alice" in result.output

    result = _invoke(tmp_path, "owner", "show")
    assert result.output.strip() == "alice"

    assert _invoke(tmp_path, "init", "bob").exit_code == 1


def test_node_workflow(tmp_path):
    _invoke(tmp_path, "init", "alice")

    result = _invoke(tmp_path, "node", "add", "https://a", "--as", "alice")
    assert "approved" in result.output
    result = _invoke(tmp_path, "node", "add", "https://b", "--as", "stranger")
    assert "pending" in result.output

    result = _invoke(tmp_path, "node", "approve", "https://b", "--as", "stranger")
    assert result.exit_code == 1
    assert "permission_denied" in result.output

    result = _invoke(tmp_path, "node", "approve-batch", "https://b", "https://zzz", "--as", "alice")
    assert result.exit_code == 0
    assert "Approved 1 of 2" in result.output

    result = _invoke(tmp_path, "node", "info", "https://b")
    assert "approved" in result.output

    result = _invoke(tmp_path, "node", "remove", "https://a", "--as", "alice")
    assert result.exit_code == 0
    result = _invoke(tmp_path, "node", "info", "https://a")
    assert result.exit_code == 1
    assert "not_found" in result.output

    result = _invoke(tmp_path, "node", "list")
    assert "https://b" in result.output


def test_managers_and_ownership(tmp_path):
    _invoke(tmp_path, "init", "alice")
    assert _invoke(tmp_path, "manager", "add", "bob", "--as", "alice").exit_code == 0
    assert "yes" in _invoke(tmp_path, "manager", "check", "bob").output

    result = _invoke(tmp_path, "manager", "remove", "alice", "--as", "alice")
    assert result.exit_code == 1
    assert "invariant_violation" in result.output

    assert _invoke(tmp_path, "owner", "transfer", "carol", "--as", "alice").exit_code == 0
    result = _invoke(tmp_path, "app", "update", "--version", "1.0", "--as", "alice")
    assert result.exit_code == 1
    result = _invoke(
        tmp_path, "app", "update", "--version", "1.0", "--link", "https://dl", "--notes", "hi", "--as", "carol"
    )
    assert result.exit_code == 0

    result = _invoke(tmp_path, "app", "show", "--json")
    assert json.loads(result.output) == {
        "version": "1.0",
        "download_link": "https://dl",
        "update_content": "hi",
    }

    assert _invoke(tmp_path, "app", "set-version", "1.1", "--as", "carol").exit_code == 0
    result = _invoke(tmp_path, "app", "show", "--json")
    assert json.loads(result.output)["version"] == "1.1"
    assert json.loads(result.output)["download_link"] == "https://dl"


def test_audit_trail(tmp_path):
    _invoke(tmp_path, "init", "alice")
    _invoke(tmp_path, "node", "add", "https://a", "--as", "stranger")

    result = _invoke(tmp_path, "audit", "export", "--format", "json")
    entries = json.loads(result.output)
    assert [e["action"] for e in entries] == ["node-added"]
    assert entries[0]["actor"] == "stranger"


def test_webhook_commands(tmp_path):
    result = _invoke(tmp_path, "webhook", "add", "https://hooks.example/x", "-e", "node-added")
    assert result.exit_code == 0
    result = _invoke(tmp_path, "webhook", "list")
    assert "hooks.example" in result.output
    assert _invoke(tmp_path, "webhook", "add", "https://h", "-e", "nope").exit_code == 1


def test_missing_registry(tmp_path):
    result = _invoke(tmp_path, "node", "list")
    assert result.exit_code == 1
    assert "state_error" in result.output
