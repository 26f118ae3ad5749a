"""Tests for AgentRegistry."""

from datetime import datetime, timezone

import pytest

from echoshop.errors import AgentBusyError, UnknownAgentError
from echoshop.models import AgentMessage, StatusUpdatePayload


def _message(recipient: str) -> AgentMessage:
    return AgentMessage(
        id="msg1",
        sender="orchestrator",
        recipient=recipient,
        payload=StatusUpdatePayload(status="ping"),
        timestamp=datetime.now(timezone.utc),
    )


class TestRegistryCatalog:
    """Tests for the fixed agent catalog."""

    def test_seven_agents_in_order(self, registry):
        """Test that the registry holds the seven pipeline agents in order."""
        assert [a.id for a in registry] == [
            "voice-input",
            "intent-router",
            "profile-manager",
            "discovery",
            "ordering",
            "recommendation",
            "response-generator",
        ]

    def test_all_agents_start_idle(self, registry):
        assert all(registry.is_idle(a.id) for a in registry.agents())

    def test_get_unknown_agent(self, registry):
        with pytest.raises(UnknownAgentError):
            registry.get("nobody")

    def test_contains(self, registry):
        assert "discovery" in registry
        assert "nobody" not in registry


class TestRegistryAssignment:
    """Tests for assign/release."""

    def test_assign_marks_busy(self, registry):
        registry.assign("discovery", "task1")
        assert registry.get("discovery").current_task == "task1"
        assert not registry.is_idle("discovery")

    def test_assign_busy_agent_raises(self, registry):
        registry.assign("discovery", "task1")
        with pytest.raises(AgentBusyError):
            registry.assign("discovery", "task2")

    def test_release_frees_agent(self, registry):
        registry.assign("discovery", "task1")
        registry.release("discovery", "task1")
        assert registry.is_idle("discovery")

    def test_release_ignores_other_task(self, registry):
        """Test that releasing with a stale task id keeps the agent busy."""
        registry.assign("discovery", "task1")
        registry.release("discovery", "other")
        assert registry.get("discovery").current_task == "task1"


class TestRegistryMailboxes:
    """Tests for mailbox delivery."""

    def test_deliver_appends_to_mailbox(self, registry):
        assert registry.deliver(_message("ordering"))
        assert len(registry.mailbox("ordering")) == 1
        assert registry.mailbox("discovery") == []

    def test_deliver_to_non_agent(self, registry):
        """Test that messages to the orchestrator are not delivered anywhere."""
        assert not registry.deliver(_message("orchestrator"))

    def test_drain_mailbox(self, registry):
        registry.deliver(_message("ordering"))
        registry.deliver(_message("ordering"))
        drained = registry.drain_mailbox("ordering")
        assert len(drained) == 2
        assert registry.mailbox("ordering") == []
