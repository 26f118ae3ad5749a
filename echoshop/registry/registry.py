"""Fixed catalog of pipeline agents and their mailboxes."""

from typing import Iterator, Protocol

from ..errors import AgentBusyError, UnknownAgentError
from ..logging_config import get_logger
from ..models import Agent, AgentMessage

logger = get_logger(__name__)


# (id, display name, capabilities) in registry iteration order
DEFAULT_AGENTS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    (
        "voice-input",
        "Voice Input Agent",
        ("speech_recognition", "audio_processing", "voice_activity_detection"),
    ),
    (
        "intent-router",
        "Intent Router Agent",
        ("intent_classification", "request_routing", "context_analysis"),
    ),
    (
        "profile-manager",
        "Profile Management Agent",
        ("profile_update", "preference_extraction", "knowledge_graph_management"),
    ),
    (
        "discovery",
        "Discovery Agent",
        ("restaurant_search", "menu_analysis", "filtering"),
    ),
    (
        "ordering",
        "Ordering Agent",
        ("cart_management", "order_processing", "payment_handling"),
    ),
    (
        "recommendation",
        "Recommendation Agent",
        ("personalized_suggestions", "trend_analysis", "collaborative_filtering"),
    ),
    (
        "response-generator",
        "Response Generation Agent",
        ("natural_language_generation", "text_to_speech", "conversation_management"),
    ),
)


class IAgentRegistry(Protocol):
    """Static set of agents, their busy state and mailboxes."""

    def get(self, agent_id: str) -> Agent:
        """Get an agent by id."""
        ...

    def agents(self) -> list[Agent]:
        """All agents in registry order."""
        ...

    def is_idle(self, agent_id: str) -> bool:
        """Active and holding no task."""
        ...

    def assign(self, agent_id: str, task_id: str) -> None:
        """Mark agent busy with task."""
        ...

    def release(self, agent_id: str, task_id: str) -> None:
        """Free agent from task."""
        ...

    def deliver(self, message: AgentMessage) -> bool:
        """Append message to its recipient's mailbox."""
        ...


class AgentRegistry:
    """Holds the seven pipeline agents for the process lifetime."""

    def __init__(self):
        self._agents: dict[str, Agent] = {
            agent_id: Agent(id=agent_id, name=name, capabilities=capabilities)
            for agent_id, name, capabilities in DEFAULT_AGENTS
        }

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents.values())

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def get(self, agent_id: str) -> Agent:
        try:
            return self._agents[agent_id]
        except KeyError:
            raise UnknownAgentError(agent_id) from None

    def agents(self) -> list[Agent]:
        return list(self._agents.values())

    def is_idle(self, agent_id: str) -> bool:
        return self.get(agent_id).is_idle

    def assign(self, agent_id: str, task_id: str) -> None:
        """Mark agent busy with task. Raises AgentBusyError if it already holds one."""
        agent = self.get(agent_id)
        if agent.current_task is not None:
            raise AgentBusyError(agent_id, agent.current_task)
        agent.current_task = task_id
        logger.debug("Agent %s assigned task %s", agent_id, task_id)

    def release(self, agent_id: str, task_id: str) -> None:
        """Free agent, but only if it still holds this task."""
        agent = self.get(agent_id)
        if agent.current_task == task_id:
            agent.current_task = None
            logger.debug("Agent %s released task %s", agent_id, task_id)

    def deliver(self, message: AgentMessage) -> bool:
        """Append message to the recipient's mailbox. False if recipient is not an agent."""
        agent = self._agents.get(message.recipient)
        if agent is None:
            return False
        agent.mailbox.append(message)
        return True

    def mailbox(self, agent_id: str) -> list[AgentMessage]:
        """Read an agent's mailbox without draining it."""
        return list(self.get(agent_id).mailbox)

    def drain_mailbox(self, agent_id: str) -> list[AgentMessage]:
        """Return and remove every message in an agent's mailbox."""
        agent = self.get(agent_id)
        messages = list(agent.mailbox)
        agent.mailbox.clear()
        return messages
