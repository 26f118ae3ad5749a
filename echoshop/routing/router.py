"""Maps task types to capable agents and picks an idle one."""

from typing import Protocol

from ..logging_config import get_logger
from ..models import Agent, TaskType
from ..registry import IAgentRegistry

logger = get_logger(__name__)


# Exactly one capability per task type.
TASK_CAPABILITIES: dict[TaskType, str] = {
    TaskType.VOICE_INPUT: "speech_recognition",
    TaskType.INTENT_CLASSIFICATION: "intent_classification",
    TaskType.PROFILE_UPDATE: "profile_update",
    TaskType.RESTAURANT_SEARCH: "restaurant_search",
    TaskType.ORDER_PROCESSING: "order_processing",
    TaskType.RECOMMENDATION_GENERATION: "personalized_suggestions",
    TaskType.RESPONSE_GENERATION: "natural_language_generation",
}


class SelectionStrategy(Protocol):
    """Chooses one agent among idle candidates."""

    def select(self, task_type: TaskType, candidates: list[Agent]) -> Agent | None:
        ...


class FirstIdleStrategy:
    """First idle candidate in registry order."""

    def select(self, task_type: TaskType, candidates: list[Agent]) -> Agent | None:
        return candidates[0] if candidates else None


class ICapabilityRouter(Protocol):
    def route(self, task_type: TaskType) -> Agent | None:
        """Return one idle capable agent, or None if all are busy."""
        ...


class CapabilityRouter:
    """Routes a task type to an idle agent declaring the matching capability."""

    def __init__(
        self,
        registry: IAgentRegistry,
        strategy: SelectionStrategy | None = None,
        capabilities: dict[TaskType, str] | None = None,
    ):
        self._registry = registry
        self._strategy = strategy or FirstIdleStrategy()
        self._capabilities = dict(capabilities or TASK_CAPABILITIES)

    @property
    def strategy(self) -> SelectionStrategy:
        return self._strategy

    @strategy.setter
    def strategy(self, strategy: SelectionStrategy) -> None:
        self._strategy = strategy

    def capability_for(self, task_type: TaskType) -> str:
        return self._capabilities[task_type]

    def candidates(self, task_type: TaskType) -> list[Agent]:
        """All agents declaring the capability, busy or not, in registry order."""
        capability = self.capability_for(task_type)
        return [
            agent
            for agent in self._registry.agents()
            if capability in agent.capabilities
        ]

    def route(self, task_type: TaskType) -> Agent | None:
        idle = [agent for agent in self.candidates(task_type) if agent.is_idle]
        agent = self._strategy.select(task_type, idle)
        if agent is None:
            logger.warning("No idle agent for %s", task_type.value)
        return agent
