"""Exception hierarchy for EchoShop."""


class EchoShopError(Exception):
    """Base class for all EchoShop errors."""


class UnknownAgentError(EchoShopError, KeyError):
    """Agent id is not registered."""


class AgentBusyError(EchoShopError):
    """Agent already holds an in-flight task."""

    def __init__(self, agent_id: str, task_id: str):
        super().__init__(f"Agent {agent_id} is busy with task {task_id}")
        self.agent_id = agent_id
        self.task_id = task_id


class UnknownTaskError(EchoShopError, KeyError):
    """Task id was never created (or has been pruned)."""


class InvalidTransitionError(EchoShopError):
    """Task status transition outside the lifecycle state machine."""

    def __init__(self, task_id: str, current: str, target: str):
        super().__init__(
            f"Task {task_id} cannot move from {current} to {target}"
        )
        self.task_id = task_id
        self.current = current
        self.target = target


class TaskTimeoutError(EchoShopError, TimeoutError):
    """Task did not reach a terminal state within the wait budget."""


class CompletionError(EchoShopError):
    """Completion service failed or returned unusable content."""
