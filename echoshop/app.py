"""Application bootstrap and lifecycle management."""

import os
from datetime import timedelta
from typing import Protocol

from .config import Settings, resolve_db_path
from .knowledge import KnowledgeStore
from .llm import ILLMProvider, LLMProvider, RuleBasedResponder, ShopAssistant
from .logging_config import get_logger
from .message_bus import MessageBus
from .ordering import CartService
from .pipeline import PipelineCoordinator
from .registry import AgentRegistry
from .routing import CapabilityRouter
from .speech import ISpeechSynthesizer, ISpeechToText, SpeechSynthesizer, SpeechToText
from .storage import IStorage, Storage
from .tasks import StageHandlers, TaskManager
from .tracker import Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Drop all in-memory state and clear storage."""
        ...


class Application:
    """Owns every component; built once by the entry point and passed by reference."""

    def __init__(
        self,
        db_path: str | None = None,
        settings: Settings | None = None,
        llm_provider: ILLMProvider | None = None,
        transcriber: ISpeechToText | None = None,
        synthesizer: ISpeechSynthesizer | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._settings = settings or Settings.from_env()
        self._llm_override = llm_provider
        self._transcriber_override = transcriber
        self._synthesizer_override = synthesizer

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._llm: ILLMProvider | None = None
        self._registry: AgentRegistry | None = None
        self._message_bus: MessageBus | None = None
        self._tracker: Tracker | None = None
        self._router: CapabilityRouter | None = None
        self._knowledge: KnowledgeStore | None = None
        self._carts: CartService | None = None
        self._task_manager: TaskManager | None = None
        self._coordinator: PipelineCoordinator | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. LLMProvider (no internal dependencies)
        self._llm = self._llm_override or LLMProvider(model=self._settings.model)

        await self._build()
        logger.info("All components initialized successfully")

    async def _build(self) -> None:
        """(Re)create every in-memory component on top of storage and the LLM."""
        settings = self._settings

        # 3. Registry, bus (registry + storage), tracker (bus + storage)
        self._registry = AgentRegistry()
        self._message_bus = MessageBus(self._registry, self._storage)
        self._tracker = Tracker(self._message_bus, self._storage)
        await self._tracker.start()

        # 4. Router (registry), knowledge store and carts
        self._router = CapabilityRouter(self._registry)
        self._knowledge = KnowledgeStore()
        self._carts = CartService(self._knowledge)

        # 5. Stage handlers and task manager
        handlers = StageHandlers(
            knowledge=self._knowledge,
            assistant=ShopAssistant(self._llm, history_limit=settings.history_limit),
            carts=self._carts,
            message_bus=self._message_bus,
            responder=RuleBasedResponder(),
        )
        self._task_manager = TaskManager(
            router=self._router,
            registry=self._registry,
            message_bus=self._message_bus,
            handlers=handlers,
            tracker=self._tracker,
            storage=self._storage,
            wait_timeout=settings.task_wait_timeout,
        )

        # 6. Pipeline coordinator
        self._coordinator = PipelineCoordinator(
            task_manager=self._task_manager,
            tracker=self._tracker,
            transcriber=self._transcriber_override
            or SpeechToText(settings.stt_url, api_key=settings.stt_api_key, model=settings.stt_model),
            synthesizer=self._synthesizer_override
            or SpeechSynthesizer(settings.tts_url, api_key=settings.tts_api_key),
            history_limit=settings.history_limit,
        )
        logger.info("Pipeline ready with %s agents", len(self._registry))

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Drop all in-memory state and clear storage."""
        if not self._storage:
            raise RuntimeError("Application not started")
        await self._storage.clear()
        await self._build()
        logger.info("Reset complete")

    def prune_tasks(self) -> int:
        """Evict old terminal tasks when TASK_RETENTION_SECONDS is set."""
        if self._settings.task_retention_seconds is None:
            return 0
        return self.task_manager.prune(
            timedelta(seconds=self._settings.task_retention_seconds)
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def registry(self) -> AgentRegistry:
        if not self._registry:
            raise RuntimeError("Application not started")
        return self._registry

    @property
    def message_bus(self) -> MessageBus:
        if not self._message_bus:
            raise RuntimeError("Application not started")
        return self._message_bus

    @property
    def knowledge(self) -> KnowledgeStore:
        if not self._knowledge:
            raise RuntimeError("Application not started")
        return self._knowledge

    @property
    def carts(self) -> CartService:
        if not self._carts:
            raise RuntimeError("Application not started")
        return self._carts

    @property
    def task_manager(self) -> TaskManager:
        if not self._task_manager:
            raise RuntimeError("Application not started")
        return self._task_manager

    @property
    def coordinator(self) -> PipelineCoordinator:
        """Get pipeline coordinator instance."""
        if not self._coordinator:
            raise RuntimeError("Application not started")
        return self._coordinator
