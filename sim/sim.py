"""SIM implementation - scripted shopper scenario for demos."""

import asyncio
from typing import Protocol

import httpx

from echoshop.logging_config import get_logger
from echoshop.tracker import ITracker

logger = get_logger(__name__)

DEFAULT_USER_ID = "1"

# Spoken turns from a typical ordering session.
SCENARIO = [
    "Hello, I want to order a large pizza with extra cheese",
    "I'm vegetarian, what do you recommend?",
    "Find me Italian restaurants nearby",
    "Add a margherita pizza to my order",
]


class ISim(Protocol):
    """Replay a fixed shopper conversation against the HTTP API."""

    async def start(self) -> None:
        """Start scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


class Sim:
    """SIM that posts the scenario utterances to /api/messages."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracker: ITracker | None = None,
        user_id: str = DEFAULT_USER_ID,
        utterances: list[str] | None = None,
        pause: float = 1.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = api_url
        self._tracker = tracker
        self._user_id = user_id
        self._utterances = list(utterances) if utterances is not None else list(SCENARIO)
        self._pause = pause
        self._transport = transport
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None
        self.responses: list[dict] = []

    @property
    def running(self) -> bool:
        return self._running

    def set_tracker(self, tracker: ITracker) -> None:
        """Inject tracker for SIM trace events."""
        self._tracker = tracker

    async def start(self) -> None:
        """Start scenario in the background."""
        if self._running:
            return

        self._running = True
        self.responses = []
        self._client = httpx.AsyncClient(transport=self._transport)
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def wait(self) -> None:
        """Wait for the scenario to finish on its own."""
        if self._task:
            await self._task

    async def _run_scenario(self) -> None:
        summary = {
            "scenario": "shopper",
            "user_id": self._user_id,
            "message_count": len(self._utterances),
        }
        try:
            if self._tracker:
                await self._tracker.track("sim_started", "sim", summary)

            for i, text in enumerate(self._utterances):
                if not self._running:
                    break
                await self._send_message(self._user_id, text)
                if i < len(self._utterances) - 1:
                    await asyncio.sleep(self._pause)

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False
            if self._tracker:
                await self._tracker.track(
                    "sim_completed", "sim", {**summary, "answered": len(self.responses)}
                )

    async def _send_message(self, user_id: str, text: str) -> None:
        """Send an utterance via HTTP API."""
        if not self._client:
            return

        try:
            response = await self._client.post(
                f"{self._api_url}/api/messages",
                json={"user_id": user_id, "text": text},
                timeout=10.0,
            )

            if response.status_code == 200:
                data = response.json()
                self.responses.append(data)
                logger.info("SIM: %s -> %s", user_id, text)
                logger.info("SIM: Response: %s", data.get("response", "N/A"))
            else:
                logger.error("SIM: Error sending message: %s", response.status_code)

        except httpx.HTTPError as e:
            logger.error("SIM: Failed to send message: %s", e)
