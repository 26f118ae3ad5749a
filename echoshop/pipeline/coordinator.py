"""Runs one utterance through the fixed six-stage pipeline."""

from dataclasses import dataclass, field

from ..logging_config import get_logger
from ..models import AgentTask, Priority, TaskStatus, TaskType
from ..speech import ISpeechSynthesizer, ISpeechToText, SpeechResult
from ..tasks import ITaskManager
from ..tracker import ITracker

logger = get_logger(__name__)


STOP_PHRASES = frozenset({"stop", "quit", "exit", "end", "ok stop", "stop listening"})
STOP_RESPONSE = "Voice interface stopped. Click the microphone button to start again."
APOLOGY = "I apologize, but I could not process your request. Please try again."
ERROR_RESPONSE = "I encountered an error processing your request. Please try again."
NOT_HEARD_RESPONSE = "Sorry, I didn't catch that. Could you say it again?"
MAX_CONVERSATIONS = 1000

# Plain substring triggers: "pizza" fires both stages, "address" fires ordering.
SEARCH_TRIGGERS = ("search", "find", "pizza", "restaurant")
ORDER_TRIGGERS = ("order", "add", "pizza")


def is_stop_phrase(text: str) -> bool:
    return text.lower().strip() in STOP_PHRASES


def should_search(text: str) -> bool:
    lowered = text.lower()
    return any(trigger in lowered for trigger in SEARCH_TRIGGERS)


def should_order(text: str) -> bool:
    lowered = text.lower()
    return any(trigger in lowered for trigger in ORDER_TRIGGERS)


@dataclass
class PipelineResult:
    response: str
    intent: str | None = None
    entities: dict = field(default_factory=dict)
    task_ids: list[str] = field(default_factory=list)
    stopped: bool = False


@dataclass
class VoiceResult:
    transcript: str
    result: PipelineResult
    speech: SpeechResult | None = None


def _output(task: AgentTask) -> dict | None:
    return task.output if task.status is TaskStatus.COMPLETED else None


class PipelineCoordinator:
    """Intent -> profile -> [search] -> [order] -> recommendations -> response."""

    def __init__(
        self,
        task_manager: ITaskManager,
        tracker: ITracker | None = None,
        transcriber: ISpeechToText | None = None,
        synthesizer: ISpeechSynthesizer | None = None,
        history_limit: int = 4,
        max_conversations: int = MAX_CONVERSATIONS,
    ):
        self._tasks = task_manager
        self._tracker = tracker
        self._transcriber = transcriber
        self._synthesizer = synthesizer
        self._history_limit = history_limit
        self._max_conversations = max_conversations
        # Least recently active user first
        self._history: dict[str, list[dict]] = {}

    def history(self, user_id: str) -> list[dict]:
        return list(self._history.get(user_id, []))

    def _remember(self, user_id: str, user_input: str, response: str) -> None:
        turns = self._history.pop(user_id, [])
        turns.append({"role": "user", "content": user_input})
        turns.append({"role": "assistant", "content": response})
        del turns[: max(0, len(turns) - 2 * max(self._history_limit, 1))]
        self._history[user_id] = turns
        while len(self._history) > self._max_conversations:
            self._history.pop(next(iter(self._history)))

    async def _stage(
        self, task_type: TaskType, task_input: dict, task_ids: list[str]
    ) -> dict | None:
        task = await self._tasks.create_task(task_type, task_input, priority=Priority.HIGH)
        task_ids.append(task.id)
        output = _output(task)
        if output is None:
            logger.warning("Stage %s produced no output (status %s)", task_type.value, task.status.value)
        return output

    async def process_utterance(self, text: str, user_id: str) -> PipelineResult:
        """Run the pipeline. Always returns a response; never raises."""
        if is_stop_phrase(text):
            logger.info("Stop phrase from %s", user_id)
            return PipelineResult(response=STOP_RESPONSE, stopped=True)

        log = get_logger(__name__, user_id=user_id)
        log.info("Pipeline started: %s", text[:100])
        task_ids: list[str] = []

        try:
            intent = await self._stage(
                TaskType.INTENT_CLASSIFICATION, {"user_input": text}, task_ids
            )
            profile_update = await self._stage(
                TaskType.PROFILE_UPDATE, {"user_input": text, "user_id": user_id}, task_ids
            )

            search_results = None
            if should_search(text):
                search_results = await self._stage(
                    TaskType.RESTAURANT_SEARCH, {"user_id": user_id}, task_ids
                )

            order_result = None
            if should_order(text):
                order_result = await self._stage(
                    TaskType.ORDER_PROCESSING,
                    {"user_input": text, "user_id": user_id, "search_results": search_results},
                    task_ids,
                )

            recommendations = await self._stage(
                TaskType.RECOMMENDATION_GENERATION, {"user_id": user_id}, task_ids
            )

            reply = await self._stage(
                TaskType.RESPONSE_GENERATION,
                {
                    "user_input": text,
                    "user_id": user_id,
                    "history": self.history(user_id),
                    "context": {
                        "intent": intent,
                        "profile_update": profile_update,
                        "search_results": search_results,
                        "order_result": order_result,
                        "recommendations": recommendations,
                    },
                },
                task_ids,
            )
        except Exception:
            log.error("Pipeline failed", exc_info=True)
            return PipelineResult(response=ERROR_RESPONSE, task_ids=task_ids)

        if not reply or not reply.get("response"):
            result = PipelineResult(
                response=APOLOGY,
                intent=(intent or {}).get("intent"),
                task_ids=task_ids,
            )
        else:
            result = PipelineResult(
                response=reply["response"],
                intent=reply.get("intent") or (intent or {}).get("intent"),
                entities=reply.get("entities") or {},
                task_ids=task_ids,
            )

        self._remember(user_id, text, result.response)
        log.info("Pipeline completed with %s tasks", len(task_ids))

        if self._tracker is not None:
            await self._tracker.track(
                event_type="pipeline_completed",
                actor="pipeline",
                data={
                    "user_id": user_id,
                    "intent": result.intent,
                    "task_ids": task_ids,
                    "response_summary": result.response[:100],
                },
            )

        return result

    async def process_voice(self, audio: bytes, user_id: str) -> VoiceResult:
        """Transcribe, run the voice-input stage and the pipeline, then speak the reply."""
        if self._transcriber is None:
            raise RuntimeError("Speech-to-text is not configured")

        transcription = await self._transcriber.transcribe(audio)
        if not transcription.text:
            return VoiceResult(transcript="", result=PipelineResult(response=NOT_HEARD_RESPONSE))
        if is_stop_phrase(transcription.text):
            return VoiceResult(
                transcript=transcription.text,
                result=PipelineResult(response=STOP_RESPONSE, stopped=True),
            )

        voice_task = await self._tasks.create_task(
            TaskType.VOICE_INPUT,
            {"audio_input": transcription.text, "confidence": transcription.confidence},
            priority=Priority.HIGH,
        )
        voice_output = _output(voice_task) or {}
        utterance = voice_output.get("processed_audio") or transcription.text

        result = await self.process_utterance(utterance, user_id)
        result.task_ids.insert(0, voice_task.id)

        speech = None
        if self._synthesizer is not None:
            speech = await self._synthesizer.synthesize(result.response)

        return VoiceResult(transcript=utterance, result=result, speech=speech)
