"""
Session Manager for ResQ

Keeps one workspace per connected user: the speech channel, the speech
bridge, the interview session machine and the generation orchestrator
wired together. Workspaces live in memory.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Coroutine
from uuid import uuid4

from resq.config.settings import Settings, get_settings
from resq.core.ai_client import AIFunctionClient
from resq.core.answer_judge import AnswerJudge
from resq.core.generation_orchestrator import GenerationOrchestrator
from resq.core.interview_session import InterviewSessionMachine, StateTransitionError
from resq.core.punctuator import TranscriptPunctuator
from resq.core.question_generator import QuestionGenerator
from resq.core.speech_bridge import SpeechBridge
from resq.core.speech_engines import SpeechChannel
from resq.models.categories import InterviewCategory, parse_category
from resq.models.interview import ResumeDocument, SessionSnapshot

logger = logging.getLogger(__name__)


@dataclass
class InterviewWorkspace:
    """Everything one user's interview needs."""
    workspace_id: str
    channel: SpeechChannel
    speech: SpeechBridge
    machine: InterviewSessionMachine
    generation: GenerationOrchestrator
    created_at: datetime = field(default_factory=datetime.utcnow)
    _tasks: set[asyncio.Task] = field(default_factory=set)

    def start_generation(self, resume: ResumeDocument, category: InterviewCategory | str) -> None:
        """
        Validate the upload and run generation in the background.

        Raises:
            ResumeValidationError: Not a usable PDF
            ValueError: Unknown category
            StateTransitionError: Generation already running
        """
        if self.generation.is_running:
            raise StateTransitionError("Generation already in progress")
        GenerationOrchestrator.validate_resume(resume)
        if parse_category(category) is None:
            raise ValueError(f"Unknown interview category: {category}")

        self.run_in_background(self.generation.run(resume, category))

    def run_in_background(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Workspace {self.workspace_id} background task failed: {task.exception()}")

    def publish(self, message: dict[str, Any]) -> None:
        """Push a message to the client if one is connected."""
        if self.channel.connected:
            self.channel.send(message)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.machine.close()
        self.generation.reset()
        self.channel.disconnect()


class SessionManager:
    """
    In-memory registry of interview workspaces.

    The AI clients are shared across workspaces; speech and session state
    are per workspace.
    """

    def __init__(
        self,
        ai_client: AIFunctionClient | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.ai_client = ai_client or AIFunctionClient(self.settings)

        self.question_generator = QuestionGenerator(self.ai_client, self.settings.max_questions)
        self.answer_judge = AnswerJudge(self.ai_client)
        self.punctuator = TranscriptPunctuator(self.ai_client)

        self._workspaces: dict[str, InterviewWorkspace] = {}

    def create_workspace(self) -> InterviewWorkspace:
        channel = SpeechChannel(self.settings)
        speech = SpeechBridge(channel.recognition, channel.synthesis, self.settings)
        machine = InterviewSessionMachine(speech, self.answer_judge, self.punctuator)
        generation = GenerationOrchestrator(self.question_generator, machine, self.settings)

        workspace = InterviewWorkspace(
            workspace_id=str(uuid4()),
            channel=channel,
            speech=speech,
            machine=machine,
            generation=generation,
        )
        self._wire(workspace)

        self._workspaces[workspace.workspace_id] = workspace
        logger.info(f"Created interview workspace: {workspace.workspace_id}")
        return workspace

    def get(self, workspace_id: str) -> InterviewWorkspace | None:
        return self._workspaces.get(workspace_id)

    async def remove(self, workspace_id: str) -> bool:
        workspace = self._workspaces.pop(workspace_id, None)
        if workspace is None:
            return False
        await workspace.close()
        logger.info(f"Removed interview workspace: {workspace_id}")
        return True

    async def close(self) -> None:
        for workspace_id in list(self._workspaces):
            await self.remove(workspace_id)
        await self.ai_client.close()

    def _wire(self, workspace: InterviewWorkspace) -> None:
        def push_state(snapshot: SessionSnapshot) -> None:
            workspace.publish({"type": "state", "data": snapshot.model_dump(mode="json")})

        async def on_finish(score: float) -> None:
            workspace.generation.reset()
            workspace.publish({"type": "session_ended", "reason": "finished", "final_score": score})

        async def on_quit() -> None:
            workspace.generation.reset()
            workspace.publish({"type": "session_ended", "reason": "quit"})

        workspace.machine.add_listener(push_state)
        workspace.machine.on_finish(on_finish)
        workspace.machine.on_quit(on_quit)
