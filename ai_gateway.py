"""
AI task generation through the Anthropic Messages API.

The gateway is fail-soft: a network error, a missing key or a completion
that is not a JSON array of {task, subtasks} objects all come back as an
empty GenerationResult. Nothing here raises to the caller.
"""
import logging
from enum import Enum
from typing import List, Optional

from anthropic import AsyncAnthropic
from pydantic import BaseModel, TypeAdapter, ValidationError

import config
from models import GeneratedTask
from utils import get_formatted_date

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful assistant that returns todo lists in JSON format.

For a given request, return an array of objects like:
[
  {
    "task": "Main Task",
    "subtasks": ["Subtask 1", "Subtask 2"]
  }
]

Guidelines:
* Keep each task concise and action-oriented (start with a verb)
* List subtasks in the order they should be done
* Use an empty subtasks array when a task needs no breakdown

Only return valid JSON: no explanation, no markdown, no code fences."""

_generated_tasks = TypeAdapter(List[GeneratedTask])


class GenerationState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(str, Enum):
    EMPTY_PROMPT = "empty_prompt"
    UPSTREAM = "upstream"
    MALFORMED = "malformed"


class GenerationResult(BaseModel):
    state: GenerationState
    tasks: List[GeneratedTask] = []
    failure: Optional[FailureReason] = None

    @classmethod
    def succeeded(cls, tasks: List[GeneratedTask]) -> "GenerationResult":
        return cls(state=GenerationState.SUCCEEDED, tasks=tasks)

    @classmethod
    def failed(cls, reason: FailureReason) -> "GenerationResult":
        return cls(state=GenerationState.FAILED, failure=reason)


class GenerationInProgress(Exception):
    """Raised when a run is started while another one is still requesting"""


def parse_generated_tasks(raw: str) -> Optional[List[GeneratedTask]]:
    """
    Parse completion text into candidates.

    Returns None when the text is not a JSON array of well-formed entries.
    One bad entry rejects the whole response.
    """
    try:
        return _generated_tasks.validate_json(raw.strip())
    except ValidationError as e:
        logger.warning("⚠️  Failed to parse AI JSON (%d errors): %r", e.error_count(), raw[:200])
        return None


class AIGateway:
    """One request per call; no retry, no caching"""

    def __init__(
        self,
        client: Optional[AsyncAnthropic] = None,
        api_key: Optional[str] = None,
        model: str = config.ANTHROPIC_MODEL,
        max_tokens: int = config.AI_MAX_TOKENS,
        timezone: str = config.TASKS_TIMEZONE,
    ):
        self._client = client
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timezone = timezone

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> AsyncAnthropic:
        # Built lazily so a missing key fails the call, not the startup
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    def build_user_message(self, prompt: str) -> str:
        return f"Current date: {get_formatted_date(self.timezone)}\n\nRequest:\n{prompt.strip()}"

    async def complete(self, prompt: str) -> str:
        """Send the prompt and return the raw completion text"""
        response = await self._get_client().messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[
                {"role": "user", "content": self.build_user_message(prompt)}
            ],
        )
        return "".join(getattr(block, "text", "") for block in response.content)

    async def generate(self, prompt: str) -> GenerationResult:
        if not prompt or not prompt.strip():
            return GenerationResult.failed(FailureReason.EMPTY_PROMPT)

        try:
            raw = await self.complete(prompt)
        except Exception:
            logger.exception("❌ AI generation error")
            return GenerationResult.failed(FailureReason.UPSTREAM)

        tasks = parse_generated_tasks(raw)
        if tasks is None:
            return GenerationResult.failed(FailureReason.MALFORMED)

        logger.info("🤖 Generated %d task(s)", len(tasks))
        return GenerationResult.succeeded(tasks)


class GenerationTracker:
    """
    idle -> requesting -> succeeded | failed, one run at a time.

    in_flight is read off the state rather than kept as a separate flag.
    """

    def __init__(self):
        self.state = GenerationState.IDLE
        self.last_result: Optional[GenerationResult] = None

    @property
    def in_flight(self) -> bool:
        return self.state is GenerationState.REQUESTING

    async def run(self, gateway: AIGateway, prompt: str) -> GenerationResult:
        if self.in_flight:
            raise GenerationInProgress("A generation request is already in progress")

        self.state = GenerationState.REQUESTING
        try:
            result = await gateway.generate(prompt)
        except BaseException:
            # generate() absorbs errors; this only sees cancellation
            self.state = GenerationState.FAILED
            raise
        self.state = result.state
        self.last_result = result
        return result
