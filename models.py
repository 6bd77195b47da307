from typing import Annotated, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

NonBlankText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def new_id() -> str:
    """Opaque identifier for tasks and subtasks"""
    return uuid4().hex


class Subtask(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    text: NonBlankText
    completed: bool = False


class Task(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    text: NonBlankText
    completed: bool = False
    subtasks: Tuple[Subtask, ...] = ()


class GeneratedTask(BaseModel):
    """One entry of the JSON array the model is asked to return"""
    task: NonBlankText = Field(description="Main task title")
    subtasks: List[NonBlankText] = Field(
        default_factory=list,
        description="Ordered subtask titles"
    )


class TextBody(BaseModel):
    text: str = ""


class PromptBody(BaseModel):
    prompt: str = ""


class TaskListResponse(BaseModel):
    tasks: List[Task]


class GeneratedTasksResponse(BaseModel):
    tasks: List[GeneratedTask]


class SessionGenerateResponse(BaseModel):
    status: str
    generated: int
    failure: Optional[str] = None
    tasks: List[Task]
