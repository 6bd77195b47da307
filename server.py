"""
Task List Server
Holds the session task list in memory and generates tasks with Claude
"""
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

import config
from ai_gateway import AIGateway, FailureReason, GenerationInProgress, GenerationTracker
from logging_setup import setup_logging
from models import (
    GeneratedTasksResponse,
    PromptBody,
    SessionGenerateResponse,
    TaskListResponse,
    TextBody,
)
from task_store import TaskStore, tasks_from_generated

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

SERVICE_NAME = "AI Task List"
VERSION = "1.0.0"


def create_app(store: Optional[TaskStore] = None, gateway: Optional[AIGateway] = None) -> FastAPI:
    app = FastAPI(title=SERVICE_NAME, version=VERSION)

    app.state.store = store if store is not None else TaskStore()
    app.state.gateway = gateway if gateway is not None else AIGateway(api_key=config.ANTHROPIC_API_KEY)
    app.state.tracker = GenerationTracker()

    def _store(request: Request) -> TaskStore:
        return request.app.state.store

    def _task_list(request: Request) -> TaskListResponse:
        return TaskListResponse(tasks=list(_store(request).tasks))

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": VERSION
        }

    @app.get("/health")
    async def health(request: Request):
        """Detailed health check"""
        tracker: GenerationTracker = request.app.state.tracker
        return {
            "status": "healthy",
            "claude_configured": request.app.state.gateway.configured,
            "task_count": len(_store(request)),
            "generation_state": tracker.state.value,
            "generation_in_flight": tracker.in_flight
        }

    @app.get("/api/tasks", response_model=TaskListResponse)
    async def list_tasks(request: Request):
        return _task_list(request)

    @app.post("/api/tasks", response_model=TaskListResponse)
    async def add_task(body: TextBody, request: Request):
        _store(request).add_task(body.text)
        return _task_list(request)

    @app.delete("/api/tasks/{task_id}", response_model=TaskListResponse)
    async def delete_task(task_id: str, request: Request):
        _store(request).delete_task(task_id)
        return _task_list(request)

    @app.post("/api/tasks/{task_id}/toggle", response_model=TaskListResponse)
    async def toggle_task(task_id: str, request: Request):
        _store(request).toggle_task(task_id)
        return _task_list(request)

    @app.post("/api/tasks/{task_id}/subtasks", response_model=TaskListResponse)
    async def add_subtask(task_id: str, body: TextBody, request: Request):
        _store(request).add_subtask(task_id, body.text)
        return _task_list(request)

    @app.post("/api/tasks/{task_id}/subtasks/{subtask_id}/toggle", response_model=TaskListResponse)
    async def toggle_subtask(task_id: str, subtask_id: str, request: Request):
        _store(request).toggle_subtask(task_id, subtask_id)
        return _task_list(request)

    @app.post("/api/ai-generate", response_model=GeneratedTasksResponse)
    async def ai_generate(body: PromptBody, request: Request):
        """
        Proxy a prompt to Claude and return the parsed candidates.
        Upstream failures answer 500 with an empty list; a malformed
        completion answers 200 with an empty list.
        """
        if not body.prompt.strip():
            return GeneratedTasksResponse(tasks=[])

        result = await request.app.state.gateway.generate(body.prompt)
        if result.failure is FailureReason.UPSTREAM:
            return JSONResponse(status_code=500, content={"tasks": []})
        return GeneratedTasksResponse(tasks=result.tasks)

    @app.post("/api/tasks/generate", response_model=SessionGenerateResponse)
    async def generate_tasks(body: PromptBody, request: Request):
        """Generate tasks and put them at the top of the session list"""
        store = _store(request)
        if not body.prompt.strip():
            return SessionGenerateResponse(status="idle", generated=0, tasks=list(store.tasks))

        tracker: GenerationTracker = request.app.state.tracker
        try:
            result = await tracker.run(request.app.state.gateway, body.prompt)
        except GenerationInProgress as e:
            logger.info("⏳ Generation rejected, another request is in flight")
            raise HTTPException(status_code=409, detail=str(e))

        new_tasks = tasks_from_generated(result.tasks)
        store.bulk_prepend(new_tasks)
        return SessionGenerateResponse(
            status=result.state.value,
            generated=len(new_tasks),
            failure=result.failure.value if result.failure else None,
            tasks=list(store.tasks),
        )

    return app


app = create_app()


def main():
    import uvicorn
    logger.info("🚀 Starting task list server on %s:%d", config.HOST, config.PORT)
    if not config.ANTHROPIC_API_KEY:
        logger.warning("⚠️  ANTHROPIC_API_KEY not set, AI generation will return no tasks")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
