import pytest
from fastapi.testclient import TestClient

from ai_gateway import AIGateway
from server import create_app
from task_store import TaskStore

from .fakes import FakeAnthropic

PLAN_TRIP = '[{"task":"Plan trip","subtasks":["Book flight","Pack bags"]}]'


@pytest.fixture()
def fake_client() -> FakeAnthropic:
    return FakeAnthropic(text=PLAN_TRIP)


@pytest.fixture()
def gateway(fake_client: FakeAnthropic) -> AIGateway:
    return AIGateway(client=fake_client, model="test-model", max_tokens=200, timezone="UTC")


@pytest.fixture()
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture()
def client(store: TaskStore, gateway: AIGateway) -> TestClient:
    return TestClient(create_app(store=store, gateway=gateway))
