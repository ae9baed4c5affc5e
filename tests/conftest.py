"""Pytest configuration for apmtrace tests."""

import pytest

pytest_plugins = ("pytest_asyncio",)


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line("markers", "unit: unit tests (isolated component tests)")
    config.addinivalue_line("markers", "integration: integration tests (multi-component tests)")


class InMemoryConnector:
    """Connector double that records serialized payloads."""

    def __init__(self, errors_ok: bool = True, transactions_ok: bool = True) -> None:
        self.errors_ok = errors_ok
        self.transactions_ok = transactions_ok
        self.sent_errors: list[dict] = []
        self.sent_transactions: list[dict] = []
        self.calls: list[str] = []

    def send_errors(self, store) -> bool:
        self.calls.append("errors")
        if self.errors_ok:
            self.sent_errors.extend(store.json_serialize())
        return self.errors_ok

    def send_transactions(self, store) -> bool:
        self.calls.append("transactions")
        if self.transactions_ok:
            self.sent_transactions.extend(store.json_serialize())
        return self.transactions_ok


@pytest.fixture
def connector():
    return InMemoryConnector()


@pytest.fixture
def config():
    from apmtrace.config import AgentConfig

    return AgentConfig(app_name="test-app")


@pytest.fixture
def agent(config, connector):
    from apmtrace.agent import Agent

    return Agent(config, connector=connector)
