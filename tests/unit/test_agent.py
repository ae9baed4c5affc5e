"""Tests for Agent - current transaction state machine and dispatch."""

import logging

import pytest

from conftest import InMemoryConnector

pytestmark = pytest.mark.unit


class TestAgentInit:
    def test_shared_context_from_arguments_and_config(self):
        from apmtrace.agent import Agent
        from apmtrace.config import AgentConfig

        config = AgentConfig(app_name="shop", env=["HOME"], cookies=["session"])
        agent = Agent(config, {"user": {"id": 7}, "tags": {"region": "eu"}, "ignored": 1})

        assert agent.shared_context == {
            "user": {"id": 7},
            "custom": {},
            "tags": {"region": "eu"},
            "env": ["HOME"],
            "cookies": ["session"],
        }

    def test_uptime(self, agent):
        assert agent.uptime_ms >= 0.0

    def test_no_current_transaction_initially(self, agent):
        assert agent.current_transaction is None


class TestStartTransaction:
    def test_start_registers_and_sets_current(self, agent):
        txn = agent.start_transaction("GET /")

        assert agent.current_transaction is txn
        assert agent.get_transaction("GET /") is txn
        assert agent.transaction_store.fetch("GET /") is txn

    def test_nested_transaction_rejected(self, agent):
        from apmtrace.exceptions import NestedTransactionError

        agent.start_transaction("outer")

        with pytest.raises(NestedTransactionError, match="inner"):
            agent.start_transaction("inner")

    def test_context_merged_over_shared(self):
        from apmtrace.agent import Agent
        from apmtrace.config import AgentConfig

        agent = Agent(AgentConfig(app_name="shop"), {"tags": {"a": 1, "b": 1}})
        txn = agent.start_transaction("T", {"tags": {"b": 2}, "custom": {"k": "v"}})

        context = txn.get_context()
        assert context["tags"] == {"a": 1, "b": 2}
        assert context["custom"] == {"k": "v"}

    def test_explicit_start_skips_timer_start(self, agent):
        """A supplied start instant means the transaction already began."""
        import time

        began = time.perf_counter() - 0.05
        txn = agent.start_transaction("replayed", start=began)
        agent.stop_transaction("replayed")

        assert txn.summary["duration"] >= 50.0

    def test_custom_event_factory(self, config):
        from apmtrace.agent import Agent
        from apmtrace.primitives.factory import DefaultEventFactory
        from apmtrace.primitives.transaction import Transaction

        class WebTransaction(Transaction):
            pass

        class WebFactory(DefaultEventFactory):
            def create_transaction(self, name, context, start=None):
                return WebTransaction(name, context, start)

        agent = Agent(config, event_factory=WebFactory())

        assert isinstance(agent.start_transaction("T"), WebTransaction)


class TestStopTransaction:
    def test_stop_applies_meta_and_limit(self):
        from apmtrace.agent import Agent
        from apmtrace.config import AgentConfig

        agent = Agent(AgentConfig(app_name="shop", backtrace_limit=1))
        txn = agent.start_transaction("T")
        agent.stop_transaction("T", {"type": "request", "result": "HTTP 2xx"})

        assert txn.backtrace_limit == 1
        assert len(txn.summary["backtrace"]) == 1
        assert txn.get_meta_type() == "request"
        assert txn.get_meta_result() == "HTTP 2xx"
        assert agent.current_transaction is None

    def test_unknown_transaction(self, agent):
        from apmtrace.exceptions import UnknownTransactionError

        with pytest.raises(UnknownTransactionError, match="nope"):
            agent.stop_transaction("nope")

    def test_new_transaction_after_stop(self, agent):
        agent.start_transaction("first")
        agent.stop_transaction("first")

        second = agent.start_transaction("second")
        assert agent.current_transaction is second

    def test_stopping_non_current_keeps_current(self, agent, caplog):
        """Only the tracked current transaction clears the current slot."""
        agent.start_transaction("old")
        agent.stop_transaction("old")
        current = agent.start_transaction("new")

        with caplog.at_level(logging.WARNING, logger="apmtrace.agent"):
            agent.stop_transaction("old")

        assert agent.current_transaction is current
        assert "not the current transaction" in caplog.text

    def test_same_name_twice_before_send_rejected(self, agent):
        from apmtrace.exceptions import DuplicateTransactionNameError

        agent.start_transaction("T")
        agent.stop_transaction("T")

        with pytest.raises(DuplicateTransactionNameError):
            agent.start_transaction("T")


class TestStartSpan:
    def test_requires_current_transaction(self, agent):
        from apmtrace.exceptions import NoActiveTransactionError

        with pytest.raises(NoActiveTransactionError, match="query"):
            agent.start_span("query")

    def test_span_started_on_current_transaction(self, agent):
        txn = agent.start_transaction("T")
        span = agent.start_span("query", {"custom": {"sql": "SELECT 1"}})

        assert span.transaction is txn
        assert span.is_running
        assert txn.active_spans == [span]
        assert span.get_context()["custom"] == {"sql": "SELECT 1"}

    def test_span_after_stop_fails(self, agent):
        from apmtrace.exceptions import NoActiveTransactionError

        agent.start_transaction("T")
        agent.stop_transaction("T")

        with pytest.raises(NoActiveTransactionError):
            agent.start_span("late")


class TestCaptureThrowable:
    def test_unlinked_error_goes_to_store(self, agent):
        error = agent.capture_throwable(ValueError("boom"), {"custom": {"id": 1}})

        assert agent.error_store.fetch_all() == [error]
        assert error.transaction is None
        assert error.get_context()["custom"] == {"id": 1}

    def test_linked_error_attached_to_transaction(self, agent):
        txn = agent.start_transaction("T")
        error = agent.capture_throwable(ValueError("boom"), transaction=txn)

        assert txn.errors == [error]
        assert agent.error_store.is_empty()

    def test_current_transaction_not_linked_implicitly(self, agent):
        """Linking is the caller's choice, not inferred from the current transaction."""
        txn = agent.start_transaction("T")
        agent.capture_throwable(ValueError("boom"))

        assert txn.errors == []
        assert len(agent.error_store) == 1


class TestTransactionContextManager:
    def test_starts_and_stops(self, agent):
        with agent.transaction("T", meta={"type": "job"}) as txn:
            assert agent.current_transaction is txn

        assert agent.current_transaction is None
        assert txn.get_meta_type() == "job"

    def test_exception_captured_and_reraised(self, agent):
        with pytest.raises(ZeroDivisionError):
            with agent.transaction("T") as txn:
                1 / 0  # noqa: B018

        assert agent.current_transaction is None
        assert len(txn.errors) == 1
        assert txn.errors[0].exception_type == "ZeroDivisionError"
        assert txn.get_meta_result() == "error"

    def test_renamed_transaction_still_stops(self, agent):
        with agent.transaction("T") as txn:
            txn.set_transaction_name("GET /users/{id}")

        assert agent.current_transaction is None
        assert txn.json_serialize()["name"] == "GET /users/{id}"


class TestTransactionThroughAgent:
    def test_bare_with_on_started_transaction_refused(self, agent):
        """Ending a transaction must go through the agent."""
        with pytest.raises(TypeError):
            with agent.start_transaction("T"):
                pass

        agent.stop_transaction("T")
        assert agent.current_transaction is None

    def test_agent_block_clears_current_for_next_request(self, agent):
        with agent.transaction("T"):
            with agent.start_span("s"):
                pass

        assert agent.current_transaction is None
        assert agent.start_transaction("U") is agent.current_transaction


class TestSend:
    def test_inactive_agent_drains_without_dispatch(self):
        from apmtrace.agent import Agent
        from apmtrace.config import AgentConfig

        connector = InMemoryConnector()
        agent = Agent(AgentConfig(app_name="shop", active=False), connector=connector)
        agent.start_transaction("T")
        agent.stop_transaction("T")
        agent.capture_throwable(ValueError("x"))

        assert agent.send() is True
        assert agent.transaction_store.is_empty()
        assert agent.error_store.is_empty()
        assert connector.calls == []

    def test_empty_stores_skip_dispatch(self, agent, connector):
        assert agent.send() is True
        assert connector.calls == []

    def test_successful_dispatch_resets_stores(self, agent, connector):
        agent.start_transaction("T")
        agent.stop_transaction("T")
        agent.capture_throwable(ValueError("x"))

        assert agent.send() is True
        assert connector.calls == ["errors", "transactions"]
        assert len(connector.sent_transactions) == 1
        assert len(connector.sent_errors) == 1
        assert agent.transaction_store.is_empty()
        assert agent.error_store.is_empty()

    def test_failed_error_dispatch_still_sends_transactions(self, config):
        from apmtrace.agent import Agent

        connector = InMemoryConnector(errors_ok=False)
        agent = Agent(config, connector=connector)
        agent.start_transaction("T")
        agent.stop_transaction("T")
        agent.capture_throwable(ValueError("x"))

        assert agent.send() is False
        assert connector.calls == ["errors", "transactions"]
        assert len(agent.error_store) == 1
        assert agent.transaction_store.is_empty()

    def test_failed_transaction_dispatch_keeps_store(self, config):
        from apmtrace.agent import Agent

        connector = InMemoryConnector(transactions_ok=False)
        agent = Agent(config, connector=connector)
        agent.start_transaction("T")
        agent.stop_transaction("T")

        assert agent.send() is False
        assert agent.transaction_store.fetch("T") is not None

        connector.transactions_ok = True
        assert agent.send() is True
        assert agent.transaction_store.is_empty()

    def test_missing_connector_keeps_stores(self, config, caplog):
        from apmtrace.agent import Agent

        agent = Agent(config)
        agent.capture_throwable(ValueError("x"))

        with caplog.at_level(logging.WARNING, logger="apmtrace.agent"):
            assert agent.send() is False

        assert len(agent.error_store) == 1
        assert "no connector configured" in caplog.text
