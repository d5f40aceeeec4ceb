##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Tests for the `cluster/executor.py` module.
"""

import logging

import pytest
from pytest_mock import MockerFixture
from redis.exceptions import (
    AskError,
    ClusterDownError,
    ConnectionError,
    MovedError,
    ResponseError,
    SlotNotCoveredError,
    TimeoutError,
    TryAgainError,
)

from strata.cluster.executor import ClusterCommandExecutor
from strata.cluster.handler import SlotConnectionHandler
from strata.exceptions import (
    CrossSlotError,
    InvalidArgumentError,
    RepositoryConfigurationError,
    UnsupportedOperationError,
)
from strata.repositories.value import ValueRepository
from tests.fixture_data_classes import Order
from tests.fixture_types import FixtureCallable


FOO_SLOT = 12182
BAR_SLOT = 5061


@pytest.fixture
def handler(mocker: MockerFixture) -> SlotConnectionHandler:
    """
    A mocked slot connection handler.

    `connection_for_slot` hands out the "primary" connection and
    `connection_for_node` the "redirected" one.

    Args:
        mocker: PyTest mocker fixture.

    Returns:
        A mocked `SlotConnectionHandler`.
    """
    handler_mock = mocker.MagicMock(spec=SlotConnectionHandler)
    handler_mock.connection_for_slot.return_value = mocker.MagicMock(name="primary")
    handler_mock.connection_for_node.return_value = mocker.MagicMock(name="redirected")
    return handler_mock


@pytest.fixture
def executor(handler: SlotConnectionHandler) -> ClusterCommandExecutor:
    """
    A cluster executor allowing three attempts per operation.

    Args:
        handler: A mocked `SlotConnectionHandler`.

    Returns:
        A `ClusterCommandExecutor` instance.
    """
    return ClusterCommandExecutor(handler, max_attempts=3)


def failing_then(*outcomes):
    """
    Build an operation that raises or returns each outcome in turn and records the connections it ran on.

    Args:
        outcomes: Exceptions to raise or values to return, one per call.

    Returns:
        The operation. Its `connections` attribute lists the connections it was handed.
    """
    remaining = list(outcomes)

    def operation(connection):
        operation.connections.append(connection)
        outcome = remaining.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    operation.connections = []
    return operation


class TestClusterCommandExecutorSetup:
    """Tests for the construction and routing helpers of `ClusterCommandExecutor`."""

    @pytest.mark.parametrize("max_attempts", [0, -1, 1.5, "3", True, None])
    def test_invalid_max_attempts(self, handler: SlotConnectionHandler, max_attempts):
        """
        Test that the attempt budget must be a positive integer.

        Args:
            handler: A mocked `SlotConnectionHandler`.
            max_attempts: An invalid budget.
        """
        with pytest.raises(RepositoryConfigurationError, match="max_attempts must be a positive integer"):
            ClusterCommandExecutor(handler, max_attempts=max_attempts)

    def test_requires_a_handler(self):
        """
        Test that an executor cannot be built without a handler.
        """
        with pytest.raises(RepositoryConfigurationError):
            ClusterCommandExecutor(None)

    def test_cannot_scan_the_keyspace(self, executor: ClusterCommandExecutor):
        """
        Test that a cluster never offers a single key space to scan.

        Args:
            executor: A `ClusterCommandExecutor` instance.
        """
        assert executor.supports_keyspace_scan is False

    def test_slot_of(self, executor: ClusterCommandExecutor):
        """
        Test that keys sharing a hash tag resolve to the tag's slot.

        Args:
            executor: A `ClusterCommandExecutor` instance.
        """
        assert executor.slot_of(["orders:{foo}1", "orders:{foo}2"]) == FOO_SLOT

    def test_slot_of_without_keys(self, executor: ClusterCommandExecutor):
        """
        Test that an operation without keys cannot be routed.

        Args:
            executor: A `ClusterCommandExecutor` instance.
        """
        with pytest.raises(InvalidArgumentError, match="needs at least one key"):
            executor.slot_of([])

    def test_cross_slot_keys(self, executor: ClusterCommandExecutor, handler: SlotConnectionHandler):
        """
        Test that an operation spanning two slots is refused before any I/O.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
        """
        with pytest.raises(CrossSlotError, match="hash to 2 different slots"):
            executor.run(["foo", "bar"], lambda connection: connection.mget("foo", "bar"))
        handler.connection_for_slot.assert_not_called()

    def test_close(self, executor: ClusterCommandExecutor, handler: SlotConnectionHandler):
        """
        Test that closing the executor closes the cluster through its handler.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
        """
        executor.close()
        handler.close.assert_called_once_with()

    def test_partition(self, executor: ClusterCommandExecutor):
        """
        Test that keys are split into one group per slot.

        Args:
            executor: A `ClusterCommandExecutor` instance.
        """
        assert executor.partition(["{foo}1", "{bar}1", "{foo}2"]) == [["{foo}1", "{foo}2"], ["{bar}1"]]


class TestClusterCommandExecutorRun:
    """Tests for the retry loop of `ClusterCommandExecutor.run`."""

    def test_success(self, executor: ClusterCommandExecutor, handler: SlotConnectionHandler):
        """
        Test that an operation runs on the primary owning its slot.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
        """
        operation = failing_then("10")

        assert executor.run(["foo"], operation) == "10"

        handler.connection_for_slot.assert_called_once_with(FOO_SLOT)
        assert operation.connections == [handler.connection_for_slot.return_value]
        handler.refresh.assert_not_called()

    def test_moved_refreshes_and_follows_the_redirect(self, executor, handler: SlotConnectionHandler):
        """
        Test that `MOVED` reloads the topology and retries on the named node.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
        """
        operation = failing_then(MovedError(f"{FOO_SLOT} 127.0.0.1:6381"), "10")

        assert executor.run(["foo"], operation) == "10"

        handler.refresh.assert_called_once()
        handler.connection_for_node.assert_called_once_with("127.0.0.1", 6381)
        redirected = handler.connection_for_node.return_value
        assert operation.connections[1] is redirected
        redirected.execute_command.assert_not_called()

    def test_ask_sends_asking_before_the_retry(self, executor, handler: SlotConnectionHandler):
        """
        Test that `ASK` retries on the named node after `ASKING`, without reloading the topology.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
        """
        operation = failing_then(AskError(f"{FOO_SLOT} 127.0.0.1:6382"), "10")

        assert executor.run(["foo"], operation) == "10"

        handler.connection_for_node.assert_called_once_with("127.0.0.1", 6382)
        redirected = handler.connection_for_node.return_value
        redirected.execute_command.assert_called_once_with("ASKING")
        assert operation.connections[1] is redirected
        handler.refresh.assert_not_called()

    def test_asking_is_only_sent_once(self, executor: ClusterCommandExecutor, handler: SlotConnectionHandler):
        """
        Test that `ASKING` only precedes the attempt right after the `ASK` redirect.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
        """
        operation = failing_then(AskError(f"{FOO_SLOT} 127.0.0.1:6382"), ConnectionError("reset"), "10")

        assert executor.run(["foo"], operation) == "10"

        handler.connection_for_node.return_value.execute_command.assert_called_once_with("ASKING")
        assert operation.connections[2] is handler.connection_for_slot.return_value

    def test_unknown_redirect_target_falls_back_to_the_slot_owner(self, executor, handler):
        """
        Test that a redirect to a node the cluster does not know retries on the slot owner.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
        """
        handler.connection_for_node.return_value = None
        operation = failing_then(MovedError(f"{FOO_SLOT} 10.0.0.9:7000"), "10")

        assert executor.run(["foo"], operation) == "10"
        assert operation.connections[1] is handler.connection_for_slot.return_value

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("reset"),
            TimeoutError("timed out"),
            ClusterDownError("CLUSTERDOWN The cluster is down"),
            TryAgainError("TRYAGAIN"),
            SlotNotCoveredError("slot not covered"),
        ],
    )
    def test_retryable_errors(self, executor: ClusterCommandExecutor, handler: SlotConnectionHandler, error):
        """
        Test that transient failures reload the topology and retry.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
            error: The transient failure.
        """
        operation = failing_then(error, "10")

        assert executor.run(["foo"], operation) == "10"
        handler.refresh.assert_called_once()
        assert handler.connection_for_slot.call_count == 2

    def test_exhausted_attempts(self, mocker: MockerFixture, handler: SlotConnectionHandler):
        """
        Test that the last error is intercepted and raised once the budget is spent.

        Args:
            mocker: PyTest mocker fixture.
            handler: A mocked `SlotConnectionHandler`.
        """
        interceptor = mocker.MagicMock()
        executor = ClusterCommandExecutor(handler, max_attempts=3, error_interceptor=interceptor)
        last = TimeoutError("third")
        operation = failing_then(ConnectionError("first"), MovedError(f"{FOO_SLOT} 127.0.0.1:6381"), last)

        with pytest.raises(TimeoutError) as excinfo:
            executor.run(["foo"], operation)

        assert excinfo.value is last
        assert len(operation.connections) == 3
        interceptor.assert_called_once_with(last)

    def test_single_attempt(self, handler: SlotConnectionHandler):
        """
        Test that a budget of one never retries.

        Args:
            handler: A mocked `SlotConnectionHandler`.
        """
        operation = failing_then(ConnectionError("reset"), "10")

        with pytest.raises(ConnectionError):
            ClusterCommandExecutor(handler, max_attempts=1).run(["foo"], operation)
        assert len(operation.connections) == 1

    def test_other_errors_are_raised_at_once(self, mocker: MockerFixture, handler: SlotConnectionHandler):
        """
        Test that non-transient Redis errors are intercepted and raised without a retry.

        Args:
            mocker: PyTest mocker fixture.
            handler: A mocked `SlotConnectionHandler`.
        """
        interceptor = mocker.MagicMock()
        executor = ClusterCommandExecutor(handler, error_interceptor=interceptor)
        error = ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")
        operation = failing_then(error, "10")

        with pytest.raises(ResponseError):
            executor.run(["foo"], operation)

        assert len(operation.connections) == 1
        interceptor.assert_called_once_with(error)
        handler.refresh.assert_not_called()

    def test_handled_redirects_are_not_intercepted(self, mocker: MockerFixture, handler: SlotConnectionHandler):
        """
        Test that redirects recovered from never reach the interceptor.

        Args:
            mocker: PyTest mocker fixture.
            handler: A mocked `SlotConnectionHandler`.
        """
        interceptor = mocker.MagicMock()
        executor = ClusterCommandExecutor(handler, error_interceptor=interceptor)

        executor.run(["foo"], failing_then(MovedError(f"{FOO_SLOT} 127.0.0.1:6381"), "10"))

        interceptor.assert_not_called()

    def test_refresh_failure_is_logged(self, executor, handler: SlotConnectionHandler, caplog):
        """
        Test that a failed topology reload is logged and the retry still happens.

        Args:
            executor: A `ClusterCommandExecutor` instance.
            handler: A mocked `SlotConnectionHandler`.
            caplog: A built-in fixture from the pytest library to capture logs.
        """
        caplog.set_level(logging.WARNING)
        handler.refresh.side_effect = ConnectionError("seed node down")

        assert executor.run(["foo"], failing_then(ConnectionError("reset"), "10")) == "10"
        assert "Could not refresh the cluster topology" in caplog.text


class TestRepositoriesOnACluster:
    """Tests for repositories running on a `ClusterCommandExecutor`."""

    def test_get_many_spans_slots(self, mocker: MockerFixture, handler, build_repository_on: FixtureCallable):
        """
        Test that `get_many` sends one `MGET` per slot and returns entities in request order.

        Args:
            mocker: PyTest mocker fixture.
            handler: A mocked `SlotConnectionHandler`.
            build_repository_on: A helper building a repository on a given runner.
        """
        foo_node = mocker.MagicMock(name="foo_node")
        foo_node.mget.return_value = ["1", None]
        bar_node = mocker.MagicMock(name="bar_node")
        bar_node.mget.return_value = ["2"]
        handler.connection_for_slot.side_effect = lambda slot: {FOO_SLOT: foo_node, BAR_SLOT: bar_node}[slot]
        repository = build_repository_on(ValueRepository, ClusterCommandExecutor(handler))

        entities = repository.get_many(["{foo}1", "{bar}2", "{foo}3"])

        assert entities == [Order(1), Order(2)]
        foo_node.mget.assert_called_once_with(["orders:{foo}1", "orders:{foo}3"])
        bar_node.mget.assert_called_once_with(["orders:{bar}2"])

    @pytest.mark.parametrize("operation", ["get_all", "delete_all", "get_all_ids"])
    def test_keyspace_scans_are_unsupported(self, handler, build_repository_on: FixtureCallable, operation: str):
        """
        Test that operations scanning the key space refuse to run on a cluster.

        Args:
            handler: A mocked `SlotConnectionHandler`.
            build_repository_on: A helper building a repository on a given runner.
            operation: The name of the repository method.
        """
        repository = build_repository_on(ValueRepository, ClusterCommandExecutor(handler))

        with pytest.raises(UnsupportedOperationError, match="on a Redis Cluster"):
            getattr(repository, operation)()
        handler.connection_for_slot.assert_not_called()
