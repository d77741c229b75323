"""Behavioural tests for installation lifecycle reconciliation."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
from pytest_bdd import given, parsers, scenario, then, when
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from herald.errors import DataConsistencyViolationError
from herald.installations import InstallationRegistry
from herald.notifications import NotificationDispatcher
from herald.reconciler import ModeReconciler, ReconciliationResult
from herald.storage import init_storage
from herald.subscriptions import SubscriptionStore
from tests.helpers.lifecycle import RecordingSender, created, deleted

if typ.TYPE_CHECKING:
    from pathlib import Path


def run_async[T](coro: typ.Coroutine[typ.Any, typ.Any, T]) -> T:
    """Run async coroutines in sync BDD step functions."""
    return asyncio.run(coro)


class LifecycleContext(typ.TypedDict, total=False):
    """Shared state used by BDD steps."""

    registry: InstallationRegistry
    subscriptions: SubscriptionStore
    sender: RecordingSender
    reconciler: ModeReconciler
    result: ReconciliationResult
    violation: DataConsistencyViolationError


@scenario(
    "../installation_lifecycle.feature",
    "Installing the app switches subscribers to push delivery",
)
def test_install_switches_to_push() -> None:
    """Behavioural test: installing notifies every subscriber once."""


@scenario(
    "../installation_lifecycle.feature",
    "Uninstalling the app falls back to polling",
)
def test_uninstall_falls_back_to_poll() -> None:
    """Behavioural test: uninstalling clears coverage and notifies."""


@scenario(
    "../installation_lifecycle.feature",
    "Redelivered events send no further notices",
)
def test_redelivery_is_silent() -> None:
    """Behavioural test: replaying an event notifies nobody."""


@scenario(
    "../installation_lifecycle.feature",
    "A failing channel does not block the others",
)
def test_failing_channel_is_isolated() -> None:
    """Behavioural test: delivery failures stay per channel."""


@scenario(
    "../installation_lifecycle.feature",
    "A repository cannot be covered by two installations",
)
def test_conflicting_coverage_is_reported() -> None:
    """Behavioural test: double coverage is surfaced, never resolved."""


@pytest.fixture
def lifecycle_context(tmp_path: Path) -> typ.Iterator[LifecycleContext]:
    """Provision a fresh database and recording sender for each scenario."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'lifecycle.db'}", poolclass=NullPool
    )
    run_async(init_storage(engine))
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    registry = InstallationRegistry(session_factory)
    subscriptions = SubscriptionStore(session_factory)
    sender = RecordingSender()

    yield {
        "registry": registry,
        "subscriptions": subscriptions,
        "sender": sender,
        "reconciler": ModeReconciler(
            registry, subscriptions, NotificationDispatcher(sender)
        ),
    }

    run_async(engine.dispose())


@given("a fresh Herald database")
def fresh_database(lifecycle_context: LifecycleContext) -> None:
    """Validate the lifecycle context was initialised."""
    assert "reconciler" in lifecycle_context


@given(parsers.parse('channels "{first}" and "{second}" subscribe to "{repo}"'))
def channels_subscribe(
    lifecycle_context: LifecycleContext, first: str, second: str, repo: str
) -> None:
    """Subscribe two channels to a repository."""
    store = lifecycle_context["subscriptions"]

    async def _subscribe() -> None:
        for channel_id in (first, second):
            await store.subscribe(channel_id, repo)

    run_async(_subscribe())


@given(parsers.parse('channel "{channel_id}" cannot receive messages'))
def channel_fails(lifecycle_context: LifecycleContext, channel_id: str) -> None:
    """Make the sender fail for one channel."""
    lifecycle_context["sender"].failing_channels.add(channel_id)


@given(parsers.parse('installation {installation_id:d} covers "{repo}"'))
def installation_covers(
    lifecycle_context: LifecycleContext, installation_id: int, repo: str
) -> None:
    """Install the app and forget the notices that produced."""
    run_async(lifecycle_context["reconciler"].handle(created(installation_id, repo)))
    lifecycle_context["sender"].sent.clear()


@when(parsers.parse('installation {installation_id:d} is created covering "{repo}"'))
def installation_created(
    lifecycle_context: LifecycleContext, installation_id: int, repo: str
) -> None:
    """Deliver an installation-created event."""
    try:
        lifecycle_context["result"] = run_async(
            lifecycle_context["reconciler"].handle(created(installation_id, repo))
        )
    except DataConsistencyViolationError as exc:
        lifecycle_context["violation"] = exc


@when(parsers.parse("installation {installation_id:d} is deleted"))
def installation_deleted(
    lifecycle_context: LifecycleContext, installation_id: int
) -> None:
    """Deliver an installation-deleted event."""
    lifecycle_context["result"] = run_async(
        lifecycle_context["reconciler"].handle(deleted(installation_id))
    )


@then(parsers.parse('"{repo}" is delivered by "{mode}"'))
def delivered_by(lifecycle_context: LifecycleContext, repo: str, mode: str) -> None:
    """Assert the derived delivery mode of a repository."""
    actual = run_async(lifecycle_context["registry"].delivery_mode_of(repo))
    assert actual == mode, f"expected {repo} in {mode} mode, got {actual}"


@then(parsers.parse('"{repo}" has no covering installation'))
def no_coverage(lifecycle_context: LifecycleContext, repo: str) -> None:
    """Assert nothing covers the repository."""
    assert run_async(lifecycle_context["registry"].coverage_of(repo)) is None


@then(parsers.parse('"{repo}" is covered by installation {installation_id:d}'))
def covered_by(
    lifecycle_context: LifecycleContext, repo: str, installation_id: int
) -> None:
    """Assert which installation covers the repository."""
    owner = run_async(lifecycle_context["registry"].coverage_of(repo))
    assert owner == installation_id, f"expected {installation_id}, got {owner}"


@then(parsers.parse('channel "{channel_id}" is told "{repo}" was {verb}'))
def channel_told(
    lifecycle_context: LifecycleContext, channel_id: str, repo: str, verb: str
) -> None:
    """Assert a channel received the notice for one repository."""
    texts = [
        text
        for channel, text in lifecycle_context["sender"].sent
        if channel == channel_id
    ]
    assert texts == [
        text for text in texts if f"GitHub App {verb} for {repo}" in text
    ], f"unexpected messages for {channel_id}: {texts}"
    assert len(texts) == 1, f"expected one message for {channel_id}, got {texts}"


@then(parsers.parse("{count:d} messages were sent"))
def messages_sent(lifecycle_context: LifecycleContext, count: int) -> None:
    """Assert the total number of delivered messages."""
    sent = lifecycle_context["sender"].sent
    assert len(sent) == count, f"expected {count} messages, got {sent}"


@then(parsers.parse('the delivery to "{channel_id}" is reported as failed'))
def delivery_failed(lifecycle_context: LifecycleContext, channel_id: str) -> None:
    """Assert the reconciliation result lists the failed channel."""
    result = lifecycle_context["result"]
    assert result.dispatch.failed_channels == (channel_id,)


@then(parsers.parse('a coverage conflict is reported for "{repo}"'))
def conflict_reported(lifecycle_context: LifecycleContext, repo: str) -> None:
    """Assert the second installation was refused."""
    violation = lifecycle_context.get("violation")
    assert violation is not None, "expected a DataConsistencyViolationError"
    assert violation.repo_full_name == repo
