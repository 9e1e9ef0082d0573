import asyncio
from datetime import timedelta

import pytest
import pytest_asyncio

from background_scheduler import BackgroundJobHost, FixedIntervalTrigger, SchedulerSettings
from background_scheduler.domain.context import QueuedJobExecutionContext, ScheduledJobExecutionContext
from background_scheduler.queues import InMemoryTaskQueue
from background_scheduler.schedulers import InMemoryTaskScheduler
from background_scheduler.scopes import ServiceRegistry


@pytest.fixture(scope="function")
def settings() -> SchedulerSettings:
    return SchedulerSettings(_env_file=None, poll_interval=0.01, queue_consumers=2, shutdown_timeout=1)


@pytest_asyncio.fixture(scope="function")
async def running_host(settings: SchedulerSettings):
    host = BackgroundJobHost(settings)
    await host.start()
    yield host
    await host.stop()


def test_host_creates_services(settings: SchedulerSettings):
    scheduler, queue, registry = InMemoryTaskScheduler(), InMemoryTaskQueue(), ServiceRegistry()
    host = BackgroundJobHost(settings, scope_factory=registry, scheduler=scheduler, queue=queue)

    assert host.schedule_service.scheduler is scheduler
    assert host.schedule_service.poll_interval == 0.01
    assert [service.name for service in host.queue_services] == [
        "TaskQueueHostedService-0",
        "TaskQueueHostedService-1",
    ]
    assert all(service.queue is queue for service in host.queue_services)
    assert all(service.scope_factory is registry for service in host.services)
    assert not host.is_running


def test_registration(settings: SchedulerSettings):
    host = BackgroundJobHost(settings)

    task = host.schedule_recurring(lambda: None, FixedIntervalTrigger.hourly())
    host.enqueue_one_shot(lambda: None)

    assert host.scheduler.tasks == [task]
    assert len(host.queue) == 1


@pytest.mark.asyncio
async def test_host_runs_recurring_and_one_shot_jobs(settings: SchedulerSettings):
    recurring, one_shot = asyncio.Event(), asyncio.Event()
    contexts = []

    async def on_schedule(context) -> None:
        contexts.append(context)
        recurring.set()

    async def on_demand(context) -> None:
        contexts.append(context)
        one_shot.set()

    host = BackgroundJobHost(settings)
    host.schedule_recurring(on_schedule, FixedIntervalTrigger(timedelta(0)))

    async with host:
        assert host.is_running
        host.enqueue_one_shot(on_demand)
        await asyncio.wait_for(asyncio.gather(recurring.wait(), one_shot.wait()), timeout=2)

    assert not host.is_running
    assert any(isinstance(context, ScheduledJobExecutionContext) for context in contexts)
    assert any(isinstance(context, QueuedJobExecutionContext) for context in contexts)


@pytest.mark.asyncio
async def test_stop_applies_shutdown_timeout():
    settings = SchedulerSettings(_env_file=None, poll_interval=3600, queue_consumers=1, shutdown_timeout=0.05)
    started = asyncio.Event()

    async def long_running() -> None:
        started.set()
        await asyncio.sleep(3600)

    host = BackgroundJobHost(settings)
    host.enqueue_one_shot(long_running)

    await host.start()
    await asyncio.wait_for(started.wait(), timeout=1)
    await asyncio.wait_for(host.stop(), timeout=1)

    assert not host.is_running


@pytest.mark.asyncio
async def test_jobs_registered_while_running(running_host: BackgroundJobHost):
    executed = asyncio.Event()

    async def late() -> None:
        executed.set()

    assert running_host.is_running
    running_host.schedule_recurring(late, FixedIntervalTrigger(timedelta(0)))

    await asyncio.wait_for(executed.wait(), timeout=2)
    assert running_host.scheduler.tasks[0].total_execution_count >= 1
