import asyncio
import logging
from collections import Counter
from typing import List

import pytest

from background_scheduler.domain.context import QueuedJobExecutionContext, UnhandledJobExceptionContext
from background_scheduler.domain.job import FunctionJob
from background_scheduler.queues import InMemoryTaskQueue
from background_scheduler.scopes import ServiceRegistry
from background_scheduler.services import TaskQueueHostedService

SERVICE_LOGGER = "background_scheduler.services.queued"


class RecordingHandler:
    def __init__(self):
        self.contexts: List[UnhandledJobExceptionContext] = []

    def on_unhandled_exception(self, context: UnhandledJobExceptionContext) -> None:
        self.contexts.append(context)
        context.set_handled()


def finish_job(done: asyncio.Event) -> FunctionJob:
    async def finish() -> None:
        done.set()
    return FunctionJob(finish, name="finish")


@pytest.fixture(scope="function")
def queue() -> InMemoryTaskQueue:
    return InMemoryTaskQueue()


@pytest.mark.asyncio
async def test_every_job_runs_exactly_once(queue: InMemoryTaskQueue):
    total = 20
    executions = Counter()
    done = asyncio.Event()

    def make_job(index: int):
        async def job() -> None:
            await asyncio.sleep(0)
            executions[index] += 1
            if sum(executions.values()) == total:
                done.set()
        return FunctionJob(job, name=f"job-{index}")

    services = [TaskQueueHostedService(queue, name=f"consumer-{i}") for i in range(2)]
    for service in services:
        await service.start()

    for index in range(total):
        queue.enqueue(make_job(index))

    await asyncio.wait_for(done.wait(), timeout=2)
    await asyncio.gather(*(service.stop() for service in services))

    assert executions == Counter({index: 1 for index in range(total)})
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_jobs_run_in_fifo_order_with_one_consumer(queue: InMemoryTaskQueue):
    order = []
    done = asyncio.Event()

    for index in range(5):
        queue.enqueue(FunctionJob(lambda index=index: order.append(index), name=f"job-{index}"))
    queue.enqueue(finish_job(done))

    async with TaskQueueHostedService(queue):
        await asyncio.wait_for(done.wait(), timeout=2)

    assert order == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_failure_is_reported_and_consumer_continues(queue: InMemoryTaskQueue):
    error = RuntimeError("boom")
    done = asyncio.Event()

    async def fail() -> None:
        raise error

    handler = RecordingHandler()
    queue.enqueue(FunctionJob(fail, name="failing-job"))
    queue.enqueue(finish_job(done))

    async with TaskQueueHostedService(queue, exception_handler=handler):
        await asyncio.wait_for(done.wait(), timeout=2)

    [context] = handler.contexts
    assert context.job_name == "failing-job"
    assert context.original is error


@pytest.mark.asyncio
async def test_unhandled_failure_is_logged(queue: InMemoryTaskQueue, caplog):
    async def fail() -> None:
        raise RuntimeError("boom")

    service = TaskQueueHostedService(queue)
    with caplog.at_level(logging.ERROR, logger=SERVICE_LOGGER):
        with ServiceRegistry().create_scope() as scope:
            await service.execute_queued_job(FunctionJob(fail, name="failing-job"), scope)

    [record] = [record for record in caplog.records if record.levelno >= logging.ERROR]
    assert "failing-job" in record.getMessage()


@pytest.mark.asyncio
async def test_each_job_gets_its_own_scope(queue: InMemoryTaskQueue):
    contexts: List[QueuedJobExecutionContext] = []
    done = asyncio.Event()

    async def record(context: QueuedJobExecutionContext) -> None:
        contexts.append(context)
        if len(contexts) == 2:
            done.set()

    queue.enqueue(record)
    queue.enqueue(record)

    async with TaskQueueHostedService(queue):
        await asyncio.wait_for(done.wait(), timeout=2)

    first, second = contexts
    assert isinstance(first, QueuedJobExecutionContext)
    assert first.scope is not second.scope
    assert first.scope.is_closed


@pytest.mark.asyncio
async def test_stop_while_waiting_for_jobs(queue: InMemoryTaskQueue):
    service = TaskQueueHostedService(queue)

    await service.start()
    await asyncio.sleep(0.01)
    assert service.is_running

    await asyncio.wait_for(service.stop(), timeout=1)
    assert not service.is_running


@pytest.mark.asyncio
async def test_service_name(queue: InMemoryTaskQueue):
    assert TaskQueueHostedService(queue).name == "TaskQueueHostedService"
    assert TaskQueueHostedService(queue, name="consumer-1").name == "consumer-1"
