import asyncio
import logging
from datetime import timedelta

from background_scheduler import (
    BackgroundJobHost,
    CronTrigger,
    FixedIntervalTrigger,
    SchedulerSettings,
    ServiceRegistry,
)
from background_scheduler.domain.context import QueuedJobExecutionContext, ScheduledJobExecutionContext
from background_scheduler.domain.job import FunctionJob, ServiceMethodJob

logging.basicConfig(level=logging.INFO)


class Greeter:
    def greet(self, context: ScheduledJobExecutionContext) -> None:
        print(f"Hello #{context.execution_count}, next greeting at {context.next_fire_time}")


async def heartbeat(context: ScheduledJobExecutionContext) -> None:
    print(f"Heartbeat at {context.execution_time:%H:%M:%S} (drift {context.drift.total_seconds():.2f}s)")


def make_echo_job(text: str) -> FunctionJob:
    async def echo(context: QueuedJobExecutionContext) -> None:
        if text == "fail":
            raise RuntimeError("Asked to fail")
        print(f"Echo: {text}")
    return FunctionJob(echo, name=f"echo '{text}'")


# Set up the registry and the host
registry = ServiceRegistry()
registry.add_singleton(Greeter)
host = BackgroundJobHost(SchedulerSettings(poll_interval=1, queue_consumers=2), scope_factory=registry)
host.schedule_recurring(heartbeat, FixedIntervalTrigger(timedelta(seconds=5)))
host.schedule_recurring(ServiceMethodJob(Greeter, "greet"), CronTrigger.minutely())


async def get_user_input():
    return await asyncio.to_thread(input, "> ")


async def console():
    print("Type a message to echo it in the background, 'fail' to raise an error, 'exit' to quit.")
    while True:
        user_input = await get_user_input()
        if user_input.lower() == "exit":
            break
        host.enqueue_one_shot(make_echo_job(user_input))


async def main():
    async with host:
        await console()

if __name__ == "__main__":
    asyncio.run(main())
