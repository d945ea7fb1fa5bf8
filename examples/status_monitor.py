#!/usr/bin/env python3
"""
Status Monitor

Registers seven tasks with priorities, dependencies and deadlines, runs
them two at a time, and prints the status map every half second until
every task has finished.

Demonstrates:
- Dependency gating (task4 waits for task2 and task3)
- A failing task that still unblocks its dependent (task5 -> task7)
- Polling get_status() from a separate coroutine
"""

import asyncio
import logging

import taskcue

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s: %(message)s")
log = logging.getLogger("status_monitor")


def work(name: str, seconds: float, fail: bool = False):
    async def body():
        log.info("%s started", name)
        await asyncio.sleep(seconds)
        if fail:
            log.info("%s finished with an error", name)
            raise RuntimeError(f"Error in {name}")
        log.info("%s finished", name)
    return body


async def monitor(manager: taskcue.TaskManager) -> None:
    async for status in manager.reporter.watch(0.5):
        log.info("Current status: %s", status)


async def main() -> None:
    manager = taskcue.TaskManager(2)

    manager.add_task(work("task1", 2.0), 2, [], 2.5)
    manager.add_task(work("task2", 1.0), 1, ["task1"], 2.0)
    manager.add_task(work("task3", 0.5), 3, [], 1.0)
    manager.add_task(work("task4", 3.0), 1, ["task2", "task3"], 3.5)
    manager.add_task(work("task5", 1.5, fail=True), 2, [], 2.0)
    manager.add_task(work("task6", 1.0), 1, [], 1.5)
    manager.add_task(work("task7", 2.5), 2, ["task5"], 3.0)

    await asyncio.gather(manager.execute_tasks(), monitor(manager))

    log.info("All tasks finished")
    log.info("Final status: %s", manager.get_status())


if __name__ == "__main__":
    asyncio.run(main())
