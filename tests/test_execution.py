"""End-to-end execution: outcomes, timeouts, failure containment, status."""

import asyncio

import pytest

import taskcue
from taskcue import AdmissionMode, SchedulerConfig, TaskState


def make_manager(max_concurrent=2, admission=AdmissionMode.CONCURRENT, **kwargs):
    return taskcue.TaskManager(
        config=SchedulerConfig(
            max_concurrent=max_concurrent,
            poll_interval=0.01,
            admission=admission,
            **kwargs,
        )
    )


def add_seven_tasks(manager, log):
    """task2 <- task1, task4 <- task2 + task3, task7 <- task5 (which fails)."""

    def body(name, seconds, fails=False):
        async def op():
            log.append(f"{name} started")
            await asyncio.sleep(seconds)
            if fails:
                raise RuntimeError(f"Error in {name}")
            log.append(f"{name} finished")
            return name
        return op

    manager.add_task(body("task1", 0.04), 2, [], 1.0)
    manager.add_task(body("task2", 0.02), 1, ["task1"], 1.0)
    manager.add_task(body("task3", 0.01), 3, [], 1.0)
    manager.add_task(body("task4", 0.03), 1, ["task2", "task3"], 1.0)
    manager.add_task(body("task5", 0.03, fails=True), 2, [], 1.0)
    manager.add_task(body("task6", 0.02), 1, [], 1.0)
    manager.add_task(body("task7", 0.05), 2, ["task5"], 1.0)


EXPECTED = {
    "task1": "completed",
    "task2": "completed",
    "task3": "completed",
    "task4": "completed",
    "task5": "failed",
    "task6": "completed",
    "task7": "completed",
}


class TestSevenTaskScenario:
    """The seven-task walkthrough ends the same way in every mode."""

    @pytest.mark.parametrize("admission", [AdmissionMode.CONCURRENT, AdmissionMode.SEQUENTIAL])
    async def test_final_statuses(self, admission):
        manager = make_manager(2, admission)
        log = []
        add_seven_tasks(manager, log)

        await manager.execute_tasks()

        assert manager.get_status() == EXPECTED
        assert manager.error("task5") == "Error in task5"
        assert "task7 finished" in log

    async def test_sequential_admission_order(self):
        """One at a time: priority order, dependents once unblocked."""
        manager = make_manager(2, AdmissionMode.SEQUENTIAL)
        add_seven_tasks(manager, [])

        await manager.execute_tasks()

        # Pass 1: task3(3), task1(2), task5(2), task6(1)
        # Pass 2: task7(2), task2(1); pass 3: task4
        assert manager.scheduler.admission_order == [
            "task3", "task1", "task5", "task6", "task7", "task2", "task4",
        ]
        assert manager.scheduler.peak_running == 1

    async def test_results_kept(self):
        manager = make_manager(3)
        add_seven_tasks(manager, [])

        await manager.execute_tasks()

        assert manager.result("task4") == "task4"
        assert manager.result("task5") is None
        task = manager.get_task("task1")
        assert task.duration is not None and task.duration >= 0.04


class TestTimeouts:
    """Per-task deadlines."""

    async def test_overrun_fails(self):
        """An operation slower than its timeout ends failed."""
        manager = make_manager(1, cancel_on_timeout=True)

        async def slow():
            await asyncio.sleep(0.5)
            return "too late"

        manager.add_task(slow, 0, [], 0.03)
        await manager.execute_tasks()

        task = manager.get_task("task1")
        assert task.state == TaskState.FAILED
        assert task.timed_out is True
        assert "timed out" in task.error
        assert task.result is None

    async def test_within_deadline_completes(self):
        """An operation faster than its timeout keeps its true result."""
        manager = make_manager(1)

        async def quick():
            await asyncio.sleep(0.01)
            return {"answer": 42}

        manager.add_task(quick, 0, [], 0.5)
        await manager.execute_tasks()

        assert manager.get_status() == {"task1": "completed"}
        assert manager.result("task1") == {"answer": 42}

    async def test_own_failure_is_not_a_timeout(self):
        """An operation that raises before its deadline fails for its own reason."""
        manager = make_manager(1)

        async def broken():
            await asyncio.sleep(0.01)
            raise ValueError("bad payload")

        manager.add_task(broken, 0, [], 0.5)
        await manager.execute_tasks()

        task = manager.get_task("task1")
        assert task.state == TaskState.FAILED
        assert task.timed_out is False
        assert task.error == "bad payload"

    async def test_timeout_does_not_stop_scheduling(self):
        """A timeout unblocks dependents like any other failure."""
        manager = make_manager(2, cancel_on_timeout=True)
        manager.add_task(lambda: asyncio.sleep(1.0), 0, [], 0.02)
        manager.add_task(lambda: asyncio.sleep(0), 0, ["task1"])

        await manager.execute_tasks()

        assert manager.get_status() == {"task1": "failed", "task2": "completed"}

    async def test_abandoned_operation_keeps_running(self):
        """Without cancel_on_timeout the overrunning body still finishes."""
        manager = make_manager(1)
        finished = asyncio.Event()

        async def slow():
            await asyncio.sleep(0.08)
            finished.set()

        manager.add_task(slow, 0, [], 0.02)
        await manager.execute_tasks()

        assert manager.get_status() == {"task1": "failed"}
        await asyncio.wait_for(finished.wait(), timeout=1.0)
        # Its late success does not change the recorded outcome
        assert manager.get_status() == {"task1": "failed"}


class TestFailureContainment:
    """Task errors never escape execute_tasks()."""

    async def test_every_task_fails(self):
        manager = make_manager(2)

        for exc in (ValueError("a"), KeyError("b"), ZeroDivisionError("c")):
            async def op(e=exc):
                raise e
            manager.add_task(op)

        await manager.execute_tasks()

        assert set(manager.get_status().values()) == {"failed"}

    @pytest.mark.parametrize("admission", [AdmissionMode.CONCURRENT, AdmissionMode.SEQUENTIAL])
    async def test_operation_raising_cancelled_error(self, admission):
        """A body that raises CancelledError fails alone; the run carries on."""
        manager = make_manager(2, admission)
        failures = []

        @manager.on_failure
        def on_failure(task, error):
            failures.append((task.id, type(error.__cause__).__name__))

        async def cancels_itself():
            future = asyncio.get_running_loop().create_future()
            future.cancel()
            await future

        manager.add_task(cancels_itself, 5)
        manager.add_task(lambda: asyncio.sleep(0), 1)

        await manager.execute_tasks()

        assert manager.get_status() == {"task1": "failed", "task2": "completed"}
        assert manager.error("task1") == "Cancelled"
        assert failures == [("task1", "CancelledError")]
        assert manager.scheduler.running is False

    async def test_sync_operation(self):
        """A plain function is accepted and its return value kept."""
        manager = make_manager(1)
        manager.add_task(lambda: 3 * 7)

        await manager.execute_tasks()

        assert manager.result("task1") == 21

    async def test_unknown_dependency_raises_before_start(self):
        """A dangling dependency is reported and nothing runs."""
        manager = make_manager(1)
        ran = []

        async def op():
            ran.append(1)

        manager.add_task(op)
        manager.add_task(op, 0, ["task99"])

        with pytest.raises(taskcue.DependencyError, match="task99"):
            await manager.execute_tasks()

        assert ran == []
        assert manager.get_status() == {"task1": "pending", "task2": "pending"}
        assert manager.scheduler.running is False

    async def test_cycle_raises_before_start(self):
        manager = make_manager(1)
        manager.add_task(lambda: asyncio.sleep(0), 0, ["task3"])
        manager.add_task(lambda: asyncio.sleep(0), 0, ["task1"])
        manager.add_task(lambda: asyncio.sleep(0), 0, ["task2"])

        with pytest.raises(taskcue.DependencyError, match="cycle"):
            await manager.execute_tasks()


class TestStatus:
    """get_status() snapshots."""

    async def test_snapshots_are_copies(self):
        manager = make_manager(1)
        manager.add_task(lambda: asyncio.sleep(0))

        first = manager.get_status()
        second = manager.get_status()

        assert first == second
        assert first is not second

        first["task1"] = "completed"
        assert manager.get_status() == {"task1": "pending"}

    async def test_status_while_running(self):
        manager = make_manager(1)
        seen = []

        async def op():
            seen.append(manager.get_status())

        manager.add_task(op)
        manager.add_task(lambda: asyncio.sleep(0))

        await manager.execute_tasks()

        assert seen == [{"task1": "running", "task2": "pending"}]
        assert manager.get_status() == {"task1": "completed", "task2": "completed"}

    async def test_execute_twice_in_sequence(self):
        """A second run only picks up newly added tasks."""
        manager = make_manager(1)
        manager.add_task(lambda: "first")
        await manager.execute_tasks()

        manager.add_task(lambda: "second")
        await manager.execute_tasks()

        assert manager.get_status() == {"task1": "completed", "task2": "completed"}
        assert manager.scheduler.admission_order == ["task1", "task2"]
