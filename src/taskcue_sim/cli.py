#!/usr/bin/env python3
"""
taskcue-sim: Watch taskcue schedule a workload.

Usage:
    taskcue-sim
    taskcue-sim --concurrent 3 --scale 0.5
    taskcue-sim --scenario random_dag --count 20 --error-rate 0.2
    taskcue-sim --admission sequential --no-tui
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import signal
import sys

from rich.console import Console
from rich.table import Table

from taskcue_sim.display import SimulationState, SimulatorDisplay, format_simple_status
from taskcue_sim.runner import SimConfig, SimulationRunner
from taskcue_sim.scenarios import SCENARIOS, list_scenarios


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the simulator."""
    taskcue_logger = logging.getLogger("taskcue")
    if verbose:
        taskcue_logger.setLevel(logging.DEBUG)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        taskcue_logger.addHandler(handler)
    else:
        # Silence library logs - simulator handles its own display
        taskcue_logger.setLevel(logging.CRITICAL)


async def run_with_display(config: SimConfig, use_tui: bool = True) -> SimulationState:
    """Run a simulation, rendering progress as it goes.

    Args:
        config: Simulation configuration
        use_tui: Use the Rich live display; otherwise print status lines
    """
    state = SimulationState()
    runner = SimulationRunner(config, state)
    runner.build()

    if use_tui:
        display = SimulatorDisplay(state)

        async def update_loop():
            while True:
                display.refresh()
                await asyncio.sleep(0.1)

        with display:
            update_task = asyncio.create_task(update_loop())
            try:
                await runner.run()
            finally:
                update_task.cancel()
                try:
                    await update_task
                except asyncio.CancelledError:
                    pass
                display.refresh()
    else:
        print(f"\ntaskcue-sim: {state.scenario_name}, {state.submitted} tasks\n")

        async def update_loop():
            last = None
            while True:
                line = format_simple_status(state)
                if line != last:
                    print(line, flush=True)
                    last = line
                await asyncio.sleep(0.5)

        update_task = asyncio.create_task(update_loop())
        try:
            await runner.run()
        finally:
            update_task.cancel()
            try:
                await update_task
            except asyncio.CancelledError:
                pass

    print_final_summary(state)
    return state


def print_final_summary(state: SimulationState, console: Console | None = None) -> None:
    """Print final statuses after a run."""
    console = console or Console()
    console.print()

    table = Table(title="Final Status", border_style="green")
    table.add_column("Task", style="bold")
    table.add_column("State")
    table.add_column("Took", justify="right")
    table.add_column("Details", style="dim")

    for row in state.tasks.values():
        color = "green" if row.state == "completed" else "red" if row.state == "failed" else "yellow"
        table.add_row(
            row.id,
            f"[{color}]{row.state}[/{color}]",
            f"{row.duration:.2f}s" if row.duration is not None else "",
            row.detail,
        )

    console.print(table)
    console.print(
        f"Completed [green]{state.completed}[/green], failed [red]{state.failed}[/red] "
        f"in {state.elapsed:.2f}s (peak running {state.peak_running}/{state.max_concurrent})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="taskcue simulator - watch a workload get scheduled",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  taskcue-sim
  taskcue-sim --concurrent 3 --scale 0.5
  taskcue-sim --scenario random_dag --count 20 --error-rate 0.2
  taskcue-sim --admission sequential
  taskcue-sim --list-scenarios
        """,
    )
    parser.add_argument(
        "--scenario",
        type=str,
        default="reference",
        help="Scenario to run (default: reference)",
    )
    parser.add_argument(
        "--list-scenarios",
        action="store_true",
        help="List available scenarios and exit",
    )
    parser.add_argument(
        "--concurrent", "-c",
        type=int,
        default=2,
        help="Max concurrently running tasks (default: 2)",
    )
    parser.add_argument(
        "--admission", "-a",
        choices=["concurrent", "sequential"],
        default="concurrent",
        help="Admission mode (default: concurrent)",
    )
    parser.add_argument(
        "--poll",
        type=float,
        default=0.1,
        help="Scheduler poll interval in seconds (default: 0.1)",
    )
    parser.add_argument(
        "--cancel-on-timeout",
        action="store_true",
        help="Cancel task bodies that overrun their deadline",
    )
    parser.add_argument(
        "--scale", "-s",
        type=float,
        default=1.0,
        help="Multiply every task latency and deadline (default: 1.0)",
    )
    parser.add_argument(
        "--count", "-n",
        type=int,
        default=12,
        help="Number of tasks for random_dag (default: 12)",
    )
    parser.add_argument(
        "--latency", "-l",
        type=int,
        default=300,
        help="Base task latency in ms for random_dag (default: 300)",
    )
    parser.add_argument(
        "--error-rate", "-e",
        type=float,
        default=0.1,
        help="Fraction of random_dag tasks that fail, 0.0-1.0 (default: 0.1)",
    )
    parser.add_argument(
        "--timeout-rate", "-t",
        type=float,
        default=0.1,
        help="Fraction of random_dag tasks that overrun, 0.0-1.0 (default: 0.1)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible workloads (default: random)",
    )
    parser.add_argument(
        "--no-tui",
        action="store_true",
        help="Disable the live display, print status lines",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print taskcue debug logs (implies --no-tui)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_scenarios:
        print("\nAvailable scenarios:\n")
        for info in list_scenarios():
            print(f"  {info.name:<15} {info.description}")
        print()
        sys.exit(0)

    if args.concurrent < 1:
        parser.error("--concurrent must be at least 1")
    if args.scenario not in SCENARIOS:
        parser.error(f"unknown scenario {args.scenario!r}, choose from: {', '.join(SCENARIOS)}")

    configure_logging(verbose=args.verbose)

    if args.seed is not None:
        random.seed(args.seed)

    config = SimConfig(
        scenario=args.scenario,
        max_concurrent=args.concurrent,
        poll_interval=args.poll,
        admission=args.admission,
        cancel_on_timeout=args.cancel_on_timeout,
        time_scale=args.scale,
        count=args.count,
        latency_ms=args.latency,
        error_rate=args.error_rate,
        timeout_rate=args.timeout_rate,
    )
    use_tui = not (args.no_tui or args.verbose)

    async def run_main():
        """Run the simulation, stopping cleanly on SIGINT/SIGTERM."""
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        main_task = asyncio.create_task(run_with_display(config, use_tui=use_tui))
        stop_task = asyncio.create_task(stop_event.wait())

        done, pending = await asyncio.wait(
            [main_task, stop_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if stop_task in done:
            print("\nInterrupted.")
            sys.exit(130)

        main_task.result()

    try:
        asyncio.run(run_main())
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
