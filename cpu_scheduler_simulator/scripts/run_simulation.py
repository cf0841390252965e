from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from cpu_scheduler_simulator.backend.exceptions import SimulatorError
from cpu_scheduler_simulator.backend.os_kernel import OSKernel, KernelConfig
from cpu_scheduler_simulator.backend.report import format_statistics, format_comparison, process_table
from cpu_scheduler_simulator.backend.schedulers import Scheduler, DEFAULT_TIME_QUANTUM
from cpu_scheduler_simulator.backend.memory import TOTAL_MEMORY
from cpu_scheduler_simulator.backend.visualizer import plot_gantt


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="CPU Scheduler Simulator")
    p.add_argument("jobs", nargs="?", default="job.txt", help="Job file (id:burst:priority;memory per line)")
    p.add_argument("--policy", choices=[*Scheduler.ALL, "ALL"], default=Scheduler.SJF)
    p.add_argument("--compare", action="store_true", help="Run all policies and print a comparison")
    p.add_argument("--quantum", type=int, default=DEFAULT_TIME_QUANTUM)
    p.add_argument("--memory", type=int, default=TOTAL_MEMORY, help="Total memory in MB")
    p.add_argument("--quiet", action="store_true", help="Do not echo the system-call trace")
    p.add_argument("--plot", type=str, default=None, help="Save a Gantt chart image (per policy suffix when ALL)")
    p.add_argument("--export", type=str, default=None, help="Base path for JSON/CSV logs and the stats table")
    return p.parse_args(argv)


def _suffixed(path: str, policy: str, many: bool) -> str:
    if not many:
        return path
    root, ext = os.path.splitext(path)
    return f"{root}_{policy.lower()}{ext}"


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="[%(asctime)s.%(msecs)03d] %(message)s",
        datefmt="%H:%M:%S",
    )
    config = KernelConfig(time_quantum=args.quantum, memory_capacity=args.memory, verbose=not args.quiet)

    try:
        if args.compare:
            print(format_comparison(OSKernel(config).compare(path=args.jobs)))
            return 0

        policies = Scheduler.ALL if args.policy == "ALL" else (args.policy,)
        for policy in policies:
            config.policy = policy
            result = OSKernel(config).run_file(args.jobs)
            print(format_statistics(result))
            if args.plot:
                out = _suffixed(args.plot, policy, len(policies) > 1)
                plot_gantt(result, out)
                print(f"Saved plot to {out}")
            if args.export:
                base = _suffixed(args.export, policy, len(policies) > 1)
                result.logger.export_json(f"{base}.json")
                result.logger.export_csv(base)
                process_table(result).to_csv(f"{base}_processes.csv", index=False)
                print(f"Logs written to {base}.*")
    except (SimulatorError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
