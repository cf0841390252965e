from __future__ import annotations

from dataclasses import replace
from typing import Optional
import logging
import os

from colorama import Fore, Style, init as colorama_init

from .exceptions import SimulatorError
from .os_kernel import OSKernel, KernelConfig, SimulationResult
from .report import format_statistics, format_comparison
from .schedulers import Scheduler


DEFAULT_JOB_FILE = "job.txt"

MENU_POLICIES = {
    "1": Scheduler.SJF,
    "2": Scheduler.RR,
    "3": Scheduler.PRIORITY,
}


class ManualTerminal:
    def __init__(self, config: Optional[KernelConfig] = None) -> None:
        colorama_init(autoreset=True)
        self.config = config or KernelConfig()
        self.job_file = DEFAULT_JOB_FILE
        self.last_result: Optional[SimulationResult] = None

    def prompt(self) -> None:
        self._welcome()
        try:
            name = input(f"\nEnter job file name (default: {DEFAULT_JOB_FILE}): ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        self.job_file = name or DEFAULT_JOB_FILE
        if not os.path.exists(self.job_file):
            print(Fore.RED + f"Error: File '{self.job_file}' not found!")
            return
        print(f"Using job file: {self.job_file}")

        while True:
            self._menu()
            try:
                raw = input(Fore.GREEN + "\nEnter your choice (1-6): ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not self.handle_choice(raw.strip()):
                break

    def handle_choice(self, choice: str) -> bool:
        """Run one menu entry. Returns False when the user asked to exit."""
        try:
            if choice in MENU_POLICIES:
                self._run(MENU_POLICIES[choice])
            elif choice == "4":
                for policy in Scheduler.ALL:
                    self._run(policy)
            elif choice == "5":
                self._compare()
            elif choice == "6":
                print(Fore.CYAN + "\nThank you for using CPU Scheduler Simulator!")
                return False
            else:
                print(Fore.YELLOW + "\nInvalid choice. Please try again.")
        except (SimulatorError, OSError) as e:
            print(Fore.RED + f"\nAn error occurred: {e}")
        return True

    def _welcome(self) -> None:
        print(Style.BRIGHT + "\n" + "=" * 70)
        print(Style.BRIGHT + "          CPU SCHEDULER SIMULATOR")
        print("          Multi-threaded Process Scheduling Simulation")
        print("=" * 70)
        print("\nThis simulator demonstrates three CPU scheduling algorithms:")
        print("  1. Shortest Job First (SJF) - Non-Preemptive")
        print(f"  2. Round-Robin (RR) - Quantum = {self.config.time_quantum}ms")
        print("  3. Priority Scheduling (1=Lowest, 128=Highest) with Aging")
        print("\nSystem Specifications:")
        print(f"  - Total Memory: {self.config.memory_capacity} MB")
        print("  - Context Switch Time: 0 ms")
        print("  - All processes arrive at time 0")
        print("  - Multi-threaded: File Reader + Job Loader")

    def _menu(self) -> None:
        print("\n" + "=" * 70)
        print(Style.BRIGHT + "MAIN MENU")
        print("=" * 70)
        print("1. Run SJF (Shortest Job First) Scheduling")
        print("2. Run Round-Robin Scheduling")
        print("3. Run Priority Scheduling with Aging")
        print("4. Run All Algorithms")
        print("5. Compare All Algorithms")
        print("6. Exit")

    def _run(self, policy: str) -> None:
        kernel = OSKernel(replace(self.config, policy=policy))
        result = kernel.run_file(self.job_file)
        self.last_result = result
        print(format_statistics(result))

    def _compare(self) -> None:
        frame = OSKernel(self.config).compare(path=self.job_file)
        print(format_comparison(frame))


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s.%(msecs)03d] %(message)s", datefmt="%H:%M:%S")
    ManualTerminal().prompt()


if __name__ == "__main__":
    main()
