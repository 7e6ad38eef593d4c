import logging
import os
from statistics import mean
from typing import Callable, Dict, Optional

import matplotlib.pyplot as plt
import pandas as pd

logger = logging.getLogger(__name__)

BENCHMARK_COLUMNS = ["solver", "attempt", "path_length", "discoveries",
                     "overall_duration", "mean_discovery_duration"]


def run_benchmark(maze, solver_factories: Dict[str, Callable], attempts: int = 10,
                  timeout: Optional[float] = None) -> pd.DataFrame:
    """
    Запускає кожен варіант пошуку кілька разів на одному лабіринті.

    Args:
        maze: згенерований Maze (або серіалізована сітка).
        solver_factories: назва -> функція без аргументів, що створює solver.
        attempts: кількість запусків кожного варіанту.
        timeout: скільки чекати на один результат (None - без обмеження).

    Returns:
        DataFrame з рядком на кожен запуск.
    """
    if attempts < 1:
        raise ValueError(f"Number of attempts must be at least 1, got {attempts}")
    cells = maze.cells if hasattr(maze, "cells") else maze
    if not cells:
        raise ValueError("Maze must be generated before running the benchmark")

    rows = []
    for name, factory in solver_factories.items():
        logger.info("Starting benchmark %s (%d attempts)", name, attempts)
        solver = factory()
        for attempt in range(1, attempts + 1):
            solution = solver.solve(maze).result(timeout=timeout)
            durations = list(solver.discovery_durations)
            rows.append({
                "solver": name,
                "attempt": attempt,
                "path_length": solution.length,
                "discoveries": len(durations),
                "overall_duration": solver.overall_duration,
                "mean_discovery_duration": mean(durations) if durations else 0.0,
            })
            logger.debug("%s attempt %d: %d discoveries, %.4fs",
                         name, attempt, len(durations), solver.overall_duration or 0.0)

    return pd.DataFrame(rows, columns=BENCHMARK_COLUMNS)


def discovery_series(solver) -> Dict[str, list]:
    """
    Тривалості пошуків останнього solve() (мс), згруповані для графіка:
    окрема серія на кожен воркер або одна серія для послідовного варіанту.
    """
    worker_durations = getattr(solver, "worker_durations", None)
    if worker_durations:
        return {f"worker {index}": [duration * 1000 for duration in durations]
                for index, durations in sorted(worker_durations.items())}
    durations = getattr(solver, "discovery_durations", None) or []
    if not durations:
        return {}
    return {solver.variant_name: [duration * 1000 for duration in durations]}


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Середня тривалість та статистика кількості пошуків для кожного варіанту."""
    grouped = df.groupby("solver", sort=False)
    summary = pd.DataFrame({
        "mean_duration": grouped["overall_duration"].mean(),
        "mean_discoveries": grouped["discoveries"].mean(),
        "min_discoveries": grouped["discoveries"].min(),
        "max_discoveries": grouped["discoveries"].max(),
        "path_length": grouped["path_length"].max(),
    })
    return summary


def plot_benchmark(df: pd.DataFrame, save_path: Optional[str] = None, show: bool = True):
    """Стовпчикова діаграма середньої тривалості пошуку для кожного варіанту."""
    summary = summarize(df)

    fig, (ax_duration, ax_discoveries) = plt.subplots(1, 2, figsize=(12, 5))
    ax_duration.bar(summary.index, summary["mean_duration"] * 1000, color='steelblue')
    ax_duration.set_ylabel('Mean duration (ms)')
    ax_duration.set_title('Longest path search duration')
    ax_duration.grid(True, axis='y', alpha=0.3)

    ax_discoveries.bar(summary.index, summary["mean_discoveries"], color='seagreen')
    ax_discoveries.set_ylabel('Mean discoveries')
    ax_discoveries.set_title('Searches per attempt')
    ax_discoveries.grid(True, axis='y', alpha=0.3)

    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')
    if show:
        plt.show()
    return fig


def export_to_csv(df: pd.DataFrame, output_dir: str):
    """Зберігає сирі результати та зведення у CSV."""
    os.makedirs(output_dir, exist_ok=True)
    df.to_csv(os.path.join(output_dir, "benchmark_runs.csv"), index=False)
    summarize(df).to_csv(os.path.join(output_dir, "benchmark_summary.csv"))
    logger.info("Benchmark data exported to %s", output_dir)


if __name__ == "__main__":
    import argparse
    import multiprocessing

    from main import configure_logging, load_config
    from environment.maze import Maze
    from solvers.longest_path import LongestPathSolver
    from solvers.longest_path_threaded import ThreadedLongestPathSolver
    from solvers.longest_path_threaded_binary import BinaryThreadedLongestPathSolver

    multiprocessing.freeze_support()

    parser = argparse.ArgumentParser(description="Benchmark the longest path solvers")
    parser.add_argument("--output", help="directory for CSV files and the chart")
    parser.add_argument("--no-show", action="store_true", help="do not open the chart window")
    args = parser.parse_args()

    config = load_config()
    configure_logging(config.get('LOG_LEVEL', 'INFO'), config.get('LOG_FILE'))

    threads = config.get('NUMBER_OF_THREADS', 4)
    backend = config.get('WORKER_BACKEND', 'process')
    maze = Maze(config.get('BENCHMARK_COLUMNS', 50), config.get('BENCHMARK_ROWS', 50),
                seed=config.get('MAZE_SEED'))
    maze.generate_maze()

    factories = {
        "Multi threaded": lambda: ThreadedLongestPathSolver(threads, backend=backend),
        "Single thread": LongestPathSolver,
        "Multi threaded binary": lambda: BinaryThreadedLongestPathSolver(threads, backend=backend),
    }
    results = run_benchmark(maze, factories, config.get('BENCHMARK_ATTEMPTS', 10))
    print(summarize(results).to_string())

    save_path = None
    if args.output:
        export_to_csv(results, args.output)
        save_path = os.path.join(args.output, "benchmark.png")
    plot_benchmark(results, save_path=save_path, show=not args.no_show)
