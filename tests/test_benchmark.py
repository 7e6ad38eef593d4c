import pandas as pd
import pytest

from analysis.benchmark import (BENCHMARK_COLUMNS, discovery_series, export_to_csv, plot_benchmark,
                                run_benchmark, summarize)
from environment.maze import Maze
from solvers.longest_path import LongestPathSolver
from solvers.longest_path_threaded import ThreadedLongestPathSolver


@pytest.fixture
def benchmark_frame(generated_maze):
    maze = generated_maze(7, 7, seed=10)
    factories = {
        "single": lambda: LongestPathSolver(search_seed=1),
        "threaded": lambda: ThreadedLongestPathSolver(2, backend="thread", search_seed=1),
    }
    return run_benchmark(maze, factories, attempts=3, timeout=30)


def test_run_benchmark_frame(benchmark_frame):
    assert list(benchmark_frame.columns) == BENCHMARK_COLUMNS
    assert len(benchmark_frame) == 6
    assert list(benchmark_frame["attempt"][:3]) == [1, 2, 3]
    assert (benchmark_frame["discoveries"] > 0).all()
    assert (benchmark_frame["overall_duration"] >= 0).all()
    assert (benchmark_frame["path_length"] >= 7).all()


def test_summarize(benchmark_frame):
    summary = summarize(benchmark_frame)
    assert list(summary.index) == ["single", "threaded"]
    single = summary.loc["single"]
    assert single["min_discoveries"] <= single["mean_discoveries"] <= single["max_discoveries"]


def test_plot_and_export(benchmark_frame, tmp_path):
    chart = tmp_path / "benchmark.png"
    figure = plot_benchmark(benchmark_frame, save_path=str(chart), show=False)
    assert chart.exists()
    assert len(figure.axes) == 2

    export_to_csv(benchmark_frame, str(tmp_path / "csv"))
    runs = pd.read_csv(tmp_path / "csv" / "benchmark_runs.csv")
    assert len(runs) == len(benchmark_frame)
    assert (tmp_path / "csv" / "benchmark_summary.csv").exists()


def test_benchmark_rejects_bad_input(generated_maze):
    with pytest.raises(ValueError):
        run_benchmark(generated_maze(3, 3), {"single": LongestPathSolver}, attempts=0)
    with pytest.raises(ValueError):
        run_benchmark(Maze(3, 3), {"single": LongestPathSolver}, attempts=1)


def test_discovery_series_per_worker(generated_maze):
    solver = ThreadedLongestPathSolver(2, backend="thread", search_seed=1)
    solver.solve(generated_maze(6, 6, seed=3)).result(30)

    series = discovery_series(solver)
    assert set(series) <= {"worker 0", "worker 1"}
    assert sum(len(durations) for durations in series.values()) == len(solver.discovery_durations)
    assert all(duration >= 0 for durations in series.values() for duration in durations)


def test_discovery_series_single_solver(generated_maze):
    solver = LongestPathSolver(search_seed=1)
    solver.solve(generated_maze(5, 5, seed=3)).result(30)

    series = discovery_series(solver)
    assert list(series) == [solver.variant_name]
    assert series[solver.variant_name][0] == pytest.approx(solver.discovery_durations[0] * 1000)


def test_discovery_series_before_solving():
    assert discovery_series(LongestPathSolver()) == {}
    assert discovery_series(ThreadedLongestPathSolver(2, backend="thread")) == {}
