import importlib
import logging
import logging.handlers
import os
import threading
from concurrent.futures import Future
from typing import Optional

import config as cfg
from environment.maze import Maze, StepEvent
from solvers.longest_path import LongestPathSolver
from solvers.longest_path_threaded import ThreadedLongestPathSolver
from solvers.longest_path_threaded_binary import BinaryThreadedLongestPathSolver

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

SOLVER_VARIANTS = {
    LongestPathSolver.variant_name: LongestPathSolver,
    ThreadedLongestPathSolver.variant_name: ThreadedLongestPathSolver,
    BinaryThreadedLongestPathSolver.variant_name: BinaryThreadedLongestPathSolver,
}


def load_config(overrides: Optional[dict] = None) -> dict:
    """Завантажує конфігурацію з config.py у словник."""
    importlib.reload(cfg)
    config_dict = {key: getattr(cfg, key) for key in dir(cfg) if key.isupper()}

    config_dict.setdefault('MAZE_COLUMNS', 25)
    config_dict.setdefault('MAZE_ROWS', 25)
    config_dict.setdefault('SOLVER_VARIANT', 'threaded')
    config_dict.setdefault('NUMBER_OF_THREADS', 4)
    config_dict.setdefault('WORKER_BACKEND', 'process')
    config_dict.setdefault('WORKER_TIMEOUT_SECONDS', 30.0)
    config_dict.setdefault('LOG_LEVEL', 'INFO')
    if overrides:
        config_dict.update(overrides)
    return config_dict


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Консольний лог і, за потреби, файл з ротацією."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(log_file, maxBytes=10*1024*1024, backupCount=5)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def create_solver(config: dict):
    """Створює варіант пошуку найдовшого шляху за SOLVER_VARIANT."""
    variant = config.get('SOLVER_VARIANT', 'single')
    solver_class = SOLVER_VARIANTS.get(variant)
    if solver_class is None:
        raise ValueError(f"Unknown solver variant: {variant!r} (expected one of {', '.join(SOLVER_VARIANTS)})")
    if solver_class is LongestPathSolver:
        return LongestPathSolver(search_seed=config.get('SEARCH_SEED'))
    return solver_class(
        number_of_threads=config.get('NUMBER_OF_THREADS', 4),
        backend=config.get('WORKER_BACKEND', 'process'),
        timeout=config.get('WORKER_TIMEOUT_SECONDS', 30.0),
        search_seed=config.get('SEARCH_SEED'),
    )


def create_maze(config: dict) -> Maze:
    return Maze(
        config.get('MAZE_COLUMNS', 25),
        config.get('MAZE_ROWS', 25),
        seed=config.get('MAZE_SEED'),
        solver=create_solver(config),
    )


class MazeController:
    """Зв'язує лабіринт, пошук і візуалізатор."""

    def __init__(self, config: Optional[dict] = None):
        self.config = config if config is not None else load_config()
        self.maze = create_maze(self.config)
        self.step_events: list[StepEvent] = []
        self.maze.on_step_taken(self.step_events.append)
        self._generation_lock = threading.Lock()

    def generate_new_maze(self, seed=None) -> list[StepEvent]:
        """Генерує лабіринт і повертає записані кроки генерації."""
        with self._generation_lock:
            self.step_events.clear()
            self.maze.generate_maze(self.config.get('MAZE_COLUMNS'), self.config.get('MAZE_ROWS'), seed)
            self.config['MAZE_SEED'] = self.maze.seed
            return list(self.step_events)

    def generate_in_background(self, seed=None) -> Future:
        """Генерація в окремому потоці; GUI опитує Future зі свого циклу."""
        future = Future()
        future.set_running_or_notify_cancel()

        def run():
            try:
                future.set_result(self.generate_new_maze(seed))
            except Exception as exc:
                logger.error("Maze generation failed: %s", exc)
                future.set_exception(exc)

        threading.Thread(target=run, name="maze-generation", daemon=True).start()
        return future

    def solve_current_maze(self, cancel_token=None):
        """Новий пошук найдовшого шляху на поточному лабіринті. Повертає (solver, future)."""
        solver = create_solver(self.config)
        return solver, solver.solve(self.maze, cancel_token)


if __name__ == "__main__":
    import multiprocessing
    import tkinter as tk
    from tkinter import messagebox
    multiprocessing.freeze_support()

    from visualization.gui import MazeVisualiser

    app_config = load_config()
    configure_logging(app_config.get('LOG_LEVEL', 'INFO'), app_config.get('LOG_FILE'))

    root = tk.Tk()
    try:
        controller = MazeController(app_config)
        MazeVisualiser(root, controller)
        root.mainloop()
    except Exception as e:
        logger.exception("Unhandled exception in the maze visualiser")
        try:
            messagebox.showerror("Fatal Error", f"An unexpected error occurred:\n{e}\n\nCheck console output.")
        except tk.TclError:
            pass
        raise
