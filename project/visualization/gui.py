import logging
import tkinter as tk
from tkinter import ttk, messagebox, filedialog, Menu
from typing import Optional, TYPE_CHECKING

import matplotlib.pyplot as plt
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from analysis.benchmark import discovery_series
from environment.maze import STATE_BACKTRACK, STATE_DISCOVERY
from solvers.longest_path_base import CancellationToken
from .maze_renderer import BASE_PADDING, cell_bounds, cell_center, render_maze, wall_segments

if TYPE_CHECKING:
    from main import MazeController

logger = logging.getLogger(__name__)

# --- Константи для кольорів ---
COLOR_WALL = "black"
COLOR_EMPTY = "white"
COLOR_DISCOVERY = "#FFD54F"
COLOR_BACKTRACK = "#90CAF9"
COLOR_CURRENT = "#E53935"
COLOR_ENTRY = "lightgreen"
COLOR_EXIT = "red"
COLOR_PATH_LINE = "#1E88E5"
COLOR_INFO_BG = "lightgrey"

STATE_COLORS = {
    STATE_DISCOVERY: COLOR_DISCOVERY,
    STATE_BACKTRACK: COLOR_BACKTRACK,
}

POLL_INTERVAL_MS = 50


class DurationPlotWindow(tk.Toplevel):
    """Графік тривалості пошуків останнього розв'язання, по лінії на воркер."""

    def __init__(self, master, solver, series: dict):
        super().__init__(master)
        self.title(f"Тривалість пошуків ({solver.variant_name})")
        self.figure = plt.Figure(figsize=(8, 5), dpi=100)
        self.canvas = FigureCanvasTkAgg(self.figure, self)
        self.canvas.get_tk_widget().pack(side=tk.TOP, fill=tk.BOTH, expand=True)
        self.protocol("WM_DELETE_WINDOW", self.on_close)
        self._draw(solver, series)

    def _draw(self, solver, series: dict):
        ax_runs, ax_totals = self.figure.subplots(1, 2, gridspec_kw={'width_ratios': [3, 1]})
        for label, durations in series.items():
            ax_runs.plot(range(1, len(durations) + 1), durations, marker='o', markersize=3, label=label)
        ax_runs.set_xlabel("Пошук воркера")
        ax_runs.set_ylabel("Тривалість (мс)")
        ax_runs.grid(True, alpha=0.3)
        if len(series) > 1:
            ax_runs.legend(fontsize=8)

        # Скільки часу кожен воркер витратив загалом: видно нерівномірний розподіл
        ax_totals.bar(list(series), [sum(durations) for durations in series.values()], color='steelblue')
        ax_totals.set_ylabel("Сумарно (мс)")
        ax_totals.tick_params(axis='x', labelrotation=45, labelsize=8)

        overall = solver.overall_duration
        overall_text = f"{overall * 1000:.1f} мс" if overall is not None else "N/A"
        self.figure.suptitle(f"{sum(len(d) for d in series.values())} пошуків, загалом {overall_text}")
        self.figure.tight_layout()
        self.canvas.draw()

    def on_close(self):
        plt.close(self.figure)
        self.destroy()


class MazeVisualiser:
    """Графічний інтерфейс: анімація генерації лабіринту та пошук найдовшого шляху."""

    def __init__(self, master: tk.Tk, controller: 'MazeController'):
        self.master = master
        self.controller = controller
        self.config = controller.config
        self.master.title("Лабіринт і найдовший шлях")

        self._cell_size = self.config.get('CELL_SIZE_PX', 20)
        info_panel_width = self.config.get('INFO_PANEL_WIDTH_PX', 220)

        self._events = []
        self._event_index = 0
        self._animation_job = None
        self._busy = False
        self._cancel_token: Optional[CancellationToken] = None
        self._last_solver = None
        self._path = None

        # --- Основні фрейми ---
        self.maze_frame = tk.Frame(master, bd=1, relief=tk.SUNKEN)
        self.maze_frame.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=5, pady=5)

        self.control_frame = tk.Frame(master, width=info_panel_width, bg=COLOR_INFO_BG, bd=1, relief=tk.RAISED)
        self.control_frame.pack(side=tk.RIGHT, fill=tk.Y, padx=5, pady=5)
        self.control_frame.pack_propagate(False)

        width_px, height_px = self._canvas_size()
        self.maze_canvas = tk.Canvas(self.maze_frame, bg=COLOR_EMPTY, width=width_px, height=height_px,
                                     scrollregion=(0, 0, width_px, height_px))
        self.maze_canvas.pack(fill=tk.BOTH, expand=True)

        self._create_control_widgets(self.control_frame)
        self._create_menubar()
        self.set_controls_state(busy=False)

    def _canvas_size(self) -> tuple[int, int]:
        columns = self.config.get('MAZE_COLUMNS', 25)
        rows = self.config.get('MAZE_ROWS', 25)
        return columns * self._cell_size + 2 * BASE_PADDING, rows * self._cell_size + 2 * BASE_PADDING

    # --- Віджети ---
    def _create_menubar(self):
        menubar = Menu(self.master)
        self.master.config(menu=menubar)

        file_menu = Menu(menubar, tearoff=0)
        menubar.add_cascade(label="Файл", menu=file_menu)
        file_menu.add_command(label="Експорт зображення...", command=self._on_export_image)
        file_menu.add_separator()
        file_menu.add_command(label="Вихід", command=self.master.quit)

        analysis_menu = Menu(menubar, tearoff=0)
        menubar.add_cascade(label="Аналіз", menu=analysis_menu)
        analysis_menu.add_command(label="Тривалість пошуків", command=self._plot_discovery_durations)

    def _create_control_widgets(self, parent_frame):
        """Створює віджети на панелі керування."""
        parent_frame.grid_columnconfigure(0, weight=1)
        current_row = 0

        # --- Генерація ---
        maze_frame = ttk.LabelFrame(parent_frame, text="Лабіринт", padding=(5, 5))
        maze_frame.grid(row=current_row, column=0, sticky="ew", padx=5, pady=5); current_row += 1
        maze_frame.columnconfigure(1, weight=1)

        ttk.Label(maze_frame, text="Seed").grid(row=0, column=0, padx=(0, 5), sticky="w")
        seed = self.config.get('MAZE_SEED')
        self.seed_var = tk.StringVar(value="" if seed is None else str(seed))
        self.seed_entry = ttk.Entry(maze_frame, textvariable=self.seed_var, width=10)
        self.seed_entry.grid(row=0, column=1, sticky="ew")

        self.generate_button = ttk.Button(maze_frame, text="Новий лабіринт", command=self._on_generate)
        self.generate_button.grid(row=1, column=0, columnspan=2, sticky="ew", pady=2)
        self.replay_button = ttk.Button(maze_frame, text="Повторити анімацію", command=self._on_replay)
        self.replay_button.grid(row=2, column=0, columnspan=2, sticky="ew", pady=2)

        # --- Пошук ---
        solve_frame = ttk.LabelFrame(parent_frame, text="Найдовший шлях", padding=(5, 5))
        solve_frame.grid(row=current_row, column=0, sticky="ew", padx=5, pady=5); current_row += 1
        solve_frame.columnconfigure(1, weight=1)

        ttk.Label(solve_frame, text="Варіант").grid(row=0, column=0, padx=(0, 5), sticky="w")
        self.variant_var = tk.StringVar(value=self.config.get('SOLVER_VARIANT', 'threaded'))
        self.variant_combo = ttk.Combobox(solve_frame, textvariable=self.variant_var, state="readonly", width=14,
                                          values=("single", "threaded", "threaded_binary"))
        self.variant_combo.grid(row=0, column=1, sticky="ew")

        ttk.Label(solve_frame, text="Воркери").grid(row=1, column=0, padx=(0, 5), sticky="w")
        self.threads_var = tk.IntVar(value=self.config.get('NUMBER_OF_THREADS', 4))
        self.threads_spin = ttk.Spinbox(solve_frame, from_=1, to=64, textvariable=self.threads_var, width=5)
        self.threads_spin.grid(row=1, column=1, sticky="ew")

        self.solve_button = ttk.Button(solve_frame, text="Шукати знову", command=self._on_solve)
        self.solve_button.grid(row=2, column=0, columnspan=2, sticky="ew", pady=2)
        self.cancel_button = ttk.Button(solve_frame, text="Скасувати", command=self._on_cancel)
        self.cancel_button.grid(row=3, column=0, columnspan=2, sticky="ew", pady=2)

        # --- Відображення ---
        view_frame = ttk.LabelFrame(parent_frame, text="Відображення", padding=(5, 5))
        view_frame.grid(row=current_row, column=0, sticky="ew", padx=5, pady=5); current_row += 1
        view_frame.columnconfigure(0, weight=1)

        self.show_path_var = tk.BooleanVar(value=True)
        ttk.Checkbutton(view_frame, text="Показати шлях", variable=self.show_path_var,
                        command=self._on_toggle_show_path).grid(row=0, column=0, sticky="w")
        ttk.Label(view_frame, text="Кроків за кадр").grid(row=1, column=0, sticky="w")
        self.speed_var = tk.IntVar(value=5)
        ttk.Scale(view_frame, from_=1, to=100, orient=tk.HORIZONTAL,
                  variable=self.speed_var).grid(row=2, column=0, sticky="ew")

        # --- Інформація ---
        info_frame = ttk.LabelFrame(parent_frame, text="Інформація", padding=(5, 5))
        info_frame.grid(row=current_row, column=0, sticky="ew", padx=5, pady=5); current_row += 1
        self.seed_label = ttk.Label(info_frame, text="Seed: N/A")
        self.seed_label.pack(anchor="w")
        self.entry_label = ttk.Label(info_frame, text="Вхід: N/A")
        self.entry_label.pack(anchor="w")
        self.exit_label = ttk.Label(info_frame, text="Вихід: N/A")
        self.exit_label.pack(anchor="w")
        self.length_label = ttk.Label(info_frame, text="Довжина шляху: N/A")
        self.length_label.pack(anchor="w")
        self.duration_label = ttk.Label(info_frame, text="Тривалість: N/A")
        self.duration_label.pack(anchor="w")
        self.status_label = ttk.Label(info_frame, text="Готово", wraplength=180)
        self.status_label.pack(anchor="w", pady=(5, 0))

    def set_controls_state(self, busy: bool):
        """Блокує кнопки під час генерації чи пошуку."""
        self._busy = busy
        state = tk.DISABLED if busy else tk.NORMAL
        has_maze = bool(self.controller.maze.cells)
        self.generate_button.config(state=state)
        self.seed_entry.config(state=state)
        self.replay_button.config(state=state if has_maze else tk.DISABLED)
        self.solve_button.config(state=state if has_maze else tk.DISABLED)
        self.cancel_button.config(state=tk.NORMAL if busy and self._cancel_token is not None else tk.DISABLED)

    # --- Опитування Future з циклу Tk ---
    def _poll_future(self, future, callback):
        if future.done():
            callback(future)
            return
        self.master.after(POLL_INTERVAL_MS, self._poll_future, future, callback)

    # --- Обробники ---
    def _parse_seed(self):
        text = self.seed_var.get().strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            return text

    def _on_generate(self):
        if self._busy:
            return
        self._stop_animation()
        self.set_controls_state(busy=True)
        self.status_label.config(text="Генерація лабіринту...")
        future = self.controller.generate_in_background(self._parse_seed())
        self._poll_future(future, self._on_generation_done)

    def _on_generation_done(self, future):
        self.set_controls_state(busy=False)
        exc = future.exception()
        if exc is not None:
            self.status_label.config(text="Помилка генерації")
            messagebox.showerror("Помилка", f"Не вдалося згенерувати лабіринт:\n{exc}")
            return
        maze = self.controller.maze
        self._path = maze.longest_path.path if maze.longest_path else None
        self._last_solver = maze.solver
        self._update_info()
        self.start_animation(future.result())

    def _on_replay(self):
        if self._busy or not self.controller.step_events:
            return
        self.start_animation(list(self.controller.step_events))

    def _on_solve(self):
        if self._busy:
            return
        self.controller.config['SOLVER_VARIANT'] = self.variant_var.get()
        try:
            self.controller.config['NUMBER_OF_THREADS'] = int(self.threads_var.get())
        except (tk.TclError, ValueError):
            messagebox.showerror("Помилка вводу", "Кількість воркерів має бути цілим числом.")
            return
        self._cancel_token = CancellationToken()
        try:
            solver, future = self.controller.solve_current_maze(self._cancel_token)
        except ValueError as e:
            self._cancel_token = None
            messagebox.showerror("Помилка", str(e))
            return
        self._last_solver = solver
        self.set_controls_state(busy=True)
        self.status_label.config(text=f"Пошук ({solver.variant_name})...")
        self._poll_future(future, self._on_solve_done)

    def _on_solve_done(self, future):
        self._cancel_token = None
        self.set_controls_state(busy=False)
        exc = future.exception()
        if exc is not None:
            self.status_label.config(text="Помилка пошуку")
            messagebox.showerror("Помилка", f"Пошук найдовшого шляху не вдався:\n{exc}")
            return
        solution = future.result()
        if solution.cancelled:
            self.status_label.config(text="Пошук скасовано")
        else:
            self.status_label.config(text="Пошук завершено")
        self._path = solution.path
        self._update_info(solution)
        self.draw_maze()

    def _on_cancel(self):
        if self._cancel_token is not None:
            self._cancel_token.cancel()
            self.status_label.config(text="Скасування...")

    def _on_toggle_show_path(self):
        if self._animation_job is None:
            self.draw_maze()

    def _on_export_image(self):
        maze = self.controller.maze
        if not maze.cells:
            messagebox.showinfo("Експорт", "Спочатку згенеруйте лабіринт.")
            return
        filepath = filedialog.asksaveasfilename(defaultextension=".png",
                                                filetypes=[("PNG", "*.png"), ("All files", "*.*")])
        if not filepath:
            return
        path = self._path if self.show_path_var.get() else None
        try:
            render_maze(maze, self._cell_size, path).save(filepath)
            logger.info("Maze image saved to %s", filepath)
        except OSError as e:
            messagebox.showerror("Помилка експорту", f"Не вдалося зберегти зображення:\n{e}")

    def _plot_discovery_durations(self):
        solver = self._last_solver
        series = discovery_series(solver) if solver is not None else {}
        if not series:
            messagebox.showinfo("Аналіз", "Немає даних про пошуки. Згенеруйте лабіринт або запустіть пошук.")
            return
        DurationPlotWindow(self.master, solver, series)

    # --- Анімація генерації ---
    def start_animation(self, events):
        self._stop_animation()
        self._events = events
        self._event_index = 0
        self.maze_canvas.delete("all")
        self._resize_canvas()
        self._animate_step()

    def _stop_animation(self):
        if self._animation_job is not None:
            self.master.after_cancel(self._animation_job)
            self._animation_job = None

    def _animate_step(self):
        batch = max(1, int(self.speed_var.get()))
        end = min(self._event_index + batch, len(self._events))
        for event in self._events[self._event_index:end]:
            self._draw_step_event(event)
        self._event_index = end

        if self._event_index < len(self._events):
            last = self._events[self._event_index - 1]
            self._draw_current_marker(last.cell)
            self._animation_job = self.master.after(self.config.get('ANIMATION_DELAY_MS', 10), self._animate_step)
        else:
            self._animation_job = None
            self.draw_maze()

    def _draw_step_event(self, event):
        cell = event.cell
        tag = f"cell_{cell.id}"
        self.maze_canvas.delete(tag)
        self.maze_canvas.create_rectangle(*cell_bounds(cell.column, cell.row, self._cell_size),
                                          fill=STATE_COLORS.get(event.state, COLOR_EMPTY), width=0, tags=tag)
        for segment in wall_segments(cell.column, cell.row, event.walls, self._cell_size):
            self.maze_canvas.create_line(*segment, fill=COLOR_WALL, width=2, tags=tag)

    def _draw_current_marker(self, cell):
        self.maze_canvas.delete("current")
        x0, y0, x1, y1 = cell_bounds(cell.column, cell.row, self._cell_size)
        inset = max(2, self._cell_size // 4)
        self.maze_canvas.create_oval(x0 + inset, y0 + inset, x1 - inset, y1 - inset,
                                     fill=COLOR_CURRENT, outline="", tags="current")

    # --- Статичне відображення ---
    def _resize_canvas(self):
        maze = self.controller.maze
        width_px = maze.columns * self._cell_size + 2 * BASE_PADDING
        height_px = maze.rows * self._cell_size + 2 * BASE_PADDING
        self.maze_canvas.config(scrollregion=(0, 0, width_px, height_px), width=width_px, height=height_px)

    def draw_maze(self):
        """Малює готовий лабіринт з входом, виходом і (за бажанням) шляхом."""
        maze = self.controller.maze
        self.maze_canvas.delete("all")
        if not maze.cells:
            return
        self._resize_canvas()

        for cell, color in ((maze.entry_cell, COLOR_ENTRY), (maze.exit_cell, COLOR_EXIT)):
            if cell is not None:
                self.maze_canvas.create_rectangle(*cell_bounds(cell.column, cell.row, self._cell_size),
                                                  fill=color, width=0, tags="maze")

        if self._path and self.show_path_var.get() and len(self._path) > 1:
            points = []
            for described in self._path:
                location = described["location"]
                points.extend(cell_center(location["column"], location["row"], self._cell_size))
            self.maze_canvas.create_line(*points, fill=COLOR_PATH_LINE, width=max(1, self._cell_size // 5),
                                         tags="path")

        for cell in maze.iter_cells():
            for segment in wall_segments(cell.column, cell.row, cell.walls, self._cell_size):
                self.maze_canvas.create_line(*segment, fill=COLOR_WALL, width=2, tags="maze")

    def _update_info(self, solution=None):
        maze = self.controller.maze
        solution = solution if solution is not None else maze.longest_path
        self.seed_label.config(text=f"Seed: {maze.seed}")
        self.entry_label.config(text=f"Вхід: {maze.entry_cell.id if maze.entry_cell else 'N/A'}")
        self.exit_label.config(text=f"Вихід: {maze.exit_cell.id if maze.exit_cell else 'N/A'}")
        self.length_label.config(text=f"Довжина шляху: {solution.length if solution else 'N/A'}")
        duration = getattr(self._last_solver, 'overall_duration', None)
        duration_text = f"{duration * 1000:.1f} мс" if duration is not None else "N/A"
        self.duration_label.config(text=f"Тривалість: {duration_text}")
