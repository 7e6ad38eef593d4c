# --- Параметри лабіринту ---
MAZE_COLUMNS = 25
MAZE_ROWS = 25
MAZE_SEED = None # None - випадковий seed, який запам'ятовується в лабіринті
MAZE_COLUMNS = max(1, MAZE_COLUMNS)
MAZE_ROWS = max(1, MAZE_ROWS)

# --- Параметри пошуку найдовшого шляху ---
SOLVER_VARIANT = "threaded" # single | threaded | threaded_binary
NUMBER_OF_THREADS = 4
NUMBER_OF_THREADS = max(1, NUMBER_OF_THREADS)
WORKER_BACKEND = "process" # process | thread
WORKER_TIMEOUT_SECONDS = 30.0
SEARCH_SEED = None # фіксований seed робить пошук з кожної клітинки відтворюваним

# --- Параметри бенчмарку ---
BENCHMARK_COLUMNS = 50
BENCHMARK_ROWS = 50
BENCHMARK_ATTEMPTS = 10

# --- Параметри візуалізації ---
CELL_SIZE_PX = 20
ANIMATION_DELAY_MS = 10
INFO_PANEL_WIDTH_PX = 220

# --- Логування ---
LOG_LEVEL = "INFO"
LOG_FILE = None
