class SolverError(Exception):
    """Базовий виняток пошуку найдовшого шляху."""


class EmptyCandidateSetError(SolverError):
    """Спроба взяти кандидата з порожньої множини."""


class ProtocolError(SolverError):
    """Воркер отримав повідомлення, яке не відповідає стану його сесії."""


class WorkerTimeoutError(SolverError):
    """Жоден воркер не відповів протягом дозволеного часу."""

    def __init__(self, timeout: float, active_workers: int):
        super().__init__(f"No worker message received within {timeout:.1f}s ({active_workers} worker(s) still active)")
        self.timeout = timeout
        self.active_workers = active_workers


class WorkerFailedError(SolverError):
    """Воркер завершив пошук з винятком."""

    def __init__(self, worker_index: int, message: str, details: str = ""):
        super().__init__(f"Worker {worker_index} failed: {message}")
        self.worker_index = worker_index
        self.details = details
