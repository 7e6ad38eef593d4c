from .longest_path_threaded import ThreadedLongestPathSolver


class BinaryThreadedLongestPathSolver(ThreadedLongestPathSolver):
    """
    Той самий протокол воркерів, але кожне повідомлення передається як
    UTF-8 JSON у буфері байтів. Стартові клітинки розкидані по списку
    кандидатів замість перших N.
    """

    variant_name = "threaded_binary"
    codec_name = "json_bytes"

    def _reserve_seed_cells(self, candidates: list[dict], count: int) -> tuple[list[dict], list[dict]]:
        remaining = list(candidates)
        step = (len(remaining) - 1) // (count - 1) if count > 1 else 0
        seeds = []
        # Видаляємо з кінця, щоб індекси попередніх позицій не зсувались
        for index in range(count - 1, -1, -1):
            seeds.append(remaining.pop(index * step))
        seeds.reverse()
        return seeds, remaining
