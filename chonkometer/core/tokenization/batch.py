"""
Batch/parallel token counting.

Functions:
- get_worker_count(): Tinh so workers toi uu
- count_texts(): Dem token cho nhieu texts, sequential hoac ThreadPoolExecutor

Tokenizer la pure function tren vocabulary read-only nen cac worker
khong can lock. Ket qua luon giu dung thu tu input.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence

# Worker initialization ton chi phi, chi dung nhieu threads khi co nhieu texts
TASKS_PER_WORKER = 25

# So texts toi thieu de trigger parallel processing
MIN_TEXTS_FOR_PARALLEL = 10


def get_worker_count(num_tasks: int, max_workers: int) -> int:
    """
    Tinh so luong workers toi uu dua tren so tasks va CPU cores.

    Args:
        num_tasks: So luong texts can dem
        max_workers: Gioi han tren tu settings

    Returns:
        So luong workers (toi thieu 1)
    """
    cpu_count = os.cpu_count() or 4
    calculated = (num_tasks + TASKS_PER_WORKER - 1) // TASKS_PER_WORKER
    return max(1, min(cpu_count, max_workers, calculated))


def count_texts(
    texts: Sequence[str],
    count: Callable[[str], int],
    max_workers: int = 1,
) -> List[int]:
    """
    Dem token cho tung text.

    Args:
        texts: Danh sach texts (canonical text cua definitions)
        count: Ham dem token (vd: BPETokenizer.count)
        max_workers: So workers toi da; <= 1 thi chay sequential

    Returns:
        List token counts, cung thu tu voi texts
    """
    if max_workers <= 1 or len(texts) < MIN_TEXTS_FOR_PARALLEL:
        return [count(text) for text in texts]

    workers = get_worker_count(len(texts), max_workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(count, texts))
