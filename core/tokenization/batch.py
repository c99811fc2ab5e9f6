"""
Worker sizing cho batch read+estimate.

Moi worker xu ly ~TASKS_PER_WORKER files; so workers khong vuot qua
so CPU cores va max_workers.
"""

import os

# Worker initialization la expensive, nen dung it threads tru khi co nhieu files
TASKS_PER_WORKER = 100


def get_worker_count(num_tasks: int, max_workers: int | None = None) -> int:
    """
    Tinh so luong workers toi uu dua tren so luong tasks va CPU cores.

    Args:
        num_tasks: So luong tasks can xu ly
        max_workers: Gioi han tren (optional)

    Returns:
        So luong workers, toi thieu 1
    """
    cpu_count = os.cpu_count() or 4
    # ceil(num_tasks / TASKS_PER_WORKER)
    calculated = (num_tasks + TASKS_PER_WORKER - 1) // TASKS_PER_WORKER
    upper = cpu_count if max_workers is None else min(cpu_count, max_workers)
    return max(1, min(upper, calculated))
