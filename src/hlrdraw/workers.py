"""
Order-preserving fan-out of independent render tasks.
"""

from concurrent.futures import ThreadPoolExecutor


def map_tasks(fn, items, workers=1):
    """
    Apply fn to every item and return results in item order.

    workers <= 1 runs serially in the calling thread.
    """
    items = list(items)
    if workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as exe:
        return list(exe.map(fn, items))
