import random


def compute_backoff_seconds(attempt: int, base: int = 5, cap: int = 300) -> int:
    # exponential backoff with jitter, used for notification delivery retries
    exp = min(cap, base * (2 ** max(0, attempt - 1)))
    jitter = random.randint(0, min(30, exp // 3))
    return exp + jitter
