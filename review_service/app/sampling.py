"""
sampling.py - caps how many review texts are sent to the model per run.
"""


def sample_reviews(reviews: list[str], max_batch_size: int) -> list[str]:
    """
    First `max_batch_size` reviews, order preserved. Never fails.
    Input: ["a", "b", "c"], 2 -> ["a", "b"]
    Callers pass max_batch_size >= 1 (AppConfig enforces it).
    """
    return list(reviews[:max_batch_size])
