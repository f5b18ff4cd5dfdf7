from typing import Iterable, Optional, Tuple


def aggregate(subjects: Iterable[Optional[float]]) -> Tuple[float, float]:
    """
    Total and average of the entered subject scores.

    Missing slots (None) are skipped, a score of 0 still counts.
    Returns (0, 0) when nothing has been entered yet.
    """
    entered = [score for score in subjects if score is not None]
    total = sum(entered, 0)
    average = total / len(entered) if entered else 0
    return total, average
