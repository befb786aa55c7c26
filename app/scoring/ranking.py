# app/scoring/ranking.py
from typing import Callable, Iterable, List, Optional, Sequence

from app.schemas.score_schemas import RankedRow
from app.scoring.validators import is_finite, round_to

UNRANKED = "-"


def build_rank_labels(sorted_items: Sequence, score_of: Callable, precision: Optional[int] = 2) -> List[str]:
    """
    Rank labels for items already sorted best-first.

    The first item of a tie group gets the next number, the others get "-":
    [9, 9, 7.5, 7.5, 7.5, 5] -> ["1", "-", "2", "-", "-", "3"].
    Items without a finite score are "-" and do not move the counter.
    """
    labels: List[str] = []
    previous_score = None
    rank = 0

    for item in sorted_items:
        score = score_of(item)
        if not is_finite(score):
            labels.append(UNRANKED)
            continue

        rounded = round_to(score, precision) if precision is not None else score
        if previous_score is not None and rounded == previous_score:
            labels.append(UNRANKED)
            continue

        rank += 1
        previous_score = rounded
        labels.append(str(rank))

    return labels


def ranking_sort_key(row: RankedRow):
    average = row.average if is_finite(row.average) else -1
    return (-average, -row.count, row.title.casefold())


def sort_rows(rows: Iterable[RankedRow]) -> List[RankedRow]:
    """Score desc, then number of ratings desc, then title."""
    return sorted(rows, key=ranking_sort_key)


def rank_rows(rows: Iterable[RankedRow], precision: Optional[int] = 2) -> List[RankedRow]:
    ordered = sort_rows(rows)
    labels = build_rank_labels(ordered, lambda row: row.average, precision)
    return [row.model_copy(update={"rank": label}) for row, label in zip(ordered, labels)]
