import math

from app.schemas.score_schemas import RankedRow, RowKind
from app.scoring.ranking import build_rank_labels, rank_rows


def _labels(scores, precision=2):
    return build_rank_labels(scores, lambda score: score, precision)


def test_ties_show_a_dash_after_the_first():
    assert _labels([9.0, 9.0, 7.5, 7.5, 7.5, 5.0]) == ["1", "-", "2", "-", "-", "3"]


def test_non_finite_scores_are_unranked():
    assert _labels([math.nan, 8.0]) == ["-", "1"]
    assert _labels([9.0, None, 8.0]) == ["1", "-", "2"]


def test_precision_decides_ties():
    assert _labels([7.333, 7.334], precision=2) == ["1", "-"]
    assert _labels([7.333, 7.334], precision=3) == ["1", "2"]


def test_empty_input():
    assert _labels([]) == []


def _row(id, average, count=1, title=None):
    return RankedRow(kind=RowKind.FILM, id=id, title=title or f"Film {id}", average=average, count=count)


def test_rank_rows_sorts_by_score_then_support_then_title():
    rows = [
        _row(1, 5.0),
        _row(2, 9.0, count=1, title="b"),
        _row(3, None),
        _row(4, 9.0, count=3),
        _row(5, 9.0, count=1, title="A"),
    ]
    ranked = rank_rows(rows)

    assert [row.id for row in ranked] == [4, 5, 2, 1, 3]
    assert [row.rank for row in ranked] == ["1", "-", "-", "2", "-"]
    # the input rows are left untouched
    assert rows[0].rank == "-"
    assert rows[1].rank == "-"
