from app.scoring.seasons import (
    compute_season_metrics,
    compute_season_site_average,
    build_season_ranking,
    effective_score,
    resolve_season_effective_score,
)
from factories import make_episodes, make_season, make_series, rate_all, season_row

SEASON = make_season(id=1)
EPISODES = make_episodes(1, 3)


def test_no_ratings_and_no_manual_score_is_undefined():
    score = resolve_season_effective_score(SEASON, 7, EPISODES, [], [])
    assert score.effective is None
    assert score.episode_average is None
    assert not score.is_complete


def test_manual_score_ignores_adjustment():
    rows = [season_row(1, 7, manual_score=7.0, adjustment=2.0)]
    ratings = rate_all(EPISODES, 7, [5, 5, 5])
    score = resolve_season_effective_score(SEASON, 7, EPISODES, ratings, rows)
    assert score.effective == 7.0
    assert score.episode_average == 5.0


def test_manual_score_is_clamped():
    assert effective_score(12.0, None, 0.0) == 10.0
    assert effective_score(-1.0, 5.0, 1.0) == 0.0


def test_episode_average_plus_adjustment():
    ratings = rate_all(EPISODES, 7, [8, 7])
    rows = [season_row(1, 7, adjustment=0.5)]
    score = resolve_season_effective_score(SEASON, 7, EPISODES, ratings, rows)

    assert score.episode_average == 7.5
    assert score.effective == 8.0
    assert score.rated_episode_count == 2
    assert score.episode_count == 3
    assert not score.is_complete


def test_completeness_gate_is_opt_in():
    ratings = rate_all(EPISODES, 7, [8, 7])
    gated = resolve_season_effective_score(SEASON, 7, EPISODES, ratings, [], require_complete=True)
    assert gated.effective is None

    ratings = rate_all(EPISODES, 7, [8, 7, 9])
    gated = resolve_season_effective_score(SEASON, 7, EPISODES, ratings, [], require_complete=True)
    assert gated.is_complete
    assert gated.effective == 8.0


def test_adjustment_cannot_push_past_ten():
    ratings = rate_all(EPISODES, 7, [9.5, 9.5, 9.5])
    rows = [season_row(1, 7, adjustment=1.5)]
    assert resolve_season_effective_score(SEASON, 7, EPISODES, ratings, rows).effective == 10.0


def test_site_average_is_a_plain_mean():
    ratings = rate_all(EPISODES, 1, [8, 8, 8])
    rows = [
        season_row(1, 2, manual_score=6.0),
        season_row(1, 3, review="Only words"),
        season_row(2, 4, manual_score=1.0),
    ]
    assert compute_season_site_average(SEASON, EPISODES, ratings, rows) == 7.0


def test_site_average_without_scores():
    assert compute_season_site_average(SEASON, EPISODES, [], []) is None


def test_metrics_include_current_user():
    ratings = rate_all(EPISODES, 1, [8, 8, 8])
    rows = [season_row(1, 2, manual_score=6.0)]
    metrics = compute_season_metrics(SEASON, EPISODES, ratings, rows, current_user_id=2)

    assert metrics.contributor_count == 2
    assert metrics.episode_count == 3
    assert metrics.me.manual_score == 6.0


def test_season_ranking_skips_unrated_seasons():
    series = make_series()
    second = make_season(id=2, season_number=2)
    episodes = EPISODES + make_episodes(2, 2)
    ratings = rate_all(EPISODES, 1, [8, 8, 8])

    rows = build_season_ranking([SEASON, second], episodes, ratings, [], series_by_id={1: series},
                                current_user_id=1)

    assert len(rows) == 1
    assert rows[0].title == "Loki - Season 1"
    assert rows[0].my_score == 8.0
    assert rows[0].franchise == "MCU"
