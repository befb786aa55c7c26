import math

from app.scoring.episodes import build_episode_ranking, collect_episode_stats, episode_average
from factories import at, episode_rating, make_episodes, make_season


def test_stats_ignore_episodes_outside_the_season():
    ratings = [
        episode_rating(1, user_id=1, score=8),
        episode_rating(2, user_id=1, score=6),
        episode_rating(99, user_id=1, score=10),
    ]
    stats = collect_episode_stats([1, 2], ratings)
    assert stats[1].count == 2
    assert stats[1].average == 7.0


def test_stats_skip_non_finite_scores():
    ratings = [episode_rating(1, 1, 8), episode_rating(2, 1, math.nan)]
    assert collect_episode_stats([1, 2], ratings)[1].count == 1


def test_stats_keep_latest_time_and_username():
    ratings = [
        episode_rating(1, 1, 8, minutes=10, username="old"),
        episode_rating(2, 1, 6, minutes=30, username="new"),
        episode_rating(3, 1, 7, minutes=20),
    ]
    stats = collect_episode_stats([1, 2, 3], ratings)[1]
    assert stats.last_created_at == at(30)
    assert stats.username == "new"


def test_episode_average_for_user_without_ratings():
    assert episode_average([1, 2], [episode_rating(1, 1, 8)], user_id=2) is None
    assert episode_average([1, 2], [episode_rating(1, 1, 8)], user_id=1) == 8.0


def test_episode_ranking_only_has_rated_episodes():
    season = make_season(id=3, season_number=2)
    episodes = make_episodes(3, 3)
    ratings = [
        episode_rating(episodes[1].id, 1, 9),
        episode_rating(episodes[1].id, 2, 8),
        episode_rating(episodes[2].id, 1, 6),
    ]
    rows = build_episode_ranking([season], episodes, ratings)

    assert [row.id for row in rows] == [episodes[1].id, episodes[2].id]
    assert rows[0].average == 8.5
    assert rows[0].count == 2
    assert rows[0].label == "S2 - E2"
