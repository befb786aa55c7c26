import os

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.main import app
from app.schemas.rating_schemas import EpisodeRow
from app.store import get_store
from factories import (
    UNRELEASED,
    film_rating,
    make_episodes,
    make_film,
    make_season,
    make_series,
    season_row,
)
from fake_store import FakeStore

client = TestClient(app)


def auth(user_id=7):
    token = jwt.encode({"id": user_id, "sub": f"user{user_id}"}, os.environ["SECRET_KEY"], algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def store():
    fake = FakeStore(
        films=[
            make_film(1),
            make_film(2, title="Blade", release_date=UNRELEASED, franchise=None, phase=None),
        ],
        film_ratings=[film_rating(1, 1, 6), film_rating(1, 2, 8), film_rating(1, 3, 10)],
        series=[make_series(1)],
        seasons=[
            make_season(1, phase="Phase 4"),
            make_season(2, season_number=2, phase="Phase 5"),
        ],
        episodes=make_episodes(1, 2) + make_episodes(2, 2) + [EpisodeRow(id=900, season_id=555, episode_number=1)],
        season_user_ratings=[season_row(1, 1, manual_score=8.0, id=1)],
    )
    app.dependency_overrides[get_store] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


# films

def test_film_score(store):
    response = client.get("/films/1/score")
    assert response.status_code == 200
    body = response.json()
    assert body["average"] == 8.0
    assert body["count"] == 3
    assert body["my_score"] is None


def test_rating_a_film_needs_a_token(store):
    assert client.put("/films/1/rating", json={"score": "9"}).status_code == 401
    assert client.put("/films/1/rating", json={"score": "9"},
                      headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_rate_film(store):
    response = client.put("/films/1/rating", json={"score": "9", "review": " Classic "}, headers=auth())
    assert response.status_code == 200
    body = response.json()
    assert body["my_score"] == 9
    assert body["count"] == 4
    assert body["average"] == pytest.approx(33 / 4)
    assert store.film_ratings[-1].review == "Classic"


def test_film_scores_must_be_whole(store):
    response = client.put("/films/1/rating", json={"score": "7.5"}, headers=auth())
    assert response.status_code == 400
    assert response.json()["detail"] == "Film score must be a whole number between 0 and 10."


def test_unreleased_and_unknown_films(store):
    assert client.put("/films/2/rating", json={"score": "5"}, headers=auth()).status_code == 400
    assert client.put("/films/99/rating", json={"score": "5"}, headers=auth()).status_code == 404


def test_delete_film_rating(store):
    response = client.delete("/films/1/rating", headers=auth(1))
    assert response.status_code == 200
    assert response.json()["count"] == 2


# episodes and seasons

def test_rate_episode_returns_the_season_score(store):
    response = client.put("/episodes/101/rating", json={"score": "8,25"}, headers=auth())
    assert response.status_code == 200
    body = response.json()
    assert body["episode_average"] == 8.25
    assert body["effective"] == 8.25
    assert body["rated_episode_count"] == 1
    assert body["is_complete"] is False


def test_episode_scores_are_quarter_steps(store):
    response = client.put("/episodes/101/rating", json={"score": "8.1"}, headers=auth())
    assert response.status_code == 400


def test_episode_of_a_missing_season(store):
    response = client.put("/episodes/900/rating", json={"score": "8"}, headers=auth())
    assert response.status_code == 404


def test_adjuster_flow(store):
    response = client.post("/seasons/1/adjust", json={"direction": "up"}, headers=auth())
    assert response.status_code == 400
    assert "Rate at least one episode" in response.json()["detail"]

    client.put("/episodes/101/rating", json={"score": "8,25"}, headers=auth())
    response = client.post("/seasons/1/adjust", json={"direction": "up"}, headers=auth())
    assert response.status_code == 400
    assert "every episode" in response.json()["detail"]

    client.put("/episodes/102/rating", json={"score": "7,75"}, headers=auth())
    response = client.post("/seasons/1/adjust", json={"direction": "up"}, headers=auth())
    assert response.status_code == 200
    body = response.json()
    assert body["deleted"] is False
    assert body["adjustment"] == 0.25
    assert body["score"]["effective"] == 8.25

    response = client.post("/seasons/1/adjust", json={"direction": "down"}, headers=auth())
    assert response.json()["deleted"] is True
    assert response.json()["score"]["effective"] == 8.0
    assert all(row.user_id != 7 for row in store.season_user_ratings)


def test_manual_score_blocks_the_adjuster(store):
    response = client.put("/seasons/1/manual-score", json={"score": "7,5"}, headers=auth())
    assert response.status_code == 200
    assert response.json()["manual_score"] == 7.5
    assert response.json()["score"]["effective"] == 7.5

    client.put("/episodes/101/rating", json={"score": "9"}, headers=auth())
    client.put("/episodes/102/rating", json={"score": "9"}, headers=auth())
    response = client.post("/seasons/1/adjust", json={"direction": "up"}, headers=auth())
    assert response.status_code == 400

    response = client.delete("/seasons/1/manual-score", headers=auth())
    assert response.json()["deleted"] is True
    assert response.json()["score"]["effective"] == 9.0


def test_reset_adjustment(store):
    store.season_user_ratings.append(season_row(1, 7, manual_score=6.0, adjustment=1.0, id=50))
    response = client.post("/seasons/1/adjust", json={"direction": "reset"}, headers=auth())
    assert response.status_code == 200
    assert response.json()["adjustment"] == 0.0
    assert response.json()["manual_score"] == 6.0


def test_season_review(store):
    response = client.put("/seasons/1/review", json={"score": None, "review": " Good "}, headers=auth())
    assert response.status_code == 200
    assert response.json()["review"] == "Good"
    assert response.json()["manual_score"] is None

    response = client.delete("/seasons/1/review", headers=auth())
    assert response.json()["deleted"] is True


def test_season_score(store):
    response = client.get("/seasons/1/score", headers=auth(1))
    assert response.status_code == 200
    body = response.json()
    assert body["site_average"] == 8.0
    assert body["contributor_count"] == 1
    assert body["me"]["manual_score"] == 8.0

    assert client.get("/seasons/404/score").status_code == 404


# series

def test_series_score(store):
    response = client.get("/series/1/score", headers=auth(1))
    body = response.json()
    assert body["global_average"] == 8.0
    assert body["my_average"] == 8.0
    assert body["contributor_count"] == 1


def test_season_ranking_needs_two_rated_seasons(store):
    body = client.get("/series/1/rankings").json()
    assert body["seasons"] == []


def test_series_rankings(store):
    client.put("/episodes/101/rating", json={"score": "6"}, headers=auth())
    client.put("/episodes/201/rating", json={"score": "9"}, headers=auth())
    body = client.get("/series/1/rankings").json()

    assert [row["id"] for row in body["seasons"]] == [2, 1]
    assert [row["rank"] for row in body["seasons"]] == ["1", "2"]
    assert body["seasons"][0]["average"] == 9.0
    assert body["seasons"][1]["average"] == 7.0
    assert [row["label"] for row in body["episodes"]] == ["S2 - E1", "S1 - E1"]


def test_series_activity(store):
    body = client.get("/series/1/activity").json()
    assert [entry["key"] for entry in body] == ["season-1"]
    assert body[0]["score"] == 8.0


def test_series_reviews(store):
    response = client.put("/series/1/review", json={"review": "  "}, headers=auth(1))
    assert response.status_code == 400
    assert response.json()["detail"] == "Review is empty."

    response = client.put("/series/1/review", json={"review": "Glorious purpose"}, headers=auth(1))
    assert response.status_code == 200
    assert response.json()["user_average"] == 8.0

    reviews = client.get("/series/1/reviews").json()
    assert reviews[0]["review"] == "Glorious purpose"
    assert reviews[0]["username"] == "user1"

    assert client.delete("/series/1/review", headers=auth(1)).status_code == 204
    assert client.delete("/series/1/review", headers=auth(1)).status_code == 404


# leaderboard

def test_default_leaderboard(store):
    body = client.get("/ranking").json()
    assert [(row["kind"], row["title"]) for row in body] == [("film", "Iron Man"), ("series", "Loki")]
    assert [row["rank"] for row in body] == ["1", "-"]


def test_phase_leaderboard(store):
    response = client.get(
        "/ranking",
        params=[("kinds", "season"), ("kinds", "phase"), ("franchise", "MCU"), ("phase", "Phase 4")],
    )
    body = response.json()
    assert [row["title"] for row in body] == ["Loki - Season 1", "Phase 4"]
    assert all(row["average"] == 8.0 for row in body)


def test_leaderboard_paging(store):
    body = client.get("/ranking", params={"page": 2, "page_size": 1}).json()
    assert [row["title"] for row in body] == ["Loki"]


# personal film ranking

def test_personal_film_ranking(store):
    store.films.append(make_film(3, title="Thor"))
    store.film_ratings.append(film_rating(3, 1, 6))

    body = client.get("/users/1/films/ranking").json()
    assert [(row["title"], row["rank"]) for row in body] == [("Iron Man", "1"), ("Thor", "-")]
    assert body[0]["my_score"] == 6

    body = client.get("/users/42/films/ranking").json()
    assert [(row["title"], row["rank"], row["my_score"]) for row in body] == [
        ("Iron Man", "-", None),
        ("Thor", "-", None),
    ]
