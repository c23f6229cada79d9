from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from wordwise.application.progress_service import ReviewProgressService
from wordwise.consts import VERSION
from wordwise.domain.review.ports import RepositoryError, ReviewStateRepository
from wordwise.server import app, get_cache, get_service

client = TestClient(app)


@pytest.fixture
def repo():
    repo = AsyncMock(spec=ReviewStateRepository)
    repo.get.return_value = None
    repo.get_many.return_value = {}
    return repo


@pytest.fixture(autouse=True)
def overrides(cache, repo):
    service = ReviewProgressService(cache=cache, repository=repo)
    app.dependency_overrides[get_service] = lambda: service
    app.dependency_overrides[get_cache] = lambda: cache
    yield
    app.dependency_overrides.clear()


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version():
    response = client.get("/version")
    assert response.json() == {"version": VERSION}


def test_grade_word(repo):
    response = client.post(
        "/reviews/w1/grade", json={"grade": "medium", "reviewed_at": "2024-03-10T09:30:00Z"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["wordId"] == "w1"
    assert data["easeFactor"] == 5.0
    assert data["lastStudied"].startswith("2024-03-10T09:30:00")
    repo.set.assert_awaited_once()


def test_grade_word_rejects_unknown_grade():
    response = client.post("/reviews/w1/grade", json={"grade": "perfect"})
    assert response.status_code == 422


def test_grade_word_repository_failure(repo):
    repo.set.side_effect = RepositoryError("offline")

    response = client.post("/reviews/w1/grade", json={"grade": "easy"})

    assert response.status_code == 502
    assert "offline" in response.json()["detail"]


def test_review_queue(repo):
    repo.get_many.return_value = {
        "later": {"wordId": "later", "nextReview": "2999-01-01T00:00:00+00:00"}
    }

    response = client.post("/reviews/queue", json={"word_ids": ["later", "new"]})

    data = response.json()
    assert data["total"] == 2
    assert [r["wordId"] for r in data["queue"]] == ["new"]
    assert data["queue"][0]["mastery"] == 0
    assert data["queue"][0]["nextReviewDescription"] == "new"


def test_start_session():
    response = client.post(
        "/sessions", json={"word_ids": ["c", "a", "b"], "shuffle": True, "seed": 5}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["session_id"].startswith("session_")
    assert data["shuffled"] is True
    assert sorted(data["word_ids"]) == ["a", "b", "c"]


def test_shuffle():
    response = client.post("/shuffle", json={"count": 5, "seed": 2})
    assert sorted(response.json()["order"]) == [0, 1, 2, 3, 4]

    assert client.post("/shuffle", json={"count": -1}).status_code == 422


def test_cache_endpoints(cache):
    cache.set("review:a", 1)
    cache.set("review:b", 2)
    cache.set("word:c", 3)

    assert client.get("/cache/stats").json()["total_entries"] == 3
    assert client.delete("/cache/review:a").json() == {"removed": "review:a"}
    assert client.delete("/cache", params={"pattern": "review:"}).json() == {"removed": 1}
    assert client.delete("/cache").json() == {"removed": 1}
    assert client.get("/cache/stats").json()["clears"] == 1


def test_cache_invalid_pattern():
    response = client.delete("/cache", params={"pattern": "["})
    assert response.status_code == 422


def test_queue_describes_studied_words(repo):
    repo.get_many.return_value = {
        "due": {
            "wordId": "due",
            "timesStudied": 2,
            "correctCount": 2,
            "interval": 4,
            "lastStudied": "2024-03-01T00:00:00+00:00",
            "nextReview": "2024-03-05T00:00:00+00:00",
        }
    }

    response = client.post(
        "/reviews/queue", json={"word_ids": ["due"], "now": "2024-03-10T00:00:00Z"}
    )

    item = response.json()["queue"][0]
    assert item["nextReviewDescription"] == "review needed"
    assert item["mastery"] == 42


def test_lifespan_closes_service(mock_home, tmp_path, monkeypatch):
    monkeypatch.setenv("WORDWISE_DATA_DIR", str(tmp_path / "data"))

    with patch.object(ReviewProgressService, "close", new_callable=AsyncMock) as mock_close:
        with TestClient(app) as lifespan_client:
            assert lifespan_client.get("/health").status_code == 200
        mock_close.assert_awaited_once()
