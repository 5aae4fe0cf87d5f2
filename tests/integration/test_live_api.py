"""
Live API Integration Tests

Tests against a running Docker stack (make up).
Marked with @pytest.mark.live for selective execution.

Run with: pytest tests/integration/test_live_api.py -m live
"""

import datetime as dt

import pytest


@pytest.mark.live
def test_lifecycle_create_list(api_client):
    """
    Create a note, then find it in the listing for today.
    """
    payload = {"content": "Running inside Docker", "mood_score": 6, "productivity_score": 7}
    res_post = api_client.post("/notes/", json=payload)
    assert res_post.status_code == 201
    data = res_post.json()
    assert data["content"] == payload["content"]
    note_id = data["id"]

    today = dt.datetime.now(dt.UTC).date().isoformat()
    res_list = api_client.get("/notes/", params={"date": today})
    assert res_list.status_code == 200
    assert note_id in [n["id"] for n in res_list.json()]


@pytest.mark.live
def test_validation_error(api_client):
    """Empty content is rejected before anything is stored."""
    res = api_client.post("/notes/", json={"content": ""})
    assert res.status_code == 422


@pytest.mark.live
def test_insights_unknown_note(api_client):
    res = api_client.get("/notes/999999999/insights")
    assert res.status_code == 404
