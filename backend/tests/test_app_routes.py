"""Regression tests for application route registration."""
from collections import Counter

from fastapi.routing import APIRoute

from app.main import app


def _route_keys():
    for route in app.routes:
        if isinstance(route, APIRoute):
            for method in route.methods:
                yield method, route.path


def test_routes_registered_once() -> None:
    duplicates = [key for key, count in Counter(_route_keys()).items() if count > 1]
    assert duplicates == []


def test_core_routes_mounted() -> None:
    keys = set(_route_keys())
    expected = {
        ("GET", "/profile"),
        ("POST", "/tasks"),
        ("POST", "/habits/{habit_id}/toggle"),
        ("PATCH", "/goals/{goal_id}/progress"),
        ("GET", "/journal/mood-summary"),
        ("POST", "/focus-sessions/{session_id}/complete"),
        ("POST", "/quests/{quest_id}/claim"),
        ("POST", "/powerups/activate"),
        ("GET", "/achievements"),
        ("POST", "/ai/chat"),
        ("POST", "/ai/analysis"),
        ("POST", "/ai/insights"),
        ("GET", "/activity"),
        ("POST", "/jobs/run-now"),
        ("GET", "/notifications/config"),
    }
    assert expected.issubset(keys)
