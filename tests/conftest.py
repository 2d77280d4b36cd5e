"""
Pytest fixtures for CricRoom testing.
Provides reusable fixtures for the scoring engine, the app, clients and match data.
"""

import os
import sys

import pytest
import yaml

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import create_app
from database import db
from engine.match import Match
from engine.settings import ScoringSettings


# ==================== Engine Fixtures ====================

def build_context(**overrides):
    context = {
        "teams": [{"id": "A", "name": "Strikers"}, {"id": "B", "name": "Titans"}],
        "overs": 2,
        "toss_winner": "A",
        "toss_choice": "bat",
        "created_by": "creator@example.com",
        "umpire": "umpire@example.com",
    }
    context.update(overrides)
    return context


def ball(bowler="X", runs=0, **kwargs):
    payload = {"bowler": bowler, "runs": runs}
    payload.update(kwargs)
    return payload


@pytest.fixture
def make_match():
    """Factory for an in-memory match; settings default to config defaults."""
    def _make(settings=None, **overrides):
        return Match.create(build_context(**overrides), settings=settings or ScoringSettings())
    return _make


@pytest.fixture
def live_match(make_match):
    """Match with the first innings started: A on strike, B non-striker, X bowling."""
    match = make_match()
    match.start_innings("A", "B", "X")
    return match


def bowl_over(match, bowler, runs=0):
    for _ in range(6):
        match.record_ball(ball(bowler, runs))


# ==================== Application Fixtures ====================

@pytest.fixture(scope="function")
def test_config(tmp_path):
    """Create a temporary config file for testing."""
    config_path = tmp_path / "config.yaml"
    config_data = {
        "app": {
            "secret_key": "test-secret-key-for-testing-only-12345",
        },
        "database": {
            "uri": "sqlite:///:memory:",
        },
        "logging": {
            "level": "DEBUG",
            "file": str(tmp_path / "logs" / "execution.log"),
        },
        "scoring": {
            "byes_count_against_bowler": True,
            "auto_complete_on_all_out": True,
            "enforce_bowling_quota": False,
        },
    }
    config_path.write_text(yaml.safe_dump(config_data, sort_keys=False), encoding="utf-8")
    return config_path


@pytest.fixture(scope="function")
def app(test_config, tmp_path, monkeypatch):
    """Create and configure a test Flask application instance."""
    monkeypatch.setenv("CRICROOM_CONFIG_PATH", str(test_config))
    test_db_file = tmp_path / "pytest_app.db"
    monkeypatch.setenv("CRICROOM_DB_URI", f"sqlite:///{test_db_file.as_posix()}")

    app = create_app()
    app.config.update({
        "TESTING": True,
    })

    # Keep no context pushed during the test; each client request pushes its own.
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture(scope="function")
def app_context(app):
    """Application context for tests that call the service layer directly."""
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture(scope="function")
def service(app, app_context):
    return app.extensions["match_service"]


@pytest.fixture
def creator_headers():
    return {"X-User-Id": "creator@example.com"}


@pytest.fixture
def umpire_headers():
    return {"X-User-Id": "umpire@example.com"}


@pytest.fixture
def stranger_headers():
    return {"X-User-Id": "stranger@example.com"}
