import subprocess

import mongomock
import pytest

import db
from app import app as flask_app

DEPLOY_KEY = "s3cr3t-key"


@pytest.fixture
def settings_collection(monkeypatch):
    """In-memory settings collection used instead of the real MongoDB."""
    collection = mongomock.MongoClient().db.settings
    monkeypatch.setattr(db, "get_settings_collection", lambda: collection)
    return collection


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "deploy.log"


@pytest.fixture
def configured(settings_collection, log_path, tmp_path):
    return db.update_settings(
        {
            "key": DEPLOY_KEY,
            "branch": "master",
            "log": str(log_path),
            "stage_wp_path": str(tmp_path),
        },
        settings_collection,
    )


class CallLog(list):
    """Commands passed to subprocess.run, plus the outcome to fake."""


@pytest.fixture
def deploy_calls(monkeypatch):
    """Record deploy tool invocations instead of running them."""
    calls = CallLog()
    outcome = {"stdout": "deploy ok\n", "returncode": 0}

    def fake_run(command, **kwargs):
        calls.append(command)
        return subprocess.CompletedProcess(
            command, outcome["returncode"], stdout=outcome["stdout"]
        )

    monkeypatch.setattr(subprocess, "run", fake_run)
    calls.outcome = outcome
    return calls


@pytest.fixture
def client():
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as client:
        yield client
