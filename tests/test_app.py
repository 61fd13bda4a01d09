import json
import re

from pymongo.errors import ServerSelectionTimeoutError

import db
from deployer import build_deploy_command

from conftest import DEPLOY_KEY

PUSH_TO_MASTER = json.dumps({"ref": "refs/heads/master"})
ENTRY_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} --- ")


def post_hook(client, query="deploy=true&key=" + DEPLOY_KEY + "&payload=1", body=PUSH_TO_MASTER):
    return client.post("/?" + query, data=body, content_type="application/json")


def result_entries(log_path):
    if not log_path.exists():
        return []
    return [
        line
        for line in log_path.read_text().splitlines()
        if ENTRY_RE.match(line) and "Deployment results" in line
    ]


def test_landing_page(client, deploy_calls):
    response = client.get("/")
    assert response.status_code == 200
    assert b"Stage Deploy Webhook" in response.data
    assert deploy_calls == []


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_without_trigger_nothing_happens(client, configured, log_path, deploy_calls):
    response = post_hook(client, query="key=" + DEPLOY_KEY + "&payload=1")

    assert response.status_code == 200
    assert deploy_calls == []
    assert not log_path.exists()


def test_trigger_must_be_literal_true(client, configured, log_path, deploy_calls):
    response = post_hook(client, query="deploy=yes&key=" + DEPLOY_KEY + "&payload=1")

    assert response.status_code == 200
    assert b"Stage Deploy Webhook" in response.data
    assert deploy_calls == []
    assert not log_path.exists()


def test_wrong_key_does_not_deploy(client, configured, log_path, deploy_calls):
    post_hook(client, query="deploy=true&key=wrong&payload=1")
    post_hook(client, query="deploy=true&payload=1")

    assert deploy_calls == []
    assert not log_path.exists()


def test_other_branch_does_not_deploy(client, configured, deploy_calls):
    post_hook(client, body=json.dumps({"ref": "refs/heads/develop"}))
    post_hook(client, body="{not json")

    assert deploy_calls == []


def test_valid_request_deploys_once(client, configured, log_path, deploy_calls):
    response = post_hook(client)

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    assert response.get_data(as_text=True).startswith("Deployment performed at ")
    assert deploy_calls == [build_deploy_command(configured)]
    assert len(result_entries(log_path)) == 1


def test_key_may_be_double_encoded(client, settings_collection, configured, deploy_calls):
    db.update_settings({"key": "a b/c"})
    post_hook(client, query="deploy=true&key=a%2520b%252Fc&payload=1")

    assert len(deploy_calls) == 1


def test_form_encoded_params_are_accepted(client, configured, deploy_calls):
    response = client.post(
        "/?payload=1",
        data={"deploy": "true", "key": DEPLOY_KEY},
    )
    # The body is a form, not JSON, so there is no ref to match.
    assert b"Stage Deploy Webhook" in response.data
    assert deploy_calls == []


def test_replayed_hook_deploys_twice(client, configured, log_path, deploy_calls):
    post_hook(client)
    post_hook(client)

    assert len(deploy_calls) == 2
    assert len(result_entries(log_path)) == 2


def test_tool_failure_still_answers_200(client, configured, log_path, deploy_calls):
    deploy_calls.outcome.update(stdout="boom\n", returncode=1)
    response = post_hook(client)

    assert response.status_code == 200
    assert response.get_data(as_text=True).startswith("Deployment performed at ")
    assert "ERROR: Deployment results" in log_path.read_text()


def test_empty_log_path_still_deploys(client, settings_collection, configured, tmp_path, deploy_calls):
    db.update_settings({"log": ""})
    response = post_hook(client)

    assert response.status_code == 200
    assert len(deploy_calls) == 1
    assert list(tmp_path.iterdir()) == []


def test_settings_store_failure_is_a_500(client, monkeypatch, deploy_calls):
    def unavailable():
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(db, "get_settings_collection", unavailable)
    response = post_hook(client)

    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}
    assert deploy_calls == []
