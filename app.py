"""
Stage Deploy Webhook — Flask application entry point.

This app:
  1. Receives push webhooks on "/" as ?deploy=true&key=...&payload=1 with
     the JSON push payload as the raw request body.
  2. Validates the key and the pushed branch against the settings stored
     in MongoDB.
  3. Runs the deploy tool (cd <stage_wp_path>; cap deploy) and answers with
     the logged message.
  4. Serves a minimal landing page for every other request.

Run locally: flask run  (or: python app.py)
Manage settings: flask settings show | set | regenerate-key
"""

import secrets

import click
from flask import Flask, request, jsonify, render_template

from constants import PARAM_DEPLOY
from db import get_settings, update_settings
from deployer import deploy
from webhook_validator import allow_deployment

app = Flask(__name__)


@app.route("/", methods=["GET", "POST"])
def index():
    """
    Deploy when a valid webhook arrives, otherwise serve the landing page.

    Requests without the deploy parameter never touch the settings store.
    Unauthorized requests fall through to the landing page silently.
    """
    # Read the raw body first; form parsing reuses the cached bytes.
    raw_body = request.get_data(cache=True)
    params = request.values.to_dict()

    if not params.get(PARAM_DEPLOY):
        return render_template("index.html")

    try:
        settings = get_settings()
        if not allow_deployment(params, raw_body, settings):
            return render_template("index.html")

        message = deploy(settings, params)
        return message, 200, {"Content-Type": "text/plain; charset=utf-8"}

    except Exception as e:
        print(f"❌ Deployment error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@app.route("/health")
def health():
    """Simple health check for deployment platforms."""
    return {"status": "ok"}, 200


# -----------------------------------------------------------------------------
# Admin commands: flask settings ...
# -----------------------------------------------------------------------------
@app.cli.group("settings")
def settings_cli():
    """Show or change the deployment settings."""


def _echo_settings(settings):
    click.echo(f"Deployment Key:             {settings.key}")
    click.echo(f"Deployment Branch:          {settings.branch}")
    click.echo(f"Deployment Log File:        {settings.log}")
    click.echo(f"Stage WP Installation Path: {settings.stage_wp_path}")


@settings_cli.command("show")
def show_settings():
    """Print the current settings (initializing them if needed)."""
    _echo_settings(get_settings())


@settings_cli.command("set")
@click.option("--key", help="Deployment key shared with the webhook sender.")
@click.option("--branch", help="Branch whose pushes trigger a deployment.")
@click.option("--log", "log_path", help="Deployment log file ('' disables logging).")
@click.option("--path", "stage_wp_path", help="Stage WP installation path.")
def set_settings(key, branch, log_path, stage_wp_path):
    """Change one or more settings."""
    changes = {
        "key": key,
        "branch": branch,
        "log": log_path,
        "stage_wp_path": stage_wp_path,
    }
    changes = {field: value for field, value in changes.items() if value is not None}
    if not changes:
        raise click.UsageError("Nothing to change; pass at least one option.")

    try:
        settings = update_settings(changes)
    except ValueError as e:
        raise click.BadParameter(str(e))
    _echo_settings(settings)


@settings_cli.command("regenerate-key")
def regenerate_key():
    """Generate a new deployment key, keeping the other settings."""
    _echo_settings(update_settings({"key": secrets.token_hex(16)}))


# -----------------------------------------------------------------------------
# Run with: flask run  or  python app.py
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
