"""
Decide whether an incoming webhook request may trigger a deployment.

Checks (all must pass):
  - deploy=true was requested
  - the key parameter matches the stored deployment key
  - a payload parameter is present and the raw JSON body pushes to a ref
    containing the deployment branch (case-insensitive)

Every check returns a plain bool; nothing here has side effects.
"""

import hmac
import json
from urllib.parse import unquote_plus

from constants import (
    DEPLOY_TRIGGER_VALUE,
    PARAM_DEPLOY,
    PARAM_KEY,
    PARAM_PAYLOAD,
)


def requested_deployment(params):
    """True when the deploy parameter is exactly "true"."""
    return params.get(PARAM_DEPLOY) == DEPLOY_TRIGGER_VALUE


def has_valid_key(params, settings):
    """
    Check the key parameter against the stored deployment key.

    The value is URL-decoded once more before comparing (callers often
    double-encode it in the hook URL). Comparison is constant-time.
    """
    key = params.get(PARAM_KEY)
    if not key or not settings.key:
        return False

    received = unquote_plus(key).encode("utf-8")
    expected = settings.key.encode("utf-8")
    return hmac.compare_digest(received, expected)


def extract_ref(raw_body):
    """
    Return the pushed ref from a raw JSON body, or None.

    Malformed JSON, non-object bodies and missing/non-string refs all give
    None.
    """
    if not raw_body:
        return None
    if isinstance(raw_body, bytes):
        try:
            raw_body = raw_body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    try:
        payload = json.loads(raw_body)
    except ValueError:
        return None

    if not isinstance(payload, dict):
        return None

    ref = payload.get("ref")
    if not isinstance(ref, str) or not ref:
        return None
    return ref


def has_valid_branch(params, raw_body, settings):
    """
    Check that the push targets the deployment branch.

    The payload parameter only has to exist; the JSON is read from the raw
    request body. The configured branch must be a case-insensitive substring
    of the ref (e.g. "master" in "refs/heads/master").
    """
    if not params.get(PARAM_PAYLOAD):
        return False

    ref = extract_ref(raw_body)
    if ref is None:
        return False

    branch = settings.branch
    if not branch:
        return False

    return branch.lower() in ref.lower()


def allow_deployment(params, raw_body, settings):
    """
    Check if the deployment process can be fired.

    Args:
        params (Mapping): Request parameters (query string and form merged).
        raw_body (bytes | str): Raw request body.
        settings (DeploySettings): Stored deployment settings.

    Returns:
        bool: True only if every check passes.
    """
    return (
        requested_deployment(params)
        and has_valid_key(params, settings)
        and has_valid_branch(params, raw_body, settings)
    )
