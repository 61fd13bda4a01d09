"""
Constants used across the deploy webhook.

Centralizing these avoids magic strings and keeps the request parameters,
the settings document and the deploy log format consistent.
"""

# MongoDB collection and document id for the deployment settings
SETTINGS_COLLECTION = "settings"
SETTINGS_ID = "stage_wp_github_connector_options"

# Fields stored in the settings document (also what the admin CLI edits)
SETTING_KEY = "key"
SETTING_LOG = "log"
SETTING_BRANCH = "branch"
SETTING_STAGE_WP_PATH = "stage_wp_path"

SETTING_FIELDS = (SETTING_KEY, SETTING_LOG, SETTING_BRANCH, SETTING_STAGE_WP_PATH)

DEFAULT_BRANCH = "master"

# Request parameters sent by the webhook caller
PARAM_DEPLOY = "deploy"
PARAM_KEY = "key"
PARAM_PAYLOAD = "payload"

# The only value of PARAM_DEPLOY that engages a deployment
DEPLOY_TRIGGER_VALUE = "true"

# Deploy log: "<timestamp> --- <LEVEL>: <message>"
LOG_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_SEPARATOR = " --- "
LOG_FILE_MODE = 0o666

LEVEL_INFO = "INFO"
LEVEL_WARNING = "WARNING"
LEVEL_ERROR = "ERROR"

REDACTED = "***"
