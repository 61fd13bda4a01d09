"""
Configuration for the stage deploy webhook Flask application.

Loads process-level settings from environment variables. The per-site
deployment settings (key, branch, log file, Stage WP path) live in MongoDB,
see db.py. Never hardcode secrets; use .env (not committed) and .env.example
as a template.
"""

import os
from dotenv import load_dotenv

# Load .env file if present (local development)
load_dotenv()

# MongoDB connection string (e.g. mongodb://localhost:27017 or Atlas URI)
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")

# Database holding the deployment settings document
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "stage_deploy")

# External deploy tool and the subcommand run inside the Stage WP path
DEPLOY_TOOL = os.getenv("DEPLOY_TOOL", "cap")
DEPLOY_SUBCOMMAND = os.getenv("DEPLOY_SUBCOMMAND", "deploy")
