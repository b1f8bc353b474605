"""Test environment: settings are read at import time, so point them at SQLite first."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("LOG_LEVEL", "WARNING")
