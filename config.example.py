# config.example.py

"""
Documentation-only module (safe to commit).

Settings are read from HABIT_* environment variables, optionally via a local .env file
(see src/habit_sync/config.py). Keep API keys in .env, never in this file.
"""

ENV_VARS = {
    # App / logging
    "HABIT_APP_NAME": "App display name (default: habit-sync).",
    "HABIT_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Local data (gitignored)
    "HABIT_DATA_DIR": "Local data directory (default: .local/habit).",
    "HABIT_STATE_PATH": "Local state JSON path (default: <data_dir>/habit_state.json).",
    # Remote store
    "HABIT_REMOTE_BACKEND": "none | sqlite | rest (default: none, local-only).",
    "HABIT_REMOTE_DB_PATH": "SQLite remote path (default: <data_dir>/remote.sqlite3).",
    "HABIT_REMOTE_URL": "Base URL of the PostgREST-compatible API (rest backend only).",
    "HABIT_REMOTE_API_KEY": "API key sent as 'apikey' and bearer token (rest backend only).",
    "HABIT_REMOTE_TABLE": "Remote table name (default: habit_data).",
    "HABIT_REMOTE_TIMEOUT_SECONDS": "Per-call remote timeout, min 0.5 (default: 10).",
    # Account
    "HABIT_ACCOUNT_ID": "Sign in as this account at startup (empty: signed out).",
    "HABIT_ACCOUNT_EMAIL": "Email of that account; required to confirm /delete-account.",
    # Sync tuning
    "HABIT_PUSH_DEBOUNCE_SECONDS": "Quiet period before a remote push (default: 1.0).",
}
