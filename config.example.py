# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).
"""

ENV_VARS = {
    # App / logging
    "TASKDECK_APP_NAME": "App display name (default: taskdeck).",
    "TASKDECK_LOG_LEVEL": "Console logging level (default: INFO).",
    # Backend
    "TASKDECK_SUPABASE_URL": "Project URL, e.g. https://xyz.supabase.co (SUPABASE_URL also accepted).",
    "TASKDECK_SUPABASE_ANON_KEY": "Public anon key (SUPABASE_ANON_KEY also accepted).",
    "TASKDECK_SUGGEST_FUNCTION": "Edge function that proposes subtasks (default: generate-subtasks).",
    "TASKDECK_PROFILE_BUCKET": "Storage bucket for profile pictures (default: profile-pictures).",
    # HTTP
    "TASKDECK_HTTP_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "TASKDECK_HTTP_READ_TIMEOUT_SECONDS": "Read timeout (default: 30).",
    # Paths (gitignored)
    "TASKDECK_DATA_DIR": "Local data directory for logs and session (default: .local/taskdeck).",
    "TASKDECK_SESSION_PATH": "Saved session JSON (default: <data_dir>/session.json).",
}
