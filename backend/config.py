import os

class Config:
    SLACK_BOT_TOKEN = os.environ.get('KICKBOT_TOKEN') or ''
    SLACK_SIGNING_SECRET = os.environ.get('KICKBOT_SIGNING_SECRET') or ''
    SLACK_API_URL = os.environ.get('SLACK_API_URL', 'https://slack.com/api')
    SLACK_HTTP_TIMEOUT_SEC = float(os.environ.get('SLACK_HTTP_TIMEOUT_SEC', '10'))
    PORT = int(os.environ.get('KICKBOT_PORT', '4000'))
    # Pending formations expire after this many seconds (per-command -t overrides)
    FORMATION_TIMEOUT_SEC = float(os.environ.get('FORMATION_TIMEOUT_SEC', '1800'))
    # Upper bound for draining announcements on shutdown (seconds)
    SHUTDOWN_GRACE_SEC = float(os.environ.get('SHUTDOWN_GRACE_SEC', '10'))
    # Signed Slack requests older than this are rejected (seconds)
    SLACK_REQUEST_MAX_AGE_SEC = int(os.environ.get('SLACK_REQUEST_MAX_AGE_SEC', '300'))
    VERIFY_SLACK_SIGNATURES = os.environ.get('VERIFY_SLACK_SIGNATURES', 'true').lower() != 'false'
