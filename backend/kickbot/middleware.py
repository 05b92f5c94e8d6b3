import hashlib
import hmac
import time

from flask import current_app, jsonify, request


def compute_signature(secret: str, timestamp: str, body: bytes) -> str:
    base = b'v0:' + timestamp.encode() + b':' + body
    return 'v0=' + hmac.new(secret.encode(), base, hashlib.sha256).hexdigest()


def verify_slack_request():
    """Reject requests that were not signed by Slack with our signing secret."""
    cfg = current_app.config
    if not cfg.get('VERIFY_SLACK_SIGNATURES', True):
        return None

    timestamp = request.headers.get('X-Slack-Request-Timestamp')
    signature = request.headers.get('X-Slack-Signature')
    if not timestamp or not signature:
        current_app.logger.warning(f"[verify] missing signature headers sender={request.remote_addr}")
        return jsonify({'error': 'Missing Slack signature'}), 400
    try:
        sent_at = int(timestamp)
    except ValueError:
        return jsonify({'error': 'Invalid Slack timestamp'}), 400

    max_age = int(cfg.get('SLACK_REQUEST_MAX_AGE_SEC', 300))
    if abs(time.time() - sent_at) > max_age:
        current_app.logger.warning(f"[verify] stale request ts={timestamp} sender={request.remote_addr}")
        return jsonify({'error': 'Stale request'}), 401

    # cache=True keeps the body readable for form parsing afterwards
    body = request.get_data(cache=True)
    expected = compute_signature(cfg.get('SLACK_SIGNING_SECRET', ''), timestamp, body)
    if not hmac.compare_digest(expected, signature):
        current_app.logger.warning(f"[verify] signature mismatch sender={request.remote_addr}")
        return jsonify({'error': 'Invalid Slack signature'}), 401
    return None
