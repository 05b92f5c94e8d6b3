import json

from flask import Blueprint, current_app, jsonify, request

from kickbot.commands import CMD_START, CMD_START_DUEL, parse_game_options
from kickbot.messages import ACTION_JOIN, ACTION_LEAVE
from kickbot.middleware import verify_slack_request
from kickbot.services.formations import FormationError

slack = Blueprint('slack', __name__)
slack.before_request(verify_slack_request)


def _coordinator():
    return current_app.extensions['coordinator']


@slack.route('/commands', methods=['POST'])
def handle_command():
    """
    Slash commands: ``/kicker [-t 15m] [-d]`` and ``/kicker1v1`` open a formation
    in the channel the command was typed in.
    """
    command = request.form.get('command')
    channel = request.form.get('channel_id')
    user = request.form.get('user_id')
    if not all([command, channel, user]):
        return jsonify({'error': 'command, channel_id and user_id are required'}), 400

    if command not in (CMD_START, CMD_START_DUEL):
        current_app.logger.warning(f"[command-invalid] command={command} sender={request.remote_addr}")
        return jsonify({'error': f'Unknown command {command}'}), 400

    options = parse_game_options(request.form.get('text', ''), duel=command == CMD_START_DUEL)
    try:
        _coordinator().create(channel, user, options.variant, options.timeout)
    except FormationError:
        # The user already got a private notice; Slack only needs the ack.
        pass
    return '', 200


@slack.route('/events', methods=['POST'])
def handle_interaction():
    """
    Button clicks on the announcement. Slack posts the interaction as a JSON
    document in the ``payload`` form field.
    """
    try:
        payload = json.loads(request.form.get('payload') or '')
    except ValueError as e:
        current_app.logger.warning(f"[interaction-invalid] could not decode payload: {e}")
        return jsonify({'error': 'Invalid payload'}), 400
    if not isinstance(payload, dict):
        return jsonify({'error': 'Invalid payload'}), 400

    actions = payload.get('actions') or []
    channel = (payload.get('channel') or {}).get('id')
    user = (payload.get('user') or {}).get('id')
    if not actions or not channel or not user:
        current_app.logger.warning(f"[interaction-invalid] empty block action callback sender={request.remote_addr}")
        return jsonify({'error': 'Invalid or empty block action callback'}), 400

    action_id = actions[0].get('action_id')
    coordinator = _coordinator()
    if action_id == ACTION_JOIN:
        operation = coordinator.join
    elif action_id == ACTION_LEAVE:
        operation = coordinator.leave
    else:
        current_app.logger.warning(f"[interaction-invalid] action_id={action_id} sender={request.remote_addr}")
        return jsonify({'error': f'Unknown action {action_id}'}), 400

    try:
        operation(channel, user)
    except FormationError:
        pass
    return '', 200
