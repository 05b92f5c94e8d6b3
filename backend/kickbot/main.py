from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Kickbot server!'})


@main.route('/formations', methods=['GET'])
def list_formations():
    """Pending formations of all channels, for diagnostics."""
    coordinator = current_app.extensions['coordinator']
    return jsonify(coordinator.active_formations())
