"""
CYCLE ROUTES
============

JSON endpoints for the current cycle of a savings group.
POST dispatches on the optional `command` query parameter.
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required

from app.exceptions import UnrecognizedCommandError
from app.services.cycle_read_service import retrieve_cycle_template, retrieve_latest_cycle
from app.services.cycle_service import (
    activate_cycle, create_cycle, share_out_close_cycle, share_out_cycle, update_cycle
)

cycles_bp = Blueprint('cycles', __name__, url_prefix='/groups/<int:group_id>/cycle')

CYCLE_COMMANDS = ('activate', 'shareout', 'shareoutclose')


def _payload():
    return request.get_json(silent=True)


# ============== TEMPLATE ==============
@cycles_bp.route('/template', methods=['GET'])
@login_required
def cycle_template(group_id):
    return jsonify(retrieve_cycle_template(group_id))


# ============== LATEST CYCLE ==============
@cycles_bp.route('', methods=['GET'])
@login_required
def latest_cycle(group_id):
    return jsonify(retrieve_latest_cycle(group_id))


# ============== CREATE / LIFECYCLE COMMANDS ==============
@cycles_bp.route('', methods=['POST'])
@login_required
def cycle_command(group_id):
    command = request.args.get('command')

    if not command:
        result = create_cycle(group_id, _payload())
        return jsonify(result.to_dict()), 201

    command = command.strip().lower()
    if command == 'activate':
        result = activate_cycle(group_id, _payload())
    elif command == 'shareout':
        result = share_out_cycle(group_id)
    elif command == 'shareoutclose':
        result = share_out_close_cycle(group_id, _payload())
    else:
        raise UnrecognizedCommandError(request.args.get('command'), CYCLE_COMMANDS)

    return jsonify(result.to_dict())


# ============== UPDATE ==============
@cycles_bp.route('', methods=['PUT'])
@login_required
def edit_cycle(group_id):
    result = update_cycle(group_id, _payload())
    return jsonify(result.to_dict())
