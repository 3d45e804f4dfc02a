"""
FUND ROUTES
===========

JSON endpoints for the funds of a savings group.
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required

from app.services.fund_read_service import (
    retrieve_fund, retrieve_fund_template, retrieve_latest_cycle_funds
)
from app.services.fund_service import create_fund, delete_fund, update_fund

funds_bp = Blueprint('funds', __name__, url_prefix='/groups/<int:group_id>/funds')


@funds_bp.route('/template', methods=['GET'])
@login_required
def fund_template(group_id):
    return jsonify(retrieve_fund_template(group_id))


@funds_bp.route('', methods=['GET'])
@login_required
def list_funds(group_id):
    return jsonify(retrieve_latest_cycle_funds(group_id))


@funds_bp.route('/<int:fund_id>', methods=['GET'])
@login_required
def view_fund(group_id, fund_id):
    return jsonify(retrieve_fund(group_id, fund_id))


@funds_bp.route('', methods=['POST'])
@login_required
def add_fund(group_id):
    result = create_fund(group_id, request.get_json(silent=True))
    return jsonify(result.to_dict()), 201


@funds_bp.route('/<int:fund_id>', methods=['PUT'])
@login_required
def edit_fund(group_id, fund_id):
    result = update_fund(group_id, fund_id, request.get_json(silent=True))
    return jsonify(result.to_dict())


@funds_bp.route('/<int:fund_id>', methods=['DELETE'])
@login_required
def remove_fund(group_id, fund_id):
    result = delete_fund(group_id, fund_id)
    return jsonify(result.to_dict())
