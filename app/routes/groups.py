"""
GROUP ROUTES
============
Minimal group registration: create a group and attach its meeting calendar.
"""

import logging

from flask import Blueprint, jsonify, request
from flask_login import login_required

from app.extensions import db
from app.models import Calendar, Group, GroupType
from app.services.authorization_service import load_group
from app.services.calendar_service import parse_recurrence
from app.services.validation import DataValidator, check_for_unsupported_parameters, require_json_object

logger = logging.getLogger(__name__)

groups_bp = Blueprint('groups', __name__)

GROUP_PARAMETERS = {'name', 'groupTypeId', 'activationDate', 'locale', 'dateFormat'}
CALENDAR_PARAMETERS = {'title', 'startDate', 'recurrence', 'locale', 'dateFormat'}


# ============== CREATE NEW GROUP ==============
@groups_bp.route('/groups', methods=['POST'])
@login_required
def create_group():
    payload = require_json_object(request.get_json(silent=True))
    check_for_unsupported_parameters(payload, GROUP_PARAMETERS)

    v = DataValidator('group', payload)
    v.parameter('name').string().not_blank().not_exceeding_length(100)
    v.parameter('groupTypeId').integer().not_null().is_one_of(GroupType.values())
    v.parameter('activationDate').date()
    v.raise_if_errors()

    try:
        group = Group(
            name=v.cleaned['name'],
            group_type=v.cleaned['groupTypeId'],
            activation_date=v.cleaned.get('activationDate'),
        )
        db.session.add(group)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info('Created %s group %s (%s)', group.type.name.lower(), group.id, group.name)
    return jsonify({'resourceId': group.id, 'groupId': group.id}), 201


# ============== VIEW GROUP ==============
@groups_bp.route('/groups/<int:group_id>', methods=['GET'])
@login_required
def view_group(group_id):
    return jsonify(load_group(group_id).to_dict())


# ============== ATTACH / REPLACE MEETING CALENDAR ==============
@groups_bp.route('/groups/<int:group_id>/calendar', methods=['PUT'])
@login_required
def set_calendar(group_id):
    group = load_group(group_id)
    payload = require_json_object(request.get_json(silent=True))
    check_for_unsupported_parameters(payload, CALENDAR_PARAMETERS)

    v = DataValidator('calendar', payload)
    v.parameter('title').string().not_exceeding_length(100)
    start_date = v.parameter('startDate').date().not_null().value
    recurrence = v.parameter('recurrence').string().not_blank().not_exceeding_length(200).value
    if start_date is not None and recurrence:
        try:
            parse_recurrence(recurrence, start_date)
        except ValueError:
            v.add_error('recurrence', 'invalid.rrule', 'The parameter recurrence is not a valid RRULE.',
                        recurrence)
    v.raise_if_errors()

    try:
        calendar = group.calendar or Calendar(group=group)
        calendar.title = v.cleaned.get('title')
        calendar.start_date = start_date
        calendar.recurrence = recurrence
        db.session.add(calendar)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info('Meeting calendar of group %s set to %s from %s', group.id, recurrence, start_date)
    return jsonify({'resourceId': calendar.id, 'groupId': group.id})
