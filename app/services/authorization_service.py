"""
GROUP & STATUS GATES
====================

Single yes/no preconditions shared by the cycle and fund services.
Each gate raises as soon as it fails; nothing here touches the payload.
"""

from app.extensions import db
from app.exceptions import InvalidRequestError, InvalidStateTransitionError, NotFoundError
from app.models import Group, SavingsGroupFund


def load_group(group_id):
    group = db.session.get(Group, group_id)
    if group is None:
        raise NotFoundError('group.not.found', f'Group with identifier {group_id} does not exist',
                            resource_id=group_id)
    return group


def load_savings_group(group_id):
    """Return the group, refusing anything that is not a savings group."""
    group = load_group(group_id)
    if not group.is_savings_group():
        raise InvalidRequestError('not.savings.group',
                                  f'Group with identifier {group_id} is not a savings group',
                                  groupId=group_id)
    return group


def require_calendar(group):
    if group.calendar is None:
        raise InvalidRequestError('meeting.not.setup',
                                  f'Group with identifier {group.id} has no meeting calendar attached',
                                  groupId=group.id)
    return group.calendar


# ============================================================
# CYCLE GATES
# ============================================================

def require_cycle(cycle, group_id):
    if cycle is None:
        raise NotFoundError('cycle.not.found', f'No cycle found for group with identifier {group_id}',
                            resource_id=group_id)
    return cycle


def require_cycle_status(cycle, *allowed):
    if cycle.status not in allowed:
        expected = ' or '.join(status.name for status in allowed)
        raise InvalidStateTransitionError(
            'cycle.invalid.request.based.on.status',
            f'Cycle {cycle.cycle_number} is {cycle.status.name}; the request needs it {expected}',
            status=cycle.status.to_option(),
        )
    return cycle


# ============================================================
# FUND GATES
# ============================================================

def load_fund(fund_id):
    fund = db.session.get(SavingsGroupFund, fund_id)
    if fund is None:
        raise NotFoundError('fund.not.found', f'Fund with identifier {fund_id} does not exist',
                            resource_id=fund_id)
    return fund


def require_fund_of_group(fund, group_id):
    if fund.group_id != group_id:
        raise InvalidRequestError('fund.does.not.belong.to.group',
                                  f'Fund with identifier {fund.id} does not belong to group {group_id}',
                                  fundId=fund.id, groupId=group_id)
    return fund


def require_active_fund(fund):
    if not fund.is_active():
        raise InvalidStateTransitionError(
            'fund.invalid.request.based.on.status',
            f'Fund with identifier {fund.id} is {fund.status.name}',
            status=fund.status.to_option(),
        )
    return fund
