"""
CYCLE SERVICE
=============

Lifecycle of a savings group cycle:

    create ──▶ INITIATED ──activate──▶ ACTIVE ──shareoutclose──▶ CLOSED

Handles:
- Creating the next cycle, optionally carrying the previous cycle's funds
- Activating, updating, sharing out and closing the current cycle
- Keeping cycle dates on the group's meeting calendar
"""

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from app.changes import CommandResult, CycleChanges
from app.exceptions import InvalidRequestError, InvalidStateTransitionError, SavingsGroupError
from app.extensions import db
from app.models import CycleStatus, MonetaryCurrency, SavingsGroupCycle
from app.services import cycle_validator
from app.services.authorization_service import (
    load_savings_group, require_calendar, require_cycle, require_cycle_status
)
from app.services.calendar_service import count_expected_meetings, is_meeting_date
from app.services.cycle_read_service import get_latest_cycle
from app.services.fund_service import copy_funds_from_cycle

logger = logging.getLogger(__name__)


class CycleError(SavingsGroupError):
    """Unexpected failure while changing a cycle"""
    pass


# ============================================================
# DATE RULES
# ============================================================

def _validate_start_after_activation(group, start_date):
    if group.activation_date is not None and start_date < group.activation_date:
        raise InvalidRequestError(
            'cycle.startdate.should.be.after.group.activation.date',
            f'Cycle start date {start_date} is before the group activation date {group.activation_date}',
            startDate=start_date.isoformat(), activationDate=group.activation_date.isoformat(),
        )


def _validate_meeting_start_date(calendar, start_date):
    if not is_meeting_date(calendar, start_date):
        raise InvalidRequestError('cycle.startdate.is.not.valid.meeting.date',
                                  f'Cycle start date {start_date} is not a meeting date',
                                  startDate=start_date.isoformat())


def _validate_meeting_end_date(calendar, end_date):
    if not is_meeting_date(calendar, end_date):
        raise InvalidRequestError('cycle.enddate.is.not.valid.meeting.date',
                                  f'Cycle end date {end_date} is not a meeting date',
                                  endDate=end_date.isoformat())


def _validate_end_after_start(start_date, end_date):
    if end_date <= start_date:
        raise InvalidRequestError('enddate.should.be.after.startdate',
                                  f'Cycle end date {end_date} must be after start date {start_date}',
                                  startDate=start_date.isoformat(), endDate=end_date.isoformat())


def _validate_cycle_dates(group, start_date, end_date):
    """Check both dates against the group and its calendar; returns the calendar."""
    _validate_start_after_activation(group, start_date)
    calendar = require_calendar(group)
    _validate_meeting_start_date(calendar, start_date)
    _validate_meeting_end_date(calendar, end_date)
    _validate_end_after_start(start_date, end_date)
    return calendar


# ============================================================
# CREATE CYCLE
# ============================================================

def create_cycle(group_id, payload):
    """
    Create the group's next cycle in INITIATED status.

    Refused while the group still has a cycle that is not CLOSED. With
    `copyFundsFromPreviousCycle` the active funds of the previous cycle are
    cloned into the new one in the same transaction.
    """
    try:
        group = load_savings_group(group_id)
        previous = get_latest_cycle(group.id)
        if previous is not None and not previous.is_closed():
            raise InvalidStateTransitionError(
                'cycle.invalid.request.based.on.status',
                f'Cycle {previous.cycle_number} of group {group.id} is {previous.status.name}; '
                f'close it before creating a new cycle',
                status=previous.status.to_option(),
            )

        values = cycle_validator.validate_for_create(payload)
        start_date, end_date = values['startDate'], values['endDate']
        calendar = _validate_cycle_dates(group, start_date, end_date)

        is_share_based = values['isShareBased']
        cycle = SavingsGroupCycle(
            group_id=group.id,
            cycle_number=previous.cycle_number + 1 if previous else 1,
            status_enum=CycleStatus.INITIATED.value,
            expected_start_date=start_date,
            expected_end_date=end_date,
            expected_num_of_meetings=count_expected_meetings(calendar, start_date, end_date),
            num_of_meetings_completed=0,
            num_of_meetings_pending=0,
            is_share_based=is_share_based,
            unit_price_of_share=values['unitPriceOfShare'] if is_share_based else Decimal('1'),
            is_client_additions_allowed_in_active_cycle=values['isClientAdditionsAllowedInActiveCycle'],
            is_client_exit_allowed_in_active_cycle=values['isClientExitAllowedInActiveCycle'],
            does_individual_client_exit_forfeit_gains=values['doesIndividualClientExitForfeitGains'],
            deposits_payment_strategy=values['depositsPaymentStrategyId'],
        )
        cycle.currency = MonetaryCurrency(
            values['currencyCode'], values['currencyDigits'], values.get('currencyMultiplesOf'))

        db.session.add(cycle)
        db.session.flush()

        if previous is not None and values.get('copyFundsFromPreviousCycle'):
            copy_funds_from_cycle(previous.id, cycle)

        db.session.commit()

        logger.info('Created cycle %s (#%s) for group %s with %s expected meetings',
                    cycle.id, cycle.cycle_number, group.id, cycle.expected_num_of_meetings)
        return CommandResult(group_id=group.id, resource_id=cycle.id)

    except IntegrityError as e:
        db.session.rollback()
        raise InvalidStateTransitionError(
            'cycle.invalid.request.based.on.status',
            f'Group {group_id} already has an open cycle',
        ) from e
    except SavingsGroupError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        raise CycleError(f'Failed to create cycle: {str(e)}') from e


# ============================================================
# ACTIVATE CYCLE
# ============================================================

def activate_cycle(group_id, payload):
    try:
        group = load_savings_group(group_id)
        cycle = require_cycle(get_latest_cycle(group.id), group.id)
        require_cycle_status(cycle, CycleStatus.INITIATED)

        start_date = cycle_validator.validate_for_activate(payload)
        _validate_start_after_activation(group, start_date)
        calendar = require_calendar(group)
        _validate_meeting_start_date(calendar, start_date)
        _validate_end_after_start(start_date, cycle.expected_end_date)

        changes = cycle.activate(start_date)
        db.session.commit()

        logger.info('Activated cycle %s of group %s on %s', cycle.id, group.id, start_date)
        return CommandResult(group_id=group.id, resource_id=cycle.id, changes=changes)

    except SavingsGroupError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        raise CycleError(f'Failed to activate cycle: {str(e)}') from e


# ============================================================
# UPDATE CYCLE
# ============================================================

def update_cycle(group_id, payload):
    """
    Change the settings of a cycle that has not started yet.

    Moving either date re-validates both against the meeting calendar and
    recounts the expected meetings.
    """
    try:
        group = load_savings_group(group_id)
        cycle = require_cycle(get_latest_cycle(group.id), group.id)
        require_cycle_status(cycle, CycleStatus.INITIATED)

        values = cycle_validator.validate_for_update(payload)

        expected_num_of_meetings = None
        if 'startDate' in values or 'endDate' in values:
            start_date = values.get('startDate', cycle.expected_start_date)
            end_date = values.get('endDate', cycle.expected_end_date)
            calendar = _validate_cycle_dates(group, start_date, end_date)
            expected_num_of_meetings = count_expected_meetings(calendar, start_date, end_date)

        changes = cycle.update(values, expected_num_of_meetings)
        db.session.commit()

        logger.info('Updated cycle %s of group %s: %s', cycle.id, group.id, changes.changed_fields())
        return CommandResult(group_id=group.id, resource_id=cycle.id, changes=changes)

    except SavingsGroupError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        raise CycleError(f'Failed to update cycle: {str(e)}') from e


# ============================================================
# SHARE OUT
# ============================================================

def share_out_cycle(group_id):
    """
    Share-out step of an ACTIVE cycle.

    Only the preconditions are enforced; distribution of the cycle's
    savings is computed outside this engine, so no state changes here.
    """
    group = load_savings_group(group_id)
    cycle = require_cycle(get_latest_cycle(group.id), group.id)
    require_cycle_status(cycle, CycleStatus.ACTIVE)

    logger.info('Share-out requested for cycle %s of group %s', cycle.id, group.id)
    return CommandResult(group_id=group.id, resource_id=cycle.id, changes=CycleChanges())


def share_out_close_cycle(group_id, payload):
    try:
        group = load_savings_group(group_id)
        cycle = require_cycle(get_latest_cycle(group.id), group.id)
        require_cycle_status(cycle, CycleStatus.ACTIVE)

        end_date = cycle_validator.validate_for_share_out_close(payload)
        if end_date < cycle.start_date:
            raise InvalidRequestError(
                'cycle.enddate.should.be.after.cycle.startdate',
                f'Cycle end date {end_date} is before the cycle start date {cycle.start_date}',
                endDate=end_date.isoformat(), startDate=cycle.start_date.isoformat(),
            )

        changes = cycle.close(end_date)
        db.session.commit()

        logger.info('Closed cycle %s of group %s on %s', cycle.id, group.id, end_date)
        return CommandResult(group_id=group.id, resource_id=cycle.id, changes=changes)

    except SavingsGroupError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        raise CycleError(f'Failed to close cycle: {str(e)}') from e
