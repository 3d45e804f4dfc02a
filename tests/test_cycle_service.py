from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from app.extensions import db
from app.exceptions import (
    InvalidRequestError, InvalidStateTransitionError, NotFoundError, UnsupportedParameterError,
    ValidationError
)
from app.models import CycleStatus, DepositsPaymentStrategy, MonetaryCurrency, SavingsGroupCycle
from app.services.cycle_service import (
    activate_cycle, create_cycle, share_out_close_cycle, share_out_cycle, update_cycle
)


def _cycle(result):
    return db.session.get(SavingsGroupCycle, result.resource_id)


def _run_full_cycle(group, cycle_payload):
    create_cycle(group.id, cycle_payload())
    activate_cycle(group.id, {'startDate': '2024-01-08'})
    share_out_close_cycle(group.id, {'endDate': '2024-03-25'})


def open_cycles(group_id):
    return SavingsGroupCycle.query.filter(
        SavingsGroupCycle.group_id == group_id,
        SavingsGroupCycle.status_enum != CycleStatus.CLOSED.value,
    ).count()


# ============================================================
# CREATE
# ============================================================

def test_create_first_cycle(savings_group, cycle_payload):
    result = create_cycle(savings_group.id, cycle_payload())
    cycle = _cycle(result)

    assert result.group_id == savings_group.id
    assert cycle.cycle_number == 1
    assert cycle.status is CycleStatus.INITIATED
    assert cycle.currency == MonetaryCurrency('USD', 2, 1)
    assert cycle.expected_start_date == date(2024, 1, 8)
    assert cycle.expected_end_date == date(2024, 3, 25)
    assert cycle.expected_num_of_meetings == 11
    assert cycle.num_of_meetings_completed == 0
    assert cycle.num_of_meetings_pending == 0
    assert cycle.unit_price_of_share == Decimal('1')
    assert cycle.is_client_additions_allowed_in_active_cycle is True
    assert cycle.deposits_payment_strategy == DepositsPaymentStrategy.CLD.value
    assert cycle.share_product_id is None


def test_share_based_cycle_keeps_its_unit_price(savings_group, cycle_payload):
    cycle = _cycle(create_cycle(savings_group.id, cycle_payload(isShareBased=True, unitPriceOfShare='25.50')))
    assert cycle.is_share_based is True
    assert cycle.unit_price_of_share == Decimal('25.50')


def test_second_open_cycle_is_refused(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    with pytest.raises(InvalidStateTransitionError) as exc:
        create_cycle(savings_group.id, cycle_payload())

    assert exc.value.code == 'cycle.invalid.request.based.on.status'
    assert open_cycles(savings_group.id) == 1


def test_cycle_numbers_increase_after_closing(savings_group, cycle_payload):
    _run_full_cycle(savings_group, cycle_payload)

    cycle = _cycle(create_cycle(savings_group.id, cycle_payload(startDate='2024-04-01', endDate='2024-06-24')))

    assert cycle.cycle_number == 2
    assert open_cycles(savings_group.id) == 1


def test_non_savings_group_is_refused(regular_group, cycle_payload):
    with pytest.raises(InvalidRequestError) as exc:
        create_cycle(regular_group.id, cycle_payload())
    assert exc.value.code == 'not.savings.group'


def test_unknown_group(app, cycle_payload):
    with pytest.raises(NotFoundError) as exc:
        create_cycle(404, cycle_payload())
    assert exc.value.code == 'group.not.found'


def test_start_before_group_activation(savings_group, cycle_payload):
    with pytest.raises(InvalidRequestError) as exc:
        create_cycle(savings_group.id, cycle_payload(startDate='2023-12-25'))
    assert exc.value.code == 'cycle.startdate.should.be.after.group.activation.date'


def test_group_without_calendar(group_without_calendar, cycle_payload):
    with pytest.raises(InvalidRequestError) as exc:
        create_cycle(group_without_calendar.id, cycle_payload())
    assert exc.value.code == 'meeting.not.setup'


@pytest.mark.parametrize('dates, code', [
    ({'startDate': '2024-01-09'}, 'cycle.startdate.is.not.valid.meeting.date'),
    ({'endDate': '2024-03-26'}, 'cycle.enddate.is.not.valid.meeting.date'),
    ({'startDate': '2024-03-25', 'endDate': '2024-01-08'}, 'enddate.should.be.after.startdate'),
    ({'startDate': '2024-01-08', 'endDate': '2024-01-08'}, 'enddate.should.be.after.startdate'),
])
def test_dates_must_follow_the_meeting_calendar(savings_group, cycle_payload, dates, code):
    with pytest.raises(InvalidRequestError) as exc:
        create_cycle(savings_group.id, cycle_payload(**dates))
    assert exc.value.code == code
    assert SavingsGroupCycle.query.count() == 0


def test_invalid_payload_persists_nothing(savings_group, cycle_payload):
    with pytest.raises(ValidationError) as exc:
        create_cycle(savings_group.id, cycle_payload(currencyCode='', depositsPaymentStrategyId=0))

    assert set(exc.value.parameters) == {'currencyCode', 'depositsPaymentStrategyId'}
    assert SavingsGroupCycle.query.count() == 0


def test_database_rejects_a_second_open_cycle(savings_group):
    for number in (1, 2):
        db.session.add(SavingsGroupCycle(
            group_id=savings_group.id, cycle_number=number, status_enum=CycleStatus.INITIATED.value,
            currency_code='USD', currency_digits=2,
            expected_start_date=date(2024, 1, 8), expected_end_date=date(2024, 3, 25),
            deposits_payment_strategy=1,
        ))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


# ============================================================
# ACTIVATE
# ============================================================

def test_activate_cycle(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    result = activate_cycle(savings_group.id, {'startDate': '2024-01-15'})
    cycle = _cycle(result)

    assert cycle.status is CycleStatus.ACTIVE
    assert cycle.actual_start_date == date(2024, 1, 15)
    assert result.changes.to_dict() == {
        'actualStartDate': '2024-01-15',
        'status': {'id': 2, 'code': 'sgCycleStatus.active', 'value': 'Active'},
    }


def test_activate_without_cycle(savings_group):
    with pytest.raises(NotFoundError) as exc:
        activate_cycle(savings_group.id, {'startDate': '2024-01-08'})
    assert exc.value.code == 'cycle.not.found'


def test_activate_twice_is_refused(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    activate_cycle(savings_group.id, {'startDate': '2024-01-08'})

    with pytest.raises(InvalidStateTransitionError):
        activate_cycle(savings_group.id, {'startDate': '2024-01-08'})


def test_activate_on_a_non_meeting_date(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    with pytest.raises(InvalidRequestError) as exc:
        activate_cycle(savings_group.id, {'startDate': '2024-01-10'})
    assert exc.value.code == 'cycle.startdate.is.not.valid.meeting.date'


def test_activate_after_expected_end(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    with pytest.raises(InvalidRequestError) as exc:
        activate_cycle(savings_group.id, {'startDate': '2024-04-01'})
    assert exc.value.code == 'enddate.should.be.after.startdate'
    assert SavingsGroupCycle.query.one().status is CycleStatus.INITIATED


def test_activate_rejects_other_parameters(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    with pytest.raises(UnsupportedParameterError):
        activate_cycle(savings_group.id, {'startDate': '2024-01-08', 'currencyCode': 'KES'})


# ============================================================
# UPDATE
# ============================================================

def test_update_end_date_recounts_meetings(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    result = update_cycle(savings_group.id, {'endDate': '2024-02-26'})
    cycle = _cycle(result)

    assert cycle.expected_end_date == date(2024, 2, 26)
    assert cycle.expected_num_of_meetings == 7
    assert set(result.changes.changed_fields()) == {'expectedEndDate', 'expectedNumOfMeetings'}


def test_update_with_same_values_records_nothing(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    result = update_cycle(savings_group.id, {
        'currencyCode': 'USD', 'startDate': '2024-01-08', 'isShareBased': False,
        'depositsPaymentStrategyId': 1,
    })

    assert not result.changes.has_changes()


def test_update_currency_is_replaced_as_a_whole(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    result = update_cycle(savings_group.id, {'currencyDigits': 0})

    assert result.changes.to_dict() == {'currency': {'code': 'USD', 'decimalPlaces': 0, 'inMultiplesOf': 1}}
    assert _cycle(result).currency == MonetaryCurrency('USD', 0, 1)


def test_update_share_settings_and_strategy(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    result = update_cycle(savings_group.id, {
        'isShareBased': True, 'unitPriceOfShare': 5, 'depositsPaymentStrategyId': 3,
        'isClientExitAllowedInActiveCycle': True,
    })
    cycle = _cycle(result)

    assert cycle.unit_price_of_share == Decimal('5')
    assert result.changes.deposits_payment_strategy is DepositsPaymentStrategy.DLC
    assert set(result.changes.changed_fields()) == {
        'isShareBased', 'unitPriceOfShare', 'depositsPaymentStrategy', 'isClientExitAllowedInActiveCycle'
    }


def test_unit_price_is_pinned_when_not_share_based(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload(isShareBased=True, unitPriceOfShare=10))

    result = update_cycle(savings_group.id, {'isShareBased': False, 'unitPriceOfShare': 40})

    assert _cycle(result).unit_price_of_share == Decimal('1')
    assert result.changes.unit_price_of_share == Decimal('1')


def test_update_dates_are_revalidated(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    with pytest.raises(InvalidRequestError) as exc:
        update_cycle(savings_group.id, {'startDate': '2024-04-01'})
    assert exc.value.code == 'enddate.should.be.after.startdate'

    with pytest.raises(InvalidRequestError) as exc:
        update_cycle(savings_group.id, {'endDate': '2024-03-27'})
    assert exc.value.code == 'cycle.enddate.is.not.valid.meeting.date'


def test_update_after_activation_is_refused(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    activate_cycle(savings_group.id, {'startDate': '2024-01-08'})

    with pytest.raises(InvalidStateTransitionError):
        update_cycle(savings_group.id, {'currencyCode': 'KES'})


# ============================================================
# SHARE OUT & CLOSE
# ============================================================

def test_share_out_needs_an_active_cycle(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    with pytest.raises(InvalidStateTransitionError):
        share_out_cycle(savings_group.id)

    activate_cycle(savings_group.id, {'startDate': '2024-01-08'})
    result = share_out_cycle(savings_group.id)

    assert not result.changes.has_changes()
    assert _cycle(result).status is CycleStatus.ACTIVE


def test_share_out_close(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    activate_cycle(savings_group.id, {'startDate': '2024-01-08'})

    result = share_out_close_cycle(savings_group.id, {'endDate': '2024-03-20'})
    cycle = _cycle(result)

    assert cycle.status is CycleStatus.CLOSED
    assert cycle.actual_end_date == date(2024, 3, 20)
    assert result.changes.to_dict() == {
        'actualEndDate': '2024-03-20',
        'status': {'id': 3, 'code': 'sgCycleStatus.closed', 'value': 'Closed'},
    }


def test_close_before_actual_start_is_refused(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    activate_cycle(savings_group.id, {'startDate': '2024-01-22'})

    with pytest.raises(InvalidRequestError) as exc:
        share_out_close_cycle(savings_group.id, {'endDate': '2024-01-15'})
    assert exc.value.code == 'cycle.enddate.should.be.after.cycle.startdate'


def test_close_requires_active_status(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    with pytest.raises(InvalidStateTransitionError):
        share_out_close_cycle(savings_group.id, {'endDate': '2024-03-25'})

    activate_cycle(savings_group.id, {'startDate': '2024-01-08'})
    share_out_close_cycle(savings_group.id, {'endDate': '2024-03-25'})
    with pytest.raises(InvalidStateTransitionError):
        share_out_close_cycle(savings_group.id, {'endDate': '2024-03-25'})


def test_close_requires_end_date(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())
    activate_cycle(savings_group.id, {'startDate': '2024-01-08'})
    with pytest.raises(ValidationError):
        share_out_close_cycle(savings_group.id, {})
