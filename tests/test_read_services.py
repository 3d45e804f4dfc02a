from datetime import date
from decimal import Decimal

import pytest

from app.exceptions import InvalidRequestError, NotFoundError
from app.services.cycle_read_service import retrieve_cycle_template, retrieve_latest_cycle
from app.services.cycle_service import activate_cycle, create_cycle, share_out_close_cycle
from app.services.fund_read_service import retrieve_fund, retrieve_fund_template, retrieve_latest_cycle_funds
from app.services.fund_service import create_fund, delete_fund


def _run_first_cycle(group, cycle_payload, **overrides):
    create_cycle(group.id, cycle_payload(**overrides))
    activate_cycle(group.id, {'startDate': '2024-01-08'})
    share_out_close_cycle(group.id, {'endDate': '2024-03-25'})


# ============================================================
# CYCLES
# ============================================================

def test_no_cycle_yet(savings_group):
    with pytest.raises(NotFoundError) as exc:
        retrieve_latest_cycle(savings_group.id)
    assert exc.value.code == 'cycle.none.defined.for.group'


def test_latest_cycle_data(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload())

    data = retrieve_latest_cycle(savings_group.id)

    assert data['cycleNumber'] == 1
    assert data['status'] == {'id': 1, 'code': 'sgCycleStatus.initiated', 'value': 'Initiated'}
    assert data['currency'] == {
        'code': 'USD', 'name': 'US Dollar', 'decimalPlaces': 2, 'inMultiplesOf': 1, 'displaySymbol': '$',
    }
    assert data['expectedStartDate'] == date(2024, 1, 8)
    assert data['actualStartDate'] is None
    assert data['expectedNumOfMeetings'] == 11
    assert data['unitPriceOfShare'] == Decimal('1')
    assert data['shareProductId'] is None
    assert data['depositsPaymentStrategy']['code'] == 'savingsGroupDepositsPaymentStrategy.CLD'


def test_latest_cycle_is_the_highest_numbered(savings_group, cycle_payload):
    _run_first_cycle(savings_group, cycle_payload)
    create_cycle(savings_group.id, cycle_payload(startDate='2024-04-01', endDate='2024-06-24'))

    data = retrieve_latest_cycle(savings_group.id)

    assert data['cycleNumber'] == 2
    assert data['expectedStartDate'] == date(2024, 4, 1)


def test_unknown_currency_falls_back_to_its_code(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload(currencyCode='XOF', currencyDigits=0))

    currency = retrieve_latest_cycle(savings_group.id)['currency']

    assert currency['name'] == 'XOF'
    assert currency['displaySymbol'] is None


def test_cycles_of_a_regular_group(regular_group):
    with pytest.raises(InvalidRequestError) as exc:
        retrieve_latest_cycle(regular_group.id)
    assert exc.value.code == 'not.savings.group'


def test_cycle_template_for_a_new_group(savings_group):
    template = retrieve_cycle_template(savings_group.id)

    assert [option['code'] for option in template['currencyOptions']] == ['USD', 'INR', 'KES', 'MXN']
    assert [option['id'] for option in template['depositsPaymentStrategyOptions']] == [1, 2, 3, 4, 5, 6]
    assert 'currency' not in template


def test_cycle_template_prefills_from_latest_cycle(savings_group, cycle_payload):
    create_cycle(savings_group.id, cycle_payload(
        currencyCode='KES', isShareBased=True, unitPriceOfShare=50, depositsPaymentStrategyId=2))

    template = retrieve_cycle_template(savings_group.id)

    assert template['currency']['code'] == 'KES'
    assert template['currency']['displaySymbol'] == 'KSh'
    assert template['isShareBased'] is True
    assert template['unitPriceOfShare'] == Decimal('50')
    assert template['depositsPaymentStrategy']['id'] == 2


# ============================================================
# FUNDS
# ============================================================

def test_fund_template(savings_group):
    template = retrieve_fund_template(savings_group.id)

    assert len(template['transactionProcessingStrategyOptions']) == 7
    assert template['transactionProcessingStrategyOptions'][0]['code'] == 'mifos-standard-strategy'
    assert [o['id'] for o in template['loanChargeTimeOptions']] == [1, 8, 9]
    assert [o['id'] for o in template['groupChargeTimeOptions']] == [101, 102]
    assert [o['id'] for o in template['groupChargeCalculationOptions']] == [1, 2]
    assert [o['id'] for o in template['chargeAppliesToOptions']] == [1, 101]
    assert [o['id'] for o in template['repaymentPeriodFrequencyOptions']] == [0, 1, 2, 3]


def test_no_funds_defined(savings_group, cycle_payload):
    with pytest.raises(NotFoundError) as exc:
        retrieve_latest_cycle_funds(savings_group.id)
    assert exc.value.code == 'fund.none.defined.for.latest.cycle'

    create_cycle(savings_group.id, cycle_payload())
    with pytest.raises(NotFoundError):
        retrieve_latest_cycle_funds(savings_group.id)


def test_latest_cycle_funds_skip_inactive(savings_group, cycle_payload, fund_payload):
    create_cycle(savings_group.id, cycle_payload())
    create_fund(savings_group.id, fund_payload(name='Kept'))
    dropped = create_fund(savings_group.id, fund_payload(name='Dropped')).resource_id
    delete_fund(savings_group.id, dropped)

    funds = retrieve_latest_cycle_funds(savings_group.id)

    assert [fund['name'] for fund in funds] == ['Kept']
    assert funds[0]['fundStatus']['code'] == 'sgFundStatus.active'


def test_funds_of_an_earlier_cycle_are_not_listed(savings_group, cycle_payload, fund_payload):
    create_cycle(savings_group.id, cycle_payload())
    create_fund(savings_group.id, fund_payload())
    activate_cycle(savings_group.id, {'startDate': '2024-01-08'})
    share_out_close_cycle(savings_group.id, {'endDate': '2024-03-25'})
    create_cycle(savings_group.id, cycle_payload(startDate='2024-04-01', endDate='2024-06-24'))

    with pytest.raises(NotFoundError):
        retrieve_latest_cycle_funds(savings_group.id)


def test_fund_data(savings_group, cycle_payload, fund_payload):
    create_cycle(savings_group.id, cycle_payload())
    fund_id = create_fund(savings_group.id, fund_payload()).resource_id

    data = retrieve_fund(savings_group.id, fund_id)

    assert data['name'] == 'Main fund'
    assert data['cycleNumber'] == 1
    assert data['loanLimitFactor'] == 3
    assert data['loanLimitAmount'] is None
    assert data['loanProductId'] is None
    assert data['totalDeposits'] == Decimal('0')
    assert data['interestMethod']['code'] == 'interestType.flat'
    assert data['repaymentPeriodFrequency']['value'] == 'Weeks'
    assert data['amortizationMethod']['id'] == 1
    assert data['transactionProcessingStrategy'] == {
        'id': 1, 'code': 'mifos-standard-strategy', 'name': 'Penalties, Fees, Interest, Principal order',
    }
    [charge] = data['charges']
    assert charge['chargeTime']['code'] == 'chargeTimeType.disbursement'
    assert charge['amount'] == Decimal('5')
    assert charge['penalty'] is False


def test_fund_of_another_group(savings_group, group_without_calendar, cycle_payload, fund_payload):
    create_cycle(savings_group.id, cycle_payload())
    fund_id = create_fund(savings_group.id, fund_payload()).resource_id

    with pytest.raises(NotFoundError) as exc:
        retrieve_fund(group_without_calendar.id, fund_id)
    assert exc.value.code == 'fund.not.found'
