import base64
from datetime import date

import pytest

from app import create_app
from app.extensions import db
from app.models import Calendar, Group, GroupType, User
from config import TestingConfig

WEEKLY_ON_MONDAY = 'FREQ=WEEKLY;INTERVAL=1;BYDAY=MO'


@pytest.fixture
def app():
    """Fresh application with an empty in-memory database per test"""
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def savings_group(app):
    """Savings group activated on Monday 2024-01-01 that meets every Monday"""
    group = Group(name='Umoja', group_type=GroupType.SAVINGS.value, activation_date=date(2024, 1, 1))
    group.calendar = Calendar(title='Weekly meeting', start_date=date(2024, 1, 1),
                              recurrence=WEEKLY_ON_MONDAY)
    db.session.add(group)
    db.session.commit()
    return group


@pytest.fixture
def regular_group(app):
    group = Group(name='Harambee', group_type=GroupType.REGULAR.value, activation_date=date(2024, 1, 1))
    db.session.add(group)
    db.session.commit()
    return group


@pytest.fixture
def group_without_calendar(app):
    group = Group(name='Tujenge', group_type=GroupType.SAVINGS.value, activation_date=date(2024, 1, 1))
    db.session.add(group)
    db.session.commit()
    return group


@pytest.fixture
def cycle_payload():
    """Builder for a valid create-cycle payload: 2024-01-08 to 2024-03-25, both Mondays"""
    def build(**overrides):
        payload = {
            'currencyCode': 'USD',
            'currencyDigits': 2,
            'currencyMultiplesOf': 1,
            'startDate': '2024-01-08',
            'endDate': '2024-03-25',
            'isShareBased': False,
            'isClientAdditionsAllowedInActiveCycle': True,
            'isClientExitAllowedInActiveCycle': False,
            'doesIndividualClientExitForfeitGains': False,
            'depositsPaymentStrategyId': 1,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def fund_payload():
    """Builder for a valid create-fund payload with one loan disbursement charge"""
    def build(**overrides):
        payload = {
            'name': 'Main fund',
            'minimumDepositPerMeeting': 10,
            'maximumDepositPerMeeting': 100,
            'isLoanLimitBasedOnSavings': True,
            'loanLimitFactor': 3,
            'annualNominalInterestRate': 12,
            'interestMethodId': 1,
            'interestCalculatedInPeriodId': 1,
            'repayEvery': 1,
            'repaymentPeriodFrequencyId': 1,
            'numberOfRepayments': 10,
            'amortizationMethodId': 1,
            'transactionProcessingStrategyId': 1,
            'charges': [
                {
                    'chargeAppliesToId': 1,
                    'chargeTimeId': 1,
                    'chargeCalculationId': 1,
                    'amount': 5,
                    'penalty': False,
                    'active': True,
                },
            ],
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def api_user(app):
    user = User(username='officer')
    user.set_password('s3cret')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def client(app, api_user):
    return app.test_client()


@pytest.fixture
def auth_headers(api_user):
    token = base64.b64encode(b'officer:s3cret').decode('ascii')
    return {'Authorization': f'Basic {token}'}
