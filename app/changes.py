"""
CHANGE SETS
===========

Every write command returns a structured record of what it actually changed.
Fields that were not touched hold the UNCHANGED sentinel and are left out of
the rendered output.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any


class _Unchanged:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNCHANGED'

    def __bool__(self):
        return False


UNCHANGED = _Unchanged()


def changed_field(api_name):
    return field(default=UNCHANGED, metadata={'api_name': api_name})


def _render(value):
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, ChangeSet):
        return value.to_dict()
    if isinstance(value, list):
        return [_render(item) for item in value]
    if hasattr(value, 'to_option'):
        return value.to_option()
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


@dataclass
class ChangeSet:
    """Base class for the per-aggregate change records."""

    def _is_changed(self, name, value):
        if isinstance(value, list):
            return bool(value)
        return value is not UNCHANGED

    def track(self, entity, attr, new_value, name=None):
        """Assign `new_value` to `entity.attr` and record it, only if it differs."""
        if getattr(entity, attr) == new_value:
            return False
        setattr(entity, attr, new_value)
        setattr(self, name or attr, new_value)
        return True

    def has_changes(self):
        return bool(self.changed_fields())

    def changed_fields(self):
        return [
            f.metadata['api_name']
            for f in fields(self)
            if 'api_name' in f.metadata and self._is_changed(f.name, getattr(self, f.name))
        ]

    def to_dict(self):
        rendered = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if 'api_name' not in f.metadata or not self._is_changed(f.name, value):
                continue
            rendered[f.metadata['api_name']] = _render(value)
        return rendered


# ============================================================
# CYCLE
# ============================================================

@dataclass
class CycleChanges(ChangeSet):
    currency: Any = changed_field('currency')
    expected_start_date: Any = changed_field('expectedStartDate')
    expected_end_date: Any = changed_field('expectedEndDate')
    actual_start_date: Any = changed_field('actualStartDate')
    actual_end_date: Any = changed_field('actualEndDate')
    status: Any = changed_field('status')
    is_share_based: Any = changed_field('isShareBased')
    unit_price_of_share: Any = changed_field('unitPriceOfShare')
    is_client_additions_allowed_in_active_cycle: Any = changed_field('isClientAdditionsAllowedInActiveCycle')
    is_client_exit_allowed_in_active_cycle: Any = changed_field('isClientExitAllowedInActiveCycle')
    does_individual_client_exit_forfeit_gains: Any = changed_field('doesIndividualClientExitForfeitGains')
    deposits_payment_strategy: Any = changed_field('depositsPaymentStrategy')
    expected_num_of_meetings: Any = changed_field('expectedNumOfMeetings')


# ============================================================
# FUND & CHARGES
# ============================================================

@dataclass
class ChargeChanges(ChangeSet):
    id: Any = None
    charge_applies_to: Any = changed_field('chargeAppliesToId')
    charge_time: Any = changed_field('chargeTimeId')
    charge_calculation: Any = changed_field('chargeCalculationId')
    amount: Any = changed_field('amount')
    is_penalty: Any = changed_field('penalty')
    is_active: Any = changed_field('active')

    def to_dict(self):
        rendered = super().to_dict()
        rendered['id'] = self.id
        return rendered


@dataclass
class FundChanges(ChangeSet):
    name: Any = changed_field('name')
    minimum_deposit_per_meeting: Any = changed_field('minimumDepositPerMeeting')
    maximum_deposit_per_meeting: Any = changed_field('maximumDepositPerMeeting')
    is_loan_limit_based_on_savings: Any = changed_field('isLoanLimitBasedOnSavings')
    loan_limit_amount: Any = changed_field('loanLimitAmount')
    loan_limit_factor: Any = changed_field('loanLimitFactor')
    annual_nominal_interest_rate: Any = changed_field('annualNominalInterestRate')
    interest_method: Any = changed_field('interestMethodId')
    interest_calculated_in_period: Any = changed_field('interestCalculatedInPeriodId')
    repay_every: Any = changed_field('repayEvery')
    repayment_period_frequency: Any = changed_field('repaymentPeriodFrequencyId')
    number_of_repayments: Any = changed_field('numberOfRepayments')
    min_number_of_repayments: Any = changed_field('minNumberOfRepayments')
    max_number_of_repayments: Any = changed_field('maxNumberOfRepayments')
    amortization_method: Any = changed_field('amortizationMethodId')
    transaction_processing_strategy_id: Any = changed_field('transactionProcessingStrategyId')
    fund_status: Any = changed_field('fundStatus')
    charges: list = field(default_factory=list, metadata={'api_name': 'charges'})


# ============================================================
# COMMAND RESULT
# ============================================================

@dataclass
class CommandResult:
    """What a write command hands back to its caller."""

    group_id: int
    resource_id: int
    changes: ChangeSet | None = None

    def to_dict(self):
        return {
            'groupId': self.group_id,
            'resourceId': self.resource_id,
            'changes': self.changes.to_dict() if self.changes is not None else {},
        }
