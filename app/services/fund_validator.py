"""
Payload validation for savings group fund commands.

Which parameters an update may carry depends on the owning cycle: the full
set while the cycle is INITIATED, only name, interest rate and charges once
it is ACTIVE. Cross-field rules on update are checked against the merge of
the payload and the fund's stored values.
"""

from app.models import (
    AmortizationMethod, ChargeAppliesTo, ChargeCalculation, ChargeTime,
    InterestCalculationPeriod, InterestMethod, PeriodFrequency
)
from app.services.validation import (
    DataValidator, check_for_unsupported_parameters, require_json_object
)

FUND_RESOURCE = 'sgfund'
CHARGE_RESOURCE = 'sgfund.charges'

NAME_MAX_LENGTH = 50

CREATE_FUND_PARAMETERS = {
    'name',
    'minimumDepositPerMeeting',
    'maximumDepositPerMeeting',
    'isLoanLimitBasedOnSavings',
    'loanLimitAmount',
    'loanLimitFactor',
    'annualNominalInterestRate',
    'interestMethodId',
    'interestCalculatedInPeriodId',
    'repayEvery',
    'repaymentPeriodFrequencyId',
    'numberOfRepayments',
    'minNumberOfRepayments',
    'maxNumberOfRepayments',
    'amortizationMethodId',
    'transactionProcessingStrategyId',
    'charges',
    'locale',
    'dateFormat',
}
UPDATE_FUND_PARAMETERS = CREATE_FUND_PARAMETERS
ACTIVE_CYCLE_UPDATE_FUND_PARAMETERS = {
    'locale',
    'dateFormat',
    'name',
    'annualNominalInterestRate',
    'charges',
}

NEW_CHARGE_PARAMETERS = {
    'locale',
    'amount',
    'active',
    'penalty',
    'chargeAppliesToId',
    'chargeTimeId',
    'chargeCalculationId',
}
EXISTING_CHARGE_PARAMETERS = {'locale', 'id', 'amount', 'active'}

# chargeAppliesTo -> allowed chargeTime / chargeCalculation codes
CHARGE_TIME_OPTIONS = {
    ChargeAppliesTo.LOAN.value: [member.value for member in ChargeTime.loan_members()],
    ChargeAppliesTo.GROUP.value: [member.value for member in ChargeTime.group_members()],
}
CHARGE_CALCULATION_OPTIONS = {
    ChargeAppliesTo.LOAN.value: [member.value for member in ChargeCalculation.loan_members()],
    ChargeAppliesTo.GROUP.value: [member.value for member in ChargeCalculation.group_members()],
}


# ============================================================
# SHARED RULES
# ============================================================

def _validate_name(v):
    v.parameter('name').string().not_blank().not_exceeding_length(NAME_MAX_LENGTH)


def _validate_interest_rate(v):
    v.parameter('annualNominalInterestRate').decimal().not_null().positive_amount()


def _validate_loan_limits(v, based_on_savings, current_factor=None, current_amount=None):
    """
    Exactly one of factor / amount, picked by the flag.

    The current values stand in for absent parameters when the mode is not
    being switched.
    """
    if based_on_savings is None:
        return
    factor = v.parameter('loanLimitFactor', default=current_factor)
    amount = v.parameter('loanLimitAmount', default=current_amount)
    if based_on_savings:
        factor.integer().not_null().integer_greater_than_zero()
        amount.must_be_absent('loan.limit.based.on.savings')
    else:
        amount.decimal().not_null().positive_amount()
        factor.must_be_absent('loan.limit.not.based.on.savings')


def _validate_number_of_repayments(number, minimum, maximum):
    """numberOfRepayments must respect whichever of min / max are given."""
    low, high = minimum.valid_value, maximum.valid_value
    if low is not None and high is not None:
        maximum.not_less_than_min(low)
        if low <= high:
            number.in_min_max_range(low, high)
    elif high is not None:
        number.not_greater_than_max(high)
    elif low is not None:
        number.not_less_than_min(low)


def _validate_new_charge(cv):
    applies_to = cv.parameter('chargeAppliesToId').integer().not_null().is_one_of(ChargeAppliesTo.values())
    charge_time = cv.parameter('chargeTimeId').integer().not_null()
    calculation = cv.parameter('chargeCalculationId').integer().not_null()
    if not applies_to.failed:
        charge_time.is_one_of(CHARGE_TIME_OPTIONS[applies_to.value])
        calculation.is_one_of(CHARGE_CALCULATION_OPTIONS[applies_to.value])
    cv.parameter('amount').decimal().not_null().positive_amount()
    cv.parameter('penalty').boolean()
    cv.parameter('active').boolean()


def _validate_existing_charge(cv):
    cv.parameter('id').integer().not_null().integer_greater_than_zero()
    if cv.has('amount'):
        cv.parameter('amount').decimal().not_null().positive_amount()
    if cv.has('active'):
        cv.parameter('active').boolean().true_or_false_required()


def _validate_charges(v, allow_existing):
    """
    Validate the `charges` array.

    With `allow_existing`, entries carrying an `id` only patch amount/active;
    entries without one always go through the full creation rules.
    """
    if not v.has('charges'):
        return
    check = v.parameter('charges').array().not_null().array_not_empty()
    if check.failed:
        return

    cleaned = []
    for index, element in enumerate(check.value, start=1):
        prefix = f'charges[{index}].'
        if not isinstance(element, dict):
            v.add_error(f'charges[{index}]', 'must.be.object', f'The parameter {prefix[:-1]} must be an object.')
            continue
        existing = allow_existing and 'id' in element
        supported = EXISTING_CHARGE_PARAMETERS if existing else NEW_CHARGE_PARAMETERS
        check_for_unsupported_parameters(element, supported, prefix=prefix)

        cv = v.nested(CHARGE_RESOURCE, element, prefix)
        if existing:
            _validate_existing_charge(cv)
        else:
            _validate_new_charge(cv)
        cleaned.append(cv.cleaned)
    v.cleaned['charges'] = cleaned


def _validate_loan_terms(v):
    v.parameter('interestMethodId').integer().not_null().is_one_of(InterestMethod.values())
    v.parameter('interestCalculatedInPeriodId').integer().not_null().is_one_of(
        InterestCalculationPeriod.values())
    v.parameter('repayEvery').integer().not_null().integer_greater_than_zero()
    v.parameter('repaymentPeriodFrequencyId').integer().not_null().is_one_of(PeriodFrequency.values())
    v.parameter('amortizationMethodId').integer().not_null().is_one_of(AmortizationMethod.values())
    v.parameter('transactionProcessingStrategyId').integer().not_null().integer_greater_than_zero()


# ============================================================
# CREATE
# ============================================================

def validate_for_create(payload):
    require_json_object(payload)
    check_for_unsupported_parameters(payload, CREATE_FUND_PARAMETERS)
    v = DataValidator(FUND_RESOURCE, payload)

    _validate_name(v)

    minimum = v.parameter('minimumDepositPerMeeting').decimal().not_null().positive_amount()
    v.parameter('maximumDepositPerMeeting').decimal().not_null().positive_amount() \
        .not_less_than_min(minimum.valid_value)

    based_on_savings = v.parameter('isLoanLimitBasedOnSavings').boolean().true_or_false_required().value
    _validate_loan_limits(v, based_on_savings)

    _validate_interest_rate(v)
    _validate_loan_terms(v)

    number = v.parameter('numberOfRepayments').integer().not_null().integer_greater_than_zero()
    min_repayments = v.parameter('minNumberOfRepayments').integer().integer_greater_than_zero()
    max_repayments = v.parameter('maxNumberOfRepayments').integer().integer_greater_than_zero()
    _validate_number_of_repayments(number, min_repayments, max_repayments)

    _validate_charges(v, allow_existing=False)

    v.raise_if_errors()
    return v.cleaned


# ============================================================
# UPDATE
# ============================================================

def validate_for_update(payload, fund):
    """Validate an update of `fund`; the allowed parameters follow its cycle's status."""
    require_json_object(payload)
    if fund.cycle.is_active():
        return _validate_for_active_cycle_update(payload)
    return _validate_for_initiated_cycle_update(payload, fund)


def _validate_for_active_cycle_update(payload):
    check_for_unsupported_parameters(payload, ACTIVE_CYCLE_UPDATE_FUND_PARAMETERS)
    v = DataValidator(FUND_RESOURCE, payload)
    if v.has('name'):
        _validate_name(v)
    if v.has('annualNominalInterestRate'):
        _validate_interest_rate(v)
    _validate_charges(v, allow_existing=True)
    v.raise_if_errors()
    return v.cleaned


def _validate_for_initiated_cycle_update(payload, fund):
    check_for_unsupported_parameters(payload, UPDATE_FUND_PARAMETERS)
    v = DataValidator(FUND_RESOURCE, payload)
    detail = fund.loan_product_detail

    if v.has('name'):
        _validate_name(v)

    if v.has_any('minimumDepositPerMeeting', 'maximumDepositPerMeeting'):
        minimum = v.parameter('minimumDepositPerMeeting', default=fund.minimum_deposit_per_meeting) \
            .decimal().not_null().positive_amount()
        maximum = v.parameter('maximumDepositPerMeeting', default=fund.maximum_deposit_per_meeting) \
            .decimal().not_null().positive_amount()
        if maximum.present:
            maximum.not_less_than_min(minimum.valid_value)
        else:
            minimum.not_greater_than_max(maximum.valid_value)

    if v.has_any('isLoanLimitBasedOnSavings', 'loanLimitFactor', 'loanLimitAmount'):
        flag = v.parameter('isLoanLimitBasedOnSavings', default=fund.is_loan_limit_based_on_savings) \
            .boolean().true_or_false_required()
        switching = flag.value is not None and flag.value != fund.is_loan_limit_based_on_savings
        if switching:
            _validate_loan_limits(v, flag.value)
        else:
            _validate_loan_limits(v, flag.value, fund.loan_limit_factor, fund.loan_limit_amount)

    if v.has('annualNominalInterestRate'):
        _validate_interest_rate(v)

    for name, rule in (
        ('interestMethodId', lambda check: check.is_one_of(InterestMethod.values())),
        ('interestCalculatedInPeriodId', lambda check: check.is_one_of(InterestCalculationPeriod.values())),
        ('repayEvery', lambda check: check.integer_greater_than_zero()),
        ('repaymentPeriodFrequencyId', lambda check: check.is_one_of(PeriodFrequency.values())),
        ('amortizationMethodId', lambda check: check.is_one_of(AmortizationMethod.values())),
        ('transactionProcessingStrategyId', lambda check: check.integer_greater_than_zero()),
    ):
        if v.has(name):
            rule(v.parameter(name).integer().not_null())

    if v.has_any('numberOfRepayments', 'minNumberOfRepayments', 'maxNumberOfRepayments'):
        number = v.parameter('numberOfRepayments', default=detail.number_of_repayments) \
            .integer().not_null().integer_greater_than_zero()
        min_repayments = v.parameter('minNumberOfRepayments', default=detail.min_number_of_repayments) \
            .integer().integer_greater_than_zero()
        max_repayments = v.parameter('maxNumberOfRepayments', default=detail.max_number_of_repayments) \
            .integer().integer_greater_than_zero()
        _validate_number_of_repayments(number, min_repayments, max_repayments)

    _validate_charges(v, allow_existing=True)

    v.raise_if_errors()
    return v.cleaned
