"""
Payload validation for savings group cycle commands.

Each function checks the parameter allow-list first, then collects every
field violation and raises them together. On success the parsed values are
returned keyed by their API parameter names.
"""

from app.models import DepositsPaymentStrategy
from app.services.validation import (
    DataValidator, check_for_unsupported_parameters, require_json_object
)

CYCLE_RESOURCE = 'sgcycle'

COMMON_PARAMETERS = {'locale', 'dateFormat'}

UPDATE_CYCLE_PARAMETERS = COMMON_PARAMETERS | {
    'currencyCode',
    'currencyDigits',
    'currencyMultiplesOf',
    'startDate',
    'endDate',
    'isShareBased',
    'unitPriceOfShare',
    'isClientAdditionsAllowedInActiveCycle',
    'isClientExitAllowedInActiveCycle',
    'doesIndividualClientExitForfeitGains',
    'depositsPaymentStrategyId',
}
CREATE_CYCLE_PARAMETERS = UPDATE_CYCLE_PARAMETERS | {'copyFundsFromPreviousCycle'}
ACTIVATE_CYCLE_PARAMETERS = COMMON_PARAMETERS | {'startDate'}
SHARE_OUT_CLOSE_CYCLE_PARAMETERS = COMMON_PARAMETERS | {'endDate'}

POLICY_FLAGS = (
    'isClientAdditionsAllowedInActiveCycle',
    'isClientExitAllowedInActiveCycle',
    'doesIndividualClientExitForfeitGains',
)


def _validator(payload, supported):
    require_json_object(payload)
    check_for_unsupported_parameters(payload, supported)
    return DataValidator(CYCLE_RESOURCE, payload)


def validate_for_create(payload):
    v = _validator(payload, CREATE_CYCLE_PARAMETERS)

    v.parameter('currencyCode').string().not_blank().not_exceeding_length(3)
    v.parameter('currencyDigits').integer().not_null().in_min_max_range(0, 6)
    v.parameter('currencyMultiplesOf').integer().zero_or_positive()

    v.parameter('startDate').date().not_null()
    v.parameter('endDate').date().not_null()

    is_share_based = v.parameter('isShareBased').boolean().true_or_false_required().value
    price = v.parameter('unitPriceOfShare').decimal()
    if is_share_based:
        price.not_null().positive_amount()

    for flag in POLICY_FLAGS:
        v.parameter(flag).boolean().true_or_false_required()

    v.parameter('depositsPaymentStrategyId').integer().not_null().is_one_of(DepositsPaymentStrategy.values())
    v.parameter('copyFundsFromPreviousCycle').boolean()

    v.raise_if_errors()
    return v.cleaned


def validate_for_update(payload):
    """Same rules as creation, applied only to the parameters that are present."""
    v = _validator(payload, UPDATE_CYCLE_PARAMETERS)

    if v.has('currencyCode'):
        v.parameter('currencyCode').string().not_blank().not_exceeding_length(3)
    if v.has('currencyDigits'):
        v.parameter('currencyDigits').integer().not_null().in_min_max_range(0, 6)
    v.parameter('currencyMultiplesOf').integer().zero_or_positive()

    for name in ('startDate', 'endDate'):
        if v.has(name):
            v.parameter(name).date().not_null()

    if v.has('isShareBased'):
        v.parameter('isShareBased').boolean().true_or_false_required()
    v.parameter('unitPriceOfShare').decimal().positive_amount()

    for flag in POLICY_FLAGS:
        if v.has(flag):
            v.parameter(flag).boolean().true_or_false_required()

    if v.has('depositsPaymentStrategyId'):
        v.parameter('depositsPaymentStrategyId').integer().not_null().is_one_of(
            DepositsPaymentStrategy.values())

    v.raise_if_errors()
    return v.cleaned


def validate_for_activate(payload):
    v = _validator(payload, ACTIVATE_CYCLE_PARAMETERS)
    start_date = v.parameter('startDate').date().not_null().value
    v.raise_if_errors()
    return start_date


def validate_for_share_out_close(payload):
    v = _validator(payload, SHARE_OUT_CLOSE_CYCLE_PARAMETERS)
    end_date = v.parameter('endDate').date().not_null().value
    v.raise_if_errors()
    return end_date
