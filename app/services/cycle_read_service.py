"""
CYCLE READ SERVICE
==================

Read-only views of a group's cycles: the latest cycle and the template
used to prefill a new one.
"""

from flask import current_app

from app.exceptions import NotFoundError
from app.models import DepositsPaymentStrategy, SavingsGroupCycle
from app.services.authorization_service import load_savings_group


def get_latest_cycle(group_id):
    """Cycle with the highest number for the group, or None."""
    return SavingsGroupCycle.query.filter_by(group_id=group_id) \
        .order_by(SavingsGroupCycle.cycle_number.desc()).first()


def _currency_options():
    return current_app.config.get('CURRENCY_OPTIONS', [])


def currency_data(currency):
    option = next((o for o in _currency_options() if o['code'] == currency.code), {})
    return {
        'code': currency.code,
        'name': option.get('name', currency.code),
        'decimalPlaces': currency.digits,
        'inMultiplesOf': currency.in_multiples_of,
        'displaySymbol': option.get('displaySymbol'),
    }


def cycle_data(cycle):
    return {
        'id': cycle.id,
        'groupId': cycle.group_id,
        'cycleNumber': cycle.cycle_number,
        'status': cycle.status.to_option(),
        'currency': currency_data(cycle.currency),
        'expectedStartDate': cycle.expected_start_date,
        'actualStartDate': cycle.actual_start_date,
        'expectedEndDate': cycle.expected_end_date,
        'actualEndDate': cycle.actual_end_date,
        'expectedNumOfMeetings': cycle.expected_num_of_meetings,
        'numOfMeetingsCompleted': cycle.num_of_meetings_completed,
        'numOfMeetingsPending': cycle.num_of_meetings_pending,
        'isShareBased': cycle.is_share_based,
        'unitPriceOfShare': cycle.unit_price_of_share,
        'shareProductId': cycle.share_product_id,
        'isClientAdditionsAllowedInActiveCycle': cycle.is_client_additions_allowed_in_active_cycle,
        'isClientExitAllowedInActiveCycle': cycle.is_client_exit_allowed_in_active_cycle,
        'doesIndividualClientExitForfeitGains': cycle.does_individual_client_exit_forfeit_gains,
        'depositsPaymentStrategy': DepositsPaymentStrategy.from_int(cycle.deposits_payment_strategy).to_option(),
    }


# ============================================================
# QUERIES
# ============================================================

def retrieve_latest_cycle(group_id):
    load_savings_group(group_id)
    cycle = get_latest_cycle(group_id)
    if cycle is None:
        raise NotFoundError('cycle.none.defined.for.group',
                            f'No cycle defined for group with identifier {group_id}',
                            resource_id=group_id)
    return cycle_data(cycle)


def retrieve_cycle_template(group_id):
    """
    Options for a new cycle.

    When the group already ran a cycle, its currency and policy settings
    are offered as defaults.
    """
    load_savings_group(group_id)
    template = {
        'groupId': group_id,
        'currencyOptions': _currency_options(),
        'depositsPaymentStrategyOptions': DepositsPaymentStrategy.options(),
    }

    latest = get_latest_cycle(group_id)
    if latest is not None:
        template.update({
            'currency': currency_data(latest.currency),
            'isShareBased': latest.is_share_based,
            'unitPriceOfShare': latest.unit_price_of_share,
            'isClientAdditionsAllowedInActiveCycle': latest.is_client_additions_allowed_in_active_cycle,
            'isClientExitAllowedInActiveCycle': latest.is_client_exit_allowed_in_active_cycle,
            'doesIndividualClientExitForfeitGains': latest.does_individual_client_exit_forfeit_gains,
            'depositsPaymentStrategy': DepositsPaymentStrategy.from_int(
                latest.deposits_payment_strategy).to_option(),
        })
    return template
