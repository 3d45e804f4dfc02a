"""
FUND SERVICE
============

Handles:
- Creating a fund (with its loan terms and charges) in an INITIATED cycle
- Updating a fund, with the editable fields depending on the cycle status
- Soft-deleting a fund (status INACTIVE, rows are kept)
- Copying the active funds of one cycle into another
"""

import logging

from app.changes import CommandResult
from app.exceptions import NotFoundError, SavingsGroupError
from app.extensions import db
from app.models import CycleStatus, LoanTransactionProcessingStrategy, SavingsGroupCharge, SavingsGroupFund
from app.services import fund_validator
from app.services.authorization_service import (
    load_fund, load_savings_group, require_active_fund, require_cycle, require_cycle_status,
    require_fund_of_group
)
from app.services.cycle_read_service import get_latest_cycle
from app.services.fund_read_service import get_active_funds

logger = logging.getLogger(__name__)


class FundError(SavingsGroupError):
    """Unexpected failure while changing a fund"""
    pass


def _resolve_strategy(strategy_id):
    strategy = db.session.get(LoanTransactionProcessingStrategy, strategy_id)
    if strategy is None:
        raise NotFoundError('transaction.processing.strategy.not.found',
                            f'Loan transaction processing strategy with identifier {strategy_id} does not exist',
                            resource_id=strategy_id)
    return strategy


# ============================================================
# CREATE FUND
# ============================================================

def create_fund(group_id, payload):
    """
    Create a fund in the group's latest cycle.

    The cycle must still be INITIATED. The loan product the fund will lend
    through is not created here; `loan_product_id` stays empty.
    """
    try:
        group = load_savings_group(group_id)
        cycle = require_cycle(get_latest_cycle(group.id), group.id)
        require_cycle_status(cycle, CycleStatus.INITIATED)

        values = fund_validator.validate_for_create(payload)
        strategy = _resolve_strategy(values['transactionProcessingStrategyId'])

        fund = SavingsGroupFund.from_values(cycle, values, strategy)
        db.session.add(fund)
        db.session.commit()

        logger.info('Created fund %s (%s) in cycle %s of group %s',
                    fund.id, fund.name, cycle.cycle_number, group.id)
        return CommandResult(group_id=group.id, resource_id=fund.id)

    except SavingsGroupError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        raise FundError(f'Failed to create fund: {str(e)}') from e


# ============================================================
# UPDATE FUND
# ============================================================

def _apply_charges(fund, entries, changes):
    for entry in entries:
        charge_id = entry.get('id')
        if charge_id is None:
            charge = SavingsGroupCharge.from_values(entry)
            fund.charges.append(charge)
            db.session.flush()
            changes.charges.append(charge.creation_changes())
            continue

        charge = fund.find_charge(charge_id)
        if charge is None:
            raise NotFoundError('charge.not.found',
                                f'Charge with identifier {charge_id} does not exist for fund {fund.id}',
                                resource_id=charge_id)
        charge_changes = charge.update(entry)
        if charge_changes.has_changes():
            changes.charges.append(charge_changes)


def update_fund(group_id, fund_id, payload):
    try:
        group = load_savings_group(group_id)
        fund = require_fund_of_group(load_fund(fund_id), group.id)
        require_cycle_status(fund.cycle, CycleStatus.INITIATED, CycleStatus.ACTIVE)
        require_active_fund(fund)

        values = fund_validator.validate_for_update(payload, fund)

        changes = fund.update(values)
        detail = fund.loan_product_detail
        detail.update(values, changes)

        strategy_id = values.get('transactionProcessingStrategyId')
        if strategy_id is not None and strategy_id != detail.transaction_processing_strategy_id:
            detail.transaction_processing_strategy = _resolve_strategy(strategy_id)
            changes.transaction_processing_strategy_id = strategy_id

        _apply_charges(fund, values.get('charges', []), changes)

        db.session.commit()

        logger.info('Updated fund %s of group %s: %s', fund.id, group.id, changes.changed_fields())
        return CommandResult(group_id=group.id, resource_id=fund.id, changes=changes)

    except SavingsGroupError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        raise FundError(f'Failed to update fund: {str(e)}') from e


# ============================================================
# DELETE FUND (SOFT)
# ============================================================

def delete_fund(group_id, fund_id):
    try:
        group = load_savings_group(group_id)
        fund = require_fund_of_group(load_fund(fund_id), group.id)
        require_cycle_status(fund.cycle, CycleStatus.INITIATED)
        require_active_fund(fund)

        changes = fund.deactivate()
        db.session.commit()

        logger.info('Deactivated fund %s of group %s', fund.id, group.id)
        return CommandResult(group_id=group.id, resource_id=fund.id, changes=changes)

    except SavingsGroupError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        raise FundError(f'Failed to delete fund: {str(e)}') from e


# ============================================================
# COPY FUNDS BETWEEN CYCLES
# ============================================================

def copy_funds_from_cycle(source_cycle_id, destination_cycle):
    """
    Clone every ACTIVE fund of the source cycle into `destination_cycle`.

    Runs inside the caller's unit of work: the copies are flushed, not
    committed. Only charges that are active on the source are carried over.
    """
    copies = []
    for fund in get_active_funds(source_cycle_id):
        clone = fund.copy_to(destination_cycle)
        db.session.add(clone)
        copies.append(clone)
    db.session.flush()

    logger.info('Copied %d fund(s) from cycle %s into cycle %s',
                len(copies), source_cycle_id, destination_cycle.id)
    return copies
