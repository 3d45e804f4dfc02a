"""
FUND READ SERVICE
=================

Read-only views of the funds of a group's latest cycle and the fund
template options.
"""

from app.exceptions import NotFoundError
from app.models import (
    AmortizationMethod, ChargeAppliesTo, ChargeCalculation, ChargeTime, FundStatus,
    InterestCalculationPeriod, InterestMethod, LoanTransactionProcessingStrategy,
    PeriodFrequency, SavingsGroupFund
)
from app.services.authorization_service import load_savings_group
from app.services.cycle_read_service import get_latest_cycle


def fund_data(fund):
    detail = fund.loan_product_detail
    strategy = detail.transaction_processing_strategy
    return {
        'id': fund.id,
        'groupId': fund.group_id,
        'name': fund.name,
        'cycleNumber': fund.cycle.cycle_number,
        'fundStatus': fund.status.to_option(),
        'minimumDepositPerMeeting': fund.minimum_deposit_per_meeting,
        'maximumDepositPerMeeting': fund.maximum_deposit_per_meeting,
        'totalCashInHand': fund.total_cash_in_hand,
        'totalCashInBank': fund.total_cash_in_bank,
        'totalDeposits': fund.total_deposits,
        'totalLoanPortfolio': fund.total_loan_portfolio,
        'totalFeeCollected': fund.total_fee_collected,
        'totalExpenses': fund.total_expenses,
        'totalIncome': fund.total_income,
        'isLoanLimitBasedOnSavings': fund.is_loan_limit_based_on_savings,
        'loanLimitAmount': fund.loan_limit_amount,
        'loanLimitFactor': fund.loan_limit_factor,
        'loanProductId': fund.loan_product_id,
        'annualNominalInterestRate': detail.annual_nominal_interest_rate,
        'interestMethod': InterestMethod.from_int(detail.interest_method).to_option(),
        'interestCalculatedInPeriod': InterestCalculationPeriod.from_int(
            detail.interest_calculated_in_period).to_option(),
        'repayEvery': detail.repay_every,
        'repaymentPeriodFrequency': PeriodFrequency.from_int(detail.repayment_period_frequency).to_option(),
        'numberOfRepayments': detail.number_of_repayments,
        'minNumberOfRepayments': detail.min_number_of_repayments,
        'maxNumberOfRepayments': detail.max_number_of_repayments,
        'amortizationMethod': AmortizationMethod.from_int(detail.amortization_method).to_option(),
        'transactionProcessingStrategy': strategy.to_option() if strategy else None,
        'charges': [charge.to_dict() for charge in fund.charges],
    }


# ============================================================
# QUERIES
# ============================================================

def retrieve_fund_template(group_id):
    load_savings_group(group_id)
    strategies = LoanTransactionProcessingStrategy.query.order_by(LoanTransactionProcessingStrategy.id).all()
    return {
        'interestMethodOptions': InterestMethod.options(),
        'interestCalculatedInPeriodOptions': InterestCalculationPeriod.options(),
        'repaymentPeriodFrequencyOptions': PeriodFrequency.options(),
        'amortizationMethodOptions': AmortizationMethod.options(),
        'transactionProcessingStrategyOptions': [strategy.to_option() for strategy in strategies],
        'chargeAppliesToOptions': ChargeAppliesTo.options(),
        'loanChargeTimeOptions': ChargeTime.options(ChargeTime.loan_members()),
        'loanChargeCalculationOptions': ChargeCalculation.options(ChargeCalculation.loan_members()),
        'groupChargeTimeOptions': ChargeTime.options(ChargeTime.group_members()),
        'groupChargeCalculationOptions': ChargeCalculation.options(ChargeCalculation.group_members()),
    }


def get_active_funds(cycle_id):
    return SavingsGroupFund.query.filter_by(cycle_id=cycle_id, status_enum=FundStatus.ACTIVE.value) \
        .order_by(SavingsGroupFund.id).all()


def retrieve_latest_cycle_funds(group_id):
    """ACTIVE funds of the group's latest cycle."""
    load_savings_group(group_id)
    cycle = get_latest_cycle(group_id)
    funds = get_active_funds(cycle.id) if cycle is not None else []
    if not funds:
        raise NotFoundError('fund.none.defined.for.latest.cycle',
                            f'No active fund defined for the latest cycle of group {group_id}',
                            resource_id=group_id)
    return [fund_data(fund) for fund in funds]


def retrieve_fund(group_id, fund_id):
    load_savings_group(group_id)
    fund = SavingsGroupFund.query.filter_by(id=fund_id, group_id=group_id).first()
    if fund is None:
        raise NotFoundError('fund.not.found', f'Fund with identifier {fund_id} does not exist',
                            resource_id=fund_id)
    return fund_data(fund)
