from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import IntEnum

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from app.changes import ChargeChanges, CycleChanges, FundChanges
from app.extensions import db


# ============================================================
# OPTION ENUMS
# ============================================================
class OptionEnum(IntEnum):
    """
    Closed set of integer codes that can be rendered as API options.

    Each member is declared as (value, code, description). Unknown codes
    are rejected by from_int instead of falling back to a default member.
    """

    def __new__(cls, value, code, description):
        member = int.__new__(cls, value)
        member._value_ = value
        member.code = code
        member.description = description
        return member

    @classmethod
    def from_int(cls, value):
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f'{value!r} is not a valid {cls.__name__} code') from None

    @classmethod
    def values(cls):
        return [member.value for member in cls]

    @classmethod
    def options(cls, members=None):
        return [member.to_option() for member in (members or list(cls))]

    def to_option(self):
        return {'id': self.value, 'code': self.code, 'value': self.description}


class GroupType(OptionEnum):
    REGULAR = (1, 'groupType.regular', 'Regular')
    SAVINGS = (2, 'groupType.savings', 'Savings')


class CycleStatus(OptionEnum):
    INITIATED = (1, 'sgCycleStatus.initiated', 'Initiated')
    ACTIVE = (2, 'sgCycleStatus.active', 'Active')
    CLOSED = (3, 'sgCycleStatus.closed', 'Closed')


class FundStatus(OptionEnum):
    ACTIVE = (1, 'sgFundStatus.active', 'Active')
    INACTIVE = (2, 'sgFundStatus.inactive', 'Inactive')


class ChargeAppliesTo(OptionEnum):
    LOAN = (1, 'chargeAppliesTo.loan', 'Loan')
    GROUP = (101, 'chargeAppliesTo.group', 'Group')


class ChargeTime(OptionEnum):
    DISBURSEMENT = (1, 'chargeTimeType.disbursement', 'Disbursement')
    INSTALMENT_FEE = (8, 'chargeTimeType.instalmentFee', 'Installment')
    OVERDUE_INSTALLMENT = (9, 'chargeTimeType.overdueInstallment', 'Overdue')
    MEETING_ABSENCE = (101, 'chargeTimeType.meetingabsense', 'Meeting Absence')
    PARTIAL_DEPOSIT = (102, 'chargeTimeType.partialdeposit', 'Partial Deposit')

    @classmethod
    def loan_members(cls):
        return [cls.DISBURSEMENT, cls.INSTALMENT_FEE, cls.OVERDUE_INSTALLMENT]

    @classmethod
    def group_members(cls):
        return [cls.MEETING_ABSENCE, cls.PARTIAL_DEPOSIT]


class ChargeCalculation(OptionEnum):
    FLAT = (1, 'chargeCalculationType.flat', 'Flat')
    PERCENT_OF_AMOUNT = (2, 'chargeCalculationType.percent.of.amount', '% Amount')
    PERCENT_OF_AMOUNT_AND_INTEREST = (3, 'chargeCalculationType.percent.of.amount.and.interest', '% Loan Amount + Interest')
    PERCENT_OF_INTEREST = (4, 'chargeCalculationType.percent.of.interest', '% Interest')
    PERCENT_OF_DISBURSEMENT_AMOUNT = (5, 'chargeCalculationType.percent.of.disbursement.amount', '% Disbursement Amount')

    @classmethod
    def loan_members(cls):
        return list(cls)

    @classmethod
    def group_members(cls):
        return [cls.FLAT, cls.PERCENT_OF_AMOUNT]


class DepositsPaymentStrategy(OptionEnum):
    CLD = (1, 'savingsGroupDepositsPaymentStrategy.CLD', 'Charge,Loan,Deposit')
    CDL = (2, 'savingsGroupDepositsPaymentStrategy.CDL', 'Charge,Deposit,Loan')
    DLC = (3, 'savingsGroupDepositsPaymentStrategy.DLC', 'Deposit,Loan,Charge')
    DCL = (4, 'savingsGroupDepositsPaymentStrategy.DCL', 'Deposit,Charge,Loan')
    LDC = (5, 'savingsGroupDepositsPaymentStrategy.LDC', 'Loan,Deposit,Charge')
    LCD = (6, 'savingsGroupDepositsPaymentStrategy.LCD', 'Loan,Charge,Deposit')


class InterestMethod(OptionEnum):
    DECLINING_BALANCE = (0, 'interestType.declining.balance', 'Declining Balance')
    FLAT = (1, 'interestType.flat', 'Flat')


class InterestCalculationPeriod(OptionEnum):
    DAILY = (0, 'interestCalculationPeriodType.daily', 'Daily')
    SAME_AS_REPAYMENT_PERIOD = (1, 'interestCalculationPeriodType.same.as.repayment.period', 'Same as repayment period')


class PeriodFrequency(OptionEnum):
    DAYS = (0, 'repaymentFrequency.periodFrequencyType.days', 'Days')
    WEEKS = (1, 'repaymentFrequency.periodFrequencyType.weeks', 'Weeks')
    MONTHS = (2, 'repaymentFrequency.periodFrequencyType.months', 'Months')
    YEARS = (3, 'repaymentFrequency.periodFrequencyType.years', 'Years')


class AmortizationMethod(OptionEnum):
    EQUAL_PRINCIPAL = (0, 'amortizationType.equal.principal', 'Equal principal payments')
    EQUAL_INSTALLMENTS = (1, 'amortizationType.equal.installments', 'Equal installments')


# ============================================================
# MONEY
# ============================================================
@dataclass(frozen=True)
class MonetaryCurrency:
    """Currency descriptor a cycle is run in."""

    code: str
    digits: int
    in_multiples_of: int | None = None

    def to_dict(self):
        return {
            'code': self.code,
            'decimalPlaces': self.digits,
            'inMultiplesOf': self.in_multiples_of,
        }


# ============================================================
# USER MODEL
# ============================================================
class User(UserMixin, db.Model):
    """API caller, authenticated with HTTP Basic credentials."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password):
        """Hash and set the user's password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against stored hash."""
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<User {self.username}>'


# ============================================================
# GROUP MODEL
# ============================================================
class Group(db.Model):
    """
    A client group. Only groups of type SAVINGS run cycles and funds.
    """
    __tablename__ = 'groups'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    group_type = db.Column(db.Integer, nullable=False, default=GroupType.REGULAR.value)
    activation_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # One-to-One relationship with the meeting calendar
    calendar = db.relationship('Calendar', backref='group', uselist=False,
                               cascade='all, delete-orphan')
    cycles = db.relationship('SavingsGroupCycle', backref='group', lazy='dynamic',
                             order_by='SavingsGroupCycle.cycle_number')

    @property
    def type(self):
        return GroupType.from_int(self.group_type)

    def is_savings_group(self):
        return self.group_type == GroupType.SAVINGS.value

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'groupType': self.type.to_option(),
            'activationDate': self.activation_date.isoformat() if self.activation_date else None,
            'calendar': self.calendar.to_dict() if self.calendar else None,
        }

    def __repr__(self):
        return f'<Group {self.name}>'


# ============================================================
# MEETING CALENDAR MODEL
# ============================================================
class Calendar(db.Model):
    """
    Meeting calendar attached to a group.

    `recurrence` is an iCalendar RRULE (e.g. FREQ=WEEKLY;INTERVAL=1;BYDAY=MO)
    anchored at `start_date`.
    """
    __tablename__ = 'calendars'

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey('groups.id'), unique=True, nullable=False)
    title = db.Column(db.String(100))
    start_date = db.Column(db.Date, nullable=False)
    recurrence = db.Column(db.String(200), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'startDate': self.start_date.isoformat(),
            'recurrence': self.recurrence,
        }

    def __repr__(self):
        return f'<Calendar group={self.group_id} {self.recurrence}>'


# ============================================================
# LOAN TRANSACTION PROCESSING STRATEGY
# ============================================================
class LoanTransactionProcessingStrategy(db.Model):
    __tablename__ = 'loan_transaction_processing_strategies'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(100), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)

    def to_option(self):
        return {'id': self.id, 'code': self.code, 'name': self.name}

    def __repr__(self):
        return f'<LoanTransactionProcessingStrategy {self.code}>'


# ============================================================
# SAVINGS GROUP CYCLE MODEL
# ============================================================
class SavingsGroupCycle(db.Model):
    """
    A bounded financial period of a savings group.

    Status only moves forward: INITIATED → ACTIVE → CLOSED.
    At most one cycle per group may be outside CLOSED; the partial unique
    index below makes the database reject a second one.
    """
    __tablename__ = 'sg_cycles'

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey('groups.id'), nullable=False)
    cycle_number = db.Column(db.Integer, nullable=False)
    status_enum = db.Column(db.Integer, nullable=False, default=CycleStatus.INITIATED.value)

    currency_code = db.Column(db.String(3), nullable=False)
    currency_digits = db.Column(db.Integer, nullable=False)
    currency_multiples_of = db.Column(db.Integer)

    expected_start_date = db.Column(db.Date, nullable=False)
    actual_start_date = db.Column(db.Date)
    expected_end_date = db.Column(db.Date, nullable=False)
    actual_end_date = db.Column(db.Date)

    expected_num_of_meetings = db.Column(db.Integer)
    num_of_meetings_completed = db.Column(db.Integer, default=0)
    num_of_meetings_pending = db.Column(db.Integer, default=0)

    is_share_based = db.Column(db.Boolean, nullable=False, default=False)
    unit_price_of_share = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('1'))
    share_product_id = db.Column(db.Integer)

    is_client_additions_allowed_in_active_cycle = db.Column(db.Boolean, nullable=False, default=False)
    is_client_exit_allowed_in_active_cycle = db.Column(db.Boolean, nullable=False, default=False)
    does_individual_client_exit_forfeit_gains = db.Column(db.Boolean, nullable=False, default=False)
    deposits_payment_strategy = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    funds = db.relationship('SavingsGroupFund', backref='cycle', lazy='dynamic',
                            order_by='SavingsGroupFund.id')

    __table_args__ = (
        db.UniqueConstraint('group_id', 'cycle_number', name='unique_group_cycle_number'),
        db.Index(
            'unique_open_cycle_per_group', 'group_id', unique=True,
            sqlite_where=db.text(f'status_enum <> {CycleStatus.CLOSED.value}'),
            postgresql_where=db.text(f'status_enum <> {CycleStatus.CLOSED.value}'),
        ),
    )

    @property
    def status(self):
        return CycleStatus.from_int(self.status_enum)

    @property
    def currency(self):
        return MonetaryCurrency(self.currency_code, self.currency_digits, self.currency_multiples_of)

    @currency.setter
    def currency(self, currency):
        self.currency_code = currency.code
        self.currency_digits = currency.digits
        self.currency_multiples_of = currency.in_multiples_of

    @property
    def start_date(self):
        """Actual start date once activated, otherwise the expected one."""
        return self.actual_start_date or self.expected_start_date

    def is_initiated(self):
        return self.status_enum == CycleStatus.INITIATED.value

    def is_active(self):
        return self.status_enum == CycleStatus.ACTIVE.value

    def is_closed(self):
        return self.status_enum == CycleStatus.CLOSED.value

    def activate(self, start_date):
        changes = CycleChanges()
        self.actual_start_date = start_date
        self.status_enum = CycleStatus.ACTIVE.value
        changes.actual_start_date = start_date
        changes.status = CycleStatus.ACTIVE
        return changes

    def close(self, end_date):
        changes = CycleChanges()
        self.actual_end_date = end_date
        self.status_enum = CycleStatus.CLOSED.value
        changes.actual_end_date = end_date
        changes.status = CycleStatus.CLOSED
        return changes

    def update(self, values, expected_num_of_meetings=None):
        """
        Apply an already validated update payload.

        Only fields whose value really differs are written and recorded.
        """
        changes = CycleChanges()

        currency = MonetaryCurrency(
            values.get('currencyCode', self.currency_code),
            values.get('currencyDigits', self.currency_digits),
            values.get('currencyMultiplesOf', self.currency_multiples_of),
        )
        if currency != self.currency:
            self.currency = currency
            changes.currency = currency

        if 'startDate' in values:
            changes.track(self, 'expected_start_date', values['startDate'])
        if 'endDate' in values:
            changes.track(self, 'expected_end_date', values['endDate'])

        is_share_based = values.get('isShareBased', self.is_share_based)
        changes.track(self, 'is_share_based', is_share_based)
        if is_share_based:
            if values.get('unitPriceOfShare') is not None:
                changes.track(self, 'unit_price_of_share', values['unitPriceOfShare'])
        else:
            changes.track(self, 'unit_price_of_share', Decimal('1'))

        for param, attr in (
            ('isClientAdditionsAllowedInActiveCycle', 'is_client_additions_allowed_in_active_cycle'),
            ('isClientExitAllowedInActiveCycle', 'is_client_exit_allowed_in_active_cycle'),
            ('doesIndividualClientExitForfeitGains', 'does_individual_client_exit_forfeit_gains'),
        ):
            if values.get(param) is not None:
                changes.track(self, attr, values[param])

        strategy = values.get('depositsPaymentStrategyId')
        if strategy is not None and strategy != self.deposits_payment_strategy:
            self.deposits_payment_strategy = strategy
            changes.deposits_payment_strategy = DepositsPaymentStrategy.from_int(strategy)

        if expected_num_of_meetings is not None:
            changes.track(self, 'expected_num_of_meetings', expected_num_of_meetings)

        return changes

    def __repr__(self):
        return f'<SavingsGroupCycle group={self.group_id} #{self.cycle_number} {self.status.name}>'


# ============================================================
# SAVINGS GROUP FUND MODEL
# ============================================================
class SavingsGroupFund(db.Model):
    """
    A lending facility of one cycle.

    A fund is never physically deleted: deleting flips it to INACTIVE so
    loans that already reference it keep their history. Its loan terms and
    charges live and die with it.
    """
    __tablename__ = 'sg_funds'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    group_id = db.Column(db.Integer, db.ForeignKey('groups.id'), nullable=False)
    cycle_id = db.Column(db.Integer, db.ForeignKey('sg_cycles.id'), nullable=False)
    loan_product_id = db.Column(db.Integer)

    minimum_deposit_per_meeting = db.Column(db.Numeric(19, 6), nullable=False)
    maximum_deposit_per_meeting = db.Column(db.Numeric(19, 6), nullable=False)
    status_enum = db.Column(db.Integer, nullable=False, default=FundStatus.ACTIVE.value)

    # Running totals, maintained by meeting processing
    total_cash_in_hand = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('0'))
    total_cash_in_bank = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('0'))
    total_deposits = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('0'))
    total_loan_portfolio = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('0'))
    total_fee_collected = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('0'))
    total_expenses = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('0'))
    total_income = db.Column(db.Numeric(19, 6), nullable=False, default=Decimal('0'))

    # Exactly one of factor / amount is set, chosen by the flag
    is_loan_limit_based_on_savings = db.Column(db.Boolean, nullable=False, default=False)
    loan_limit_amount = db.Column(db.Numeric(19, 6))
    loan_limit_factor = db.Column(db.Integer)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    group = db.relationship('Group')
    loan_product_detail = db.relationship('SavingsGroupLoanProductDetail', backref='fund',
                                          uselist=False, cascade='all, delete-orphan')
    charges = db.relationship('SavingsGroupCharge', backref='fund',
                              cascade='all, delete-orphan', order_by='SavingsGroupCharge.id')

    @classmethod
    def from_values(cls, cycle, values, strategy):
        based_on_savings = values['isLoanLimitBasedOnSavings']
        fund = cls(
            name=values['name'],
            group_id=cycle.group_id,
            cycle=cycle,
            minimum_deposit_per_meeting=values['minimumDepositPerMeeting'],
            maximum_deposit_per_meeting=values['maximumDepositPerMeeting'],
            status_enum=FundStatus.ACTIVE.value,
            is_loan_limit_based_on_savings=based_on_savings,
            loan_limit_factor=values.get('loanLimitFactor') if based_on_savings else None,
            loan_limit_amount=None if based_on_savings else values.get('loanLimitAmount'),
        )
        fund.loan_product_detail = SavingsGroupLoanProductDetail.from_values(values, strategy)
        fund.charges = [SavingsGroupCharge.from_values(charge) for charge in values.get('charges', [])]
        return fund

    @property
    def status(self):
        return FundStatus.from_int(self.status_enum)

    def is_active(self):
        return self.status_enum == FundStatus.ACTIVE.value

    def active_charges(self):
        return [charge for charge in self.charges if charge.is_active]

    def find_charge(self, charge_id):
        return next((charge for charge in self.charges if charge.id == charge_id), None)

    def deactivate(self):
        changes = FundChanges()
        self.status_enum = FundStatus.INACTIVE.value
        changes.fund_status = FundStatus.INACTIVE
        return changes

    def update(self, values):
        """Apply validated scalar and loan-limit changes, returning a FundChanges."""
        changes = FundChanges()

        for param, attr in (
            ('name', 'name'),
            ('minimumDepositPerMeeting', 'minimum_deposit_per_meeting'),
            ('maximumDepositPerMeeting', 'maximum_deposit_per_meeting'),
        ):
            if values.get(param) is not None:
                changes.track(self, attr, values[param])

        if not any(param in values for param in
                   ('isLoanLimitBasedOnSavings', 'loanLimitFactor', 'loanLimitAmount')):
            return changes

        based_on_savings = values.get('isLoanLimitBasedOnSavings', self.is_loan_limit_based_on_savings)
        changes.track(self, 'is_loan_limit_based_on_savings', based_on_savings)
        if based_on_savings:
            changes.track(self, 'loan_limit_factor', values.get('loanLimitFactor', self.loan_limit_factor))
            changes.track(self, 'loan_limit_amount', None)
        else:
            changes.track(self, 'loan_limit_amount', values.get('loanLimitAmount', self.loan_limit_amount))
            changes.track(self, 'loan_limit_factor', None)
        return changes

    def copy_to(self, cycle):
        """Clone the configuration into `cycle`; totals start again from zero."""
        # Owned rows are loaded before the clone is attached to cycle.funds
        detail = self.loan_product_detail.copy()
        charges = [charge.copy() for charge in self.active_charges()]
        clone = SavingsGroupFund(
            name=self.name,
            group_id=cycle.group_id,
            cycle=cycle,
            minimum_deposit_per_meeting=self.minimum_deposit_per_meeting,
            maximum_deposit_per_meeting=self.maximum_deposit_per_meeting,
            status_enum=FundStatus.ACTIVE.value,
            is_loan_limit_based_on_savings=self.is_loan_limit_based_on_savings,
            loan_limit_factor=self.loan_limit_factor,
            loan_limit_amount=self.loan_limit_amount,
        )
        clone.loan_product_detail = detail
        clone.charges = charges
        return clone

    def __repr__(self):
        return f'<SavingsGroupFund {self.name} cycle={self.cycle_id}>'


# ============================================================
# FUND LOAN PRODUCT DETAIL MODEL
# ============================================================
class SavingsGroupLoanProductDetail(db.Model):
    """Loan terms offered by a fund (one per fund)."""
    __tablename__ = 'sg_fund_loan_product_details'

    id = db.Column(db.Integer, primary_key=True)
    fund_id = db.Column(db.Integer, db.ForeignKey('sg_funds.id'), unique=True, nullable=False)

    annual_nominal_interest_rate = db.Column(db.Numeric(19, 6), nullable=False)
    interest_method = db.Column(db.Integer, nullable=False)
    interest_calculated_in_period = db.Column(db.Integer, nullable=False)
    repay_every = db.Column(db.Integer, nullable=False)
    repayment_period_frequency = db.Column(db.Integer, nullable=False)
    number_of_repayments = db.Column(db.Integer, nullable=False)
    min_number_of_repayments = db.Column(db.Integer)
    max_number_of_repayments = db.Column(db.Integer)
    amortization_method = db.Column(db.Integer, nullable=False)
    transaction_processing_strategy_id = db.Column(
        db.Integer, db.ForeignKey('loan_transaction_processing_strategies.id'), nullable=False)

    transaction_processing_strategy = db.relationship('LoanTransactionProcessingStrategy')

    # payload parameter -> column
    FIELDS = (
        ('annualNominalInterestRate', 'annual_nominal_interest_rate'),
        ('interestMethodId', 'interest_method'),
        ('interestCalculatedInPeriodId', 'interest_calculated_in_period'),
        ('repayEvery', 'repay_every'),
        ('repaymentPeriodFrequencyId', 'repayment_period_frequency'),
        ('numberOfRepayments', 'number_of_repayments'),
        ('minNumberOfRepayments', 'min_number_of_repayments'),
        ('maxNumberOfRepayments', 'max_number_of_repayments'),
        ('amortizationMethodId', 'amortization_method'),
    )

    @classmethod
    def from_values(cls, values, strategy):
        detail = cls(transaction_processing_strategy=strategy)
        for param, attr in cls.FIELDS:
            setattr(detail, attr, values.get(param))
        return detail

    def update(self, values, changes):
        for param, attr in self.FIELDS:
            if param in values:
                changes.track(self, attr, values[param])
        return changes

    def copy(self):
        clone = SavingsGroupLoanProductDetail(
            transaction_processing_strategy_id=self.transaction_processing_strategy_id)
        for _, attr in self.FIELDS:
            setattr(clone, attr, getattr(self, attr))
        return clone

    def __repr__(self):
        return f'<SavingsGroupLoanProductDetail fund={self.fund_id}>'


# ============================================================
# FUND CHARGE MODEL
# ============================================================
class SavingsGroupCharge(db.Model):
    """
    Fee or penalty defined on a fund.

    Once created only `amount` and `is_active` may change.
    """
    __tablename__ = 'sg_fund_charges'

    id = db.Column(db.Integer, primary_key=True)
    fund_id = db.Column(db.Integer, db.ForeignKey('sg_funds.id'), nullable=False)
    charge_applies_to = db.Column(db.Integer, nullable=False)
    charge_time = db.Column(db.Integer, nullable=False)
    charge_calculation = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Numeric(19, 6), nullable=False)
    is_penalty = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    @classmethod
    def from_values(cls, values):
        return cls(
            charge_applies_to=values['chargeAppliesToId'],
            charge_time=values['chargeTimeId'],
            charge_calculation=values['chargeCalculationId'],
            amount=values['amount'],
            is_penalty=bool(values.get('penalty', False)),
            is_active=values.get('active', True) is not False,
        )

    def update(self, values):
        changes = ChargeChanges(id=self.id)
        if values.get('amount') is not None:
            changes.track(self, 'amount', values['amount'])
        if values.get('active') is not None:
            changes.track(self, 'is_active', values['active'])
        return changes

    def creation_changes(self):
        return ChargeChanges(
            id=self.id,
            charge_applies_to=self.charge_applies_to,
            charge_time=self.charge_time,
            charge_calculation=self.charge_calculation,
            amount=self.amount,
            is_penalty=self.is_penalty,
            is_active=self.is_active,
        )

    def copy(self):
        return SavingsGroupCharge(
            charge_applies_to=self.charge_applies_to,
            charge_time=self.charge_time,
            charge_calculation=self.charge_calculation,
            amount=self.amount,
            is_penalty=self.is_penalty,
            is_active=self.is_active,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'chargeAppliesTo': ChargeAppliesTo.from_int(self.charge_applies_to).to_option(),
            'chargeTime': ChargeTime.from_int(self.charge_time).to_option(),
            'chargeCalculation': ChargeCalculation.from_int(self.charge_calculation).to_option(),
            'amount': self.amount,
            'active': self.is_active,
            'penalty': self.is_penalty,
        }

    def __repr__(self):
        return f'<SavingsGroupCharge {self.id} fund={self.fund_id}>'
