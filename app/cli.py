"""
Flask CLI commands: database setup and API users.

    flask --app run init-db
    flask --app run create-user admin
"""

import logging

import click

from app.extensions import db
from app.models import LoanTransactionProcessingStrategy, User

logger = logging.getLogger(__name__)

# (id, code, name) of the platform's standard repayment allocation strategies
STANDARD_STRATEGIES = (
    (1, 'mifos-standard-strategy', 'Penalties, Fees, Interest, Principal order'),
    (2, 'heavensfamily-strategy', 'HeavensFamily Unique'),
    (3, 'creocore-strategy', 'Creocore Unique'),
    (4, 'rbi-india-strategy', 'Overdue/Due Fee/Int,Principal'),
    (5, 'principal-interest-penalties-fees-order-strategy', 'Principal Interest Penalties Fees Order'),
    (6, 'interest-principal-penalties-fees-order-strategy', 'Interest Principal Penalties Fees Order'),
    (7, 'early-repayment-strategy', 'Early Repayment Strategy'),
)


def seed_transaction_processing_strategies():
    """Insert the standard strategies that are missing. Returns how many were added."""
    existing = {strategy.code for strategy in LoanTransactionProcessingStrategy.query.all()}
    added = 0
    for strategy_id, code, name in STANDARD_STRATEGIES:
        if code in existing:
            continue
        db.session.add(LoanTransactionProcessingStrategy(id=strategy_id, code=code, name=name))
        added += 1
    if added:
        db.session.commit()
        logger.info('Seeded %d loan transaction processing strategies', added)
    return added


def register_commands(app):

    @app.cli.command('init-db')
    def init_db():
        """Create tables and seed reference data."""
        db.create_all()
        added = seed_transaction_processing_strategies()
        click.echo(f'Database ready ({added} strategies added).')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.password_option()
    def create_user(username, password):
        """Create an API user."""
        if User.query.filter_by(username=username).first():
            raise click.ClickException(f'User {username} already exists')
        user = User(username=username)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f'User {username} created.')
