import os

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-savings-group-cycles'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'savings_groups.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Java-style pattern, overridable per request with `dateFormat`
    DEFAULT_DATE_FORMAT = 'yyyy-MM-dd'

    # Currencies the organisation allows cycles to be run in
    CURRENCY_OPTIONS = [
        {'code': 'USD', 'name': 'US Dollar', 'decimalPlaces': 2, 'displaySymbol': '$'},
        {'code': 'INR', 'name': 'Indian Rupee', 'decimalPlaces': 2, 'displaySymbol': '₹'},
        {'code': 'KES', 'name': 'Kenyan Shilling', 'decimalPlaces': 2, 'displaySymbol': 'KSh'},
        {'code': 'MXN', 'name': 'Mexican Peso', 'decimalPlaces': 2, 'displaySymbol': '$'},
    ]


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'WARNING'
