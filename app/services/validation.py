"""
PAYLOAD VALIDATION
==================

Shared building blocks for the cycle and fund validators.

A DataValidator reads parameters from a JSON payload, coerces them to
Python types and checks rules against them. Every failure is collected;
raise_if_errors() raises a single ValidationError with all of them, so a
caller sees every problem with its request at once.

    v = DataValidator('sgcycle', payload)
    v.parameter('currencyCode').string().not_blank().not_exceeding_length(3)
    v.raise_if_errors()
    values = v.cleaned
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation

from flask import current_app, has_app_context

from app.exceptions import (
    ApiParameterError, InvalidJsonError, UnsupportedParameterError, ValidationError
)

FALLBACK_DATE_FORMAT = 'yyyy-MM-dd'

_JAVA_DATE_TOKENS = {
    'yyyy': '%Y',
    'yy': '%y',
    'MMMM': '%B',
    'MMM': '%b',
    'MM': '%m',
    'M': '%m',
    'dd': '%d',
    'd': '%d',
}
_JAVA_DATE_PATTERN = re.compile('|'.join(sorted(_JAVA_DATE_TOKENS, key=len, reverse=True)))
_INTEGER_PATTERN = re.compile(r'-?[0-9]+')

_MISSING = object()


def to_strptime_format(date_format):
    """Translate a Java style date pattern (dd MMMM yyyy) into strptime directives."""
    return _JAVA_DATE_PATTERN.sub(lambda match: _JAVA_DATE_TOKENS[match.group(0)], date_format)


def require_json_object(payload):
    if not isinstance(payload, dict):
        raise InvalidJsonError()
    return payload


def check_for_unsupported_parameters(payload, supported, prefix=''):
    unsupported = [f'{prefix}{name}' for name in payload if name not in supported]
    if unsupported:
        raise UnsupportedParameterError(unsupported)


def _default_date_format():
    if has_app_context():
        return current_app.config.get('DEFAULT_DATE_FORMAT', FALLBACK_DATE_FORMAT)
    return FALLBACK_DATE_FORMAT


class DataValidator:
    """Collects parameter errors for one command payload."""

    def __init__(self, resource, payload, date_format=None, errors=None, prefix=''):
        self.resource = resource
        self.payload = payload
        self.prefix = prefix
        self.errors = errors if errors is not None else []
        self.cleaned = {}
        self.date_format = date_format or self._payload_date_format()

    def _payload_date_format(self):
        date_format = self.payload.get('dateFormat')
        if isinstance(date_format, str) and date_format.strip():
            return date_format
        return _default_date_format()

    def has(self, name):
        return name in self.payload

    def has_any(self, *names):
        return any(name in self.payload for name in names)

    def parameter(self, name, default=_MISSING):
        """Start checking `name`. When absent, rules run against `default` if one is given."""
        if name in self.payload:
            return ParameterCheck(self, name, self.payload[name], present=True)
        value = None if default is _MISSING else default
        return ParameterCheck(self, name, value, present=False)

    def nested(self, resource, element, prefix):
        """Validator for one element of an array parameter, sharing this validator's errors."""
        return DataValidator(resource, element, self.date_format, errors=self.errors, prefix=prefix)

    def add_error(self, name, rule, message, value=None):
        self.errors.append(ApiParameterError(
            parameter=f'{self.prefix}{name}',
            code=f'validation.msg.{self.resource}.{name}.{rule}',
            message=message,
            value=value,
        ))

    def raise_if_errors(self):
        if self.errors:
            raise ValidationError(self.errors)


class ParameterCheck:
    """
    Fluent rule chain for a single parameter.

    After the first failure the remaining rules of the chain are skipped.
    Rules other than the null checks ignore a None value.
    """

    def __init__(self, validator, name, value, present):
        self.validator = validator
        self.name = name
        self.value = value
        self.present = present
        self.failed = False

    @property
    def label(self):
        return f'{self.validator.prefix}{self.name}'

    @property
    def valid_value(self):
        return None if self.failed else self.value

    def _fail(self, rule, message, reset=False):
        self.failed = True
        self.validator.add_error(self.name, rule, message, self.value)
        if reset:
            self.value = None
        return self

    def _reject(self, rule, message):
        return self._fail(rule, message, reset=True)

    def _skip(self):
        return self.failed or self.value is None

    def _store(self):
        if self.present and not self.failed:
            self.validator.cleaned[self.name] = self.value
        return self

    # ===== TYPE COERCION =====

    def string(self):
        if self.present and self.value is not None:
            if not isinstance(self.value, str):
                return self._reject('invalid.string', f'The parameter {self.label} must be a string.')
            self.value = self.value.strip()
        return self._store()

    def integer(self):
        if self.present and self.value is not None:
            value = self.value
            if isinstance(value, bool):
                return self._reject('invalid.integer', f'The parameter {self.label} must be a whole number.')
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            elif isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value.strip()):
                value = int(value.strip())
            if not isinstance(value, int):
                return self._reject('invalid.integer', f'The parameter {self.label} must be a whole number.')
            self.value = value
        return self._store()

    def decimal(self):
        if self.present and self.value is not None:
            if isinstance(self.value, bool):
                return self._reject('invalid.decimal', f'The parameter {self.label} must be a number.')
            try:
                value = Decimal(str(self.value).strip().replace(',', ''))
            except InvalidOperation:
                return self._reject('invalid.decimal', f'The parameter {self.label} must be a number.')
            if not value.is_finite():
                return self._reject('invalid.decimal', f'The parameter {self.label} must be a number.')
            self.value = value
        return self._store()

    def boolean(self):
        if self.present and self.value is not None and not isinstance(self.value, bool):
            return self._reject('must.be.true.or.false', f'The parameter {self.label} must be set as true or false.')
        return self._store()

    def date(self):
        if self.present and self.value is not None:
            date_format = self.validator.date_format
            if not isinstance(self.value, str):
                return self._reject('invalid.date.format', f'The parameter {self.label} must be a date string.')
            try:
                self.value = datetime.strptime(self.value.strip(), to_strptime_format(date_format)).date()
            except ValueError:
                return self._reject('invalid.date.format',
                                  f'The parameter {self.label} does not match the date format {date_format}.')
        return self._store()

    def array(self):
        if self.present and self.value is not None and not isinstance(self.value, list):
            return self._reject('invalid.array', f'The parameter {self.label} must be an array.')
        return self

    # ===== RULES =====

    def not_null(self):
        if not self.failed and self.value is None:
            self._fail('cannot.be.blank', f'The parameter {self.label} is mandatory.')
        return self

    def not_blank(self):
        if not self.failed and (self.value is None or self.value == ''):
            self._fail('cannot.be.blank', f'The parameter {self.label} is mandatory.')
        return self

    def true_or_false_required(self):
        if not self.failed and self.value is None:
            self._fail('must.be.true.or.false', f'The parameter {self.label} must be set as true or false.')
        return self

    def not_exceeding_length(self, max_length):
        if not self._skip() and len(self.value) > max_length:
            self._fail('exceeds.max.length',
                       f'The parameter {self.label} exceeds max length of {max_length}.')
        return self

    def in_min_max_range(self, minimum, maximum):
        if not self._skip() and not minimum <= self.value <= maximum:
            self._fail('is.not.within.expected.range',
                       f'The parameter {self.label} must be between {minimum} and {maximum}.')
        return self

    def positive_amount(self):
        if not self._skip() and self.value <= 0:
            self._fail('not.greater.than.zero', f'The parameter {self.label} must be greater than 0.')
        return self

    integer_greater_than_zero = positive_amount

    def zero_or_positive(self):
        if not self._skip() and self.value < 0:
            self._fail('not.zero.or.greater', f'The parameter {self.label} must be zero or greater.')
        return self

    def not_less_than_min(self, minimum):
        if not self._skip() and minimum is not None and self.value < minimum:
            self._fail('is.less.than.min',
                       f'The parameter {self.label} must be greater than or equal to {minimum}.')
        return self

    def not_greater_than_max(self, maximum):
        if not self._skip() and maximum is not None and self.value > maximum:
            self._fail('is.greater.than.max',
                       f'The parameter {self.label} must be less than or equal to {maximum}.')
        return self

    def is_one_of(self, allowed):
        allowed = list(allowed)
        if not self._skip() and self.value not in allowed:
            self._fail('is.not.one.of.expected.enumerations',
                       f'The parameter {self.label} must be one of {allowed}.')
        return self

    def array_not_empty(self):
        if not self._skip() and len(self.value) == 0:
            self._fail('cannot.be.empty', f'The parameter {self.label} cannot be empty.')
        return self

    def must_be_absent(self, reason):
        if not self.failed and self.present and self.value is not None:
            self._fail(f'cannot.be.provided.when.{reason}',
                       f'The parameter {self.label} cannot be provided when {reason.replace(".", " ")}.')
        return self
