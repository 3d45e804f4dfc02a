"""
Exception classes for savings group cycle and fund operations.

Every error carries a stable global `code` that API clients can switch on,
a human readable message and an HTTP status used by the JSON error handlers.
"""

from dataclasses import dataclass
from typing import Any


class SavingsGroupError(Exception):
    """Base exception for all savings group errors"""

    http_status = 400

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        self.message = message
        self.code = code or 'error'
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {
            'code': self.code,
            'message': self.message,
            'status': self.http_status,
        }
        if self.details:
            body['details'] = self.details
        return body


@dataclass
class ApiParameterError:
    """One failed rule for one request parameter."""

    parameter: str
    code: str
    message: str
    value: Any = None

    def to_dict(self) -> dict:
        return {
            'parameterName': self.parameter,
            'userMessageGlobalCode': self.code,
            'defaultUserMessage': self.message,
            'value': None if self.value is None else str(self.value),
        }


class ValidationError(SavingsGroupError):
    """Raised once with every payload violation collected for a command"""

    def __init__(self, errors: list[ApiParameterError], message: str | None = None):
        self.errors = list(errors)
        msg = message or 'Validation errors exist.'
        super().__init__(msg, 'validation.msg.validation.errors.exist')

    @property
    def parameters(self) -> list[str]:
        return [error.parameter for error in self.errors]

    def to_dict(self) -> dict:
        body = super().to_dict()
        body['errors'] = [error.to_dict() for error in self.errors]
        return body


class UnsupportedParameterError(ValidationError):
    """Raised when a payload names parameters the command does not accept"""

    def __init__(self, parameters: list[str]):
        errors = [
            ApiParameterError(
                parameter=name,
                code='error.msg.parameter.unsupported',
                message=f'The parameter {name} is not supported.',
            )
            for name in parameters
        ]
        super().__init__(errors, 'Unsupported parameter(s) in request.')
        self.code = 'error.msg.parameter.unsupported'


class InvalidJsonError(ValidationError):
    """Raised when the request body is missing or not a JSON object"""

    def __init__(self):
        super().__init__([], 'Request body must be a JSON object.')
        self.code = 'error.msg.invalid.request.body'


class NotFoundError(SavingsGroupError):
    """Raised when a referenced group, cycle, fund or strategy does not exist"""

    http_status = 404

    def __init__(self, code: str, message: str, resource_id=None):
        details = {'id': resource_id} if resource_id is not None else None
        super().__init__(message, code, details)


class InvalidRequestError(SavingsGroupError):
    """Raised when a command does not apply to this group or fund, or dates are out of order"""

    http_status = 403

    def __init__(self, code: str, message: str, **details):
        super().__init__(message, code, details)


class InvalidStateTransitionError(SavingsGroupError):
    """Raised when a command is not allowed in the aggregate's current status"""

    http_status = 403

    def __init__(self, code: str, message: str, status=None):
        details = {'status': status} if status is not None else None
        super().__init__(message, code, details)


class UnrecognizedCommandError(SavingsGroupError):
    """Raised for an unknown `command` query parameter"""

    def __init__(self, command: str, supported: tuple):
        super().__init__(
            f"Unrecognized command '{command}'. Supported: {', '.join(supported)}",
            'error.msg.command.unrecognized',
            {'command': command, 'supported': list(supported)},
        )
