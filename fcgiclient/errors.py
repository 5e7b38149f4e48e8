#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

"""
FastCGI Client Error Classes

Every failure reaching the caller is a CommunicationError; the subclasses
narrow down why the exchange with the application server failed.
"""

from fcgiclient.constants import ProtocolStatus


class ConfigError(Exception):
    """ Exception raised on config error """


class CommunicationError(Exception):
    """Base exception for failures talking to a FastCGI application."""

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class TimedOutError(CommunicationError):
    """Raised when a bounded wait elapses before the request resolves."""

    def __init__(self, message="Timed out", timeout=None):
        details = {"timeout": timeout} if timeout else {}
        super().__init__(message, details)
        self.timeout = timeout


class FormatError(CommunicationError):
    """Raised when the server sends bytes that do not decode."""

    def __init__(self, message="Malformed FastCGI data", raw_data=None):
        details = {}
        if raw_data is not None:
            # Truncate raw data for safety
            details["raw_data"] = bytes(raw_data[:32]).hex()
        super().__init__(message, details)


class ProtocolStatusError(CommunicationError):
    """Raised when END_REQUEST reports the server refused the request."""

    MESSAGES = {
        ProtocolStatus.CANT_MPX_CONN: "This app can't multiplex [CANT_MPX_CONN]",
        ProtocolStatus.OVERLOADED: "New request rejected; too busy [OVERLOADED]",
        ProtocolStatus.UNKNOWN_ROLE: "Role value not known [UNKNOWN_ROLE]",
    }

    def __init__(self, protocol_status, request_id=None):
        self.protocol_status = ProtocolStatus(protocol_status)
        self.request_id = request_id
        details = {}
        if request_id is not None:
            details["request_id"] = request_id
        super().__init__(self.MESSAGES[self.protocol_status], details)
