#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

"""FastCGI protocol constants.

Based on the FastCGI Specification:
https://fastcgi-archives.github.io/FastCGI_Specification.html
"""

from enum import IntEnum

# Protocol version
FCGI_VERSION_1 = 1

# Header size (8 bytes fixed)
FCGI_HEADER_LEN = 8

# Largest content a single emitted record carries (0xffff minus the header)
FCGI_MAX_CONTENT_LEN = 0xFFFF - FCGI_HEADER_LEN

# Null request ID (for management records)
FCGI_NULL_REQUEST_ID = 0

# Highest usable request ID
FCGI_MAX_REQUEST_ID = 0xFFFF

# Flags (in BEGIN_REQUEST)
FCGI_KEEP_CONN = 1

# Variables understood by FCGI_GET_VALUES
FCGI_MAX_CONNS = 'FCGI_MAX_CONNS'
FCGI_MAX_REQS = 'FCGI_MAX_REQS'
FCGI_MPXS_CONNS = 'FCGI_MPXS_CONNS'


class RecordType(IntEnum):
    BEGIN_REQUEST = 1
    ABORT_REQUEST = 2
    END_REQUEST = 3
    PARAMS = 4
    STDIN = 5
    STDOUT = 6
    STDERR = 7
    DATA = 8
    GET_VALUES = 9
    GET_VALUES_RESULT = 10
    UNKNOWN_TYPE = 11


class Role(IntEnum):
    RESPONDER = 1
    AUTHORIZER = 2
    FILTER = 3


class ProtocolStatus(IntEnum):
    REQUEST_COMPLETE = 0
    CANT_MPX_CONN = 1
    OVERLOADED = 2
    UNKNOWN_ROLE = 3


class RequestState(IntEnum):
    """Lifecycle of a request as seen by its response handle."""

    WRITTEN = 1
    OK = 2
    ERR = 3
    TIMED_OUT = 4


def record_type_name(value):
    """Name of a record type for log messages, tolerating unknown values."""
    try:
        return RecordType(value).name
    except ValueError:
        return str(value)
