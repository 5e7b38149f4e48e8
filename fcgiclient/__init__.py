#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

version_info = (1, 0, 0)
__version__ = ".".join([str(v) for v in version_info])

from fcgiclient.client import Client  # noqa: E402
from fcgiclient.response import Response  # noqa: E402
from fcgiclient.output import ResponseOutput  # noqa: E402
from fcgiclient.errors import (  # noqa: E402
    CommunicationError,
    TimedOutError,
    FormatError,
    ProtocolStatusError,
)

__all__ = [
    'Client',
    'Response',
    'ResponseOutput',
    'CommunicationError',
    'TimedOutError',
    'FormatError',
    'ProtocolStatusError',
]
