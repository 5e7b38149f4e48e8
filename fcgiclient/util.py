#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

import time


def parse_address(netloc, default_port=9000):
    """Split an address string into ``(host, port)``.

    ``unix:/path/to/socket`` yields ``(path, None)``, which selects a
    unix-domain socket.
    """
    if netloc.startswith("unix:"):
        return netloc.split("unix:", 1)[1], None

    # get host
    if '[' in netloc and ']' in netloc:
        host = netloc.split(']')[0][1:].lower()
    elif ':' in netloc:
        host = netloc.split(':')[0].lower()
    elif netloc == "":
        host = "127.0.0.1"
    else:
        host = netloc.lower()

    #get port
    netloc = netloc.split(']')[-1]
    if ":" in netloc:
        port = netloc.split(':', 1)[1]
        if not port.isdigit():
            raise RuntimeError("%r is not a valid port number." % port)
        port = int(port)
    else:
        port = default_port
    return (host, port)


def to_bytestring(value, encoding="utf8"):
    """Converts a string argument to a byte string"""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise TypeError('%r is not a string' % value)

    return value.encode(encoding)


def bytes_to_str(b):
    if isinstance(b, str):
        return b
    return str(b, 'latin1')


def ms_to_seconds(timeout_ms):
    """Socket-style timeout for a millisecond value; 0 means block."""
    if not timeout_ms:
        return None
    return timeout_ms / 1000.0


def deadline(timeout_ms):
    """Monotonic instant at which a wait of ``timeout_ms`` expires."""
    if not timeout_ms:
        return None
    return time.monotonic() + timeout_ms / 1000.0


def remaining_ms(until):
    """Milliseconds left before ``until``; never negative."""
    return max(0.0, (until - time.monotonic()) * 1000.0)
