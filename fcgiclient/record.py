#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

"""FastCGI record framing.

The FastCGI protocol uses 8-byte record headers:
- Byte 0: version (1)
- Byte 1: type (record type)
- Bytes 2-3: requestId (16-bit big-endian)
- Bytes 4-5: contentLength (16-bit big-endian)
- Byte 6: paddingLength
- Byte 7: reserved

followed by contentLength bytes of content and paddingLength bytes of
padding. Records emitted here never carry padding, padding on received
records is read and thrown away.
"""

import io
import select
import socket
from collections import namedtuple

from fcgiclient import util
from fcgiclient.constants import (
    FCGI_VERSION_1,
    FCGI_HEADER_LEN,
    FCGI_MAX_CONTENT_LEN,
    FCGI_KEEP_CONN,
    RecordType,
    Role,
    ProtocolStatus,
)
from fcgiclient.errors import (
    CommunicationError,
    TimedOutError,
    FormatError,
)

RecordHeader = namedtuple('RecordHeader', [
    'version', 'type', 'request_id', 'content_length', 'padding_length',
    'reserved'])

Record = namedtuple('Record', [
    'version', 'type', 'request_id', 'content', 'padding_length'])


def encode_record(record_type, content, request_id):
    """Build the record(s) carrying ``content``.

    Content longer than FCGI_MAX_CONTENT_LEN is split into consecutive
    records of the same type and request id. Empty content still produces
    one header-only record, which is how PARAMS and STDIN streams end.
    """
    buf = io.BytesIO()
    offset = 0
    total = len(content)
    while True:
        chunk = content[offset:offset + FCGI_MAX_CONTENT_LEN]
        chunk_size = len(chunk)
        buf.write(bytes([
            FCGI_VERSION_1,
            record_type,
            (request_id >> 8) & 0xFF,
            request_id & 0xFF,
            (chunk_size >> 8) & 0xFF,
            chunk_size & 0xFF,
            0,  # padding
            0,  # reserved
        ]))
        buf.write(chunk)
        offset += chunk_size
        if offset >= total:
            break
    return buf.getvalue()


def decode_header(data):
    """Parse an 8-byte FastCGI record header."""
    if len(data) < FCGI_HEADER_LEN:
        raise FormatError("incomplete header", data)

    return RecordHeader(
        version=data[0],
        type=data[1],
        request_id=int.from_bytes(data[2:4], 'big'),
        content_length=int.from_bytes(data[4:6], 'big'),
        padding_length=data[6],
        reserved=data[7],
    )


def encode_begin_request(role=Role.RESPONDER, keep_alive=False):
    """BEGIN_REQUEST body: role (2 BE), flags (1), reserved (5)."""
    flags = FCGI_KEEP_CONN if keep_alive else 0
    return int(role).to_bytes(2, 'big') + bytes([flags]) + b'\x00' * 5


def decode_end_request(content):
    """Parse an END_REQUEST body.

    END_REQUEST body (8 bytes):
    - appStatus (4 bytes BE): application exit status
    - protocolStatus (1 byte): FCGI_REQUEST_COMPLETE, etc.
    - reserved (3 bytes): 0

    Returns:
        tuple: (app_status, protocol_status)
    """
    if len(content) < 5:
        raise FormatError("END_REQUEST content too short", content)

    app_status = int.from_bytes(content[0:4], 'big')
    protocol_status = content[4]
    try:
        protocol_status = ProtocolStatus(protocol_status)
    except ValueError:
        pass
    return app_status, protocol_status


def read_record(sock, timeout_ms=0):
    """Read one record from ``sock``.

    With a non-zero ``timeout_ms`` the whole record, header, content and
    padding, must arrive within it, otherwise only the socket's own timeout
    applies.

    Returns:
        Record, or None when the peer closed the connection before sending
        any part of a header.
    """
    until = util.deadline(timeout_ms)

    header = _recv_exact(sock, FCGI_HEADER_LEN, allow_eof=True, until=until)
    if not header:
        return None

    header = decode_header(header)
    if header.version != FCGI_VERSION_1:
        raise FormatError("unsupported version: %d" % header.version)

    content = b""
    if header.content_length:
        content = _recv_exact(sock, header.content_length, until=until)

    # Discard padding
    if header.padding_length:
        _recv_exact(sock, header.padding_length, until=until)

    record_type = header.type
    try:
        record_type = RecordType(record_type)
    except ValueError:
        pass

    return Record(header.version, record_type, header.request_id, content,
                  header.padding_length)


def _wait_readable(sock, until):
    wait_ms = util.remaining_ms(until)
    if wait_ms:
        try:
            readable, _, _ = select.select([sock], [], [], wait_ms / 1000.0)
        except (OSError, ValueError) as e:
            raise CommunicationError("Failed waiting on socket: %s" % e) from e
        if readable:
            return
    raise TimedOutError("Failed reading socket")


def _recv_exact(sock, size, allow_eof=False, until=None):
    """Read exactly ``size`` bytes, looping over partial reads.

    When ``until`` is given every read waits on select for at most the time
    left before that monotonic instant.
    """
    buf = io.BytesIO()
    remaining = size

    while remaining > 0:
        if until is not None:
            _wait_readable(sock, until)
        try:
            data = sock.recv(min(remaining, 65536))
        except socket.timeout as e:
            raise TimedOutError("Failed reading socket") from e
        except OSError as e:
            raise CommunicationError(
                "Failed reading socket: %s" % e, {"errno": e.errno}) from e
        if not data:
            if allow_eof and buf.tell() == 0:
                return b""
            raise CommunicationError(
                "Connection closed after %d of %d bytes" % (buf.tell(), size))
        buf.write(data)
        remaining -= len(data)

    return buf.getvalue()
