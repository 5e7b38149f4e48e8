#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

"""Helpers shared by the client tests.

Records are built by hand here rather than with fcgiclient.record so the
tests do not just check the codec against itself.
"""

import socket

from fcgiclient.constants import (
    FCGI_VERSION_1,
    RecordType,
    ProtocolStatus,
)


def make_fcgi_record(record_type, request_id, content=b'', padding=0,
                     version=FCGI_VERSION_1):
    """Create a FastCGI record.

    Args:
        record_type: Record type (RecordType.STDOUT, etc.)
        request_id: Request ID (0-65535)
        content: Record content as bytes
        padding: Optional padding length

    Returns:
        bytes: Complete FastCGI record
    """
    content_length = len(content)
    header = bytes([
        version,
        record_type,
        (request_id >> 8) & 0xFF,
        request_id & 0xFF,
        (content_length >> 8) & 0xFF,
        content_length & 0xFF,
        padding,
        0,  # reserved
    ])
    return header + content + b'\x00' * padding


def make_end_request(request_id, app_status=0,
                     protocol_status=ProtocolStatus.REQUEST_COMPLETE):
    """Create an END_REQUEST record."""
    content = app_status.to_bytes(4, 'big') + bytes([protocol_status, 0, 0, 0])
    return make_fcgi_record(RecordType.END_REQUEST, request_id, content)


def make_reply(request_id, stdout, stderr=b''):
    """Create everything an application sends back for one request."""
    result = b''
    if stdout:
        result += make_fcgi_record(RecordType.STDOUT, request_id, stdout)
    result += make_fcgi_record(RecordType.STDOUT, request_id, b'')
    if stderr:
        result += make_fcgi_record(RecordType.STDERR, request_id, stderr)
        result += make_fcgi_record(RecordType.STDERR, request_id, b'')
    result += make_end_request(request_id)
    return result


def split_records(data):
    """Split a byte stream into (type, request_id, content) tuples."""
    records = []
    pos = 0
    while pos < len(data):
        record_type = data[pos + 1]
        request_id = int.from_bytes(data[pos + 2:pos + 4], 'big')
        content_length = int.from_bytes(data[pos + 4:pos + 6], 'big')
        padding_length = data[pos + 6]
        pos += 8
        records.append((record_type, request_id, data[pos:pos + content_length]))
        pos += content_length + padding_length
    return records


class FakeApplication:
    """The application end of a socket pair wired into a Client."""

    def __init__(self, client):
        self.client = client
        client_sock, self.sock = socket.socketpair()
        client._sock = client_sock

    def send(self, data):
        self.sock.sendall(data)

    def received(self):
        """Return whatever the client has written so far."""
        chunks = []
        self.sock.setblocking(False)
        try:
            while True:
                try:
                    data = self.sock.recv(65536)
                except BlockingIOError:
                    break
                if not data:
                    break
                chunks.append(data)
        finally:
            self.sock.setblocking(True)
        return b''.join(chunks)

    def close(self):
        # Drain unread client data first: closing an AF_UNIX socket with
        # unread data resets the connection instead of a clean EOF.
        if self.sock.fileno() != -1:
            self.received()
        self.sock.close()
