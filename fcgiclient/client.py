#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

"""
FastCGI Client

Issues RESPONDER requests to a FastCGI application (PHP-FPM and the like)
over a TCP or unix socket and collects what the application writes back.

Several requests may be outstanding on one connection. Their records all go
out before any reply is read, replies are then demultiplexed by request id
whenever a caller waits on one of them:

    with Client('127.0.0.1', 9000) as client:
        client.set_keep_alive(True)
        first = client.async_request({'SCRIPT_FILENAME': '/srv/a.php'})
        second = client.async_request({'SCRIPT_FILENAME': '/srv/b.php'})
        print(second.get().body)
        print(first.get().body)
"""

import io
import logging
import random
import socket
import time

from fcgiclient import util
from fcgiclient.config import Config
from fcgiclient.constants import (
    FCGI_NULL_REQUEST_ID,
    FCGI_MAX_REQUEST_ID,
    RecordType,
    Role,
    record_type_name,
)
from fcgiclient.errors import (
    CommunicationError,
    TimedOutError,
    ProtocolStatusError,
)
from fcgiclient.nvpair import encode_pairs, decode_pairs
from fcgiclient.record import (
    encode_record,
    encode_begin_request,
    decode_end_request,
    read_record,
)
from fcgiclient.response import Response

log = logging.getLogger(__name__)

# Seconds to idle between reads once the application closed the connection
EOF_RETRY_INTERVAL = 0.05

# Bytes of an END_REQUEST body up to and including the protocol status
END_REQUEST_MIN_LEN = 5


class Client:
    """
    Connection to one FastCGI application.

    Can be used as a context manager:

        with Client('/run/php/php-fpm.sock') as client:
            result = client.request({'SCRIPT_FILENAME': '/srv/index.php'})
    """

    def __init__(self, host, port=None, cfg=None):
        """
        Initialize the client. No connection is made until it is needed.

        Args:
            host: Host of the application, or the path of its unix socket
            port: TCP port, or None for a unix socket
            cfg: Config holding keep-alive and timeout settings
        """
        self.host = host
        self.port = port
        self.cfg = cfg if cfg is not None else Config()
        self._sock = None
        self._requests = {}
        # Starting at a random id makes it unlikely that a late reply to a
        # previous user of a persistent socket matches a new request.
        self._request_counter = random.randrange(FCGI_MAX_REQUEST_ID)

    @classmethod
    def from_address(cls, address, cfg=None):
        """Build a client from ``host:port`` or ``unix:/path`` notation."""
        host, port = util.parse_address(address)
        return cls(host, port, cfg)

    def __repr__(self):
        return "<Client %s outstanding=%d>" % (self.target, len(self._requests))

    @property
    def target(self):
        if self.port:
            return "%s:%d" % (self.host, self.port)
        return "unix:%s" % self.host

    @property
    def keep_alive(self):
        return self.cfg.keep_alive

    @property
    def timeout(self):
        """Read/write timeout in milliseconds, 0 when unbounded."""
        return self.cfg.timeout

    @property
    def outstanding(self):
        """Ids of requests whose END_REQUEST has not been seen yet."""
        return frozenset(self._requests)

    def set_keep_alive(self, keep_alive):
        """
        Define whether the application should keep the connection open at
        the end of a request. Turning it off closes an open connection.
        """
        self.cfg.set("keep_alive", keep_alive)
        if not self.cfg.keep_alive and self._sock is not None:
            self.close()

    def get_keep_alive(self):
        return self.cfg.keep_alive

    def set_read_write_timeout(self, timeout_ms):
        """Set the read/write timeout in milliseconds (0 disables it)."""
        self.cfg.set("timeout", timeout_ms)
        if self._sock is not None:
            self._sock.settimeout(self.cfg.timeout_seconds)

    def get_read_write_timeout(self):
        return self.cfg.timeout

    def connect(self):
        """
        Connect to the application if not already connected.

        Raises:
            CommunicationError: If the socket cannot be created or connected
        """
        if self._sock is not None:
            return

        timeout = self.cfg.timeout_seconds
        try:
            if self.port:
                self._sock = socket.create_connection(
                    (self.host, self.port), timeout=timeout)
            else:
                self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                self._sock.settimeout(timeout)
                self._sock.connect(self.host)
        except OSError as e:
            if self._sock is not None:
                self._sock.close()
            self._sock = None
            raise CommunicationError(
                f"Failed to connect to {self.target}: {e}",
                {"address": self.target, "errno": e.errno}
            ) from e

        # the configured timeout also bounds every later read and write
        self._sock.settimeout(timeout)
        log.debug("Connected to %s", self.target)

    def close(self):
        """
        Close the connection.

        Requests still outstanding are forgotten; their handles will never
        complete.
        """
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
            log.debug("Closed connection to %s", self.target)
        if self._requests:
            log.debug("Dropping %d outstanding request(s)", len(self._requests))
        self._requests = {}

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *args):
        self.close()

    def __del__(self):
        if getattr(self, "_sock", None) is not None:
            self.close()

    def _next_request_id(self):
        if len(self._requests) >= FCGI_MAX_REQUEST_ID:
            raise CommunicationError("No free request id on this connection")

        while True:
            self._request_counter += 1
            if self._request_counter > FCGI_MAX_REQUEST_ID:
                self._request_counter = 1
            if self._request_counter not in self._requests:
                return self._request_counter

    def _send(self, data):
        try:
            self._sock.sendall(data)
        except OSError as e:
            # The caller may wish to close() and retry on a new connection
            raise CommunicationError(
                f"Failed writing socket: {e}",
                {"address": self.target, "errno": e.errno}
            ) from e

    def async_request(self, params, stdin=b""):
        """
        Send a request and return without waiting for the reply.

        Args:
            params: Mapping of environment parameter names to values
            stdin: Request body

        Returns:
            Response handle for the request

        Raises:
            CommunicationError: If connecting or writing fails
        """
        self.connect()
        request_id = self._next_request_id()

        buf = io.BytesIO()
        buf.write(encode_record(
            RecordType.BEGIN_REQUEST,
            encode_begin_request(Role.RESPONDER, self.keep_alive),
            request_id))

        params_data = encode_pairs(params) if params else b""
        if params_data:
            buf.write(encode_record(RecordType.PARAMS, params_data, request_id))
        buf.write(encode_record(RecordType.PARAMS, b"", request_id))

        stdin = util.to_bytestring(stdin) if stdin else b""
        if stdin:
            buf.write(encode_record(RecordType.STDIN, stdin, request_id))
        buf.write(encode_record(RecordType.STDIN, b"", request_id))

        self._send(buf.getvalue())

        response = Response(self, request_id)
        self._requests[request_id] = response
        log.debug("Request %d written to %s (%d params, %d bytes stdin)",
                  request_id, self.target, len(params or ()), len(stdin))
        return response

    def request(self, params, stdin=b"", timeout_ms=0):
        """Send a request and block until its ResponseOutput is available."""
        return self.async_request(params, stdin).get(timeout_ms)

    def get_values(self, names):
        """
        Ask the application for the values of management variables such as
        FCGI_MAX_CONNS, FCGI_MAX_REQS or FCGI_MPXS_CONNS.

        Returns:
            dict of the variables the application reported

        Raises:
            CommunicationError: If the reply is not GET_VALUES_RESULT
        """
        self.connect()

        content = encode_pairs((name, b"") for name in names)
        self._send(encode_record(RecordType.GET_VALUES, content,
                                 FCGI_NULL_REQUEST_ID))

        record = read_record(self._sock, self.cfg.timeout)
        if record is None:
            raise CommunicationError(
                "Connection closed, expecting GET_VALUES_RESULT",
                {"address": self.target})
        if record.type != RecordType.GET_VALUES_RESULT:
            raise CommunicationError(
                "Unexpected response type, expecting GET_VALUES_RESULT",
                {"type": record_type_name(record.type)})

        pairs = decode_pairs(record.content, self.cfg.max_params)
        return dict((util.bytes_to_str(name), util.bytes_to_str(value))
                    for name, value in pairs)

    def wait_for_response(self, request_id, timeout_ms=0):
        """
        Block until the END_REQUEST record of ``request_id`` arrives.

        Records belonging to other outstanding requests are applied to their
        handles along the way, so those complete without further I/O.

        Args:
            request_id: Id of an outstanding request
            timeout_ms: Overall bound on the wait, 0 to wait without limit

        Returns:
            True

        Raises:
            CommunicationError: If the id is not outstanding or the
                connection fails
            ProtocolStatusError: If the application rejected a request
            TimedOutError: If ``timeout_ms`` elapses first; the request stays
                outstanding and may be waited on again
        """
        if request_id not in self._requests:
            raise CommunicationError("Invalid request id given",
                                     {"request_id": request_id})

        until = util.deadline(timeout_ms)

        while True:
            if until is None:
                record = read_record(self._sock)
            else:
                wait_ms = util.remaining_ms(until)
                if not wait_ms:
                    raise TimedOutError("Timed out", timeout=timeout_ms)
                try:
                    record = read_record(self._sock, wait_ms)
                except TimedOutError as e:
                    raise TimedOutError("Timed out", timeout=timeout_ms) from e

            if record is None:
                if until is None:
                    raise CommunicationError(
                        "Connection closed by the application",
                        {"address": self.target, "request_id": request_id})
                # peer closed, wait out the deadline without spinning
                time.sleep(min(util.remaining_ms(until) / 1000.0,
                               EOF_RETRY_INTERVAL))
                continue

            self._dispatch(record)

            if (record.type == RecordType.END_REQUEST
                    and record.request_id == request_id):
                return True

    def _dispatch(self, record):
        response = self._requests.get(record.request_id)

        if response is None:
            # Not necessarily an error: a previous user of a persistent
            # socket may have left a reply behind.
            log.warning("Bad request id %d in %s record",
                        record.request_id, record_type_name(record.type))
        elif record.type == RecordType.STDOUT:
            response._feed_stdout(record.content)
        elif record.type == RecordType.STDERR:
            if record.content:
                response._feed_stderr(record.content)
        elif record.type == RecordType.END_REQUEST:
            response._complete()
            del self._requests[record.request_id]
            log.debug("Request %d complete", record.request_id)
        else:
            log.debug("Ignoring %s record for request %d",
                      record_type_name(record.type), record.request_id)

        # Short END_REQUEST bodies carry no protocol status to check.
        if (record.type == RecordType.END_REQUEST
                and len(record.content) >= END_REQUEST_MIN_LEN):
            _, protocol_status = decode_end_request(record.content)
            if protocol_status in ProtocolStatusError.MESSAGES:
                raise ProtocolStatusError(protocol_status, record.request_id)
