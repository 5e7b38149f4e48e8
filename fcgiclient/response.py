#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

import io

from fcgiclient.constants import RequestState
from fcgiclient.errors import CommunicationError, TimedOutError
from fcgiclient.output import format_output


class Response:
    """Handle on one request issued through a Client.

    The client's read loop is the only writer: it feeds STDOUT/STDERR
    content in and marks the request complete. Callers only read, usually
    through ``get()``. The handle stays readable after the client stops
    tracking it.

    ``state`` follows the historic WRITTEN/OK/ERR/TIMED_OUT values, where ERR
    only means stderr output was seen. Use ``completed`` and ``has_stderr``
    to ask the two questions separately.
    """

    def __init__(self, client, request_id):
        self.client = client
        self._request_id = request_id
        self._state = RequestState.WRITTEN
        self._stdout = io.BytesIO()
        self._stderr = io.BytesIO()
        self._completed = False
        self._has_stderr = False
        self._output = None

    def __repr__(self):
        return "<Response id=%d state=%s>" % (self._request_id, self._state.name)

    @property
    def request_id(self):
        return self._request_id

    @property
    def state(self):
        return self._state

    @property
    def stdout(self):
        return self._stdout.getvalue()

    @property
    def stderr(self):
        return self._stderr.getvalue()

    @property
    def completed(self):
        return self._completed

    @property
    def has_stderr(self):
        return self._has_stderr

    def get(self, timeout_ms=0):
        """Block until the request completes and return its ResponseOutput.

        The result is computed once; later calls return it without any I/O.
        A request already completed by another handle's wait on the same
        client is formatted straight away.
        """
        if self._output is None:
            if not self._completed:
                if self.client._requests.get(self._request_id) is not self:
                    # dropped by close(), the id may since have been reused
                    raise CommunicationError(
                        "Request is no longer outstanding",
                        {"request_id": self._request_id})
                try:
                    self.client.wait_for_response(self._request_id, timeout_ms)
                except TimedOutError:
                    if self._state == RequestState.WRITTEN:
                        self._state = RequestState.TIMED_OUT
                    raise
            self._output = format_output(self.stdout, self.stderr)
        return self._output

    # Fed by Client.wait_for_response only.

    def _feed_stdout(self, data):
        self._stdout.write(data)

    def _feed_stderr(self, data):
        self._stderr.write(data)
        self._has_stderr = True
        self._state = RequestState.ERR

    def _complete(self):
        self._completed = True
        self._state = RequestState.OK
