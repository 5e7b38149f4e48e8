#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

import re

from fcgiclient.util import bytes_to_str

HEADER_TERMINATOR = b"\r\n\r\n"
HEADER_RE = re.compile(r'([\w-]+):\s*(.*)$')
STATUS_CODE_RE = re.compile(r'\s*(\d+)')

DEFAULT_STATUS = "200 OK"
DEFAULT_STATUS_CODE = 200


class ResponseOutput:
    """What a FastCGI application produced for one request.

    ``headers`` maps lowercased header names to their value, or to a list of
    values in emission order when the application repeated the header.
    ``status`` is always present and always a single string.
    """

    def __init__(self, status_code, headers, body, stderr):
        self.status_code = status_code
        self.headers = headers
        self.body = body
        self.stderr = stderr

    @property
    def status(self):
        return self.headers['status']

    def __eq__(self, other):
        if not isinstance(other, ResponseOutput):
            return NotImplemented
        return (self.status_code, self.headers, self.body, self.stderr) == \
            (other.status_code, other.headers, other.body, other.stderr)

    def __repr__(self):
        return "<ResponseOutput status_code=%d headers=%d body=%d bytes>" % (
            self.status_code, len(self.headers), len(self.body))


def split_output(stdout):
    """Split CGI output into its raw header block and body."""
    pos = stdout.find(HEADER_TERMINATOR)
    if pos < 0:
        return b"", stdout
    return stdout[:pos], stdout[pos + len(HEADER_TERMINATOR):]


def parse_status_code(status, default=DEFAULT_STATUS_CODE):
    match = STATUS_CODE_RE.match(status)
    if match is None:
        return default
    return int(match.group(1))


def parse_headers(raw_header):
    """Parse a CGI header block into a dict of lowercased names."""
    headers = {}
    status = DEFAULT_STATUS

    for line in bytes_to_str(raw_header).split("\n"):
        match = HEADER_RE.search(line)
        if match is None:
            continue

        name = match.group(1).lower()
        value = match.group(2).strip()

        if name == "status":
            status = value
            continue

        if name not in headers:
            headers[name] = value
        elif isinstance(headers[name], list):
            headers[name].append(value)
        else:
            headers[name] = [headers[name], value]

    headers["status"] = status
    return headers


def format_output(stdout, stderr=b""):
    """Turn raw STDOUT/STDERR streams into a ResponseOutput."""
    raw_header, body = split_output(stdout)
    headers = parse_headers(raw_header)
    status_code = parse_status_code(headers["status"])
    return ResponseOutput(status_code, headers, body, stderr)
