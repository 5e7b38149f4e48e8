#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

"""FastCGI name-value pair encoding.

Name-value pair format:
- nameLength (1 or 4 bytes)
- valueLength (1 or 4 bytes)
- name (nameLength bytes)
- value (valueLength bytes)

Length encoding:
- If high bit is 0: 1-byte length (0-127)
- If high bit is 1: 4-byte big-endian with high bit cleared
"""

import io

from fcgiclient.errors import FormatError
from fcgiclient.util import to_bytestring

MAX_NVPAIR_LEN = 0x7FFFFFFF


def encode_length(length):
    if length < 0x80:
        return bytes([length])
    if length > MAX_NVPAIR_LEN:
        raise ValueError("name-value length too large: %d" % length)
    return (length | 0x80000000).to_bytes(4, 'big')


def encode_pair(name, value):
    """Encode one name-value pair; str arguments are UTF-8 encoded."""
    name = to_bytestring(name)
    value = to_bytestring(value)
    return encode_length(len(name)) + encode_length(len(value)) + name + value


def encode_pairs(pairs):
    """Encode a mapping (or iterable of pairs) into one PARAMS payload."""
    if hasattr(pairs, 'items'):
        pairs = pairs.items()
    buf = io.BytesIO()
    for name, value in pairs:
        buf.write(encode_pair(name, value))
    return buf.getvalue()


def decode_length(data, pos):
    """Decode a variable-length integer at ``pos``.

    Returns:
        tuple: (length_value, new_position)
    """
    if pos >= len(data):
        raise FormatError("truncated length field")

    byte0 = data[pos]
    if byte0 >> 7 == 0:
        return byte0, pos + 1

    if pos + 4 > len(data):
        raise FormatError("truncated 4-byte length field", data[pos:])
    length = int.from_bytes(data[pos:pos + 4], 'big') & MAX_NVPAIR_LEN
    return length, pos + 4


def decode_pairs(data, max_pairs=None):
    """Decode a buffer of name-value pairs.

    Every field is bounds-checked against the buffer, a truncated or
    malformed encoding raises FormatError.

    Returns:
        list: ``(name, value)`` byte string tuples in wire order
    """
    data = bytes(data)
    pairs = []
    pos = 0

    while pos < len(data):
        if max_pairs is not None and len(pairs) >= max_pairs:
            raise FormatError("too many name-value pairs (max %d)" % max_pairs)

        name_length, pos = decode_length(data, pos)
        value_length, pos = decode_length(data, pos)

        if pos + name_length > len(data):
            raise FormatError("truncated name", data[pos:])
        name = data[pos:pos + name_length]
        pos += name_length

        if pos + value_length > len(data):
            raise FormatError("truncated value", data[pos:])
        value = data[pos:pos + value_length]
        pos += value_length

        pairs.append((name, value))

    return pairs
