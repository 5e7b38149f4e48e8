#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

import pytest

from fcgiclient.errors import FormatError
from fcgiclient.nvpair import (
    encode_length,
    encode_pair,
    encode_pairs,
    decode_pairs,
)


class TestEncode:

    def test_encode_short(self):
        assert encode_pair('KEY', 'val') == b'\x03\x03KEYval'

    def test_encode_long_value(self):
        encoded = encode_pair('K', 'x' * 200)
        assert encoded[0] == 1  # name length
        assert encoded[1] & 0x80  # high bit set for 4-byte length
        assert encoded[1:5] == (200 | 0x80000000).to_bytes(4, 'big')
        assert encoded[5:6] == b'K'

    @pytest.mark.parametrize("length, encoded", [
        (0, b'\x00'),
        (127, b'\x7f'),
        (128, b'\x80\x00\x00\x80'),
        (16 * 1024 * 1024 + 1, b'\x81\x00\x00\x01'),
    ])
    def test_encode_length(self, length, encoded):
        assert encode_length(length) == encoded

    def test_encode_length_too_large(self):
        with pytest.raises(ValueError):
            encode_length(0x80000000)

    def test_str_is_utf8(self):
        assert encode_pair('K', 'é') == b'\x01\x02K\xc3\xa9'

    def test_bytes_pass_through(self):
        assert encode_pair(b'K', b'\xff') == b'\x01\x01K\xff'

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            encode_pair('PORT', 80)

    def test_encode_pairs_mapping(self):
        data = encode_pairs({'A': '1', 'BB': '22'})
        assert data == b'\x01\x01A1\x02\x02BB22'

    def test_encode_pairs_iterable(self):
        data = encode_pairs([('A', ''), ('B', '')])
        assert data == b'\x01\x00A\x01\x00B'


class TestDecode:

    @pytest.mark.parametrize("length", [0, 1, 127, 128, 100000])
    def test_round_trip(self, length):
        name = b'n' * length
        value = bytes(i % 256 for i in range(length))

        assert decode_pairs(encode_pair(name, value)) == [(name, value)]

    def test_round_trip_over_16m(self):
        value = b'v' * (16 * 1024 * 1024 + 3)
        assert decode_pairs(encode_pair(b'BIG', value)) == [(b'BIG', value)]

    def test_order_preserved(self):
        data = encode_pair('Z', '1') + encode_pair('A', '2') + encode_pair('Z', '3')
        assert decode_pairs(data) == [(b'Z', b'1'), (b'A', b'2'), (b'Z', b'3')]

    def test_empty_buffer(self):
        assert decode_pairs(b'') == []

    @pytest.mark.parametrize("data", [
        b'\x03',                      # value length missing
        b'\x80\x00',                  # 4-byte name length cut short
        b'\x01\x80\x00\x00',          # 4-byte value length cut short
        b'\x03\x03KE',                # name cut short
        b'\x03\x03KEYva',             # value cut short
        b'\x01\x01AB\x05',            # trailing partial pair
        b'\x7f\x00',                  # length far past the end
    ])
    def test_truncated(self, data):
        with pytest.raises(FormatError):
            decode_pairs(data)

    def test_max_pairs(self):
        data = encode_pairs([('A', '1'), ('B', '2'), ('C', '3')])

        assert len(decode_pairs(data, max_pairs=3)) == 3
        with pytest.raises(FormatError) as exc_info:
            decode_pairs(data, max_pairs=2)
        assert 'too many' in str(exc_info.value)
