#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

import time

import pytest

from fcgiclient import util


@pytest.mark.parametrize('test_input, expected', [
    ('unix://var/run/test.sock', ('//var/run/test.sock', None)),
    ('unix:/var/run/php-fpm.sock', ('/var/run/php-fpm.sock', None)),
    ('', ('127.0.0.1', 9000)),
    ('[::1]:9001', ('::1', 9001)),
    ('localhost:9002', ('localhost', 9002)),
    ('localhost', ('localhost', 9000)),
    ('PHP-FPM:9003', ('php-fpm', 9003)),
])
def test_parse_address(test_input, expected):
    assert util.parse_address(test_input) == expected


def test_parse_address_invalid():
    with pytest.raises(RuntimeError) as exc_info:
        util.parse_address('127.0.0.1:test')
    assert "'test' is not a valid port number." in str(exc_info.value)


def test_to_bytestring():
    assert util.to_bytestring('test_str', 'ascii') == b'test_str'
    assert util.to_bytestring('test_str®') == b'test_str\xc2\xae'
    assert util.to_bytestring(b'byte_test_str') == b'byte_test_str'
    assert util.to_bytestring(bytearray(b'ba')) == b'ba'
    with pytest.raises(TypeError) as exc_info:
        util.to_bytestring(100)
    msg = '100 is not a string'
    assert msg in str(exc_info.value)


def test_bytes_to_str():
    assert util.bytes_to_str(b'\xe9t\xe9') == 'été'
    assert util.bytes_to_str('str') == 'str'


def test_ms_to_seconds():
    assert util.ms_to_seconds(0) is None
    assert util.ms_to_seconds(1500) == 1.5


def test_deadline():
    assert util.deadline(0) is None
    until = util.deadline(10000)
    assert 9000 < util.remaining_ms(until) <= 10000
    assert util.remaining_ms(time.monotonic() - 1) == 0
