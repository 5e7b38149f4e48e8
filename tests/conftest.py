#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

"""Pytest configuration for fcgiclient tests."""

import os
import sys

import pytest

# Make the package importable from a source checkout without installing it
root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if root_dir not in sys.path:
    sys.path.insert(0, root_dir)

from fcgiclient import Client  # noqa: E402
from support import FakeApplication  # noqa: E402


@pytest.fixture
def client():
    c = Client("/nonexistent/fcgi.sock")
    yield c
    c.close()


@pytest.fixture
def app(client):
    application = FakeApplication(client)
    yield application
    application.close()
