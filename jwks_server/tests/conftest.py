"""
Pytest configuration for jwks_server. RSA key generation is slow, so one key store
is shared per session; process-wide key state is reset around every test.
"""
import pytest

from jwks_server import keys as keys_module
from jwks_server.keys import create_key_store


@pytest.fixture(scope="session")
def store():
    return create_key_store()


@pytest.fixture(autouse=True)
def _reset_key_store():
    keys_module.reset_key_store()
    yield
    keys_module.reset_key_store()
