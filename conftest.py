import os

# Keep test runs off the real log directory and off the network
os.environ['GENIE_LOG_TO_FILE'] = '0'
os.environ.pop('GENIE_SIMULATE', None)

import pytest  # noqa: E402

from call_control import Contact, LocalCallControl  # noqa: E402
from mode_arbiter import ModeArbiter  # noqa: E402


@pytest.fixture
def arbiter():
    return ModeArbiter()


@pytest.fixture
def call_control():
    """In-memory call control with one known contact"""
    cc = LocalCallControl(data_dir=None)
    cc.contacts.add(Contact(name='John Doe', phone_number='5551112222'))
    return cc
