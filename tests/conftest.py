import pytest

from token_requests.state.diagnostics import DiagnosticChannel
from token_requests.state.store import StateStore, set_state_store

from tests.fakes import make_ledger


@pytest.fixture
def ledger():
    return make_ledger()


@pytest.fixture
def diagnostics():
    return DiagnosticChannel()


@pytest.fixture
def store(ledger, diagnostics):
    return StateStore.build(ledger, diagnostics=diagnostics, network_type="rinkeby")


@pytest.fixture(autouse=True)
def reset_state_store():
    yield
    set_state_store(None)
