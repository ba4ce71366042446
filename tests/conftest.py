"""
Shared fixtures.

The default drop: one upstream caller, a single creator taking 100% of
net proceeds, an in-memory event log and a clock pinned at NOW.
"""

import pytest
from eth_account import Account

from dropmint.core.models import CreatorPayout
from dropmint.core.time import fixed_clock
from dropmint.ledger.log import EventLog
from dropmint.offerer import DropMintOfferer
from dropmint.proofs.typed_data import SigningDomain
from dropmint.registry.stage_registry import StageRegistry

from tests.helpers.drops import CALLER, CREATOR, NOW, TOKEN
from tests.helpers.fakes import CompanionOwners, Delegations, IssuanceLedger


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def registry(events):
    """Registry with creator payouts and the upstream caller configured."""
    reg = StageRegistry(events=events)
    reg.update_creator_payouts([CreatorPayout(CREATOR, 10_000)])
    reg.update_allowed_caller(CALLER, True)
    return reg


@pytest.fixture
def issuance():
    return IssuanceLedger(max_supply=100)


@pytest.fixture
def owners():
    return CompanionOwners()


@pytest.fixture
def delegations():
    return Delegations()


@pytest.fixture
def domain():
    return SigningDomain(
        name=               "dropmint-test",
        version=            "1",
        chain_id=           1,
        verifying_contract= TOKEN,
    )


@pytest.fixture
def offerer(registry, issuance, owners, delegations, domain):
    return DropMintOfferer(
        token=      TOKEN,
        registry=   registry,
        mint_stats= issuance,
        domain=     domain,
        ownership=  owners,
        delegation= delegations,
        clock=      fixed_clock(NOW),
    )


@pytest.fixture
def server_account():
    """A trusted signing server's key."""
    return Account.create()
