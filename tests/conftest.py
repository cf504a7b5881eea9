"""Pytest configuration and fixtures."""

import pytest

from lbp.clock import BlockClock
from lbp.models import Rights
from lbp.pool import ConfigurableRightsPool, ElasticSupplyPool
from tests.helpers import make_elastic_pool, make_pool


@pytest.fixture
def presale_rights() -> Rights:
    """Rights used by the presale scenario: only weights may change."""
    return Rights(
        can_pause_swapping=False,
        can_change_swap_fee=False,
        can_change_weights=True,
        can_add_remove_tokens=False,
        can_whitelist_lps=False,
        can_change_cap=False,
    )


@pytest.fixture
def presale_pool(presale_rights: Rights) -> ConfigurableRightsPool:
    """USDC/HBT pool at 36/4 (90%/10%) with 9M/1M balances and 10-block periods."""
    return make_pool(rights=presale_rights)


@pytest.fixture
def elastic_pool(presale_rights: Rights) -> ElasticSupplyPool:
    """USDC/DAI elastic supply pool at 1/1 weights with 10000/10000 balances."""
    return make_elastic_pool(rights=presale_rights)


@pytest.fixture
def clock() -> BlockClock:
    """Block clock starting at block 100."""
    return BlockClock(block=100)
