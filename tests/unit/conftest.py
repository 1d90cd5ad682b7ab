"""
Shared fixtures for unit tests.

Provides repository fakes and a small team tree used across the engine
tests:

    1 DIRECTOR
    └── 2 STAR_4
        └── 3 STAR_1
            ├── 4 STAR_2
            └── 5 VIP
                └── 6 NORMAL   (no team path, resolved by traversal)

    9 VIP (no upline)
"""

import pytest

from app.services.cache.lookup_cache import LookupCache
from tests.fakes import (
    FakeClock,
    FakeCommissionRepository,
    FakeOrderRepository,
    FakeParticipantRepository,
    FakeProductRepository,
    make_participant,
    make_product,
    make_spec,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return LookupCache(max_size=100, ttl_seconds=60, clock=clock)


@pytest.fixture
def team():
    """Participants of the shared team tree."""
    return [
        make_participant(1, "DIRECTOR", team_path=""),
        make_participant(2, "STAR_4", parent_id=1, team_path="/1/"),
        make_participant(3, "STAR_1", parent_id=2, team_path="/1/2/"),
        make_participant(4, "STAR_2", parent_id=3, team_path="/1/2/3/"),
        make_participant(5, "VIP", parent_id=3, team_path="/1/2/3/"),
        make_participant(6, "NORMAL", parent_id=5),
        make_participant(9, "VIP"),
    ]


@pytest.fixture
def participant_repo(team):
    return FakeParticipantRepository(team)


@pytest.fixture
def product_repo():
    return FakeProductRepository(
        [
            make_product(100),
            make_product(
                200,
                total_stock=0,
                specs=[make_spec(2000, 200, stock=0)],
            ),
        ]
    )


@pytest.fixture
def commission_repo():
    return FakeCommissionRepository()


@pytest.fixture
def order_repo(product_repo):
    return FakeOrderRepository(product_repo)
