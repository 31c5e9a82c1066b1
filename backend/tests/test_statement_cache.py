"""
Statement Cache Tests.

Hit/miss behaviour, per-business tag invalidation, and degradation to an
uncached read when Redis is unavailable.
"""

import pytest
from datetime import datetime
from redis.exceptions import ConnectionError as RedisConnectionError

from backend.ledger.domain.accounting.balance_deriver import BalanceDeriver
from backend.ledger.domain.accounting.journal_poster import post_journal_entry
from backend.ledger.domain.accounting.posting_recipes import sale_lines
from backend.ledger.domain.accounting.types import BalanceWindow
from backend.ledger.models.ledger_enums import PaymentMethod
from backend.ledger.services.cache import StatementCache


class BrokenRedis:
    """Every call fails as if the server were down."""

    async def _fail(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    get = set = sadd = smembers = expire = delete = _fail


# TEST 1: Keys and tags
@pytest.mark.asyncio
async def test_set_then_get(cache, mock_redis):
    await cache.set(1, "balances", "asof=2026-01-01T00:00:00", [{"a": 1}])

    assert await cache.get(1, "balances", "asof=2026-01-01T00:00:00") == [{"a": 1}]
    assert await cache.get(1, "balances", "asof=2026-02-01T00:00:00") is None
    assert cache.key(1, "balances", "asof=2026-01-01T00:00:00") in mock_redis.store
    assert mock_redis.sets[cache.tag(1)] == {cache.key(1, "balances", "asof=2026-01-01T00:00:00")}


@pytest.mark.asyncio
async def test_invalidate_is_scoped_to_business(cache):
    await cache.set(1, "balances", "p", [1])
    await cache.set(1, "account_balance", "1000@x", 50)
    await cache.set(2, "balances", "p", [2])

    removed = await cache.invalidate_business(1)

    assert removed == 2
    assert await cache.get(1, "balances", "p") is None
    assert await cache.get(1, "account_balance", "1000@x") is None
    assert await cache.get(2, "balances", "p") == [2]


@pytest.mark.asyncio
async def test_disabled_cache_is_a_no_op(mock_redis):
    cache = StatementCache(client=mock_redis, prefix="test", enabled=False)

    await cache.set(1, "balances", "p", [1])

    assert mock_redis.store == {}
    assert await cache.get(1, "balances", "p") is None
    assert await cache.invalidate_business(1) == 0


# TEST 2: Redis outage degrades to uncached reads
@pytest.mark.asyncio
async def test_redis_errors_are_swallowed():
    cache = StatementCache(client=BrokenRedis(), prefix="test", enabled=True)

    assert await cache.get(1, "balances", "p") is None
    await cache.set(1, "balances", "p", [1])
    assert await cache.invalidate_business(1) == 0


@pytest.mark.asyncio
async def test_deriver_reads_database_when_redis_is_down(db_session, business):
    deriver = BalanceDeriver(cache=StatementCache(client=BrokenRedis(), prefix="test", enabled=True))
    await post_journal_entry(
        db_session, business.id, "Sale",
        sale_lines(1200, 0, 1200, [(PaymentMethod.CARD, 1200)]),
        entry_date=datetime(2026, 2, 1),
        cache=deriver.cache,
    )

    balances = await deriver.grouped_balances(db_session, business.id, BalanceWindow.point_in_time(datetime(2026, 3, 1)))

    assert {b.account_code: b.balance_pence for b in balances} == {"1010": 1200, "4000": 1200}


# TEST 3: Deriver memoization
@pytest.mark.asyncio
async def test_deriver_serves_cached_balances_until_next_post(db_session, business, cache):
    deriver = BalanceDeriver(cache=cache)
    window = BalanceWindow.point_in_time(datetime(2100, 1, 1))

    await post_journal_entry(
        db_session, business.id, "Sale 1",
        sale_lines(1000, 0, 1000, [(PaymentMethod.CASH, 1000)]),
        cache=cache,
    )
    first = await deriver.grouped_balances(db_session, business.id, window)
    assert await cache.get(business.id, "balances", window.cache_params) is not None

    await post_journal_entry(
        db_session, business.id, "Sale 2",
        sale_lines(500, 0, 500, [(PaymentMethod.CASH, 500)]),
        cache=cache,
    )
    assert await cache.get(business.id, "balances", window.cache_params) is None

    second = await deriver.grouped_balances(db_session, business.id, window)

    cash = lambda balances: next(b.balance_pence for b in balances if b.account_code == "1000")
    assert cash(first) == 1000
    assert cash(second) == 1500


@pytest.mark.asyncio
async def test_account_balance_of_unknown_code_is_zero(db_session, business, cache):
    deriver = BalanceDeriver(cache=cache)

    assert await deriver.account_balance(db_session, business.id, "8888", datetime(2100, 1, 1)) == 0
