"""Integration tests running full liquidity scenarios through a Pool."""

import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from pool_ledger import InvariantViolation, Pool, Token, UndefinedPrice
from tests.helpers.constants import ALICE, BOB, REL


class TestTwoProviderScenario:
    """Alice and Bob provide equal liquidity, then a trader buys base."""

    @pytest.fixture
    def pool(self) -> Pool:
        pool = Pool()
        pool.deposit(5_000, 10_000, ALICE)
        pool.deposit(5_000, 10_000, BOB)
        return pool

    def test_shares(self, pool):
        """Both providers hold sqrt(5000 * 10000) shares."""
        assert pool.get_provider_shares(ALICE) == pytest.approx(7071.0678, abs=1e-4)
        assert pool.get_provider_shares(BOB) == pytest.approx(7071.0678, abs=1e-4)
        assert pool.total_shares == pytest.approx(14142.1356, abs=1e-4)
        assert pool.get_price() == 0.5

    def test_swap_for_base(self, pool):
        """Selling 50 other for base follows the constant product formula."""
        k = pool.invariant_k
        assert k == 200_000_000

        amount_out = pool.swap(50, Token.BASE)

        assert amount_out == pytest.approx(10_000 - k / 20_050, rel=REL)
        assert amount_out == pytest.approx(24.93765586, rel=1e-8)
        assert pool.get_reserves() == pytest.approx((10_000 - amount_out, 20_050), rel=REL)
        assert pool.get_price() == pytest.approx((10_000 - amount_out) / 20_050, rel=REL)
        assert pool.invariant_k == k

    def test_everyone_exits(self, pool):
        """After a swap both providers exit and the pool is empty."""
        pool.swap(50, Token.BASE)
        reserve_base, reserve_other = pool.get_reserves()

        alice = pool.withdraw(ALICE)
        bob = pool.withdraw(BOB)

        assert alice[0] + bob[0] == pytest.approx(reserve_base, rel=REL)
        assert alice[1] + bob[1] == pytest.approx(reserve_other, rel=REL)
        assert pool.get_reserves() == (0.0, 0.0)
        assert pool.total_shares == 0.0
        assert pool.providers == {}


class TestReferenceSequence:
    """Seed, swap, add liquidity at the moved price, first provider exits."""

    @pytest.fixture
    def pool(self) -> Pool:
        pool = Pool()
        pool.deposit(500_000, 5_000_000, ALICE)
        pool.swap(1_000, Token.BASE)
        pool.deposit(pool.get_price() * 5_000_000, 5_000_000, BOB)
        return pool

    def test_swap_moved_price(self):
        """Buying base lowers the base-per-other price."""
        pool = Pool()
        pool.deposit(500_000, 5_000_000, ALICE)

        amount_out = pool.swap(1_000, Token.BASE)

        assert amount_out == pytest.approx(500_000 - 2.5e12 / 5_001_000, rel=REL)
        assert pool.get_price() < 0.1

    def test_bob_deposit_at_moved_price(self, pool):
        """Bob's deposit at the new price is accepted."""
        assert pool.get_provider_shares(BOB) > 0
        assert pool.get_price() == pytest.approx((500_000 - 99.98000399920016) / 5_001_000, rel=REL)

    def test_alice_exit_leaves_bobs_deposit(self, pool):
        """Once Alice leaves, the reserves are exactly what Bob put in."""
        bob_base = pool.get_reserves()[0] - (500_000 - 99.98000399920016)
        pool.withdraw(ALICE)

        reserve_base, reserve_other = pool.get_reserves()
        assert reserve_other == pytest.approx(5_000_000, rel=REL)
        assert reserve_base == pytest.approx(bob_base, rel=1e-6)
        assert pool.total_shares == pytest.approx(pool.get_provider_shares(BOB), rel=REL)

    def test_alice_captures_swap_input(self, pool):
        """Alice leaves with the 1,000 other the trader paid in."""
        _, alice_other = pool.withdraw(ALICE)
        assert alice_other == pytest.approx(5_001_000, rel=REL)


class TestRepeatedCycles:
    """Many operations in sequence keep the ledger consistent."""

    def test_invariants_hold(self):
        """Reserves and supply stay non-negative and balances sum to the supply."""
        pool = Pool()
        pool.deposit(1_000, 3_000, ALICE)

        for i in range(200):
            target = Token.BASE if i % 2 else Token.OTHER
            pool.swap(7.5 + i, target)
            if i % 10 == 0:
                price = pool.get_price()
                pool.deposit(price * 100, 100, f"lp-{i}")
            if i % 20 == 5:
                pool.withdraw(f"lp-{i - 5}")

            reserve_base, reserve_other = pool.get_reserves()
            assert reserve_base > 0
            assert reserve_other > 0
            assert math.fsum(pool.providers.values()) == pytest.approx(pool.total_shares, rel=REL)

    def test_last_exit_clears_residue(self):
        """The final withdrawal leaves exact zeros, whatever happened before."""
        pool = Pool()
        pool.deposit(0.3, 0.7, ALICE)
        for _ in range(50):
            pool.swap(0.01, Token.BASE)
            pool.swap(0.01, Token.OTHER)
        pool.deposit(pool.get_price() * 0.1, 0.1, BOB)

        pool.withdraw(BOB)
        pool.withdraw(ALICE)

        assert pool.get_reserves() == (0.0, 0.0)
        assert pool.total_shares == 0.0
        with pytest.raises(UndefinedPrice):
            pool.get_price()


class TestConcurrentAccess:
    """Operations from several threads are applied atomically."""

    def test_parallel_deposits(self):
        """Concurrent matched deposits all land."""
        pool = Pool()
        pool.deposit(1_000, 2_000, ALICE)

        def deposit_many(worker: int) -> None:
            for _ in range(100):
                pool.deposit(1, 2, f"worker-{worker}")

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(deposit_many, range(8)))

        assert pool.get_reserves() == (1_800.0, 3_600.0)
        assert len(pool.providers) == 9
        assert math.fsum(pool.providers.values()) == pytest.approx(pool.total_shares, rel=REL)
        assert pool.get_price() == 0.5

    def test_mixed_operations(self):
        """Deposits, swaps and withdrawals racing each other keep the ledger consistent."""
        pool = Pool()
        pool.deposit(10_000, 20_000, ALICE)

        def trade_and_provide(worker: int) -> None:
            provider = f"worker-{worker}"
            for i in range(50):
                pool.swap(1 + worker, Token.BASE if (i + worker) % 2 else Token.OTHER)
                while True:
                    # Another thread may move the price between read and deposit
                    try:
                        pool.deposit(pool.get_price() * 10, 10, provider)
                        break
                    except InvariantViolation:
                        continue
                if i % 5 == 4:
                    pool.withdraw(provider)

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(trade_and_provide, range(8)))

        reserve_base, reserve_other = pool.get_reserves()
        assert reserve_base > 0
        assert reserve_other > 0
        assert set(pool.providers) == {ALICE}
        assert math.fsum(pool.providers.values()) == pytest.approx(pool.total_shares, rel=REL)
        assert pool.snapshot().total_shares == pool.total_shares
