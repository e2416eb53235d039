"""
APR 추정 테스트
"""

from decimal import Decimal

import pytest

from ..math.apr import (
    RewarderEmission,
    calculate_pool_valid_tvl,
    est_pool_apr,
    est_position_apr_with_delta_method,
    est_position_apr_with_multi_method,
)
from ..math.tick_math import tick_index_to_sqrt_price
from ..constants import Q64


class TestPoolApr:
    """est_pool_apr 테스트"""

    def test_zero_tvl(self):
        """TVL이 0이면 0"""
        assert est_pool_apr(1, 2, 3, 0) == 0

    def test_formula(self):
        """365 × 86400 × 0.5 × (1 × 2 + 3) / 100"""
        assert est_pool_apr(1, 2, 3, 100) == Decimal(788400)

    def test_blocks_per_second(self):
        assert est_pool_apr(1, 2, 3, 100, blocks_per_second=1) == Decimal(1576800)


class TestValidTvl:
    def test_tvl(self):
        assert calculate_pool_valid_tvl(10**6, 2 * 10**9, 6, 9, "2", "3") == Decimal(8)


def delta_method(**overrides):
    params = dict(
        current_tick_index=0,
        lower_tick_index=-1000,
        upper_tick_index=1000,
        current_sqrt_price_x64=Q64,
        pool_liquidity=10**12,
        decimals_a=6,
        decimals_b=6,
        fee_rate=30,
        amount_a="100",
        amount_b="100",
        pool_amount_a=10**12,
        pool_amount_b=10**12,
        swap_volume="1000000",
        coin_a_price="1",
        coin_b_price="1",
        rewarders=[RewarderEmission(10**9, 6, "2")],
    )
    params.update(overrides)
    return est_position_apr_with_delta_method(**params)


class TestDeltaMethod:
    """est_position_apr_with_delta_method 테스트"""

    def test_in_range(self):
        estimate = delta_method()
        assert estimate.fee_apr > 0
        assert len(estimate.rewarder_aprs) == 1
        assert estimate.rewarder_aprs[0] > 0

    def test_zero_deposit(self):
        """입금액이 0이면 포지션 TVL이 0이므로 모두 0"""
        estimate = delta_method(amount_a="0", amount_b="0")
        assert estimate.fee_apr == 0
        assert estimate.rewarder_aprs == (Decimal(0),)

    def test_zero_pool_tvl(self):
        """풀 TVL이 0이면 보상 APR은 0, 수수료 APR은 계산됨"""
        estimate = delta_method(pool_amount_a=0, pool_amount_b=0)
        assert estimate.fee_apr > 0
        assert estimate.rewarder_aprs == (Decimal(0),)

    def test_below_range_uses_coin_a(self):
        estimate = delta_method(
            current_tick_index=-2000,
            current_sqrt_price_x64=tick_index_to_sqrt_price(-2000),
            amount_b="0",
        )
        assert estimate.fee_apr > 0

    def test_longer_period_lowers_apr(self):
        assert delta_method(period_days=14).fee_apr < delta_method(period_days=7).fee_apr

    def test_annualized_percent(self):
        """기간 수익 비율에 36500 / period_days를 곱한 값 (1일 = 365일의 365배)"""
        daily = delta_method(period_days=1)
        yearly = delta_method(period_days=365)

        assert yearly.fee_apr > 0
        assert len(daily.rewarder_aprs) == 1
        assert abs(daily.fee_apr - yearly.fee_apr * 365) <= yearly.fee_apr * Decimal("1e-20")
        for daily_apr, yearly_apr in zip(daily.rewarder_aprs, yearly.rewarder_aprs):
            assert abs(daily_apr - yearly_apr * 365) <= yearly_apr * Decimal("1e-20")


class TestMultiMethod:
    """est_position_apr_with_multi_method 테스트"""

    def test_same_range(self):
        assert est_position_apr_with_multi_method(1, 2, 1, 2) == 1

    def test_user_range_wider(self):
        """hist == retro -> retro / user"""
        assert est_position_apr_with_multi_method(1, 3, 1, 2) == Decimal("0.5")

    def test_user_range_inside(self):
        """user == retro -> hist / retro"""
        assert est_position_apr_with_multi_method(1, 2, 1, 3) == 2

    def test_partial_overlap(self):
        """retro² / hist / user"""
        assert est_position_apr_with_multi_method(1, 3, 2, 4) == Decimal("0.25")

    def test_disjoint(self):
        assert est_position_apr_with_multi_method(1, 2, 3, 4) == 0

    def test_zero_ranges(self):
        assert est_position_apr_with_multi_method(1, 1, 1, 1) == 0
        assert est_position_apr_with_multi_method(1, 1, 0, 2) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
