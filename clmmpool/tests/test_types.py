"""
데이터 타입 테스트

온체인 디코딩 값에서 스냅샷을 만드는 from_dict와 검증을 테스트합니다.
"""

from dataclasses import FrozenInstanceError

import pytest

from ..data.types import (
    PoolSnapshot,
    PositionSnapshot,
    TickData,
    parse_i32,
    parse_i128,
    parse_u128,
)
from ..math.fixed_point import I128
from ..math.tick_math import tick_index_to_sqrt_price
from ..constants import Q64
from ..errors import InvalidAmountError, InvalidTickError


class TestParsers:
    """입력 파서 테스트"""

    def test_parse_u128(self):
        assert parse_u128("123456") == 123456
        assert parse_u128(7) == 7
        assert parse_u128({"bits": "9"}) == 9

    def test_parse_u128_out_of_range(self):
        with pytest.raises(InvalidAmountError):
            parse_u128("-1")
        with pytest.raises(InvalidAmountError):
            parse_u128(2**128)

    def test_parse_i32_twos_complement(self):
        assert parse_i32({"bits": 2**32 - 600}) == -600
        assert parse_i32({"bits": "600"}) == 600
        assert parse_i32(-5) == -5

    def test_parse_i128(self):
        assert parse_i128({"bits": str(2**128 - 5)}) == I128(5, True)
        assert parse_i128(-5) == I128(5, True)
        assert parse_i128(I128(3)) == I128(3)


class TestTickData:
    """TickData 테스트"""

    def test_from_dict(self):
        tick = TickData.from_dict({
            "index": {"bits": 2**32 - 600},
            "liquidity_net": {"bits": str(2**128 - 5)},
            "liquidity_gross": "5",
            "fee_growth_outside_a": "100",
            "rewarders_growth_outside": ["1", "2"],
        })
        assert tick.index == -600
        assert tick.liquidity_net == I128(5, True)
        assert tick.liquidity_gross == 5
        assert tick.fee_growth_outside_a == 100
        assert tick.fee_growth_outside_b == 0
        assert tick.rewards_growth_outside == (1, 2)
        assert tick.sqrt_price == tick_index_to_sqrt_price(-600)

    def test_explicit_sqrt_price(self):
        tick = TickData.from_dict({"index": 0, "liquidity_net": 0, "sqrt_price": str(Q64)})
        assert tick.sqrt_price == Q64

    def test_invalid_index(self):
        with pytest.raises(InvalidTickError):
            TickData(index=500000, liquidity_net=I128(0))

    def test_frozen(self):
        tick = TickData(index=0, liquidity_net=I128(0))
        with pytest.raises(FrozenInstanceError):
            tick.index = 1


class TestPoolSnapshot:
    """PoolSnapshot 테스트"""

    def test_from_dict(self):
        pool = PoolSnapshot.from_dict({
            "current_sqrt_price": str(Q64),
            "current_tick_index": {"bits": 0},
            "tick_spacing": 60,
            "liquidity": "1000000",
            "fee_rate": 2500,
            "decimals_a": 9,
            "rewarders_growth_global": ["10"],
            "ticks": [
                {"index": {"bits": 2**32 - 60}, "liquidity_net": "1000000"},
                {"index": 60, "liquidity_net": {"bits": str(2**128 - 1000000)}},
            ],
        })
        assert pool.current_sqrt_price == Q64
        assert pool.liquidity == 10**6
        assert pool.decimals_a == 9
        assert pool.decimals_b == 6
        assert pool.rewarders_growth_global == (10,)
        assert [t.index for t in pool.ticks] == [-60, 60]
        assert pool.ticks[1].liquidity_net == I128(10**6, True)

    def test_invalid_tick_spacing(self):
        with pytest.raises(InvalidTickError):
            PoolSnapshot(
                current_sqrt_price=Q64, current_tick_index=0, tick_spacing=0, liquidity=0, fee_rate=0
            )


class TestPositionSnapshot:
    """PositionSnapshot 테스트"""

    def test_from_dict(self):
        position = PositionSnapshot.from_dict({
            "liquidity": "10",
            "tick_lower_index": {"bits": 2**32 - 600},
            "tick_upper_index": 600,
            "fee_growth_inside_a": str(Q64),
            "fee_owned_a": 3,
            "rewards_growth_inside": ["1"],
            "rewards_amount_owned": ["2"],
        })
        assert position.tick_lower_index == -600
        assert position.fee_growth_inside_a == Q64
        assert position.fee_owned_a == 3
        assert position.rewards_amount_owned == (2,)

    def test_mismatched_rewards(self):
        with pytest.raises(InvalidAmountError):
            PositionSnapshot(
                liquidity=1,
                tick_lower_index=-60,
                tick_upper_index=60,
                rewards_growth_inside=(1,),
                rewards_amount_owned=(1, 2),
            )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
