"""
Tick Math 테스트

틱 ↔ sqrtPriceX64 변환과 tick_spacing 관련 함수들을 테스트합니다.
"""

import pytest

from ..math.tick_math import (
    TickSide,
    get_default_other_amount_threshold,
    get_default_sqrt_price_limit,
    get_initializable_tick_index,
    get_max_tick_index,
    get_min_tick_index,
    get_nearest_tick_by_tick,
    get_next_initializable_tick,
    get_prev_initializable_tick,
    get_tick_side,
    sqrt_price_to_tick_index,
    tick_index_to_sqrt_price,
    validate_tick,
    validate_tick_range,
)
from ..constants import MAX_SQRT_PRICE, MAX_TICK, MIN_SQRT_PRICE, MIN_TICK, Q64
from ..errors import ErrorCode, InvalidSqrtPriceError, InvalidTickError


class TestTickIndexToSqrtPrice:
    """tick_index_to_sqrt_price 테스트"""

    def test_tick_zero(self):
        """tick 0의 sqrtPrice는 정확히 2^64"""
        assert tick_index_to_sqrt_price(0) == Q64

    def test_bounds(self):
        """최소/최대 틱은 최소/최대 sqrtPrice"""
        assert tick_index_to_sqrt_price(MIN_TICK) == MIN_SQRT_PRICE
        assert tick_index_to_sqrt_price(MAX_TICK) == MAX_SQRT_PRICE

    def test_positive_above_q64(self):
        assert tick_index_to_sqrt_price(1) > Q64
        assert tick_index_to_sqrt_price(-1) < Q64

    def test_monotonic(self):
        """틱이 증가하면 sqrtPrice도 증가"""
        ticks = list(range(MIN_TICK, MAX_TICK + 1, 9973)) + [MAX_TICK]
        prices = [tick_index_to_sqrt_price(t) for t in ticks]
        assert all(a < b for a, b in zip(prices, prices[1:]))

    def test_adjacent_ticks_monotonic(self):
        for tick in (-100, -1, 0, 1, 100):
            assert tick_index_to_sqrt_price(tick) < tick_index_to_sqrt_price(tick + 1)

    def test_out_of_range(self):
        with pytest.raises(InvalidTickError):
            tick_index_to_sqrt_price(MAX_TICK + 1)
        with pytest.raises(ValueError):
            tick_index_to_sqrt_price(MIN_TICK - 1)


class TestSqrtPriceToTickIndex:
    """sqrt_price_to_tick_index 테스트"""

    def test_q64_is_tick_zero(self):
        assert sqrt_price_to_tick_index(Q64) == 0

    def test_just_below_q64(self):
        """틱 경계 바로 아래 가격은 아래 틱으로 내림"""
        assert sqrt_price_to_tick_index(Q64 - 1) == -1

    def test_bounds(self):
        assert sqrt_price_to_tick_index(MIN_SQRT_PRICE) == MIN_TICK
        assert sqrt_price_to_tick_index(MAX_SQRT_PRICE) == MAX_TICK

    def test_round_trip(self):
        """tick -> sqrtPrice -> tick 왕복"""
        ticks = list(range(MIN_TICK, MAX_TICK + 1, 997))
        ticks += [MIN_TICK + 1, MAX_TICK - 1, MAX_TICK, -1, 1]
        for tick in ticks:
            assert sqrt_price_to_tick_index(tick_index_to_sqrt_price(tick)) == tick

    def test_between_ticks_floors(self):
        """틱 사이 가격은 price(tick) <= 입력값인 가장 큰 틱"""
        assert sqrt_price_to_tick_index(tick_index_to_sqrt_price(100) + 1) == 100
        assert sqrt_price_to_tick_index(tick_index_to_sqrt_price(101) - 1) == 100
        assert sqrt_price_to_tick_index(tick_index_to_sqrt_price(-100) + 1) == -100

    def test_out_of_range(self):
        with pytest.raises(InvalidSqrtPriceError):
            sqrt_price_to_tick_index(MIN_SQRT_PRICE - 1)
        with pytest.raises(InvalidSqrtPriceError):
            sqrt_price_to_tick_index(MAX_SQRT_PRICE + 1)


class TestTickSpacing:
    """tick_spacing 관련 함수 테스트"""

    def test_min_max_tick_index(self):
        assert get_min_tick_index(60) == -443580
        assert get_max_tick_index(60) == 443580
        assert get_min_tick_index(1) == MIN_TICK
        assert get_max_tick_index(1) == MAX_TICK

    def test_initializable_tick_floors(self):
        """음수 틱도 내림"""
        assert get_initializable_tick_index(15, 10) == 10
        assert get_initializable_tick_index(-1, 10) == -10
        assert get_initializable_tick_index(-10, 10) == -10

    def test_prev_initializable_tick(self):
        """tick 자신은 제외"""
        assert get_prev_initializable_tick(10, 10) == 0
        assert get_prev_initializable_tick(11, 10) == 10
        assert get_prev_initializable_tick(0, 10) == -10
        assert get_prev_initializable_tick(-1, 10) == -10

    def test_next_initializable_tick(self):
        assert get_next_initializable_tick(10, 10) == 20
        assert get_next_initializable_tick(9, 10) == 10
        assert get_next_initializable_tick(-10, 10) == 0
        assert get_next_initializable_tick(-11, 10) == -10

    def test_prev_next_clamped(self):
        """결과는 tick_spacing 기준 최소/최대 틱으로 제한"""
        assert get_next_initializable_tick(443630, 60) == 443580
        assert get_prev_initializable_tick(-443590, 60) == -443580

    def test_nearest_tick(self):
        assert get_nearest_tick_by_tick(65, 60) == 60
        assert get_nearest_tick_by_tick(90, 60) == 60
        assert get_nearest_tick_by_tick(95, 60) == 120
        assert get_nearest_tick_by_tick(-65, 60) == -60
        assert get_nearest_tick_by_tick(-95, 60) == -120
        assert get_nearest_tick_by_tick(0, 60) == 0


class TestValidation:
    """validate_tick / validate_tick_range 테스트"""

    def test_validate_tick(self):
        assert validate_tick(120, 60) == 120
        with pytest.raises(InvalidTickError):
            validate_tick(61, 60)
        with pytest.raises(InvalidTickError):
            validate_tick(MAX_TICK + 1)

    def test_validate_tick_range(self):
        validate_tick_range(-60, 60, 60)
        with pytest.raises(InvalidTickError) as exc_info:
            validate_tick_range(60, 60)
        assert exc_info.value.code == ErrorCode.INVALID_TICK_RANGE

    def test_default_sqrt_price_limit(self):
        assert get_default_sqrt_price_limit(True) == MIN_SQRT_PRICE
        assert get_default_sqrt_price_limit(False) == MAX_SQRT_PRICE

    def test_default_other_amount_threshold(self):
        """입력 고정이면 최소 출력 0, 출력 고정이면 최대 입력 u64"""
        assert get_default_other_amount_threshold(True) == 0
        assert get_default_other_amount_threshold(False) == 2**64 - 1


class TestTickSide:
    """get_tick_side 테스트"""

    def test_boundaries_are_in_range(self):
        assert get_tick_side(0, 0, 10) == TickSide.IN_RANGE
        assert get_tick_side(10, 0, 10) == TickSide.IN_RANGE
        assert get_tick_side(5, 0, 10) == TickSide.IN_RANGE

    def test_outside(self):
        assert get_tick_side(-5, 0, 10) == TickSide.LEFT
        assert get_tick_side(11, 0, 10) == TickSide.RIGHT
        assert get_tick_side(MIN_TICK, -60, 60) == TickSide.LEFT
        assert get_tick_side(MAX_TICK, -60, 60) == TickSide.RIGHT


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
