"""
Fee Math - 포지션 수수료/보상 누적 계산

틱 단위 outside 값과 전역 growth 값으로 범위 내 growth를 구하고
포지션의 미수령 수수료와 보상을 계산합니다.
growth 값은 온체인에서 u128 wrapping 연산으로 누적되므로 모든 차이는 mod 2^128 입니다.

핵심 공식:
    f_b(i_l) = f_o(i_l)        if i_c >= i_l else f_g - f_o(i_l)   # 하한 틱 아래
    f_a(i_u) = f_g - f_o(i_u)  if i_c >= i_u else f_o(i_u)         # 상한 틱 위
    f_r = f_g - f_b(i_l) - f_a(i_u)                                # 범위 내
    owed' = owed + (l × (f_r(t_1) - f_r(t_0))) >> 64               # 미수령
"""

from typing import NamedTuple, Optional, Sequence, Tuple

from ..constants import SECONDS_PER_DAY
from ..data.types import PoolSnapshot, PositionSnapshot, TickData
from .fixed_point import checked_mul_shift_right, wrapping_sub_u128


class FeeGrowthInside(NamedTuple):
    """범위 내 fee growth (Q64)"""
    growth_a: int
    growth_b: int


class CollectFeesQuote(NamedTuple):
    """수령 가능한 수수료 (최소 단위)"""
    fee_owned_a: int
    fee_owned_b: int


def fee_growth_below(tick_idx: int, current_tick: int, growth_global: int, growth_outside: int) -> int:
    """틱 아래에서 발생한 growth (f_b)"""
    if current_tick >= tick_idx:
        return growth_outside
    return wrapping_sub_u128(growth_global, growth_outside)


def fee_growth_above(tick_idx: int, current_tick: int, growth_global: int, growth_outside: int) -> int:
    """틱 위에서 발생한 growth (f_a)"""
    if current_tick >= tick_idx:
        return wrapping_sub_u128(growth_global, growth_outside)
    return growth_outside


def fee_growth_inside(
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    growth_global: int,
    growth_outside_lower: int,
    growth_outside_upper: int
) -> int:
    """범위 내 growth 계산 (f_r)

    Args:
        tick_lower: 하한 틱 (i_l)
        tick_upper: 상한 틱 (i_u)
        current_tick: 현재 틱 (i_c)
        growth_global: 전역 growth (f_g)
        growth_outside_lower: 하한 틱의 outside 값 (f_o(i_l))
        growth_outside_upper: 상한 틱의 outside 값 (f_o(i_u))

    Returns:
        범위 내 growth (f_r, mod 2^128)
    """
    below = fee_growth_below(tick_lower, current_tick, growth_global, growth_outside_lower)
    above = fee_growth_above(tick_upper, current_tick, growth_global, growth_outside_upper)
    return wrapping_sub_u128(wrapping_sub_u128(growth_global, below), above)


def get_fee_in_tick_range(
    current_tick: int,
    tick_lower: int,
    tick_upper: int,
    lower: Optional[TickData],
    upper: Optional[TickData],
    fee_growth_global_a: int,
    fee_growth_global_b: int
) -> FeeGrowthInside:
    """coin A / coin B 범위 내 fee growth

    초기화되지 않은 틱(None)의 outside 값은 0으로 봅니다.
    """
    return FeeGrowthInside(
        fee_growth_inside(
            tick_lower, tick_upper, current_tick, fee_growth_global_a,
            lower.fee_growth_outside_a if lower else 0,
            upper.fee_growth_outside_a if upper else 0,
        ),
        fee_growth_inside(
            tick_lower, tick_upper, current_tick, fee_growth_global_b,
            lower.fee_growth_outside_b if lower else 0,
            upper.fee_growth_outside_b if upper else 0,
        ),
    )


def get_rewards_in_tick_range(
    current_tick: int,
    tick_lower: int,
    tick_upper: int,
    lower: Optional[TickData],
    upper: Optional[TickData],
    rewarders_growth_global: Sequence[int]
) -> Tuple[int, ...]:
    """리워더별 범위 내 reward growth"""
    growths = []
    for i, growth_global in enumerate(rewarders_growth_global):
        outside_lower = _outside_at(lower, i)
        outside_upper = _outside_at(upper, i)
        growths.append(
            fee_growth_inside(tick_lower, tick_upper, current_tick, growth_global, outside_lower, outside_upper)
        )
    return tuple(growths)


def _outside_at(tick: Optional[TickData], i: int) -> int:
    if tick is None or i >= len(tick.rewards_growth_outside):
        return 0
    return tick.rewards_growth_outside[i]


def calculate_uncollected(liquidity: int, growth_inside_current: int, growth_inside_last: int) -> int:
    """미수령 수량 = (l × Δf_r) >> 64 (u64 범위)"""
    growth_delta = wrapping_sub_u128(growth_inside_current, growth_inside_last)
    return checked_mul_shift_right(liquidity, growth_delta, 64, 64)


def _find_tick(pool: PoolSnapshot, index: int) -> Optional[TickData]:
    for tick in pool.ticks:
        if tick.index == index:
            return tick
    return None


def _resolve_ticks(
    pool: PoolSnapshot,
    position: PositionSnapshot,
    lower: Optional[TickData],
    upper: Optional[TickData]
) -> Tuple[Optional[TickData], Optional[TickData]]:
    if lower is None:
        lower = _find_tick(pool, position.tick_lower_index)
    if upper is None:
        upper = _find_tick(pool, position.tick_upper_index)
    return lower, upper


def collect_fees_quote(
    pool: PoolSnapshot,
    position: PositionSnapshot,
    lower: Optional[TickData] = None,
    upper: Optional[TickData] = None
) -> CollectFeesQuote:
    """포지션이 지금 수령할 수 있는 수수료

    lower / upper가 없으면 pool.ticks에서 포지션 경계 틱을 찾습니다.
    """
    lower, upper = _resolve_ticks(pool, position, lower, upper)
    growth_a, growth_b = get_fee_in_tick_range(
        pool.current_tick_index,
        position.tick_lower_index,
        position.tick_upper_index,
        lower,
        upper,
        pool.fee_growth_global_a,
        pool.fee_growth_global_b,
    )

    fee_a = calculate_uncollected(position.liquidity, growth_a, position.fee_growth_inside_a)
    fee_b = calculate_uncollected(position.liquidity, growth_b, position.fee_growth_inside_b)

    return CollectFeesQuote(
        fee_owned_a=position.fee_owned_a + fee_a,
        fee_owned_b=position.fee_owned_b + fee_b,
    )


def collect_rewards_quote(
    pool: PoolSnapshot,
    position: PositionSnapshot,
    lower: Optional[TickData] = None,
    upper: Optional[TickData] = None
) -> Tuple[int, ...]:
    """리워더별 수령 가능한 보상"""
    lower, upper = _resolve_ticks(pool, position, lower, upper)
    growths = get_rewards_in_tick_range(
        pool.current_tick_index,
        position.tick_lower_index,
        position.tick_upper_index,
        lower,
        upper,
        pool.rewarders_growth_global,
    )

    rewards = []
    for i, growth_inside in enumerate(growths):
        growth_last = position.rewards_growth_inside[i] if i < len(position.rewards_growth_inside) else 0
        owned = position.rewards_amount_owned[i] if i < len(position.rewards_amount_owned) else 0
        rewards.append(owned + calculate_uncollected(position.liquidity, growth_inside, growth_last))
    return tuple(rewards)


def emissions_every_day(emissions_per_second_x64: int) -> int:
    """초당 배출량 (Q64)을 일일 배출량으로 변환 (내림)"""
    return (emissions_per_second_x64 * SECONDS_PER_DAY) >> 64
