"""
APR Math - 풀/포지션 수익률 추정

외부에서 주어진 거래량, 보상 배출량, 가격으로 연환산 수익률(%)을 추정합니다.
체인 상태는 사용하지 않는 순수 함수입니다.

분모가 0이면 (TVL 0, 과거 범위 0 등) 오류 대신 0을 반환합니다.
사용자에게 보여주는 추정치이며 수익을 보장하지 않습니다.

추정 방법:
- delta: 포지션이 추가하는 유동성 ΔL의 풀 유동성 대비 비중으로 수수료/보상 분배
- multi: 사용자 가격 범위와 과거 실현 가격 범위의 겹침으로 배수 계산
"""

from decimal import Decimal, ROUND_FLOOR, localcontext
from typing import NamedTuple, Optional, Sequence, Tuple, Union

from ..config import settings
from ..constants import DAYS_PER_YEAR, SECONDS_PER_DAY
from .liquidity_math import (
    coin_amounts_from_liquidity,
    estimate_liquidity_for_coin_a,
    estimate_liquidity_for_coin_b,
)
from .tick_math import tick_index_to_sqrt_price

Number = Union[Decimal, int, str]


class RewarderEmission(NamedTuple):
    """기간 동안 풀 전체에 배출된 보상"""
    amount: Number  # 최소 단위
    decimals: int
    price: Number


class PositionAprEstimate(NamedTuple):
    """포지션 APR (%)"""
    fee_apr: Decimal
    rewarder_aprs: Tuple[Decimal, ...]


def _safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return Decimal(0)
    return numerator / denominator


def _to_units(amount: Number, decimals: int) -> Decimal:
    return Decimal(amount).scaleb(-decimals)


def est_pool_apr(
    per_block_reward: Number,
    reward_price: Number,
    total_trading_fee: Number,
    total_liquidity_value: Number,
    blocks_per_second: Optional[Number] = None
) -> Decimal:
    """풀 APR 추정

    공식: APR = 365 × 86400 × blocks_per_second × (블록당 보상 × 보상 가격 + 거래 수수료) / TVL

    Args:
        per_block_reward: 블록당 보상 수량
        reward_price: 보상 토큰 가격
        total_trading_fee: 블록당 거래 수수료 가치
        total_liquidity_value: 풀 TVL
        blocks_per_second: 초당 블록 수 (기본 settings.BLOCKS_PER_SECOND)

    Returns:
        APR (비율, TVL이 0이면 0)
    """
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        if blocks_per_second is None:
            blocks_per_second = settings.BLOCKS_PER_SECOND
        annual_rate = Decimal(DAYS_PER_YEAR * SECONDS_PER_DAY) * Decimal(blocks_per_second)
        block_value = Decimal(per_block_reward) * Decimal(reward_price) + Decimal(total_trading_fee)
        return annual_rate * _safe_div(block_value, Decimal(total_liquidity_value))


def calculate_pool_valid_tvl(
    amount_a: Number,
    amount_b: Number,
    decimals_a: int,
    decimals_b: int,
    coin_a_price: Number,
    coin_b_price: Number
) -> Decimal:
    """최소 단위 수량과 가격으로 TVL 계산"""
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        return (
            _to_units(amount_a, decimals_a) * Decimal(coin_a_price)
            + _to_units(amount_b, decimals_b) * Decimal(coin_b_price)
        )


def est_position_apr_with_delta_method(
    current_tick_index: int,
    lower_tick_index: int,
    upper_tick_index: int,
    current_sqrt_price_x64: int,
    pool_liquidity: int,
    decimals_a: int,
    decimals_b: int,
    fee_rate: int,
    amount_a: Number,
    amount_b: Number,
    pool_amount_a: int,
    pool_amount_b: int,
    swap_volume: Number,
    coin_a_price: Number,
    coin_b_price: Number,
    rewarders: Sequence[RewarderEmission] = (),
    period_days: Optional[int] = None
) -> PositionAprEstimate:
    """delta 방법 포지션 APR

    사용자 입금액(amount_a, amount_b, human-readable)에서 ΔL을 구하고
    기간 거래량의 수수료 중 ΔL / (L_pool + ΔL) 만큼을 포지션 몫으로 봅니다.
    보상은 포지션의 유효 TVL이 풀 유효 TVL에서 차지하는 비율로 분배합니다.

    Args:
        current_tick_index: 현재 틱
        lower_tick_index: 하한 틱
        upper_tick_index: 상한 틱
        current_sqrt_price_x64: 현재 sqrtPriceX64
        pool_liquidity: 풀 활성 유동성
        decimals_a / decimals_b: 코인 소수점 자릿수
        fee_rate: 수수료율 (settings.FEE_RATE_DENOMINATOR 기준)
        amount_a / amount_b: 사용자 입금 수량 (human-readable)
        pool_amount_a / pool_amount_b: 풀 보유 수량 (최소 단위)
        swap_volume: 기간 거래량 (가치 단위)
        coin_a_price / coin_b_price: 코인 가격
        rewarders: 리워더별 기간 배출량
        period_days: swap_volume / rewarders의 기간 (기본 settings.APR_PERIOD_DAYS)

    Returns:
        PositionAprEstimate (연환산 %)

    fee_apr / rewarder_aprs는 period_days 기간의 수익 비율이 아니라
    365 / period_days를 곱해 % 단위로 연환산한 값입니다 (× 36500 / period_days).
    """
    if period_days is None:
        period_days = settings.APR_PERIOD_DAYS

    lower_sqrt_price = tick_index_to_sqrt_price(lower_tick_index)
    upper_sqrt_price = tick_index_to_sqrt_price(upper_tick_index)

    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION

        raw_a = int(Decimal(amount_a).scaleb(decimals_a).to_integral_value(rounding=ROUND_FLOOR))
        raw_b = int(Decimal(amount_b).scaleb(decimals_b).to_integral_value(rounding=ROUND_FLOOR))

        if current_tick_index < lower_tick_index:
            delta_liquidity = estimate_liquidity_for_coin_a(lower_sqrt_price, upper_sqrt_price, raw_a)
        elif current_tick_index > upper_tick_index:
            delta_liquidity = estimate_liquidity_for_coin_b(lower_sqrt_price, upper_sqrt_price, raw_b)
        else:
            delta_liquidity = min(
                estimate_liquidity_for_coin_a(current_sqrt_price_x64, upper_sqrt_price, raw_a),
                estimate_liquidity_for_coin_b(current_sqrt_price_x64, lower_sqrt_price, raw_b),
            )

        pos_amount_a, pos_amount_b = coin_amounts_from_liquidity(
            delta_liquidity, current_sqrt_price_x64, lower_sqrt_price, upper_sqrt_price, False
        )
        pos_valid_tvl = calculate_pool_valid_tvl(
            pos_amount_a, pos_amount_b, decimals_a, decimals_b, coin_a_price, coin_b_price
        )
        pool_valid_tvl = calculate_pool_valid_tvl(
            pool_amount_a, pool_amount_b, decimals_a, decimals_b, coin_a_price, coin_b_price
        )
        pos_valid_rate = _safe_div(pos_valid_tvl, pool_valid_tvl)

        annualize = Decimal(DAYS_PER_YEAR * 100) / Decimal(period_days)

        fee_share = _safe_div(Decimal(delta_liquidity), Decimal(pool_liquidity + delta_liquidity))
        fee_value = Decimal(fee_rate) / Decimal(settings.FEE_RATE_DENOMINATOR) * Decimal(swap_volume) * fee_share
        fee_apr = _safe_div(fee_value, pos_valid_tvl) * annualize

        apr_coe = _safe_div(pos_valid_rate * annualize, pos_valid_tvl)
        rewarder_aprs = tuple(
            _to_units(r.amount, r.decimals) * Decimal(r.price) * apr_coe for r in rewarders
        )

    return PositionAprEstimate(fee_apr, rewarder_aprs)


def est_position_apr_with_multi_method(
    lower_user_price: Number,
    upper_user_price: Number,
    lower_hist_price: Number,
    upper_hist_price: Number
) -> Decimal:
    """multi 방법 APR 배수

    사용자 범위 [lower_user, upper_user]와 과거 실현 범위 [lower_hist, upper_hist]의
    겹침(retro)으로 배수를 계산합니다.

        retro < 0             -> 0
        user == retro         -> hist / retro
        hist == retro         -> retro / user
        그 외                 -> retro² / hist / user
    """
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        lower_user = Decimal(lower_user_price)
        upper_user = Decimal(upper_user_price)
        lower_hist = Decimal(lower_hist_price)
        upper_hist = Decimal(upper_hist_price)

        retro_range = min(upper_user, upper_hist) - max(lower_user, lower_hist)
        user_range = upper_user - lower_user
        hist_range = upper_hist - lower_hist

        if retro_range < 0:
            return Decimal(0)
        if user_range == retro_range:
            return _safe_div(hist_range, retro_range)
        if hist_range == retro_range:
            return _safe_div(retro_range, user_range)
        return _safe_div(_safe_div(retro_range * retro_range, hist_range), user_range)
