"""
Liquidity Math - 유동성 계산

CLMM 풀의 집중화된 유동성(Concentrated Liquidity) 계산.
특정 가격 범위에서의 토큰 수량과 유동성 간의 변환.

핵심 공식 (√P는 sqrtPriceX64 / 2^64):
    a = L * (√P_upper - √P) / (√P * √P_upper)   # coin A
    b = L * (√P - √P_lower)                      # coin B
    L = a * √P_lower * √P_upper / (√P_upper - √P_lower)
    L = b / (√P_upper - √P_lower)

반올림:
    입금은 프로토콜에 유리하게 (올림), 출금은 사용자에게 유리하게 (내림).
"""

import logging
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, localcontext
from enum import Enum
from typing import NamedTuple, Optional, Union

from ..config import settings
from ..errors import ErrorCode, InvalidAmountError, InvalidTickError
from .fixed_point import checked_div_round_up_if
from .sqrt_price_math import sqrt_price_x64_to_price
from .tick_math import (
    sqrt_price_to_tick_index,
    tick_index_to_sqrt_price,
    validate_tick_range,
)

logger = logging.getLogger(__name__)


class CoinAmounts(NamedTuple):
    """유동성에 대응하는 코인 수량 (최소 단위)"""
    amount_a: int
    amount_b: int


class LiquidityInput(NamedTuple):
    """한쪽 수량 고정 시 유동성 견적"""
    coin_amount_a: int
    coin_amount_b: int
    coin_amount_limit_a: int  # 입금이면 최대값, 출금이면 최소값
    coin_amount_limit_b: int
    liquidity_amount: int
    fix_amount_a: bool


class DepositRatio(NamedTuple):
    """가격 범위에 입금할 때의 코인 수량 비율"""
    ratio_a: Decimal
    ratio_b: Decimal
    current_price: Decimal


class PositionStatus(Enum):
    """현재 틱 대비 포지션 위치"""
    BELOW_RANGE = "below_range"
    IN_RANGE = "in_range"
    ABOVE_RANGE = "above_range"


def coin_amounts_from_liquidity(
    liquidity: int,
    current_sqrt_price: int,
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    round_up: bool
) -> CoinAmounts:
    """유동성에서 코인 수량 계산

    Args:
        liquidity: 유동성
        current_sqrt_price: 현재 sqrtPriceX64
        lower_sqrt_price: 하한 sqrtPriceX64
        upper_sqrt_price: 상한 sqrtPriceX64
        round_up: True면 올림 (입금), False면 내림 (출금)

    Returns:
        CoinAmounts (amount_a, amount_b)
    """
    if lower_sqrt_price > upper_sqrt_price:
        lower_sqrt_price, upper_sqrt_price = upper_sqrt_price, lower_sqrt_price

    liquidity_x64 = liquidity << 64

    if current_sqrt_price < lower_sqrt_price:
        # 가격이 범위 아래: coin A만 보유
        amount_a = checked_div_round_up_if(
            liquidity_x64 * (upper_sqrt_price - lower_sqrt_price),
            lower_sqrt_price * upper_sqrt_price,
            round_up,
        )
        amount_b = 0

    elif current_sqrt_price < upper_sqrt_price:
        # 가격이 범위 내: 양쪽 코인 보유
        amount_a = checked_div_round_up_if(
            liquidity_x64 * (upper_sqrt_price - current_sqrt_price),
            current_sqrt_price * upper_sqrt_price,
            round_up,
        )
        amount_b = checked_div_round_up_if(
            liquidity * (current_sqrt_price - lower_sqrt_price), 1 << 64, round_up
        )

    else:
        # 가격이 범위 위: coin B만 보유
        amount_a = 0
        amount_b = checked_div_round_up_if(
            liquidity * (upper_sqrt_price - lower_sqrt_price), 1 << 64, round_up
        )

    return CoinAmounts(amount_a, amount_b)


def estimate_liquidity_for_coin_a(sqrt_price_x: int, sqrt_price_y: int, coin_amount: int) -> int:
    """coin A 수량으로 얻을 수 있는 유동성

    공식: L = a * √P_l * √P_u / (√P_u - √P_l)
    """
    lower_sqrt_price = min(sqrt_price_x, sqrt_price_y)
    upper_sqrt_price = max(sqrt_price_x, sqrt_price_y)

    num = (coin_amount * upper_sqrt_price * lower_sqrt_price) >> 64
    dem = upper_sqrt_price - lower_sqrt_price
    if num == 0 or dem == 0:
        return 0
    return num // dem


def estimate_liquidity_for_coin_b(sqrt_price_x: int, sqrt_price_y: int, coin_amount: int) -> int:
    """coin B 수량으로 얻을 수 있는 유동성

    공식: L = b / (√P_u - √P_l)
    """
    delta = abs(sqrt_price_x - sqrt_price_y)
    if delta == 0:
        return 0
    return (coin_amount << 64) // delta


def liquidity_and_amount_from_one_amount(
    lower_tick: int,
    upper_tick: int,
    fixed_amount: int,
    fix_amount_a: bool,
    is_deposit: bool,
    slippage: Union[Decimal, float, str],
    current_sqrt_price: int,
    tick_spacing: Optional[int] = None
) -> LiquidityInput:
    """한쪽 코인 수량을 고정했을 때의 유동성과 다른 쪽 수량 계산

    틱 비교 규칙:
        current_tick < lower_tick  -> coin A만으로 유동성 계산
        current_tick > upper_tick  -> coin B만으로 유동성 계산
        경계와 같으면 범위 내로 취급

    슬리피지:
        입금 (is_deposit=True): 올림, limit = ceil(amount * (1 + slippage))
        출금 (is_deposit=False): 내림, limit = floor(amount * (1 - slippage))

    Args:
        lower_tick: 하한 틱
        upper_tick: 상한 틱
        fixed_amount: 고정할 코인 수량
        fix_amount_a: True면 coin A 고정, False면 coin B 고정
        is_deposit: 입금 여부
        slippage: 슬리피지 (비율, 예: 0.01 = 1%)
        current_sqrt_price: 현재 sqrtPriceX64
        tick_spacing: 주어지면 틱이 tick_spacing 배수인지 검사

    Returns:
        LiquidityInput

    Raises:
        InvalidTickError: 틱 범위가 유효하지 않은 경우
        InvalidAmountError: 범위 밖에서 보유할 수 없는 코인을 고정한 경우
    """
    validate_tick_range(lower_tick, upper_tick, tick_spacing)

    current_tick = sqrt_price_to_tick_index(current_sqrt_price)
    lower_sqrt_price = tick_index_to_sqrt_price(lower_tick)
    upper_sqrt_price = tick_index_to_sqrt_price(upper_tick)
    params = {
        "lower_tick": lower_tick,
        "upper_tick": upper_tick,
        "fixed_amount": fixed_amount,
        "fix_amount_a": fix_amount_a,
        "current_sqrt_price": current_sqrt_price,
    }

    if current_tick < lower_tick:
        if not fix_amount_a:
            raise InvalidAmountError(
                "가격이 범위 아래에 있으면 coin B로 유동성을 계산할 수 없습니다",
                ErrorCode.INVALID_FIXED_COIN,
                method_name="liquidity_and_amount_from_one_amount",
                request_params=params,
            )
        liquidity = estimate_liquidity_for_coin_a(lower_sqrt_price, upper_sqrt_price, fixed_amount)
    elif current_tick > upper_tick:
        if fix_amount_a:
            raise InvalidAmountError(
                "가격이 범위 위에 있으면 coin A로 유동성을 계산할 수 없습니다",
                ErrorCode.INVALID_FIXED_COIN,
                method_name="liquidity_and_amount_from_one_amount",
                request_params=params,
            )
        liquidity = estimate_liquidity_for_coin_b(upper_sqrt_price, lower_sqrt_price, fixed_amount)
    elif fix_amount_a:
        liquidity = estimate_liquidity_for_coin_a(current_sqrt_price, upper_sqrt_price, fixed_amount)
    else:
        liquidity = estimate_liquidity_for_coin_b(current_sqrt_price, lower_sqrt_price, fixed_amount)

    amount_a, amount_b = coin_amounts_from_liquidity(
        liquidity, current_sqrt_price, lower_sqrt_price, upper_sqrt_price, is_deposit
    )

    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        slippage = Decimal(repr(slippage)) if isinstance(slippage, float) else Decimal(slippage)
        if is_deposit:
            factor, rounding = 1 + slippage, ROUND_CEILING
        else:
            factor, rounding = 1 - slippage, ROUND_FLOOR
        limit_a = int((amount_a * factor).to_integral_value(rounding=rounding))
        limit_b = int((amount_b * factor).to_integral_value(rounding=rounding))

    logger.debug(
        "one-amount liquidity: tick=%d range=[%d, %d] liquidity=%d amounts=(%d, %d)",
        current_tick, lower_tick, upper_tick, liquidity, amount_a, amount_b,
    )

    return LiquidityInput(
        coin_amount_a=amount_a,
        coin_amount_b=amount_b,
        coin_amount_limit_a=limit_a,
        coin_amount_limit_b=limit_b,
        liquidity_amount=liquidity,
        fix_amount_a=fix_amount_a,
    )


def estimate_liquidity_from_coin_amounts(
    current_sqrt_price: int,
    lower_tick: int,
    upper_tick: int,
    amount_a: int,
    amount_b: int
) -> int:
    """두 코인 수량으로 민트 가능한 최대 유동성 (두 제약 조건 중 작은 값)"""
    if lower_tick > upper_tick:
        raise InvalidTickError(
            f"하한 틱이 상한 틱보다 클 수 없습니다: {lower_tick} > {upper_tick}",
            ErrorCode.INVALID_TICK_RANGE,
            method_name="estimate_liquidity_from_coin_amounts",
            request_params={"lower_tick": lower_tick, "upper_tick": upper_tick},
        )

    current_tick = sqrt_price_to_tick_index(current_sqrt_price)
    lower_sqrt_price = tick_index_to_sqrt_price(lower_tick)
    upper_sqrt_price = tick_index_to_sqrt_price(upper_tick)

    if current_tick < lower_tick:
        return estimate_liquidity_for_coin_a(lower_sqrt_price, upper_sqrt_price, amount_a)
    if current_tick >= upper_tick:
        return estimate_liquidity_for_coin_b(upper_sqrt_price, lower_sqrt_price, amount_b)

    liquidity_a = estimate_liquidity_for_coin_a(current_sqrt_price, upper_sqrt_price, amount_a)
    liquidity_b = estimate_liquidity_for_coin_b(current_sqrt_price, lower_sqrt_price, amount_b)
    return min(liquidity_a, liquidity_b)


def get_position_status(current_tick: int, lower_tick: int, upper_tick: int) -> PositionStatus:
    if current_tick < lower_tick:
        return PositionStatus.BELOW_RANGE
    if current_tick < upper_tick:
        return PositionStatus.IN_RANGE
    return PositionStatus.ABOVE_RANGE


def calculate_amount_deposit_ratio(
    lower_tick: int,
    upper_tick: int,
    current_sqrt_price: int,
    decimals_a: int,
    decimals_b: int
) -> DepositRatio:
    """범위에 입금할 때의 coin A / coin B 수량 비율 (human-readable 단위)

    coin A 1개를 고정했을 때 필요한 coin B 수량으로 비율을 구합니다.
    """
    current_price = sqrt_price_x64_to_price(current_sqrt_price, decimals_a, decimals_b)
    current_tick = sqrt_price_to_tick_index(current_sqrt_price)

    if current_tick < lower_tick:
        return DepositRatio(Decimal(1), Decimal(0), current_price)
    if current_tick > upper_tick:
        return DepositRatio(Decimal(0), Decimal(1), current_price)

    coin_amount_a = 10 ** decimals_a
    quote = liquidity_and_amount_from_one_amount(
        lower_tick, upper_tick, coin_amount_a, True, True, 0, current_sqrt_price
    )

    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        amount_a = Decimal(coin_amount_a).scaleb(-decimals_a)
        amount_b = Decimal(quote.coin_amount_b).scaleb(-decimals_b)
        total_amount = amount_a + amount_b
        return DepositRatio(amount_a / total_amount, amount_b / total_amount, current_price)


def coin_amounts_from_total_value(
    lower_tick: int,
    upper_tick: int,
    current_sqrt_price: int,
    total_value: Union[Decimal, str],
    token_price_a: Union[Decimal, str],
    token_price_b: Union[Decimal, str],
    decimals_a: int,
    decimals_b: int
) -> CoinAmounts:
    """총 가치(예: USD)를 범위 비율에 맞게 coin A / coin B 수량으로 분배

    가격이 0인 코인의 수량은 0으로 처리합니다.
    """
    ratio = calculate_amount_deposit_ratio(
        lower_tick, upper_tick, current_sqrt_price, decimals_a, decimals_b
    )

    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        price_a = Decimal(token_price_a)
        price_b = Decimal(token_price_b)
        value_a = ratio.ratio_a * price_a
        value_b = ratio.ratio_b * price_b
        total_weight = value_a + value_b
        if total_weight == 0:
            return CoinAmounts(0, 0)

        total_value = Decimal(total_value)
        amount_a = Decimal(0)
        amount_b = Decimal(0)
        if price_a != 0:
            amount_a = (total_value * value_a / total_weight / price_a).scaleb(decimals_a)
        if price_b != 0:
            amount_b = (total_value * value_b / total_weight / price_b).scaleb(decimals_b)

        return CoinAmounts(
            int(amount_a.to_integral_value(rounding=ROUND_FLOOR)),
            int(amount_b.to_integral_value(rounding=ROUND_FLOOR)),
        )
