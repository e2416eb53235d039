"""
Sqrt Price Math - sqrtPriceX64 관련 계산

CLMM 풀의 가격은 sqrtPriceX64 형식으로 저장됩니다.
sqrtPriceX64 = sqrt(price) * 2^64

두 가지 숫자 영역을 분리합니다:
- 프로토콜 영역 (int): 온체인과 동일한 반올림이 필요한 모든 계산
- 표시 영역 (Decimal): 사람이 읽는 가격. to_x64 / from_x64 에서만 경계를 넘습니다.

스왑 스텝 계산에 쓰이는 delta / next sqrt price 함수도 이 모듈에 있습니다.
"""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR, localcontext
from typing import Union

from ..config import settings
from ..constants import Q64, MIN_SQRT_PRICE, MAX_SQRT_PRICE
from ..errors import ErrorCode, InvalidSqrtPriceError, MathOverflowError
from .fixed_point import (
    checked_div_round_up_if,
    checked_mul,
    checked_mul_shift_left,
    div_round_up,
    is_overflow,
)
from .tick_math import (
    get_initializable_tick_index,
    sqrt_price_to_tick_index,
    tick_index_to_sqrt_price,
)

Number = Union[Decimal, int, float, str]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def to_x64(value: Number) -> int:
    """Decimal -> X64 고정소수점 정수 (내림)"""
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        scaled = _to_decimal(value) * Decimal(Q64)
        return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def from_x64(value_x64: int) -> Decimal:
    """X64 고정소수점 정수 -> Decimal"""
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        return Decimal(value_x64) / Decimal(Q64)


def price_to_sqrt_price_x64(price: Number, decimals_a: int, decimals_b: int) -> int:
    """Human-readable 가격을 sqrtPriceX64로 변환

    sqrtPriceX64 = sqrt(price * 10^(decimals_b - decimals_a)) * 2^64

    Args:
        price: 가격 (coin A 1개당 coin B, human-readable)
        decimals_a: coin A 소수점 자릿수
        decimals_b: coin B 소수점 자릿수

    Returns:
        sqrtPriceX64 값 (내림)

    Raises:
        InvalidSqrtPriceError: 가격이 양의 유한값이 아니거나
            결과가 [MIN_SQRT_PRICE, MAX_SQRT_PRICE]를 벗어난 경우
    """
    params = {"price": str(price), "decimals_a": decimals_a, "decimals_b": decimals_b}
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        try:
            adjusted_price = _to_decimal(price) * Decimal(10) ** (decimals_b - decimals_a)
        except InvalidOperation as e:
            raise InvalidSqrtPriceError(
                f"가격을 해석할 수 없습니다: {price}",
                method_name="price_to_sqrt_price_x64",
                request_params=params,
            ) from e
        if not adjusted_price.is_finite() or adjusted_price <= 0:
            raise InvalidSqrtPriceError(
                f"가격은 양의 유한값이어야 합니다: {price}",
                method_name="price_to_sqrt_price_x64",
                request_params=params,
            )
        sqrt_price_x64 = to_x64(adjusted_price.sqrt())

    if sqrt_price_x64 < MIN_SQRT_PRICE or sqrt_price_x64 > MAX_SQRT_PRICE:
        raise InvalidSqrtPriceError(
            f"sqrtPriceX64가 유효 범위를 벗어났습니다: {sqrt_price_x64}",
            method_name="price_to_sqrt_price_x64",
            request_params=params,
        )
    return sqrt_price_x64


def sqrt_price_x64_to_price(sqrt_price_x64: int, decimals_a: int, decimals_b: int) -> Decimal:
    """sqrtPriceX64를 human-readable 가격으로 변환

    가격 = (sqrtPriceX64 / 2^64)^2 * 10^(decimals_a - decimals_b)

    Args:
        sqrt_price_x64: sqrtPriceX64 값
        decimals_a: coin A 소수점 자릿수
        decimals_b: coin B 소수점 자릿수

    Returns:
        가격 (Decimal)
    """
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        sqrt_price = from_x64(sqrt_price_x64)
        return sqrt_price * sqrt_price * Decimal(10) ** (decimals_a - decimals_b)


def tick_index_to_price(tick: int, decimals_a: int, decimals_b: int) -> Decimal:
    """틱을 human-readable 가격으로 변환"""
    return sqrt_price_x64_to_price(tick_index_to_sqrt_price(tick), decimals_a, decimals_b)


def price_to_tick_index(price: Number, decimals_a: int, decimals_b: int) -> int:
    """Human-readable 가격을 틱으로 변환 (내림)"""
    return sqrt_price_to_tick_index(price_to_sqrt_price_x64(price, decimals_a, decimals_b))


def price_to_initializable_tick_index(
    price: Number,
    decimals_a: int,
    decimals_b: int,
    tick_spacing: int
) -> int:
    """Human-readable 가격을 tick_spacing 배수 틱으로 변환"""
    return get_initializable_tick_index(
        price_to_tick_index(price, decimals_a, decimals_b), tick_spacing
    )


def get_delta_a(sqrt_price_0: int, sqrt_price_1: int, liquidity: int, round_up: bool) -> int:
    """두 가격 사이에서 유동성이 나타내는 coin A 양

    공식: Δa = L * |√P_1 - √P_0| * 2^64 / (√P_0 * √P_1)

    Raises:
        MathOverflowError: 결과가 u64를 초과
    """
    sqrt_price_diff = abs(sqrt_price_0 - sqrt_price_1)
    if liquidity == 0 or sqrt_price_diff == 0:
        return 0

    numerator = (liquidity * sqrt_price_diff) << 64
    denominator = sqrt_price_0 * sqrt_price_1
    result = checked_div_round_up_if(numerator, denominator, round_up)

    if is_overflow(result, 64):
        raise MathOverflowError(
            "결과가 u64를 초과합니다",
            ErrorCode.INTEGER_DOWNCAST_OVERFLOW,
            method_name="get_delta_a",
            request_params={"sqrt_price_0": sqrt_price_0, "sqrt_price_1": sqrt_price_1, "liquidity": liquidity},
        )
    return result


def get_delta_b(sqrt_price_0: int, sqrt_price_1: int, liquidity: int, round_up: bool) -> int:
    """두 가격 사이에서 유동성이 나타내는 coin B 양

    공식: Δb = L * |√P_1 - √P_0| / 2^64

    Raises:
        MathOverflowError: 결과가 u64를 초과
    """
    sqrt_price_diff = abs(sqrt_price_0 - sqrt_price_1)
    if liquidity == 0 or sqrt_price_diff == 0:
        return 0

    product = liquidity * sqrt_price_diff
    result = product >> 64
    if round_up and product & (Q64 - 1):
        result += 1

    if is_overflow(result, 64):
        raise MathOverflowError(
            "결과가 u64를 초과합니다",
            ErrorCode.INTEGER_DOWNCAST_OVERFLOW,
            method_name="get_delta_b",
            request_params={"sqrt_price_0": sqrt_price_0, "sqrt_price_1": sqrt_price_1, "liquidity": liquidity},
        )
    return result


def _check_sqrt_price_bounds(next_sqrt_price: int, method_name: str, **params) -> int:
    if next_sqrt_price < MIN_SQRT_PRICE or next_sqrt_price > MAX_SQRT_PRICE:
        raise InvalidSqrtPriceError(
            f"다음 sqrtPriceX64가 유효 범위를 벗어났습니다: {next_sqrt_price}",
            method_name=method_name,
            request_params=params,
        )
    return next_sqrt_price


def get_next_sqrt_price_a_up(sqrt_price: int, liquidity: int, amount: int, by_amount_in: bool) -> int:
    """coin A 변화에 따른 다음 sqrtPriceX64 (올림)

    공식: √P' = √P * L / (L ± amount * √P)  (입력이면 +, 출력이면 -)

    Args:
        sqrt_price: 현재 sqrtPriceX64
        liquidity: 유동성
        amount: coin A 변화량
        by_amount_in: True면 입력 (가격 하락), False면 출력 (가격 상승)

    Returns:
        새로운 sqrtPriceX64
    """
    if amount == 0:
        return sqrt_price

    numerator = checked_mul_shift_left(sqrt_price, liquidity, 64, 256)
    liquidity_shl_64 = liquidity << 64
    product = checked_mul(sqrt_price, amount, 256)

    if by_amount_in:
        denominator = liquidity_shl_64 + product
    else:
        if liquidity_shl_64 <= product:
            raise MathOverflowError(
                "출력 수량이 유동성이 감당할 수 있는 양을 초과합니다",
                ErrorCode.SUBTRACTION_UNDERFLOW,
                method_name="get_next_sqrt_price_a_up",
                request_params={"sqrt_price": sqrt_price, "liquidity": liquidity, "amount": amount},
            )
        denominator = liquidity_shl_64 - product

    return _check_sqrt_price_bounds(
        div_round_up(numerator, denominator), "get_next_sqrt_price_a_up",
        sqrt_price=sqrt_price, liquidity=liquidity, amount=amount, by_amount_in=by_amount_in,
    )


def get_next_sqrt_price_b_down(sqrt_price: int, liquidity: int, amount: int, by_amount_in: bool) -> int:
    """coin B 변화에 따른 다음 sqrtPriceX64 (내림)

    공식: √P' = √P ± amount * 2^64 / L  (입력이면 +, 출력이면 -)
    """
    delta_sqrt_price = checked_div_round_up_if(amount << 64, liquidity, not by_amount_in)
    if by_amount_in:
        next_sqrt_price = sqrt_price + delta_sqrt_price
    else:
        next_sqrt_price = sqrt_price - delta_sqrt_price

    return _check_sqrt_price_bounds(
        next_sqrt_price, "get_next_sqrt_price_b_down",
        sqrt_price=sqrt_price, liquidity=liquidity, amount=amount, by_amount_in=by_amount_in,
    )


def get_next_sqrt_price_from_input(sqrt_price: int, liquidity: int, amount: int, a_to_b: bool) -> int:
    """입력 수량으로부터 다음 sqrtPriceX64"""
    if a_to_b:
        return get_next_sqrt_price_a_up(sqrt_price, liquidity, amount, True)
    return get_next_sqrt_price_b_down(sqrt_price, liquidity, amount, True)


def get_next_sqrt_price_from_output(sqrt_price: int, liquidity: int, amount: int, a_to_b: bool) -> int:
    """출력 수량으로부터 다음 sqrtPriceX64"""
    if a_to_b:
        return get_next_sqrt_price_b_down(sqrt_price, liquidity, amount, False)
    return get_next_sqrt_price_a_up(sqrt_price, liquidity, amount, False)


def get_delta_up_from_input(current_sqrt_price: int, target_sqrt_price: int, liquidity: int, a_to_b: bool) -> int:
    """current -> target 이동에 필요한 입력 수량 (올림)

    a_to_b면 coin A, 아니면 coin B. u64 제한 없이 계산합니다.
    """
    sqrt_price_diff = abs(current_sqrt_price - target_sqrt_price)
    if liquidity <= 0 or sqrt_price_diff == 0:
        return 0

    if a_to_b:
        numerator = (liquidity * sqrt_price_diff) << 64
        return div_round_up(numerator, target_sqrt_price * current_sqrt_price)

    product = liquidity * sqrt_price_diff
    result = product >> 64
    if product & (Q64 - 1):
        result += 1
    return result


def get_delta_down_from_output(current_sqrt_price: int, target_sqrt_price: int, liquidity: int, a_to_b: bool) -> int:
    """current -> target 이동으로 얻는 출력 수량 (내림)

    a_to_b면 coin B, 아니면 coin A.
    """
    sqrt_price_diff = abs(current_sqrt_price - target_sqrt_price)
    if liquidity <= 0 or sqrt_price_diff == 0:
        return 0

    if a_to_b:
        return (liquidity * sqrt_price_diff) >> 64

    numerator = (liquidity * sqrt_price_diff) << 64
    return numerator // (target_sqrt_price * current_sqrt_price)
