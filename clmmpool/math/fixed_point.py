"""
Fixed Point Math - 오버플로우 검사 정수 연산

온체인 u64/u128/u256 고정소수점 연산을 Python 정수로 재현합니다.
Python 정수는 임의 정밀도이므로 랩어라운드가 일어나지 않습니다.
대신 각 연산 결과를 bit_limit과 비교하여 온체인에서 abort 되었을
경우를 MathOverflowError로 보고합니다.

부호 있는 128비트 값 (liquidity_net 등):
    온체인에서는 u128 슬롯의 최상위 비트(bit 127)를 부호로 사용합니다.
    sign/is_negative/abs_u128/negate는 이 비트 표현을 그대로 다루고,
    I128은 {magnitude, negative} 형태의 태그 타입입니다.
"""

from dataclasses import dataclass
from typing import Union

from ..constants import U128, U128_MAX
from ..errors import DivisionByZeroError, ErrorCode, MathOverflowError


def is_overflow(n: int, bit: int) -> bool:
    """n이 bit 비트 폭을 넘는지 확인 (n >= 2^bit)"""
    return n >= 1 << bit


def _check_bits(value: int, bits: int, method_name: str, **params) -> int:
    if is_overflow(value, bits):
        raise MathOverflowError(
            f"결과가 {bits}비트를 초과합니다",
            method_name=method_name,
            request_params=params,
        )
    return value


def _check_denominator(divisor: int, method_name: str, **params) -> None:
    if divisor == 0:
        raise DivisionByZeroError(
            "분모가 0입니다",
            method_name=method_name,
            request_params=params,
        )


def checked_mul(a: int, b: int, bit_limit: int) -> int:
    """곱셈 (오버플로우 검사)

    Args:
        a: 피승수
        b: 승수
        bit_limit: 허용 비트 폭 (예: 128)

    Returns:
        a * b

    Raises:
        MathOverflowError: a * b >= 2^bit_limit
    """
    return _check_bits(a * b, bit_limit, "checked_mul", a=a, b=b, bit_limit=bit_limit)


def checked_mul_div_floor(a: int, b: int, denom: int, bit_limit: int) -> int:
    """(a * b) / denom 내림"""
    _check_denominator(denom, "checked_mul_div_floor", a=a, b=b, denom=denom)
    return _check_bits(
        (a * b) // denom, bit_limit, "checked_mul_div_floor",
        a=a, b=b, denom=denom, bit_limit=bit_limit,
    )


def checked_mul_div_ceil(a: int, b: int, denom: int, bit_limit: int) -> int:
    """(a * b) / denom 올림 (denom - 1을 더한 뒤 내림)"""
    _check_denominator(denom, "checked_mul_div_ceil", a=a, b=b, denom=denom)
    return _check_bits(
        (a * b + denom - 1) // denom, bit_limit, "checked_mul_div_ceil",
        a=a, b=b, denom=denom, bit_limit=bit_limit,
    )


def checked_mul_div_round(a: int, b: int, denom: int, bit_limit: int) -> int:
    """(a * b) / denom 반올림 (denom / 2를 더한 뒤 내림, half-up)"""
    _check_denominator(denom, "checked_mul_div_round", a=a, b=b, denom=denom)
    return _check_bits(
        (a * b + denom // 2) // denom, bit_limit, "checked_mul_div_round",
        a=a, b=b, denom=denom, bit_limit=bit_limit,
    )


def checked_mul_shift_right(
    a: int,
    b: int,
    shift: int,
    bit_limit: int,
    round_up: bool = False
) -> int:
    """(a * b) >> shift

    2^64 고정소수점 스케일 제거에 사용합니다.

    Args:
        a: 피승수
        b: 승수
        shift: 오른쪽 시프트 비트 수
        bit_limit: 결과 허용 비트 폭
        round_up: True면 잘려나간 하위 비트가 0이 아닐 때 1을 더함

    Returns:
        (a * b) >> shift (round_up에 따라 올림)

    Raises:
        MathOverflowError: 결과가 bit_limit 비트를 초과
    """
    product = a * b
    result = product >> shift
    if round_up and product & ((1 << shift) - 1):
        result += 1
    return _check_bits(
        result, bit_limit, "checked_mul_shift_right",
        a=a, b=b, shift=shift, bit_limit=bit_limit, round_up=round_up,
    )


def checked_mul_shift_left(a: int, b: int, shift: int, bit_limit: int) -> int:
    """(a * b) << shift"""
    return _check_bits(
        (a * b) << shift, bit_limit, "checked_mul_shift_left",
        a=a, b=b, shift=shift, bit_limit=bit_limit,
    )


def div_round_up(a: int, b: int) -> int:
    """a / b 올림 (나머지가 있으면 +1)"""
    _check_denominator(b, "div_round_up", a=a, b=b)
    quotient, remainder = divmod(a, b)
    if remainder:
        quotient += 1
    return quotient


def checked_div_round_up_if(a: int, b: int, round_up: bool) -> int:
    """round_up이면 a / b 올림, 아니면 내림"""
    _check_denominator(b, "checked_div_round_up_if", a=a, b=b)
    if round_up:
        return div_round_up(a, b)
    return a // b


def checked_unsigned_sub(a: int, b: int) -> int:
    """부호 없는 뺄셈 (a < b이면 언더플로우)"""
    if a < b:
        raise MathOverflowError(
            "부호 없는 뺄셈 언더플로우",
            ErrorCode.SUBTRACTION_UNDERFLOW,
            method_name="checked_unsigned_sub",
            request_params={"a": a, "b": b},
        )
    return a - b


def wrapping_sub_u128(a: int, b: int) -> int:
    """u128 랩어라운드 뺄셈

    fee/reward growth 값은 온체인에서 wrapping 연산으로 누적되므로
    차이도 mod 2^128로 계산합니다.
    """
    return (a - b) % U128


# ---------------------------------------------------------------------------
# 부호 있는 128비트 (bit 127 = 부호)
# ---------------------------------------------------------------------------

def sign(v: int) -> int:
    """부호 비트 (1 = 음수)"""
    return (v >> 127) & 1


def is_negative(v: int) -> bool:
    return sign(v) == 1


def u128_neg(v: int) -> int:
    """모든 비트 반전 (all-ones 128비트 마스크와 XOR)"""
    return v ^ U128_MAX


def abs_u128(v: int) -> int:
    """u128 워드의 절대값 (크기)"""
    if is_negative(v):
        return u128_neg(v - 1)
    return v


def negate(v: int) -> int:
    """u128 워드의 2의 보수 부정"""
    if v == 0:
        return 0
    return (u128_neg(v) + 1) & U128_MAX


@dataclass(frozen=True)
class I128:
    """부호 있는 128비트 값 (liquidity_net 등)

    - magnitude: 절대값 (0 ~ 2^127)
    - negative: 음수 여부

    온체인 u128 워드 표현과는 from_bits / to_bits로 변환합니다.
    """
    magnitude: int
    negative: bool = False

    def __post_init__(self):
        limit = 1 << 127
        if self.magnitude < 0 or self.magnitude > limit or (
            self.magnitude == limit and not self.negative
        ):
            raise MathOverflowError(
                f"I128 범위를 벗어났습니다: {self.magnitude}",
                ErrorCode.INTEGER_DOWNCAST_OVERFLOW,
                method_name="I128",
                request_params={"magnitude": self.magnitude, "negative": self.negative},
            )
        # -0은 0으로 정규화
        if self.magnitude == 0 and self.negative:
            object.__setattr__(self, "negative", False)

    @classmethod
    def from_bits(cls, bits: Union[int, str]) -> "I128":
        word = int(bits) & U128_MAX
        if is_negative(word):
            return cls(abs_u128(word), True)
        return cls(word, False)

    @classmethod
    def from_int(cls, value: int) -> "I128":
        return cls(abs(value), value < 0)

    def to_bits(self) -> int:
        if self.negative:
            return negate(self.magnitude)
        return self.magnitude

    def __int__(self) -> int:
        return -self.magnitude if self.negative else self.magnitude

    def __neg__(self) -> "I128":
        return I128(self.magnitude, not self.negative)


def add_liquidity_delta(liquidity: int, delta: I128) -> int:
    """유동성에 부호 있는 델타 적용

    Raises:
        MathOverflowError: 결과가 음수이거나 u128을 초과
    """
    if delta.negative:
        return checked_unsigned_sub(liquidity, delta.magnitude)
    return _check_bits(
        liquidity + delta.magnitude, 128, "add_liquidity_delta",
        liquidity=liquidity, delta=int(delta),
    )
