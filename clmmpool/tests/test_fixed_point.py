"""
Fixed Point Math 테스트

오버플로우 검사 정수 연산과 부호 있는 128비트 값을 테스트합니다.
"""

import pytest

from ..math.fixed_point import (
    I128,
    abs_u128,
    add_liquidity_delta,
    checked_div_round_up_if,
    checked_mul,
    checked_mul_div_ceil,
    checked_mul_div_floor,
    checked_mul_div_round,
    checked_mul_shift_left,
    checked_mul_shift_right,
    checked_unsigned_sub,
    div_round_up,
    is_negative,
    negate,
    sign,
    u128_neg,
    wrapping_sub_u128,
)
from ..constants import U128_MAX
from ..errors import (
    ClmmMathError,
    DivisionByZeroError,
    ErrorCode,
    MathOverflowError,
)


class TestCheckedMul:
    """checked_mul 테스트"""

    def test_overflow_at_limit(self):
        """2^64 * 2^64 = 2^128은 128비트를 초과"""
        with pytest.raises(MathOverflowError):
            checked_mul(2**64, 2**64, 128)

    def test_just_below_limit(self):
        """(2^64 - 1) * 2^64 < 2^128"""
        assert checked_mul(2**64 - 1, 2**64, 128) == (2**64 - 1) * 2**64

    def test_error_details(self):
        """오류에 연산 이름과 입력값이 포함됨"""
        with pytest.raises(MathOverflowError) as exc_info:
            checked_mul(2**64, 2**64, 128)

        err = exc_info.value
        assert err.code == ErrorCode.MULTIPLICATION_OVERFLOW
        assert err.details["method_name"] == "checked_mul"
        assert err.details["request_params"]["bit_limit"] == 128
        assert err.to_dict()["code"] == "MultiplicationOverflow"
        assert "checked_mul" in str(err)

    def test_error_hierarchy(self):
        """MathOverflowError는 ArithmeticError이기도 함"""
        with pytest.raises(ArithmeticError):
            checked_mul(2**100, 2**100, 128)
        with pytest.raises(ClmmMathError):
            checked_mul(2**100, 2**100, 128)


class TestMulDiv:
    """checked_mul_div_* 반올림 테스트"""

    def test_floor(self):
        assert checked_mul_div_floor(7, 3, 2, 64) == 10
        assert checked_mul_div_floor(7, 1, 4, 64) == 1

    def test_ceil(self):
        assert checked_mul_div_ceil(7, 3, 2, 64) == 11
        assert checked_mul_div_ceil(7, 1, 4, 64) == 2
        # 나누어 떨어지면 올림하지 않음
        assert checked_mul_div_ceil(8, 1, 4, 64) == 2

    def test_round_half_up(self):
        assert checked_mul_div_round(7, 3, 2, 64) == 11
        assert checked_mul_div_round(7, 1, 4, 64) == 2
        assert checked_mul_div_round(5, 1, 4, 64) == 1

    def test_division_by_zero(self):
        """분모 0은 DivisionByZeroError (ZeroDivisionError 호환)"""
        with pytest.raises(DivisionByZeroError):
            checked_mul_div_floor(1, 1, 0, 64)
        with pytest.raises(ZeroDivisionError):
            checked_mul_div_ceil(1, 1, 0, 64)

    def test_result_overflow(self):
        with pytest.raises(MathOverflowError):
            checked_mul_div_floor(2**64, 2**64, 1, 64)

    def test_error_details_keep_inputs(self):
        """denom / bit_limit 입력값이 오류 details에 그대로 남음"""
        with pytest.raises(MathOverflowError) as exc_info:
            checked_mul_div_ceil(2**64, 2**64, 1, 64)
        params = exc_info.value.details["request_params"]
        assert params["denom"] == 1
        assert params["bit_limit"] == 64

        with pytest.raises(DivisionByZeroError) as exc_info:
            checked_mul_div_round(3, 4, 0, 64)
        assert exc_info.value.details["request_params"]["denom"] == 0
        assert exc_info.value.details["method_name"] == "checked_mul_div_round"


class TestShift:
    """checked_mul_shift_* 테스트"""

    def test_shift_right_floor(self):
        """3 * 2^63 >> 64 = 1.5 -> 1"""
        assert checked_mul_shift_right(3, 2**63, 64, 64) == 1

    def test_shift_right_round_up(self):
        assert checked_mul_shift_right(3, 2**63, 64, 64, round_up=True) == 2
        # 나누어 떨어지면 올림하지 않음
        assert checked_mul_shift_right(2, 2**63, 64, 64, round_up=True) == 1

    def test_shift_right_overflow(self):
        with pytest.raises(MathOverflowError):
            checked_mul_shift_right(2**64, 2**64, 64, 64)

    def test_shift_right_error_details(self):
        with pytest.raises(MathOverflowError) as exc_info:
            checked_mul_shift_right(2**64, 2**64, 64, 64, round_up=True)
        params = exc_info.value.details["request_params"]
        assert params["shift"] == 64
        assert params["bit_limit"] == 64
        assert params["round_up"] is True

    def test_shift_left(self):
        assert checked_mul_shift_left(1, 1, 127, 128) == 2**127
        with pytest.raises(MathOverflowError):
            checked_mul_shift_left(1, 1, 128, 128)


class TestDivision:
    """div_round_up / checked_div_round_up_if 테스트"""

    def test_div_round_up(self):
        assert div_round_up(10, 3) == 4
        assert div_round_up(9, 3) == 3

    def test_round_up_if(self):
        assert checked_div_round_up_if(10, 3, True) == 4
        assert checked_div_round_up_if(10, 3, False) == 3

    def test_div_by_zero(self):
        with pytest.raises(DivisionByZeroError):
            div_round_up(1, 0)


class TestSubtraction:
    """부호 없는 뺄셈 테스트"""

    def test_underflow(self):
        with pytest.raises(MathOverflowError) as exc_info:
            checked_unsigned_sub(1, 2)
        assert exc_info.value.code == ErrorCode.SUBTRACTION_UNDERFLOW

    def test_normal(self):
        assert checked_unsigned_sub(5, 5) == 0

    def test_wrapping(self):
        """growth 차이는 mod 2^128"""
        assert wrapping_sub_u128(0, 1) == U128_MAX
        assert wrapping_sub_u128(10, 3) == 7


class TestSignedBits:
    """u128 워드의 부호 비트 연산 테스트"""

    def test_sign(self):
        assert sign(2**127) == 1
        assert sign(2**127 - 1) == 0
        assert is_negative(2**128 - 5)
        assert not is_negative(5)

    def test_negate(self):
        assert negate(5) == 2**128 - 5
        assert negate(negate(5)) == 5
        assert negate(0) == 0

    def test_abs(self):
        assert abs_u128(2**128 - 5) == 5
        assert abs_u128(5) == 5

    def test_u128_neg(self):
        assert u128_neg(0) == U128_MAX
        assert u128_neg(U128_MAX) == 0


class TestI128:
    """I128 테스트"""

    def test_from_bits_negative(self):
        value = I128.from_bits(2**128 - 5)
        assert value == I128(5, True)
        assert int(value) == -5

    def test_from_bits_string(self):
        assert I128.from_bits(str(2**128 - 1)) == I128(1, True)

    def test_to_bits(self):
        assert I128.from_int(-5).to_bits() == 2**128 - 5
        assert I128.from_int(7).to_bits() == 7

    def test_min_value(self):
        """-2^127은 표현 가능, +2^127은 불가"""
        assert I128(2**127, True).to_bits() == 2**127
        with pytest.raises(MathOverflowError):
            I128(2**127)

    def test_negative_zero(self):
        assert I128(0, True) == I128(0)
        assert not I128(0, True).negative

    def test_neg(self):
        assert -I128(5) == I128(5, True)
        assert -I128(5, True) == I128(5)


class TestAddLiquidityDelta:
    """add_liquidity_delta 테스트"""

    def test_add_and_sub(self):
        assert add_liquidity_delta(10, I128(3)) == 13
        assert add_liquidity_delta(10, I128(3, True)) == 7

    def test_negative_result(self):
        with pytest.raises(MathOverflowError):
            add_liquidity_delta(10, I128(11, True))

    def test_u128_overflow(self):
        with pytest.raises(MathOverflowError):
            add_liquidity_delta(U128_MAX, I128(1))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
