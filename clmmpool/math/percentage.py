"""
Percentage - 슬리피지 비율 표현

정수 분수 (numerator / denominator)로 슬리피지를 표현하여
수량 한계 계산을 정수 연산으로 유지합니다.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Tuple, Union

from ..errors import DivisionByZeroError


class Percentage(NamedTuple):
    """numerator / denominator 비율"""
    numerator: int
    denominator: int

    @classmethod
    def from_fraction(cls, numerator: int, denominator: int) -> "Percentage":
        if denominator == 0:
            raise DivisionByZeroError(
                "분모가 0입니다",
                method_name="Percentage.from_fraction",
                request_params={"numerator": numerator, "denominator": denominator},
            )
        return cls(int(numerator), int(denominator))

    @classmethod
    def from_decimal(cls, percent: Union[Decimal, int, float, str]) -> "Percentage":
        """퍼센트 값 (예: 0.5 = 0.5%)에서 생성. 소수점 첫째 자리까지 사용"""
        value = Decimal(repr(percent)) if isinstance(percent, float) else Decimal(percent)
        tenths = value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP) * 10
        return cls.from_fraction(int(tenths), 1000)

    def to_decimal(self) -> Decimal:
        """퍼센트 값으로 변환 (예: 5/1000 -> 0.5)"""
        return Decimal(self.numerator) / Decimal(self.denominator) * 100

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


def adjust_for_slippage(n: int, slippage: Percentage, adjust_up: bool) -> int:
    """슬리피지 적용

    - adjust_up: n * (den + num) / den  (최대 수량, 입금/입력 한계)
    - 아니면: n * den / (den + num)     (최소 수량, 출금/출력 한계)
    """
    numerator, denominator = slippage
    if adjust_up:
        return n * (denominator + numerator) // denominator
    return n * denominator // (denominator + numerator)


def adjust_for_coin_slippage(
    amount_a: int,
    amount_b: int,
    slippage: Percentage,
    adjust_up: bool
) -> Tuple[int, int]:
    """두 코인 수량에 슬리피지 적용 -> (limit_a, limit_b)"""
    return (
        adjust_for_slippage(amount_a, slippage, adjust_up),
        adjust_for_slippage(amount_b, slippage, adjust_up),
    )
