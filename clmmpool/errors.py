"""
CLMM 수학 엔진 오류 정의

모든 산술/범위 오류는 즉시 호출자에게 전달됩니다 (엔진 내부에서 복구하지 않음).
각 오류는 발생한 연산 이름과 입력값을 details에 담아 진단에 사용합니다.

스왑 견적의 is_exceeded는 오류가 아니라 결과에 포함되는 상태입니다.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """오류 코드"""
    MULTIPLICATION_OVERFLOW = "MultiplicationOverflow"
    INTEGER_DOWNCAST_OVERFLOW = "IntegerDowncastOverflow"
    SUBTRACTION_UNDERFLOW = "SubtractionUnderflow"
    DIVIDE_BY_ZERO = "DivideByZero"
    INVALID_TICK_INDEX = "InvalidTickIndex"
    INVALID_SQRT_PRICE = "InvalidSqrtPrice"
    INVALID_FIXED_COIN = "InvalidFixedCoin"
    INVALID_TICK_RANGE = "InvalidTickRange"
    INVALID_AMOUNT = "InvalidAmount"


class ClmmMathError(Exception):
    """CLMM 수학 엔진 기본 오류"""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        method_name: Optional[str] = None,
        request_params: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = {
            "method_name": method_name,
            "request_params": dict(request_params or {}),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        method = self.details["method_name"]
        if method:
            return f"[{self.code.value}] {method}: {self.message}"
        return f"[{self.code.value}] {self.message}"


class MathOverflowError(ClmmMathError, ArithmeticError):
    """비트 제한을 초과한 checked 연산"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.MULTIPLICATION_OVERFLOW, **kwargs):
        super().__init__(message, code, **kwargs)


class DivisionByZeroError(ClmmMathError, ZeroDivisionError):
    """분모가 0인 나눗셈"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCode.DIVIDE_BY_ZERO, **kwargs)


class InvalidTickError(ClmmMathError, ValueError):
    """틱이 범위를 벗어났거나 tick_spacing의 배수가 아님"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_TICK_INDEX, **kwargs):
        super().__init__(message, code, **kwargs)


class InvalidSqrtPriceError(ClmmMathError, ValueError):
    """sqrt price가 범위를 벗어남"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCode.INVALID_SQRT_PRICE, **kwargs)


class InvalidAmountError(ClmmMathError, ValueError):
    """수량 입력이 가격 범위와 맞지 않음 (예: 범위 아래에서 coin B 고정)"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_AMOUNT, **kwargs):
        super().__init__(message, code, **kwargs)
