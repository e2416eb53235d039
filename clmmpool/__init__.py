"""
CLMM Fixed-Point Math Engine

온체인 컨트랙트와 동일한 반올림/오버플로우 규칙으로
집중화된 유동성(CLMM) 풀의 가격, 유동성, 스왑, APR을 계산하는 라이브러리.
sqrt price는 Q64.64 (sqrt(price) * 2^64) 형식을 사용합니다.
"""

import logging

from .config import settings

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
logging.getLogger(__name__).setLevel(settings.LOG_LEVEL)

from .constants import (  # noqa: E402
    Q64,
    MIN_TICK,
    MAX_TICK,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
)
from .errors import (  # noqa: E402
    ClmmMathError,
    MathOverflowError,
    DivisionByZeroError,
    InvalidTickError,
    InvalidSqrtPriceError,
    InvalidAmountError,
)
# math를 data보다 먼저 로드 (swap_math / fee_math가 data.types를 참조)
from .math import (  # noqa: E402
    tick_index_to_sqrt_price,
    sqrt_price_to_tick_index,
    coin_amounts_from_liquidity,
    liquidity_and_amount_from_one_amount,
    calculate_swap_quote,
    pre_swap,
)
from .data import TickData, PoolSnapshot, PositionSnapshot  # noqa: E402
