"""
Math layer for the CLMM math engine

온체인 수준 정밀도의 수학 함수들:
- fixed_point: 오버플로우 검사 정수 연산, 부호 있는 128비트 값
- tick_math: Tick ↔ sqrtPriceX64 변환
- sqrt_price_math: 가격 변환, 스왑 스텝 delta 계산
- liquidity_math: 유동성 ↔ 코인 수량
- percentage: 슬리피지
- swap_math: 스왑 시뮬레이션
- fee_math: 수수료/보상 누적
- apr: APR 추정
"""

from .fixed_point import (
    I128,
    checked_mul,
    checked_mul_div_floor,
    checked_mul_div_ceil,
    checked_mul_div_round,
    checked_mul_shift_right,
    div_round_up,
)
from .tick_math import (
    tick_index_to_sqrt_price,
    sqrt_price_to_tick_index,
    get_prev_initializable_tick,
    get_next_initializable_tick,
    get_tick_side,
    get_default_other_amount_threshold,
    TickSide,
)
from .sqrt_price_math import (
    price_to_sqrt_price_x64,
    sqrt_price_x64_to_price,
    tick_index_to_price,
    price_to_tick_index,
)
from .liquidity_math import (
    CoinAmounts,
    LiquidityInput,
    coin_amounts_from_liquidity,
    liquidity_and_amount_from_one_amount,
    estimate_liquidity_from_coin_amounts,
)
from .percentage import Percentage, adjust_for_slippage
from .swap_math import (
    SwapQuote,
    compute_swap_step,
    compute_swap,
    calculate_swap_quote,
    pre_swap,
)
from .fee_math import collect_fees_quote, collect_rewards_quote
from .apr import (
    est_pool_apr,
    est_position_apr_with_delta_method,
    est_position_apr_with_multi_method,
)
