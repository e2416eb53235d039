"""
Swap Math - 스왑 시뮬레이션

온체인 스왑 실행 경로를 트랜잭션 없이 재현합니다.

스텝 단위 진행:
    1. 다음 초기화된 틱(또는 가격 한계)까지를 한 스텝으로 계산
    2. 남은 수량이 스텝 안에서 소진되면 스텝 내부의 최종 가격을 구하고 종료
    3. 틱 경계에 도달하면 liquidity_net을 적용하고 다음 틱으로 진행
    4. 틱 배열이 소진되면 남은 수량과 함께 종료 (is_exceeded)

수수료 규칙 (온체인 컨트랙트와 동일):
    - 입력 수량 기준(by_amount_in)이면 수수료를 먼저 떼고 남은 양으로 스텝을 계산
    - 남은 양이 경계까지 필요한 양과 정확히 같으면 경계를 넘은 것으로 처리
    - 결과의 amount_in은 수수료를 포함한 총 입력량
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Iterable, List, NamedTuple, Optional

from ..config import settings
from ..constants import COMPUTE_UNITS_PER_TICK, FREE_CROSS_TICKS
from ..data.types import PoolSnapshot, TickData
from .fixed_point import (
    add_liquidity_delta,
    checked_mul_div_ceil,
    checked_mul_div_floor,
    checked_unsigned_sub,
)
from .percentage import Percentage, adjust_for_slippage
from .sqrt_price_math import (
    get_delta_down_from_output,
    get_delta_up_from_input,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
    sqrt_price_x64_to_price,
)
from .tick_math import get_default_sqrt_price_limit

logger = logging.getLogger(__name__)


class SwapStepResult(NamedTuple):
    """한 스텝의 계산 결과 (amount_in은 수수료 제외)"""
    amount_in: int
    amount_out: int
    next_sqrt_price: int
    fee_amount: int


class SwapResult(NamedTuple):
    """틱 배열 시뮬레이션 결과 (amount_in은 수수료 포함)"""
    amount_in: int
    amount_out: int
    fee_amount: int
    end_sqrt_price: int
    ticks_crossed: int
    is_exceeded: bool


@dataclass(frozen=True)
class SwapQuote:
    """스왑 견적

    is_exceeded는 오류가 아니라 요청 수량을 주어진 틱 범위 안에서
    채울 수 없었다는 상태입니다.
    """
    amount_in: int
    amount_out: int
    end_sqrt_price: int
    fee_amount: int
    is_exceeded: bool
    ticks_crossed: int
    a_to_b: bool
    by_amount_in: bool
    amount: int
    price_impact_pct: Decimal = Decimal(0)
    extra_compute_limit: int = 0

    def amount_limit(self, slippage: Percentage) -> int:
        """슬리피지를 적용한 반대쪽 수량 한계

        - 입력 고정: 최소 출력량
        - 출력 고정: 최대 입력량
        """
        if self.by_amount_in:
            return adjust_for_slippage(self.amount_out, slippage, False)
        return adjust_for_slippage(self.amount_in, slippage, True)


def compute_swap_step(
    current_sqrt_price: int,
    target_sqrt_price: int,
    liquidity: int,
    amount: int,
    fee_rate: int,
    by_amount_in: bool
) -> SwapStepResult:
    """단일 유동성 구간에서의 스왑 스텝

    방향은 current_sqrt_price >= target_sqrt_price 이면 a -> b 입니다.

    Args:
        current_sqrt_price: 현재 sqrtPriceX64
        target_sqrt_price: 스텝 목표 sqrtPriceX64 (다음 틱 또는 가격 한계)
        liquidity: 구간의 활성 유동성
        amount: 남은 수량 (입력 고정이면 수수료 포함 입력량, 아니면 출력량)
        fee_rate: 수수료율 (settings.FEE_RATE_DENOMINATOR 기준)
        by_amount_in: 입력 수량 고정 여부

    Returns:
        SwapStepResult
    """
    if liquidity == 0:
        return SwapStepResult(0, 0, target_sqrt_price, 0)

    denominator = settings.FEE_RATE_DENOMINATOR
    fee_complement = checked_unsigned_sub(denominator, fee_rate)
    a_to_b = current_sqrt_price >= target_sqrt_price

    if by_amount_in:
        amount_remain = checked_mul_div_floor(amount, fee_complement, denominator, 64)
        max_amount_in = get_delta_up_from_input(current_sqrt_price, target_sqrt_price, liquidity, a_to_b)
        if max_amount_in > amount_remain:
            amount_in = amount_remain
            fee_amount = checked_unsigned_sub(amount, amount_remain)
            next_sqrt_price = get_next_sqrt_price_from_input(current_sqrt_price, liquidity, amount_remain, a_to_b)
        else:
            amount_in = max_amount_in
            fee_amount = checked_mul_div_ceil(amount_in, fee_rate, fee_complement, 64)
            next_sqrt_price = target_sqrt_price
        amount_out = get_delta_down_from_output(current_sqrt_price, next_sqrt_price, liquidity, a_to_b)
    else:
        max_amount_out = get_delta_down_from_output(current_sqrt_price, target_sqrt_price, liquidity, a_to_b)
        if max_amount_out > amount:
            amount_out = amount
            next_sqrt_price = get_next_sqrt_price_from_output(current_sqrt_price, liquidity, amount, a_to_b)
        else:
            amount_out = max_amount_out
            next_sqrt_price = target_sqrt_price
        amount_in = get_delta_up_from_input(current_sqrt_price, next_sqrt_price, liquidity, a_to_b)
        fee_amount = checked_mul_div_ceil(amount_in, fee_rate, fee_complement, 64)

    return SwapStepResult(amount_in, amount_out, next_sqrt_price, fee_amount)


def compute_swap(
    a_to_b: bool,
    by_amount_in: bool,
    amount: int,
    pool: PoolSnapshot,
    ticks: Iterable[TickData]
) -> SwapResult:
    """틱 배열을 따라 스왑 시뮬레이션

    ticks는 스왑 방향으로 정렬되어 있어야 합니다 (a -> b면 내림차순, b -> a면 오름차순).
    스냅샷은 변경하지 않습니다.

    Args:
        a_to_b: coin A -> coin B 방향 여부
        by_amount_in: 입력 수량 고정 여부
        amount: 요청 수량
        pool: 풀 스냅샷
        ticks: 정렬된 초기화된 틱

    Returns:
        SwapResult
    """
    remaining = amount
    liquidity = pool.liquidity
    current_sqrt_price = pool.current_sqrt_price
    sqrt_price_limit = get_default_sqrt_price_limit(a_to_b)

    total_in = 0
    total_out = 0
    total_fee = 0
    ticks_crossed = 0

    for tick in ticks:
        if remaining == 0 or current_sqrt_price == sqrt_price_limit:
            break
        if a_to_b and pool.current_tick_index < tick.index:
            continue
        if not a_to_b and pool.current_tick_index >= tick.index:
            continue

        if (a_to_b and sqrt_price_limit > tick.sqrt_price) or (
            not a_to_b and sqrt_price_limit < tick.sqrt_price
        ):
            target_sqrt_price = sqrt_price_limit
        else:
            target_sqrt_price = tick.sqrt_price

        step = compute_swap_step(
            current_sqrt_price, target_sqrt_price, liquidity, remaining, pool.fee_rate, by_amount_in
        )
        logger.debug(
            "swap step: tick=%d sqrt_price=%d -> %d liquidity=%d in=%d out=%d fee=%d",
            tick.index, current_sqrt_price, step.next_sqrt_price, liquidity,
            step.amount_in, step.amount_out, step.fee_amount,
        )

        if step.amount_in != 0 or step.fee_amount != 0:
            if by_amount_in:
                remaining = checked_unsigned_sub(remaining, step.amount_in + step.fee_amount)
            else:
                remaining = checked_unsigned_sub(remaining, step.amount_out)

        total_in += step.amount_in
        total_out += step.amount_out
        total_fee += step.fee_amount

        if step.next_sqrt_price == tick.sqrt_price:
            # 아래로 지나면 liquidity_net을 빼고, 위로 지나면 더함
            delta = -tick.liquidity_net if a_to_b else tick.liquidity_net
            liquidity = add_liquidity_delta(liquidity, delta)
            current_sqrt_price = tick.sqrt_price
            ticks_crossed += 1
            logger.debug("crossed tick %d, liquidity=%d", tick.index, liquidity)
        else:
            current_sqrt_price = step.next_sqrt_price

    return SwapResult(
        amount_in=total_in + total_fee,
        amount_out=total_out,
        fee_amount=total_fee,
        end_sqrt_price=current_sqrt_price,
        ticks_crossed=ticks_crossed,
        is_exceeded=remaining > 0,
    )


def sort_ticks_for_swap(ticks: Iterable[TickData], a_to_b: bool) -> List[TickData]:
    """스왑 방향으로 틱 정렬 (a -> b면 내림차순)"""
    return sorted(ticks, key=lambda t: t.index, reverse=a_to_b)


def _price_impact_pct(pool: PoolSnapshot, end_sqrt_price: int) -> Decimal:
    pre_price = sqrt_price_x64_to_price(pool.current_sqrt_price, pool.decimals_a, pool.decimals_b)
    after_price = sqrt_price_x64_to_price(end_sqrt_price, pool.decimals_a, pool.decimals_b)
    if pre_price == 0:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = settings.DECIMAL_PRECISION
        return abs(pre_price - after_price) / pre_price * 100


def _extra_compute_limit(ticks_crossed: int) -> int:
    if FREE_CROSS_TICKS < ticks_crossed < settings.MAX_CROSS_TICKS:
        return COMPUTE_UNITS_PER_TICK * (ticks_crossed - FREE_CROSS_TICKS)
    return 0


def calculate_swap_quote(
    pool: PoolSnapshot,
    ticks: Optional[Iterable[TickData]],
    a_to_b: bool,
    by_amount_in: bool,
    amount: int
) -> SwapQuote:
    """틱 배열 기반 스왑 견적

    ticks가 None이면 pool.ticks를 사용합니다. 정렬은 이 함수가 수행합니다.

    is_exceeded 조건:
        - 요청 수량을 다 채우지 못함
        - 종료 가격이 기본 가격 한계를 넘어섬
        - 크로싱한 틱 수가 settings.MAX_CROSS_TICKS를 초과
    """
    sorted_ticks = sort_ticks_for_swap(pool.ticks if ticks is None else ticks, a_to_b)
    result = compute_swap(a_to_b, by_amount_in, amount, pool, sorted_ticks)

    filled = result.amount_in if by_amount_in else result.amount_out
    is_exceeded = result.is_exceeded or filled < amount

    sqrt_price_limit = get_default_sqrt_price_limit(a_to_b)
    if a_to_b and result.end_sqrt_price < sqrt_price_limit:
        is_exceeded = True
    if not a_to_b and result.end_sqrt_price > sqrt_price_limit:
        is_exceeded = True
    if result.ticks_crossed > settings.MAX_CROSS_TICKS:
        is_exceeded = True

    if is_exceeded:
        logger.warning(
            "swap quote exceeded: a_to_b=%s by_amount_in=%s amount=%d filled=%d ticks_crossed=%d",
            a_to_b, by_amount_in, amount, filled, result.ticks_crossed,
        )

    return SwapQuote(
        amount_in=result.amount_in,
        amount_out=result.amount_out,
        end_sqrt_price=result.end_sqrt_price,
        fee_amount=result.fee_amount,
        is_exceeded=is_exceeded,
        ticks_crossed=result.ticks_crossed,
        a_to_b=a_to_b,
        by_amount_in=by_amount_in,
        amount=amount,
        price_impact_pct=_price_impact_pct(pool, result.end_sqrt_price),
        extra_compute_limit=_extra_compute_limit(result.ticks_crossed),
    )


def pre_swap(
    pool: PoolSnapshot,
    a_to_b: bool,
    by_amount_in: bool,
    amount: int
) -> SwapQuote:
    """틱 배열 없이 풀의 현재 유동성만으로 계산하는 단일 스텝 견적

    가격 한계까지 유동성이 일정하다고 가정합니다. 스왑이 한 틱 구간 안에서
    끝나면 calculate_swap_quote와 amount_in / amount_out이 정확히 일치합니다.
    """
    sqrt_price_limit = get_default_sqrt_price_limit(a_to_b)
    if amount == 0:
        step = SwapStepResult(0, 0, pool.current_sqrt_price, 0)
    else:
        step = compute_swap_step(
            pool.current_sqrt_price, sqrt_price_limit, pool.liquidity, amount, pool.fee_rate, by_amount_in
        )

    amount_in = step.amount_in + step.fee_amount
    filled = amount_in if by_amount_in else step.amount_out
    is_exceeded = filled < amount or (amount > 0 and step.next_sqrt_price == sqrt_price_limit)

    return SwapQuote(
        amount_in=amount_in,
        amount_out=step.amount_out,
        end_sqrt_price=step.next_sqrt_price,
        fee_amount=step.fee_amount,
        is_exceeded=is_exceeded,
        ticks_crossed=0,
        a_to_b=a_to_b,
        by_amount_in=by_amount_in,
        amount=amount,
        price_impact_pct=_price_impact_pct(pool, step.next_sqrt_price),
    )
