"""
Tick Math - Tick ↔ SqrtPriceX64 변환

CLMM 풀의 틱 수학 함수들. 온체인 컨트랙트와 동일한 정밀도로 구현.

핵심 공식:
    price = 1.0001^tick
    sqrtPriceX64 = sqrt(price) * 2^64

tick_index_to_sqrt_price는 틱 부호에 따라 두 개의 매직 넘버 테이블을 사용합니다.
- 양수 틱: Q96 비율에서 시작해 각 비트마다 곱한 뒤 >> 96, 마지막에 >> 32
- 0 이하 틱: Q64 비율에서 시작해 각 비트마다 곱한 뒤 >> 64
"""

from enum import Enum
from typing import Optional

from ..constants import MIN_TICK, MAX_TICK, MIN_SQRT_PRICE, MAX_SQRT_PRICE, U64_MAX
from ..errors import InvalidSqrtPriceError, InvalidTickError, ErrorCode


# 양수 틱: bit 1 (0x2) ~ bit 18 (0x40000) 에 대응하는 Q96 비율
_POSITIVE_RATIOS = (
    79236085330515764027303304731,
    79244008939048815603706035061,
    79259858533276714757314932305,
    79291567232598584799939703904,
    79355022692464371645785046466,
    79482085999252804386437311141,
    79736823300114093921829183326,
    80248749790819932309965073892,
    81282483887344747381513967011,
    83390072131320151908154831281,
    87770609709833776024991924138,
    97234110755111693312479820773,
    119332217159966728226237229890,
    179736315981702064433883588727,
    407748233172238350107850275304,
    2098478828474011932436660412517,
    55581415166113811149459800483533,
    38992368544603139932233054999993551,
)

# 음수 틱: bit 1 (0x2) ~ bit 18 (0x40000) 에 대응하는 Q64 비율
_NEGATIVE_RATIOS = (
    18444899583751176498,
    18443055278223354162,
    18439367220385604838,
    18431993317065449817,
    18417254355718160513,
    18387811781193591352,
    18329067761203520168,
    18212142134806087854,
    17980523815641551639,
    17526086738831147013,
    16651378430235024244,
    15030750278693429944,
    12247334978882834399,
    8131365268884726200,
    3584323654723342297,
    696457651847595233,
    26294789957452057,
    37481735321082,
)

# sqrt_price_to_tick_index 상수
BIT_PRECISION: int = 14
LOG_B_2_X32: int = 59543866431248
LOG_B_P_ERR_MARGIN_LOWER_X64: int = 184467440737095516
LOG_B_P_ERR_MARGIN_UPPER_X64: int = 15793534762490258745


def _tick_index_to_sqrt_price_positive(tick: int) -> int:
    ratio = 79232123823359799118286999567 if tick & 1 else 79228162514264337593543950336

    for i, multiplier in enumerate(_POSITIVE_RATIOS):
        if tick & (2 << i):
            ratio = (ratio * multiplier) >> 96

    # Q96 -> Q64
    return ratio >> 32


def _tick_index_to_sqrt_price_negative(tick: int) -> int:
    abs_tick = abs(tick)
    ratio = 18445821805675392311 if abs_tick & 1 else 18446744073709551616

    for i, multiplier in enumerate(_NEGATIVE_RATIOS):
        if abs_tick & (2 << i):
            ratio = (ratio * multiplier) >> 64

    return ratio


def tick_index_to_sqrt_price(tick: int) -> int:
    """틱에서 sqrtPriceX64 계산

    온체인 tick_math::get_sqrt_price_at_tick과 동일한 구현.
    정수 연산만 사용합니다.

    Args:
        tick: 틱 인덱스 (-443636 ~ 443636)

    Returns:
        sqrtPriceX64 (Q64.64 형식)

    Raises:
        InvalidTickError: 틱이 유효 범위를 벗어난 경우
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise InvalidTickError(
            f"틱이 유효 범위를 벗어났습니다: {tick} (범위: {MIN_TICK} ~ {MAX_TICK})",
            method_name="tick_index_to_sqrt_price",
            request_params={"tick": tick},
        )

    if tick > 0:
        return _tick_index_to_sqrt_price_positive(tick)
    return _tick_index_to_sqrt_price_negative(tick)


def sqrt_price_to_tick_index(sqrt_price_x64: int) -> int:
    """sqrtPriceX64에서 틱 계산 (내림)

    log2(sqrtPrice)를 14비트 정밀도로 구한 뒤 log_sqrt(1.0001)로 변환합니다.
    틱 경계가 아닌 가격은 price(tick) <= 입력값을 만족하는 가장 큰 틱을 반환합니다.

    Args:
        sqrt_price_x64: sqrtPriceX64 (Q64.64 형식)

    Returns:
        틱 인덱스

    Raises:
        InvalidSqrtPriceError: sqrtPriceX64가 유효 범위를 벗어난 경우
    """
    if sqrt_price_x64 < MIN_SQRT_PRICE or sqrt_price_x64 > MAX_SQRT_PRICE:
        raise InvalidSqrtPriceError(
            f"sqrtPriceX64가 유효 범위를 벗어났습니다: {sqrt_price_x64}",
            method_name="sqrt_price_to_tick_index",
            request_params={"sqrt_price_x64": sqrt_price_x64},
        )

    msb = sqrt_price_x64.bit_length() - 1
    log2p_integer_x32 = (msb - 64) << 32

    if msb >= 64:
        r = sqrt_price_x64 >> (msb - 63)
    else:
        r = sqrt_price_x64 << (63 - msb)

    # 소수부 로그 계산
    bit = 0x8000000000000000
    log2p_fraction_x64 = 0
    for _ in range(BIT_PRECISION):
        r = r * r
        r_more_than_two = r >> 127
        r >>= 63 + r_more_than_two
        log2p_fraction_x64 += bit * r_more_than_two
        bit >>= 1

    log2p_x32 = log2p_integer_x32 + (log2p_fraction_x64 >> 32)
    logbp_x64 = log2p_x32 * LOG_B_2_X32

    tick_low = (logbp_x64 - LOG_B_P_ERR_MARGIN_LOWER_X64) >> 64
    tick_high = (logbp_x64 + LOG_B_P_ERR_MARGIN_UPPER_X64) >> 64

    if tick_low == tick_high:
        return tick_low

    if tick_index_to_sqrt_price(tick_high) <= sqrt_price_x64:
        return tick_high
    return tick_low


def get_min_tick_index(tick_spacing: int) -> int:
    """tick_spacing 배수 중 가장 작은 유효 틱"""
    return MIN_TICK + (abs(MIN_TICK) % tick_spacing)


def get_max_tick_index(tick_spacing: int) -> int:
    """tick_spacing 배수 중 가장 큰 유효 틱"""
    return MAX_TICK - (MAX_TICK % tick_spacing)


def get_initializable_tick_index(tick: int, tick_spacing: int) -> int:
    """틱을 tick_spacing 배수로 내림"""
    return tick - (tick % tick_spacing)


def get_prev_initializable_tick(tick: int, tick_spacing: int) -> int:
    """tick보다 작은 가장 가까운 tick_spacing 배수

    tick 자신은 제외하며, 결과는 get_min_tick_index(tick_spacing) 이상으로 제한됩니다.
    """
    prev_tick = ((tick - 1) // tick_spacing) * tick_spacing
    return max(prev_tick, get_min_tick_index(tick_spacing))


def get_next_initializable_tick(tick: int, tick_spacing: int) -> int:
    """tick보다 큰 가장 가까운 tick_spacing 배수

    tick 자신은 제외하며, 결과는 get_max_tick_index(tick_spacing) 이하로 제한됩니다.
    """
    next_tick = (tick // tick_spacing + 1) * tick_spacing
    return min(next_tick, get_max_tick_index(tick_spacing))


def get_nearest_tick_by_tick(tick: int, tick_spacing: int) -> int:
    """가장 가까운 tick_spacing 배수로 반올림 (절반은 0 방향)"""
    mod = abs(tick) % tick_spacing
    if tick > 0:
        if mod * 2 > tick_spacing:
            return tick + tick_spacing - mod
        return tick - mod
    if mod * 2 > tick_spacing:
        return tick - tick_spacing + mod
    return tick + mod


def validate_tick(tick: int, tick_spacing: Optional[int] = None) -> int:
    """틱 범위 및 tick_spacing 배수 여부 검사

    Raises:
        InvalidTickError: 범위를 벗어났거나 tick_spacing의 배수가 아닌 경우
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise InvalidTickError(
            f"틱이 유효 범위를 벗어났습니다: {tick} (범위: {MIN_TICK} ~ {MAX_TICK})",
            method_name="validate_tick",
            request_params={"tick": tick, "tick_spacing": tick_spacing},
        )
    if tick_spacing is not None and tick % tick_spacing != 0:
        raise InvalidTickError(
            f"틱이 tick_spacing의 배수가 아닙니다: {tick} (tick_spacing: {tick_spacing})",
            method_name="validate_tick",
            request_params={"tick": tick, "tick_spacing": tick_spacing},
        )
    return tick


def validate_tick_range(lower_tick: int, upper_tick: int, tick_spacing: Optional[int] = None) -> None:
    """lower_tick < upper_tick 및 각 틱의 유효성 검사"""
    validate_tick(lower_tick, tick_spacing)
    validate_tick(upper_tick, tick_spacing)
    if lower_tick >= upper_tick:
        raise InvalidTickError(
            f"하한 틱이 상한 틱보다 작아야 합니다: {lower_tick} >= {upper_tick}",
            ErrorCode.INVALID_TICK_RANGE,
            method_name="validate_tick_range",
            request_params={"lower_tick": lower_tick, "upper_tick": upper_tick},
        )


def get_default_sqrt_price_limit(a_to_b: bool) -> int:
    """스왑 방향별 기본 sqrt price 한계"""
    return MIN_SQRT_PRICE if a_to_b else MAX_SQRT_PRICE


class TickSide(Enum):
    """틱이 [lower, upper] 범위의 어느 쪽에 있는지 (경계 포함 시 범위 내)"""
    LEFT = "left"
    IN_RANGE = "in_range"
    RIGHT = "right"


def get_tick_side(tick: int, lower_tick: int, upper_tick: int) -> TickSide:
    if lower_tick <= tick <= upper_tick:
        return TickSide.IN_RANGE
    if tick < lower_tick:
        return TickSide.LEFT
    return TickSide.RIGHT


def get_default_other_amount_threshold(by_amount_in: bool) -> int:
    """스왑 반대쪽 수량의 기본 한계 (입력 고정이면 최소 출력 0, 출력 고정이면 최대 입력 u64)"""
    return 0 if by_amount_in else U64_MAX
