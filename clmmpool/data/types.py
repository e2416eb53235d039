"""
CLMM 데이터 타입 정의

온체인 객체를 디코딩한 스냅샷을 Python dataclass로 정의.
모든 숫자 필드는 온체인 정밀도를 위해 int 타입 사용.

입력 인코딩:
- 10진 문자열 / 정수: "123456"
- 부호 있는 값: {"bits": "<2의 보수 비트>"} (틱 인덱스는 32비트, liquidity_net은 128비트)

모든 스냅샷은 호출마다 새로 생성되는 불변 값입니다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ErrorCode, InvalidAmountError, InvalidTickError
from ..math.fixed_point import I128
from ..math.tick_math import tick_index_to_sqrt_price, validate_tick


def parse_u128(value: Any) -> int:
    """10진 문자열 / 정수 / {"bits": ...} -> int"""
    if isinstance(value, dict):
        value = value["bits"]
    result = int(value)
    if result < 0 or result >= 1 << 128:
        raise InvalidAmountError(
            f"u128 범위를 벗어났습니다: {value}",
            method_name="parse_u128",
            request_params={"value": str(value)},
        )
    return result


def parse_i32(value: Any) -> int:
    """틱 인덱스 파싱 ({"bits": u32}는 2의 보수로 해석)"""
    if isinstance(value, dict):
        bits = int(value["bits"]) & 0xFFFFFFFF
        return bits - (1 << 32) if bits & 0x80000000 else bits
    return int(value)


def parse_i128(value: Any) -> I128:
    """liquidity_net 파싱 ({"bits": u128}는 bit 127을 부호로 해석)"""
    if isinstance(value, I128):
        return value
    if isinstance(value, dict):
        return I128.from_bits(value["bits"])
    return I128.from_int(int(value))


def _parse_list(values: Optional[List[Any]]) -> Tuple[int, ...]:
    return tuple(parse_u128(v) for v in values or ())


@dataclass(frozen=True)
class TickData:
    """초기화된 틱 상태

    - index: 틱 인덱스
    - liquidity_net: 가격이 이 틱을 위로 지날 때 적용되는 유동성 변화량 (부호 있음)
    - liquidity_gross: 이 틱을 경계로 참조하는 총 유동성
    - fee_growth_outside_a/b: 틱 외부 누적 수수료 (Q64)
    - rewards_growth_outside: 리워더별 틱 외부 누적 보상 (Q64)
    - sqrt_price: 틱의 sqrtPriceX64 (생략 시 index에서 계산)
    """
    index: int
    liquidity_net: I128
    liquidity_gross: int = 0
    fee_growth_outside_a: int = 0
    fee_growth_outside_b: int = 0
    rewards_growth_outside: Tuple[int, ...] = ()
    sqrt_price: Optional[int] = None

    def __post_init__(self):
        validate_tick(self.index)
        if self.sqrt_price is None:
            object.__setattr__(self, "sqrt_price", tick_index_to_sqrt_price(self.index))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TickData":
        sqrt_price = data.get("sqrt_price")
        return cls(
            index=parse_i32(data["index"]),
            liquidity_net=parse_i128(data.get("liquidity_net", 0)),
            liquidity_gross=parse_u128(data.get("liquidity_gross", 0)),
            fee_growth_outside_a=parse_u128(data.get("fee_growth_outside_a", 0)),
            fee_growth_outside_b=parse_u128(data.get("fee_growth_outside_b", 0)),
            rewards_growth_outside=_parse_list(data.get("rewarders_growth_outside")),
            sqrt_price=parse_u128(sqrt_price) if sqrt_price is not None else None,
        )


@dataclass(frozen=True)
class PoolSnapshot:
    """풀 상태 스냅샷

    - current_sqrt_price: 현재 sqrtPriceX64
    - current_tick_index: 현재 틱
    - liquidity: 현재 활성 유동성
    - fee_rate: 수수료율 (settings.FEE_RATE_DENOMINATOR 기준)
    - fee_growth_global_a/b: 단위 유동성당 누적 수수료 (Q64)
    - rewarders_growth_global: 리워더별 단위 유동성당 누적 보상 (Q64)
    - ticks: 스왑 범위의 초기화된 틱 (정렬 여부 무관)
    """
    current_sqrt_price: int
    current_tick_index: int
    tick_spacing: int
    liquidity: int
    fee_rate: int
    decimals_a: int = 6
    decimals_b: int = 6
    fee_growth_global_a: int = 0
    fee_growth_global_b: int = 0
    coin_amount_a: int = 0
    coin_amount_b: int = 0
    rewarders_growth_global: Tuple[int, ...] = ()
    ticks: Tuple[TickData, ...] = field(default_factory=tuple)

    def __post_init__(self):
        validate_tick(self.current_tick_index)
        if self.tick_spacing <= 0:
            raise InvalidTickError(
                f"tick_spacing은 양수여야 합니다: {self.tick_spacing}",
                method_name="PoolSnapshot",
                request_params={"tick_spacing": self.tick_spacing},
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolSnapshot":
        return cls(
            current_sqrt_price=parse_u128(data["current_sqrt_price"]),
            current_tick_index=parse_i32(data["current_tick_index"]),
            tick_spacing=int(data["tick_spacing"]),
            liquidity=parse_u128(data["liquidity"]),
            fee_rate=int(data["fee_rate"]),
            decimals_a=int(data.get("decimals_a", 6)),
            decimals_b=int(data.get("decimals_b", 6)),
            fee_growth_global_a=parse_u128(data.get("fee_growth_global_a", 0)),
            fee_growth_global_b=parse_u128(data.get("fee_growth_global_b", 0)),
            coin_amount_a=int(data.get("coin_amount_a", 0)),
            coin_amount_b=int(data.get("coin_amount_b", 0)),
            rewarders_growth_global=_parse_list(data.get("rewarders_growth_global")),
            ticks=tuple(TickData.from_dict(t) for t in data.get("ticks", [])),
        )


@dataclass(frozen=True)
class PositionSnapshot:
    """포지션 상태 스냅샷

    - liquidity: 포지션 유동성
    - tick_lower_index / tick_upper_index: 범위
    - fee_growth_inside_a/b: 마지막 업데이트 시점의 범위 내 누적 수수료 (Q64)
    - fee_owned_a/b: 이미 정산되었지만 수령하지 않은 수수료
    - rewards_growth_inside / rewards_amount_owned: 리워더별 동일 값
    """
    liquidity: int
    tick_lower_index: int
    tick_upper_index: int
    fee_growth_inside_a: int = 0
    fee_growth_inside_b: int = 0
    fee_owned_a: int = 0
    fee_owned_b: int = 0
    rewards_growth_inside: Tuple[int, ...] = ()
    rewards_amount_owned: Tuple[int, ...] = ()

    def __post_init__(self):
        if len(self.rewards_amount_owned) not in (0, len(self.rewards_growth_inside)):
            raise InvalidAmountError(
                "rewards_growth_inside와 rewards_amount_owned 길이가 다릅니다",
                ErrorCode.INVALID_AMOUNT,
                method_name="PositionSnapshot",
                request_params={
                    "rewards_growth_inside": len(self.rewards_growth_inside),
                    "rewards_amount_owned": len(self.rewards_amount_owned),
                },
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PositionSnapshot":
        return cls(
            liquidity=parse_u128(data["liquidity"]),
            tick_lower_index=parse_i32(data["tick_lower_index"]),
            tick_upper_index=parse_i32(data["tick_upper_index"]),
            fee_growth_inside_a=parse_u128(data.get("fee_growth_inside_a", 0)),
            fee_growth_inside_b=parse_u128(data.get("fee_growth_inside_b", 0)),
            fee_owned_a=int(data.get("fee_owned_a", 0)),
            fee_owned_b=int(data.get("fee_owned_b", 0)),
            rewards_growth_inside=_parse_list(data.get("rewards_growth_inside")),
            rewards_amount_owned=_parse_list(data.get("rewards_amount_owned")),
        )
