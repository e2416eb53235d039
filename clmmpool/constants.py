"""
CLMM 프로토콜 상수 정의

온체인 컨트랙트와 동일한 값을 사용해야 하는 상수들:
- Q64: sqrt price 인코딩에 사용 (2^64)
- MIN_TICK / MAX_TICK: 틱 범위
- MIN_SQRT_PRICE / MAX_SQRT_PRICE: sqrt price 범위 (각각 MIN_TICK, MAX_TICK의 sqrt price)
- U64_MAX / U128 / U128_MAX: 온체인 정수 폭 경계
"""

# Fixed-point 인코딩 상수
Q64: int = 2 ** 64

# 틱 범위 상수
MIN_TICK: int = -443636
MAX_TICK: int = 443636

# sqrt price 범위 상수 (Q64.64)
MIN_SQRT_PRICE: int = 4295048016
MAX_SQRT_PRICE: int = 79226673515401279992447579055

# 정수 폭 경계
U64_MAX: int = 2 ** 64 - 1
U128: int = 2 ** 128
U128_MAX: int = 2 ** 128 - 1

# 틱 크로싱 한 번당 추가 compute 예산
COMPUTE_UNITS_PER_TICK: int = 22000
FREE_CROSS_TICKS: int = 6

SECONDS_PER_DAY: int = 24 * 60 * 60
DAYS_PER_YEAR: int = 365
