"""
Data layer for the CLMM math engine

온체인 객체에서 디코딩된 풀/틱/포지션 스냅샷 타입 정의
"""

from .types import TickData, PoolSnapshot, PositionSnapshot
