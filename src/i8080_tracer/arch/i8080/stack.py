"""
8080 スタックユニット。

16ビット値を2バイトとしてSPの位置にプッシュ/ポップします。
スタックは下位アドレス方向へ伸び、上位バイトがSP-1、下位バイトがSP-2に置かれます。
"""
from typing import Tuple

from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.transport.bus import Bus


# @intent:responsibility 上位/下位バイトをスタックに積み、SPを2減らします。
def push_bytes(state: I8080CpuState, bus: Bus, high: int, low: int) -> None:
    bus.write((state.sp - 1) & 0xFFFF, high & 0xFF)
    bus.write((state.sp - 2) & 0xFFFF, low & 0xFF)
    state.sp = (state.sp - 2) & 0xFFFF

# @intent:responsibility スタックから (上位, 下位) バイトを取り出し、SPを2増やします。
def pop_bytes(state: I8080CpuState, bus: Bus) -> Tuple[int, int]:
    low = bus.read(state.sp)
    high = bus.read((state.sp + 1) & 0xFFFF)
    state.sp = (state.sp + 2) & 0xFFFF
    return high, low

def push_word(state: I8080CpuState, bus: Bus, value: int) -> None:
    push_bytes(state, bus, (value >> 8) & 0xFF, value & 0xFF)

def pop_word(state: I8080CpuState, bus: Bus) -> int:
    high, low = pop_bytes(state, bus)
    return (high << 8) | low
