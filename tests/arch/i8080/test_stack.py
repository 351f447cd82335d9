# tests/arch/i8080/test_stack.py
"""
i8080_tracer.arch.i8080.stackモジュールの単体テスト。
"""
import pytest

from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.arch.i8080.stack import push_bytes, pop_bytes, push_word, pop_word
from i8080_tracer.transport.bus import Bus, RAM

# @intent:test_suite スタックのバイト配置（上位がSP-1、下位がSP-2）とSPの折り返しを検証します。

@pytest.fixture
def machine():
    bus = Bus()
    bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
    return I8080CpuState(sp=0x2000), bus


class TestStack:
    def test_push_byte_layout(self, machine):
        state, bus = machine
        push_bytes(state, bus, 0x12, 0x34)
        assert state.sp == 0x1FFE
        assert bus.read(0x1FFF) == 0x12
        assert bus.read(0x1FFE) == 0x34

    # @intent:test_case_round_trip プッシュした値がポップで元に戻り、SPも復元されることを検証します。
    def test_push_pop_round_trip(self, machine):
        state, bus = machine
        for value in (0x0000, 0x1234, 0xFFFF, 0x8001):
            push_word(state, bus, value)
            assert pop_word(state, bus) == value
            assert state.sp == 0x2000

    def test_lifo_order(self, machine):
        state, bus = machine
        push_word(state, bus, 0x1111)
        push_word(state, bus, 0x2222)
        assert pop_bytes(state, bus) == (0x22, 0x22)
        assert pop_word(state, bus) == 0x1111

    # @intent:test_case_wrap SPの演算は0x10000を法として折り返すことを検証します。
    def test_stack_pointer_wraps(self, machine):
        state, bus = machine
        state.sp = 0x0000
        push_word(state, bus, 0xBEEF)
        assert state.sp == 0xFFFE
        assert bus.read(0xFFFF) == 0xBE
        assert bus.read(0xFFFE) == 0xEF
        assert pop_word(state, bus) == 0xBEEF
        assert state.sp == 0x0000
