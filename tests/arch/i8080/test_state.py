# tests/arch/i8080/test_state.py
"""
i8080_tracer.arch.i8080.stateモジュールの単体テスト。
"""
from i8080_tracer.arch.i8080.state import (
    I8080CpuState, S_FLAG, Z_FLAG, AC_FLAG, P_FLAG, CY_FLAG, ALL_FLAGS
)

# @intent:test_suite 8080のレジスタファイル、フラグアクセサ、レジスタペアを検証します。

class TestI8080CpuState:
    # @intent:test_case_initial_state 初期状態は全レジスタ・フラグが0であることを検証します。
    def test_initial_state_is_zero(self):
        state = I8080CpuState()
        assert (state.a, state.b, state.c, state.d, state.e, state.h, state.l) == (0,) * 7
        assert state.f == 0
        assert state.pc == 0 and state.sp == 0
        assert not state.halted and not state.inte

    def test_flag_properties(self):
        state = I8080CpuState()
        state.flag_s = True
        state.flag_z = True
        state.flag_ac = True
        state.flag_p = True
        state.flag_cy = True
        assert state.f == ALL_FLAGS

        state.flag_z = False
        assert state.f == ALL_FLAGS & ~Z_FLAG
        assert state.flag_s and state.flag_ac and state.flag_p and state.flag_cy

    # @intent:test_case_update_flags maskで指定されたビットのみが更新されることを検証します。
    def test_update_flags_with_mask(self):
        state = I8080CpuState()
        state.flag_cy = True
        state.update_flags(Z_FLAG | P_FLAG, S_FLAG | Z_FLAG | AC_FLAG | P_FLAG)
        assert state.flag_z and state.flag_p and state.flag_cy
        assert not state.flag_s and not state.flag_ac

    # @intent:test_case_pairs レジスタペアは (上位 << 8) | 下位 で構成されることを検証します。
    def test_register_pairs(self):
        state = I8080CpuState()
        state.bc = 0x1234
        assert (state.b, state.c) == (0x12, 0x34)
        state.d, state.e = 0xAB, 0xCD
        assert state.de == 0xABCD
        state.hl = 0x1FFFF
        assert (state.h, state.l) == (0xFF, 0xFF)

    # @intent:test_case_psw PSWはビット1が常に1、ビット3/5が常に0としてパックされることを検証します。
    def test_psw_packing(self):
        state = I8080CpuState(a=0x42)
        assert state.psw == 0x4202
        state.f = ALL_FLAGS
        assert state.psw == 0x42D7

        state.psw = 0x99FF
        assert state.a == 0x99
        assert state.f == ALL_FLAGS
        assert state.psw == 0x99D7

    def test_psw_round_trip(self):
        state = I8080CpuState()
        for flags in range(0x100):
            state.psw = 0x5A00 | flags
            restored = I8080CpuState()
            restored.psw = state.psw
            assert restored.f == flags & ALL_FLAGS
            assert restored.a == 0x5A
        assert CY_FLAG == 0x01
