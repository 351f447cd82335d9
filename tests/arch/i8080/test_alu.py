# tests/arch/i8080/test_alu.py
"""
i8080_tracer.arch.i8080.aluモジュールの単体テスト。
"""
import pytest

from i8080_tracer.arch.i8080 import alu
from i8080_tracer.arch.i8080.state import S_FLAG, Z_FLAG, AC_FLAG, P_FLAG, CY_FLAG

# @intent:test_suite 8080のALU演算とフラグ計算（S, Z, AC, P, CY）を検証します。

class TestParity:
    # @intent:test_case_parity 全256値についてパリティがビット数の偶奇と一致することを検証します。
    def test_parity_all_values(self):
        for value in range(256):
            assert alu.calculate_parity(value) == (bin(value).count("1") % 2 == 0)

    def test_szp_flags(self):
        assert alu.szp_flags(0x00) == Z_FLAG | P_FLAG
        assert alu.szp_flags(0x80) == S_FLAG
        assert alu.szp_flags(0x03) == P_FLAG


class TestAddSub:
    # @intent:test_case_round_trip 全てのバイトの組について (a + b) - b == a となり、CYが桁上がり/ボローと一致することを検証します。
    def test_add_sub_round_trip_all_pairs(self):
        for a in range(256):
            for b in range(256):
                added = alu.add8(a, b)
                assert added.value == (a + b) & 0xFF
                assert bool(added.flags & CY_FLAG) == (a + b > 0xFF)

                restored = alu.sub8(added.value, b)
                assert restored.value == a
                assert bool(restored.flags & CY_FLAG) == (added.value < b)

    def test_add_with_carry(self):
        result = alu.add8(0xFF, 0x00, 1)
        assert result.value == 0x00
        assert result.flags & CY_FLAG
        assert result.flags & Z_FLAG
        assert result.flags & AC_FLAG

    # @intent:test_case_ac 加算のACは下位ニブルからの桁上がりであることを検証します。
    def test_add_aux_carry(self):
        assert alu.add8(0x0F, 0x01).flags & AC_FLAG
        assert not alu.add8(0x0E, 0x01).flags & AC_FLAG

    def test_sub_with_borrow(self):
        result = alu.sub8(0x00, 0x00, 1)
        assert result.value == 0xFF
        assert result.flags & CY_FLAG
        assert result.flags & S_FLAG
        assert result.flags & P_FLAG

    # @intent:test_case_sub_ac 減算のACは補数加算のビット3からの桁上がり（下位ニブルでボローが無いとき1）であることを検証します。
    def test_sub_aux_carry(self):
        assert alu.sub8(0x3E, 0x3E).flags & AC_FLAG      # 下位ニブル 0xE - 0xE: ボローなし
        assert not alu.sub8(0x10, 0x01).flags & AC_FLAG  # 下位ニブル 0x0 - 0x1: ボローあり
        result = alu.sub8(0x3E, 0x3E)
        assert result.value == 0
        assert result.flags & Z_FLAG
        assert not result.flags & CY_FLAG

    def test_compare_sets_flags_only(self):
        assert alu.compare8(0x05, 0x05).flags & Z_FLAG
        assert alu.compare8(0x04, 0x05).flags & CY_FLAG
        assert not alu.compare8(0x06, 0x05).flags & (CY_FLAG | Z_FLAG)


class TestLogic:
    def test_and_aux_carry_from_bit3(self):
        result = alu.and8(0x08, 0x00)
        assert result.value == 0
        assert result.flags & AC_FLAG
        assert result.flags & Z_FLAG
        assert not alu.and8(0x07, 0xF0).flags & AC_FLAG

    def test_xor_or_clear_carry_and_ac(self):
        assert alu.xor8(0xFF, 0xFF).flags == Z_FLAG | P_FLAG
        assert alu.or8(0x80, 0x01).value == 0x81
        assert not alu.or8(0x80, 0x01).flags & (CY_FLAG | AC_FLAG)


class TestIncDec:
    @pytest.mark.parametrize("value,expected,ac", [(0x0F, 0x10, True), (0x10, 0x11, False), (0xFF, 0x00, True)])
    def test_inc(self, value, expected, ac):
        result = alu.inc8(value)
        assert result.value == expected
        assert bool(result.flags & AC_FLAG) == ac
        assert not result.flags & CY_FLAG

    @pytest.mark.parametrize("value,expected,ac", [(0x10, 0x0F, False), (0x11, 0x10, True), (0x00, 0xFF, False)])
    def test_dec(self, value, expected, ac):
        result = alu.dec8(value)
        assert result.value == expected
        assert bool(result.flags & AC_FLAG) == ac

    def test_inc_dec_flags_exclude_carry(self):
        assert not alu.INC_DEC_FLAGS & CY_FLAG


class TestSixteenBitAndRotates:
    def test_add16(self):
        assert alu.add16(0xFFFF, 0x0001) == (0x0000, CY_FLAG)
        assert alu.add16(0x1234, 0x1111) == (0x2345, 0)

    def test_rotates(self):
        assert alu.rlc(0x80) == (0x01, CY_FLAG)
        assert alu.rrc(0x01) == (0x80, CY_FLAG)
        assert alu.ral(0x80, 0) == (0x00, CY_FLAG)
        assert alu.ral(0x01, 1) == (0x03, 0)
        assert alu.rar(0x01, 0) == (0x00, CY_FLAG)
        assert alu.rar(0x02, 1) == (0x81, 0)


class TestDaa:
    # @intent:test_case_daa BCD加算後の10進補正を検証します。
    def test_daa_after_bcd_add(self):
        added = alu.add8(0x19, 0x28)  # 0x41, AC=1
        result = alu.daa(added.value, bool(added.flags & CY_FLAG), bool(added.flags & AC_FLAG))
        assert result.value == 0x47
        assert not result.flags & CY_FLAG

    def test_daa_sets_carry(self):
        added = alu.add8(0x99, 0x01)  # 0x9A
        result = alu.daa(added.value, False, bool(added.flags & AC_FLAG))
        assert result.value == 0x00
        assert result.flags & CY_FLAG
        assert result.flags & Z_FLAG

    def test_daa_keeps_incoming_carry(self):
        result = alu.daa(0x00, True, False)
        assert result.value == 0x60
        assert result.flags & CY_FLAG
