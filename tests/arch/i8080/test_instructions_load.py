# tests/arch/i8080/test_instructions_load.py
"""
8080 データ転送命令（MOV/MVI/LXI/LDA/STA/LHLD/SHLD/LDAX/STAX/XCHG/XTHL/SPHL/PUSH/POP）のテスト。
"""
import pytest

from i8080_tracer.arch.i8080.cpu import I8080Cpu
from i8080_tracer.transport.bus import Bus, RAM, BusAccessType

# @intent:test_suite レジスタとメモリ間のデータ転送命令を検証します。

@pytest.fixture
def setup_cpu():
    bus = Bus()
    bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
    cpu = I8080Cpu(bus)
    return cpu, bus


def load_program(cpu, bus, program, origin=0x0000):
    for i, byte in enumerate(program):
        bus.load(origin + i, byte)
    cpu.get_state().pc = origin


def run_steps(cpu, count):
    return [cpu.step() for _ in range(count)]


class TestMoves:
    # @intent:test_case_mvi_mov MVIとMOVでレジスタ間の転送が行われることを検証します。
    def test_mvi_and_mov(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [
            0x06, 0x42,  # MVI B,$42
            0x48,        # MOV C,B
            0x79,        # MOV A,C
        ])
        snapshots = run_steps(cpu, 3)
        state = cpu.get_state()
        assert (state.a, state.b, state.c) == (0x42, 0x42, 0x42)
        assert state.pc == 0x0004
        assert [s.operation.cycle_count for s in snapshots] == [7, 5, 5]

    # @intent:test_case_memory_operand Mオペランドは (HL) のメモリを指すことを検証します。
    def test_memory_operand_via_hl(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [
            0x21, 0x00, 0x30,  # LXI H,$3000
            0x36, 0x99,        # MVI M,$99
            0x7E,              # MOV A,M
            0x3C,              # INR A
            0x77,              # MOV M,A
        ])
        snapshots = run_steps(cpu, 5)
        assert bus.read(0x3000) == 0x9A
        assert cpu.get_state().a == 0x9A
        assert snapshots[1].operation.cycle_count == 10
        assert snapshots[2].operation.cycle_count == 7

    # @intent:test_case_lxi LXI B,d16 で B=上位、C=下位 が設定されることを検証します。
    def test_lxi_pairs(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [
            0x01, 0x34, 0x12,  # LXI B,$1234
            0x11, 0x78, 0x56,  # LXI D,$5678
            0x21, 0xBC, 0x9A,  # LXI H,$9ABC
            0x31, 0x00, 0xF0,  # LXI SP,$F000
        ])
        run_steps(cpu, 4)
        state = cpu.get_state()
        assert (state.b, state.c) == (0x12, 0x34)
        assert state.de == 0x5678
        assert state.hl == 0x9ABC
        assert state.sp == 0xF000
        assert state.pc == 0x000C

    def test_lda_sta(self, setup_cpu):
        cpu, bus = setup_cpu
        bus.load(0x4000, 0x5A)
        load_program(cpu, bus, [
            0x3A, 0x00, 0x40,  # LDA $4000
            0x32, 0x01, 0x40,  # STA $4001
        ])
        snapshots = run_steps(cpu, 2)
        assert cpu.get_state().a == 0x5A
        assert bus.read(0x4001) == 0x5A
        assert snapshots[0].operation.cycle_count == 13

    # @intent:test_case_lhld_shld 16ビット転送は下位バイトをaddr、上位バイトをaddr+1に置くことを検証します。
    def test_lhld_shld(self, setup_cpu):
        cpu, bus = setup_cpu
        bus.load(0x5000, 0xCD)
        bus.load(0x5001, 0xAB)
        load_program(cpu, bus, [
            0x2A, 0x00, 0x50,  # LHLD $5000
            0x22, 0x10, 0x50,  # SHLD $5010
        ])
        snapshots = run_steps(cpu, 2)
        state = cpu.get_state()
        assert (state.h, state.l) == (0xAB, 0xCD)
        assert bus.read(0x5010) == 0xCD
        assert bus.read(0x5011) == 0xAB
        assert snapshots[1].operation.cycle_count == 16

    def test_ldax_stax(self, setup_cpu):
        cpu, bus = setup_cpu
        bus.load(0x6000, 0x11)
        load_program(cpu, bus, [
            0x01, 0x00, 0x60,  # LXI B,$6000
            0x11, 0x01, 0x60,  # LXI D,$6001
            0x0A,              # LDAX B
            0x3C,              # INR A
            0x12,              # STAX D
            0x1A,              # LDAX D
            0x02,              # STAX B
        ])
        run_steps(cpu, 7)
        assert bus.read(0x6001) == 0x12
        assert bus.read(0x6000) == 0x12

    def test_xchg(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [0xEB])  # XCHG
        cpu.get_state().hl = 0x1111
        cpu.get_state().de = 0x2222
        cpu.step()
        assert cpu.get_state().hl == 0x2222
        assert cpu.get_state().de == 0x1111

    # @intent:test_case_xthl XTHLがスタックトップとHLを交換し、SPを変えないことを検証します。
    def test_xthl(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [0xE3])  # XTHL
        state = cpu.get_state()
        state.sp = 0x8000
        state.hl = 0x1234
        bus.load(0x8000, 0x78)
        bus.load(0x8001, 0x56)
        snapshot = cpu.step()
        assert state.hl == 0x5678
        assert bus.read(0x8000) == 0x34
        assert bus.read(0x8001) == 0x12
        assert state.sp == 0x8000
        assert snapshot.operation.cycle_count == 18

    def test_sphl(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [0xF9])  # SPHL
        cpu.get_state().hl = 0xC000
        cpu.step()
        assert cpu.get_state().sp == 0xC000


class TestPushPop:
    # @intent:test_case_push_pop PUSH/POPでレジスタペアがスタック経由で転送されることを検証します。
    def test_push_b_pop_d(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [
            0x31, 0x00, 0x90,  # LXI SP,$9000
            0x01, 0xEF, 0xBE,  # LXI B,$BEEF
            0xC5,              # PUSH B
            0xD1,              # POP D
        ])
        snapshots = run_steps(cpu, 4)
        state = cpu.get_state()
        assert state.de == 0xBEEF
        assert state.sp == 0x9000
        assert bus.read(0x8FFF) == 0xBE
        assert bus.read(0x8FFE) == 0xEF
        writes = [a for a in snapshots[2].bus_activity if a.access_type == BusAccessType.WRITE]
        assert [(a.address, a.data) for a in writes] == [(0x8FFF, 0xBE), (0x8FFE, 0xEF)]
        assert snapshots[2].operation.cycle_count == 11
        assert snapshots[3].operation.cycle_count == 10

    # @intent:test_case_psw_round_trip PUSH PSW / POP PSW でAとフラグが正確に往復することを検証します。
    def test_push_pop_psw_round_trip(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [
            0x31, 0x00, 0x90,  # LXI SP,$9000
            0xF5,              # PUSH PSW
            0xAF,              # XRA A  (A=0, フラグ変更)
            0xF1,              # POP PSW
        ])
        state = cpu.get_state()
        state.a = 0x80
        state.f = 0xD5
        run_steps(cpu, 2)
        assert bus.read(0x8FFE) == 0xD7  # ビット1は常に1
        assert bus.read(0x8FFF) == 0x80
        run_steps(cpu, 2)
        assert state.a == 0x80
        assert state.f == 0xD5

    def test_pop_psw_masks_unused_bits(self, setup_cpu):
        cpu, bus = setup_cpu
        load_program(cpu, bus, [0xF1])  # POP PSW
        state = cpu.get_state()
        state.sp = 0x7000
        bus.load(0x7000, 0xFF)
        bus.load(0x7001, 0x01)
        cpu.step()
        assert state.a == 0x01
        assert state.f == 0xD5
        assert state.psw == 0x01D7
