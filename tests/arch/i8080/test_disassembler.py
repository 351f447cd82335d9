# tests/arch/i8080/test_disassembler.py
"""
i8080_tracer.arch.i8080.disassemblerモジュールのテスト。
"""
import pytest

from i8080_tracer.arch.i8080.cpu import I8080Cpu
from i8080_tracer.arch.i8080.disassembler import disassemble
from i8080_tracer.transport.bus import Bus, RAM

# @intent:test_suite メモリ上の機械語が (アドレス, 16進ダンプ, ニーモニック) に変換されることを検証します。

@pytest.fixture
def bus():
    bus = Bus()
    bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
    return bus


class TestDisassembler:
    def test_basic_listing(self, bus):
        program = [
            0x3E, 0x05,        # MVI A,$05
            0x21, 0x00, 0x02,  # LXI H,$0200
            0x70,              # MOV M,B
            0xC3, 0x00, 0x01,  # JMP $0100
            0xCF,              # RST 1
        ]
        for i, byte in enumerate(program):
            bus.load(0x0100 + i, byte)

        listing = disassemble(bus, 0x0100, len(program))
        assert listing == [
            (0x0100, "3E 05", "MVI A,$05"),
            (0x0102, "21 00 02", "LXI H,$0200"),
            (0x0105, "70", "MOV M,B"),
            (0x0106, "C3 00 01", "JMP $0100"),
            (0x0109, "CF", "RST 1"),
        ]

    # @intent:test_case_undefined 未定義オペコードは DB として1バイトずつ表示されることを検証します。
    def test_undefined_opcode_listed_as_data(self, bus):
        bus.load(0x0000, 0xDD)
        bus.load(0x0001, 0x00)
        listing = disassemble(bus, 0x0000, 2)
        assert listing == [(0x0000, "DD", "DB $DD"), (0x0001, "00", "NOP")]

    def test_unmapped_memory(self, bus):
        listing = disassemble(bus, 0x0FFF, 2)
        assert listing[-1] == (0x1000, "??", "ERR")

    # @intent:test_case_log 逆アセンブルはバスアクティビティログに影響しないことを検証します。
    def test_does_not_disturb_activity_log(self, bus):
        bus.read(0x0000)
        disassemble(bus, 0x0000, 16)
        log = bus.get_and_clear_activity_log()
        assert [a.address for a in log] == [0x0000]

    def test_cpu_delegates_to_disassembler(self, bus):
        cpu = I8080Cpu(bus)
        bus.load(0x0000, 0x76)
        assert cpu.disassemble(0x0000, 1) == [(0x0000, "76", "HLT")]
