# tests/loader/test_loader.py
"""
i8080_tracer.loader.loaderモジュールの単体テスト。
生バイナリ、Intel HEX、アセンブリソースのロードとパッチ適用を検証します。
"""
import logging

import pytest

from i8080_tracer.transport.bus import Bus, RAM, ROM
from i8080_tracer.loader.loader import BinaryLoader, IntelHexLoader, AssemblyLoader, patch_image

# @intent:test_suite コードローダー機能の検証。

@pytest.fixture
def setup_bus():
    bus = Bus()
    ram = RAM(0x10000)
    bus.register_device(0x0000, 0xFFFF, ram)
    return bus, ram


class TestBinaryLoader:
    # @intent:test_case_load_image バイト列がベースアドレスから配置され、ロード範囲が返されることを検証します。
    def test_load_image(self, setup_bus):
        bus, ram = setup_bus
        loaded = BinaryLoader().load_image(bus, bytes([0x3E, 0x05, 0x76]))
        assert loaded == (0x0100, 0x0103)
        assert [ram.read(0x0100 + i) for i in range(3)] == [0x3E, 0x05, 0x76]

    def test_load_file(self, setup_bus, tmp_path):
        bus, ram = setup_bus
        image = tmp_path / "prog.com"
        image.write_bytes(bytes([0xC3, 0x00, 0x00]))
        loaded = BinaryLoader().load_file(str(image), bus, base=0x2000)
        assert loaded == (0x2000, 0x2003)
        assert ram.read(0x2000) == 0xC3

    # @intent:test_case_overflow アドレス空間に収まらないイメージはValueErrorになることを検証します。
    def test_image_too_large(self, setup_bus):
        bus, _ = setup_bus
        with pytest.raises(ValueError, match="does not fit"):
            BinaryLoader().load_image(bus, bytes(0x100), base=0xFF80)

    def test_load_into_rom(self):
        bus = Bus()
        rom = ROM(0x100)
        bus.register_device(0x0000, 0x00FF, rom)
        BinaryLoader().load_image(bus, bytes([0xAA]), base=0x0010)
        assert rom.read(0x0010) == 0xAA

    def test_logs_loaded_range(self, setup_bus, caplog):
        bus, _ = setup_bus
        with caplog.at_level(logging.INFO, logger="i8080_tracer.loader.loader"):
            BinaryLoader().load_image(bus, bytes(4))
        assert "Loaded 4 bytes at 0x0100-0x0103" in caplog.text


class TestIntelHexLoader:
    def test_load_simple_hex_data(self, setup_bus, tmp_path):
        bus, ram = setup_bus
        hex_file = tmp_path / "simple.hex"
        hex_file.write_text("""
        :020000001234B8
        :02000200ABCD84
        :00000001FF
        """)

        loaded = IntelHexLoader().load_intel_hex(str(hex_file), bus)

        assert loaded == (0x0000, 0x0004)
        assert [ram.read(i) for i in range(4)] == [0x12, 0x34, 0xAB, 0xCD]

    def test_load_records_from_lines(self, setup_bus):
        bus, ram = setup_bus
        lines = [
            ":03010000AABBCCCB",
            ":00000001FF",
            ":01020000EE0F",  # EOF以降は無視
        ]
        loaded = IntelHexLoader().load_records(lines, bus)
        assert loaded == (0x0100, 0x0103)
        assert ram.read(0x0102) == 0xCC
        assert ram.read(0x0200) == 0x00

    # @intent:test_case_checksum チェックサム不一致はValueErrorになることを検証します。
    def test_invalid_checksum(self, setup_bus):
        bus, _ = setup_bus
        with pytest.raises(ValueError, match="Checksum mismatch on line 1"):
            IntelHexLoader().load_records([":020000001234B9"], bus)

    def test_too_short_record(self, setup_bus):
        bus, _ = setup_bus
        with pytest.raises(ValueError, match="Too short"):
            IntelHexLoader().load_records([":0000"], bus)

    def test_no_data_records(self, setup_bus):
        bus, _ = setup_bus
        assert IntelHexLoader().load_records([":00000001FF"], bus) is None


class TestAssemblyLoader:
    # @intent:test_case_assembly アセンブル結果がバスに配置され、シンボルとロード範囲が得られることを検証します。
    def test_load_source(self, setup_bus):
        bus, ram = setup_bus
        loader = AssemblyLoader()
        symbols = loader.load_source([
            "        ORG 100h",
            "start:  MVI A, 1",
            "        HLT",
        ], bus)
        assert symbols == {"start": 0x0100}
        assert loader.loaded_range == (0x0100, 0x0103)
        assert [ram.read(0x0100 + i) for i in range(3)] == [0x3E, 0x01, 0x76]

    def test_load_assembly_file(self, setup_bus, tmp_path):
        bus, ram = setup_bus
        source = tmp_path / "prog.asm"
        source.write_text("ORG 0200h\nloop: JMP loop\n", encoding="utf-8")
        loader = AssemblyLoader()
        symbols = loader.load_assembly(str(source), bus)
        assert symbols["loop"] == 0x0200
        assert [ram.read(0x0200 + i) for i in range(3)] == [0xC3, 0x00, 0x02]

    def test_empty_source(self, setup_bus):
        bus, _ = setup_bus
        loader = AssemblyLoader()
        assert loader.load_source(["; nothing here"], bus) == {}
        assert loader.loaded_range is None


class TestPatchImage:
    def test_patch_overwrites_loaded_bytes(self, setup_bus):
        bus, ram = setup_bus
        BinaryLoader().load_image(bus, bytes(8), base=0x0000)
        patch_image(bus, [(0x0002, [0xC3, 0x34, 0x12]), (0x0007, [0x76])])
        assert [ram.read(i) for i in range(8)] == [0, 0, 0xC3, 0x34, 0x12, 0, 0, 0x76]
