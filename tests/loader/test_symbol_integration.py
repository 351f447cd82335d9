import pytest
from i8080_tracer.arch.i8080.cpu import I8080Cpu
from i8080_tracer.transport.bus import Bus, RAM
from i8080_tracer.loader.loader import AssemblyLoader

def test_symbol_integration(tmp_path):
    bus = Bus()
    ram = RAM(1024)
    bus.register_device(0, 1023, ram)
    cpu = I8080Cpu(bus)

    asm_file = tmp_path / "temp.asm"
    asm_file.write_text("""
ORG $0000
START:
    NOP
    MVI A, $AA
LOOP:
    HLT
    """)

    loader = AssemblyLoader()
    symbols = loader.load_assembly(str(asm_file), bus)
    cpu.set_symbol_map(symbols)

    assert symbols["START"] == 0x0000
    assert symbols["LOOP"] == 0x0003 # START(0)+NOP(1)+MVI A,n(2) = 3

    # Step START
    snap = cpu.step()
    assert "START: NOP" in snap.metadata.symbol_info

    # Step MVI A, $AA
    snap = cpu.step()
    assert snap.metadata.symbol_info == "MVI A, $AA"

    # Step LOOP
    snap = cpu.step()
    assert "LOOP: HLT" in snap.metadata.symbol_info
