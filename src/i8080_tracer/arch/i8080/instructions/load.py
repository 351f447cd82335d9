"""
8080 データ転送命令（MOV/MVI/LXI/LDA/STA/LHLD/SHLD/LDAX/STAX/XCHG/XTHL/SPHL/PUSH/POP）の実装。
"""
from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.arch.i8080.stack import push_word, pop_word
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from .base import (
    PAIR_CODES, PUSH_POP_CODES,
    get_register_name, get_register_value, set_register_value,
    get_pair_value, set_pair_value,
    read_operands, word_operand, opcode_of
)

# --- Decoding Functions ---

# @intent:responsibility MOV r,r' (0x40-0x7F, 0x76を除く) をデコードします。
def decode_mov(opcode: int, bus: Bus, pc: int) -> Operation:
    """MOV r,r'命令をデコードします。"""
    dest_reg_name = get_register_name(opcode >> 3)
    src_reg_name = get_register_name(opcode)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="MOV",
        operands=[dest_reg_name, src_reg_name],
        cycle_count=7 if "M" in (dest_reg_name, src_reg_name) else 5,
        length=1
    )

# @intent:responsibility MVI r,d8 をデコードします。
def decode_mvi(opcode: int, bus: Bus, pc: int) -> Operation:
    """MVI r,d8命令をデコードします。"""
    reg_name = get_register_name(opcode >> 3)
    operand_bytes = read_operands(bus, pc, 1)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="MVI",
        operands=[reg_name, f"${operand_bytes[0]:02X}"],
        operand_bytes=operand_bytes,
        cycle_count=10 if reg_name == "M" else 7,
        length=2
    )

# @intent:responsibility LXI rp,d16 をデコードします。
def decode_lxi(opcode: int, bus: Bus, pc: int) -> Operation:
    """LXI rp,d16命令をデコードします。"""
    pair_name = PAIR_CODES[(opcode >> 4) & 0b11]
    operand_bytes = read_operands(bus, pc, 2)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="LXI",
        operands=[pair_name, f"${word_operand(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=10,
        length=3
    )

# @intent:responsibility 直接アドレス指定の転送命令（LDA/STA/LHLD/SHLD）をデコードします。
def decode_direct(opcode: int, bus: Bus, pc: int) -> Operation:
    mnemonic, cycles = {
        0x3A: ("LDA", 13), 0x32: ("STA", 13),
        0x2A: ("LHLD", 16), 0x22: ("SHLD", 16),
    }[opcode]
    operand_bytes = read_operands(bus, pc, 2)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"${word_operand(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=cycles,
        length=3
    )

# @intent:responsibility LDAX/STAX B|D をデコードします。
def decode_ldax_stax(opcode: int, bus: Bus, pc: int) -> Operation:
    """LDAX/STAX命令をデコードします。ビット3が1ならLDAX。"""
    pair_name = PAIR_CODES[(opcode >> 4) & 0b11]
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="LDAX" if opcode & 0x08 else "STAX",
        operands=[pair_name],
        cycle_count=7,
        length=1
    )

def decode_xchg(opcode: int, bus: Bus, pc: int) -> Operation:
    """XCHG命令をデコードします。"""
    return Operation(opcode_hex="EB", mnemonic="XCHG", cycle_count=4, length=1)

def decode_xthl(opcode: int, bus: Bus, pc: int) -> Operation:
    """XTHL命令をデコードします。"""
    return Operation(opcode_hex="E3", mnemonic="XTHL", cycle_count=18, length=1)

def decode_sphl(opcode: int, bus: Bus, pc: int) -> Operation:
    """SPHL命令をデコードします。"""
    return Operation(opcode_hex="F9", mnemonic="SPHL", cycle_count=5, length=1)

def decode_push_pop(opcode: int, bus: Bus, pc: int) -> Operation:
    """PUSH/POP命令をデコードします。"""
    pair_name = PUSH_POP_CODES[(opcode >> 4) & 0b11]
    is_push = (opcode & 0x0F) == 0x05
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="PUSH" if is_push else "POP",
        operands=[pair_name],
        cycle_count=11 if is_push else 10,
        length=1
    )

# --- Execution Functions ---

# @intent:responsibility MOV r,r' を実行します。M は (HL) のメモリを指します。
def execute_mov(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    dest_reg_name, src_reg_name = operation.operands
    value = get_register_value(state, bus, src_reg_name)
    set_register_value(state, bus, dest_reg_name, value)

def execute_mvi(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    set_register_value(state, bus, operation.operands[0], operation.operand_bytes[0])

def execute_lxi(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    set_pair_value(state, operation.operands[0], word_operand(operation.operand_bytes))

# @intent:responsibility LDA/STA/LHLD/SHLD を実行します。
# @intent:rationale 16ビット転送は下位バイトを addr、上位バイトを addr+1 に置きます（addr+1は16ビットで折り返し）。
def execute_direct(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    opcode = opcode_of(operation.opcode_hex)
    addr = word_operand(operation.operand_bytes)
    if opcode == 0x3A:    # LDA
        state.a = bus.read(addr)
    elif opcode == 0x32:  # STA
        bus.write(addr, state.a)
    elif opcode == 0x2A:  # LHLD
        state.l = bus.read(addr)
        state.h = bus.read((addr + 1) & 0xFFFF)
    else:                 # SHLD
        bus.write(addr, state.l)
        bus.write((addr + 1) & 0xFFFF, state.h)

def execute_ldax_stax(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    addr = get_pair_value(state, operation.operands[0])
    if operation.mnemonic == "LDAX":
        state.a = bus.read(addr)
    else:
        bus.write(addr, state.a)

def execute_xchg(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.hl, state.de = state.de, state.hl

# @intent:responsibility XTHL: スタックトップの16ビット値とHLを交換します。SPは変化しません。
def execute_xthl(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    sp_high = (state.sp + 1) & 0xFFFF
    low = bus.read(state.sp)
    high = bus.read(sp_high)
    bus.write(state.sp, state.l)
    bus.write(sp_high, state.h)
    state.l = low
    state.h = high

def execute_sphl(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.sp = state.hl

# @intent:responsibility PUSH/POP rp を実行します。PSWはA+フラグバイトとして扱います。
def execute_push_pop(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    pair_name = operation.operands[0]
    if operation.mnemonic == "PUSH":
        push_word(state, bus, get_pair_value(state, pair_name))
    else:
        set_pair_value(state, pair_name, pop_word(state, bus))
