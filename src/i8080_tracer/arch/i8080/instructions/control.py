"""
8080 制御命令（分岐、コール、リターン、リスタート、I/O、システム制御）の実装。
"""
from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.arch.i8080.stack import push_word, pop_word
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from .base import CONDITION_CODES, check_condition, read_operands, word_operand, opcode_of

# @intent:constant 8080のドキュメント化されていないNOPの別名。
NOP_ALIASES = (0x08, 0x10, 0x18, 0x20, 0x28, 0x30, 0x38)

# --- Decoding Functions ---

def decode_nop(opcode: int, bus: Bus, pc: int) -> Operation:
    """NOP命令（および別名）をデコードします。"""
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic="NOP", cycle_count=4, length=1)

# @intent:responsibility オペコード0x76 (HLT) をデコードします。
def decode_hlt(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="76", mnemonic="HLT", cycle_count=7, length=1)

def _decode_address(opcode: int, bus: Bus, pc: int, mnemonic: str, cycles: int) -> Operation:
    operand_bytes = read_operands(bus, pc, 2)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"${word_operand(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=cycles,
        length=3
    )

# @intent:responsibility オペコード0xC3 (JMP a16) をデコードします。
def decode_jmp(opcode: int, bus: Bus, pc: int) -> Operation:
    return _decode_address(opcode, bus, pc, "JMP", 10)

# @intent:responsibility Jcc a16 (JNZ, JZ, JNC, JC, JPO, JPE, JP, JM) をデコードします。
def decode_jcc(opcode: int, bus: Bus, pc: int) -> Operation:
    return _decode_address(opcode, bus, pc, "J" + CONDITION_CODES[(opcode >> 3) & 0b111], 10)

# @intent:responsibility オペコード0xCD (CALL a16) をデコードします。
def decode_call(opcode: int, bus: Bus, pc: int) -> Operation:
    return _decode_address(opcode, bus, pc, "CALL", 17)

def decode_ccc(opcode: int, bus: Bus, pc: int) -> Operation:
    """Ccc a16 (CNZ, CZ, ...) をデコードします。"""
    return _decode_address(opcode, bus, pc, "C" + CONDITION_CODES[(opcode >> 3) & 0b111], 17)

def decode_ret(opcode: int, bus: Bus, pc: int) -> Operation:
    """RET命令をデコードします。"""
    return Operation(opcode_hex="C9", mnemonic="RET", cycle_count=10, length=1)

def decode_rcc(opcode: int, bus: Bus, pc: int) -> Operation:
    """Rcc (RNZ, RZ, ...) をデコードします。"""
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="R" + CONDITION_CODES[(opcode >> 3) & 0b111],
        cycle_count=11,
        length=1
    )

# @intent:responsibility RST n をデコードします。ベクタは n * 8 です。
def decode_rst(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="RST",
        operands=[str((opcode >> 3) & 0b111)],
        cycle_count=11,
        length=1
    )

def decode_pchl(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(opcode_hex="E9", mnemonic="PCHL", cycle_count=5, length=1)

def decode_ei_di(opcode: int, bus: Bus, pc: int) -> Operation:
    """EI (0xFB) / DI (0xF3) をデコードします。"""
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="EI" if opcode == 0xFB else "DI",
        cycle_count=4,
        length=1
    )

# @intent:responsibility IN port (0xDB) / OUT port (0xD3) をデコードします。
def decode_in_out(opcode: int, bus: Bus, pc: int) -> Operation:
    operand_bytes = read_operands(bus, pc, 1)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="IN" if opcode == 0xDB else "OUT",
        operands=[f"${operand_bytes[0]:02X}"],
        operand_bytes=operand_bytes,
        cycle_count=10,
        length=2
    )

# --- Execution Functions ---

def execute_nop(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    pass

# @intent:responsibility HLT命令を実行し、CPUを停止状態にします。
def execute_hlt(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.halted = True

def execute_jmp(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = word_operand(operation.operand_bytes)

# @intent:responsibility 条件成立時のみ分岐します。不成立時のPCはオペランドの直後（更新済み）です。
def execute_jcc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    if check_condition(state, opcode_of(operation.opcode_hex) >> 3):
        state.pc = word_operand(operation.operand_bytes)

# @intent:responsibility 次の命令のアドレス（PC更新済み）をプッシュし、サブルーチンへ分岐します。
def execute_call(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    push_word(state, bus, state.pc)
    state.pc = word_operand(operation.operand_bytes)

def execute_ccc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    if check_condition(state, opcode_of(operation.opcode_hex) >> 3):
        execute_call(state, bus, operation)

def execute_ret(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = pop_word(state, bus)

def execute_rcc(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    if check_condition(state, opcode_of(operation.opcode_hex) >> 3):
        state.pc = pop_word(state, bus)

def execute_rst(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    push_word(state, bus, state.pc)
    state.pc = int(operation.operands[0]) * 8

def execute_pchl(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.pc = state.hl

# 割り込みは実装しないため、ラッチのみ
def execute_ei_di(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    state.inte = operation.mnemonic == "EI"

def execute_in_out(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    port = operation.operand_bytes[0]
    if operation.mnemonic == "IN":
        state.a = bus.read_io(port)
    else:
        bus.write_io(port, state.a)
