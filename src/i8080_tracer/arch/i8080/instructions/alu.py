"""
8080 算術論理演算命令の実装。
"""
from i8080_tracer.arch.i8080.state import I8080CpuState, CY_FLAG
from i8080_tracer.arch.i8080 import alu
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from .base import (
    PAIR_CODES,
    get_register_name, get_register_value, set_register_value,
    get_pair_value, set_pair_value,
    read_operands, opcode_of
)

# @intent:constant オペコードのビット5-3で選択される8種類のアキュムレータ演算。
ALU_REGISTER_MNEMONICS = ["ADD", "ADC", "SUB", "SBB", "ANA", "XRA", "ORA", "CMP"]
ALU_IMMEDIATE_MNEMONICS = ["ADI", "ACI", "SUI", "SBI", "ANI", "XRI", "ORI", "CPI"]

# @intent:constant アキュムレータのみに作用する1バイト命令（回転、DAA、CMA、STC、CMC）。
ACCUMULATOR_MNEMONICS = {
    0x07: "RLC", 0x0F: "RRC", 0x17: "RAL", 0x1F: "RAR",
    0x27: "DAA", 0x2F: "CMA", 0x37: "STC", 0x3F: "CMC",
}

# --- Decoding Functions ---

# @intent:responsibility ADD/ADC/SUB/SBB/ANA/XRA/ORA/CMP r (0x80-0xBF) をデコードします。
def decode_alu_r(opcode: int, bus: Bus, pc: int) -> Operation:
    reg_name = get_register_name(opcode)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=ALU_REGISTER_MNEMONICS[(opcode >> 3) & 0b111],
        operands=[reg_name],
        cycle_count=7 if reg_name == "M" else 4,
        length=1
    )

# @intent:responsibility ADI/ACI/SUI/SBI/ANI/XRI/ORI/CPI d8 をデコードします。
def decode_alu_imm(opcode: int, bus: Bus, pc: int) -> Operation:
    operand_bytes = read_operands(bus, pc, 1)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=ALU_IMMEDIATE_MNEMONICS[(opcode >> 3) & 0b111],
        operands=[f"${operand_bytes[0]:02X}"],
        operand_bytes=operand_bytes,
        cycle_count=7,
        length=2
    )

def decode_inr_dcr(opcode: int, bus: Bus, pc: int) -> Operation:
    """INR/DCR r 命令をデコードします。ビット0が1ならDCR。"""
    reg_name = get_register_name(opcode >> 3)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="DCR" if opcode & 0x01 else "INR",
        operands=[reg_name],
        cycle_count=10 if reg_name == "M" else 5,
        length=1
    )

def decode_inx_dcx(opcode: int, bus: Bus, pc: int) -> Operation:
    """INX/DCX rp 命令をデコードします。ビット3が1ならDCX。"""
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="DCX" if opcode & 0x08 else "INX",
        operands=[PAIR_CODES[(opcode >> 4) & 0b11]],
        cycle_count=5,
        length=1
    )

def decode_dad(opcode: int, bus: Bus, pc: int) -> Operation:
    """DAD rp 命令をデコードします。"""
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="DAD",
        operands=[PAIR_CODES[(opcode >> 4) & 0b11]],
        cycle_count=10,
        length=1
    )

def decode_accumulator(opcode: int, bus: Bus, pc: int) -> Operation:
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=ACCUMULATOR_MNEMONICS[opcode],
        cycle_count=4,
        length=1
    )

# --- Execution Functions ---

# @intent:responsibility 演算番号(0-7)に応じたアキュムレータ演算を行い、A とフラグを更新します。
# @intent:rationale CMP/CPIは減算のフラグのみを反映し、Aは変更しません。
def _apply_alu(state: I8080CpuState, alu_op: int, value: int) -> None:
    carry = 1 if state.flag_cy else 0
    if alu_op == 0:
        result = alu.add8(state.a, value)
    elif alu_op == 1:
        result = alu.add8(state.a, value, carry)
    elif alu_op == 2:
        result = alu.sub8(state.a, value)
    elif alu_op == 3:
        result = alu.sub8(state.a, value, carry)
    elif alu_op == 4:
        result = alu.and8(state.a, value)
    elif alu_op == 5:
        result = alu.xor8(state.a, value)
    elif alu_op == 6:
        result = alu.or8(state.a, value)
    else:
        state.update_flags(alu.compare8(state.a, value).flags)
        return
    state.a = result.value
    state.update_flags(result.flags)

def execute_alu_r(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    opcode = opcode_of(operation.opcode_hex)
    value = get_register_value(state, bus, operation.operands[0])
    _apply_alu(state, (opcode >> 3) & 0b111, value)

def execute_alu_imm(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    opcode = opcode_of(operation.opcode_hex)
    _apply_alu(state, (opcode >> 3) & 0b111, operation.operand_bytes[0])

# @intent:responsibility INR/DCR を実行します。CYは変化しません。
def execute_inr_dcr(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    reg_name = operation.operands[0]
    value = get_register_value(state, bus, reg_name)
    result = alu.dec8(value) if operation.mnemonic == "DCR" else alu.inc8(value)
    set_register_value(state, bus, reg_name, result.value)
    state.update_flags(result.flags, alu.INC_DEC_FLAGS)

# INX/DCX はフラグに影響しない
def execute_inx_dcx(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    pair_name = operation.operands[0]
    delta = -1 if operation.mnemonic == "DCX" else 1
    set_pair_value(state, pair_name, get_pair_value(state, pair_name) + delta)

def execute_dad(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    result = alu.add16(state.hl, get_pair_value(state, operation.operands[0]))
    state.hl = result.value
    state.update_flags(result.flags, CY_FLAG)

# @intent:responsibility 回転、DAA、CMA、STC、CMC を実行します。
def execute_accumulator(state: I8080CpuState, bus: Bus, operation: Operation) -> None:
    mnemonic = operation.mnemonic
    carry = 1 if state.flag_cy else 0
    if mnemonic == "CMA":
        state.a = ~state.a & 0xFF
        return
    if mnemonic == "STC":
        state.flag_cy = True
        return
    if mnemonic == "CMC":
        state.flag_cy = not state.flag_cy
        return
    if mnemonic == "DAA":
        result = alu.daa(state.a, state.flag_cy, state.flag_ac)
        state.a = result.value
        state.update_flags(result.flags)
        return

    if mnemonic == "RLC":
        result = alu.rlc(state.a)
    elif mnemonic == "RRC":
        result = alu.rrc(state.a)
    elif mnemonic == "RAL":
        result = alu.ral(state.a, carry)
    else:
        result = alu.rar(state.a, carry)
    state.a = result.value
    state.update_flags(result.flags, CY_FLAG)
