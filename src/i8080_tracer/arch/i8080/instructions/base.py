"""
8080命令セット実装のための共通ヘルパー関数と定数。
"""
from typing import List

from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.transport.bus import Bus

# Helper functions for register mapping (オペコード中の3ビットのレジスタフィールド)
REGISTER_CODES = {
    0b000: "B", 0b001: "C", 0b010: "D", 0b011: "E",
    0b100: "H", 0b101: "L", 0b110: "M", 0b111: "A"
}

# @intent:constant LXI/INX/DCX/DAD で使用されるレジスタペア(rp)。
PAIR_CODES = {0b00: "B", 0b01: "D", 0b10: "H", 0b11: "SP"}

# @intent:constant PUSH/POP で使用されるレジスタペア。SPの位置はPSWになります。
PUSH_POP_CODES = {0b00: "B", 0b01: "D", 0b10: "H", 0b11: "PSW"}

# @intent:constant 条件付き分岐/コール/リターンの条件コード(ccc)。
CONDITION_CODES = {
    0b000: "NZ", 0b001: "Z", 0b010: "NC", 0b011: "C",
    0b100: "PO", 0b101: "PE", 0b110: "P", 0b111: "M"
}

# @intent:constant 各ペア名が指すCPU状態の属性名。
_PAIR_ATTRIBUTES = {"B": "bc", "D": "de", "H": "hl", "SP": "sp", "PSW": "psw"}

# @intent:utility_function 指定されたコードに対応するレジスタ名を返します。
def get_register_name(code: int) -> str:
    return REGISTER_CODES[code & 0b111]

# @intent:utility_function レジスタ名（またはM = (HL)）に基づいて現在の値を取得します。
def get_register_value(state: I8080CpuState, bus: Bus, reg_name: str) -> int:
    if reg_name == "M":
        return bus.read(state.hl)
    return getattr(state, reg_name.lower())

# @intent:utility_function レジスタ名（またはM = (HL)）に値を設定します。
def set_register_value(state: I8080CpuState, bus: Bus, reg_name: str, value: int) -> None:
    if reg_name == "M":
        bus.write(state.hl, value & 0xFF)
    else:
        setattr(state, reg_name.lower(), value & 0xFF)

# @intent:utility_function ペア名(B/D/H/SP/PSW)の16ビット値を取得します。
def get_pair_value(state: I8080CpuState, pair_name: str) -> int:
    return getattr(state, _PAIR_ATTRIBUTES[pair_name])

def set_pair_value(state: I8080CpuState, pair_name: str, value: int) -> None:
    setattr(state, _PAIR_ATTRIBUTES[pair_name], value & 0xFFFF)

# @intent:utility_function 条件コードをフラグに照らして評価します。
def check_condition(state: I8080CpuState, cc_code: int) -> bool:
    cc_code &= 0b111
    if cc_code == 0b000: return not state.flag_z  # NZ
    if cc_code == 0b001: return state.flag_z      # Z
    if cc_code == 0b010: return not state.flag_cy # NC
    if cc_code == 0b011: return state.flag_cy     # C
    if cc_code == 0b100: return not state.flag_p  # PO (parity odd)
    if cc_code == 0b101: return state.flag_p      # PE (parity even)
    if cc_code == 0b110: return not state.flag_s  # P (plus)
    return state.flag_s                           # M (minus)

# @intent:utility_function 命令に続くオペランドバイトを読み込みます（PCからの相対位置、16ビットで折り返し）。
def read_operands(bus: Bus, pc: int, count: int) -> List[int]:
    return [bus.read((pc + 1 + i) & 0xFFFF) for i in range(count)]

# @intent:utility_function リトルエンディアンの2バイトオペランドを16ビット値に変換します。
def word_operand(operand_bytes: List[int]) -> int:
    low, high = operand_bytes
    return (high << 8) | low

# @intent:utility_function Operationのopcode_hexから数値のオペコードを得ます。
def opcode_of(opcode_hex: str) -> int:
    return int(opcode_hex, 16)
