"""
8080命令セット実装パッケージ。
"""
from i8080_tracer.transport.bus import Bus
from i8080_tracer.core.snapshot import Operation
from i8080_tracer.arch.i8080.state import I8080CpuState
from .maps import DECODE_MAP, EXECUTE_MAP, UNDEFINED_OPCODES

# @intent:responsibility 与えられたオペコードを8080の命令としてデコードします。
# @intent:pre-condition `pc`はデコードするオペコードの先頭アドレスを指している必要があります。
def decode_opcode(opcode: int, bus: Bus, pc: int) -> Operation:
    """
    8080のオペコードをデコードし、Operationオブジェクトを返します。
    未定義のオペコードの場合は"UNKNOWN"を返します（実行可否の判断は呼び出し側が行います）。
    """
    decoder = DECODE_MAP.get(opcode)
    if decoder:
        return decoder(opcode, bus, pc)
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic="UNKNOWN", operands=[f"${opcode:02X}"], cycle_count=4, length=1)

# @intent:responsibility デコードされた8080命令を実行し、CPUの状態を変更します。
# @intent:pre-condition `operation`は有効なOperationオブジェクトである必要があります。
def execute_instruction(operation: Operation, state: I8080CpuState, bus: Bus) -> None:
    executor = EXECUTE_MAP.get(int(operation.opcode_hex, 16))
    if executor:
        executor(state, bus, operation)
