# i8080_tracer/arch/i8080/cpu.py
"""
Intel 8080 CPUエミュレーションの中心モジュール。

このモジュールは8080 CPUの具体的な実装を提供し、
AbstractCpuインターフェースを実装します。
"""
from typing import Dict, List, Tuple

from i8080_tracer.core.cpu import AbstractCpu
from i8080_tracer.core.errors import UnimplementedOpcodeError
from i8080_tracer.core.snapshot import Operation
from i8080_tracer.arch.i8080.state import I8080CpuState
from i8080_tracer.arch.i8080.instructions import decode_opcode, execute_instruction
from i8080_tracer.arch.i8080 import disassembler
from i8080_tracer.transport.bus import Bus
from i8080_tracer.common.types import RegisterLayoutInfo, RegisterInfo

# @intent:responsibility 8080 CPUの具体的なエミュレーションロジックを提供します。
class I8080Cpu(AbstractCpu):
    """
    Intel 8080 CPUをエミュレートするクラス。
    AbstractCpuを継承し、命令のデコードと実行を命令テーブルに委譲します。
    """
    def __init__(self, bus: Bus):
        super().__init__(bus)

    # @intent:responsibility I/O空間（Port I/O）のサポートを宣言します。8080は256ポートの独立したI/O空間を持ちます。
    @property
    def has_io_port(self) -> bool:
        """
        トレース用フロントエンド（デバッガ画面など）がI/Oポート表示の要否を判断するための問い合わせです。
        """
        return True

    # @intent:responsibility 8080 CPUの初期状態（全レジスタ・フラグ0）を生成します。
    def _create_initial_state(self) -> I8080CpuState:
        return I8080CpuState()

    # @intent:responsibility 現在のPCからオペコードをフェッチします。PCの更新はstepメソッドで命令長に応じて行います。
    def _fetch(self) -> int:
        return self._bus.read(self._state.pc)

    # @intent:responsibility フェッチしたオペコードをデコードし、Operationオブジェクトを返します。
    # @intent:post-condition 未定義のオペコードの場合、PCを進める前にUnimplementedOpcodeErrorを送出します。
    def _decode(self, opcode: int) -> Operation:
        operation = decode_opcode(opcode, self._bus, self._state.pc)
        if operation.mnemonic == "UNKNOWN":
            raise UnimplementedOpcodeError(opcode, self._state.pc)
        return operation

    def _execute(self, operation: Operation) -> None:
        execute_instruction(operation, self._state, self._bus)

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        return {
            "A": s.a, "F": s.psw & 0xFF, "B": s.b, "C": s.c, "D": s.d, "E": s.e, "H": s.h, "L": s.l,
            "PSW": s.psw, "BC": s.bc, "DE": s.de, "HL": s.hl,
            "SP": s.sp, "PC": s.pc,
        }

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """
        トレース用フロントエンドがレジスタ表示をグループ化するための定義を返します。
        名前は get_register_map() のキーに対応します。
        """
        return [
            RegisterLayoutInfo("Main Registers", [
                RegisterInfo("A", 8), RegisterInfo("B", 8), RegisterInfo("C", 8), RegisterInfo("D", 8),
                RegisterInfo("E", 8), RegisterInfo("H", 8), RegisterInfo("L", 8)
            ]),
            RegisterLayoutInfo("Pairs", [
                RegisterInfo("PSW", 16), RegisterInfo("BC", 16), RegisterInfo("DE", 16), RegisterInfo("HL", 16)
            ]),
            RegisterLayoutInfo("Pointers", [
                RegisterInfo("SP", 16), RegisterInfo("PC", 16)
            ]),
        ]

    def get_flag_state(self) -> Dict[str, bool]:
        s = self._state
        return {
            "S": s.flag_s,
            "Z": s.flag_z,
            "AC": s.flag_ac,
            "P": s.flag_p,
            "CY": s.flag_cy,
        }

    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassembler.disassemble(self._bus, start_addr, length)
