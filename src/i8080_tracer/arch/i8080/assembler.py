# i8080_tracer/arch/i8080/assembler.py
"""
Intel 8080 2パスアセンブラ。

命令のエンコード表はデコードテーブル（DECODE_MAP）から逆引きで構築するため、
アセンブラと逆アセンブラのニーモニック表記は常に一致します。
"""
from typing import Dict, List, Optional, Tuple

from i8080_tracer.common.types import SymbolMap
from i8080_tracer.loader.assembler import BaseAssembler
from i8080_tracer.transport.bus import Bus, RAM, ADDRESS_SPACE_SIZE
from i8080_tracer.arch.i8080.instructions.maps import DECODE_MAP

# @intent:data_structure (ニーモニック, 固定オペランド) -> (オペコード, 即値のバイト数)
EncodingTable = Dict[Tuple[str, Tuple[str, ...]], Tuple[int, int]]


# @intent:responsibility 全ての定義済みオペコードをデコードし、アセンブル用の逆引き表を構築します。
# @intent:rationale '$'で始まるオペランドは即値（d8/a16）のプレースホルダとして扱い、表のキーから除外します。
def build_encoding_table() -> EncodingTable:
    scratch = Bus()
    scratch.register_device(0x0000, ADDRESS_SPACE_SIZE - 1, RAM(ADDRESS_SPACE_SIZE))
    table: EncodingTable = {}
    for opcode in sorted(DECODE_MAP):
        operation = DECODE_MAP[opcode](opcode, scratch, 0x0000)
        fixed = tuple(op for op in operation.operands if not op.startswith('$'))
        # NOPの別名より正規のオペコード(0x00)を優先する
        table.setdefault((operation.mnemonic, fixed), (opcode, operation.length - 1))
    return table


# @intent:responsibility 8080用のアセンブラ実装。
class I8080Assembler(BaseAssembler):
    """
    ラベル、ORG、DB、DW、DS、EQU、END と全ての8080ニーモニックをサポートする2パスアセンブラ。
    数値は 10進、$FF、0xFF、0FFh、101b 形式、文字は 'c' 形式で記述できます。
    式中の '$' は現在の命令のアドレスを表します。
    """
    def __init__(self):
        super().__init__()
        self._encodings = build_encoding_table()

    def assemble(self, lines: List[str]) -> Tuple[SymbolMap, List[Tuple[int, int]]]:
        parsed_lines = [self._parse_line(line) for line in lines]

        # First pass: シンボルマップを構築し、各行のアドレスを確定する
        symbol_map: SymbolMap = {}
        temp_pc = 0
        for line_no, (label, mnemonic, operands) in enumerate(parsed_lines, start=1):
            label, mnemonic, operands = self._normalize_equ(label, mnemonic, operands)
            if mnemonic == "EQU":
                symbol_map[label] = self._evaluate(operands, symbol_map, temp_pc, line_no)
                continue
            if label:
                if label in symbol_map:
                    raise ValueError(f"Line {line_no}: duplicate symbol '{label}'")
                symbol_map[label] = temp_pc
            if not mnemonic:
                continue
            if mnemonic == "END":
                break
            if mnemonic == "ORG":
                temp_pc = self._evaluate(operands, symbol_map, temp_pc, line_no)
                continue
            temp_pc += self._statement_length(mnemonic, operands, symbol_map, temp_pc, line_no)

        # Second pass: バイナリを生成する
        binary_data: List[Tuple[int, int]] = []
        current_pc = 0
        for line_no, (label, mnemonic, operands) in enumerate(parsed_lines, start=1):
            label, mnemonic, operands = self._normalize_equ(label, mnemonic, operands)
            if not mnemonic or mnemonic == "EQU":
                continue
            if mnemonic == "END":
                break
            if mnemonic == "ORG":
                current_pc = self._evaluate(operands, symbol_map, current_pc, line_no)
                continue

            data = self._assemble_statement(mnemonic, operands, symbol_map, current_pc, line_no)
            if current_pc + len(data) > ADDRESS_SPACE_SIZE:
                raise ValueError(f"Line {line_no}: code exceeds the 64KB address space")
            for i, byte in enumerate(data):
                binary_data.append((current_pc + i, byte))
            current_pc += len(data)

        return symbol_map, binary_data

    # @intent:responsibility "NAME EQU value" 形式（コロンなし）を (NAME, EQU, value) に正規化します。
    def _normalize_equ(self, label: Optional[str], mnemonic: Optional[str],
                       operands: Optional[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        if mnemonic and not label and operands:
            parts = operands.split(None, 1)
            if parts[0].upper() == "EQU":
                return mnemonic, "EQU", parts[1] if len(parts) > 1 else ""
        if mnemonic == "EQU" and not label:
            raise ValueError(f"EQU without a symbol name: {operands}")
        return label, mnemonic, operands

    def _evaluate(self, expression: str, symbol_map: SymbolMap, pc: int, line_no: int) -> int:
        try:
            return self._parse_val(expression, {**symbol_map, "$": pc})
        except ValueError as e:
            raise ValueError(f"Line {line_no}: {e}") from e

    # @intent:responsibility 1パス目用に文の長さを求めます。前方参照のシンボルは評価しません。
    def _statement_length(self, mnemonic: str, operands: str, symbol_map: SymbolMap, pc: int, line_no: int) -> int:
        if mnemonic == "DB":
            return len(self._db_bytes(operands, None, pc, line_no))
        if mnemonic == "DW":
            return 2 * len(self._split_operands(operands))
        if mnemonic == "DS":
            return self._evaluate(operands, symbol_map, pc, line_no)
        opcode, immediate_size, _ = self._lookup(mnemonic, operands, line_no)
        return 1 + immediate_size

    def _assemble_statement(self, mnemonic: str, operands: str, symbol_map: SymbolMap, pc: int, line_no: int) -> List[int]:
        if mnemonic == "DB":
            return self._db_bytes(operands, symbol_map, pc, line_no)
        if mnemonic == "DW":
            words = []
            for item in self._split_operands(operands):
                value = self._evaluate(item, symbol_map, pc, line_no)
                words.extend([value & 0xFF, (value >> 8) & 0xFF])
            return words
        if mnemonic == "DS":
            return [0x00] * self._evaluate(operands, symbol_map, pc, line_no)

        opcode, immediate_size, immediate = self._lookup(mnemonic, operands, line_no)
        data = [opcode]
        if immediate_size:
            value = self._evaluate(immediate, symbol_map, pc, line_no)
            data.append(value & 0xFF)
            if immediate_size == 2:
                data.append((value >> 8) & 0xFF)
        return data

    # @intent:responsibility DBのオペランド（数値、式、文字列リテラル）をバイト列に変換します。
    #                  symbol_mapがNoneの場合は長さ計算のみを目的とし、式は評価しません。
    def _db_bytes(self, operands: str, symbol_map: Optional[SymbolMap], pc: int, line_no: int) -> List[int]:
        data: List[int] = []
        for item in self._split_operands(operands):
            if self._is_string_literal(item):
                quote = item[0]
                data.extend(ord(ch) & 0xFF for ch in item[1:-1].replace(quote * 2, quote))
            elif symbol_map is None:
                data.append(0)
            else:
                data.append(self._evaluate(item, symbol_map, pc, line_no) & 0xFF)
        return data

    # 'A'+1 のような式は文字列として扱わない
    @staticmethod
    def _is_string_literal(item: str) -> bool:
        if len(item) < 2 or item[0] not in ("'", '"') or item[-1] != item[0]:
            return False
        return item[0] not in item[1:-1].replace(item[0] * 2, "")

    # @intent:responsibility ニーモニックとオペランドからオペコード、即値のサイズ、即値の式を特定します。
    def _lookup(self, mnemonic: str, operands: str, line_no: int) -> Tuple[int, int, str]:
        items = self._split_operands(operands)
        upper = tuple(item.upper() for item in items)

        # 即値を持たない命令（MOV A,B / PUSH PSW / RST 7 など）
        entry = self._encodings.get((mnemonic, upper))
        if entry and entry[1] == 0:
            return entry[0], 0, ""

        # 最後のオペランドを即値として扱う命令（MVI A,5 / LXI H,msg / JMP loop など）
        if items:
            entry = self._encodings.get((mnemonic, upper[:-1]))
            if entry and entry[1] > 0:
                return entry[0], entry[1], items[-1]

        statement = f"{mnemonic} {operands}".strip()
        raise ValueError(f"Line {line_no}: cannot assemble '{statement}'")
