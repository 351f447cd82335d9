# i8080_tracer/loader/assembler.py
"""
アセンブラの共通基盤。
行の分解（ラベル/ニーモニック/オペランド）と数値・シンボル式の評価を提供します。
アーキテクチャ固有のアセンブラ（arch.i8080.assembler）がこれを継承し、AssemblyLoaderから利用されます。
"""
import re
from abc import ABC, abstractmethod
from typing import Tuple, List, Optional

from i8080_tracer.common.types import SymbolMap

# @intent:constant 式中の項を区切る演算子（+/-）。文字リテラル内は対象外。
_TERM_PATTERN = re.compile(r"('(?:[^']|'')*'|[^+\-]+)|([+\-])")


# @intent:responsibility アセンブラの共通インターフェースを定義します。
class BaseAssembler(ABC):
    @abstractmethod
    def assemble(self, lines: List[str]) -> Tuple[SymbolMap, List[Tuple[int, int]]]:
        """
        アセンブリソースを行単位で解析し、シンボルマップと (アドレス, バイト) のリストを返します。
        """
        pass

    # @intent:responsibility 1行を (ラベル, ニーモニック, オペランド文字列) に分解します。
    def _parse_line(self, line: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        line = self._strip_comment(line).strip()
        if not line:
            return None, None, None

        label = None
        match = re.match(r"^([A-Za-z_.?@][\w.?@]*)\s*:(.*)$", line)
        if match:
            label = match.group(1)
            line = match.group(2).strip()

        if not line:
            return label, None, None

        parts = re.split(r'\s+', line, maxsplit=1)
        mnemonic = parts[0].upper()
        operands = parts[1].strip() if len(parts) > 1 else ""

        return label, mnemonic, operands

    # @intent:responsibility 文字列リテラルの外側にある ';' 以降をコメントとして取り除きます。
    @staticmethod
    def _strip_comment(line: str) -> str:
        quote = None
        for i, ch in enumerate(line):
            if quote:
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
            elif ch == ';':
                return line[:i]
        return line

    # @intent:responsibility カンマ区切りのオペランドを分割します（文字列リテラル内のカンマは区切りとしない）。
    @staticmethod
    def _split_operands(operands: str) -> List[str]:
        if not operands.strip():
            return []
        result, current, quote = [], "", None
        for ch in operands:
            if quote:
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
            elif ch == ',':
                result.append(current.strip())
                current = ""
                continue
            current += ch
        result.append(current.strip())
        return result

    # @intent:responsibility 数値リテラル、文字リテラル、シンボル、およびそれらの +/- 式を評価します。
    def _parse_val(self, val_str: str, symbol_map: SymbolMap) -> int:
        val_str = val_str.strip()
        if not val_str:
            raise ValueError("Missing value")

        total = 0
        sign = 1
        expect_term = True
        for term, operator in _TERM_PATTERN.findall(val_str):
            if operator:
                if expect_term:
                    # 単項マイナス（例: -1）
                    sign = -sign if operator == '-' else sign
                else:
                    sign = 1 if operator == '+' else -1
                    expect_term = True
                continue
            term = term.strip()
            if not term:
                continue
            total += sign * self._parse_term(term, symbol_map)
            sign = 1
            expect_term = False

        if expect_term:
            raise ValueError(f"Invalid expression: {val_str}")
        return total

    def _parse_term(self, term: str, symbol_map: SymbolMap) -> int:
        if len(term) >= 3 and term[0] == "'" and term[-1] == "'":
            chars = term[1:-1].replace("''", "'")
            if len(chars) != 1:
                raise ValueError(f"Invalid character literal: {term}")
            return ord(chars)
        if term.startswith('$') and len(term) > 1:
            return int(term[1:], 16)
        if term.lower().startswith('0x'):
            return int(term, 16)
        if re.fullmatch(r'[0-9][0-9A-Fa-f]*[hH]', term):
            return int(term[:-1], 16)
        if re.fullmatch(r'[01]+[bB]', term):
            return int(term[:-1], 2)
        if term.isdigit():
            return int(term)
        if term in symbol_map:
            return symbol_map[term]
        raise ValueError(f"Undefined symbol or invalid value: {term}")
