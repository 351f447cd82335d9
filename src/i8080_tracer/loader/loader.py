# i8080_tracer/loader/loader.py
"""
コードローダーモジュール。
生バイナリイメージ（CP/M .COM など）、Intel HEX、アセンブリソースのロードと、
ロード後のパッチ適用をサポートします。
"""
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from i8080_tracer.transport.bus import Bus, ADDRESS_SPACE_SIZE
from i8080_tracer.common.types import SymbolMap
from i8080_tracer.arch.i8080.assembler import I8080Assembler

logger = logging.getLogger(__name__)

# @intent:data_structure ロードされたアドレス範囲 [start, end)。
LoadedRange = Tuple[int, int]


# @intent:responsibility 生バイナリイメージをそのまま指定アドレスに配置します。
class BinaryLoader:
    """
    生バイナリイメージをバスにロードするローダー。
    """
    # @intent:responsibility バイト列を base から順に配置し、ロード範囲 [start, end) を返します。
    # @intent:pre-condition イメージはアドレス空間に収まる必要があります。
    def load_image(self, bus: Bus, data: bytes, base: int = 0x0100) -> LoadedRange:
        end = base + len(data)
        if base < 0 or end > ADDRESS_SPACE_SIZE:
            raise ValueError(
                f"Image of {len(data)} bytes at {base:#06x} does not fit in the 64KB address space"
            )
        for offset, byte in enumerate(data):
            bus.load(base + offset, byte)
        logger.info("Loaded %d bytes at %#06x-%#06x", len(data), base, end - 1 if data else base)
        return base, end

    def load_file(self, file_path: str, bus: Bus, base: int = 0x0100) -> LoadedRange:
        with open(file_path, 'rb') as f:
            data = f.read()
        return self.load_image(bus, data, base)


class IntelHexLoader:
    """
    Intel HEX形式のファイルを解析し、データをバスにロードするローダー。
    """
    # @intent:responsibility Intel HEXファイルをロードし、データレコードが占める範囲 [low, high) を返します。
    def load_intel_hex(self, file_path: str, bus: Bus) -> Optional[LoadedRange]:
        with open(file_path, 'r') as f:
            return self.load_records(f, bus)

    def load_records(self, lines: Iterable[str], bus: Bus) -> Optional[LoadedRange]:
        current_extended_address = 0x0000
        low: Optional[int] = None
        high: Optional[int] = None
        byte_count = 0

        for line_num, line in enumerate(lines, 1):
            line = line.strip()
            if not line or not line.startswith(':'):
                continue

            comment_start = line.find(';')
            if comment_start != -1:
                line = line[:comment_start].strip()

            if len(line) < 11:
                raise ValueError(f"Invalid Intel HEX record format on line {line_num}: Too short - {line}")

            try:
                data_length = int(line[1:3], 16)
                address_field = int(line[3:7], 16)
                record_type = int(line[7:9], 16)
                data_part_str = line[9:-2]
                checksum_field = int(line[-2:], 16)
            except ValueError as e:
                raise ValueError(f"Error parsing Intel HEX line {line_num}: {line} - {e}") from e

            if len(data_part_str) != data_length * 2:
                raise ValueError(f"Data length mismatch on line {line_num}")

            try:
                data_bytes = bytes.fromhex(data_part_str)
            except ValueError as e:
                raise ValueError(f"Error parsing Intel HEX line {line_num}: {line} - {e}") from e

            checksum_sum = data_length + (address_field >> 8) + (address_field & 0xFF) + record_type + sum(data_bytes)
            calculated_checksum = (~checksum_sum + 1) & 0xFF
            if calculated_checksum != checksum_field:
                raise ValueError(
                    f"Checksum mismatch on line {line_num}: Calculated {calculated_checksum:02X}, Expected {checksum_field:02X}"
                )

            if record_type == 0x00:
                load_address = current_extended_address + address_field
                if load_address + data_length > ADDRESS_SPACE_SIZE:
                    raise ValueError(f"Record on line {line_num} lies outside the 64KB address space")
                for i, byte_data in enumerate(data_bytes):
                    bus.load(load_address + i, byte_data)
                if data_length:
                    low = load_address if low is None else min(low, load_address)
                    end = load_address + data_length
                    high = end if high is None else max(high, end)
                    byte_count += data_length
            elif record_type == 0x01:
                break
            elif record_type == 0x02:
                current_extended_address = int(data_part_str, 16) << 4
            elif record_type == 0x04:
                current_extended_address = int(data_part_str, 16) << 16
            elif record_type in (0x03, 0x05):
                # 開始アドレスレコードは8080では使用しない
                pass
            else:
                raise ValueError(f"Unknown Intel HEX record type {record_type:02X} on line {line_num}")

        if low is None:
            logger.info("Intel HEX input contained no data records")
            return None
        logger.info("Loaded %d bytes from Intel HEX at %#06x-%#06x", byte_count, low, high - 1)
        return low, high


class AssemblyLoader:
    """
    アセンブリソースコードを解析し、シンボル情報を抽出し、
    バイナリに変換してバスにロードするローダー。
    """
    def __init__(self):
        self._assembler = I8080Assembler()
        # 直前のロードで配置された範囲 [start, end)
        self.loaded_range: Optional[LoadedRange] = None

    def load_assembly(self, file_path: str, bus: Bus) -> SymbolMap:
        with open(file_path, 'r', encoding="utf-8") as f:
            lines = f.readlines()
        return self.load_source(lines, bus)

    def load_source(self, lines: List[str], bus: Bus) -> SymbolMap:
        symbol_map, binary_data = self._assembler.assemble(lines)

        for addr, data in binary_data:
            bus.load(addr, data)

        if binary_data:
            addresses = [addr for addr, _ in binary_data]
            self.loaded_range = (min(addresses), max(addresses) + 1)
            logger.info(
                "Assembled %d bytes at %#06x-%#06x (%d symbols)",
                len(binary_data), self.loaded_range[0], self.loaded_range[1] - 1, len(symbol_map)
            )
        else:
            self.loaded_range = None
        return symbol_map


# @intent:responsibility ロード後のイメージに (アドレス, バイト列) のパッチを適用します。
def patch_image(bus: Bus, patches: Iterable[Tuple[int, Sequence[int]]]) -> None:
    for address, data in patches:
        for offset, byte in enumerate(data):
            bus.load(address + offset, byte)
        logger.info("Patched %d byte(s) at %#06x", len(data), address)
