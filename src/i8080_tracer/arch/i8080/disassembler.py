"""
8080逆アセンブラモジュール。

メモリ上のバイナリデータを解析し、8080アセンブリ言語のニーモニック形式に変換します。
"""
from typing import List, Tuple

from i8080_tracer.transport.bus import Bus
from i8080_tracer.arch.i8080.instructions import decode_opcode

# @intent:responsibility 指定されたメモリ範囲のバイナリデータを解析し、アドレスとニーモニックのリストを返します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    メモリ上のデータを読み取り、(アドレス, 16進ダンプ, ニーモニック) のタプルのリストを返します。
    未定義のオペコードは "DB $XX" として1バイトずつ表示します。
    """
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    # デコーダのオペランド読み込みで記録されるログは、実行中の命令のログと混ざらないよう退避しておく
    pending_log = bus.get_and_clear_activity_log()

    while current_addr < end_addr and current_addr <= 0xFFFF:
        try:
            # ログを汚さないためにpeekを使用
            opcode = bus.peek(current_addr)
            operation = decode_opcode(opcode, bus, current_addr)

            hex_dump = " ".join(f"{b:02X}" for b in [opcode] + list(operation.operand_bytes))

            if operation.mnemonic == "UNKNOWN":
                mnemonic = f"DB ${opcode:02X}"
            else:
                mnemonic = operation.mnemonic
                if operation.operands:
                    mnemonic += " " + ",".join(operation.operands)

            result.append((current_addr, hex_dump, mnemonic))
            current_addr += operation.length

        except IndexError:
            # メモリ範囲外エラーなどの場合
            result.append((current_addr, "??", "ERR"))
            current_addr += 1

    bus.get_and_clear_activity_log()
    bus.restore_activity_log(pending_log)
    return result
