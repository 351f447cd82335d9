# i8080_tracer/transport/console.py
"""
コンソール出力デバイス。

I/Oポートに書き込まれたバイトを文字として蓄積します。
CP/M BDOSのコンソール出力ルーチン（loader.cpm）の出力先として使用されます。
"""
from typing import List

from i8080_tracer.transport.bus import Device


# @intent:responsibility I/Oポートへの書き込みを文字出力として記録します。
class ConsoleDevice(Device):
    def __init__(self):
        self._output: List[int] = []

    # 入力デバイスは無いため、読み出しは常に0を返す。
    def read(self, address: int) -> int:
        return 0x00

    def write(self, address: int, data: int) -> None:
        self._output.append(data & 0xFF)

    # @intent:responsibility これまでの出力をテキストとして返します。
    def get_output(self) -> str:
        return bytes(self._output).decode("ascii", errors="replace")

    def clear(self) -> None:
        self._output = []
