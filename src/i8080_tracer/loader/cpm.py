# i8080_tracer/loader/cpm.py
"""
CP/M ページゼロのエミュレーション。

CP/M用に書かれたプログラム（.COM、0x0100からロード）を実行するため、
ウォームブートベクタとBDOSエントリを最小限の8080コードで提供します。

    0x0000  HLT             ; ウォームブート = プログラム終了
    0x0005  JMP BDOS_ROUTINE
    0x0040  BDOS_ROUTINE    ; C=2: Eの文字を出力 / C=9: DEの'$'終端文字列を出力
"""
import logging
from typing import List, Sequence, Tuple

from i8080_tracer.transport.bus import Bus

logger = logging.getLogger(__name__)

# @intent:constant CP/M ページゼロ上のアドレス。
WARM_BOOT_ADDRESS = 0x0000
BDOS_ENTRY_ADDRESS = 0x0005
BDOS_ROUTINE_ADDRESS = 0x0040
TPA_START_ADDRESS = 0x0100

# @intent:constant BDOSの機能番号（Cレジスタ）。
BDOS_CONSOLE_OUTPUT = 2
BDOS_PRINT_STRING = 9

# @intent:constant 古典的な cpudiag.bin を実行するためのパッチ。
#   0x0170: スタックポインタ初期化の修正 (LXI SP の上位バイト)
#   0x059C: DAA テストの迂回 (JMP 0x05C2)
CPUDIAG_PATCHES: List[Tuple[int, Sequence[int]]] = [
    (0x0170, [0x07]),
    (0x059C, [0xC3, 0xC2, 0x05]),
]


# @intent:responsibility BDOSルーチンの機械語を生成します（address に配置する前提の絶対アドレスを含む）。
def build_bdos_routine(address: int = BDOS_ROUTINE_ADDRESS, console_port: int = 1) -> List[int]:
    putc = address + 12
    puts = address + 16
    return [
        0x79,                                        # MOV A,C
        0xFE, BDOS_CONSOLE_OUTPUT,                   # CPI 2
        0xCA, putc & 0xFF, putc >> 8,                # JZ putc
        0xFE, BDOS_PRINT_STRING,                     # CPI 9
        0xCA, puts & 0xFF, puts >> 8,                # JZ puts
        0xC9,                                        # RET
        # putc:
        0x7B,                                        # MOV A,E
        0xD3, console_port,                          # OUT port
        0xC9,                                        # RET
        # puts:
        0x1A,                                        # LDAX D
        0xFE, ord('$'),                              # CPI '$'
        0xC8,                                        # RZ
        0xD3, console_port,                          # OUT port
        0x13,                                        # INX D
        0xC3, puts & 0xFF, puts >> 8,                # JMP puts
    ]


# @intent:responsibility ページゼロにウォームブート（HLT）とBDOSエントリ、BDOSルーチンを配置します。
# @intent:pre-condition 0x0000-0x00FF にRAMまたはROMがマップされている必要があります。
def install_cpm_page_zero(bus: Bus, console_port: int = 1) -> None:
    bus.load(WARM_BOOT_ADDRESS, 0x76)  # HLT
    bus.load(BDOS_ENTRY_ADDRESS, 0xC3)  # JMP BDOS_ROUTINE
    bus.load(BDOS_ENTRY_ADDRESS + 1, BDOS_ROUTINE_ADDRESS & 0xFF)
    bus.load(BDOS_ENTRY_ADDRESS + 2, BDOS_ROUTINE_ADDRESS >> 8)
    for offset, byte in enumerate(build_bdos_routine(BDOS_ROUTINE_ADDRESS, console_port)):
        bus.load(BDOS_ROUTINE_ADDRESS + offset, byte)
    logger.info("Installed CP/M page zero (BDOS console on port %#04x)", console_port)
