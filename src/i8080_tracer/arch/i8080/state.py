# i8080_tracer/arch/i8080/state.py
"""
Intel 8080 CPU固有の状態定義。

このモジュールは、8080のレジスタファイル、コンディションフラグ、
およびレジスタペアのアクセサを保持するデータ構造を定義します。
"""
from dataclasses import dataclass

from i8080_tracer.core.state import CpuState

# 8080フラグビットマスク（PSWの下位バイトのレイアウト）
# @intent:constant PUSH PSW でスタックに積まれるフラグバイト内の各フラグビットの位置を定義します。
S_FLAG = 0b10000000   # Sign
Z_FLAG = 0b01000000   # Zero
# 0b00100000 # 常に0
AC_FLAG = 0b00010000  # Auxiliary Carry
# 0b00001000 # 常に0
P_FLAG = 0b00000100   # Parity (偶数でセット)
FIXED_ONE = 0b00000010  # 常に1
CY_FLAG = 0b00000001  # Carry

ALL_FLAGS = S_FLAG | Z_FLAG | AC_FLAG | P_FLAG | CY_FLAG


# @intent:responsibility 8080 CPUの全てのレジスタとフラグの状態を保持します。
@dataclass
class I8080CpuState(CpuState):
    """
    8080のレジスタ状態を保持するデータクラス。
    7本の8ビットレジスタは独立したフィールドとして保持し、
    レジスタペア(BC, DE, HL)は上位/下位の規約を強制するアクセサ経由でのみ16ビットとして扱います。
    """
    a: int = 0x00
    b: int = 0x00
    c: int = 0x00
    d: int = 0x00
    e: int = 0x00
    h: int = 0x00
    l: int = 0x00
    f: int = 0x00  # Flag byte (ALL_FLAGSのビットのみ保持)

    inte: bool = False   # Interrupt enable latch (EI/DI)
    halted: bool = False # HLT命令による停止

    # @intent:accessor フラグバイトの各ビットにアクセスするためのプロパティを提供します。

    @property
    def flag_s(self) -> bool:
        return (self.f & S_FLAG) != 0

    @flag_s.setter
    def flag_s(self, value: bool) -> None:
        self._set_flag(S_FLAG, value)

    @property
    def flag_z(self) -> bool:
        return (self.f & Z_FLAG) != 0

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        self._set_flag(Z_FLAG, value)

    @property
    def flag_ac(self) -> bool:
        return (self.f & AC_FLAG) != 0

    @flag_ac.setter
    def flag_ac(self, value: bool) -> None:
        self._set_flag(AC_FLAG, value)

    @property
    def flag_p(self) -> bool:
        return (self.f & P_FLAG) != 0

    @flag_p.setter
    def flag_p(self, value: bool) -> None:
        self._set_flag(P_FLAG, value)

    @property
    def flag_cy(self) -> bool:
        return (self.f & CY_FLAG) != 0

    @flag_cy.setter
    def flag_cy(self, value: bool) -> None:
        self._set_flag(CY_FLAG, value)

    def _set_flag(self, mask: int, value: bool) -> None:
        if value:
            self.f |= mask
        else:
            self.f &= ~mask & 0xFF

    # @intent:responsibility ALUが算出したフラグバイトのうち、maskで指定されたビットのみを反映します。
    # @intent:rationale INR/DCRのようにCYを変更しない命令があるため、影響するフラグを明示的に限定します。
    def update_flags(self, flags: int, mask: int = ALL_FLAGS) -> None:
        self.f = ((self.f & ~mask) | (flags & mask)) & ALL_FLAGS

    # 16-bit register pairs (high << 8 | low)
    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF

    # @intent:accessor Processor Status Word (A + パックされたフラグバイト)。
    # @intent:rationale ビット1は常に1、ビット3/5は常に0としてパックし、POP時には5つのフラグビットのみを取り込みます。
    @property
    def psw(self) -> int:
        return (self.a << 8) | (self.f & ALL_FLAGS) | FIXED_ONE

    @psw.setter
    def psw(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f = value & ALL_FLAGS
