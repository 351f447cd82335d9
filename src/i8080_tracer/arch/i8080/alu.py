"""
8080 ALU (算術論理演算ユニット) およびフラグ計算ユーティリティ。

各関数は副作用を持たない純粋関数であり、演算結果とPSWレイアウトのフラグバイトを
AluResultとして返します。フラグの反映（どのビットに影響するか）は呼び出し側の命令実装が
I8080CpuState.update_flags のマスクで決定します。
"""
from typing import NamedTuple

from i8080_tracer.arch.i8080.state import S_FLAG, Z_FLAG, AC_FLAG, P_FLAG, CY_FLAG

# @intent:constant INR/DCR が影響するフラグ（CYは保持される）。
INC_DEC_FLAGS = S_FLAG | Z_FLAG | AC_FLAG | P_FLAG


# @intent:data_structure ALU演算の結果（8/16ビット値とフラグバイト）。
class AluResult(NamedTuple):
    value: int
    flags: int


# @intent:responsibility 指定されたバイト値のパリティ（ビット1の数が偶数ならTrue）を計算します。
def calculate_parity(val: int) -> bool:
    """8ビット値のパリティ（偶数ならTrue）を計算します。"""
    val &= 0xFF
    val ^= val >> 4
    val ^= val >> 2
    val ^= val >> 1
    return (val & 1) == 0

# @intent:responsibility 8ビット結果から S, Z, P フラグを導出します。
def szp_flags(res8: int) -> int:
    flags = 0
    if res8 & 0x80:
        flags |= S_FLAG
    if res8 == 0:
        flags |= Z_FLAG
    if calculate_parity(res8):
        flags |= P_FLAG
    return flags

# @intent:responsibility ADD/ADC/ADI/ACI の演算とフラグを計算します。
def add8(a: int, b: int, carry_in: int = 0) -> AluResult:
    """
    a + b + carry_in を計算します。
    CYはビット7からの桁上がり、ACはビット3からビット4への桁上がり（ニブル加算で判定）です。
    """
    total = a + b + carry_in
    res8 = total & 0xFF
    flags = szp_flags(res8)
    if total > 0xFF:
        flags |= CY_FLAG
    if (a & 0x0F) + (b & 0x0F) + carry_in > 0x0F:
        flags |= AC_FLAG
    return AluResult(res8, flags)

# @intent:responsibility SUB/SBB/SUI/SBI/CMP/CPI の演算とフラグを計算します。
# @intent:rationale 8080は減算を「1の補数 + 反転ボロー」の加算として実行するため、
#                  ACはその加算のビット3からの桁上がり（= 下位ニブルでボローが無いとき1）になります。
def sub8(a: int, b: int, borrow_in: int = 0) -> AluResult:
    """
    a - b - borrow_in を計算します。
    CYはボロー発生時（a < b + borrow_in）にセットされます。
    """
    complement = ~b & 0xFF
    carry_in = 1 - borrow_in
    total = a + complement + carry_in
    res8 = total & 0xFF
    flags = szp_flags(res8)
    if total <= 0xFF:
        flags |= CY_FLAG
    if (a & 0x0F) + (complement & 0x0F) + carry_in > 0x0F:
        flags |= AC_FLAG
    return AluResult(res8, flags)

# @intent:responsibility CMP/CPI: 減算を行いフラグのみを返します（値は呼び出し側で破棄）。
def compare8(a: int, b: int) -> AluResult:
    return sub8(a, b)

def and8(a: int, b: int) -> AluResult:
    """ANA/ANI: CYはクリア、ACはオペランドのビット3の論理和。"""
    res8 = a & b & 0xFF
    flags = szp_flags(res8)
    if (a | b) & 0x08:
        flags |= AC_FLAG
    return AluResult(res8, flags)

def xor8(a: int, b: int) -> AluResult:
    """XRA/XRI: CY, ACはクリア。"""
    res8 = (a ^ b) & 0xFF
    return AluResult(res8, szp_flags(res8))

def or8(a: int, b: int) -> AluResult:
    """ORA/ORI: CY, ACはクリア。"""
    res8 = (a | b) & 0xFF
    return AluResult(res8, szp_flags(res8))

# @intent:responsibility INR の演算とフラグを計算します。CYは INC_DEC_FLAGS マスクにより保持されます。
def inc8(val: int) -> AluResult:
    res8 = (val + 1) & 0xFF
    flags = szp_flags(res8)
    if (val & 0x0F) == 0x0F:
        flags |= AC_FLAG
    return AluResult(res8, flags)

# @intent:responsibility DCR の演算とフラグを計算します。
def dec8(val: int) -> AluResult:
    res8 = (val - 1) & 0xFF
    flags = szp_flags(res8)
    # val + 0xFF の加算としてのビット3からの桁上がり
    if (val & 0x0F) != 0x00:
        flags |= AC_FLAG
    return AluResult(res8, flags)

# @intent:responsibility DAD の16ビット加算を計算します。影響するのはCYのみです。
def add16(a: int, b: int) -> AluResult:
    total = a + b
    return AluResult(total & 0xFFFF, CY_FLAG if total > 0xFFFF else 0)

# @intent:responsibility DAA（10進補正）を計算します。
def daa(a: int, carry: bool, aux_carry: bool) -> AluResult:
    correction = 0
    carry_out = carry
    low = a & 0x0F
    if aux_carry or low > 9:
        correction |= 0x06
    if carry or a > 0x99:
        correction |= 0x60
        carry_out = True
    total = a + correction
    res8 = total & 0xFF
    flags = szp_flags(res8)
    if carry_out:
        flags |= CY_FLAG
    if low + (correction & 0x0F) > 0x0F:
        flags |= AC_FLAG
    return AluResult(res8, flags)

# --- Rotates (CYのみ影響) ---

def rlc(a: int) -> AluResult:
    carry = (a >> 7) & 1
    return AluResult(((a << 1) | carry) & 0xFF, CY_FLAG if carry else 0)

def rrc(a: int) -> AluResult:
    carry = a & 1
    return AluResult((a >> 1) | (carry << 7), CY_FLAG if carry else 0)

def ral(a: int, carry_in: int) -> AluResult:
    carry = (a >> 7) & 1
    return AluResult(((a << 1) | carry_in) & 0xFF, CY_FLAG if carry else 0)

def rar(a: int, carry_in: int) -> AluResult:
    carry = a & 1
    return AluResult((a >> 1) | (carry_in << 7), CY_FLAG if carry else 0)
