"""
8080 命令マッピング定義。
各命令モジュールから関数をインポートし、オペコードと関数の対応表を構築します。
0xCB, 0xD9, 0xDD, 0xED, 0xFD は未定義であり、どちらのマップにも含まれません。
"""
from .alu import (
    ACCUMULATOR_MNEMONICS,
    decode_alu_r, decode_alu_imm, decode_inr_dcr, decode_inx_dcx, decode_dad, decode_accumulator,
    execute_alu_r, execute_alu_imm, execute_inr_dcr, execute_inx_dcx, execute_dad, execute_accumulator
)
from .load import (
    decode_mov, decode_mvi, decode_lxi, decode_direct, decode_ldax_stax,
    decode_xchg, decode_xthl, decode_sphl, decode_push_pop,
    execute_mov, execute_mvi, execute_lxi, execute_direct, execute_ldax_stax,
    execute_xchg, execute_xthl, execute_sphl, execute_push_pop
)
from .control import (
    NOP_ALIASES,
    decode_nop, decode_hlt, decode_jmp, decode_jcc, decode_call, decode_ccc, decode_ret, decode_rcc,
    decode_rst, decode_pchl, decode_ei_di, decode_in_out,
    execute_nop, execute_hlt, execute_jmp, execute_jcc, execute_call, execute_ccc, execute_ret, execute_rcc,
    execute_rst, execute_pchl, execute_ei_di, execute_in_out
)

# @intent:constant 未定義のオペコード。
UNDEFINED_OPCODES = frozenset({0xCB, 0xD9, 0xDD, 0xED, 0xFD})

DECODE_MAP = {
    0x00: decode_nop,
    **{op: decode_nop for op in NOP_ALIASES},
    0x76: decode_hlt,
    0xC3: decode_jmp,
    0xC9: decode_ret,
    0xCD: decode_call,
    0xDB: decode_in_out,
    0xD3: decode_in_out,
    0xE3: decode_xthl,
    0xE9: decode_pchl,
    0xEB: decode_xchg,
    0xF3: decode_ei_di,
    0xF9: decode_sphl,
    0xFB: decode_ei_di,
    0x02: decode_ldax_stax, 0x12: decode_ldax_stax, # STAX B/D
    0x0A: decode_ldax_stax, 0x1A: decode_ldax_stax, # LDAX B/D
    0x22: decode_direct, 0x2A: decode_direct, 0x32: decode_direct, 0x3A: decode_direct, # SHLD/LHLD/STA/LDA
    **{op: decode_accumulator for op in ACCUMULATOR_MNEMONICS}, # RLC/RRC/RAL/RAR/DAA/CMA/STC/CMC
    **{op: decode_lxi for op in range(0x01, 0x40, 0x10)}, # LXI B/D/H/SP
    **{op: decode_inx_dcx for op in range(0x03, 0x40, 0x10)}, # INX rp
    **{op: decode_inx_dcx for op in range(0x0B, 0x40, 0x10)}, # DCX rp
    **{op: decode_dad for op in range(0x09, 0x40, 0x10)}, # DAD rp
    **{op: decode_inr_dcr for op in range(0x04, 0x40, 0x08)}, # INR r
    **{op: decode_inr_dcr for op in range(0x05, 0x40, 0x08)}, # DCR r
    **{op: decode_mvi for op in range(0x06, 0x40, 0x08)}, # MVI r,d8
    **{op: decode_mov for op in range(0x40, 0x80) if op != 0x76},
    **{op: decode_alu_r for op in range(0x80, 0xC0)}, # ADD..CMP r
    **{op: decode_rcc for op in range(0xC0, 0x100, 0x08)}, # Rcc
    **{op: decode_jcc for op in range(0xC2, 0x100, 0x08)}, # Jcc
    **{op: decode_ccc for op in range(0xC4, 0x100, 0x08)}, # Ccc
    **{op: decode_alu_imm for op in range(0xC6, 0x100, 0x08)}, # ADI..CPI
    **{op: decode_rst for op in range(0xC7, 0x100, 0x08)}, # RST n
    **{op: decode_push_pop for op in range(0xC5, 0x100, 0x10)}, # PUSH rp
    **{op: decode_push_pop for op in range(0xC1, 0x100, 0x10)}, # POP rp
}

EXECUTE_MAP = {
    0x00: execute_nop,
    **{op: execute_nop for op in NOP_ALIASES},
    0x76: execute_hlt,
    0xC3: execute_jmp,
    0xC9: execute_ret,
    0xCD: execute_call,
    0xDB: execute_in_out,
    0xD3: execute_in_out,
    0xE3: execute_xthl,
    0xE9: execute_pchl,
    0xEB: execute_xchg,
    0xF3: execute_ei_di,
    0xF9: execute_sphl,
    0xFB: execute_ei_di,
    0x02: execute_ldax_stax, 0x12: execute_ldax_stax,
    0x0A: execute_ldax_stax, 0x1A: execute_ldax_stax,
    0x22: execute_direct, 0x2A: execute_direct, 0x32: execute_direct, 0x3A: execute_direct,
    **{op: execute_accumulator for op in ACCUMULATOR_MNEMONICS},
    **{op: execute_lxi for op in range(0x01, 0x40, 0x10)},
    **{op: execute_inx_dcx for op in range(0x03, 0x40, 0x10)},
    **{op: execute_inx_dcx for op in range(0x0B, 0x40, 0x10)},
    **{op: execute_dad for op in range(0x09, 0x40, 0x10)},
    **{op: execute_inr_dcr for op in range(0x04, 0x40, 0x08)},
    **{op: execute_inr_dcr for op in range(0x05, 0x40, 0x08)},
    **{op: execute_mvi for op in range(0x06, 0x40, 0x08)},
    **{op: execute_mov for op in range(0x40, 0x80) if op != 0x76},
    **{op: execute_alu_r for op in range(0x80, 0xC0)},
    **{op: execute_rcc for op in range(0xC0, 0x100, 0x08)},
    **{op: execute_jcc for op in range(0xC2, 0x100, 0x08)},
    **{op: execute_ccc for op in range(0xC4, 0x100, 0x08)},
    **{op: execute_alu_imm for op in range(0xC6, 0x100, 0x08)},
    **{op: execute_rst for op in range(0xC7, 0x100, 0x08)},
    **{op: execute_push_pop for op in range(0xC5, 0x100, 0x10)},
    **{op: execute_push_pop for op in range(0xC1, 0x100, 0x10)},
}
