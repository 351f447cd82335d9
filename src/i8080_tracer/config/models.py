from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

@dataclass
class MemoryRegion:
    start: int
    end: int
    type: str  # "RAM", "ROM"
    label: str = ""

@dataclass
class IoRegion:
    start: int
    end: int
    label: str = ""
    type: str = "IO" # "IO" (RAMラッチ), "CONSOLE"

@dataclass
class CpuInitialState:
    pc: int = 0x0000
    sp: int = 0x0000
    registers: dict = field(default_factory=dict)

# @intent:data_structure ロードするプログラムと、その実行環境（CP/Mページゼロ、パッチ）の定義。
@dataclass
class ProgramConfig:
    path: str
    format: str = "binary"  # "binary", "intel_hex", "assembly"
    base: int = 0x0100
    cpm: bool = False
    halt_at_end: bool = True
    patches: List[Tuple[int, Sequence[int]]] = field(default_factory=list)

@dataclass
class SystemConfig:
    architecture: str
    memory_map: List[MemoryRegion] = field(default_factory=list)
    io_map: List[IoRegion] = field(default_factory=list)
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
    program: Optional[ProgramConfig] = None
