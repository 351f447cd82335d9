# i8080_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、CPUとバスの状態を記録した不変のデータ構造を定義します。
トレース出力やデバッガへの情報提供と、実行履歴の記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from i8080_tracer.core.state import CpuState, RunState
from i8080_tracer.core.errors import EmulationError
from i8080_tracer.transport.bus import BusAccessType, BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True)
class Operation:
    """
    命令の詳細（HEX、ニーモニック、オペランド）を記録するデータクラス。
    """
    opcode_hex: str # 例: "C3"
    mnemonic: str # 例: "JMP"
    operands: List[str] = field(default_factory=list) # 例: ["$1234"]
    operand_bytes: List[int] = field(default_factory=list) # 生のオペランドバイト（リトルエンディアン順）
    cycle_count: int = 0 # 命令実行に必要なステート数
    length: int = 1 # 命令のバイト長

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    cycle_count: int
    symbol_info: Optional[str] = None # 例: "loop: JNZ $0104"

# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    1命令実行直後のCPU状態、実行した命令、バスアクティビティ、実行状態を記録します。
    stateは命令実行後の状態のコピーであり、以降のCPUの変化の影響を受けません。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
    run_state: RunState = RunState.RUNNING
    fault: Optional[EmulationError] = None

# @intent:responsibility トレース用の読み取り専用ビュー（レジスタ、フラグ、PC、SP）を提供します。
@dataclass(frozen=True)
class StateView:
    registers: Dict[str, int]
    flags: Dict[str, bool]
    pc: int
    sp: int
    run_state: RunState = RunState.RUNNING
