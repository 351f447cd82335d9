# i8080_tracer/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、CPUの基本的な状態（レジスタ群）と実行状態を保持するデータ構造を定義します。
"""
from dataclasses import dataclass
from enum import Enum


# @intent:responsibility 命令サイクルの実行状態（状態機械）を定義します。
# @intent:rationale HALTEDとFAULTは終端状態であり、reset()以外では抜けません。
class RunState(Enum):
    RUNNING = "RUNNING"
    HALTED = "HALTED"
    FAULT = "FAULT"

    @property
    def is_terminal(self) -> bool:
        return self is not RunState.RUNNING


# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    CPUのレジスタ状態を保持するデータクラス。
    これは抽象的な基底状態であり、特定のCPUアーキテクチャに応じて拡張されます。
    """
    pc: int = 0x0000  # Program Counter
    sp: int = 0x0000  # Stack Pointer
