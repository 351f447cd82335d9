# i8080_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from i8080_tracer.core.cpu import AbstractCpu
from i8080_tracer.core.snapshot import Snapshot, BusAccessType
from i8080_tracer.core.state import CpuState, RunState

logger = logging.getLogger(__name__)

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    IO_READ = "IO_READ"                 # 特定のI/Oポートが読み込まれた
    IO_WRITE = "IO_WRITE"               # 特定のI/Oポートに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:constant バスアクティビティで判定するブレークポイントと、対応するアクセス種別。
_ACCESS_CONDITIONS = {
    BreakpointConditionType.MEMORY_READ: BusAccessType.READ,
    BreakpointConditionType.MEMORY_WRITE: BusAccessType.WRITE,
    BreakpointConditionType.IO_READ: BusAccessType.IO_READ,
    BreakpointConditionType.IO_WRITE: BusAccessType.IO_WRITE,
}

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    register_name は状態の属性名（"a", "hl", "sp" など。大文字小文字は区別しない）です。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_*/IO_* で使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用
    enabled: bool = True                  # 有効/無効状態

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理と実行履歴（ステップバック）を提供するクラス。
    """
    def __init__(self, cpu: AbstractCpu):
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._running: bool = False
        self._previous_state: CpuState = replace(self._cpu.get_state())
        self._last_snapshot: Optional[Snapshot] = None
        # @intent:responsibility 実行履歴を保持し、タイムトラベルデバッグをサポートします。
        self._history: List[Snapshot] = []
        # @intent:responsibility 履歴が尽きた時に戻るための状態（履歴の最初の命令を実行する直前の状態）を保持します。
        self._initial_state: Optional[CpuState] = None

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        """
        ブレークポイント条件を追加します。
        """
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        """
        既存のブレークポイントを更新します。
        """
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def _is_pc_breakpoint(self, pc: int) -> bool:
        return any(
            bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
            for bp in self._breakpoints
        )

    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            access_type = _ACCESS_CONDITIONS.get(bp.condition_type)
            if access_type is not None:
                for access in snapshot.bus_activity:
                    if access.access_type == access_type and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE and bp.register_name:
                name = bp.register_name.lower()
                if hasattr(current_state, name) and getattr(current_state, name) == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE and bp.register_name:
                name = bp.register_name.lower()
                if hasattr(current_state, name) and hasattr(self._previous_state, name):
                    if getattr(current_state, name) != getattr(self._previous_state, name):
                        return True
        return False

    def step_instruction(self) -> Snapshot:
        """
        CPUを1命令分実行し、その結果のSnapshotを返します。
        """
        self._previous_state = replace(self._cpu.get_state())
        if not self._history:
            self._initial_state = self._previous_state
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot
        self._history.append(snapshot)
        return snapshot

    def step_back(self) -> Optional[Snapshot]:
        """
        実行履歴を1つ戻り、CPUとメモリの状態を復元します。
        """
        if not self._history:
            return None

        snapshot_to_revert = self._history.pop()

        # バスアクティビティを逆順にスキャンし、書き込み前の値を書き戻す（ROMも可、ログには残らない）
        bus = self._cpu._bus
        for access in reversed(snapshot_to_revert.bus_activity):
            if access.access_type == BusAccessType.WRITE and access.previous_data is not None:
                bus.load(access.address, access.previous_data)

        if self._history:
            previous_snapshot = self._history[-1]
            self._cpu.restore_state(previous_snapshot.state)
            self._last_snapshot = previous_snapshot
            return previous_snapshot

        # 履歴が尽きた場合は最初の命令の実行前の状態に復元
        if self._initial_state is not None:
            self._cpu.restore_state(self._initial_state)
        self._last_snapshot = None
        return None

    # @intent:responsibility ブレークポイント、終端状態（HALTED/FAULT）、または max_steps に達するまで実行します。
    # @intent:return 停止時点のCPUの実行状態。
    def run(self, max_steps: Optional[int] = None) -> RunState:
        self._running = True
        steps = 0

        # 現在のPCにブレークポイントがある場合は、まず1命令進めてから判定を始める
        if self._is_pc_breakpoint(self._cpu.get_state().pc) and not self._cpu.run_state.is_terminal:
            snapshot = self.step_instruction()
            steps += 1
            if snapshot.run_state.is_terminal:
                self._running = False
                return snapshot.run_state

        while self._running:
            if self._cpu.run_state.is_terminal:
                break
            if max_steps is not None and steps >= max_steps:
                break

            current_pc = self._cpu.get_state().pc
            if self._is_pc_breakpoint(current_pc):
                logger.info("Breakpoint hit at PC: %#06x", current_pc)
                break

            snapshot = self.step_instruction()
            steps += 1

            if snapshot.run_state.is_terminal:
                break

            if self._check_other_breakpoints(snapshot):
                logger.info("Breakpoint hit at PC: %#06x", snapshot.state.pc)
                break

        self._running = False
        return self._cpu.run_state

    def run_back(self) -> None:
        """
        CPUの実行を逆方向（過去）へ連続的に戻します。
        """
        self._running = True

        while self._running:
            snapshot = self.step_back()

            if snapshot is None:
                self._running = False
                logger.info("Reached start of history.")
                return

            if self._is_pc_breakpoint(snapshot.state.pc):
                self._running = False
                logger.info("Reverse Breakpoint hit at PC: %#06x", snapshot.state.pc)
                return

            # 戻った時点のSnapshot（＝その命令実行直後の状態）で評価する
            if self._check_other_breakpoints(snapshot):
                self._running = False
                logger.info("Reverse Breakpoint hit at PC: %#06x", snapshot.state.pc)

    def stop(self) -> None:
        self._running = False
