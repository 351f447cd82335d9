# i8080_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import fields, replace
from typing import Optional, List, Dict, Tuple

from i8080_tracer.transport.bus import Bus, BusAccessType
from i8080_tracer.core.snapshot import Snapshot, Operation, Metadata, StateView
from i8080_tracer.core.state import CpuState, RunState
from i8080_tracer.core.errors import EmulationError
from i8080_tracer.common.types import SymbolMap, RegisterLayoutInfo

logger = logging.getLogger(__name__)

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクル（状態機械）の抽象化を提供します。
    """
    # @intent:responsibility CPUの状態とバスへの参照を初期化します。
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._symbol_map: SymbolMap = {}
        self._reverse_symbol_map: Dict[int, str] = {}
        self._run_state: RunState = RunState.RUNNING
        self._fault: Optional[EmulationError] = None
        self._program_extent: Optional[Tuple[int, int]] = None
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:responsibility I/O空間（Port I/O）をサポートするかどうかを返します。
    # @intent:rationale トレース用フロントエンド向けのAPIで、エミュレーション自体はこの値を参照しません。
    @property
    @abstractmethod
    def has_io_port(self) -> bool:
        pass

    # @intent:responsibility シンボルマップを設定します。
    def set_symbol_map(self, symbol_map: SymbolMap) -> None:
        self._symbol_map = symbol_map
        # 逆引きマップを作成して、アドレスからラベルを素早く引けるようにする
        self._reverse_symbol_map = {addr: name for name, addr in symbol_map.items()}

    def get_symbol_map(self) -> SymbolMap:
        return self._symbol_map

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        pass

    # @intent:responsibility CPUをリセットし、初期状態（RUNNING）に戻します。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0
        self._run_state = RunState.RUNNING
        self._fault = None

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        return self._state

    # @intent:responsibility 過去のスナップショットの状態をCPUに復元します（ステップバック用）。
    def restore_state(self, state: CpuState) -> None:
        self._state = replace(state)
        self._fault = None
        self._run_state = RunState.HALTED if self._is_halted() else RunState.RUNNING

    @property
    def run_state(self) -> RunState:
        return self._run_state

    # @intent:responsibility FAULT状態へ遷移させた例外を返します。
    @property
    def fault(self) -> Optional[EmulationError]:
        return self._fault

    # @intent:responsibility FAULT状態であれば、その原因となった例外を送出します。
    def raise_for_fault(self) -> None:
        if self._fault is not None:
            raise self._fault

    def get_cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility ロード済みプログラムの範囲 [start, end) を設定します。
    # @intent:rationale PCがendに到達した時点でHALTEDへ遷移し、プログラム末尾以降の実行を防ぎます。
    def set_program_extent(self, start: int, end: int) -> None:
        if not 0 <= start <= end:
            raise ValueError(f"Invalid program extent: {start:#06x}-{end:#06x}")
        self._program_extent = (start, end)

    def clear_program_extent(self) -> None:
        self._program_extent = None

    def get_program_extent(self) -> Optional[Tuple[int, int]]:
        return self._program_extent

    # @intent:responsibility メモリから次の命令（オペコード）をフェッチします。
    @abstractmethod
    def _fetch(self) -> int:
        pass

    # @intent:responsibility フェッチしたオペコードを解析し、Operationオブジェクトに変換します。
    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→終端判定→フェッチ→デコード→PC更新→実行→Snapshot生成）を定義します。
    #                  致命的エラーは例外として外に漏らさず、FAULT状態のSnapshotとして呼び出し元に報告します。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        """
        # 1. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 2. 終端状態 / プログラム範囲外の判定 (Hook)
        halt_snapshot = self._handle_halt(initial_pc)
        if halt_snapshot:
            return halt_snapshot

        # 障害時に命令実行前の状態へ戻すための退避
        saved_state = replace(self._state)
        opcode: Optional[int] = None
        try:
            # 3. フェッチ
            opcode = self._fetch()
            # 4. デコード
            operation = self._decode(opcode)
            # 5. PC更新 (Hook)
            self._update_pc(operation)
            # 6. 実行
            self._execute(operation)
        except EmulationError as error:
            return self._enter_fault(initial_pc, opcode, error, saved_state)

        if self._is_halted():
            self._run_state = RunState.HALTED
            logger.info("CPU halted at %#06x", initial_pc)

        # 7. 後処理 & Snapshot生成
        return self._create_snapshot(initial_pc, operation)

    # @intent:responsibility 終端状態、またはプログラム範囲外に到達した場合の処理を行います。
    # @intent:return 命令を実行すべきでない場合はその状態のSnapshot、そうでなければNone。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if self._run_state is RunState.RUNNING and self._program_extent is not None:
            if current_pc >= self._program_extent[1]:
                self._run_state = RunState.HALTED
                logger.info("PC %#06x is beyond the loaded program, halting", current_pc)

        if self._run_state is RunState.HALTED:
            operation = Operation(opcode_hex="--", mnemonic="HALT (suspended)", length=0)
        elif self._run_state is RunState.FAULT:
            operation = Operation(opcode_hex="--", mnemonic="FAULT", operands=[str(self._fault)], length=0)
        else:
            return None

        return Snapshot(
            state=replace(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=f"PC: {current_pc:#06x} -> {operation.mnemonic}"),
            bus_activity=[],
            run_state=self._run_state,
            fault=self._fault,
        )

    # @intent:responsibility CPUがHALT命令により停止しているかを返します。
    def _is_halted(self) -> bool:
        return bool(getattr(self._state, "halted", False))

    # @intent:responsibility 致命的エラーによりFAULT状態へ遷移し、その時点のSnapshotを返します。
    # @intent:post-condition レジスタとメモリは障害を起こした命令の実行前の状態に戻り、PCはその命令の先頭を指します。
    def _enter_fault(self, initial_pc: int, opcode: Optional[int], error: EmulationError,
                     saved_state: CpuState) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        # 途中まで行われた書き込みを逆順に取り消す（I/Oへの出力は取り消せない）
        for access in reversed(bus_activity):
            if access.access_type == BusAccessType.WRITE and access.previous_data is not None:
                self._bus.load(access.address, access.previous_data)
        # 状態オブジェクトの同一性は保ったまま、実行前の値に戻す
        for state_field in fields(saved_state):
            setattr(self._state, state_field.name, getattr(saved_state, state_field.name))
        self._state.pc = initial_pc
        self._fault = error
        self._run_state = RunState.FAULT
        logger.warning("CPU fault at %#06x: %s", initial_pc, error)

        operation = Operation(
            opcode_hex=f"{opcode:02X}" if opcode is not None else "--",
            mnemonic="FAULT",
            operands=[str(error)],
            length=0,
        )
        return Snapshot(
            state=replace(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=f"PC: {initial_pc:#06x} -> FAULT"),
            bus_activity=bus_activity,
            run_state=self._run_state,
            fault=error,
        )

    # @intent:responsibility 命令実行前にPCを命令長分進めます。制御転送命令は実行時にPCを上書きします。
    def _update_pc(self, operation: Operation) -> None:
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    # @intent:responsibility スナップショットを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._cycle_count += operation.cycle_count

        symbol_label = self._reverse_symbol_map.get(initial_pc, "")
        symbol_info = f"{symbol_label}: " if symbol_label else ""
        symbol_info += f"{operation.mnemonic}"
        if operation.operands:
            symbol_info += " " + ", ".join(operation.operands)

        # stateは実行後の状態のコピー（履歴として保持しても後続の命令で変化しない）
        return Snapshot(
            state=replace(self._state),
            operation=operation,
            metadata=Metadata(cycle_count=self._cycle_count, symbol_info=symbol_info),
            bus_activity=bus_activity,
            run_state=self._run_state,
        )

    # @intent:responsibility トレース用の読み取り専用ビューを返します。
    def inspect(self) -> StateView:
        return StateView(
            registers=self.get_register_map(),
            flags=self.get_flag_state(),
            pc=self._state.pc,
            sp=self._state.sp,
            run_state=self._run_state,
        )

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        """
        pass

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """
        レジスタをどのようにグループ化して表示すべきかの定義を返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在のフラグの各ビットの状態を辞書形式で返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
