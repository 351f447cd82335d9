import logging
import os
from typing import Dict, Optional, Tuple

from i8080_tracer.transport.bus import Bus, Device, RAM, ROM
from i8080_tracer.transport.console import ConsoleDevice
from i8080_tracer.core.cpu import AbstractCpu
from i8080_tracer.arch.i8080.cpu import I8080Cpu
from i8080_tracer.common.types import SymbolMap
from i8080_tracer.loader.loader import BinaryLoader, IntelHexLoader, AssemblyLoader, patch_image
from i8080_tracer.loader.cpm import install_cpm_page_zero, TPA_START_ADDRESS
from .models import SystemConfig, CpuInitialState, ProgramConfig

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいて、Bus、Device、CPUを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def __init__(self):
        # ラベル（無ければ "io_XX"）から生成したI/Oデバイスへの対応表
        self.io_devices: Dict[str, Device] = {}
        self._console_port: Optional[int] = None

    def build_system(self, config: SystemConfig) -> Tuple[AbstractCpu, Bus]:
        bus = Bus()

        for region in config.memory_map:
            size = region.end - region.start + 1

            if region.type == "RAM":
                device = RAM(size)
            elif region.type == "ROM":
                device = ROM(size)
            else:
                logger.warning(
                    "Unknown device type '%s' for range %04X-%04X, defaulting to RAM",
                    region.type, region.start, region.end
                )
                device = RAM(size)

            bus.register_device(region.start, region.end, device)

        self.io_devices = {}
        self._console_port = None
        for region in config.io_map:
            if region.type == "CONSOLE":
                device = ConsoleDevice()
                if self._console_port is None:
                    self._console_port = region.start
            else:
                device = RAM(region.end - region.start + 1)
            bus.register_io_device(region.start, region.end, device)
            self.io_devices[region.label or f"io_{region.start:02X}"] = device

        if config.architecture == "I8080":
            cpu = I8080Cpu(bus)
        else:
            raise ValueError(f"Unsupported architecture: {config.architecture}")

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        return cpu, bus

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    def apply_initial_state(self, cpu: AbstractCpu, config_state: CpuInitialState):
        """
        CPUをリセットし、Configから指定された初期値を適用します。
        """
        cpu.reset()
        state = cpu.get_state()
        state.pc = config_state.pc & 0xFFFF
        state.sp = config_state.sp & 0xFFFF
        for reg_name, value in config_state.registers.items():
            if reg_name in ("bc", "de", "hl", "psw"):
                setattr(state, reg_name, value & 0xFFFF)
            elif hasattr(state, reg_name):
                setattr(state, reg_name, value & 0xFF)
            else:
                raise ValueError(f"Unknown register in initial_state: {reg_name}")

    # @intent:responsibility プログラムをロードし、CP/Mページゼロ、パッチ、プログラム範囲を設定します。
    # @intent:rationale パッチはロード後に適用するため、イメージ本体の内容を上書きできます。
    def load_program(self, cpu: AbstractCpu, bus: Bus, program: ProgramConfig, base_dir: str = ".") -> SymbolMap:
        path = program.path if os.path.isabs(program.path) else os.path.join(base_dir, program.path)
        symbol_map: SymbolMap = {}

        if program.format == "binary":
            loaded_range = BinaryLoader().load_file(path, bus, program.base)
        elif program.format == "intel_hex":
            loaded_range = IntelHexLoader().load_intel_hex(path, bus)
        elif program.format == "assembly":
            loader = AssemblyLoader()
            symbol_map = loader.load_assembly(path, bus)
            loaded_range = loader.loaded_range
            cpu.set_symbol_map(symbol_map)
        else:
            raise ValueError(f"Unsupported program format: {program.format}")

        if program.cpm:
            install_cpm_page_zero(bus, self._console_port if self._console_port is not None else 1)
            cpu.get_state().pc = TPA_START_ADDRESS

        if program.patches:
            patch_image(bus, program.patches)

        if program.halt_at_end and loaded_range is not None:
            cpu.set_program_extent(*loaded_range)
        else:
            # 以前のロードで設定された範囲を残さない
            cpu.clear_program_extent()

        return symbol_map
