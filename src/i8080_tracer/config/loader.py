import yaml
from typing import Dict, Any, Optional
from .models import SystemConfig, MemoryRegion, IoRegion, CpuInitialState, ProgramConfig

PROGRAM_FORMATS = ("binary", "intel_hex", "assembly")

# @intent:responsibility YAML形式のシステム構成ファイルを読み込み、SystemConfigに変換します。
class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self.load_from_dict(data or {})

    def load_from_string(self, text: str) -> SystemConfig:
        return self.load_from_dict(yaml.safe_load(text) or {})

    def load_from_dict(self, data: Dict[str, Any]) -> SystemConfig:
        return self._parse_config(data)

    def _parse_config(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ValueError("Configuration root must be a mapping")

        arch = str(data.get("architecture", "I8080")).upper()

        # Parse Memory Map
        memory_map = []
        for region_data in data.get("memory_map", []):
            memory_map.append(MemoryRegion(
                start=self._parse_int(region_data.get("start")),
                end=self._parse_int(region_data.get("end")),
                type=str(region_data.get("type", "RAM")).upper(),
                label=region_data.get("label", "")
            ))

        # Parse I/O Map
        io_map = []
        for region_data in data.get("io_map", []):
            io_map.append(IoRegion(
                start=self._parse_int(region_data.get("start")),
                end=self._parse_int(region_data.get("end")),
                label=region_data.get("label", ""),
                type=str(region_data.get("type", "IO")).upper()
            ))

        # Parse Initial State
        initial_state_data = data.get("initial_state", {}) or {}
        registers = {
            str(name).lower(): self._parse_int(value)
            for name, value in (initial_state_data.get("registers", {}) or {}).items()
        }
        initial_state = CpuInitialState(
            pc=self._parse_int(initial_state_data.get("pc", 0)),
            sp=self._parse_int(initial_state_data.get("sp", 0)),
            registers=registers
        )

        return SystemConfig(
            architecture=arch,
            memory_map=memory_map,
            io_map=io_map,
            initial_state=initial_state,
            program=self._parse_program(data.get("program"))
        )

    def _parse_program(self, program_data: Optional[Dict[str, Any]]) -> Optional[ProgramConfig]:
        if not program_data:
            return None
        if "path" not in program_data:
            raise ValueError("program.path is required")

        fmt = str(program_data.get("format", "binary")).lower()
        if fmt not in PROGRAM_FORMATS:
            raise ValueError(f"Unsupported program format: {fmt}")

        patches = []
        for patch in program_data.get("patches", []) or []:
            data_bytes = [self._parse_int(b) for b in patch.get("bytes", [])]
            if any(not 0 <= b <= 0xFF for b in data_bytes):
                raise ValueError(f"Patch bytes must be 8-bit values: {patch}")
            patches.append((self._parse_int(patch.get("address")), data_bytes))

        return ProgramConfig(
            path=str(program_data["path"]),
            format=fmt,
            base=self._parse_int(program_data.get("base", 0x0100)),
            cpm=bool(program_data.get("cpm", False)),
            halt_at_end=bool(program_data.get("halt_at_end", True)),
            patches=patches
        )

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            value = value.strip()
            if value.lower().startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
