# i8080_tracer/transport/bus.py
"""
Transport Layer (共通バス)

このモジュールは、システム全体のメモリアドレス空間とI/O空間を抽象化し、
読み書きアクセスを適切なデバイスに委譲する責務を負います。
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Tuple, Optional
from dataclasses import dataclass
from enum import Enum

from i8080_tracer.core.errors import MemoryOutOfRangeError

logger = logging.getLogger(__name__)

# @intent:constant 8080のメモリアドレス空間のサイズ（16ビット）。
ADDRESS_SPACE_SIZE = 0x10000

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"
    IO_READ = "IO_READ"
    IO_WRITE = "IO_WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    書き込みの場合、previous_dataに上書き前の値を保持します（ステップバック用）。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType
    previous_data: Optional[int] = None

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class Device(ABC):
    """
    バスに接続されるデバイスの抽象基底クラス。
    全てのデバイスはreadとwriteのインターフェースを実装する必要があります。
    """
    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出す責務を負います。
    # @intent:pre-condition アドレスはデバイスの有効範囲内である必要があります。
    @abstractmethod
    def read(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アドレスはデバイス内でのオフセットとして扱われます。
        """
        pass

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    # @intent:pre-condition アドレスはデバイスの有効範囲内であり、データは8bit値である必要があります。
    @abstractmethod
    def write(self, address: int, data: int) -> None:
        """
        指定されたアドレスに8bitのデータを書き込みます。
        アドレスはデバイス内でのオフセットとして扱われます。
        """
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(Device):
    """
    ゼロ初期化された固定サイズのRAMデバイス。
    """
    # @intent:responsibility 指定されたサイズのメモリ領域を初期化します。
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise MemoryOutOfRangeError(
                address, BusAccessType.READ,
                f"Address {address} out of bounds for RAM of size {self._size}."
            )
        return self._memory[address]

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise MemoryOutOfRangeError(
                address, BusAccessType.WRITE,
                f"Address {address} out of bounds for RAM of size {self._size}."
            )
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    # @intent:responsibility RAMのサイズを返します。
    def get_size(self) -> int:
        return self._size

# @intent:responsibility 読み込み専用メモリ(ROM)の機能を提供します。
class ROM(RAM):
    """
    読み込み専用メモリデバイス。
    バス経由の書き込みは無視されます。内容の初期化は load_data で行います。
    """
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise MemoryOutOfRangeError(
                address, BusAccessType.WRITE,
                f"Address {address} out of bounds for ROM of size {self._size}."
            )
        # Intentional: ROM writes are ignored as per hardware behavior.
        pass

    # @intent:responsibility ROMの内容を初期化するためのバックドアメソッドです。
    def load_data(self, address: int, data: int) -> None:
        super().write(address, data)

# @intent:responsibility メモリアドレス空間とI/O空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
# @intent:rationale バスの全てのアクセスを記録し、Snapshotに含めることでシステムの観測可能性を高めます。
class Bus:
    """
    メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする共通バス。
    バス上で行われた全てのメモリ/IOアクセスを記録する機能を提供します。
    """
    # @intent:responsibility 空のメモリマップ、I/Oマップとバスアクティビティログを初期化します。
    def __init__(self, address_space: int = ADDRESS_SPACE_SIZE):
        self._address_space = address_space
        # メモリマップ: (start_address, end_address, device) のタプルリスト
        self._memory_map: List[Tuple[int, int, Device]] = []
        self._io_map: List[Tuple[int, int, Device]] = []
        self._bus_activity_log: List[BusAccess] = []

    def _log_access(self, address: int, data: int, access_type: BusAccessType,
                    previous_data: Optional[int] = None) -> None:
        self._bus_activity_log.append(
            BusAccess(address=address, data=data, access_type=access_type, previous_data=previous_data)
        )

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility 退避していたログを現在のログの先頭に戻します（インスペクタが記録したアクセスを除外するため）。
    def restore_activity_log(self, entries: List[BusAccess]) -> None:
        self._bus_activity_log = list(entries) + self._bus_activity_log

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:pre-condition start_address <= end_addressかつアドレス空間内であり、deviceはDeviceのインスタンスである必要があります。
    # @intent:rationale アドレス範囲の重複チェックは行いません。システム構成の層で管理されるべき事項です。
    def register_device(self, start_address: int, end_address: int, device: Device) -> None:
        """
        指定されたアドレス範囲にデバイスを登録します。
        RAM/ROMの場合、そのサイズはアドレス範囲と一致する必要があります。
        """
        self._validate_range(start_address, end_address, device, self._address_space)
        self._memory_map.append((start_address, end_address, device))

    # @intent:responsibility 指定されたI/Oポート範囲にデバイスを登録します。
    def register_io_device(self, start_port: int, end_port: int, device: Device) -> None:
        """
        8080のI/O空間（0x00-0xFF）にデバイスを登録します。
        """
        self._validate_range(start_port, end_port, device, 0x100)
        self._io_map.append((start_port, end_port, device))

    @staticmethod
    def _validate_range(start: int, end: int, device: Device, limit: int) -> None:
        if not (0 <= start <= end < limit):
            raise ValueError("Invalid address range: start_address must be <= end_address and inside the address space.")
        if not isinstance(device, Device):
            raise TypeError("Device must be an instance of a class derived from Device.")
        if isinstance(device, RAM):
            expected_size = end - start + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

    # @intent:responsibility 指定されたアドレスに対応するデバイスとオフセットを検索します。
    # @intent:post-condition デバイスが見つからなかった場合、MemoryOutOfRangeErrorを発生させます。
    def _find_device(self, address: int, access_type: BusAccessType) -> Tuple[Device, int]:
        if 0 <= address < self._address_space:
            for start, end, device in self._memory_map:
                if start <= address <= end:
                    return device, address - start
        raise MemoryOutOfRangeError(address, access_type)

    def _find_io_device(self, port: int) -> Optional[Tuple[Device, int]]:
        for start, end, device in self._io_map:
            if start <= port <= end:
                return device, port - start
        return None

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。アクセスはログに記録されます。
    def read(self, address: int) -> int:
        device, offset = self._find_device(address, BusAccessType.READ)
        data = device.read(offset)
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します（逆アセンブラ等のインスペクタ用）。
    def peek(self, address: int) -> int:
        device, offset = self._find_device(address, BusAccessType.READ)
        return device.read(offset)

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    # @intent:rationale ROMへの書き込みは無視されます（ROM.writeの実装通り）。ロード時は load() を使用します。
    def write(self, address: int, data: int) -> None:
        device, offset = self._find_device(address, BusAccessType.WRITE)
        previous = device.read(offset)
        device.write(offset, data)
        self._log_access(address, data, BusAccessType.WRITE, previous_data=previous)

    # @intent:responsibility ローダー（およびステップバック）用の書き込み口。ログを記録せず、ROMにも書き込みます。
    def load(self, address: int, data: int) -> None:
        device, offset = self._find_device(address, BusAccessType.WRITE)
        if isinstance(device, ROM):
            device.load_data(offset, data)
        else:
            device.write(offset, data)

    # @intent:responsibility 指定されたI/Oポートから8bitのデータを読み出します。
    def read_io(self, port: int) -> int:
        """
        I/Oポートから読み出します。デバイスが未接続のポートは常に0を返します。
        """
        found = self._find_io_device(port)
        if found:
            device, offset = found
            data = device.read(offset)
        else:
            logger.debug("IN from unmapped port %#04x", port)
            data = 0x00
        self._log_access(port, data, BusAccessType.IO_READ)
        return data

    # @intent:responsibility 指定されたI/Oポートに8bitのデータを書き込みます。
    def write_io(self, port: int, data: int) -> None:
        """
        I/Oポートへ書き込みます。デバイスが未接続のポートへの書き込みはログのみ記録されます。
        """
        found = self._find_io_device(port)
        if found:
            device, offset = found
            device.write(offset, data)
        else:
            logger.debug("OUT to unmapped port %#04x: %#04x", port, data)
        self._log_access(port, data, BusAccessType.IO_WRITE)
