# i8080_tracer/core/errors.py
"""
Core Layer (エミュレーション例外)

命令の実行を継続できない致命的な状況を表す例外を定義します。
これらの例外はCPUを FAULT 状態へ遷移させ、呼び出し元（デバッガやテスト）へ報告されます。
"""
from typing import Optional


# @intent:responsibility エミュレーション中に発生する致命的エラーの基底クラスです。
class EmulationError(Exception):
    """
    エミュレーションを継続できないエラーの基底クラス。
    """
    pass


# @intent:responsibility デコード定義の存在しないオペコードを実行しようとしたことを表します。
class UnimplementedOpcodeError(EmulationError):
    """
    未定義のオペコードをフェッチした場合に送出されます。
    """
    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unimplemented opcode ${opcode:02X} at ${address:04X}")


# @intent:responsibility アドレス空間外、またはデバイス未接続のアドレスへのアクセスを表します。
# @intent:rationale IndexErrorも継承し、RAM/Busの範囲外アクセスに関する既存の契約を維持します。
class MemoryOutOfRangeError(EmulationError, IndexError):
    """
    メモリアクセスが有効なアドレス範囲外で行われた場合に送出されます。
    access_typeは BusAccessType（READ/WRITE/IO_READ/IO_WRITE）です。
    """
    def __init__(self, address: int, access_type, detail: Optional[str] = None):
        self.address = address
        self.access_type = access_type
        kind = getattr(access_type, "value", str(access_type))
        super().__init__(detail or f"{kind} access to unmapped address {address:#06x}")
