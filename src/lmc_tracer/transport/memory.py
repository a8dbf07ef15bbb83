# lmc_tracer/transport/memory.py
"""
Transport Layer (メモリ)

このモジュールは、命令とデータが共存する固定長のメモリ空間を抽象化し、
全ての読み書きアクセスを記録する責務を負います。
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

# @intent:responsibility メモリアクセスを記録するためのタイプを定義します。
class MemoryAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 個々のメモリアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class MemoryAccess:
    """
    メモリ上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    書き込みの場合、previous_dataに上書き前の値を保持します（ステップバック用）。
    """
    address: int
    data: int
    access_type: MemoryAccessType
    previous_data: Optional[int] = None

# @intent:responsibility 固定長の整数メモリを提供します。各セルは任意精度の符号付き整数を保持します。
# @intent:rationale LMCのメモリセルは符号化された命令と生のデータ値の両方を保持するため、
#                  bytearrayではなくPythonのintのリストを使用します。
class Memory:
    """
    固定長の整数メモリ。全てのセルは0で初期化されます。
    """
    # @intent:responsibility 指定されたサイズのメモリ領域を初期化します。
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise ValueError("Memory size must be a positive integer.")
        self._cells: List[int] = [0] * size
        self._size = size
        self._activity_log: List[MemoryAccess] = []

    def _check_address(self, address: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for memory of size {self._size}.")

    # @intent:responsibility メモリアクセスをログに記録します。
    def _log_access(self, access: MemoryAccess) -> None:
        self._activity_log.append(access)

    # @intent:responsibility 記録されたアクセスログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[MemoryAccess]:
        """
        現在のアクセスログを返し、内部ログをクリアします。
        """
        log = self._activity_log
        self._activity_log = []
        return log

    # @intent:responsibility 指定されたアドレスの値を読み出します。アクセスはログに記録されます。
    def read(self, address: int) -> int:
        self._check_address(address)
        data = self._cells[address]
        self._log_access(MemoryAccess(address, data, MemoryAccessType.READ))
        return data

    # @intent:responsibility ログを記録せずに値を読み出します。インスペクタ用。
    def peek(self, address: int) -> int:
        self._check_address(address)
        return self._cells[address]

    # @intent:responsibility 指定されたアドレスに値を書き込みます。上書き前の値と共にログに記録されます。
    def write(self, address: int, data: int) -> None:
        self._check_address(address)
        previous = self._cells[address]
        self._cells[address] = data
        self._log_access(MemoryAccess(address, data, MemoryAccessType.WRITE, previous_data=previous))

    # @intent:responsibility プログラムのロードやステップバックのため、ログを残さずに書き込みます。
    def load(self, address: int, data: int) -> None:
        self._check_address(address)
        self._cells[address] = data

    # @intent:responsibility メモリ内容の不変なコピーを返します。
    def dump(self) -> Tuple[int, ...]:
        return tuple(self._cells)

    def get_size(self) -> int:
        return self._size
