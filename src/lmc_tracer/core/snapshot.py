# lmc_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、CPUとメモリの完全な状態を記録した不変のデータ構造を定義します。
ホスト側への状態提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lmc_tracer.core.state import LmcState
from lmc_tracer.transport.memory import MemoryAccess

# @intent:responsibility 実行された命令の詳細を記録します。
@dataclass(frozen=True)
class Operation:
    """
    デコードされた命令の詳細（オペコード、ニーモニック、オペランド、メモリ上の生の値）。
    """
    opcode: int
    mnemonic: str
    operand: Optional[int] = None
    raw: int = 0

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    step_count: int
    symbol_info: Optional[str] = None # 例: "loop: BRZ 7"

# @intent:responsibility ある一時点におけるCPUとメモリの完全な状態を不変に記録します。
# @intent:rationale stateはコピーを保持し、後続のステップによってスナップショットが変化しないようにします。
# memoryはdump()とon_dumpでのみ埋められ、1ステップごとの記録ではNoneです。
@dataclass(frozen=True)
class Snapshot:
    state: LmcState
    memory: Optional[Tuple[int, ...]] = None
    operation: Optional[Operation] = None
    metadata: Optional[Metadata] = None
    memory_activity: List[MemoryAccess] = field(default_factory=list)

    @property
    def accumulator(self) -> int:
        return self.state.accumulator

    @property
    def program_counter(self) -> int:
        return self.state.pc

    @property
    def instruction_register(self) -> int:
        return self.state.ir

    @property
    def address_register(self) -> int:
        return self.state.ar
