# lmc_tracer/debugger/debugger.py
"""
デバッガモジュール。

LMCの実行エンジンを1命令ずつ進め、条件（ブレークポイント）が成立した時点で停止させます。
各ステップのSnapshotを履歴として残し、メモリ書き込みを巻き戻すステップバックも提供します。
"""
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional

from lmc_tracer.core.cpu import LmcCpu
from lmc_tracer.core.snapshot import Snapshot
from lmc_tracer.core.state import LmcState
from lmc_tracer.transport.memory import MemoryAccessType

logger = logging.getLogger(__name__)

class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"                   # 次に実行するセル番号
    MEMORY_READ = "MEMORY_READ"             # セルの読み出し
    MEMORY_WRITE = "MEMORY_WRITE"           # STAによるセルへの格納
    ACCUMULATOR_VALUE = "ACCUMULATOR_VALUE" # ACCが指定値になった
    REGISTER_CHANGE = "REGISTER_CHANGE"     # accumulator/pc/ir/arのいずれかが変化した

# @intent:responsibility 停止条件を1つ表します。使われるフィールドは種別ごとに異なります。
@dataclass(frozen=True)
class BreakpointCondition:
    condition_type: BreakpointConditionType
    value: Optional[int] = None
    address: Optional[int] = None
    register_name: Optional[str] = None
    enabled: bool = True

    # @intent:responsibility ステップ前の状態と実行後のSnapshotを照合します。PC_MATCHはここでは成立しません。
    def matches(self, snapshot: Snapshot, previous: LmcState) -> bool:
        if not self.enabled:
            return False
        predicate = _PREDICATES.get(self.condition_type)
        return predicate is not None and predicate(self, snapshot, previous)

def _accessed(access_type: MemoryAccessType) -> Callable[[BreakpointCondition, Snapshot, LmcState], bool]:
    def predicate(bp: BreakpointCondition, snapshot: Snapshot, previous: LmcState) -> bool:
        return any(a.access_type == access_type and a.address == bp.address for a in snapshot.memory_activity)
    return predicate

def _accumulator_is(bp: BreakpointCondition, snapshot: Snapshot, previous: LmcState) -> bool:
    return snapshot.state.accumulator == bp.value

def _register_changed(bp: BreakpointCondition, snapshot: Snapshot, previous: LmcState) -> bool:
    name = bp.register_name
    if not name or not hasattr(previous, name):
        return False
    return getattr(snapshot.state, name) != getattr(previous, name)

_PREDICATES: Dict[BreakpointConditionType, Callable[[BreakpointCondition, Snapshot, LmcState], bool]] = {
    BreakpointConditionType.MEMORY_READ: _accessed(MemoryAccessType.READ),
    BreakpointConditionType.MEMORY_WRITE: _accessed(MemoryAccessType.WRITE),
    BreakpointConditionType.ACCUMULATOR_VALUE: _accumulator_is,
    BreakpointConditionType.REGISTER_CHANGE: _register_changed,
}

class Debugger:
    """
    LmcCpuを包み、ステップ実行・ブレークポイント付き連続実行・ステップバックを行います。
    """
    DEFAULT_MAX_HISTORY = 10000

    # @intent:pre-condition `max_history`は1以上である必要があります。
    def __init__(self, cpu: LmcCpu, max_history: int = DEFAULT_MAX_HISTORY):
        if max_history < 1:
            raise ValueError("max_history must be at least 1.")
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._running = False
        self._halted = False
        self._previous_state: LmcState = cpu.get_state().copy()
        self._initial_state: LmcState = cpu.get_state().copy()
        self._last_snapshot: Optional[Snapshot] = None
        self._history: Deque[Snapshot] = deque(maxlen=max_history)

    @property
    def is_halted(self) -> bool:
        return self._halted

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    # 同じ位置に置き換えるので、一覧での並び順は変わりません。
    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        for i, bp in enumerate(self._breakpoints):
            if bp == old_condition:
                self._breakpoints[i] = new_condition
                return

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        self._breakpoints = [bp for bp in self._breakpoints if bp != condition]

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def _check_pc_breakpoints(self, pc: int) -> bool:
        return any(bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
                   for bp in self._breakpoints)

    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        return any(bp.matches(snapshot, self._previous_state) for bp in self._breakpoints)

    # @intent:responsibility CPUを1命令分実行し、その結果のSnapshotを返します。
    # @intent:return 命令が実行されなかった場合（空セルやメモリ末尾での停止）はNone。
    def step_instruction(self) -> Optional[Snapshot]:
        if self._halted:
            return None

        self._previous_state = self._cpu.get_state().copy()
        previous_snapshot = self._cpu.get_last_snapshot()
        continues = self._cpu.step()
        snapshot = self._cpu.get_last_snapshot()

        if not continues:
            self._halted = True
        if snapshot is None or snapshot is previous_snapshot:
            return None

        self._last_snapshot = snapshot
        if len(self._history) == self._history.maxlen:
            # 押し出される最古のステップは取り消せなくなるため、その実行後の状態を巻き戻しの起点にする
            self._initial_state = self._history[0].state.copy()
        self._history.append(snapshot)
        return snapshot

    # @intent:responsibility 実行履歴を1つ戻り、CPUとメモリの状態を復元します。
    def step_back(self) -> Optional[Snapshot]:
        if not self._history:
            return None

        snapshot_to_revert = self._history.pop()
        self._halted = False

        # メモリアクセスを逆順にスキャンし、書き込みを元に戻す
        memory = self._cpu.memory
        for access in reversed(snapshot_to_revert.memory_activity):
            if access.access_type == MemoryAccessType.WRITE and access.previous_data is not None:
                memory.load(access.address, access.previous_data)

        if self._history:
            previous_snapshot = self._history[-1]
            self._cpu.restore_state(previous_snapshot.state)
            self._last_snapshot = previous_snapshot
            return previous_snapshot

        self._cpu.restore_state(self._initial_state)
        self._last_snapshot = None
        return None

    # @intent:responsibility ブレークポイントかHALTに達するまで実行を継続します。
    # @intent:rationale HALTに達した場合はCPUの完了通知を行い、ホストのon_finishedを呼び出します。
    def run(self) -> None:
        if not self._cpu.is_loaded:
            self._cpu.load()
        self._running = True

        # 現在のPCにブレークポイントがある場合は、まず1命令進めて同じ位置で止まり続けないようにする
        if self._check_pc_breakpoints(self._cpu.get_state().pc):
            snapshot = self.step_instruction()
            if self._stop_if_halted():
                return
            if snapshot is not None and self._check_other_breakpoints(snapshot):
                self._running = False
                logger.info("Breakpoint hit at PC: %d", snapshot.state.pc)
                return

        while self._running:
            current_pc = self._cpu.get_state().pc
            if self._check_pc_breakpoints(current_pc):
                self._running = False
                logger.info("Breakpoint hit at PC: %d", current_pc)
                return

            snapshot = self.step_instruction()
            if self._stop_if_halted():
                return

            if snapshot is not None and self._check_other_breakpoints(snapshot):
                self._running = False
                logger.info("Breakpoint hit at PC: %d", snapshot.state.pc)

    def _stop_if_halted(self) -> bool:
        if not self._halted:
            return False
        self._running = False
        self._cpu.finish()
        return True

    def stop(self) -> None:
        self._running = False
