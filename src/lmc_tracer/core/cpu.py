# lmc_tracer/core/cpu.py
"""
Core Layer (LMC CPU)

このモジュールは、単一アキュムレータ型CPUの状態管理と
フェッチ・デコード・実行サイクルの駆動を提供します。
命令とデータは同じメモリ空間に共存します。
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from lmc_tracer.common.errors import (
    CharacterOutputFault,
    ErrorOpcodeFault,
    ExecutionFault,
    MemoryAccessFault,
    UnknownOpcodeFault,
)
from lmc_tracer.common.instruction import Instruction
from lmc_tracer.common.opcodes import IoCode, Opcode, get_opcode_name
from lmc_tracer.common.types import LabelTable
from lmc_tracer.core import codec
from lmc_tracer.core.events import EngineEvents
from lmc_tracer.core.snapshot import Metadata, Operation, Snapshot
from lmc_tracer.core.state import LmcState
from lmc_tracer.transport.memory import Memory

logger = logging.getLogger(__name__)

# @intent:responsibility LMCの実行エンジン。レジスタとメモリを排他的に所有します。
class LmcCpu:
    """
    翻訳済みの命令列をメモリにロードし、1命令ずつ実行するCPU。
    入出力と状態通知はEngineEventsのコールバックを介してホストに委譲されます。
    """
    # @intent:responsibility CPUの状態とメモリを初期化します。
    # @intent:pre-condition `memory_size`は正の整数である必要があります。
    def __init__(self, program: Sequence[Instruction], events: EngineEvents,
                 memory_size: int, append_halt: bool = False):
        if not isinstance(memory_size, int) or isinstance(memory_size, bool) or memory_size <= 0:
            raise ValueError("Memory size must be a positive integer.")
        self._program: Tuple[Instruction, ...] = tuple(program)
        self._events = events
        self._memory_size = memory_size
        self._append_halt = append_halt
        self._memory = Memory(memory_size)
        self._state = self._create_initial_state()
        self._step_count = 0
        self._loaded = False
        self._faulted = False
        self._last_snapshot: Optional[Snapshot] = None
        self._symbol_map: LabelTable = {}
        self._reverse_symbol_map: Dict[int, str] = {}

    def _create_initial_state(self) -> LmcState:
        return LmcState()

    @property
    def memory(self) -> Memory:
        return self._memory

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_faulted(self) -> bool:
        return self._faulted

    # @intent:responsibility シンボルマップ（ラベル表）を設定します。スナップショットのシンボル情報に使用されます。
    def set_symbol_map(self, symbol_map: LabelTable) -> None:
        self._symbol_map = dict(symbol_map)
        # 同じ位置に複数のラベルがある場合は最初の定義を優先する
        self._reverse_symbol_map = {}
        for name, addr in symbol_map.items():
            self._reverse_symbol_map.setdefault(addr, name)

    def get_symbol_map(self) -> LabelTable:
        return self._symbol_map

    # @intent:responsibility 命令列をメモリへ書き込みます。
    # @intent:rationale DAT命令は符号化せずリテラル値を格納するため、コードとデータが同じアドレス空間に密に共存します。
    def load(self) -> None:
        """
        各命令をその列内の位置に書き込みます。
        append_haltが有効で空きがある場合、プログラム直後にHLTを追加します。
        """
        if len(self._program) > self._memory_size:
            raise ValueError(
                f"Program of {len(self._program)} instructions does not fit in memory of size {self._memory_size}."
            )
        for index, instruction in enumerate(self._program):
            if instruction.opcode == Opcode.DAT:
                self._memory.load(index, instruction.operand or 0)
            else:
                self._memory.load(index, codec.encode(instruction))

        if self._append_halt:
            end = len(self._program)
            if end < self._memory_size:
                self._memory.load(end, codec.encode(Instruction(Opcode.HLT)))
            else:
                logger.debug("No room to append HLT after %d instructions", end)

        self._loaded = True

    # @intent:responsibility CPUを1命令サイクル進めます。
    # @intent:flow フェッチ -> 暗黙のHALT判定 -> デコード -> PC更新 -> 実行 -> スナップショット生成
    # @intent:rationale PCは実行前に進めるため、分岐命令が書き込んだアドレスがそのまま次のフェッチ位置になります。
    def step(self) -> bool:
        """
        1命令を実行し、実行を継続すべきかどうかを返します。
        HLT命令、値が0のセル、メモリ末尾への到達で停止(False)します。
        """
        if self._faulted:
            raise ExecutionFault("CPU is halted by a previous fault; reset() is required.")

        self._memory.get_and_clear_activity_log()
        initial_pc = self._state.pc

        if initial_pc >= self._memory_size:
            self._debug(f"Reached end of memory at {initial_pc}")
            return False

        raw = self._fetch()
        if not raw:
            self._debug(f"Empty cell at {initial_pc}, halting")
            return False

        try:
            operation = self._decode(raw)
            self._update_pc(operation)
            continues = self._execute(operation)
        except ExecutionFault:
            self._faulted = True
            raise

        # メモリ全体のコピーはホストが観測する場合にだけ作る
        wants_dump = continues and self._events.on_dump is not None
        self._last_snapshot = self._create_snapshot(initial_pc, operation, with_memory=wants_dump)
        if wants_dump:
            self._events.on_dump(self._last_snapshot)
        return continues

    # @intent:responsibility HALTするまでstep()を繰り返し、完了をホストに通知します。
    # @intent:rationale reset()せずに再実行した場合は、前回の実行が残したレジスタとメモリから再開します。
    def run(self) -> None:
        if not self._loaded:
            self.load()

        logger.info("Starting program execution")
        self._log("Starting program execution")
        if self._events.on_log or logger.isEnabledFor(logging.DEBUG):
            self._debug("Program: " + ", ".join(str(instruction) for instruction in self._program))
            self._debug("Memory: " + ", ".join(str(cell) for cell in self._memory.dump()))

        while self.step():
            pass

        self.finish()

    # @intent:responsibility 実行完了をログとホストに通知します。
    def finish(self) -> None:
        logger.info("Finished program execution")
        self._log("Finished program execution")
        self._events.on_finished()

    # @intent:responsibility 全レジスタを0にし、メモリを確保し直します。元の命令列は保持されます。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._memory = Memory(self._memory_size)
        self._step_count = 0
        self._loaded = False
        self._faulted = False
        self._last_snapshot = None

    # @intent:responsibility ホスト観測用に現在の状態のスナップショットを返します。状態は変更しません。
    def dump(self) -> Snapshot:
        operation = self._last_snapshot.operation if self._last_snapshot else None
        return Snapshot(
            state=self._state.copy(),
            memory=self._memory.dump(),
            operation=operation,
            metadata=Metadata(step_count=self._step_count),
        )

    def get_state(self) -> LmcState:
        return self._state

    # @intent:responsibility デバッガのステップバック用に、レジスタ状態を復元します。
    def restore_state(self, state: LmcState) -> None:
        self._state = state.copy()
        self._faulted = False

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        return {"ACC": s.accumulator, "PC": s.pc, "IR": s.ir, "AR": s.ar}

    # @intent:responsibility 指定範囲のメモリを逆アセンブルし、(address, raw, text) のリストを返します。
    # @intent:rationale コードとデータは区別できないため、復号できないセルは生の値として表示します。
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, int, str]]:
        result = []
        for addr in range(start_addr, min(start_addr + length, self._memory_size)):
            raw = self._memory.peek(addr)
            try:
                text = str(codec.decode(raw)) if raw else "HLT"
            except UnknownOpcodeFault:
                text = f"DAT {raw}"
            label = self._reverse_symbol_map.get(addr)
            if label:
                text = f"{label}: {text}"
            result.append((addr, raw, text))
        return result

    # --- 命令サイクル ---

    def _fetch(self) -> int:
        return self._memory.read(self._state.pc)

    # @intent:responsibility 生の値を復号し、IRとARを更新します。
    # @intent:rationale オペランドを持たない命令ではARは前回の値を保持します。
    def _decode(self, raw: int) -> Operation:
        instruction = codec.decode(raw)
        self._state.ir = instruction.opcode
        if instruction.operand is not None:
            self._state.ar = instruction.operand
        return Operation(
            opcode=int(instruction.opcode),
            mnemonic=get_opcode_name(instruction.opcode),
            operand=instruction.operand,
            raw=raw,
        )

    def _update_pc(self, operation: Operation) -> None:
        self._state.pc += 1

    # @intent:responsibility デコードされた命令を実行し、状態を更新します。
    # @intent:return 実行を継続する場合True、HLTの場合False。
    def _execute(self, operation: Operation) -> bool:
        s = self._state
        opcode = s.ir

        if opcode == Opcode.HLT:
            self._debug("Halted")
            return False
        elif opcode == Opcode.ADD:
            value = self._read(s.ar)
            self._debug(f"Performing add on {s.accumulator} and {value}")
            s.accumulator += value
        elif opcode == Opcode.SUB:
            value = self._read(s.ar)
            self._debug(f"Performing sub on {s.accumulator} and {value}")
            s.accumulator -= value
        elif opcode == Opcode.STA:
            self._debug(f"Storing {s.accumulator} at {s.ar}")
            self._write(s.ar, s.accumulator)
        elif opcode == Opcode.ERR:
            raise ErrorOpcodeFault(f"ERR opcode encountered at {s.pc - 1}")
        elif opcode == Opcode.LDA:
            value = self._read(s.ar)
            self._debug(f"Loading {value} into accumulator, replacing {s.accumulator}")
            s.accumulator = value
        elif opcode == Opcode.BRA:
            self._debug(f"Branching to {s.ar}")
            s.pc = s.ar
        elif opcode == Opcode.BRZ:
            if s.accumulator == 0:
                self._debug(f"Branching to {s.ar} because accumulator is {s.accumulator}")
                s.pc = s.ar
            else:
                self._debug(f"Not branching to {s.ar} because accumulator is {s.accumulator}")
        elif opcode == Opcode.BRP:
            if s.accumulator >= 0:
                self._debug(f"Branching to {s.ar} because accumulator is {s.accumulator}")
                s.pc = s.ar
            else:
                self._debug(f"Not branching to {s.ar} because accumulator is {s.accumulator}")
        elif opcode == Opcode.INP:
            self._execute_io(s)
        elif opcode == Opcode.DAT:
            pass
        else:
            raise UnknownOpcodeFault(f"Unknown opcode: {opcode}")

        return True

    # @intent:responsibility 共有I/Oオペコードを、ARのサブモードに従って入力・数値出力・文字出力に振り分けます。
    def _execute_io(self, s: LmcState) -> None:
        if s.ar == IoCode.INPUT:
            s.accumulator = self._events.on_input()
            self._debug(f"Inputting {s.accumulator} into accumulator")
        elif s.ar == IoCode.OUTPUT:
            self._events.on_output(s.accumulator)
            self._debug(f"Outputting {s.accumulator} from accumulator")
        elif s.ar == IoCode.CHAR:
            try:
                char = chr(s.accumulator)
            except (ValueError, OverflowError):
                raise CharacterOutputFault(f"Accumulator value {s.accumulator} is not a valid character code") from None
            self._events.on_output(char)
            self._debug(f"Outputting {s.accumulator} from accumulator as character")
        else:
            self._debug(f"Ignoring I/O instruction with unknown sub-mode {s.ar}")

    def _read(self, address: int) -> int:
        try:
            return self._memory.read(address)
        except IndexError as e:
            raise MemoryAccessFault(str(e)) from e

    def _write(self, address: int, data: int) -> None:
        try:
            self._memory.write(address, data)
        except IndexError as e:
            raise MemoryAccessFault(str(e)) from e

    # @intent:rationale 1ステップごとのスナップショットは既定でメモリを持たず、巻き戻しにはmemory_activityを使います。
    def _create_snapshot(self, initial_pc: int, operation: Operation, with_memory: bool = False) -> Snapshot:
        memory_activity = self._memory.get_and_clear_activity_log()
        self._step_count += 1

        symbol_label = self._reverse_symbol_map.get(initial_pc, "")
        symbol_info = f"{symbol_label}: " if symbol_label else ""
        symbol_info += operation.mnemonic
        if operation.operand is not None:
            symbol_info += f" {operation.operand}"

        return Snapshot(
            state=self._state.copy(),
            memory=self._memory.dump() if with_memory else None,
            operation=operation,
            metadata=Metadata(step_count=self._step_count, symbol_info=symbol_info),
            memory_activity=memory_activity,
        )

    # --- ログ ---

    def _log(self, message: str) -> None:
        if self._events.on_log:
            self._events.on_log(message)

    def _debug(self, message: str) -> None:
        self._log(message)
        logger.debug(message)
