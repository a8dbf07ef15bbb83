# tests/debugger/test_debugger.py
"""
lmc_tracer.debugger.debuggerモジュールの単体テスト。
Debuggerの実行制御、ブレークポイント管理、ステップバックを検証します。
"""
import logging
from unittest.mock import MagicMock

import pytest

from lmc_tracer.core.cpu import LmcCpu
from lmc_tracer.core.events import EngineEvents
from lmc_tracer.debugger.debugger import BreakpointCondition, BreakpointConditionType, Debugger
from lmc_tracer.loader.translator import translate

# @intent:test_suite デバッガのブレークポイントと実行制御機能の検証。

COUNTDOWN = """
      inp
loop  out
      sub one
      sta count
      brp loop
      hlt
one   dat 1
count dat 0
"""

@pytest.fixture
def events():
    return EngineEvents(on_input=MagicMock(return_value=2), on_output=MagicMock(), on_finished=MagicMock())

@pytest.fixture
def setup_debugger(events):
    result = translate(COUNTDOWN)
    cpu = LmcCpu(result.instructions, events, memory_size=16)
    cpu.set_symbol_map(result.labels)
    cpu.load()
    return Debugger(cpu), cpu

class TestDebugger:
    # @intent:test_case_add_remove_breakpoint ブレークポイントの追加と削除が正しく行われることを検証します。
    def test_add_remove_breakpoint(self, setup_debugger):
        debugger, _ = setup_debugger
        bp1 = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=3)
        bp2 = BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=7)

        debugger.add_breakpoint(bp1)
        debugger.add_breakpoint(bp2)
        debugger.add_breakpoint(bp1) # 重複追加は無視される
        assert debugger.get_breakpoints() == [bp1, bp2]

        debugger.remove_breakpoint(bp1)
        debugger.remove_breakpoint(bp1) # 存在しないブレークポイントの削除はエラーにならない
        assert debugger.get_breakpoints() == [bp2]

    def test_update_breakpoint(self, setup_debugger):
        debugger, _ = setup_debugger
        old = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=3)
        new = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=3, enabled=False)
        debugger.add_breakpoint(old)
        debugger.update_breakpoint(old, new)
        assert debugger.get_breakpoints() == [new]

    def test_step_instruction(self, setup_debugger):
        debugger, cpu = setup_debugger
        snapshot = debugger.step_instruction()
        assert snapshot.accumulator == 2
        assert snapshot.program_counter == 1
        assert debugger.get_history() == [snapshot]
        assert debugger.get_last_snapshot() is snapshot

    # @intent:test_case_pc_match_breakpoint PC_MATCHブレークポイントで停止することを検証します。
    def test_pc_match_breakpoint(self, setup_debugger, events, caplog):
        debugger, cpu = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=4))

        with caplog.at_level(logging.INFO, logger="lmc_tracer"):
            debugger.run()

        assert cpu.get_state().pc == 4
        assert "Breakpoint hit at PC: 4" in caplog.text
        events.on_finished.assert_not_called()

        # 同じPCから再開すると、そのブレークポイントを越えて次の周回で再び止まる
        debugger.run()
        assert cpu.get_state().pc == 4
        assert events.on_output.call_count == 2

    def test_memory_write_breakpoint(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.MEMORY_WRITE, address=7))
        debugger.run()
        assert debugger.get_last_snapshot().metadata.symbol_info == "STA 7"
        assert cpu.memory.peek(7) == 1

    def test_memory_read_breakpoint(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.MEMORY_READ, address=6))
        debugger.run()
        assert debugger.get_last_snapshot().operation.mnemonic == "SUB"

    def test_accumulator_value_breakpoint(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.ACCUMULATOR_VALUE, value=0))
        debugger.run()
        assert cpu.get_state().accumulator == 0
        assert cpu.get_state().pc == 3

    def test_register_change_breakpoint(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.step_instruction() # inp
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.REGISTER_CHANGE, register_name="accumulator"))
        debugger.run()
        # out は変化なし、sub one で変化する
        assert cpu.get_state().accumulator == 1
        assert cpu.get_state().pc == 3

    def test_disabled_breakpoint_is_ignored(self, setup_debugger, events):
        debugger, cpu = setup_debugger
        debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=4, enabled=False))
        debugger.run()
        assert debugger.is_halted
        events.on_finished.assert_called_once()

    # @intent:test_case_run_to_halt ブレークポイントがなければHALTまで実行し、完了を通知することを検証します。
    def test_run_to_halt(self, setup_debugger, events):
        debugger, cpu = setup_debugger
        debugger.run()
        assert [c.args[0] for c in events.on_output.call_args_list] == [2, 1, 0]
        events.on_finished.assert_called_once()
        assert debugger.step_instruction() is None

    # @intent:test_case_step_back ステップバックでレジスタとメモリが復元されることを検証します。
    def test_step_back_restores_memory_and_registers(self, setup_debugger):
        debugger, cpu = setup_debugger
        for _ in range(4): # inp, out, sub, sta
            debugger.step_instruction()
        assert cpu.memory.peek(7) == 1

        previous = debugger.step_back()
        assert cpu.memory.peek(7) == 0
        assert previous.program_counter == 3
        assert cpu.get_state().pc == 3
        assert cpu.get_state().accumulator == 1

    def test_step_back_to_initial_state(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.step_instruction()
        assert debugger.step_back() is None
        assert cpu.get_state().pc == 0
        assert cpu.get_state().accumulator == 0
        assert debugger.step_back() is None

    def test_step_back_after_halt_allows_resume(self, setup_debugger):
        debugger, cpu = setup_debugger
        debugger.run()
        assert debugger.is_halted
        debugger.step_back()
        assert not debugger.is_halted
        # HLTは空セルと同じく暗黙に停止するため、最後に記録されるのはBRP
        assert debugger.step_instruction().operation.mnemonic == "BRP"

    # @intent:test_case_history_limit 履歴は上限を超えると古いものから破棄され、ステップバックは残った範囲の起点で止まることを検証します。
    def test_history_is_capped(self, events):
        result = translate(COUNTDOWN)
        cpu = LmcCpu(result.instructions, events, memory_size=16)
        debugger = Debugger(cpu, max_history=4)
        debugger.run()

        history = debugger.get_history()
        assert [s.metadata.step_count for s in history] == [10, 11, 12, 13]
        assert all(s.memory is None for s in history)
        assert cpu.memory.peek(7) == -1

        for _ in range(4):
            debugger.step_back()
        # 9ステップ目 (2周目のBRP) の直後に戻る
        assert cpu.get_state().accumulator == 0
        assert cpu.get_state().pc == 1
        assert cpu.memory.peek(7) == 0
        assert debugger.step_back() is None
        assert cpu.get_state().pc == 1

    def test_history_limit_must_be_positive(self, setup_debugger):
        _, cpu = setup_debugger
        with pytest.raises(ValueError):
            Debugger(cpu, max_history=0)
