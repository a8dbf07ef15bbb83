# tests/test_integration.py
"""
翻訳から実行までの結合テスト。
"""
from unittest.mock import MagicMock, call

import pytest

from lmc_tracer import (
    AssemblyLoader,
    BreakpointCondition,
    BreakpointConditionType,
    Debugger,
    EngineEvents,
    LmcCpu,
    SplitOptions,
    TranslatorOptions,
    translate,
)
from lmc_tracer.common.errors import ErrorOpcodeFault

# @intent:test_suite ソーステキストからホストコールバックまでのデータフローの検証。

SPLIT = TranslatorOptions(split_lines=SplitOptions(enabled=True, sequence=";"))

def run_program(source, inputs=(), memory_size=100, options=SPLIT):
    outputs = []
    manager = MagicMock()
    manager.on_input.side_effect = list(inputs)
    manager.on_output.side_effect = outputs.append
    events = EngineEvents(on_input=manager.on_input, on_output=manager.on_output, on_finished=manager.on_finished)
    result = translate(source, options)
    cpu = LmcCpu(result.instructions, events, memory_size=memory_size)
    cpu.run()
    return manager, outputs, cpu

# @intent:test_case_end_to_end 入力3に対して3、5の順に出力し、最後に完了が通知されることを検証します。
def test_add_two_program():
    manager, outputs, _ = run_program("inp;out;add two;out;two dat 2", inputs=[3])
    assert outputs == [3, 5]
    assert manager.mock_calls == [
        call.on_input(),
        call.on_output(3),
        call.on_output(5),
        call.on_finished(),
    ]

def test_single_input_program():
    manager, outputs, _ = run_program("inp", inputs=[7])
    manager.on_input.assert_called_once()
    manager.on_finished.assert_called_once()
    assert outputs == []

def test_simple_run():
    manager, outputs, _ = run_program("inp; out; hlt", inputs=[0])
    assert outputs == [0]
    manager.on_finished.assert_called_once()

def test_output_as_char():
    _, outputs, _ = run_program("lda char\notc\nhlt\nchar dat 101", options=TranslatorOptions())
    assert outputs == ["e"]

def test_countdown_loop():
    source = """
        inp
loop    out
        sub one
        brp loop
        hlt
one     dat 1
"""
    _, outputs, cpu = run_program(source, inputs=[3], options=TranslatorOptions())
    assert outputs == [3, 2, 1, 0]
    assert cpu.get_state().accumulator == -1

def test_multiply_by_repeated_addition():
    source = """
        inp
        sta a
        inp
        sta b
loop    lda b
        brz done
        sub one
        sta b
        lda total
        add a
        sta total
        bra loop
done    lda total
        out
        hlt
a       dat
b       dat
total   dat
one     dat 1
"""
    _, outputs, _ = run_program(source, inputs=[6, 7], options=TranslatorOptions())
    assert outputs == [42]

def test_translation_error_fails_at_runtime():
    with pytest.raises(ErrorOpcodeFault):
        run_program("out;lda nowhere;out", inputs=[])

# @intent:test_case_debug_session ファイルから読み込んだプログラムをデバッガで止め、巻き戻してから最後まで実行できることを検証します。
def test_debug_session_from_file(tmp_path):
    path = tmp_path / "countdown.lmc"
    path.write_text("        inp\nloop    out\n        sub one\n        brp loop\n        hlt\none     dat 1\n",
                    encoding="utf-8")
    result = AssemblyLoader().load_assembly(str(path))
    outputs = []
    events = EngineEvents(on_input=MagicMock(return_value=2), on_output=outputs.append, on_finished=MagicMock())
    cpu = LmcCpu(result.instructions, events, memory_size=10)
    cpu.set_symbol_map(result.labels)
    debugger = Debugger(cpu)
    debugger.add_breakpoint(BreakpointCondition(BreakpointConditionType.ACCUMULATOR_VALUE, value=0))

    debugger.run()
    assert cpu.get_state().accumulator == 0
    assert outputs == [2, 1]

    debugger.step_back()
    assert cpu.get_state().accumulator == 1

    debugger.remove_breakpoint(debugger.get_breakpoints()[0])
    debugger.run()
    assert outputs == [2, 1, 0]
    events.on_finished.assert_called_once()
