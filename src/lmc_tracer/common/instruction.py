# lmc_tracer/common/instruction.py
"""
命令データ構造

Translatorが生成し、CPUが読み込む命令の表現を定義します。
"""
from dataclasses import dataclass
from typing import Optional, Union

from lmc_tracer.common.opcodes import Opcode, get_opcode_name

# @intent:responsibility 解決済みの命令を不変に保持します。
@dataclass(frozen=True)
class Instruction:
    """
    プログラム中の1命令。オペランドを取らない命令ではoperandはNoneです。
    """
    opcode: Opcode
    operand: Optional[int] = None

    def __str__(self) -> str:
        name = get_opcode_name(self.opcode)
        return name if self.operand is None else f"{name} {self.operand}"

# @intent:responsibility 翻訳途中の命令を保持します。オペランドは未解決のラベル名でもよい。
@dataclass(frozen=True)
class IntermediateInstruction:
    opcode: Opcode
    operand: Optional[Union[int, str]] = None

    @property
    def is_pending(self) -> bool:
        return isinstance(self.operand, str)
