"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアスなどを定義します。
"""
from typing import Dict, List, NamedTuple

# @intent:data_structure ラベル名と命令位置をマッピングする辞書の型エイリアス。
# Translator, CPU, Debuggerなど複数のレイヤーで共通して使用されます。
LabelTable = Dict[str, int]

# @intent:data_structure 単一のレジスタの表示定義。
class RegisterInfo(NamedTuple):
    name: str
    description: str

# @intent:data_structure LMCが持つレジスタの一覧。表示順もこの順序に従います。
REGISTER_LAYOUT: List[RegisterInfo] = [
    RegisterInfo("ACC", "Accumulator"),
    RegisterInfo("PC", "Program Counter"),
    RegisterInfo("IR", "Instruction Register"),
    RegisterInfo("AR", "Address Register"),
]
