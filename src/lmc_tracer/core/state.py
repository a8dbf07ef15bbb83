# lmc_tracer/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、LMCのレジスタ群を保持するデータ構造を定義します。
"""
from dataclasses import dataclass, replace

from lmc_tracer.common.opcodes import Opcode

# @intent:responsibility LMCのレジスタ状態を保持します。
@dataclass
class LmcState:
    """
    LMCのレジスタ状態を保持するデータクラス。
    アキュムレータは任意精度の符号付き整数で、オーバーフローは発生しません。
    """
    accumulator: int = 0
    pc: int = 0     # Program Counter
    ir: int = Opcode.HLT # Instruction Register (直近にデコードしたオペコード)
    ar: int = 0     # Address Register (直近にデコードしたオペランド)

    # @intent:responsibility スナップショット用に独立したコピーを返します。
    def copy(self) -> "LmcState":
        return replace(self)
