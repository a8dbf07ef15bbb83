# lmc_tracer/common/opcodes.py
"""
命令セット定義

このモジュールは、LMC(Little Man Computer)命令セットのオペコードと
I/Oサブモード、ニーモニックとの対応を定義します。
"""
from enum import IntEnum
from typing import Optional

# @intent:responsibility Translatorが解釈できるオペコードを定義します。
# @intent:rationale OUT/OTCはINPと同じタグを共有し、アドレスレジスタのサブモードで区別されます。
#                  IntEnumの別名として定義することで、名前による検索がそのまま機能します。
class Opcode(IntEnum):
    HLT = 0
    ADD = 1
    SUB = 2
    STA = 3
    ERR = 4
    LDA = 5
    BRA = 6
    BRZ = 7
    BRP = 8
    INP = 9
    OUT = 9
    OTC = 9
    DAT = 10
    STO = 3 # STAの別表記

# @intent:responsibility 共有I/Oオペコードのサブモードを定義します。
class IoCode(IntEnum):
    INPUT = 1
    OUTPUT = 2
    CHAR = 22

# @intent:constant オペランドが必須のオペコード群。
OPERAND_REQUIRED = frozenset({
    Opcode.ADD, Opcode.SUB, Opcode.STA, Opcode.LDA,
    Opcode.BRA, Opcode.BRZ, Opcode.BRP,
})

_DEFAULT_IO_OPERANDS = {
    "INP": IoCode.INPUT,
    "OUT": IoCode.OUTPUT,
    "OTC": IoCode.CHAR,
}

# @intent:responsibility ニーモニック文字列から対応するオペコードを検索します。
def find_opcode(name: str) -> Optional[Opcode]:
    """
    大文字小文字を区別せずにニーモニックを検索します。
    見つからない場合はNoneを返します。
    """
    return Opcode.__members__.get(name.upper())

# @intent:responsibility オペコードの正規ニーモニックを返します。
def get_opcode_name(opcode: int) -> str:
    try:
        return Opcode(opcode).name
    except ValueError:
        return "ERR"

# @intent:responsibility オペランド省略時のI/Oサブモードを、使用されたニーモニックから決定します。
def default_io_operand(mnemonic: str) -> Optional[int]:
    code = _DEFAULT_IO_OPERANDS.get(mnemonic.upper())
    return int(code) if code is not None else None
