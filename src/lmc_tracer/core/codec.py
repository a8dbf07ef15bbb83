# lmc_tracer/core/codec.py
"""
命令の符号化・復号

1つのメモリセルに (opcode << 8) | (operand & 0xFF) として命令を格納します。
オペランドは1バイトに制限されますが、アキュムレータは任意精度です。
"""
from lmc_tracer.common.errors import UnknownOpcodeFault
from lmc_tracer.common.instruction import Instruction
from lmc_tracer.common.opcodes import Opcode

OPCODE_SHIFT = 8
OPERAND_MASK = 0xFF
OPCODE_MASK = 0xFF

def encode(instruction: Instruction) -> int:
    operand = instruction.operand or 0
    return (int(instruction.opcode) << OPCODE_SHIFT) | (operand & OPERAND_MASK)

# @intent:responsibility メモリセルの値を命令に復号します。
# @intent:post-condition 命令セット外のオペコードの場合、UnknownOpcodeFaultを送出します。
def decode(raw: int) -> Instruction:
    opcode_value = (raw >> OPCODE_SHIFT) & OPCODE_MASK
    try:
        opcode = Opcode(opcode_value)
    except ValueError:
        raise UnknownOpcodeFault(f"Unknown opcode: {opcode_value} (raw cell value {raw})") from None
    return Instruction(opcode=opcode, operand=raw & OPERAND_MASK)
