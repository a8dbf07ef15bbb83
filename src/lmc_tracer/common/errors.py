# lmc_tracer/common/errors.py
"""
実行時エラーの定義。

翻訳エラーは例外ではなくERR命令として表現されるため、
ここでは実行エンジンが送出する致命的な障害のみを定義します。
"""

# @intent:responsibility 実行エンジンの回復不能な障害を表す基底例外。
class ExecutionFault(RuntimeError):
    pass

class ErrorOpcodeFault(ExecutionFault):
    """ERR命令をフェッチした。"""

class UnknownOpcodeFault(ExecutionFault):
    """命令セットに存在しないオペコードをデコードした。"""

class MemoryAccessFault(ExecutionFault):
    """アドレスレジスタがメモリ範囲外を指している。"""

class CharacterOutputFault(ExecutionFault):
    """アキュムレータの値が文字コードとして解釈できない。"""
