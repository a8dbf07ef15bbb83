# lmc_tracer/loader/translator.py
"""
LMCアセンブリの翻訳器。

行指向のソーステキストを命令列とラベル表に変換します。
構文エラーは例外ではなくERR命令として出力に埋め込まれ、
エラーが発生した行以降の翻訳は打ち切られます。
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from lmc_tracer.common.instruction import Instruction, IntermediateInstruction
from lmc_tracer.common.opcodes import (
    OPERAND_REQUIRED,
    Opcode,
    default_io_operand,
    find_opcode,
)
from lmc_tracer.common.types import LabelTable

logger = logging.getLogger(__name__)

_LABEL_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

# @intent:responsibility コメント除去の設定を保持します。
@dataclass(frozen=True)
class CommentOptions:
    enabled: bool = False
    sequence: str = ";"

    def __post_init__(self):
        if self.enabled and not self.sequence:
            raise ValueError("Comment sequence must not be empty when comments are enabled.")

# @intent:responsibility 1行に複数の文を書くための分割設定を保持します。
@dataclass(frozen=True)
class SplitOptions:
    enabled: bool = False
    sequence: str = ";"

    def __post_init__(self):
        if self.enabled and not self.sequence:
            raise ValueError("Split sequence must not be empty when line splitting is enabled.")

@dataclass(frozen=True)
class TranslatorOptions:
    comments: CommentOptions = field(default_factory=CommentOptions)
    split_lines: SplitOptions = field(default_factory=SplitOptions)

# @intent:responsibility 翻訳結果（命令列とラベル表）を保持します。
@dataclass
class TranslationResult:
    instructions: List[Instruction] = field(default_factory=list)
    labels: LabelTable = field(default_factory=dict)

    # @intent:responsibility 翻訳エラーを示すERR命令の位置を返します。
    @property
    def error_positions(self) -> List[int]:
        return [i for i, instruction in enumerate(self.instructions) if instruction.opcode == Opcode.ERR]

    @property
    def has_errors(self) -> bool:
        return bool(self.error_positions)

class _LineError(Exception):
    """1行の翻訳失敗。translate()の外には送出されない。"""

def is_valid_label(name: str) -> bool:
    return bool(_LABEL_PATTERN.match(name))

# @intent:responsibility ソーステキストを命令列に翻訳します。
class Translator:
    """
    2パスの翻訳器。1パス目で行を分類してラベルを登録し、
    2パス目で未解決のラベル参照を位置に置き換えます。
    """
    def __init__(self, options: Optional[TranslatorOptions] = None):
        self._options = options or TranslatorOptions()

    @property
    def options(self) -> TranslatorOptions:
        return self._options

    def translate(self, source: str) -> TranslationResult:
        result = TranslationResult()
        intermediates: List[IntermediateInstruction] = []

        lines = self._prepare_lines(source)
        logger.info("Parsing program with %d lines", len(lines))

        for line_number, raw_line in enumerate(lines, 1):
            line = raw_line.strip()
            if not line:
                logger.debug("Line %d is empty", line_number)
                continue

            tokens = line.split()
            logger.debug("Got tokens: %s (%d)", tokens, len(tokens))
            try:
                intermediates.append(self._classify(tokens, line, result.labels, len(intermediates)))
            except _LineError as e:
                logger.error("Line %d: %s", line_number, e)
                intermediates.append(IntermediateInstruction(Opcode.ERR))
                break

        result.instructions = self._resolve(intermediates, result.labels)
        logger.info("Parsed %d instructions", len(result.instructions))
        return result

    # @intent:responsibility 行分割とコメント除去を適用した文のリストを返します。
    # @intent:rationale 分割はコメント除去より先に行います。分割記号とコメント記号が同じ場合、分割が優先されます。
    def _prepare_lines(self, source: str) -> List[str]:
        lines = source.split("\n")
        split_options = self._options.split_lines
        if split_options.enabled:
            lines = [statement for line in lines for statement in line.split(split_options.sequence)]
        comment_options = self._options.comments
        if comment_options.enabled:
            lines = [line.split(comment_options.sequence, 1)[0] for line in lines]
        return lines

    # @intent:responsibility トークン数に応じて行を分類し、中間命令を生成します。
    # @intent:rationale 2トークン行ではオペコード位置の判定を先頭から行います。この優先順位を入れ替えると受理されるプログラムが変わります。
    def _classify(self, tokens: List[str], line: str, labels: LabelTable, position: int) -> IntermediateInstruction:
        mnemonic: Optional[str] = None
        operand: Optional[Union[int, str]] = None

        if len(tokens) == 1:
            mnemonic = tokens[0]
            opcode = find_opcode(mnemonic)
            if opcode is None:
                raise _LineError(f"Invalid opcode: {line}")
        elif len(tokens) == 2:
            opcode = find_opcode(tokens[0])
            if opcode is not None:
                mnemonic = tokens[0]
                operand = self._parse_operand(tokens[1])
            else:
                opcode = find_opcode(tokens[1])
                if opcode is None:
                    raise _LineError(f"Invalid line: {line}")
                mnemonic = tokens[1]
                self._define_label(tokens[0], labels, position)
        elif len(tokens) == 3:
            self._define_label(tokens[0], labels, position)
            mnemonic = tokens[1]
            opcode = find_opcode(mnemonic)
            if opcode is None:
                raise _LineError(f"Invalid opcode: {line}")
            operand = self._parse_operand(tokens[2])
        else:
            raise _LineError(f"Invalid line: {line} (too many tokens)")

        if opcode == Opcode.ERR:
            raise _LineError(f"Parsed an error opcode: {line}")

        if operand is None:
            if opcode in OPERAND_REQUIRED:
                raise _LineError(f"Attempted to use {opcode.name} without operand: {line}")
            if opcode == Opcode.INP:
                operand = default_io_operand(mnemonic)
            elif opcode == Opcode.DAT:
                operand = 0

        return IntermediateInstruction(opcode, operand)

    # @intent:responsibility ラベルを現在の命令位置に登録します。
    # @intent:pre-condition ラベル名は構文的に正しく、未定義である必要があります。
    def _define_label(self, name: str, labels: LabelTable, position: int) -> None:
        if not is_valid_label(name):
            raise _LineError(f"Invalid label: {name}")
        if name in labels:
            raise _LineError(f"Duplicate label: {name}")
        labels[name] = position

    def _parse_operand(self, token: str) -> Union[int, str]:
        if _INTEGER_PATTERN.match(token):
            return int(token)
        if is_valid_label(token):
            return token
        raise _LineError(f"Invalid operand: {token}")

    # @intent:responsibility 未解決のラベル参照をラベル表で解決します。
    # @intent:rationale 解決できない参照はその命令だけをERRに置き換え、列全体は打ち切りません。
    def _resolve(self, intermediates: List[IntermediateInstruction], labels: LabelTable) -> List[Instruction]:
        instructions = []
        for intermediate in intermediates:
            if intermediate.is_pending:
                index = labels.get(intermediate.operand)
                if index is None:
                    logger.error("Label %s not found", intermediate.operand)
                    instructions.append(Instruction(Opcode.ERR))
                else:
                    instructions.append(Instruction(intermediate.opcode, index))
            else:
                instructions.append(Instruction(intermediate.opcode, intermediate.operand))
        return instructions

def translate(source: str, options: Optional[TranslatorOptions] = None) -> TranslationResult:
    return Translator(options).translate(source)
