# lmc_tracer/loader/loader.py
"""
ソースファイルローダーモジュール。
LMCアセンブリのファイルを読み込み、Translatorで命令列に変換します。
"""
import logging
from typing import Optional

from lmc_tracer.loader.translator import TranslationResult, Translator, TranslatorOptions

logger = logging.getLogger(__name__)

class AssemblyLoader:
    """
    アセンブリソースファイルを読み込み、翻訳結果を返すローダー。
    翻訳エラーは例外にならないため、呼び出し側はhas_errorsを確認する必要があります。
    """
    def __init__(self, options: Optional[TranslatorOptions] = None):
        self._translator = Translator(options)

    def load_assembly(self, file_path: str) -> TranslationResult:
        with open(file_path, 'r', encoding="utf-8") as f:
            source = f.read()

        logger.debug("Loaded %d characters from %s", len(source), file_path)
        result = self._translator.translate(source)
        if result.has_errors:
            logger.warning("Translation of %s produced ERR instructions at %s", file_path, result.error_positions)
        return result
