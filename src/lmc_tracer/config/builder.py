from typing import Tuple
from lmc_tracer.core.cpu import LmcCpu
from lmc_tracer.core.events import EngineEvents
from lmc_tracer.loader.loader import AssemblyLoader
from lmc_tracer.loader.translator import (
    CommentOptions, SplitOptions, TranslationResult, Translator, TranslatorOptions
)
from .models import SystemConfig, TranslatorConfig

# @intent:responsibility システム構成（Config）に基づいて、Translator・ローダー・CPUを生成・接続します。
class SystemBuilder:
    def _translator_options(self, config: TranslatorConfig) -> TranslatorOptions:
        return TranslatorOptions(
            comments=CommentOptions(config.comments.enabled, config.comments.sequence),
            split_lines=SplitOptions(config.split_lines.enabled, config.split_lines.sequence)
        )

    def build_translator(self, config: TranslatorConfig) -> Translator:
        return Translator(self._translator_options(config))

    def build_loader(self, config: TranslatorConfig) -> AssemblyLoader:
        return AssemblyLoader(self._translator_options(config))

    # @intent:responsibility 翻訳結果をロードするCPUを生成し、ラベル表をシンボルマップとして設定します。
    # @intent:rationale 翻訳エラーがあってもCPUは生成します。ERR命令は実行時に致命的な障害として扱われます。
    def build_engine(self, config: SystemConfig, result: TranslationResult, events: EngineEvents) -> LmcCpu:
        cpu = LmcCpu(
            result.instructions,
            events,
            memory_size=config.engine.memory_size,
            append_halt=config.engine.append_halt
        )
        cpu.set_symbol_map(result.labels)
        return cpu

    def build_system(self, config: SystemConfig, source: str, events: EngineEvents) -> Tuple[TranslationResult, LmcCpu]:
        result = self.build_translator(config.translator).translate(source)
        return result, self.build_engine(config, result, events)
