from dataclasses import dataclass, field

@dataclass
class CommentConfig:
    enabled: bool = False
    sequence: str = ";"

@dataclass
class SplitConfig:
    enabled: bool = False
    sequence: str = ";"

@dataclass
class TranslatorConfig:
    comments: CommentConfig = field(default_factory=CommentConfig)
    split_lines: SplitConfig = field(default_factory=SplitConfig)

@dataclass
class EngineConfig:
    memory_size: int = 100
    append_halt: bool = False # プログラム末尾にHLTを追加するかどうか

@dataclass
class SystemConfig:
    translator: TranslatorConfig = field(default_factory=TranslatorConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    log_level: str = "INFO"
