import logging

import yaml
from typing import Dict, Any
from .models import SystemConfig, TranslatorConfig, EngineConfig, CommentConfig, SplitConfig

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
        return self.load_from_dict(data or {})

    def load_from_dict(self, data: Dict[str, Any]) -> SystemConfig:
        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

        translator_data = self._section(data, "translator")
        comments_data = self._section(translator_data, "comments", "translator.")
        split_data = self._section(translator_data, "split_lines", "translator.")

        translator = TranslatorConfig(
            comments=CommentConfig(
                enabled=bool(comments_data.get("enabled", False)),
                sequence=str(comments_data.get("sequence", ";"))
            ),
            split_lines=SplitConfig(
                enabled=bool(split_data.get("enabled", False)),
                sequence=str(split_data.get("sequence", ";"))
            )
        )

        engine_data = self._section(data, "engine")
        memory_size = self._parse_int(engine_data.get("memory_size", 100))
        if memory_size <= 0:
            raise ValueError(f"engine.memory_size must be positive: {memory_size}")
        engine = EngineConfig(
            memory_size=memory_size,
            append_halt=bool(engine_data.get("append_halt", False))
        )

        logging_data = self._section(data, "logging")
        log_level = str(logging_data.get("level", "INFO")).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Unknown logging.level: {log_level}")

        return SystemConfig(
            translator=translator,
            engine=engine,
            log_level=log_level
        )

    # @intent:responsibility 省略されたセクションは空として扱い、マッピング以外はValueErrorにします。
    def _section(self, data: Dict[str, Any], key: str, prefix: str = "") -> Dict[str, Any]:
        value = data.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError(f"Config section {prefix}{key} must be a mapping, got {type(value).__name__}")
        return value

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            if value.startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
