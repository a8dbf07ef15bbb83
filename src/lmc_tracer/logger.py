# lmc_tracer/logger.py
"""
パッケージ共通のロガー設定。

ライブラリとしてはNullHandlerのみを登録し、出力先の設定はCLIなどのホストに任せます。
"""
import logging
from typing import Optional, Union

LOGGER_NAME = "lmc_tracer"

logger = logging.getLogger(LOGGER_NAME)
logger.addHandler(logging.NullHandler())

_console_handler: Optional[logging.Handler] = None

def set_logger_level(level: Union[int, str]) -> None:
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

# @intent:responsibility コンソールへのログ出力を設定します。複数回呼ばれてもハンドラは1つだけです。
# @intent:rationale 呼び出しの度にハンドラを作り直し、その時点のsys.stderrに出力します。
def configure_console_logging(level: Union[int, str] = logging.INFO) -> None:
    global _console_handler
    if _console_handler is not None:
        logger.removeHandler(_console_handler)
    _console_handler = logging.StreamHandler()
    _console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(_console_handler)
    set_logger_level(level)
