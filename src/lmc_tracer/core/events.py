# lmc_tracer/core/events.py
"""
ホストコールバックの定義。
"""
from dataclasses import dataclass
from typing import Callable, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from lmc_tracer.core.snapshot import Snapshot

# @intent:responsibility CPUがホストへ通知するイベントハンドラをまとめて保持します。
# @intent:rationale on_dump/on_logは省略可能で、Noneの場合は何もしません。
@dataclass
class EngineEvents:
    on_input: Callable[[], int]
    on_output: Callable[[Union[int, str]], None]
    on_finished: Callable[[], None]
    on_dump: Optional[Callable[["Snapshot"], None]] = None
    on_log: Optional[Callable[[str], None]] = None
