# src/lmc_tracer/__init__.py
"""
LMC Tracer Package
"""
from .common.instruction import Instruction
from .common.opcodes import Opcode, IoCode
from .common.errors import ExecutionFault
from .core.cpu import LmcCpu
from .core.events import EngineEvents
from .debugger.debugger import BreakpointCondition, BreakpointConditionType, Debugger
from .loader.loader import AssemblyLoader
from .loader.translator import Translator, TranslatorOptions, CommentOptions, SplitOptions, translate
from .logger import set_logger_level, configure_console_logging
