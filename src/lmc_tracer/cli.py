# lmc_tracer/cli.py
"""
コマンドラインのエントリポイント。
LMCアセンブリファイルを翻訳・実行し、入出力をコンソールに接続します。
"""
import argparse
import logging
import sys
from typing import List, Optional, Union

from lmc_tracer.common.errors import ExecutionFault
from lmc_tracer.common.types import REGISTER_LAYOUT
from lmc_tracer.config.builder import SystemBuilder
from lmc_tracer.config.loader import ConfigLoader
from lmc_tracer.config.models import SystemConfig
from lmc_tracer.core.events import EngineEvents
from lmc_tracer.core.snapshot import Snapshot
from lmc_tracer.loader.translator import TranslationResult
from lmc_tracer.logger import configure_console_logging

logger = logging.getLogger(__name__)

EXIT_TRANSLATION_ERROR = 1
EXIT_EXECUTION_FAULT = 2
EXIT_LOAD_ERROR = 3
EXIT_CONFIG_ERROR = 4

def _build_config(args: argparse.Namespace) -> SystemConfig:
    config = ConfigLoader().load_from_file(args.config) if args.config else SystemConfig()
    if args.comment_seq:
        config.translator.comments.enabled = True
        config.translator.comments.sequence = args.comment_seq
    if args.split_seq:
        config.translator.split_lines.enabled = True
        config.translator.split_lines.sequence = args.split_seq
    if getattr(args, "memory_size", None) is not None:
        if args.memory_size <= 0:
            raise ValueError(f"--memory-size must be positive: {args.memory_size}")
        config.engine.memory_size = args.memory_size
    if getattr(args, "append_halt", False):
        config.engine.append_halt = True
    return config

def _read_input() -> int:
    while True:
        raw = input("> Input: ")
        try:
            return int(raw.strip())
        except ValueError:
            print(f"Not an integer: {raw!r}", file=sys.stderr)

def _write_output(value: Union[int, str]) -> None:
    if isinstance(value, str):
        print(value, end="", flush=True)
    else:
        print(value, flush=True)

def format_registers(snapshot: Snapshot) -> str:
    values = [snapshot.accumulator, snapshot.program_counter,
              snapshot.instruction_register, snapshot.address_register]
    return " ".join(f"{info.name}={value}" for info, value in zip(REGISTER_LAYOUT, values))

def _print_trace(snapshot: Snapshot) -> None:
    symbol_info = snapshot.metadata.symbol_info if snapshot.metadata else ""
    print(f"[trace] {symbol_info:<20} {format_registers(snapshot)}", file=sys.stderr)

def _load_source(config: SystemConfig, path: str) -> TranslationResult:
    return SystemBuilder().build_loader(config.translator).load_assembly(path)

def cmd_translate(args: argparse.Namespace, config: SystemConfig) -> int:
    result = _load_source(config, args.file)

    for index, instruction in enumerate(result.instructions):
        print(f"{index:3d}  {instruction}")
    if result.labels:
        print("labels:")
        for name, position in result.labels.items():
            print(f"  {name} = {position}")
    return EXIT_TRANSLATION_ERROR if result.has_errors else 0

def cmd_run(args: argparse.Namespace, config: SystemConfig) -> int:
    events = EngineEvents(
        on_input=_read_input,
        on_output=_write_output,
        on_finished=lambda: logger.info("Program finished"),
        on_dump=_print_trace if args.trace else None,
    )
    result = _load_source(config, args.file)
    if result.has_errors:
        logger.error("Translation failed at instruction(s) %s", result.error_positions)
        return EXIT_TRANSLATION_ERROR

    cpu = SystemBuilder().build_engine(config, result, events)
    try:
        cpu.load()
    except ValueError as e:
        logger.error("Cannot load program: %s", e)
        return EXIT_LOAD_ERROR

    try:
        cpu.run()
    except ExecutionFault as e:
        logger.error("Execution fault: %s", e)
        return EXIT_EXECUTION_FAULT
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="lmc-tracer", description="Little Man Computer translator and tracer")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("file", help="LMC assembly source file")
        p.add_argument("--config", help="YAML config file")
        p.add_argument("--comment-seq", help="Enable comments with this sequence")
        p.add_argument("--split-seq", help="Enable statement splitting with this sequence")

    p_translate = sub.add_parser("translate", help="Translate a source file and print instructions")
    add_common(p_translate)

    p_run = sub.add_parser("run", help="Translate and execute a source file")
    add_common(p_run)
    p_run.add_argument("--memory-size", type=int, help="Number of memory cells")
    p_run.add_argument("--append-halt", action="store_true", help="Append HLT after the program")
    p_run.add_argument("--trace", action="store_true", help="Print registers after each step")

    args = parser.parse_args(argv)

    try:
        config = _build_config(args)
        # 空の区切り記号などはここで検出される
        SystemBuilder().build_translator(config.translator)
    except ValueError as e:
        configure_console_logging("DEBUG" if args.verbose else "WARNING")
        logger.error("Invalid configuration: %s", e)
        return EXIT_CONFIG_ERROR

    # 設定ファイルのlog_levelは--verboseが無い場合にだけ使う
    if args.verbose:
        level = "DEBUG"
    elif args.config:
        level = config.log_level
    else:
        level = "WARNING"
    configure_console_logging(level)

    if args.cmd == "translate":
        return cmd_translate(args, config)
    return cmd_run(args, config)

if __name__ == '__main__':
    sys.exit(main())
