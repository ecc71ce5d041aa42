"""Command line entry point: inspect, disassemble and lift Luau bytecode."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import LiftConfig, load_config
from .container import Module, build_layout, parse_module
from .exceptions import ConfigError, DecodeError, FormatError
from .lifter.cfg import build_cfg, render_dot
from .lifter.debug_dump import LifterDebugDump
from .lifter.sweep import LiftedFunction, iter_instructions, lift_function
from .render.operands import format_instruction
from .utils.io_utils import write_text

LOGGER = logging.getLogger(__name__)


def _selected_functions(module: Module, requested: Optional[int]) -> List[int]:
    if requested is None:
        return list(range(len(module.functions)))
    if not 0 <= requested < len(module.functions):
        raise ConfigError(
            f"function {requested} does not exist (module has {len(module.functions)})"
        )
    return [requested]


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
    else:
        write_text(output, text)
        LOGGER.info("Wrote %s", output)


def _module_summary(module: Module, buffer: bytes) -> Dict[str, Any]:
    functions = []
    for index, function in enumerate(module.functions):
        name = None
        if function.debug_name:
            try:
                data = module.string_bytes(buffer, function.debug_name)
            except IndexError:
                data = None
            name = data.decode("utf-8", errors="replace") if data is not None else None
        functions.append(
            {
                "index": index,
                "name": name,
                "code": list(function.code.as_tuple()),
                "instructions": function.instruction_words,
                "constants": len(function.constants),
                "references": list(function.references),
            }
        )
    return {
        "entry_index": module.entry_index,
        "entry_point": module.entry_point,
        "strings": len(module.strings),
        "functions": functions,
        "layout": build_layout(module).as_dict(),
    }


def _cmd_info(args: argparse.Namespace, module: Module, buffer: bytes, config: LiftConfig) -> int:
    _emit(json.dumps(_module_summary(module, buffer), indent=2), args.output)
    return 0


def _cmd_disasm(args: argparse.Namespace, module: Module, buffer: bytes, config: LiftConfig) -> int:
    lines: List[str] = []
    for index in _selected_functions(module, args.function):
        function = module.functions[index]
        marker = " (entry)" if index == module.entry_index else ""
        lines.append(f"; function {index}{marker} code {function.code.start:#x}-{function.code.end:#x}")
        for address, decoded in iter_instructions(buffer, function):
            if isinstance(decoded, DecodeError):
                lines.append(f"{address:#06x}  <{decoded}>")
                continue
            lines.append(format_instruction(module, decoded, address, buffer=buffer))
        lines.append("")
    _emit("\n".join(lines), args.output)
    return 0


def _lift_selected(
    module: Module, buffer: bytes, config: LiftConfig, requested: Optional[int]
) -> List[LiftedFunction]:
    lifted = [
        lift_function(module, buffer, index, stop_on_decode_error=config.stop_on_decode_error)
        for index in _selected_functions(module, requested)
    ]
    if config.debug_dir is not None:
        with LifterDebugDump(config.debug_dir) as dump:
            dump.dump_module(module)
            for entry in lifted:
                dump.dump_lifted(entry)
        LOGGER.info("Wrote debug artefacts to %s", config.debug_dir)
    return lifted


def _cmd_lift(args: argparse.Namespace, module: Module, buffer: bytes, config: LiftConfig) -> int:
    lifted = _lift_selected(module, buffer, config, args.function)
    for entry in lifted:
        if entry.gaps or entry.failures:
            LOGGER.info(
                "function %d: %d unimplemented, %d undecodable",
                entry.index,
                len(entry.gaps),
                len(entry.failures),
            )
    payload = {"functions": [entry.as_dict() for entry in lifted]}
    _emit(json.dumps(payload, indent=2), args.output)
    return 0


def _cmd_cfg(args: argparse.Namespace, module: Module, buffer: bytes, config: LiftConfig) -> int:
    index = module.entry_index if args.function is None else args.function
    (lifted,) = _lift_selected(module, buffer, config, index)
    graph = render_dot(build_cfg(lifted), title=f"function {index}")
    if args.svg:
        if args.output is None:
            raise ConfigError("--svg requires --output")
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_bytes(graph.pipe(format="svg"))
        LOGGER.info("Wrote %s", args.output)
        return 0
    _emit(graph.source, args.output)
    return 0


_COMMANDS = {
    "info": _cmd_info,
    "disasm": _cmd_disasm,
    "lift": _cmd_lift,
    "cfg": _cmd_cfg,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="luau-lift", description="Inspect and lift Luau version 2 bytecode"
    )
    parser.add_argument("--config", type=Path, default=None, help="JSON or YAML configuration")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--debug-dir",
        type=Path,
        default=None,
        help="Directory for module/lift JSON dumps and the lift trace log",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    def _add(name: str, help_text: str, *, with_function: bool = True) -> argparse.ArgumentParser:
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("binary", type=Path, help="Bytecode container to read")
        sub.add_argument("--output", "-o", type=Path, default=None, help="Write to a file")
        if with_function:
            sub.add_argument("--function", "-f", type=int, default=None, help="Function index")
        return sub

    _add("info", "Summarise the module as JSON", with_function=False)
    _add("disasm", "Print an instruction listing")
    _add("lift", "Write lifted IR as JSON")
    cfg = _add("cfg", "Export a function's control-flow graph (DOT)")
    cfg.add_argument("--svg", action="store_true", help="Render SVG through graphviz")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s"
    )

    try:
        config = load_config(args.config) if args.config else LiftConfig()
        if args.debug_dir is not None:
            config = replace(config, debug_dir=args.debug_dir)
        if not args.binary.exists():
            LOGGER.error("Bytecode file %s does not exist", args.binary)
            return 1
        try:
            buffer = args.binary.read_bytes()
        except OSError as exc:
            LOGGER.error("Cannot read bytecode file %s: %s", args.binary, exc)
            return 1
        module = parse_module(buffer, config=config.parser)
        return _COMMANDS[args.command](args, module, buffer, config)
    except (FormatError, ConfigError) as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
