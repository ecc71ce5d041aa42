from __future__ import annotations

import json

import pytest

from fixtures.bytecode_builder import (
    SAMPLE_BRANCH,
    SAMPLE_GET_IMPORT,
    SAMPLE_LOAD_INTEGER,
    SAMPLE_LOAD_MISSING,
    SAMPLE_RETURN,
    Proto,
    build_module,
    ins,
    ins_d,
)

from luau_lift.container import parse_module
from luau_lift.decoder.opcodes import Opcode
from luau_lift.lifter.branches import BranchKind
from luau_lift.lifter.cfg import build_cfg, cfg_summary, edge_pairs, render_dot
from luau_lift.lifter.debug_dump import LifterDebugDump
from luau_lift.lifter.sweep import iter_instructions, lift_function


def test_sweep_covers_the_whole_code_range(sample_module, sample_bytes) -> None:
    lifted = lift_function(sample_module, sample_bytes, 0)
    function = sample_module.functions[0]
    addresses = [entry.address for entry in lifted.instructions]
    assert addresses[0] == function.code.start
    assert lifted.instructions[-1].address + lifted.instructions[-1].length == function.code.end
    assert len(addresses) == 9
    assert not lifted.failures
    assert [entry.opcode for entry in lifted.gaps] == [Opcode.GET_IMPORT, Opcode.LOAD_CONSTANT]


def test_sweep_skips_undecodable_words() -> None:
    code = ins(Opcode.NOP) + bytes([0xFE, 0, 0, 0]) + ins(Opcode.RETURN, 0, 1)
    data = build_module([], [Proto(code=code)])
    module = parse_module(data)
    start = module.functions[0].code.start

    lifted = lift_function(module, data, 0)
    assert [entry.address for entry in lifted.instructions] == [start, start + 8]
    assert [failure.address for failure in lifted.failures] == [start + 4]

    stopped = lift_function(module, data, 0, stop_on_decode_error=True)
    assert [entry.address for entry in stopped.instructions] == [start]
    assert len(stopped.failures) == 1


def test_decode_window_stops_at_code_end() -> None:
    # The auxiliary word of the final instruction would lie outside the code.
    code = ins(Opcode.NOP) + ins_d(Opcode.GET_IMPORT, 0, 0)
    data = build_module([], [Proto(code=code, constants=[])])
    module = parse_module(data)
    results = list(iter_instructions(data, module.functions[0]))
    assert len(results) == 2
    assert isinstance(results[1][1], Exception)


def test_cfg_blocks_split_at_branch_targets(sample_module, sample_bytes) -> None:
    start = sample_module.functions[0].code.start
    branch = start + SAMPLE_BRANCH
    ret = start + SAMPLE_RETURN
    compare = start + SAMPLE_LOAD_INTEGER

    cfg = build_cfg(lift_function(sample_module, sample_bytes, 0))
    assert sorted(cfg.blocks) == [
        start,
        start + SAMPLE_LOAD_MISSING,
        compare,
        branch + 4,
        ret,
    ]
    assert cfg.entry == start
    assert edge_pairs(cfg) == ((compare, branch + 4), (compare, ret), (branch + 4, ret))

    entry_block = cfg.blocks[start]
    compare_block = cfg.blocks[compare]
    assert [edge.kind for edge in compare_block.successors] == [BranchKind.FALSE, BranchKind.TRUE]
    assert cfg.blocks[ret].predecessors == {compare, branch + 4}
    assert cfg.blocks[ret].successors == []
    assert cfg.block_at(start + 13) is entry_block


def test_unimplemented_instruction_ends_its_block(sample_module, sample_bytes) -> None:
    start = sample_module.functions[0].code.start
    cfg = build_cfg(lift_function(sample_module, sample_bytes, 0))

    for block in cfg.ordered():
        assert not any(entry.is_unimplemented for entry in block.instructions[:-1])

    import_block = cfg.blocks[start]
    assert import_block.terminator.address == start + SAMPLE_GET_IMPORT
    assert import_block.successors == []
    missing_block = cfg.blocks[start + SAMPLE_LOAD_MISSING]
    assert len(missing_block.instructions) == 1
    assert missing_block.successors == []
    assert cfg.blocks[start + SAMPLE_LOAD_INTEGER].predecessors == set()


def test_unimplemented_branching_instruction_keeps_its_edges() -> None:
    code = ins(Opcode.FAST_CALL1, 12, 0, 0) + ins(Opcode.NOP) + ins(Opcode.RETURN, 0, 1)
    data = build_module([], [Proto(code=code)])
    module = parse_module(data)
    start = module.functions[0].code.start

    cfg = build_cfg(lift_function(module, data, 0))
    assert sorted(cfg.blocks) == [start, start + 4, start + 8]
    assert edge_pairs(cfg) == ((start, start + 4), (start, start + 8), (start + 4, start + 8))


def test_cfg_summary_is_json_serialisable(sample_module, sample_bytes) -> None:
    cfg = build_cfg(lift_function(sample_module, sample_bytes, 0))
    summary = json.loads(json.dumps(cfg_summary(cfg)))
    assert [block["block"] for block in summary] == [block.label for block in cfg.ordered()]


def test_render_dot_emits_every_block(sample_module, sample_bytes) -> None:
    cfg = build_cfg(lift_function(sample_module, sample_bytes, 0))
    graph = render_dot(cfg, title="function 0")
    source = graph.source
    assert source.startswith("digraph function_0")
    for block in cfg.ordered():
        assert block.label in source
    assert source.count("->") == 3
    assert "jump_if_truthy" in source


def test_debug_dump_writes_artefacts(tmp_path, sample_module, sample_bytes) -> None:
    lifted = lift_function(sample_module, sample_bytes, 0)
    with LifterDebugDump(tmp_path / "debug") as dump:
        module_path = dump.dump_module(sample_module)
        lifted_path = dump.dump_lifted(lifted)

    module_payload = json.loads(module_path.read_text())
    assert module_payload["entry_index"] == 0
    assert module_payload["functions"][0]["constants"][2] == "func_1"
    assert module_payload["layout"]["entry_point"] == sample_module.entry_point

    lifted_payload = json.loads(lifted_path.read_text())
    assert lifted_path.name == "lifted_0.json"
    assert lifted_payload["gap_count"] == 2

    assert dump.trace_path == tmp_path / "debug" / "lift_trace.log"
    trace = dump.trace_path.read_text()
    assert "get_import" in trace
    assert "constant index 9" in trace


def test_function_index_must_be_in_range(sample_module, sample_bytes) -> None:
    for index in (-1, len(sample_module.functions)):
        with pytest.raises(IndexError, match="function index"):
            lift_function(sample_module, sample_bytes, index)
