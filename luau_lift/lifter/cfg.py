"""Basic-block construction and DOT export for lifted functions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import graphviz

from .branches import BranchKind
from .lift import LiftedInstruction
from .sweep import LiftedFunction

LOGGER = logging.getLogger(__name__)

__all__ = ["Edge", "Block", "FunctionCFG", "build_cfg", "cfg_summary", "edge_pairs", "render_dot"]


@dataclass(frozen=True)
class Edge:
    target: int
    kind: BranchKind


@dataclass
class Block:
    start: int
    end: int
    instructions: List[LiftedInstruction] = field(default_factory=list)
    successors: List[Edge] = field(default_factory=list)
    predecessors: Set[int] = field(default_factory=set)

    @property
    def label(self) -> str:
        return f"block_{self.start:x}"

    @property
    def terminator(self) -> Optional[LiftedInstruction]:
        return self.instructions[-1] if self.instructions else None


@dataclass
class FunctionCFG:
    index: int
    entry: int
    blocks: Dict[int, Block]

    def ordered(self) -> List[Block]:
        return [self.blocks[start] for start in sorted(self.blocks)]

    def block_at(self, address: int) -> Optional[Block]:
        for block in self.blocks.values():
            if block.start <= address < block.end:
                return block
        return None


def _collect_leaders(lifted: LiftedFunction) -> Set[int]:
    code = lifted.function.code
    leaders: Set[int] = {code.start}
    for entry in lifted.instructions:
        if not entry.branches and not entry.is_unimplemented:
            continue
        following = entry.address + entry.length
        if following < code.end:
            leaders.add(following)
        for branch in entry.branches:
            if branch.target is not None and branch.target in code:
                leaders.add(branch.target)
    for failure in lifted.failures:
        leaders.add(failure.address + 4)
    return {leader for leader in leaders if leader in code}


def _split_blocks(lifted: LiftedFunction, leaders: Set[int]) -> Dict[int, Block]:
    blocks: Dict[int, Block] = {}
    current: Optional[Block] = None
    for entry in lifted.instructions:
        if current is None or entry.address in leaders or current.end != entry.address:
            current = Block(start=entry.address, end=entry.address)
            blocks[current.start] = current
        current.instructions.append(entry)
        current.end = entry.address + entry.length
    return blocks


def _link(blocks: Dict[int, Block]) -> None:
    for block in blocks.values():
        last = block.terminator
        if last is None:
            continue
        edges: List[Edge] = []
        if not last.branches:
            # An unimplemented instruction ends its block with no successor.
            if block.end in blocks and not last.is_unimplemented:
                edges.append(Edge(block.end, BranchKind.UNCONDITIONAL))
        else:
            for branch in last.branches:
                if branch.target is None:
                    continue
                if branch.target in blocks:
                    edges.append(Edge(branch.target, branch.kind))
                else:
                    LOGGER.debug(
                        "Edge from 0x%x to 0x%x leaves the function", last.address, branch.target
                    )
        block.successors = edges
        for edge in edges:
            blocks[edge.target].predecessors.add(block.start)


def build_cfg(lifted: LiftedFunction) -> FunctionCFG:
    """Split ``lifted`` into basic blocks and link their edges.

    Unimplemented instructions always end a block and never fall through.
    """

    leaders = _collect_leaders(lifted)
    blocks = _split_blocks(lifted, leaders)
    _link(blocks)
    return FunctionCFG(index=lifted.index, entry=lifted.function.code.start, blocks=blocks)


_EDGE_COLOURS = {
    BranchKind.TRUE: "#2a7f3f",
    BranchKind.FALSE: "#b0413e",
    BranchKind.UNCONDITIONAL: "#334155",
}


def _block_label(block: Block) -> str:
    lines = [f"{block.label} [{block.start:#x}-{block.end:#x})"]
    for entry in block.instructions:
        lines.append(f"{entry.address:#06x}  {entry.instruction.mnemonic}")
        for op in entry.ops:
            lines.append(f"    {op.render()}")
    return "\\l".join(line.replace("\\", "\\\\") for line in lines) + "\\l"


def render_dot(cfg: FunctionCFG, *, title: Optional[str] = None) -> graphviz.Digraph:
    """Return a :class:`graphviz.Digraph` describing ``cfg``."""

    graph = graphviz.Digraph(name=f"function_{cfg.index}")
    graph.attr("graph", rankdir="TB", fontname="Helvetica", fontsize="10")
    graph.attr("node", shape="box", fontname="Courier", fontsize="9")
    graph.attr("edge", fontname="Helvetica", fontsize="8")
    if title:
        graph.attr(label=title, labelloc="t")

    for block in cfg.ordered():
        attrs: Dict[str, str] = {}
        if block.start == cfg.entry:
            attrs["peripheries"] = "2"
        terminator = block.terminator
        if terminator is not None and terminator.is_unimplemented:
            attrs["style"] = "dashed"
        graph.node(block.label, label=_block_label(block), **attrs)
        for edge in block.successors:
            graph.edge(
                block.label,
                cfg.blocks[edge.target].label,
                color=_EDGE_COLOURS.get(edge.kind, "#334155"),
                label=edge.kind.value if edge.kind is not BranchKind.UNCONDITIONAL else "",
            )
    return graph


def cfg_summary(cfg: FunctionCFG) -> List[Dict[str, object]]:
    """Return a JSON-serialisable description of the blocks of ``cfg``."""

    summary: List[Dict[str, object]] = []
    for block in cfg.ordered():
        summary.append(
            {
                "block": block.label,
                "start": block.start,
                "end": block.end,
                "instructions": [entry.address for entry in block.instructions],
                "successors": [
                    {"target": edge.target, "kind": edge.kind.value} for edge in block.successors
                ],
                "predecessors": sorted(block.predecessors),
            }
        )
    return summary


def edge_pairs(cfg: FunctionCFG) -> Tuple[Tuple[int, int], ...]:
    return tuple(
        (block.start, edge.target) for block in cfg.ordered() for edge in block.successors
    )
