"""Stack graph: recover the ordered chain of PRs a PR belongs to."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence

from ..errors import validation_error, ErrorCode
from ..github import PullRequest
from ..typing import SCOPES

logger = logging.getLogger(__name__)

PERENNIAL = "perennial"
PULL_REQUEST = "pull-request"

@dataclass(frozen=True)
class StackNode:
    """Either the trunk (perennial) or an open PR."""
    kind: Literal["perennial", "pull-request"]
    ref: str
    pull_request: Optional[PullRequest] = None

    @property
    def node_id(self) -> str:
        if self.pull_request is not None:
            return str(self.pull_request.number)
        return self.ref

    @classmethod
    def perennial(cls, ref: str) -> "StackNode":
        return cls(kind=PERENNIAL, ref=ref)

    @classmethod
    def for_pull_request(cls, pr: PullRequest) -> "StackNode":
        return cls(kind=PULL_REQUEST, ref=pr.head_ref, pull_request=pr)

class StackGraph:
    """Directed graph keyed by node id.

    An edge A -> B means B's base is A's head (or the trunk). Neighbor lists
    keep insertion order.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, StackNode] = {}
        self._out: Dict[str, List[str]] = {}
        self._in: Dict[str, List[str]] = {}

    def add_node(self, node: StackNode) -> str:
        node_id = node.node_id
        self._nodes[node_id] = node
        self._out.setdefault(node_id, [])
        self._in.setdefault(node_id, [])
        return node_id

    def add_edge(self, source: str, target: str) -> None:
        if source not in self._nodes or target not in self._nodes:
            raise KeyError(f"Unknown node in edge {source} -> {target}")
        self._out[source].append(target)
        self._in[target].append(source)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def node(self, node_id: str) -> StackNode:
        return self._nodes[node_id]

    def out_neighbors(self, node_id: str) -> List[str]:
        return list(self._out[node_id])

    def in_neighbors(self, node_id: str) -> List[str]:
        return list(self._in[node_id])

    def __len__(self) -> int:
        return len(self._nodes)

def build_stack_graph(trunk: str, open_prs: Sequence[PullRequest]) -> StackGraph:
    """Build the graph of the trunk and all open PRs."""
    graph = StackGraph()
    graph.add_node(StackNode.perennial(trunk))
    for pr in open_prs:
        graph.add_node(StackNode.for_pull_request(pr))

    by_head: Dict[str, PullRequest] = {}
    for pr in open_prs:
        # First PR wins if two open PRs share a head branch
        by_head.setdefault(pr.head_ref, pr)

    for pr in open_prs:
        if pr.base_ref == trunk:
            graph.add_edge(trunk, str(pr.number))
        else:
            base_pr = by_head.get(pr.base_ref)
            if base_pr is not None and base_pr.number != pr.number:
                graph.add_edge(str(base_pr.number), str(pr.number))
    return graph

def _single_neighbor(graph: StackGraph, node_id: str, neighbors: List[str], direction: str) -> str:
    """The only neighbor of a PR node; a fork means the stack is not linear."""
    if len(neighbors) > 1:
        numbers = ", ".join(f"#{n}" for n in neighbors)
        raise validation_error(
            ErrorCode.UNSUPPORTED_TOPOLOGY,
            f"PR #{node_id} has more than one {direction} PR ({numbers}); only linear stacks are supported.")
    return neighbors[0]

def walk_stack(graph: StackGraph, start_id: str, trunk: str) -> List[StackNode]:
    """Walk back to the root of the chain containing start_id, then forward to its tip."""
    root_id = start_id
    seen = {root_id}
    while root_id != trunk:
        parents = graph.in_neighbors(root_id)
        if not parents:
            break
        parent = _single_neighbor(graph, root_id, parents, "downstack")
        if parent == trunk:
            break
        if parent in seen:
            # base/head refs form a cycle; stop at the first repeat
            logger.warning(f"Cycle detected in stack at PR #{parent}")
            break
        seen.add(parent)
        root_id = parent
    logger.debug(f"Stack root for #{start_id} is #{root_id}")

    chain = [root_id]
    visited = {root_id}
    current = root_id
    while True:
        children = graph.out_neighbors(current)
        if not children:
            break
        child = _single_neighbor(graph, current, children, "upstack")
        if child in visited:
            logger.warning(f"Cycle detected in stack at PR #{child}")
            break
        visited.add(child)
        chain.append(child)
        current = child

    return [graph.node(node_id) for node_id in chain]

def resolve_stack(target_number: int, trunk: str, open_prs: Sequence[PullRequest]) -> List[PullRequest]:
    """Return the ordered stack (root first, trunk excluded) containing target_number."""
    graph = build_stack_graph(trunk, open_prs)
    target_id = str(target_number)
    if not graph.has_node(target_id) or graph.node(target_id).pull_request is None:
        raise validation_error(ErrorCode.NOT_FOUND,
                               f"Could not find open PR #{target_number}.")

    nodes = walk_stack(graph, target_id, trunk)
    stack = [node.pull_request for node in nodes if node.pull_request is not None]
    logger.debug(f"Resolved stack for #{target_number}: {[pr.number for pr in stack]}")
    return stack

def find_stack_index(target_number: int, stack: Sequence[PullRequest]) -> int:
    for idx, pr in enumerate(stack):
        if pr.number == target_number:
            return idx
    raise validation_error(ErrorCode.NOT_FOUND, "Could not find PR that was commented on.")

def select_stack(target_number: int, stack: Sequence[PullRequest], scope: str) -> List[PullRequest]:
    """Narrow a stack to the range a command applies to.

    down: root up to and including the target
    up:   target up to the tip
    all:  the whole stack
    only: just the target
    """
    idx = find_stack_index(target_number, stack)

    if scope == "all":
        return list(stack)
    if scope == "down":
        return list(stack[:idx + 1])
    if scope == "up":
        return list(stack[idx:])
    if scope == "only":
        return [stack[idx]]

    raise validation_error(
        ErrorCode.UNRECOGNIZED_SCOPE,
        f"Could not understand the given sub command: `{scope}`. Expected one of: {', '.join(SCOPES)}")
