"""
Branching Plant Structure
=========================
The plant is a tree of nodes stored in an arena and addressed by integer handles.

Why an arena?
-------------
Each node keeps a handle to its parent and a list of child handles. Inserting a
node into an edge is then three handle assignments on plain Python objects, and
nothing ever points at a half-rewired node.

Topology:
    Handle 0 is the below-ground anchor, handle 1 the above-ground anchor. They
    are each other's parent and neither is anyone's child. The first growth tip
    is the only child of the above-ground anchor.

Classes:
    BranchNode: A single point of the plant.
    BranchTree: The arena plus the growth and subdivision rules.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional

import numpy as np

from bonsaisim.config import GrowthParameters, UP_AXIS
from bonsaisim.errors import DegenerateGeometryError, InvalidArgumentError
from bonsaisim.model.geometry_primitives import ArrayLike3, Segment, as_vector, magnitude, normalize

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

ROOT_ANCHOR = 0
SHOOT_ANCHOR = 1


@dataclass
class BranchNode:
    """
    A point of the plant. `parent` and `children` are handles into the owning tree.
    """
    handle: int
    position: npt.NDArray[np.float64]
    radius: float
    parent: int
    can_replicate: bool = True  # growth tip, roughly an apical meristem
    shoot: bool = True          # shoot system (above ground) or root system
    children: list[int] = field(default_factory=list)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(handle={self.handle}, position={self.position}, "
                f"parent={self.parent}, children={self.children})")


class BranchTree:
    """
    Arena-backed branching structure that grows its edges and splits long ones.
    """

    def __init__(self, parameters: Optional[GrowthParameters] = None) -> None:
        """
        Create an empty arena. Use `BranchTree.create` to get a plant.

        Args:
            parameters: Growth constants, defaults to `GrowthParameters()`.
        """
        self.parameters = parameters or GrowthParameters()
        self.nodes: list[BranchNode] = []

    @classmethod
    def create(
        cls,
        origin: ArrayLike3 = (0.0, 0.0, 0.0),
        parameters: Optional[GrowthParameters] = None,
    ) -> BranchTree:
        """
        Build both anchors and the first growth tip in one go.

        Args:
            origin: Ground position of the plant (m).
            parameters: Growth constants.

        Returns:
            A tree with three nodes: root anchor, shoot anchor and shoot tip.
        """
        tree = cls(parameters)
        params = tree.parameters
        origin = as_vector(origin)
        up = np.array(UP_AXIS, dtype=np.float64)

        tree.nodes.append(BranchNode(
            handle=ROOT_ANCHOR,
            position=origin - up * params.root_anchor_offset,
            radius=params.node_radius,
            parent=SHOOT_ANCHOR,
            can_replicate=False,
            shoot=False,
        ))
        tree.nodes.append(BranchNode(
            handle=SHOOT_ANCHOR,
            position=origin.copy(),
            radius=params.node_radius,
            parent=ROOT_ANCHOR,
            can_replicate=False,
            shoot=True,
        ))
        tree.add_tip(SHOOT_ANCHOR)
        return tree

    # ---------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[BranchNode]:
        return iter(self.nodes)

    def node(self, handle: int) -> BranchNode:
        if not 0 <= handle < len(self.nodes):
            raise InvalidArgumentError(f"Unknown node handle {handle}.")
        return self.nodes[handle]

    @property
    def root_anchor(self) -> BranchNode:
        return self.node(ROOT_ANCHOR)

    @property
    def shoot_anchor(self) -> BranchNode:
        return self.node(SHOOT_ANCHOR)

    def edges(self) -> Iterator[tuple[BranchNode, BranchNode]]:
        """Every (parent, child) pair in depth-first order from the shoot anchor."""
        anchor = self.shoot_anchor
        stack = [(anchor, self.nodes[h]) for h in reversed(anchor.children)]
        while stack:
            parent, child = stack.pop()
            yield parent, child
            stack.extend((child, self.nodes[h]) for h in reversed(child.children))

    def edge_length(self, parent: int, child: int) -> float:
        return magnitude(self.node(child).position - self.node(parent).position)

    def segment(self, parent: int, child: int) -> Segment:
        return Segment(start=self.node(parent).position, end=self.node(child).position)

    # ---------------------------------------------------------------
    # Geometry
    # ---------------------------------------------------------------
    def normal(self, handle: int) -> npt.NDArray[np.float64]:
        """
        Unit vector from the node towards its parent.

        Raises:
            DegenerateGeometryError: If the node coincides with its parent.
        """
        node = self.node(handle)
        try:
            return normalize(self.nodes[node.parent].position - node.position)
        except DegenerateGeometryError as e:
            raise DegenerateGeometryError(f"Node {handle} coincides with its parent {node.parent}.") from e

    def move(self, handle: int, displacement: ArrayLike3) -> None:
        """Translate a node and its whole subtree by `displacement`."""
        displacement = as_vector(displacement)
        stack = [handle]
        while stack:
            node = self.node(stack.pop())
            node.position += displacement
            stack.extend(node.children)

    # ---------------------------------------------------------------
    # Topology
    # ---------------------------------------------------------------
    def add_tip(self, parent: int) -> BranchNode:
        """
        Attach a new growth tip `initial_edge_length` away from `parent`, continuing
        the direction of the edge that leads into `parent`.
        """
        parent_node = self.node(parent)
        position = parent_node.position - self.normal(parent) * self.parameters.initial_edge_length
        tip = BranchNode(
            handle=len(self.nodes),
            position=position,
            radius=self.parameters.node_radius,
            parent=parent,
            can_replicate=True,
            shoot=parent_node.shoot,
        )
        self.nodes.append(tip)
        parent_node.children.append(tip.handle)
        return tip

    def subdivide(self, parent: int, child: int) -> BranchNode:
        """
        Insert a node at the midpoint of the edge `parent -> child`.

        The new node takes `child`'s slot in `parent.children` and becomes
        `child`'s parent. Position and radius are interpolated.

        Raises:
            InvalidArgumentError: If `child` is not a direct child of `parent`.
        """
        parent_node = self.node(parent)
        child_node = self.node(child)
        try:
            slot = parent_node.children.index(child)
        except ValueError:
            raise InvalidArgumentError(f"Node {child} is not a child of node {parent}.") from None

        middle = BranchNode(
            handle=len(self.nodes),
            position=(parent_node.position + child_node.position) * 0.5,
            radius=(parent_node.radius + child_node.radius) * 0.5,
            parent=parent,
            can_replicate=True,
            shoot=child_node.shoot,
            children=[child],
        )
        self.nodes.append(middle)
        parent_node.children[slot] = middle.handle
        child_node.parent = middle.handle

        logger.debug(f"Subdivided edge {parent}->{child} with node {middle.handle}.")
        return middle

    # ---------------------------------------------------------------
    # Time evolution
    # ---------------------------------------------------------------
    def validate_dt(self, dt: float) -> None:
        """
        Raises:
            InvalidArgumentError: If `dt` is negative, not finite, or long enough
                to grow a tip edge past the split threshold in one step.
        """
        if not math.isfinite(dt) or dt < 0.0:
            raise InvalidArgumentError(f"Time step must be a non-negative finite number, got {dt}.")
        if dt > self.parameters.max_dt:
            raise InvalidArgumentError(
                f"Time step {dt} s exceeds the largest supported step of "
                f"{self.parameters.max_dt:.1f} s."
            )

    def step(self, dt: float) -> None:
        """Advance the whole plant by `dt` seconds: grow, then replicate."""
        self.validate_dt(dt)
        self.grow(dt)
        self.replicate()

    def grow(self, dt: float) -> None:
        """
        Lengthen every edge shorter than the saturation length at constant speed.

        All displacements are computed from the current positions before any
        subtree is moved. Moving a subtree translates it rigidly, so the edges
        inside it keep their lengths.

        Raises:
            DegenerateGeometryError: If a growing edge has zero length.
        """
        self.validate_dt(dt)
        params = self.parameters

        moves: list[tuple[int, npt.NDArray[np.float64]]] = []
        for node in self.nodes:
            for child_handle in node.children:
                delta = self.nodes[child_handle].position - node.position
                length_current = magnitude(delta)
                if length_current >= params.saturation_length:
                    continue
                if length_current == 0.0:
                    raise DegenerateGeometryError(
                        f"Edge {node.handle}->{child_handle} has zero length and no growth direction."
                    )
                length_new = min(length_current + params.growth_speed * dt, params.saturation_length)
                moves.append((child_handle, delta * (length_new / length_current - 1.0)))

        for child_handle, displacement in moves:
            self.move(child_handle, displacement)

    def replicate(self) -> int:
        """
        Split every edge longer than the split threshold whose child is a growth tip.

        Qualifying edges are collected first, so each is split exactly once and
        the halves created here are not revisited in the same call.

        Returns:
            Number of edges split.
        """
        threshold = self.parameters.split_threshold
        qualifying = [
            (node.handle, child_handle)
            for node in self.nodes
            for child_handle in node.children
            if self.nodes[child_handle].can_replicate
            and self.edge_length(node.handle, child_handle) > threshold
        ]
        for parent, child in qualifying:
            self.subdivide(parent, child)

        if qualifying:
            logger.debug(f"Replicated {len(qualifying)} edge(s); plant has {len(self.nodes)} nodes.")
        return len(qualifying)
