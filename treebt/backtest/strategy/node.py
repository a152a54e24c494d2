# treebt/backtest/strategy/node.py
from __future__ import annotations

from typing import Iterable, Optional, Tuple


class Node:
    """
    Tree membership primitive shared by Strategy (composite) and Asset (leaf).

    - name     : identity
    - is_root  : fixed at construction, cleared once when attached as a child
    - children : insertion-ordered
    """

    def __init__(
        self,
        name: str,
        root: bool = False,
        children: Optional[Iterable[Node]] = None,
    ) -> None:
        self._name = name
        self._root = root
        self._parent: Optional[Node] = None
        self._children: list[Node] = []

        if children:
            self.add_children(*children)

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_root(self) -> bool:
        return self._root

    @property
    def children(self) -> Tuple[Node, ...]:
        return tuple(self._children)

    def add_children(self, *nodes: Node) -> Node:
        for node in nodes:
            if not isinstance(node, Node):
                raise TypeError(
                    f"[Node] child must be a Node, got {type(node).__name__}"
                )
            if node is self:
                raise ValueError(f"[Node] {self._name} cannot be its own child")
            if node._parent is not None:
                raise ValueError(
                    f"[Node] {node.name} is already attached to {node._parent.name}"
                )
            if node in self._ancestors():
                raise ValueError(
                    f"[Node] attaching {node.name} under {self._name} makes a cycle"
                )

            node._root = False
            node._parent = self
            self._children.append(node)
        return self

    def _ancestors(self) -> list[Node]:
        chain = []
        node = self._parent
        while node is not None:
            chain.append(node)
            node = node._parent
        return chain

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self._name!r}, root={self._root}, "
            f"children={[c.name for c in self._children]})"
        )


class Asset(Node):
    """
    Leaf: one tradable symbol. Terminal point of strategy evaluation.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name, root=False)

    def add_children(self, *nodes: Node) -> Node:
        raise TypeError(f"[Asset] {self.name} is a leaf and cannot have children")
