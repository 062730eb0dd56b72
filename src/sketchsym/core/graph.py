"""sketchsym.core.graph module.

Traversal, analysis and rewriting of expression graphs made of
:class:`~sketchsym.core.node.Node`.

Graphs can share nodes. Every :class:`~sketchsym.core.node.Param` has a
single leaf that all expressions built from it refer to and the simplifying
constructors often return one of their operands unchanged. Most functions
here walk each distinct node once. The exceptions are :func:`walk`, which
only looks one level down, and :func:`deep_clone`, which makes a new node
for every position in the tree.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING as _TYPE_CHECKING

from sketchsym.core.node import Node, Op, Param, expressify


if _TYPE_CHECKING:
    from typing import Callable, Optional, Union

    NodeLike = Union[Node, Param]
    ParamLike = Union[Param, Node]


__all__ = [
    "ForwardGraph",
    "topological_sort",
    "forward_graph",
    "walk",
    "deep_clone",
    "depends_on",
    "parameters",
    "is_substitution_form",
    "substitution_params",
    "substitute",
    "structurally_equal",
]


def as_param(param: ParamLike) -> Param:
    """Resolve a :class:`Param` or a parameter leaf to the :class:`Param`."""
    if isinstance(param, Param):
        return param
    elif isinstance(param, Node) and param.op is Op.Param:
        assert param.param is not None
        return param.param
    raise TypeError("Expected a Param or a Param leaf.")


def topological_sort(
    expression: Node,
    *,
    exclude: Optional[set[Node]] = None,
) -> list[Node]:
    """List of the distinct nodes of a graph sorted topologically.

    >>> from sketchsym import Param, sin
    >>> from sketchsym.core.graph import topological_sort
    >>> x = Param('x')
    >>> expr = sin(x) * x
    >>> for e in topological_sort(expr):
    ...     print(e)
    x
    sin(x)
    sin(x) * x

    No node appears before any of its operands and a node that is reachable
    more than once (``x`` above) is only listed once.
    """
    #
    # A stack is used rather than recursion so that there is no limit on the
    # depth of the graph. Nodes are tracked by identity since they are
    # mutable and compare by identity.
    #
    if exclude is not None:
        seen = set(exclude)
    else:
        seen = set()

    expressions = []
    stack = []

    if expression not in seen:
        seen.add(expression)
        stack = [(expression, list(expression.operands)[::-1])]

    while stack:
        top, children = stack[-1]
        while children:
            child = children.pop()
            if child not in seen:
                seen.add(child)
                stack.append((child, list(child.operands)[::-1]))
                break
        else:
            stack.pop()
            expressions.append(top)

    return expressions


@dataclass
class ForwardGraph:
    """Representation of an expression as a forward graph.

    ``atoms`` holds the leaves and ``operations`` holds each compound node
    together with the indices of its operands. Index ``i`` refers to
    ``atoms[i]`` when ``i < len(atoms)`` and otherwise to the node of
    operation ``i - len(atoms)``.

    See Also
    ========

    forward_graph: The usual way to make a :class:`ForwardGraph`.
    """

    atoms: list[Node]
    operations: list[tuple[Node, list[int]]]


def forward_graph(expr: Node) -> ForwardGraph:
    """Build a :class:`ForwardGraph` from a :class:`Node`.

    >>> from sketchsym import Param
    >>> from sketchsym.core.graph import forward_graph
    >>> x = Param('x')
    >>> y = Param('y')
    >>> expr = (x + y) * x
    >>> graph = forward_graph(expr)
    >>> graph.atoms == [x.leaf, y.leaf]
    True
    >>> [(str(node), indices) for node, indices in graph.operations]
    [('x + y', [0, 1]), ('(x + y) * x', [2, 0])]

    Evaluating the operations in order with a stack of values starting from
    the atoms is *forward evaluation*. The last value on the stack is the
    value of ``expr``.
    """
    subexpressions = topological_sort(expr)

    atoms = [e for e in subexpressions if not e.operands]
    nodes = [e for e in subexpressions if e.operands]

    num_atoms = len(atoms)
    indices: dict[Node, int] = dict(zip(atoms, range(num_atoms)))
    operations: list[tuple[Node, list[int]]] = []

    for index, node in enumerate(nodes, num_atoms):
        operations.append((node, [indices[arg] for arg in node.operands]))
        indices[node] = index

    return ForwardGraph(atoms, operations)


def walk(node: NodeLike, visitor: Callable[[Node], object]) -> None:
    """Call *visitor* on *node* and then on its operands ``a`` and ``b``.

    This only goes one level down. The operands of the operands are not
    visited:

    >>> from sketchsym import Param, sin
    >>> from sketchsym.core.graph import walk
    >>> x = Param('x')
    >>> y = Param('y')
    >>> seen = []
    >>> walk(sin(x) + y, lambda n: seen.append(str(n)))
    >>> seen
    ['sin(x) + y', 'sin(x)', 'y']
    """
    node = expressify(node)
    visitor(node)
    if node.a is not None:
        visitor(node.a)
        if node.b is not None:
            visitor(node.b)


def deep_clone(node: NodeLike) -> Node:
    """Copy of *node* that shares no nodes with the original.

    A new node is made for every position in the tree, including the leaves
    which are bound to the same :class:`Param` as before:

    >>> from sketchsym import Param
    >>> from sketchsym.core.graph import deep_clone
    >>> x = Param('x')
    >>> expr = x * x + 1
    >>> clone = deep_clone(expr)
    >>> print(clone)
    x * x + 1
    >>> clone.a.a is x.leaf
    False
    >>> clone.a.a.param is x
    True

    Nodes that are shared within *node* are not shared within the clone. The
    clone can then be passed to :func:`substitute` without changing any other
    graph. The copy is made without recursion so that long chains can be
    cloned.
    """
    # Post-order over tree positions. A node shared between several positions
    # is pushed once for each of them.
    stack: list[tuple[Node, bool]] = [(expressify(node), False)]
    clones: list[Node] = []
    while stack:
        current, operands_done = stack.pop()
        if operands_done:
            b = clones.pop() if current.b is not None else None
            a = clones.pop() if current.a is not None else None
            clone = Node(current.op, a, b, value=current.value, param=current.param)
            clones.append(clone)
        else:
            stack.append((current, True))
            if current.b is not None:
                stack.append((current.b, False))
            if current.a is not None:
                stack.append((current.a, False))
    return clones[0]


def depends_on(node: Node, param: ParamLike) -> bool:
    """True if a leaf bound to *param* is reachable from *node*.

    >>> from sketchsym import Param, sin
    >>> from sketchsym.core.graph import depends_on
    >>> x, y, z = Param('x'), Param('y'), Param('z')
    >>> expr = x + sin(y)
    >>> depends_on(expr, y)
    True
    >>> depends_on(expr, z)
    False
    """
    target = as_param(param)
    seen = {node}
    stack = [node]
    while stack:
        top = stack.pop()
        if top.op is Op.Param:
            if top.param is target:
                return True
            continue
        for child in reversed(top.operands):
            if child not in seen:
                seen.add(child)
                stack.append(child)
    return False


def parameters(node: Node) -> list[Param]:
    """The distinct parameters that *node* depends on in order of appearance."""
    params: list[Param] = []
    for leaf in topological_sort(node):
        if leaf.op is Op.Param:
            assert leaf.param is not None
            if not any(leaf.param is p for p in params):
                params.append(leaf.param)
    return params


def is_substitution_form(node: Node) -> bool:
    """True if *node* is ``pa - pb`` for two parameter leaves.

    Such an equation just says that two parameters are equal so the solver
    can eliminate one of them with :func:`substitute`.

    >>> from sketchsym import Param
    >>> from sketchsym.core.graph import is_substitution_form
    >>> x, y = Param('x'), Param('y')
    >>> is_substitution_form(x - y)
    True
    >>> is_substitution_form(x - 1)
    False
    """
    return (
        node.op is Op.Sub
        and node.a is not None
        and node.a.op is Op.Param
        and node.b is not None
        and node.b.op is Op.Param
    )


def substitution_params(node: Node) -> Optional[tuple[Param, Param]]:
    """The parameters ``(pa, pb)`` of a substitution form, otherwise ``None``."""
    if not is_substitution_form(node):
        return None
    assert node.a is not None and node.b is not None
    assert node.a.param is not None and node.b.param is not None
    return node.a.param, node.b.param


def substitute(node: Node, pa: ParamLike, pb: ParamLike) -> None:
    """Rebind every leaf of *pa* reachable from *node* to *pb* in place.

    Nothing is copied. The leaves are changed where they are so every other
    graph that shares them sees the change too. Usually the leaf that gets
    changed is ``pa.leaf`` itself which is shared by every expression that
    was built from ``pa``:

    >>> from sketchsym import Param
    >>> from sketchsym.core.graph import substitute
    >>> x, y = Param('x', 1.0), Param('y', 10.0)
    >>> e1 = x + 1
    >>> e2 = x * 2
    >>> substitute(e1, x, y)
    >>> print(e1, '|', e2)
    y + 1 | y * 2
    >>> x.leaf.param is y
    True

    Use :func:`deep_clone` first to limit the change to one graph.
    """
    old = as_param(pa)
    new = as_param(pb)
    for leaf in topological_sort(node):
        if leaf.op is Op.Param and leaf.param is old:
            leaf.param = new


def structurally_equal(x: Node, y: Node) -> bool:
    """True if *x* and *y* have the same shape.

    Constants compare by value and parameter leaves compare by the
    :class:`Param` they are bound to.

    >>> from sketchsym import Param
    >>> from sketchsym.core.graph import structurally_equal
    >>> p = Param('p')
    >>> structurally_equal(p + 2, p + 2)
    True
    >>> (p + 2) == (p + 2)
    False
    >>> structurally_equal(p * 2, 2 * p)
    False
    """
    stack = [(x, y)]
    while stack:
        left, right = stack.pop()
        if left is right:
            continue
        elif left.op is not right.op:
            return False
        elif left.op is Op.Const:
            if left.value != right.value:
                return False
        elif left.op is Op.Param:
            if left.param is not right.param:
                return False
        else:
            stack.extend(zip(left.operands, right.operands))
    return True
