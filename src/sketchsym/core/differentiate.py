"""Core routines for symbolic differentiation.

This module implements forward accumulation over the graph of an expression.
Every derivative is built with the simplifying constructors from
:mod:`sketchsym.core.node` so a subexpression that does not depend on the
parameter has the derivative :data:`~sketchsym.core.node.zero` which then
disappears from the sums and products around it.
"""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING as _TYPE_CHECKING

from sketchsym.core.exceptions import NoEvaluationRuleError
from sketchsym.core.graph import as_param
from sketchsym.core.graph import forward_graph
from sketchsym.core.node import Op
from sketchsym.core.node import add
from sketchsym.core.node import cos
from sketchsym.core.node import div
from sketchsym.core.node import mul
from sketchsym.core.node import neg
from sketchsym.core.node import negone
from sketchsym.core.node import one
from sketchsym.core.node import sign
from sketchsym.core.node import sin
from sketchsym.core.node import sqr
from sketchsym.core.node import sqrt
from sketchsym.core.node import sub
from sketchsym.core.node import two
from sketchsym.core.node import zero


__all__ = [
    "DiffRules",
    "diff_forward",
    "diff",
    "diff_rules",
]


if _TYPE_CHECKING:
    from typing import Callable, Optional, Union
    from sketchsym.core.node import Node, Param

    # (node, da, db) -> derivative of node. db is None for unary nodes.
    DiffRule = Callable[[Node, Node, Optional[Node]], Node]


@dataclass(frozen=True)
class DiffRules:
    """Collection of the differentiation rules for each :class:`Op`."""

    rules: dict[Op, DiffRule] = field(default_factory=dict)

    def add_diff_rule(self, op: Op, func: DiffRule) -> None:
        """Add the rule giving the derivative of an *op* node.

        The rule is called with the node and the derivatives of its operands.
        """
        if op.arity == 0:
            raise ValueError("Leaves are differentiated directly")
        self.rules[op] = func

    def __getitem__(self, op: Op) -> DiffRule:
        rule = self.rules.get(op)
        if rule is None:
            raise NoEvaluationRuleError("No diff rule for op: " + repr(op))
        return rule


def diff_forward(expression: Node, param: Param, rules: DiffRules) -> Node:
    """Derivative of *expression* with respect to *param*.

    Uses forward accumulation so each distinct subexpression is
    differentiated only once even when it is shared.
    """
    graph = forward_graph(expression)

    diff_stack = [
        one if atom.op is Op.Param and atom.param is param else zero
        for atom in graph.atoms
    ]

    for node, indices in graph.operations:
        diff_args = [diff_stack[i] for i in indices]
        if len(diff_args) == 1:
            da, db = diff_args[0], None
        else:
            da, db = diff_args
        diff_stack.append(rules[node.op](node, da, db))

    # diff_stack holds the derivatives of the topological sort of expression so
    # the derivative of expression itself is on top.
    return diff_stack[-1]


def diff(expression: Node, param: Union[Param, Node]) -> Node:
    """Differentiate *expression* with respect to *param*.

    >>> from sketchsym import Param, atan2, sin
    >>> from sketchsym.core.differentiate import diff
    >>> x = Param('x')
    >>> y = Param('y')
    >>> print(diff(x * y + sin(x), x))
    y + cos(x)
    >>> print(diff(x * y + sin(x), y))
    x
    >>> print(diff(atan2(y, x), x))
    -y / (y ^ 2 + x ^ 2)

    Subexpressions that do not depend on *param* differentiate to zero and
    are simplified away:

    >>> diff(sin(y) * 3, x)
    Const(0.0)

    The leaf of a parameter can be given instead of the :class:`Param`.
    """
    return diff_forward(expression, as_param(param), diff_rules)


def _a(node: Node) -> Node:
    assert node.a is not None
    return node.a


def _b(node: Node) -> Node:
    assert node.b is not None
    return node.b


def _diff_add(node: Node, da: Node, db: Optional[Node]) -> Node:
    assert db is not None
    return add(da, db)


def _diff_sub(node: Node, da: Node, db: Optional[Node]) -> Node:
    assert db is not None
    return sub(da, db)


def _diff_mul(node: Node, da: Node, db: Optional[Node]) -> Node:
    assert db is not None
    a, b = _a(node), _b(node)
    return add(mul(da, b), mul(a, db))


def _diff_div(node: Node, da: Node, db: Optional[Node]) -> Node:
    assert db is not None
    a, b = _a(node), _b(node)
    return div(sub(mul(da, b), mul(a, db)), sqr(b))


def _diff_atan2(node: Node, da: Node, db: Optional[Node]) -> Node:
    assert db is not None
    a, b = _a(node), _b(node)
    return div(sub(mul(b, da), mul(a, db)), add(sqr(a), sqr(b)))


diff_rules = DiffRules()

diff_rules.add_diff_rule(Op.Add, _diff_add)
diff_rules.add_diff_rule(Op.Sub, _diff_sub)
diff_rules.add_diff_rule(Op.Drag, _diff_sub)
diff_rules.add_diff_rule(Op.Mul, _diff_mul)
diff_rules.add_diff_rule(Op.Div, _diff_div)
diff_rules.add_diff_rule(Op.Atan2, _diff_atan2)

diff_rules.add_diff_rule(Op.Sin, lambda n, da, _: mul(da, cos(_a(n))))
diff_rules.add_diff_rule(Op.Cos, lambda n, da, _: mul(da, neg(sin(_a(n)))))
diff_rules.add_diff_rule(
    Op.ASin, lambda n, da, _: div(da, sqrt(sub(one, sqr(_a(n)))))
)
diff_rules.add_diff_rule(
    Op.ACos, lambda n, da, _: div(mul(da, negone), sqrt(sub(one, sqr(_a(n)))))
)
diff_rules.add_diff_rule(Op.Sqrt, lambda n, da, _: div(da, mul(two, sqrt(_a(n)))))
diff_rules.add_diff_rule(Op.Sqr, lambda n, da, _: mul(mul(da, two), _a(n)))
diff_rules.add_diff_rule(Op.Abs, lambda n, da, _: mul(da, sign(_a(n))))
diff_rules.add_diff_rule(Op.Sign, lambda n, da, _: zero)
diff_rules.add_diff_rule(Op.Neg, lambda n, da, _: neg(da))
