"""Define the core evaluation code."""
from __future__ import annotations

import logging
import math
import operator
from typing import Callable
from typing import Generic
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import TypeVar

from sketchsym.core.exceptions import NoEvaluationRuleError
from sketchsym.core.graph import forward_graph
from sketchsym.core.node import Node
from sketchsym.core.node import Op
from sketchsym.core.node import expressify


if _TYPE_CHECKING:
    from typing import Any, Optional, Sequence, Union

    from sketchsym.core.node import Param

    Op1 = Callable[[Any], Any]
    Op2 = Callable[[Any, Any], Any]


__all__ = [
    "DIVISION_EPSILON",
    "Evaluator",
    "eval_f64",
    "guarded_div",
]


logger = logging.getLogger(__name__)


# Divisors smaller than this in magnitude are replaced by 1.0 in eval_f64.
DIVISION_EPSILON = 1e-10


_T = TypeVar("_T")


def _generic_operation_error(op: Op, argvals: Sequence[_T]) -> _T:
    """Error fallback rule for handling unknown operations."""
    msg = "No rule for op: " + repr(op)
    raise NoEvaluationRuleError(msg)


def _generic_atom_error(atom: Node) -> Any:
    """Error fallback rule for handling unknown atoms."""
    msg = "No rule for atom: " + repr(atom)
    raise NoEvaluationRuleError(msg)


class Evaluator(Generic[_T]):
    """Objects that evaluate expressions.

    Examples
    ========

    An :class:`Evaluator` holds one rule for each :class:`Op`. Here is one that
    only knows about constants, addition and ``sqr``:

    >>> from sketchsym import Node, Op, sqr
    >>> from sketchsym.core.evaluate import Evaluator
    >>> evalf = Evaluator[float]()
    >>> evalf.add_atom(Op.Const, lambda node: node.value)
    >>> evalf.add_op2(Op.Add, lambda a, b: a + b)
    >>> evalf.add_op1(Op.Sqr, lambda a: a * a)
    >>> expr = sqr(Node.constant(3.0)) + 1
    >>> print(expr)
    3 ^ 2 + 1
    >>> evalf(expr)
    10.0

    Values can be given for any node to use instead of evaluating it:

    >>> evalf(expr, {expr.a: 2.0})
    3.0

    An expression with an operation that has no rule can not be evaluated:

    >>> evalf(expr * 2)  # doctest: +NORMALIZE_WHITESPACE
    Traceback (most recent call last):
        ...
    sketchsym.core.exceptions.NoEvaluationRuleError: No rule for op: Op.Mul

    See Also
    ========

    eval_f64: The :class:`Evaluator` for 64-bit floats.
    """

    atoms: dict[Op, Callable[[Node], _T]]
    operations: dict[Op, Callable[..., _T]]
    generic_operation_func: Callable[[Op, Sequence[_T]], _T]
    generic_atom_func: Callable[[Node], _T]

    def __init__(self) -> None:
        """Create an empty evaluator."""
        self.atoms = {}
        self.operations = {}
        self.generic_operation_func = _generic_operation_error
        self.generic_atom_func = _generic_atom_error

    def add_atom(self, op: Op, func: Callable[[Node], _T]) -> None:
        """Add an evaluation rule for ``Const`` or ``Param`` leaves."""
        if op.arity != 0:
            raise ValueError(f"{op!r} is not a leaf")
        self.atoms[op] = func

    def add_op1(self, op: Op, func: Op1) -> None:
        """Add an evaluation rule for a unary op."""
        if op.arity != 1:
            raise ValueError(f"{op!r} is not unary")
        self.operations[op] = func

    def add_op2(self, op: Op, func: Op2) -> None:
        """Add an evaluation rule for a binary op."""
        if op.arity != 2:
            raise ValueError(f"{op!r} is not binary")
        self.operations[op] = func

    def eval_atom(self, atom: Node) -> _T:
        """Evaluate a leaf."""
        atom_func = self.atoms.get(atom.op)
        if atom_func is None:
            return self.generic_atom_func(atom)
        return atom_func(atom)

    def eval_operation(self, op: Op, argvals: Sequence[_T]) -> _T:
        """Evaluate one operation with some values."""
        op_func = self.operations.get(op)
        if op_func is None:
            return self.generic_operation_func(op, argvals)
        return op_func(*argvals)

    def evaluate(self, expr: Node, values: dict[Node, _T]) -> _T:
        """Evaluate the expression using the registered rules."""
        return self.eval_forward(expr, values)

    def eval_recursive(self, expr: Node, values: dict[Node, _T]) -> _T:
        """Evaluate the expression using recursion."""
        if expr in values:
            return values[expr]
        elif not expr.operands:
            return self.eval_atom(expr)
        else:
            argvals = [self.eval_recursive(c, values) for c in expr.operands]
            return self.eval_operation(expr.op, argvals)

    def eval_forward(self, expr: Node, values: dict[Node, _T]) -> _T:
        """Evaluate the expression using forward evaluation."""
        graph = forward_graph(expr)
        stack = []

        for atom in graph.atoms:
            if atom in values:
                stack.append(values[atom])
            else:
                stack.append(self.eval_atom(atom))

        for node, indices in graph.operations:
            if node in values:
                stack.append(values[node])
            else:
                argvals = [stack[i] for i in indices]
                stack.append(self.eval_operation(node.op, argvals))

        # stack now holds the value of every distinct subexpression of expr in
        # topological order so the last one is the value of expr.
        return stack[-1]

    def __call__(
        self, expr: Union[Node, Param], values: Optional[dict[Node, _T]] = None
    ) -> _T:
        """Short-hand for evaluate. A :class:`Param` is evaluated as its leaf."""
        expr = expressify(expr)
        if values is None:
            values = {}
        return self.evaluate(expr, values)


def guarded_div(epsilon: float = DIVISION_EPSILON) -> Op2:
    """Float division that does not fail for a divisor close to zero.

    A divisor whose magnitude is below *epsilon* is replaced by ``1.0`` and a
    warning is logged. An iterative solver can pass through configurations
    where a divisor vanishes and it should carry on rather than stop.

    >>> from sketchsym.core.evaluate import guarded_div
    >>> f64_div = guarded_div()
    >>> f64_div(1.0, 4.0)
    0.25
    >>> f64_div(5.0, 1e-12)
    5.0
    """

    def f64_div(a: float, b: float) -> float:
        if abs(b) < epsilon:
            logger.warning("Division by zero")
            b = 1.0
        return a / b

    return f64_div


def ieee(func: Callable[[float], float]) -> Callable[[float], float]:
    """Return NaN where *func* raises for an argument outside its domain.

    The functions in :mod:`math` raise ``ValueError`` for e.g. ``sqrt(-1)``
    rather than returning NaN as IEEE 754 arithmetic would.
    """

    def ieee_func(a: float) -> float:
        try:
            return func(a)
        except ValueError:
            return math.nan

    ieee_func.__name__ = func.__name__
    return ieee_func


def f64_sign(a: float) -> float:
    """Sign of *a* as ``-1.0``, ``0.0`` or ``1.0``. NaN stays NaN."""
    if a > 0.0:
        return 1.0
    elif a < 0.0:
        return -1.0
    return a * 0.0


def f64_sqr(a: float) -> float:
    return a * a


def f64_const(node: Node) -> float:
    return node.value


def f64_param(node: Node) -> float:
    assert node.param is not None
    return node.param.value


eval_f64 = Evaluator[float]()
eval_f64.add_atom(Op.Const, f64_const)
eval_f64.add_atom(Op.Param, f64_param)
eval_f64.add_op2(Op.Add, operator.add)
eval_f64.add_op2(Op.Sub, operator.sub)
eval_f64.add_op2(Op.Drag, operator.sub)
eval_f64.add_op2(Op.Mul, operator.mul)
eval_f64.add_op2(Op.Div, guarded_div())
eval_f64.add_op1(Op.Sin, ieee(math.sin))
eval_f64.add_op1(Op.Cos, ieee(math.cos))
eval_f64.add_op1(Op.ASin, ieee(math.asin))
eval_f64.add_op1(Op.ACos, ieee(math.acos))
eval_f64.add_op1(Op.Sqrt, ieee(math.sqrt))
eval_f64.add_op1(Op.Sqr, f64_sqr)
eval_f64.add_op2(Op.Atan2, math.atan2)
eval_f64.add_op1(Op.Abs, math.fabs)
eval_f64.add_op1(Op.Sign, f64_sign)
eval_f64.add_op1(Op.Neg, operator.neg)
