"""sketchsym.core.node module.

This module defines the :class:`Param` cell, the :class:`Node` type used to
represent expression graphs and the simplifying constructors that are used
to build those graphs.
"""
from __future__ import annotations

from enum import Enum
from functools import wraps
from typing import TYPE_CHECKING as _TYPE_CHECKING
from typing import Any, Callable, Optional, Union

from sketchsym.core.exceptions import ArityError, ExpressifyError


if _TYPE_CHECKING:
    Expressifiable = Union["Node", "Param", int, float]
    NodeBinOp = Callable[[Any, "Node"], "Node"]
    ExpressifyBinOp = Callable[[Any, Expressifiable], "Node"]


__all__ = [
    "Op",
    "Node",
    "Param",
    "expressify",
    "const",
    "zero",
    "one",
    "negone",
    "two",
    "add",
    "sub",
    "mul",
    "div",
    "neg",
    "sin",
    "cos",
    "asin",
    "acos",
    "sqrt",
    "sqr",
    "fabs",
    "sign",
    "atan2",
    "drag",
]


class Op(Enum):
    """Tag identifying the kind of a :class:`Node`."""

    Const = "Const"
    Param = "Param"
    Sin = "Sin"
    Cos = "Cos"
    ASin = "ASin"
    ACos = "ACos"
    Sqrt = "Sqrt"
    Sqr = "Sqr"
    Abs = "Abs"
    Sign = "Sign"
    Neg = "Neg"
    Add = "Add"
    Sub = "Sub"
    Mul = "Mul"
    Div = "Div"
    Atan2 = "Atan2"
    Drag = "Drag"

    def __repr__(self) -> str:
        return f"Op.{self.name}"

    @property
    def arity(self) -> int:
        """Number of operands taken by nodes of this kind."""
        if self in LEAF_OPS:
            return 0
        elif self in UNARY_OPS:
            return 1
        else:
            return 2


LEAF_OPS = frozenset({Op.Const, Op.Param})

UNARY_OPS = frozenset(
    {Op.Sin, Op.Cos, Op.ASin, Op.ACos, Op.Sqrt, Op.Sqr, Op.Abs, Op.Sign, Op.Neg}
)

BINARY_OPS = frozenset({Op.Add, Op.Sub, Op.Mul, Op.Div, Op.Atan2, Op.Drag})

# Kinds that never need to be parenthesised when printed as an operand.
UNARY_LIKE_OPS = LEAF_OPS | UNARY_OPS

ADDITIVE_OPS = frozenset({Op.Add, Op.Sub, Op.Drag})


def expressify(obj: Any) -> Node:
    """Convert an operand to a :class:`Node`.

    >>> from sketchsym import Param, expressify
    >>> expressify(2.5)
    Const(2.5)
    >>> x = Param('x')
    >>> expressify(x) is x.leaf
    True

    A :class:`Node` is returned unchanged and the numbers ``0`` and ``1``
    become the canonical :data:`zero` and :data:`one` leaves.
    """
    if isinstance(obj, Node):
        return obj
    elif isinstance(obj, Param):
        return obj.leaf
    elif isinstance(obj, (int, float)) and not isinstance(obj, bool):
        return const(obj)
    else:
        raise ExpressifyError(f"Cannot convert {type(obj).__name__} to Node")


def expressify_other(method: NodeBinOp) -> ExpressifyBinOp:
    """Call ``expressify`` on operands in ``__add__`` etc."""

    @wraps(method)
    def expressify_method(self: Any, other: Expressifiable) -> Node:
        try:
            other_node = expressify(other)
        except ExpressifyError:
            return NotImplemented
        return method(self, other_node)

    return expressify_method


class Operand:
    """Arithmetic operators shared by :class:`Node` and :class:`Param`.

    Every operator goes through the simplifying constructors so that for
    example adding zero returns the other operand unchanged.
    """

    __slots__ = ()

    def __pos__(self) -> Node:
        """+x -> x."""
        return expressify(self)

    def __neg__(self) -> Node:
        """-x -> Neg(x)."""
        return neg(expressify(self))

    def __abs__(self) -> Node:
        """abs(x) -> Abs(x)."""
        return fabs(expressify(self))

    def drag(self, to: Expressifiable) -> Node:
        """Soft equality of this expression with *to*. See :func:`drag`."""
        return drag(expressify(self), to)

    @expressify_other
    def __add__(self, other: Node) -> Node:
        """x + y."""
        return add(expressify(self), other)

    @expressify_other
    def __radd__(self, other: Node) -> Node:
        """y + x."""
        return add(other, expressify(self))

    @expressify_other
    def __sub__(self, other: Node) -> Node:
        """x - y."""
        return sub(expressify(self), other)

    @expressify_other
    def __rsub__(self, other: Node) -> Node:
        """y - x."""
        return sub(other, expressify(self))

    @expressify_other
    def __mul__(self, other: Node) -> Node:
        """x * y."""
        return mul(expressify(self), other)

    @expressify_other
    def __rmul__(self, other: Node) -> Node:
        """y * x."""
        return mul(other, expressify(self))

    @expressify_other
    def __truediv__(self, other: Node) -> Node:
        """x / y."""
        return div(expressify(self), other)

    @expressify_other
    def __rtruediv__(self, other: Node) -> Node:
        """y / x."""
        return div(other, expressify(self))


class Param(Operand):
    """Named mutable scalar used as an unknown by the solver.

    >>> from sketchsym import Param
    >>> x = Param('x')
    >>> x.value, x.changed
    (0.0, False)
    >>> x.value = 2.0
    >>> x.value, x.changed
    (2.0, True)

    Every :class:`Param` owns exactly one leaf :class:`Node` which is created
    when the :class:`Param` is created. All expressions built from the
    :class:`Param` refer to that same leaf so a new value is seen by all of
    them at once:

    >>> expr = x * 3
    >>> expr.eval()
    6.0
    >>> x.value = 5.0
    >>> expr.eval()
    15.0
    >>> x.leaf is x.leaf
    True

    The ``changed`` flag is only ever set here. Clearing it is left to the
    caller.
    """

    __slots__ = (
        "name",
        "changed",
        "_value",
        "_leaf",
    )

    name: str
    changed: bool

    def __init__(self, name: str, value: float = 0.0):
        """Create a new parameter called *name* with an initial *value*."""
        self.name = name
        self.changed = False
        self._value = 0.0
        self.value = value
        self._leaf = Node(Op.Param, param=self)

    @property
    def value(self) -> float:
        """Current value of the parameter."""
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        if value == self._value:
            return
        self.changed = True
        self._value = float(value)

    def set_value(self, value: float) -> None:
        """Same as assigning to :attr:`value`."""
        self.value = value

    @property
    def leaf(self) -> Node:
        """The leaf :class:`Node` bound to this parameter."""
        return self._leaf

    def get_leaf(self) -> Node:
        """Same as :attr:`leaf`."""
        return self._leaf

    def eval(self) -> float:
        """The current value, as for any other expression."""
        return self._leaf.eval()

    def __repr__(self) -> str:
        return f"Param({self.name!r}, {self._value!r})"

    def __str__(self) -> str:
        return self.name


class Node(Operand):
    """Node of an expression graph.

    :ivar op: The :class:`Op` giving the kind of this node.
    :ivar a: First operand or ``None`` for leaves.
    :ivar b: Second operand or ``None`` unless the kind is binary.
    :ivar value: The value of a ``Const`` leaf.
    :ivar param: The :class:`Param` of a ``Param`` leaf.

    Nodes are normally created through the simplifying constructors or the
    operators rather than by calling :class:`Node` directly:

    >>> from sketchsym import Param, sin
    >>> x = Param('x')
    >>> y = Param('y')
    >>> expr = sin(x) * y + 1
    >>> print(expr)
    sin(x) * y + 1
    >>> expr
    Add(Mul(Sin(Param('x')), Param('y')), Const(1.0))
    >>> expr.op
    Op.Add

    Constructors simplify as they go, so an expression is not always wrapped
    in a new node:

    >>> x + 0 is x.leaf
    True
    >>> print(-(-x))
    x
    >>> print(2 * x * 1)
    2 * x

    Calling :class:`Node` directly performs no simplification but it checks
    that the right number of operands is given:

    >>> from sketchsym import Node, Op
    >>> print(Node(Op.Add, x.leaf, Node.constant(0.0)))
    x + 0
    >>> Node(Op.Add, x.leaf)
    Traceback (most recent call last):
        ...
    sketchsym.core.exceptions.ArityError: Add takes 2 operands

    Nodes compare by identity. Use
    :func:`sketchsym.core.graph.structurally_equal` to compare the shape of
    two graphs.
    """

    __slots__ = (
        "op",
        "a",
        "b",
        "value",
        "param",
    )

    op: Op
    a: Optional[Node]
    b: Optional[Node]
    value: float
    param: Optional[Param]

    def __init__(
        self,
        op: Op,
        a: Optional[Node] = None,
        b: Optional[Node] = None,
        *,
        value: float = 0.0,
        param: Optional[Param] = None,
    ):
        """Create a node checking the operands against the arity of *op*."""
        if not isinstance(op, Op):
            raise TypeError("The op should be an Op.")
        operands = [arg for arg in (a, b) if arg is not None]
        if b is not None and a is None or len(operands) != op.arity:
            raise ArityError(f"{op.name} takes {op.arity} operands")
        if not all(isinstance(arg, Node) for arg in operands):
            raise TypeError("All operands should be Node.")
        if op is Op.Param:
            if not isinstance(param, Param):
                raise TypeError("A Param leaf needs a Param.")
        elif param is not None:
            raise TypeError(f"A {op.name} node does not take a Param.")

        self.op = op
        self.a = a
        self.b = b
        self.value = float(value)
        self.param = param

    @classmethod
    def constant(cls, value: float) -> Node:
        """Create a new ``Const`` leaf without reusing :data:`zero` or :data:`one`."""
        return cls(Op.Const, value=value)

    @property
    def operands(self) -> tuple[Node, ...]:
        """The operands ``(a, b)`` that are present."""
        if self.a is None:
            return ()
        elif self.b is None:
            return (self.a,)
        else:
            return (self.a, self.b)

    def __repr__(self) -> str:
        """Verbose representation e.g. ``Add(Param('x'), Const(1.0))``."""
        from sketchsym.core.graph import forward_graph

        graph = forward_graph(self)
        reprs = [_repr_atom(atom) for atom in graph.atoms]
        for node, indices in graph.operations:
            argstr = ", ".join(reprs[i] for i in indices)
            reprs.append(f"{node.op.name}({argstr})")
        return reprs[-1]

    def __str__(self) -> str:
        """Infix representation e.g. ``x + 1``."""
        from sketchsym.core.printing import render

        return render(self)

    def is_const(self) -> bool:
        """True for a ``Const`` leaf whatever its value."""
        return self.op is Op.Const

    def is_zero_const(self) -> bool:
        """True for a ``Const`` leaf holding ``0.0``."""
        return self.op is Op.Const and self.value == 0.0

    def is_one_const(self) -> bool:
        """True for a ``Const`` leaf holding ``1.0``."""
        return self.op is Op.Const and self.value == 1.0

    def is_negone_const(self) -> bool:
        """True for a ``Const`` leaf holding ``-1.0``."""
        return self.op is Op.Const and self.value == -1.0

    def is_param(self) -> bool:
        """True for a ``Param`` leaf."""
        return self.op is Op.Param

    def is_drag(self) -> bool:
        """True for a ``Drag`` node."""
        return self.op is Op.Drag

    def is_unary(self) -> bool:
        """True if the node never needs brackets when printed as an operand."""
        return self.op in UNARY_LIKE_OPS

    def is_additive(self) -> bool:
        """True for ``Add``, ``Sub`` and ``Drag``."""
        return self.op in ADDITIVE_OPS

    def eval(self) -> float:
        """Evaluate using the current values of all parameters.

        >>> from sketchsym import Param, sqrt
        >>> x = Param('x', 9.0)
        >>> sqrt(x).eval()
        3.0
        """
        from sketchsym.core.evaluate import eval_f64

        return eval_f64(self)

    def diff(self, param: Union[Param, Node], ntimes: int = 1) -> Node:
        """Differentiate with respect to *param* (``ntimes`` times).

        >>> from sketchsym import Param, sin
        >>> x = Param('x')
        >>> print(sin(x).diff(x))
        cos(x)

        Only the peephole rules of the constructors are applied so repeated
        terms are not collected:

        >>> print((x * x).diff(x))
        x + x
        >>> print((x * x).diff(x, 2))
        1 + 1

        See Also
        ========

        sketchsym.core.differentiate.diff_forward
        """
        from sketchsym.core.differentiate import diff

        deriv = self
        for _ in range(ntimes):
            deriv = diff(deriv, param)
        return deriv

    def depends_on(self, param: Union[Param, Node]) -> bool:
        """True if a leaf of *param* is reachable from this node."""
        from sketchsym.core.graph import depends_on

        return depends_on(self, param)

    def is_substitution_form(self) -> bool:
        """True if this node is ``Sub`` of two parameter leaves."""
        from sketchsym.core.graph import is_substitution_form

        return is_substitution_form(self)

    def substitution_param_a(self) -> Optional[Param]:
        """Left parameter of a substitution form or ``None``."""
        from sketchsym.core.graph import substitution_params

        params = substitution_params(self)
        return params[0] if params is not None else None

    def substitution_param_b(self) -> Optional[Param]:
        """Right parameter of a substitution form or ``None``."""
        from sketchsym.core.graph import substitution_params

        params = substitution_params(self)
        return params[1] if params is not None else None

    def substitute(self, pa: Param, pb: Param) -> None:
        """Rebind leaves of *pa* to *pb* in place. See :func:`substitute`."""
        from sketchsym.core.graph import substitute

        substitute(self, pa, pb)

    def walk(self, visitor: Callable[[Node], object]) -> None:
        """Call *visitor* on this node and its direct operands."""
        from sketchsym.core.graph import walk

        walk(self, visitor)

    def deep_clone(self) -> Node:
        """Independent copy of the whole graph."""
        from sketchsym.core.graph import deep_clone

        return deep_clone(self)

    def to_sympy(self) -> Any:
        """Convert to a SymPy expression.

        >>> # xdoctest: +REQUIRES(module:sympy)
        >>> from sketchsym import Param, sin
        >>> x = Param('x')
        >>> sin(x).to_sympy()
        sin(x)
        """
        from sketchsym.sympy_conversions import to_sympy

        return to_sympy(self)


def _repr_atom(atom: Node) -> str:
    if atom.op is Op.Const:
        return f"Const({atom.value!r})"
    assert atom.param is not None
    return f"Param({atom.param.name!r})"


def const(value: float) -> Node:
    """Constant leaf, reusing :data:`zero` and :data:`one` where possible."""
    value = float(value)
    if value == 0.0:
        return zero
    elif value == 1.0:
        return one
    return Node.constant(value)


zero = Node.constant(0.0)
one = Node.constant(1.0)
negone = Node.constant(-1.0)
two = Node.constant(2.0)


#
# Simplifying constructors. Each applies a few identities before falling back
# to allocating a new node. Only these five simplify: the functions further
# down always make a new node even for constant operands.
#


def add(a: Expressifiable, b: Expressifiable) -> Node:
    """Build ``a + b``."""
    a, b = expressify(a), expressify(b)
    if a.is_zero_const():
        return b
    elif b.is_zero_const():
        return a
    elif b.op is Op.Neg:
        assert b.a is not None
        return sub(a, b.a)
    return Node(Op.Add, a, b)


def sub(a: Expressifiable, b: Expressifiable) -> Node:
    """Build ``a - b``."""
    a, b = expressify(a), expressify(b)
    if a.is_zero_const():
        return neg(b)
    elif b.is_zero_const():
        return a
    return Node(Op.Sub, a, b)


def mul(a: Expressifiable, b: Expressifiable) -> Node:
    """Build ``a * b``.

    >>> from sketchsym import mul
    >>> mul(2, 3)
    Const(6.0)
    """
    a, b = expressify(a), expressify(b)
    if a.is_zero_const() or b.is_zero_const():
        return zero
    elif a.is_one_const():
        return b
    elif b.is_one_const():
        return a
    elif a.is_negone_const():
        return neg(b)
    elif b.is_negone_const():
        return neg(a)
    elif a.is_const() and b.is_const():
        return const(a.value * b.value)
    return Node(Op.Mul, a, b)


def div(a: Expressifiable, b: Expressifiable) -> Node:
    """Build ``a / b``."""
    a, b = expressify(a), expressify(b)
    if b.is_one_const():
        return a
    elif a.is_zero_const():
        return zero
    elif b.is_negone_const():
        return neg(a)
    return Node(Op.Div, a, b)


def neg(a: Expressifiable) -> Node:
    """Build ``-a``."""
    a = expressify(a)
    if a.is_zero_const():
        return a
    elif a.is_const():
        return const(-a.value)
    elif a.op is Op.Neg:
        assert a.a is not None
        return a.a
    return Node(Op.Neg, a)


def sin(x: Expressifiable) -> Node:
    """Build ``sin(x)``."""
    return Node(Op.Sin, expressify(x))


def cos(x: Expressifiable) -> Node:
    """Build ``cos(x)``."""
    return Node(Op.Cos, expressify(x))


def asin(x: Expressifiable) -> Node:
    """Build ``asin(x)``."""
    return Node(Op.ASin, expressify(x))


def acos(x: Expressifiable) -> Node:
    """Build ``acos(x)``."""
    return Node(Op.ACos, expressify(x))


def sqrt(x: Expressifiable) -> Node:
    """Build ``sqrt(x)``."""
    return Node(Op.Sqrt, expressify(x))


def sqr(x: Expressifiable) -> Node:
    """Build ``x ^ 2``."""
    return Node(Op.Sqr, expressify(x))


def fabs(x: Expressifiable) -> Node:
    """Build ``abs(x)``."""
    return Node(Op.Abs, expressify(x))


def sign(x: Expressifiable) -> Node:
    """Build ``sign(x)``."""
    return Node(Op.Sign, expressify(x))


def atan2(y: Expressifiable, x: Expressifiable) -> Node:
    """Build ``atan2(y, x)``."""
    return Node(Op.Atan2, expressify(y), expressify(x))


def drag(a: Expressifiable, to: Expressifiable) -> Node:
    """Build a soft equality of *a* with *to*.

    A ``Drag`` node evaluates and differentiates exactly like ``a - to`` but
    it prints differently and the solver can tell it apart from a hard
    equation:

    >>> from sketchsym import Param, drag
    >>> x = Param('x', 3.0)
    >>> d = drag(x, 1)
    >>> print(d)
    x ≈ 1
    >>> d.eval()
    2.0
    """
    return Node(Op.Drag, expressify(a), expressify(to))
