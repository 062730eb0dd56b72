"""Infix text representation of expression graphs."""
from __future__ import annotations

from typing import Union

from sketchsym.core.graph import forward_graph
from sketchsym.core.node import Node
from sketchsym.core.node import Op
from sketchsym.core.node import Param
from sketchsym.core.node import expressify


__all__ = ["render", "render_const"]


_function_names = {
    Op.Sin: "sin",
    Op.Cos: "cos",
    Op.ASin: "asin",
    Op.ACos: "acos",
    Op.Sqrt: "sqrt",
    Op.Abs: "abs",
    Op.Sign: "sign",
    Op.Atan2: "atan2",
}


def render_const(value: float) -> str:
    """Shortest text that reads back as *value*.

    >>> from sketchsym.core.printing import render_const
    >>> render_const(2.0), render_const(-0.5), render_const(1e-12)
    ('2', '-0.5', '1e-12')
    """
    text = repr(value)
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _render_atom(atom: Node) -> str:
    if atom.op is Op.Const:
        return render_const(atom.value)
    assert atom.param is not None
    return atom.param.name


def render(expr: Union[Node, Param]) -> str:
    """Infix string for *expr* with only the brackets that are needed.

    >>> from sketchsym import Param, sqr, sqrt
    >>> from sketchsym.core.printing import render
    >>> x, y, z = Param('x'), Param('y'), Param('z')
    >>> render(x - (y + z))
    'x - (y + z)'
    >>> render((x + y) * z / (x * y))
    '(x + y) * z / (x * y)'
    >>> render(-sqr(x + 1) + sqrt(y))
    '-(x + 1) ^ 2 + sqrt(y)'
    >>> render((x - y).drag(z))
    'x - y ≈ z'

    Sums are only bracketed as operands of ``*`` and ``/`` and on the right
    of ``-``. The right operand of ``/`` is also bracketed unless it is a
    leaf or a function call.
    """
    graph = forward_graph(expressify(expr))
    nodes = list(graph.atoms)
    strings = [_render_atom(atom) for atom in graph.atoms]

    def quoted_add(i: int) -> str:
        if nodes[i].is_additive():
            return f"({strings[i]})"
        return strings[i]

    def quoted(i: int) -> str:
        if nodes[i].is_unary():
            return strings[i]
        return f"({strings[i]})"

    for node, indices in graph.operations:
        op = node.op
        if op is Op.Add:
            a, b = indices
            text = f"{strings[a]} + {strings[b]}"
        elif op is Op.Sub:
            a, b = indices
            text = f"{strings[a]} - {quoted_add(b)}"
        elif op is Op.Drag:
            a, b = indices
            text = f"{strings[a]} ≈ {quoted_add(b)}"
        elif op is Op.Mul:
            a, b = indices
            text = f"{quoted_add(a)} * {quoted_add(b)}"
        elif op is Op.Div:
            a, b = indices
            text = f"{quoted_add(a)} / {quoted(b)}"
        elif op is Op.Sqr:
            text = f"{quoted(indices[0])} ^ 2"
        elif op is Op.Neg:
            text = f"-{quoted(indices[0])}"
        else:
            args = ", ".join(strings[i] for i in indices)
            text = f"{_function_names[op]}({args})"
        nodes.append(node)
        strings.append(text)

    return strings[-1]
