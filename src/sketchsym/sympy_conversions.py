"""Conversions to SymPy expressions.

These are defined in their own module so that SymPy will not be imported if
it is not needed.
"""
from __future__ import annotations

import operator
from typing import Any

import sympy

from sketchsym.core.evaluate import Evaluator
from sketchsym.core.node import Node, Op


__all__ = ["to_sympy"]


def sympy_const(node: Node) -> sympy.Basic:
    """Integral values become ``Integer`` so that results compare exactly."""
    value = node.value
    if value.is_integer():
        return sympy.Integer(int(value))
    return sympy.Float(value)


def sympy_symbol(node: Node) -> sympy.Basic:
    assert node.param is not None
    return sympy.Symbol(node.param.name)


eval_to_sympy = Evaluator[sympy.Basic]()

eval_to_sympy.add_atom(Op.Const, sympy_const)
eval_to_sympy.add_atom(Op.Param, sympy_symbol)
eval_to_sympy.add_op2(Op.Add, operator.add)
eval_to_sympy.add_op2(Op.Sub, operator.sub)
eval_to_sympy.add_op2(Op.Drag, operator.sub)
eval_to_sympy.add_op2(Op.Mul, operator.mul)
eval_to_sympy.add_op2(Op.Div, operator.truediv)
eval_to_sympy.add_op2(Op.Atan2, sympy.atan2)
eval_to_sympy.add_op1(Op.Sin, sympy.sin)
eval_to_sympy.add_op1(Op.Cos, sympy.cos)
eval_to_sympy.add_op1(Op.ASin, sympy.asin)
eval_to_sympy.add_op1(Op.ACos, sympy.acos)
eval_to_sympy.add_op1(Op.Sqrt, sympy.sqrt)
eval_to_sympy.add_op1(Op.Sqr, lambda a: a**2)
eval_to_sympy.add_op1(Op.Abs, sympy.Abs)
eval_to_sympy.add_op1(Op.Sign, sympy.sign)
eval_to_sympy.add_op1(Op.Neg, operator.neg)


def to_sympy(expr: Node) -> Any:
    """Convert a :class:`Node` to a SymPy expression.

    Parameters become SymPy symbols with the same name. A ``Drag`` becomes an
    ordinary subtraction.
    """
    return eval_to_sympy(expr)
