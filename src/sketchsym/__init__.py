"""Symbolic expressions for a geometric constraint solver.

Expressions are built from :class:`Param` cells and numbers using the usual
operators and the functions exported here:

>>> from sketchsym import Param, sqrt, sqr
>>> x1, y1 = Param('x1', 0.0), Param('y1', 0.0)
>>> x2, y2 = Param('x2', 3.0), Param('y2', 4.0)
>>> distance = sqrt(sqr(x2 - x1) + sqr(y2 - y1))
>>> print(distance)
sqrt((x2 - x1) ^ 2 + (y2 - y1) ^ 2)
>>> distance.eval()
5.0
>>> distance.diff(x2).eval()
0.6
"""
from __future__ import annotations

from sketchsym.core.differentiate import diff
from sketchsym.core.evaluate import eval_f64
from sketchsym.core.exceptions import (
    ArityError,
    ExpressifyError,
    NoEvaluationRuleError,
    SketchSymError,
)
from sketchsym.core.graph import (
    deep_clone,
    depends_on,
    is_substitution_form,
    parameters,
    structurally_equal,
    substitute,
    substitution_params,
    walk,
)
from sketchsym.core.node import (
    Node,
    Op,
    Param,
    acos,
    add,
    asin,
    atan2,
    const,
    cos,
    div,
    drag,
    expressify,
    fabs,
    mul,
    neg,
    negone,
    one,
    sign,
    sin,
    sqr,
    sqrt,
    sub,
    two,
    zero,
)
from sketchsym.core.printing import render

__all__ = [
    "Node",
    "Op",
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
    "eval_f64",
    "diff",
    "render",
    "walk",
    "deep_clone",
    "depends_on",
    "parameters",
    "is_substitution_form",
    "substitution_params",
    "substitute",
    "structurally_equal",
    "SketchSymError",
    "NoEvaluationRuleError",
    "ArityError",
    "ExpressifyError",
]
