"""Benchmarks for differentiation using SketchSym.

Differentiation using SketchSym is benchmarked against SymPy's and
SymEngine's symbolic differentiation.

"""
from typing import Callable, TypeVar

import pytest
import symengine
import sympy
import sketchsym

ExprType = TypeVar("ExprType")
Fixture = Callable[..., ExprType]


@pytest.mark.benchmark(group="differentiate nested sine first derivative")
class TestNestedSineFirstDerivative:
    """Differentiate ``sin(sin(sin(sin(sin(sin(x))))))`` w.r.t. ``x`` once."""

    @staticmethod
    def test_sketchsym(benchmark: Fixture[sketchsym.Node]) -> None:
        """Differentiate using SketchSym."""
        x = sketchsym.Param("x", 1.0)
        sin = sketchsym.sin
        expr = sin(sin(sin(sin(sin(sin(x))))))
        result = benchmark(expr.diff, x)
        assert result.eval() == pytest.approx(0.13877489681259086)

    @staticmethod
    def test_sympy(benchmark: Fixture[sympy.Expr]) -> None:
        """Differentiate using SymPy."""
        x = sympy.Symbol("x")
        sin = sympy.sin
        expr = sin(sin(sin(sin(sin(sin(x))))))
        result = benchmark(expr.diff, x)
        assert result.evalf(subs={x: 1.0}) == pytest.approx(0.13877489681259086)

    @staticmethod
    def test_symengine(benchmark: Fixture[symengine.Expr]) -> None:
        """Differentiate using SymEngine."""
        x = symengine.Symbol("x")
        sin = symengine.sin
        expr = sin(sin(sin(sin(sin(sin(x))))))
        result = benchmark(expr.diff, x)
        assert float(result.subs(x, 1.0).evalf()) == pytest.approx(0.13877489681259086)


@pytest.mark.benchmark(group="differentiate nested sine fourth derivative")
class TestNestedSineFourthDerivative:
    """Differentiate ``sin(sin(sin(sin(sin(sin(x))))))`` w.r.t. ``x`` four times."""

    @staticmethod
    def test_sketchsym(benchmark: Fixture[sketchsym.Node]) -> None:
        """Differentiate using SketchSym."""
        x = sketchsym.Param("x", 1.0)
        sin = sketchsym.sin
        expr = sin(sin(sin(sin(sin(sin(x))))))
        result = benchmark(expr.diff, x, 4)
        expected = sympy.sin(sympy.Symbol("x"))
        for _ in range(5):
            expected = sympy.sin(expected)
        value = expected.diff(sympy.Symbol("x"), 4).evalf(subs={sympy.Symbol("x"): 1.0})
        assert result.eval() == pytest.approx(float(value))

    @staticmethod
    def test_symengine(benchmark: Fixture[symengine.Expr]) -> None:
        """Differentiate using SymEngine."""
        x = symengine.Symbol("x")
        sin = symengine.sin
        expr = sin(sin(sin(sin(sin(sin(x))))))
        result = benchmark(expr.diff, x, 4)
        expected = sympy.sympify(str(expr)).diff(sympy.Symbol("x"), 4)
        value = expected.evalf(subs={sympy.Symbol("x"): 1.0})
        assert float(result.subs(x, 1.0).evalf()) == pytest.approx(float(value))


@pytest.mark.benchmark(group="evaluate distance gradient")
class TestDistanceGradient:
    """Evaluate the gradient of a point to point distance repeatedly."""

    @staticmethod
    def test_sketchsym(benchmark: Fixture[float]) -> None:
        """Evaluate using SketchSym."""
        x1, y1 = sketchsym.Param("x1", 0.0), sketchsym.Param("y1", 0.0)
        x2, y2 = sketchsym.Param("x2", 3.0), sketchsym.Param("y2", 4.0)
        dist = sketchsym.sqrt(sketchsym.sqr(x2 - x1) + sketchsym.sqr(y2 - y1))
        grad = [dist.diff(p) for p in (x1, y1, x2, y2)]

        def evaluate() -> list[float]:
            return [g.eval() for g in grad]

        result = benchmark(evaluate)
        assert result == pytest.approx([-0.6, -0.8, 0.6, 0.8])
