from sketchsym.core.graph import (
    ForwardGraph,
    deep_clone,
    depends_on,
    forward_graph,
    is_substitution_form,
    parameters,
    structurally_equal,
    substitute,
    substitution_params,
    topological_sort,
    walk,
)
from sketchsym.core.node import Node, Op, Param, const, cos, sin, sqr, sub
from pytest import raises


def test_topological_sort() -> None:
    """Test topological_sort with shared subexpressions."""
    x = Param("x")
    y = Param("y")
    s = sin(x)
    expr = s * y + s

    assert topological_sort(x.leaf) == [x.leaf]
    assert topological_sort(expr) == [x.leaf, s, y.leaf, expr.a, expr]
    assert topological_sort(expr, exclude={s}) == [y.leaf, expr.a, expr]


def test_forward_graph() -> None:
    """Test building a ForwardGraph."""
    x = Param("x")
    y = Param("y")
    s = sin(x)
    expr = s * y + s
    graph = forward_graph(expr)
    assert graph == ForwardGraph(
        atoms=[x.leaf, y.leaf],
        operations=[(s, [0]), (expr.a, [2, 1]), (expr, [3, 2])],  # type: ignore
    )
    assert forward_graph(y.leaf) == ForwardGraph([y.leaf], [])


def test_depends_on() -> None:
    """Test depends_on."""
    p1 = Param("p1")
    p2 = Param("p2")
    p3 = Param("p3")
    expr = p1 + sin(p2)
    assert depends_on(expr, p1) is True
    assert depends_on(expr, p2) is True
    assert depends_on(expr, p3) is False
    assert depends_on(expr, p2.leaf) is True
    assert depends_on(p1.leaf, p1) is True
    assert depends_on(const(2), p1) is False
    assert expr.depends_on(p1) is True
    assert expr.depends_on(p3) is False

    # Not a dependency once it has been simplified away
    assert depends_on(p1 * 0 + p2, p1) is False


def test_parameters() -> None:
    """Test listing the parameters of an expression."""
    x, y, z = Param("x"), Param("y"), Param("z")
    assert parameters(sin(x) * y + x / z) == [x, y, z]
    assert parameters(const(1)) == []


def test_substitution_form() -> None:
    """Test is_substitution_form and the accessors."""
    p1 = Param("p1")
    p2 = Param("p2")

    form = sub(p1.leaf, p2.leaf)
    assert is_substitution_form(form) is True
    assert substitution_params(form) == (p1, p2)
    assert form.is_substitution_form() is True
    assert form.substitution_param_a() is p1
    assert form.substitution_param_b() is p2

    not_forms = [
        sub(p1.leaf, const(1)),
        sub(const(1), p2.leaf),
        p1 + p2,
        (p1 - p2).drag(p1),
        p1.drag(p2),
        p1.leaf,
        sin(p1) - p2,
    ]
    for expr in not_forms:
        assert is_substitution_form(expr) is False
        assert substitution_params(expr) is None
        assert expr.substitution_param_a() is None
        assert expr.substitution_param_b() is None


def test_substitute() -> None:
    """Test rebinding a parameter in place."""
    x = Param("x", 1.0)
    y = Param("y", 2.0)
    z = Param("z", 3.0)
    expr = sin(x) * x + z
    substitute(expr, x, y)
    assert str(expr) == "sin(y) * y + z"
    assert not depends_on(expr, x)
    assert depends_on(expr, y)

    # Substituting a parameter that does not appear changes nothing.
    before = deep_clone(expr)
    expr.substitute(x, z)
    assert structurally_equal(expr, before)

    # A bare leaf is rebound too.
    w = Param("w")
    leaf = deep_clone(w.leaf)
    substitute(leaf, w, z)
    assert leaf.param is z
    assert w.leaf.param is w


def test_substitute_shared_leaf() -> None:
    """Test that substitute changes every graph sharing the leaf.

    Leaves are shared rather than copied, so substituting into one
    expression also changes any other expression built from the same
    parameter.
    """
    p1 = Param("p1", 1.0)
    p2 = Param("p2", 10.0)
    e1 = p1 + 1
    e2 = p1 * 2

    substitute(e1, p1, p2)
    assert e1.eval() == 11.0
    assert e2.eval() == 20.0

    p2.value = 20.0
    assert e1.eval() == 21.0
    assert e2.eval() == 40.0

    # p1 is no longer read by either graph.
    p1.value = 100.0
    assert e2.eval() == 40.0

    # The leaf bound to p1 is itself bound to p2 now.
    assert p1.leaf.param is p2
    assert str(e2) == "p2 * 2"


def test_substitute_after_deep_clone() -> None:
    """Test that a deep clone isolates the substitution."""
    p1 = Param("p1", 1.0)
    p2 = Param("p2", 10.0)
    e1 = deep_clone(p1 + 1)
    e2 = p1 * 2

    substitute(e1, p1, p2)
    assert e1.eval() == 11.0
    assert e2.eval() == 2.0
    assert p1.leaf.param is p1


def test_walk() -> None:
    """Test that walk only visits one level."""
    x = Param("x")
    y = Param("y")
    expr = sin(x) * cos(y)

    visited: list[Node] = []
    walk(expr, visited.append)
    assert visited == [expr, expr.a, expr.b]

    visited = []
    walk(sin(expr), visited.append)
    assert len(visited) == 2
    assert visited[1] is expr

    visited = []
    x.leaf.walk(visited.append)
    assert visited == [x.leaf]


def test_deep_clone() -> None:
    """Test deep_clone."""
    x = Param("x", 2.0)
    s = sqr(x)
    expr = s + s * const(3.5)
    clone = deep_clone(expr)

    assert clone is not expr
    assert structurally_equal(clone, expr)
    assert str(clone) == str(expr)
    assert clone.eval() == expr.eval() == 18.0

    original_nodes = {id(n) for n in topological_sort(expr)}
    clone_nodes = topological_sort(clone)
    assert not any(id(n) in original_nodes for n in clone_nodes)

    # Every position gets its own node even where the original shares one.
    assert clone.a is not clone.b.a  # type: ignore
    assert clone.a.a is not x.leaf  # type: ignore
    assert clone.a.a.param is x  # type: ignore

    # The clone still reads the current parameter value.
    x.value = 1.0
    assert clone.eval() == 4.5

    leaf_clone = x.leaf.deep_clone()
    assert leaf_clone is not x.leaf
    assert leaf_clone.op is Op.Param
    assert leaf_clone.param is x


def test_structurally_equal() -> None:
    """Test structural comparison."""
    x = Param("x")
    y = Param("y")
    assert structurally_equal(x + y, x + y)
    assert structurally_equal(Node.constant(1.0), const(1))
    assert not structurally_equal(x + y, y + x)
    assert not structurally_equal(x - y, x.drag(y))
    assert not structurally_equal(x.leaf, Param("x").leaf)
    assert not structurally_equal(const(1), const(2))
    assert not structurally_equal(sin(x), cos(x))


def test_as_param_errors() -> None:
    """Test that a parameter is required where one is expected."""
    x = Param("x")
    raises(TypeError, lambda: depends_on(x.leaf, const(1)))  # type: ignore
    raises(TypeError, lambda: substitute(x.leaf, x, "y"))  # type: ignore


def test_deep_clone_long_chain() -> None:
    """Test cloning a sum that is deeper than the recursion limit."""
    params = [Param(f"p{i}", 1.0) for i in range(3000)]
    total = params[0] + params[1]
    for p in params[2:]:
        total = total + p

    clone = deep_clone(total)
    assert clone is not total
    assert clone.eval() == 3000.0
    assert structurally_equal(clone, total)
    assert clone.b is not params[-1].leaf  # type: ignore
    assert clone.b.param is params[-1]  # type: ignore

    # The shared sum appears twice in the tree and is copied at both places.
    doubled = deep_clone(total * total)
    assert doubled.a is not doubled.b
    assert doubled.eval() == 9000000.0


def test_param_entry_points() -> None:
    """Test that a Param can be passed where a node is expected."""
    x = Param("x", 2.0)

    visited: list[Node] = []
    walk(x, visited.append)
    assert visited == [x.leaf]

    clone = deep_clone(x)
    assert clone is not x.leaf
    assert clone.param is x
