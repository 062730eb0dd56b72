"""Module for all sketchsym exceptions."""


class SketchSymError(Exception):
    """Superclass for all sketchsym exceptions."""

    pass


class NoEvaluationRuleError(SketchSymError):
    """Raised when an :class:`Evaluator` has no rule for an expression."""

    pass


class ArityError(SketchSymError, TypeError):
    """Raised when a :class:`Node` is given the wrong number of operands."""

    pass


class ExpressifyError(SketchSymError, TypeError):
    """Raised when an object cannot be converted to a :class:`Node`."""

    pass
