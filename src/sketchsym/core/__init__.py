"""Low level expression graph machinery used by :mod:`sketchsym`."""
