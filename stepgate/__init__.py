"""StepGate - guided learning modules with blocking exercises."""

__version__ = "0.1.0"
