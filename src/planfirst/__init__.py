"""PlanFirst: plan feature work with a language model, then verify the result."""

__version__ = "0.1.0"
