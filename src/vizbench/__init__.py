"""vizbench: generate, test and evaluate interactive algorithm visualizations."""

__version__ = "1.0.0"
