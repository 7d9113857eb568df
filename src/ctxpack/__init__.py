"""ctxpack - pack source files into token-budgeted LLM context chunks."""

__version__ = "0.1.0"
