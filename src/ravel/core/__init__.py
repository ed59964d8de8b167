"""Core modules for Ravel."""

__all__ = [
    "arena",
    "config",
    "data_spec",
    "dimension",
    "exceptions",
    "export",
    "formatting",
    "hypercube",
    "inference",
    "init_expr",
    "loader",
    "numeric",
    "resolver",
    "state",
    "tensor",
    "tokenizer",
    "variables",
]
