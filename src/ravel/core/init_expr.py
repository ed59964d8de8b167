from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Tuple

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError, UnexpectedInput

from .exceptions import InvalidExpression

GRAMMAR_PATH = Path(__file__).with_name("init_expr.lark")


@dataclass(frozen=True)
class InitExpression:
    coef: float = 1.0
    name: str = ""
    function: Optional[str] = None
    dims: Tuple[int, ...] = ()

    @property
    def is_generator(self) -> bool:
        return self.function is not None


@lru_cache(maxsize=1)
def _build_lark() -> Lark:
    return Lark(
        GRAMMAR_PATH.read_text(encoding="utf-8"),
        parser="lalr",
        lexer="contextual",
        start="start",
        maybe_placeholders=False,
    )


class _InitXform(Transformer):
    def number(self, items: List[Token]) -> float:
        return float(items[0])

    def sign(self, items: List[Token]) -> float:
        return -1.0 if str(items[0]) == "-" else 1.0

    def dims(self, items: List[Token]) -> Tuple[int, ...]:
        return tuple(int(tok) for tok in items)

    def call(self, items: List[Any]) -> InitExpression:
        fn = str(items[0]).strip()
        dims = items[1] if len(items) > 1 else ()
        if any(d <= 0 for d in dims):
            raise InvalidExpression(f"dimensions of {fn}() must be positive, got {list(dims)}")
        return InitExpression(name=f"{fn}({','.join(str(d) for d in dims)})", function=fn, dims=dims)

    def reference(self, items: List[Token]) -> InitExpression:
        return InitExpression(name=str(items[0]).strip())

    def start(self, items: List[Any]) -> InitExpression:
        coef = 1.0
        target = InitExpression()
        for item in items:
            if isinstance(item, InitExpression):
                target = item
            else:
                coef = float(item)
        return InitExpression(coef=coef, name=target.name, function=target.function, dims=target.dims)


def parse_init(text: str) -> InitExpression:
    """Split an initial-value expression into coefficient and target."""
    if not text or not text.strip():
        return InitExpression()
    try:
        tree = _build_lark().parse(text)
    except UnexpectedInput as exc:
        raise InvalidExpression(
            f"Malformed initial value {text!r}",
            column=exc.column if isinstance(exc.column, int) else None,
            line_text=text,
        ) from exc
    except LarkError as exc:  # pragma: no cover - defensive
        raise InvalidExpression(str(exc)) from exc
    try:
        return _InitXform().transform(tree)
    except LarkError as exc:
        # errors raised inside transformer callbacks arrive wrapped
        orig = getattr(exc, "orig_exc", None)
        if isinstance(orig, InvalidExpression):
            raise orig from None
        raise InvalidExpression(str(exc)) from exc
