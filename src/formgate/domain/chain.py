"""Rule-chain parsing.

A chain is declared as ``rule1|rule2:p1,p2|rule3``: pipes separate rule
invocations, the first colon separates a rule name from its parameter block,
and commas separate individual parameters.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel

from formgate.domain.errors import MalformedChainError


class RuleInvocation(BaseModel):
    """One rule reference inside a chain, with its raw string parameters."""

    model_config = {"frozen": True}

    name: str
    params: tuple[str, ...] = ()

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}:{','.join(self.params)}"


RuleChain = tuple[RuleInvocation, ...]


@lru_cache(maxsize=512)
def parse_chain(chain: str) -> RuleChain:
    """Parse a chain string into ordered rule invocations.

    Results are cached per distinct string.

    Examples:
        >>> [str(r) for r in parse_chain("required|min:3")]
        ['required', 'min:3']
        >>> parse_chain("unique:users,42")[0].params
        ('users', '42')

    Raises:
        MalformedChainError: On an empty chain, an empty segment, or an
            empty or whitespace-containing rule name.
    """
    if not chain or not chain.strip():
        raise MalformedChainError(chain, "chain is empty")

    invocations: list[RuleInvocation] = []
    for position, segment in enumerate(chain.split("|")):
        name, sep, block = segment.partition(":")
        name = name.strip()
        if not name:
            reason = "empty segment" if not segment.strip() else "missing rule name"
            raise MalformedChainError(chain, f"{reason} at position {position}")
        if any(ch.isspace() for ch in name):
            raise MalformedChainError(chain, f"rule name {name!r} contains whitespace")
        params = tuple(block.split(",")) if sep and block else ()
        invocations.append(RuleInvocation(name=name, params=params))
    return tuple(invocations)
