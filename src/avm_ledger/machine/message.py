"""Token-carrying message and its mapping to the VM's generic value form.

Generic values are represented as plain Python objects: integers are `int`
in the 256-bit range and ordered structures are `tuple`. Anything else is an
opaque payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .token import TokenIdentity
from .uint256 import is_uint256, require_uint256

MESSAGE_TUPLE_SIZE = 4


@dataclass(frozen=True)
class Message:
    data: Any
    destination: int
    currency: int
    token: TokenIdentity

    def __post_init__(self) -> None:
        require_uint256(self.destination, "destination")
        require_uint256(self.currency, "currency")

    def to_value(self) -> tuple[Any, int, int, int]:
        return (self.data, self.destination, self.currency, self.token.to_int())

    @classmethod
    def from_value(cls, value: Any) -> "Message | None":
        """Return None when `value` is not a well-formed message tuple."""
        if not isinstance(value, tuple) or len(value) != MESSAGE_TUPLE_SIZE:
            return None
        data, destination, currency, token_int = value
        if not (is_uint256(destination) and is_uint256(currency) and is_uint256(token_int)):
            return None
        return cls(data, destination, currency, TokenIdentity.from_int(token_int))

    def __str__(self) -> str:
        return f"Message({self.data}, {self.destination}, {self.currency}, {self.token.hex()})"
