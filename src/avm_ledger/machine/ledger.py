"""Per-machine ledger of fungible balances and owned non-fungible assets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import BalanceOverflow, PreconditionViolation
from .token import AssetKey, TokenIdentity
from .uint256 import UINT256_MAX, require_uint256


def _require_token(token: object) -> TokenIdentity:
    if not isinstance(token, TokenIdentity):
        raise PreconditionViolation(f"expected TokenIdentity, got {type(token).__name__}")
    return token


@dataclass
class BalanceLedger:
    """Balances owned by one VM instance.

    Not synchronized: a ledger belongs to the single context that advances
    its machine. `spend` is the only path that lowers a balance or releases
    an asset.
    """

    balances: dict[TokenIdentity, int] = field(default_factory=dict)
    assets: set[AssetKey] = field(default_factory=set)

    def __post_init__(self) -> None:
        for token, amount in self.balances.items():
            if not _require_token(token).is_fungible:
                raise PreconditionViolation(f"balance entry for non-fungible identity {token.hex()}")
            require_uint256(amount)
        for key in self.assets:
            if not isinstance(key, AssetKey):
                raise PreconditionViolation(f"expected AssetKey, got {type(key).__name__}")

    @staticmethod
    def is_fungible(token: TokenIdentity) -> bool:
        return _require_token(token).is_fungible

    # ---- queries ----

    def fungible_value(self, token: TokenIdentity) -> int:
        if not self.is_fungible(token):
            raise PreconditionViolation(f"fungible_value called on non-fungible identity {token.hex()}")
        return self.balances.get(token, 0)

    def owns_asset(self, token: TokenIdentity, instance_id: int) -> bool:
        if self.is_fungible(token):
            raise PreconditionViolation(f"owns_asset called on fungible identity {token.hex()}")
        return AssetKey(token, instance_id) in self.assets

    def can_spend(self, token: TokenIdentity, amount: int) -> bool:
        # For non-fungible identities the amount is the instance id.
        amount = require_uint256(amount)
        if self.is_fungible(token):
            return amount <= self.fungible_value(token)
        return self.owns_asset(token, amount)

    # ---- mutations ----

    def spend(self, token: TokenIdentity, amount: int) -> bool:
        if not self.can_spend(token, amount):
            return False
        if token.is_fungible:
            self.balances[token] = self.balances.get(token, 0) - amount
        else:
            self.assets.discard(AssetKey(token, amount))
        return True

    def add(self, token: TokenIdentity, amount: int) -> None:
        amount = require_uint256(amount)
        if self.is_fungible(token):
            current = self.balances.get(token, 0)
            if amount > UINT256_MAX - current:
                raise BalanceOverflow(f"crediting {amount} to {token.hex()} overflows balance {current}")
            self.balances[token] = current + amount
        else:
            self.assets.add(AssetKey(token, amount))

    # ---- views ----

    def fungible_balances(self) -> dict[TokenIdentity, int]:
        return dict(self.balances)

    def owned_assets(self) -> frozenset[AssetKey]:
        return frozenset(self.assets)

    def copy(self) -> "BalanceLedger":
        return BalanceLedger(balances=dict(self.balances), assets=set(self.assets))

    def to_dict(self) -> dict[str, Any]:
        return {
            "fungible": {token.hex(): str(amount) for token, amount in self.balances.items()},
            "assets": sorted(
                ({"token": key.token.hex(), "instance_id": str(key.instance_id)} for key in self.assets),
                key=lambda item: (item["token"], int(item["instance_id"])),
            ),
        }
