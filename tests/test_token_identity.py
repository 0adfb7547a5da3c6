from __future__ import annotations

import pytest

from avm_ledger.errors import PreconditionViolation
from avm_ledger.machine.token import FUNGIBLE_ZERO, AssetKey, TokenIdentity, stable_hash


def _nft(last: int = 1, fill: int = 0xAB) -> TokenIdentity:
    return TokenIdentity(bytes([fill] * 20 + [last]))


def test_last_byte_decides_fungibility() -> None:
    assert FUNGIBLE_ZERO.is_fungible
    assert TokenIdentity(bytes([0xFF] * 20 + [0])).is_fungible
    assert not _nft(1).is_fungible
    assert not _nft(0x80).is_fungible


@pytest.mark.parametrize(
    "token",
    [FUNGIBLE_ZERO, _nft(1), _nft(0xFF, 0xFF), TokenIdentity(bytes(range(1, 21)) + b"\x00")],
)
def test_identity_int_identity_is_lossless(token: TokenIdentity) -> None:
    as_int = token.to_int()
    assert as_int % (1 << 88) == 0
    assert TokenIdentity.from_int(as_int) == token
    # Low byte of the identity sits at bit 88 of the integer form.
    assert token.is_fungible == ((as_int >> 88) % 256 == 0)


def test_integer_form_places_identity_in_high_bytes() -> None:
    token = TokenIdentity(bytes(20) + b"\x01")
    assert token.to_int() == 1 << 88
    assert token.to_int().to_bytes(32, "big")[:21] == token.raw


def test_from_int_drops_low_88_bits() -> None:
    token = _nft(7)
    noisy = token.to_int() | ((1 << 88) - 1)
    assert TokenIdentity.from_int(noisy) == token
    assert TokenIdentity.from_int(noisy).to_int() != noisy


def test_from_int_rejects_out_of_range() -> None:
    with pytest.raises(PreconditionViolation):
        TokenIdentity.from_int(-1)
    with pytest.raises(PreconditionViolation):
        TokenIdentity.from_int(1 << 256)


def test_identity_requires_21_bytes() -> None:
    with pytest.raises(PreconditionViolation):
        TokenIdentity(bytes(20))
    with pytest.raises(PreconditionViolation):
        TokenIdentity(bytes(22))


def test_hex_roundtrip() -> None:
    token = _nft(3)
    assert TokenIdentity.from_hex(token.hex()) == token
    assert TokenIdentity.from_hex("0x" + token.hex().lower()) == token
    with pytest.raises(PreconditionViolation):
        TokenIdentity.from_hex("zz")


def test_asset_key_equality_and_stable_hash() -> None:
    a = AssetKey(_nft(1), 42)
    b = AssetKey(TokenIdentity(bytes(a.token.raw)), 42)
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b, AssetKey(_nft(1), 43)}) == 2
    assert hash(a) == stable_hash(3754345, (42).to_bytes(32, "big"), a.token.raw)


def test_asset_key_rejects_fungible_identity() -> None:
    with pytest.raises(PreconditionViolation):
        AssetKey(FUNGIBLE_ZERO, 1)
    with pytest.raises(PreconditionViolation):
        AssetKey(_nft(1), -1)
