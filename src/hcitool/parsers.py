"""Value parsers turning a single command-line token into a typed value.

Every parser raises ``ValueError`` when the token is not a valid instance of
its type; the command builder converts that into ``InvalidOptionValue``.
"""

from __future__ import annotations

import re
from enum import Enum, IntFlag
from typing import Callable, Iterable, Type, TypeVar

from .hci_types import Address, member_by_name, member_names

E = TypeVar("E", bound=Enum)
F = TypeVar("F", bound=IntFlag)

_DECIMAL = re.compile(r"[0-9]+")
_HEXADECIMAL = re.compile(r"0[xX][0-9A-Fa-f]+")
_DURATION = re.compile(r"(?P<number>.+?)(?P<unit>ms|s)?")

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


def parse_integer(token: str, bits: int) -> int:
    """Parse an unsigned integer that must fit in ``bits`` bits.

    Tokens prefixed with ``0x``/``0X`` are hexadecimal, anything else is
    decimal. Signs, whitespace and empty strings are rejected.
    """
    if _HEXADECIMAL.fullmatch(token):
        value = int(token[2:], 16)
    elif _DECIMAL.fullmatch(token):
        value = int(token, 10)
    else:
        raise ValueError(f"'{token}' is not an unsigned integer")
    maximum = (1 << bits) - 1
    if value > maximum:
        raise ValueError(f"{value} exceeds the {bits}-bit maximum {maximum}")
    return value


def parse_uint8(token: str) -> int:
    return parse_integer(token, 8)


def parse_uint16(token: str) -> int:
    return parse_integer(token, 16)


def parse_uint32(token: str) -> int:
    return parse_integer(token, 32)


def parse_address(token: str) -> Address:
    """Parse a colon separated Bluetooth address."""
    return Address.from_string(token)


def parse_bool(token: str) -> bool:
    """Parse the usual on/off spellings of a boolean."""
    lowered = token.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise ValueError(f"'{token}' is not a boolean")


def parse_hex_bytes(token: str) -> bytes:
    """Parse a hex string such as ``0201061AFF`` or ``02:01:06``."""
    digits = token.strip()
    if digits[:2] in ("0x", "0X"):
        digits = digits[2:]
    digits = digits.replace(":", "").replace(" ", "")
    if len(digits) % 2:
        raise ValueError("hex data must have an even number of digits")
    try:
        return bytes.fromhex(digits)
    except ValueError as exc:
        raise ValueError(f"'{token}' is not valid hex data") from exc


def parse_duration(token: str) -> int:
    """Parse a duration in milliseconds, accepting an ``ms`` or ``s`` suffix."""
    match = _DURATION.fullmatch(token.strip().lower())
    if match is None:
        raise ValueError(f"'{token}' is not a duration")
    value = parse_integer(match.group("number"), 32)
    if match.group("unit") == "s":
        value *= 1000
        if value > 0xFFFFFFFF:
            raise ValueError(f"'{token}' is too long a duration")
    return value


def parse_enum_value(enum_cls: Type[E], bits: int = 8) -> Callable[[str], E]:
    """Build a parser mapping an integer token onto a member of ``enum_cls``."""

    def _parse(token: str) -> E:
        raw = parse_integer(token, bits)
        try:
            return enum_cls(raw)
        except ValueError as exc:
            raise ValueError(
                f"{raw} is not a valid {enum_cls.__name__}"
            ) from exc

    return _parse


def parse_keyword(enum_cls: Type[E]) -> Callable[[str], E]:
    """Build a parser resolving a case-insensitive member name."""

    def _parse(token: str) -> E:
        member = member_by_name(enum_cls, token)
        if member is None:
            choices = ", ".join(member_names(enum_cls))
            raise ValueError(f"expected one of: {choices}")
        return member

    return _parse


def parse_flag_list(flag_cls: Type[F], tokens: Iterable[str]) -> F:
    """OR together the flags named by ``tokens``.

    A single token may also hold several names separated by commas. One
    unrecognized name fails the whole parse.
    """
    mask = flag_cls(0)
    for token in tokens:
        for name in filter(None, (part.strip() for part in token.split(","))):
            member = member_by_name(flag_cls, name)
            if member is None:
                raise ValueError(
                    f"'{name}' is not a known {flag_cls.__name__}"
                )
            mask |= member
    return mask


def parse_flag_value(flag_cls: Type[F], bits: int) -> Callable[[str], F]:
    """Build a parser accepting either a raw integer or a list of flag names."""

    def _parse(token: str) -> F:
        if _DECIMAL.fullmatch(token) or _HEXADECIMAL.fullmatch(token):
            return flag_cls(parse_integer(token, bits))
        return parse_flag_list(flag_cls, [token])

    return _parse


def parse_text(max_bytes: int) -> Callable[[str], str]:
    """Build a parser for free text whose UTF-8 form fits ``max_bytes``."""

    def _parse(token: str) -> str:
        if len(token.encode("utf-8")) > max_bytes:
            raise ValueError(f"text longer than {max_bytes} bytes")
        return token

    return _parse
