"""Hardware (MAC) address value type and the shared normalization helper.

Every place that compares or stores a hardware address goes through
``HardwareAddress`` (structural, octet-wise ordering) or
``normalize_hwaddr`` (lower-case colon text for the store). Nothing else
lower-cases MAC strings on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_HEX_PAIR_RE = re.compile(r"^[0-9a-fA-F]{2}$")
_BARE_RE = re.compile(r"^[0-9a-fA-F]{12}$")


@dataclass(frozen=True, order=True)
class HardwareAddress:
    """A 6-octet hardware address, ordered by its octets."""

    octets: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.octets, bytes) or len(self.octets) != 6:
            raise ValueError(f"hardware address must be 6 octets, got {self.octets!r}")

    @classmethod
    def parse(cls, text: str) -> HardwareAddress:
        """Parse ``aa:bb:cc:dd:ee:ff``, ``AA-BB-CC-DD-EE-FF`` or ``aabbccddeeff``."""
        if not isinstance(text, str):
            raise ValueError(f"hardware address must be text, got {type(text).__name__}")
        value = text.strip()
        if _BARE_RE.match(value):
            return cls(bytes.fromhex(value))

        parts = re.split(r"[:-]", value)
        if len(parts) != 6 or not all(_HEX_PAIR_RE.match(p) for p in parts):
            raise ValueError(f"invalid hardware address: {text!r}")
        return cls(bytes.fromhex("".join(parts)))

    def __str__(self) -> str:
        return ":".join(f"{b:02x}" for b in self.octets)


def normalize_hwaddr(value: HardwareAddress | str) -> str:
    """Return the canonical lower-case colon form used for store selection."""
    if isinstance(value, HardwareAddress):
        return str(value)
    return str(HardwareAddress.parse(value))
