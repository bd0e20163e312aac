"""Chain-qualified token address validation."""

import re

from pydantic import BaseModel, model_validator

from .exceptions import InvalidAddressError
from .types import Chain, ChainFamily

EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
BASE58_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

ADDRESS_PATTERNS = {
    ChainFamily.EVM: EVM_ADDRESS_RE,
    ChainFamily.SOLANA: BASE58_ADDRESS_RE,
}


def is_valid_address(address: str, chain: Chain) -> bool:
    """Check an address against the grammar of the chain's family."""
    if not isinstance(address, str):
        return False
    return bool(ADDRESS_PATTERNS[chain.family].match(address))


class TokenAddress(BaseModel):
    """A token contract address validated against its chain's grammar."""

    address: str
    chain: Chain

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_grammar(self) -> "TokenAddress":
        if not is_valid_address(self.address, self.chain):
            raise ValueError(f"{self.address!r} is not a valid {self.chain.value} address")
        return self

    @classmethod
    def parse(cls, address: str, chain: "str | Chain") -> "TokenAddress":
        """
        Validate user input and build a TokenAddress.

        Raises:
            InvalidAddressError: if the chain is unsupported or the
                address does not match the chain's grammar
        """
        try:
            resolved = Chain.parse(chain)
        except ValueError:
            raise InvalidAddressError(str(address), str(chain), f"unsupported chain {chain!r}")

        cleaned = address.strip() if isinstance(address, str) else ""
        if not cleaned:
            raise InvalidAddressError("", resolved.value, "token address is required")
        if not is_valid_address(cleaned, resolved):
            raise InvalidAddressError(cleaned, resolved.value)
        return cls(address=cleaned, chain=resolved)

    def __str__(self) -> str:
        return self.address
