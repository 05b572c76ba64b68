"""Chain configuration model."""
import re
from enum import Enum
from typing import Dict, List, Optional
import base58
from pydantic import BaseModel, Field


class ChainFamily(str, Enum):
    """Address/transaction model a chain belongs to."""
    COSMOS = "cosmos"
    EVM = "evm"
    NATIVE = "native"


class DataSource(str, Enum):
    """Upstream APIs a chain can be fetched from."""
    ETHERSCAN = "etherscan"
    COSMOS_LCD = "cosmos_lcd"
    MINTSCAN = "mintscan"
    CELENIUM = "celenium"
    TATUM = "tatum"
    GOLDRUSH = "goldrush"
    PIKESPEAK = "pikespeak"


class AddressEncoding(str, Enum):
    """Extra validation applied after the regex matches."""
    PLAIN = "plain"
    SS58 = "ss58"


# SS58: 1-byte network prefix + 32-byte public key + 2-byte checksum
SS58_DECODED_LENGTH = 35


class ChainConfig(BaseModel):
    """Static description of one supported chain."""
    id: str
    name: str
    display_name: str
    family: ChainFamily
    address_prefix: str = ""
    address_regex: str
    address_encoding: AddressEncoding = AddressEncoding.PLAIN
    test_address: str = ""
    rpc_endpoints: List[str] = Field(default_factory=list)
    api_endpoints: List[str] = Field(default_factory=list)
    explorer_url: str = ""
    decimals: int
    native_denom: str = ""
    native_symbol: str
    enabled: bool = True
    description: str = ""
    sources: List[DataSource] = Field(default_factory=list)
    evm_chain_id: Optional[int] = None
    upstream_chain: str = ""
    known_tokens: Dict[str, str] = Field(default_factory=dict, description="Lowercased contract -> symbol")
    denom_symbols: Dict[str, str] = Field(default_factory=dict, description="Denom -> display symbol")

    def validate_address(self, address: str) -> bool:
        """
        Validate a wallet address format.

        Args:
            address: Wallet address to validate

        Returns:
            True if address is valid
        """
        if not address or not re.fullmatch(self.address_regex, address.strip()):
            return False

        if self.address_encoding == AddressEncoding.SS58:
            try:
                decoded = base58.b58decode(address.strip())
            except ValueError:
                return False
            return len(decoded) == SS58_DECODED_LENGTH

        return True

    def canonical_address(self, address: str) -> str:
        """Address as upstream APIs expect it (e.g. ronin: -> 0x)."""
        address = address.strip()
        if self.family == ChainFamily.EVM and address.lower().startswith("ronin:"):
            return "0x" + address[len("ronin:"):]
        return address

    def symbol_for_denom(self, denom: str) -> str:
        """Display symbol for a Cosmos denom."""
        if not denom:
            return ""
        if denom == self.native_denom:
            return self.native_symbol
        if denom.startswith("ibc/"):
            return "IBC-Token"
        return self.denom_symbols.get(denom, denom.upper())

    def is_native_denom(self, denom: str) -> bool:
        """True when a coin denom refers to the chain's native currency."""
        return denom in ("", "wei", "native", self.native_denom)
