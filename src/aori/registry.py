"""Read-only chain and token registry snapshot.

Holds the chains and tokens fetched from the API for one engine instance.
Loads replace the whole snapshot in a single assignment, so readers never
see a partially-updated collection and no locking is required.
"""

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Optional, Union

from aori.constants import DEFAULT_TOKEN_DECIMALS, TOKEN_DECIMALS, is_native_token
from aori.contracts.chains import ChainInfo, TokenInfo
from aori.errors import UnknownChainError

logger = logging.getLogger(__name__)

ChainRef = Union[str, int]


def infer_decimals(symbol: str) -> int:
    """Fallback decimals for tokens listed without them."""
    return TOKEN_DECIMALS.get(symbol.upper(), DEFAULT_TOKEN_DECIMALS)


class ChainRegistry:
    """Lookup of chains by key / chain id / endpoint id, and tokens by chain."""

    def __init__(
        self,
        chains: Optional[Iterable[ChainInfo]] = None,
        tokens: Optional[Iterable[TokenInfo]] = None,
    ):
        self._chains: Mapping[str, ChainInfo] = MappingProxyType({})
        self._tokens: tuple[TokenInfo, ...] = ()
        if chains is not None:
            self.load_chains(chains)
        if tokens is not None:
            self.load_tokens(tokens)

    # ======================
    # Loading
    # ======================

    def load_chains(self, chains: Iterable[ChainInfo]) -> None:
        """Replace the chain snapshot."""
        snapshot = {chain.chain_key: chain for chain in chains}
        self._chains = MappingProxyType(snapshot)
        logger.debug(f"Loaded {len(snapshot)} chains: {', '.join(snapshot)}")

    def load_tokens(self, tokens: Iterable[TokenInfo]) -> None:
        """Replace the token snapshot."""
        snapshot = tuple(tokens)
        self._tokens = snapshot
        logger.debug(f"Loaded {len(snapshot)} tokens")

    # ======================
    # Chains
    # ======================

    @property
    def chains(self) -> Mapping[str, ChainInfo]:
        """All chains keyed by lowercase chain key."""
        return self._chains

    @property
    def chain_keys(self) -> list[str]:
        return list(self._chains)

    def get_chain(self, chain: ChainRef) -> Optional[ChainInfo]:
        """Find a chain by key (case-insensitive) or numeric chain id."""
        if isinstance(chain, str):
            return self._chains.get(chain.lower())
        for info in self._chains.values():
            if info.chain_id == chain:
                return info
        return None

    def get_chain_by_eid(self, eid: int) -> Optional[ChainInfo]:
        """Find a chain by its cross-chain endpoint id."""
        for info in self._chains.values():
            if info.endpoint_id == eid:
                return info
        return None

    def require_chain(self, chain: ChainRef) -> ChainInfo:
        """Like get_chain, but raise UnknownChainError when missing."""
        info = self.get_chain(chain)
        if info is None:
            raise UnknownChainError(str(chain), self.chain_keys)
        return info

    # ======================
    # Tokens
    # ======================

    @property
    def tokens(self) -> tuple[TokenInfo, ...]:
        return self._tokens

    def get_tokens(self, chain: ChainRef) -> list[TokenInfo]:
        """Cached tokens for a chain key or chain id."""
        if isinstance(chain, str):
            key = chain.lower()
            return [t for t in self._tokens if t.chain_key == key]
        return [t for t in self._tokens if t.chain_id == chain]

    def find_token(self, chain: ChainRef, address: str) -> Optional[TokenInfo]:
        """Find a cached token by chain and address (case-insensitive)."""
        address = address.lower()
        for token in self.get_tokens(chain):
            if token.address.lower() == address:
                return token
        return None

    def get_token_decimals(self, token: TokenInfo) -> int:
        """Token decimals, falling back to the symbol table."""
        if is_native_token(token.address):
            return 18
        if token.decimals is not None:
            return token.decimals
        return infer_decimals(token.symbol)
