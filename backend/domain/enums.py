"""
Domain enums (minimal set used for clarity in services).
"""

from enum import Enum


class ExpirationKind(str, Enum):
    NEVER = "never"
    AT_HEIGHT = "at_height"
    AT_TIME = "at_time"


class Action(str, Enum):
    """Action tag carried by every execute result."""
    INSTANTIATE = "instantiate"
    MINT = "mint"
    TRANSFER_NFT = "transfer_nft"
    SEND_NFT = "send_nft"
    APPROVE = "approve"
    REVOKE = "revoke"
    APPROVE_ALL = "approve_all"
    REVOKE_ALL = "revoke_all"
    BURN = "burn"
    UPDATE_OWNERSHIP = "update_ownership"
    SET_WITHDRAW_ADDRESS = "set_withdraw_address"
    REMOVE_WITHDRAW_ADDRESS = "remove_withdraw_address"
    WITHDRAW_FUNDS = "withdraw_funds"
    EXTENSION = "extension"
