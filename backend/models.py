"""
Pydantic models for request/response validation.

Execute messages are a closed tagged union discriminated by `action`:

    {"action": "mint", "owner": "demeter", "token_uri": "https://..."}
    {"action": "transfer_nft", "recipient": "person", "token_id": "0"}

Expirations use the cw721 wire shape: {"never": {}}, {"at_height": 123},
{"at_time": "<nanos>"}; an omitted expiration means never.
"""
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from domain.constants import MAX_STORED_INT
from domain.extension import ExtensionInput


class RegistryBase(BaseModel):
    """Shared base — allows construction by Python name or alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class Coin(RegistryBase):
    """An amount of one denomination."""
    denom: str = Field(..., min_length=1, max_length=128)
    amount: int = Field(..., ge=0, le=MAX_STORED_INT, description="Amount in base units")

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


# ── Instantiate ─────────────────────────────────────────────────────

class InstantiateMsg(RegistryBase):
    """One-time setup of the collection and its issuance policy."""
    name: str = Field(..., min_length=1, max_length=200)
    symbol: str = Field(..., min_length=1, max_length=50)
    minter: Optional[str] = Field(
        default=None,
        description="Contract owner / authorized minter (defaults to the sender)",
    )
    withdraw_address: Optional[str] = None
    max_nfts_per_wallet: Optional[int] = Field(default=None, ge=0, le=MAX_STORED_INT)
    price_per_nft: Optional[Coin] = None
    max_supply: Optional[int] = Field(default=None, ge=0, le=MAX_STORED_INT)


# ── Execute messages ────────────────────────────────────────────────

class MintMsg(RegistryBase):
    action: Literal["mint"] = "mint"
    owner: str
    token_uri: Optional[str] = None
    extension: Optional[ExtensionInput] = None


class TransferNftMsg(RegistryBase):
    action: Literal["transfer_nft"] = "transfer_nft"
    recipient: str
    token_id: str


class SendNftMsg(RegistryBase):
    action: Literal["send_nft"] = "send_nft"
    contract: str
    token_id: str
    msg: str = Field("", description="Opaque base64 payload for the receiving contract")


class ApproveMsg(RegistryBase):
    action: Literal["approve"] = "approve"
    spender: str
    token_id: str
    expires: Optional[dict[str, Any]] = None


class RevokeMsg(RegistryBase):
    action: Literal["revoke"] = "revoke"
    spender: str
    token_id: str


class ApproveAllMsg(RegistryBase):
    action: Literal["approve_all"] = "approve_all"
    operator: str
    expires: Optional[dict[str, Any]] = None


class RevokeAllMsg(RegistryBase):
    action: Literal["revoke_all"] = "revoke_all"
    operator: str


class BurnMsg(RegistryBase):
    action: Literal["burn"] = "burn"
    token_id: str


class UpdateOwnershipMsg(RegistryBase):
    action: Literal["update_ownership"] = "update_ownership"
    ownership_action: Literal["transfer_ownership", "accept_ownership", "renounce_ownership"]
    new_owner: Optional[str] = None
    expiry: Optional[dict[str, Any]] = None


class ExtensionMsg(RegistryBase):
    action: Literal["extension"] = "extension"
    msg: Any = None


class SetWithdrawAddressMsg(RegistryBase):
    action: Literal["set_withdraw_address"] = "set_withdraw_address"
    address: str


class RemoveWithdrawAddressMsg(RegistryBase):
    action: Literal["remove_withdraw_address"] = "remove_withdraw_address"


class WithdrawFundsMsg(RegistryBase):
    action: Literal["withdraw_funds"] = "withdraw_funds"
    amount: Coin


ExecuteMsg = Annotated[
    Union[
        MintMsg,
        TransferNftMsg,
        SendNftMsg,
        ApproveMsg,
        RevokeMsg,
        ApproveAllMsg,
        RevokeAllMsg,
        BurnMsg,
        UpdateOwnershipMsg,
        ExtensionMsg,
        SetWithdrawAddressMsg,
        RemoveWithdrawAddressMsg,
        WithdrawFundsMsg,
    ],
    Field(discriminator="action"),
]


class ExecuteRequest(RegistryBase):
    """Body of POST /execute: the message plus funds attached to the call."""
    msg: ExecuteMsg
    funds: List[Coin] = Field(default_factory=list)


# ── Execute results ─────────────────────────────────────────────────

class Attribute(RegistryBase):
    key: str
    value: str


class BankSend(RegistryBase):
    """Payout instruction, settled outside the registry."""
    type: Literal["bank_send"] = "bank_send"
    to_address: str
    amount: List[Coin]


class ReceiveNft(RegistryBase):
    """Notification delivered to the contract an NFT was sent to."""
    type: Literal["receive_nft"] = "receive_nft"
    contract: str
    sender: str
    token_id: str
    msg: str


OutboundMessage = Annotated[Union[BankSend, ReceiveNft], Field(discriminator="type")]


class ExecuteResult(RegistryBase):
    action: str
    attributes: List[Attribute] = Field(default_factory=list)
    messages: List[OutboundMessage] = Field(default_factory=list)

    def attr(self, key: str) -> Optional[str]:
        """Value of the first attribute named `key`, if any."""
        for a in self.attributes:
            if a.key == key:
                return a.value
        return None


def make_result(action: str, *pairs: tuple[str, Any], messages: Optional[list] = None) -> ExecuteResult:
    """Build an ExecuteResult; attribute values are stringified."""
    return ExecuteResult(
        action=action,
        attributes=[Attribute(key="action", value=action)]
        + [Attribute(key=k, value=str(v)) for k, v in pairs],
        messages=messages or [],
    )


# ── Query responses ─────────────────────────────────────────────────

class ApprovalInfo(RegistryBase):
    spender: str
    expires: dict[str, Any]


class OwnerOfResponse(RegistryBase):
    owner: str
    approvals: List[ApprovalInfo]


class ApprovalResponse(RegistryBase):
    approval: ApprovalInfo


class ApprovalsResponse(RegistryBase):
    approvals: List[ApprovalInfo]


class OperatorResponse(RegistryBase):
    approval: ApprovalInfo


class OperatorsResponse(RegistryBase):
    operators: List[ApprovalInfo]


class NumTokensResponse(RegistryBase):
    count: int


class ContractInfoResponse(RegistryBase):
    name: str
    symbol: str


class NftInfoResponse(RegistryBase):
    token_uri: Optional[str] = None
    extension: Optional[dict[str, Any]] = None


class AllNftInfoResponse(RegistryBase):
    access: OwnerOfResponse
    info: NftInfoResponse


class TokensResponse(RegistryBase):
    tokens: List[str]


class MinterResponse(RegistryBase):
    minter: Optional[str] = None


class OwnershipResponse(RegistryBase):
    owner: Optional[str] = None
    pending_owner: Optional[str] = None
    pending_expiry: Optional[dict[str, Any]] = None


class MintConfigResponse(RegistryBase):
    max_supply: Optional[int] = None
    max_nfts_per_wallet: Optional[int] = None
    price_per_nft: Optional[Coin] = None


class MintedCountResponse(RegistryBase):
    wallet: str
    minted: int


class WithdrawAddressResponse(RegistryBase):
    address: Optional[str] = None
