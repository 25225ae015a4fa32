"""
Registry Service — instantiate and the execute dispatcher.

Every mutating call enters through execute(): it opens a block on the
chain clock, routes the message to exactly one handler, and commits once.
Handlers validate fully before mutating and only stage changes on the
session, and any error rolls the whole call back, so a failed call leaves
no trace (not even the block it opened).

Handlers return an ExecuteResult: action tag, attributes, and outbound
messages (payouts for withdraw, receiver notification for send_nft).
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import CollectionInfo
from domain.constants import ADDRESS_LOG_PREFIX, COLLECTION_ROW_ID
from domain.enums import Action
from domain.errors import AlreadyExistsError, DomainError, NotFoundError, ValidationError
from domain.expiration import BlockInfo, Expiration
from domain.extension import parse_extension
from models import (
    ApproveAllMsg,
    ApproveMsg,
    BurnMsg,
    Coin,
    ExecuteResult,
    ExtensionMsg,
    InstantiateMsg,
    MintMsg,
    ReceiveNft,
    RemoveWithdrawAddressMsg,
    RevokeAllMsg,
    RevokeMsg,
    SendNftMsg,
    SetWithdrawAddressMsg,
    TransferNftMsg,
    UpdateOwnershipMsg,
    WithdrawFundsMsg,
    make_result,
)
from services import (
    authorization_service,
    chain_clock,
    counter_ledger,
    mint_policy_service,
    ownership_service,
    token_store,
    treasury_service,
)
from utils.validators import validate_address

logger = logging.getLogger(__name__)


def _short(address: Optional[str]) -> str:
    return f"{(address or '')[:ADDRESS_LOG_PREFIX]}..."


async def may_load_collection_info(db: AsyncSession) -> Optional[CollectionInfo]:
    return await db.get(CollectionInfo, COLLECTION_ROW_ID)


async def get_collection_info(db: AsyncSession) -> CollectionInfo:
    info = await may_load_collection_info(db)
    if info is None:
        raise NotFoundError("Collection", "registry has not been instantiated")
    return info


async def _commit_or_rollback(db: AsyncSession, coro, label: str, sender: str):
    """Run one call's staged work; commit on success, roll back on any error."""
    try:
        result = await coro
        await db.commit()
        return result
    except DomainError as e:
        await db.rollback()
        logger.warning(
            f"{label} rejected for {_short(sender)}: "
            f"{e.__class__.__name__}: {e.message}"
        )
        raise
    except Exception:
        await db.rollback()
        raise


# ════════════════════════════════════════════════════════════════════
# Instantiate
# ════════════════════════════════════════════════════════════════════

async def _instantiate(
    db: AsyncSession, sender: str, msg: InstantiateMsg, block: Optional[BlockInfo]
) -> ExecuteResult:
    if block is None:
        await chain_clock.advance(db)

    if await may_load_collection_info(db) is not None:
        raise AlreadyExistsError("Collection", "registry is already instantiated")

    owner = msg.minter or sender
    await ownership_service.initialize_owner(db, owner)

    info = CollectionInfo(
        id=COLLECTION_ROW_ID,
        name=msg.name,
        symbol=msg.symbol,
        max_supply=msg.max_supply,
        max_nfts_per_wallet=msg.max_nfts_per_wallet,
        mint_price_amount=msg.price_per_nft.amount if msg.price_per_nft else None,
        mint_price_denom=msg.price_per_nft.denom if msg.price_per_nft else None,
        token_count=0,
        next_token_seq=0,
    )
    db.add(info)
    await db.flush()

    if msg.withdraw_address:
        await treasury_service.set_withdraw_address(db, info, owner, msg.withdraw_address)

    pairs = []
    if msg.max_supply is not None:
        pairs.append(("max_supply", msg.max_supply))
    if msg.max_nfts_per_wallet is not None:
        pairs.append(("max_nfts_per_wallet", msg.max_nfts_per_wallet))
    if msg.price_per_nft is not None:
        pairs.append(("price_per_nft", str(msg.price_per_nft)))

    logger.info(f"Registry instantiated: {msg.name} ({msg.symbol}), minter {_short(owner)}")
    return make_result(Action.INSTANTIATE.value, *pairs)


async def instantiate(
    db: AsyncSession,
    sender: str,
    msg: InstantiateMsg,
    block: Optional[BlockInfo] = None,
) -> ExecuteResult:
    """
    One-time setup: contract owner, collection info, policy, withdraw address.

    Raises:
        AlreadyExistsError: if the registry was already instantiated
    """
    return await _commit_or_rollback(
        db, _instantiate(db, sender, msg, block), "instantiate", sender
    )


async def bootstrap_from_settings(db: AsyncSession) -> Optional[ExecuteResult]:
    """Instantiate from .env on first startup; no-op once instantiated."""
    if not settings.bootstrap_enabled:
        return None
    if await may_load_collection_info(db) is not None:
        return None

    price = None
    if settings.mint_price_amount is not None:
        price = Coin(denom=settings.mint_price_denom, amount=settings.mint_price_amount)
    msg = InstantiateMsg(
        name=settings.collection_name,
        symbol=settings.collection_symbol,
        minter=settings.collection_minter,
        withdraw_address=settings.collection_withdraw_address,
        max_supply=settings.max_supply,
        max_nfts_per_wallet=settings.max_nfts_per_wallet,
        price_per_nft=price,
    )
    return await instantiate(db, settings.collection_minter, msg)


# ════════════════════════════════════════════════════════════════════
# Handlers
# ════════════════════════════════════════════════════════════════════

async def _mint(
    db: AsyncSession, block: BlockInfo, sender: str, msg: MintMsg, funds: list[Coin]
) -> ExecuteResult:
    info = await get_collection_info(db)
    await mint_policy_service.authorize_mint(db, info, msg.owner, funds)
    validate_address(msg.owner)
    extension = parse_extension(msg.extension)

    seq = info.next_token_seq
    token_id = str(seq)
    await token_store.create(
        db, token_id, seq=seq, owner=msg.owner,
        token_uri=msg.token_uri, extension=extension,
    )
    info.next_token_seq = seq + 1
    await counter_ledger.increment_on_mint(db, info, msg.owner)

    logger.info(f"Mint: token {token_id} to {_short(msg.owner)} by {_short(sender)}")
    return make_result(
        Action.MINT.value,
        ("minter", sender),
        ("owner", msg.owner),
        ("token_id", token_id),
    )


async def _move_token(
    db: AsyncSession, block: BlockInfo, sender: str, recipient: str, token_id: str
) -> None:
    """Shared by transfer_nft and send_nft: authorize, re-own, drop approvals."""
    token = await token_store.load(db, token_id)
    await authorization_service.can_transfer(db, sender, token, block)
    validate_address(recipient)
    previous = token.owner
    await token_store.set_owner(db, token, recipient)
    logger.info(
        f"Transfer: token {token_id} {_short(previous)} -> {_short(recipient)} "
        f"by {_short(sender)}"
    )


async def _transfer_nft(
    db: AsyncSession, block: BlockInfo, sender: str, msg: TransferNftMsg
) -> ExecuteResult:
    await _move_token(db, block, sender, msg.recipient, msg.token_id)
    return make_result(
        Action.TRANSFER_NFT.value,
        ("sender", sender),
        ("recipient", msg.recipient),
        ("token_id", msg.token_id),
    )


async def _send_nft(
    db: AsyncSession, block: BlockInfo, sender: str, msg: SendNftMsg
) -> ExecuteResult:
    await _move_token(db, block, sender, msg.contract, msg.token_id)
    notify = ReceiveNft(
        contract=msg.contract,
        sender=sender,
        token_id=msg.token_id,
        msg=msg.msg,
    )
    return make_result(
        Action.SEND_NFT.value,
        ("sender", sender),
        ("recipient", msg.contract),
        ("token_id", msg.token_id),
        messages=[notify],
    )


async def _approve(
    db: AsyncSession, block: BlockInfo, sender: str, msg: ApproveMsg
) -> ExecuteResult:
    expires = Expiration.from_json(msg.expires)
    await authorization_service.set_or_clear_token_approval(
        db, sender, msg.token_id, msg.spender, True, expires, block
    )
    logger.info(f"Approve: {_short(msg.spender)} on token {msg.token_id} ({expires})")
    return make_result(
        Action.APPROVE.value,
        ("sender", sender),
        ("spender", msg.spender),
        ("token_id", msg.token_id),
    )


async def _revoke(
    db: AsyncSession, block: BlockInfo, sender: str, msg: RevokeMsg
) -> ExecuteResult:
    await authorization_service.set_or_clear_token_approval(
        db, sender, msg.token_id, msg.spender, False, None, block
    )
    logger.info(f"Revoke: {_short(msg.spender)} on token {msg.token_id}")
    return make_result(
        Action.REVOKE.value,
        ("sender", sender),
        ("spender", msg.spender),
        ("token_id", msg.token_id),
    )


async def _approve_all(
    db: AsyncSession, block: BlockInfo, sender: str, msg: ApproveAllMsg
) -> ExecuteResult:
    expires = Expiration.from_json(msg.expires)
    await authorization_service.set_operator(db, sender, msg.operator, expires, block)
    return make_result(
        Action.APPROVE_ALL.value,
        ("sender", sender),
        ("operator", msg.operator),
    )


async def _revoke_all(
    db: AsyncSession, block: BlockInfo, sender: str, msg: RevokeAllMsg
) -> ExecuteResult:
    await authorization_service.clear_operator(db, sender, msg.operator)
    return make_result(
        Action.REVOKE_ALL.value,
        ("sender", sender),
        ("operator", msg.operator),
    )


async def _burn(
    db: AsyncSession, block: BlockInfo, sender: str, msg: BurnMsg
) -> ExecuteResult:
    info = await get_collection_info(db)
    token = await token_store.load(db, msg.token_id)
    await authorization_service.can_transfer(db, sender, token, block)

    await token_store.remove(db, token)
    await counter_ledger.decrement_on_burn(db, info)

    logger.info(f"Burn: token {msg.token_id} by {_short(sender)}")
    return make_result(
        Action.BURN.value,
        ("sender", sender),
        ("token_id", msg.token_id),
    )


async def _update_ownership(
    db: AsyncSession, block: BlockInfo, sender: str, msg: UpdateOwnershipMsg
) -> ExecuteResult:
    expiry = Expiration.from_json(msg.expiry) if msg.expiry is not None else None
    row = await ownership_service.update_ownership(
        db, sender, msg.ownership_action, block,
        new_owner=msg.new_owner, expiry=expiry,
    )
    pending = ownership_service.pending_expiry(row)
    return make_result(
        Action.UPDATE_OWNERSHIP.value,
        ("owner", row.owner or "none"),
        ("pending_owner", row.pending_owner or "none"),
        ("pending_expiry", str(pending) if pending else "none"),
    )


async def _set_withdraw_address(
    db: AsyncSession, block: BlockInfo, sender: str, msg: SetWithdrawAddressMsg
) -> ExecuteResult:
    info = await get_collection_info(db)
    address = await treasury_service.set_withdraw_address(db, info, sender, msg.address)
    return make_result(Action.SET_WITHDRAW_ADDRESS.value, ("address", address))


async def _remove_withdraw_address(
    db: AsyncSession, block: BlockInfo, sender: str, msg: RemoveWithdrawAddressMsg
) -> ExecuteResult:
    info = await get_collection_info(db)
    address = await treasury_service.remove_withdraw_address(db, info, sender)
    return make_result(Action.REMOVE_WITHDRAW_ADDRESS.value, ("address", address))


async def _withdraw_funds(
    db: AsyncSession, block: BlockInfo, sender: str, msg: WithdrawFundsMsg
) -> ExecuteResult:
    info = await get_collection_info(db)
    payout = treasury_service.withdraw(info, msg.amount)
    return make_result(
        Action.WITHDRAW_FUNDS.value,
        ("amount", msg.amount.amount),
        ("denom", msg.amount.denom),
        messages=[payout],
    )


async def _dispatch(
    db: AsyncSession, block: BlockInfo, sender: str, msg, funds: list[Coin]
) -> ExecuteResult:
    """One arm per message variant."""
    if isinstance(msg, MintMsg):
        return await _mint(db, block, sender, msg, funds)
    if isinstance(msg, TransferNftMsg):
        return await _transfer_nft(db, block, sender, msg)
    if isinstance(msg, SendNftMsg):
        return await _send_nft(db, block, sender, msg)
    if isinstance(msg, ApproveMsg):
        return await _approve(db, block, sender, msg)
    if isinstance(msg, RevokeMsg):
        return await _revoke(db, block, sender, msg)
    if isinstance(msg, ApproveAllMsg):
        return await _approve_all(db, block, sender, msg)
    if isinstance(msg, RevokeAllMsg):
        return await _revoke_all(db, block, sender, msg)
    if isinstance(msg, BurnMsg):
        return await _burn(db, block, sender, msg)
    if isinstance(msg, UpdateOwnershipMsg):
        return await _update_ownership(db, block, sender, msg)
    if isinstance(msg, ExtensionMsg):
        return ExecuteResult(action=Action.EXTENSION.value)
    if isinstance(msg, SetWithdrawAddressMsg):
        return await _set_withdraw_address(db, block, sender, msg)
    if isinstance(msg, RemoveWithdrawAddressMsg):
        return await _remove_withdraw_address(db, block, sender, msg)
    if isinstance(msg, WithdrawFundsMsg):
        return await _withdraw_funds(db, block, sender, msg)
    raise ValidationError(f"unsupported message type {type(msg).__name__}", field="msg")


async def _run(
    db: AsyncSession,
    sender: str,
    msg,
    funds: list[Coin],
    block: Optional[BlockInfo],
) -> ExecuteResult:
    if block is None:
        block = await chain_clock.advance(db)
    return await _dispatch(db, block, sender, msg, funds)


async def execute(
    db: AsyncSession,
    sender: str,
    msg,
    funds: Optional[list[Coin]] = None,
    block: Optional[BlockInfo] = None,
) -> ExecuteResult:
    """
    Execute one message as `sender` with `funds` attached.

    `block` overrides the chain clock (the environment's "now"); by default
    the clock advances one block per call.
    """
    label = getattr(msg, "action", type(msg).__name__)
    return await _commit_or_rollback(
        db, _run(db, sender, msg, funds or [], block), label, sender
    )
