"""Payment verification across the chain and card rails."""

import logging
from dataclasses import dataclass
from typing import Protocol

from vision_mint.domain.errors import ErrorKind, Failure
from vision_mint.domain.payments import (
    ChainProof,
    CheckoutProof,
    IntentProof,
    PaymentProof,
    PaymentVerified,
    PricedAction,
)

logger = logging.getLogger(__name__)


class ChainClient(Protocol):
    """Interface for chain RPC lookups."""

    async def get_transaction(self, signature: str) -> dict[str, object] | None:
        """Return the confirmed, parsed transaction or None if unknown."""


class CardProcessorClient(Protocol):
    """Interface for card processor interactions."""

    async def retrieve_payment_intent(self, intent_id: str) -> dict[str, object] | None:
        """Return a payment intent as a plain dict, or None if unknown."""

    async def retrieve_checkout_session(
        self, session_id: str
    ) -> dict[str, object] | None:
        """Return a checkout session as a plain dict, or None if unknown."""

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        description: str,
        metadata: dict[str, str],
    ) -> dict[str, object]:
        """Create a payment intent and return it."""

    async def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        product_name: str,
        product_description: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> dict[str, object]:
        """Create a hosted checkout session and return it."""

    def construct_webhook_event(
        self, payload: bytes, signature: str | None
    ) -> dict[str, object] | None:
        """Verify a signed webhook payload; None means the signature is invalid."""


@dataclass
class PaymentVerifier:
    """Authenticates a claimed payment and extracts its proof token.

    Rejections are returned as `Failure`; only network problems raise.
    """

    chain_client: ChainClient
    card_client: CardProcessorClient
    treasury_accounts: tuple[str, ...] = ()
    payment_mint: str | None = None

    async def verify(
        self, proof: PaymentProof, wallet: str, action: PricedAction
    ) -> PaymentVerified | Failure:
        """Verify a proof for the wallet and priced action."""
        if isinstance(proof, IntentProof):
            result = await self._verify_intent(proof, wallet, action)
        elif isinstance(proof, CheckoutProof):
            result = await self._verify_checkout(proof, wallet, action)
        else:
            result = await self._verify_chain(proof, wallet)
        if isinstance(result, Failure):
            logger.info(
                "Payment rejected",
                extra={
                    "wallet": wallet,
                    "proof": proof.token,
                    "reason": result.message,
                },
            )
        return result

    async def _verify_chain(
        self, proof: ChainProof, wallet: str
    ) -> PaymentVerified | Failure:
        tx = await self.chain_client.get_transaction(proof.signature)
        if not tx:
            return Failure(ErrorKind.PAYMENT_NOT_COMPLETED, "Transaction not found")
        meta = _as_dict(tx.get("meta"))
        if meta.get("err") is not None:
            return Failure(
                ErrorKind.PAYMENT_NOT_COMPLETED, "Transaction failed on-chain"
            )

        message = _as_dict(_as_dict(tx.get("transaction")).get("message"))
        account_keys = _account_keys(message)
        if self.payment_mint:
            transfer_error = self._check_token_transfer(meta)
        else:
            transfer_error = self._check_native_transfer(meta, account_keys)
        if transfer_error:
            return Failure(ErrorKind.PAYMENT_NOT_COMPLETED, transfer_error)

        if wallet not in _signers(message, account_keys):
            return Failure(
                ErrorKind.PAYMENT_METADATA_MISMATCH,
                "Transaction not signed by claimed wallet",
            )
        blockhash = message.get("recentBlockhash")
        return PaymentVerified(
            proof_token=proof.signature,
            entropy=str(blockhash) if blockhash else None,
        )

    def _check_native_transfer(
        self, meta: dict[str, object], account_keys: list[str]
    ) -> str | None:
        pre = _as_list(meta.get("preBalances"))
        post = _as_list(meta.get("postBalances"))
        for treasury in self.treasury_accounts:
            if treasury not in account_keys:
                continue
            index = account_keys.index(treasury)
            if index < len(pre) and index < len(post) and post[index] > pre[index]:
                return None
        return "No transfer to treasury found"

    def _check_token_transfer(self, meta: dict[str, object]) -> str | None:
        post = [
            _as_dict(balance)
            for balance in _as_list(meta.get("postTokenBalances"))
            if _as_dict(balance).get("mint") == self.payment_mint
        ]
        if not post:
            return "No token transfer found for expected mint"
        if not self.treasury_accounts:
            return None
        pre_amounts = {
            _as_dict(balance).get("accountIndex"): _token_amount(_as_dict(balance))
            for balance in _as_list(meta.get("preTokenBalances"))
            if _as_dict(balance).get("mint") == self.payment_mint
        }
        for balance in post:
            if balance.get("owner") not in self.treasury_accounts:
                continue
            before = pre_amounts.get(balance.get("accountIndex"), 0)
            if _token_amount(balance) > before:
                return None
        return "No token transfer to treasury found"

    async def _verify_checkout(
        self, proof: CheckoutProof, wallet: str, action: PricedAction
    ) -> PaymentVerified | Failure:
        session = await self.card_client.retrieve_checkout_session(proof.session_id)
        if not session or session.get("payment_status") != "paid":
            return Failure(ErrorKind.PAYMENT_NOT_COMPLETED, "Payment not completed")
        metadata = _as_dict(session.get("metadata"))
        if metadata.get("wallet") != wallet:
            return Failure(
                ErrorKind.PAYMENT_METADATA_MISMATCH, "Payment metadata mismatch"
            )
        purpose = metadata.get("type")
        if purpose is not None and purpose != action.value:
            return Failure(
                ErrorKind.PAYMENT_METADATA_MISMATCH, "Payment metadata mismatch"
            )
        return PaymentVerified(proof_token=proof.session_id)

    async def _verify_intent(
        self, proof: IntentProof, wallet: str, action: PricedAction
    ) -> PaymentVerified | Failure:
        intent = await self.card_client.retrieve_payment_intent(proof.intent_id)
        if not intent or intent.get("status") != "succeeded":
            return Failure(ErrorKind.PAYMENT_NOT_COMPLETED, "Payment not completed")
        metadata = _as_dict(intent.get("metadata"))
        if metadata.get("wallet") != wallet or metadata.get("type") != action.value:
            return Failure(
                ErrorKind.PAYMENT_METADATA_MISMATCH, "Payment metadata mismatch"
            )
        return PaymentVerified(proof_token=proof.intent_id)


def _as_dict(value: object) -> dict[str, object]:
    return value if isinstance(value, dict) else {}


def _as_list(value: object) -> list:
    return value if isinstance(value, list) else []


def _account_keys(message: dict[str, object]) -> list[str]:
    """Return account addresses for parsed (dict) or raw (str) key lists."""
    keys = []
    for key in _as_list(message.get("accountKeys")):
        if isinstance(key, dict):
            keys.append(str(key.get("pubkey", "")))
        else:
            keys.append(str(key))
    return keys


def _signers(message: dict[str, object], account_keys: list[str]) -> set[str]:
    raw_keys = _as_list(message.get("accountKeys"))
    if raw_keys and all(isinstance(key, dict) for key in raw_keys):
        return {
            str(key.get("pubkey", "")) for key in raw_keys if key.get("signer") is True
        }
    header = _as_dict(message.get("header"))
    required = header.get("numRequiredSignatures", 0)
    count = required if isinstance(required, int) else 0
    return set(account_keys[:count])


def _token_amount(balance: dict[str, object]) -> int:
    amount = _as_dict(balance.get("uiTokenAmount")).get("amount", "0")
    try:
        return int(str(amount))
    except ValueError:
        return 0
