"""
Bridge Processor

Request orchestration for one bridge deployment. Every operation runs as a
single execution unit over the account store and the ledger: all of its
effects commit together, or the unit rolls back and the BridgeError
propagates to the caller.

Deposits lock or burn assets on this chain and rely on a commission charge
bundled immediately before them. Withdrawals release or mint assets against
a merkle root signed by the authority key, and redeem each origin once.

Usage:
    processor = BridgeProcessor(program_id, admin_seeds, store, ledger)
    processor.initialize_admin(InitializeAdminRequest(admin_seeds, key, commission))
    receipt = processor.withdraw_native(request)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from bridgecore.commission.checker import CommissionChecker
from bridgecore.core.settings import BridgeSettings, get_settings
from bridgecore.core.unit import ExecutionUnit
from bridgecore.crypto.leaf import ContentLeafEncoder, strip_padding
from bridgecore.crypto.merkle import MerkleProofVerifier
from bridgecore.crypto.signature import SignatureVerifier
from bridgecore.ledger.capabilities import CoTransactionInspector, Ledger
from bridgecore.protocol.enums import ErrorCode, TokenKind
from bridgecore.protocol.errors import BridgeError, ConfigError, DataError, ResourceError
from bridgecore.protocol.models import (
    AdminRecord,
    CollectionReceipt,
    ContentLeaf,
    DepositFungibleRequest,
    DepositNativeRequest,
    DepositNonFungibleRequest,
    DepositReceipt,
    FungiblePayload,
    InitializeAdminRequest,
    MintCollectionRequest,
    NativePayload,
    NonFungiblePayload,
    RotateKeyRequest,
    SignedMetadata,
    TokenMetadata,
    TransferPayload,
    WithdrawFungibleRequest,
    WithdrawNativeRequest,
    WithdrawNonFungibleRequest,
    WithdrawReceipt,
    WithdrawRecord,
)
from bridgecore.protocol.validators import validate_seed, validate_transfer_args
from bridgecore.state.addresses import AddressDeriver, ProgramAddressDeriver
from bridgecore.state.admin import AdminKeyStore
from bridgecore.state.replay import ReplayGuard
from bridgecore.state.store import AccountStore

logger = logging.getLogger(__name__)


class BridgeProcessor:
    def __init__(
        self,
        program_id: bytes,
        admin_seeds: bytes,
        store: AccountStore,
        ledger: Ledger,
        deriver: Optional[AddressDeriver] = None,
        settings: Optional[BridgeSettings] = None,
        verifier: Optional[SignatureVerifier] = None,
    ) -> None:
        validate_seed("admin_seeds", admin_seeds)
        self.program_id = program_id
        self._store = store
        self._ledger = ledger
        self._deriver = deriver or ProgramAddressDeriver()
        self._settings = settings or get_settings()
        self._verifier = verifier or SignatureVerifier()

        protocol = self._settings.protocol
        self.admin_address = self._deriver.derive((admin_seeds,), program_id)
        self.admin = AdminKeyStore(store, self.admin_address, program_id, self._verifier)
        self.replay_guard = ReplayGuard(
            store,
            self._deriver,
            program_id,
            domain_seed=protocol.withdraw_seed.encode("utf-8"),
        )
        self.commission = CommissionChecker(
            self._deriver,
            admin_seed=protocol.commission_admin_seed.encode("utf-8"),
        )
        self._encoder = ContentLeafEncoder(protocol.network_tag)
        self._merkle = MerkleProofVerifier()

        logger.debug("Bridge admin for program %s at %s", program_id.hex(), self.admin_address.hex())

    # ------------------------------------------------------------------
    # Unit plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _instruction(self, name: str) -> Iterator[None]:
        logger.info("Instruction: %s", name)
        try:
            with ExecutionUnit(self._store, self._ledger):
                yield
        except BridgeError as e:
            logger.warning("%s rejected [%s]: %s", name, e.code.value, e)
            raise

    def _check_seeds(self, seeds: bytes) -> None:
        validate_seed("seeds", seeds)
        if self._deriver.derive((seeds,), self.program_id) != self.admin_address:
            raise ConfigError("Seeds do not derive the bridge admin", ErrorCode.WRONG_SEEDS)

    def _load_admin(self, seeds: bytes) -> AdminRecord:
        self._check_seeds(seeds)
        return self.admin.load()

    def _check_token_seed(self, token_seed: bytes, mint: bytes) -> None:
        if self._deriver.derive((token_seed,), self.program_id) != mint:
            raise ConfigError("Mint is not derived from token seed", ErrorCode.WRONG_TOKEN_SEED)

    def _check_transfer_args(self, network_to: str, receiver_address: str) -> None:
        protocol = self._settings.protocol
        validate_transfer_args(
            network_to,
            receiver_address,
            max_network_size=protocol.max_network_size,
            max_address_size=protocol.max_address_size,
        )

    def _custody_account(self, mint: bytes) -> bytes:
        """Bridge-owned associated account for mint, created on demand."""
        address = self._ledger.associated_address(self.admin_address, mint)
        if not self._ledger.has_account(address):
            logger.debug("Creating bridge associated account for %s", mint.hex())
            self._ledger.create_associated_account(self.admin_address, mint)
        return address

    def _holder_account(self, owner: bytes, mint: bytes) -> bytes:
        address = self._ledger.associated_address(owner, mint)
        if not self._ledger.has_account(address):
            self._ledger.create_associated_account(owner, mint)
        return address

    def _authorize(
        self,
        admin: AdminRecord,
        origin: bytes,
        receiver: bytes,
        payload: TransferPayload,
        path: List[bytes],
        signature: bytes,
        recovery_id: int,
    ) -> bytes:
        """Fold the leaf to its root and check the authority signed it. Returns the root."""
        leaf = ContentLeaf(
            origin=origin,
            receiver=receiver,
            destination_program=self.program_id,
            payload=payload,
        )
        root = self._merkle.compute_root(self._encoder.hash(leaf), path)
        logger.debug("Withdrawal root %s", root.hex())
        self._verifier.verify(root, signature, recovery_id, admin.authority_key)
        return root

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def initialize_admin(self, request: InitializeAdminRequest) -> AdminRecord:
        with self._instruction("initialize admin"):
            self._check_seeds(request.seeds)
            return self.admin.initialize(request.authority_key, request.commission_program)

    def rotate_key(self, request: RotateKeyRequest) -> AdminRecord:
        with self._instruction("transfer ownership"):
            self._check_seeds(request.seeds)
            return self.admin.rotate_key(request.new_key, request.signature, request.recovery_id)

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    def deposit_native(
        self,
        request: DepositNativeRequest,
        inspector: CoTransactionInspector,
    ) -> DepositReceipt:
        with self._instruction("deposit native"):
            self._check_transfer_args(request.network_to, request.receiver_address)
            admin = self._load_admin(request.seeds)
            self.commission.verify(inspector, self.admin_address, admin, TokenKind.NATIVE, request.amount)

            self._ledger.transfer_native(request.owner, self.admin_address, request.amount)

            return DepositReceipt(
                token_kind=TokenKind.NATIVE,
                owner=request.owner,
                amount=request.amount,
                network_to=request.network_to,
                receiver_address=request.receiver_address,
            )

    def deposit_fungible(
        self,
        request: DepositFungibleRequest,
        inspector: CoTransactionInspector,
    ) -> DepositReceipt:
        with self._instruction("deposit ft"):
            return self._deposit_token(
                TokenKind.FUNGIBLE,
                request.seeds,
                request.owner,
                request.mint,
                request.network_to,
                request.receiver_address,
                request.amount,
                request.token_seed,
                inspector,
            )

    def deposit_non_fungible(
        self,
        request: DepositNonFungibleRequest,
        inspector: CoTransactionInspector,
    ) -> DepositReceipt:
        with self._instruction("deposit nft"):
            return self._deposit_token(
                TokenKind.NON_FUNGIBLE,
                request.seeds,
                request.owner,
                request.mint,
                request.network_to,
                request.receiver_address,
                1,
                request.token_seed,
                inspector,
            )

    def _deposit_token(
        self,
        kind: TokenKind,
        seeds: bytes,
        owner: bytes,
        mint: bytes,
        network_to: str,
        receiver_address: str,
        amount: int,
        token_seed: Optional[bytes],
        inspector: CoTransactionInspector,
    ) -> DepositReceipt:
        self._check_transfer_args(network_to, receiver_address)
        admin = self._load_admin(seeds)
        self.commission.verify(inspector, self.admin_address, admin, kind, amount)

        custody = self._custody_account(mint)
        source = self._ledger.associated_address(owner, mint)

        # Wrapped assets go home by burning; native assets stay in custody.
        burned = token_seed is not None
        if burned:
            self._check_token_seed(token_seed, mint)
            logger.debug("Burning %d of %s", amount, mint.hex())
            self._ledger.burn_asset(source, mint, owner, amount)
        else:
            logger.debug("Transferring %d of %s into custody", amount, mint.hex())
            self._ledger.transfer_asset(source, custody, owner, amount)

        return DepositReceipt(
            token_kind=kind,
            owner=owner,
            amount=amount,
            network_to=network_to,
            receiver_address=receiver_address,
            mint=mint,
            burned=burned,
        )

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def withdraw_native(self, request: WithdrawNativeRequest) -> WithdrawReceipt:
        with self._instruction("withdraw native"):
            admin = self._load_admin(request.seeds)
            # Replayed origins fail before any other check.
            address = self.replay_guard.claim(request.origin, request.withdraw_address)
            root = self._authorize(
                admin,
                request.origin,
                request.receiver,
                NativePayload(amount=request.amount),
                request.path,
                request.signature,
                request.recovery_id,
            )

            balance = self._ledger.native_balance(self.admin_address)
            if balance < request.amount:
                raise ResourceError(
                    f"Bridge holds {balance}, withdrawal needs {request.amount}",
                    ErrorCode.INSUFFICIENT_BALANCE,
                )
            self._ledger.transfer_native(self.admin_address, request.receiver, request.amount)

            record = self.replay_guard.finalize(
                address,
                WithdrawRecord(
                    token_kind=TokenKind.NATIVE,
                    origin=request.origin,
                    amount=request.amount,
                    receiver=request.receiver,
                ),
            )
            return WithdrawReceipt(withdraw_address=address, record=record, root=root)

    def withdraw_fungible(self, request: WithdrawFungibleRequest) -> WithdrawReceipt:
        with self._instruction("withdraw ft"):
            admin = self._load_admin(request.seeds)
            address = self.replay_guard.claim(request.origin, request.withdraw_address)
            if request.token_seed is not None:
                self._ensure_wrapped_mint(request.token_seed, request.mint, request.signed_metadata)

            metadata = self._read_metadata(request.mint)
            payload = FungiblePayload(
                mint=request.mint,
                amount=request.amount,
                name=strip_padding(metadata.name),
                symbol=strip_padding(metadata.symbol),
                uri=strip_padding(metadata.uri),
                decimals=self._ledger.mint_decimals(request.mint),
            )
            root = self._authorize(
                admin,
                request.origin,
                request.receiver,
                payload,
                request.path,
                request.signature,
                request.recovery_id,
            )

            return self._release_token(
                TokenKind.FUNGIBLE,
                request.origin,
                request.receiver,
                request.mint,
                request.amount,
                address,
                root,
            )

    def withdraw_non_fungible(self, request: WithdrawNonFungibleRequest) -> WithdrawReceipt:
        with self._instruction("withdraw nft"):
            admin = self._load_admin(request.seeds)
            address = self.replay_guard.claim(request.origin, request.withdraw_address)
            if request.token_seed is not None:
                self._ensure_wrapped_mint(request.token_seed, request.mint, request.signed_metadata)

            metadata = self._read_metadata(request.mint)
            name, symbol = metadata.name, metadata.symbol
            if metadata.collection is not None:
                # A collection's name and symbol stand in for the token's own.
                collection = self._read_metadata(metadata.collection)
                name, symbol = collection.name, collection.symbol

            payload = NonFungiblePayload(
                mint=request.mint,
                collection=metadata.collection,
                name=strip_padding(name),
                symbol=strip_padding(symbol),
                uri=strip_padding(metadata.uri),
            )
            root = self._authorize(
                admin,
                request.origin,
                request.receiver,
                payload,
                request.path,
                request.signature,
                request.recovery_id,
            )

            return self._release_token(
                TokenKind.NON_FUNGIBLE,
                request.origin,
                request.receiver,
                request.mint,
                1,
                address,
                root,
            )

    def _read_metadata(self, mint: bytes) -> TokenMetadata:
        metadata = self._ledger.read_metadata(mint)
        if metadata is None:
            raise DataError(f"No metadata record for {mint.hex()}", ErrorCode.WRONG_METADATA_ACCOUNT)
        return metadata

    def _ensure_wrapped_mint(
        self,
        token_seed: bytes,
        mint: bytes,
        signed_metadata: Optional[SignedMetadata],
    ) -> None:
        """Create the wrapped mint and its metadata the first time it is withdrawn."""
        self._check_token_seed(token_seed, mint)
        if signed_metadata is None:
            raise DataError("Wrapped token withdrawal requires signed metadata", ErrorCode.NO_TOKEN_META)
        if self._ledger.mint_exists(mint):
            return

        logger.info("Creating wrapped mint %s", mint.hex())
        self._ledger.create_mint(mint, self.admin_address, signed_metadata.decimals)
        self._ledger.create_metadata_record(
            mint,
            signed_metadata.name,
            signed_metadata.symbol,
            signed_metadata.uri,
        )

    def _release_token(
        self,
        kind: TokenKind,
        origin: bytes,
        receiver: bytes,
        mint: bytes,
        amount: int,
        address: bytes,
        root: bytes,
    ) -> WithdrawReceipt:
        custody = self._custody_account(mint)
        destination = self._holder_account(receiver, mint)

        minted = 0
        held = self._ledger.asset_balance(custody)
        if held < amount:
            minted = amount - held
            logger.debug("Minting %d of %s to bridge custody", minted, mint.hex())
            self._ledger.mint_asset(mint, custody, self.admin_address, minted)

        self._ledger.transfer_asset(custody, destination, self.admin_address, amount)

        record = self.replay_guard.finalize(
            address,
            WithdrawRecord(
                token_kind=kind,
                origin=origin,
                mint=mint,
                amount=amount,
                receiver=receiver,
            ),
        )
        return WithdrawReceipt(withdraw_address=address, record=record, root=root, minted=minted)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def mint_collection(self, request: MintCollectionRequest) -> CollectionReceipt:
        with self._instruction("create collection"):
            self._load_admin(request.seeds)
            mint = self.derived_mint(request.token_seed)
            if request.mint is not None and request.mint != mint:
                raise ConfigError("Mint is not derived from token seed", ErrorCode.WRONG_TOKEN_SEED)

            self._ledger.create_mint(mint, self.admin_address, 0)
            custody = self._ledger.create_associated_account(self.admin_address, mint)
            self._ledger.mint_asset(mint, custody, self.admin_address, 1)
            self._ledger.create_metadata_record(
                mint,
                request.metadata.name,
                request.metadata.symbol,
                request.metadata.uri,
            )
            return CollectionReceipt(mint=mint, custody_account=custody, metadata=request.metadata)

    def derived_mint(self, token_seed: bytes) -> bytes:
        """Address of the wrapped mint for token_seed."""
        return self._deriver.derive((token_seed,), self.program_id)
