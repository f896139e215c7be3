from .enums import ErrorCode, TokenKind
from .errors import (
    BridgeError,
    ConfigError,
    StateError,
    AuthError,
    DataError,
    ResourceError,
)
from .models import (
    AdminRecord,
    WithdrawRecord,
    NativePayload,
    FungiblePayload,
    NonFungiblePayload,
    TransferPayload,
    ContentLeaf,
    TokenMetadata,
    SignedMetadata,
    UnitOperation,
)

__all__ = [
    "ErrorCode",
    "TokenKind",
    "BridgeError",
    "ConfigError",
    "StateError",
    "AuthError",
    "DataError",
    "ResourceError",
    "AdminRecord",
    "WithdrawRecord",
    "NativePayload",
    "FungiblePayload",
    "NonFungiblePayload",
    "TransferPayload",
    "ContentLeaf",
    "TokenMetadata",
    "SignedMetadata",
    "UnitOperation",
]
