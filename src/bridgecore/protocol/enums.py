from enum import Enum, IntEnum


class ErrorCode(str, Enum):
    # ConfigError
    WRONG_SEEDS = "wrong_seeds"
    WRONG_NONCE = "wrong_nonce"
    WRONG_TOKEN_SEED = "wrong_token_seed"
    WRONG_TOKEN_ACCOUNT = "wrong_token_account"
    MAX_SEED_LENGTH_EXCEEDED = "max_seed_length_exceeded"

    # StateError
    ALREADY_IN_USE = "already_in_use"
    NOT_INITIALIZED = "not_initialized"

    # AuthError
    INVALID_SIGNATURE = "invalid_signature"
    WRONG_SIGNATURE = "wrong_signature"
    MISSING_COMMISSION = "missing_commission"
    WRONG_COMMISSION_PROGRAM = "wrong_commission_program"
    WRONG_COMMISSION_ACCOUNT = "wrong_commission_account"
    WRONG_COMMISSION_ARGUMENTS = "wrong_commission_arguments"
    WRONG_AUTHORITY = "wrong_authority"

    # DataError
    MALFORMED_PROOF = "malformed_proof"
    MALFORMED_PAYLOAD = "malformed_payload"
    WRONG_ARGS_SIZE = "wrong_args_size"
    WRONG_DATA_LEN = "wrong_data_len"
    NO_TOKEN_META = "no_token_meta"
    WRONG_METADATA_ACCOUNT = "wrong_metadata_account"

    # ResourceError
    INSUFFICIENT_BALANCE = "insufficient_balance"


class TokenKind(IntEnum):
    """Asset class of a deposit or withdrawal. Values are the on-wire byte."""

    NATIVE = 0
    FUNGIBLE = 1
    NON_FUNGIBLE = 2
