from typing import Optional

from .enums import ErrorCode
from .errors import ConfigError, DataError
from .models import ADDRESS_LEN


def validate_seed(name: str, value: Optional[bytes]) -> None:
    if value is not None and len(value) != ADDRESS_LEN:
        raise ConfigError(f"{name} must be {ADDRESS_LEN} bytes", ErrorCode.WRONG_SEEDS)


def validate_transfer_args(
    network: str,
    address: str,
    *,
    max_network_size: int,
    max_address_size: int,
) -> None:
    if len(address.encode("utf-8")) > max_address_size:
        raise DataError(
            f"Address exceeds {max_address_size} bytes", ErrorCode.WRONG_ARGS_SIZE
        )
    if len(network.encode("utf-8")) > max_network_size:
        raise DataError(
            f"Network name exceeds {max_network_size} bytes", ErrorCode.WRONG_ARGS_SIZE
        )
