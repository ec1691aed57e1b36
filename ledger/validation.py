"""
Asset input validation.

Pure checks run before any ledger state is touched. Each check raises the
ledger error naming the offending input and returns the normalized value
otherwise; none of them depend on ledger height or caller.
"""

from typing import Any, Dict, Mapping, Union

from .exceptions import (
    InvalidCategoryError, InvalidCertificationError, InvalidMaxQuantityError,
    InvalidMetadataError, InvalidMinQuantityError, InvalidOriginError,
    InvalidOwnerError, InvalidQuantityError,
)
from .schema import (
    AssetMetadata, Category, NULL_IDENTITY,
    MAX_CERTIFICATION_LENGTH, MAX_LOCATION_LENGTH, MAX_ORIGIN_LENGTH, MAX_UNIT_LENGTH,
)


METADATA_LIMITS = {
    'origin': MAX_ORIGIN_LENGTH,
    'certification': MAX_CERTIFICATION_LENGTH,
    'location': MAX_LOCATION_LENGTH,
    'unit': MAX_UNIT_LENGTH,
}


def _text_within(value: Any, max_length: int) -> bool:
    return isinstance(value, str) and 1 <= len(value) <= max_length


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_category(category: Union[str, Category]) -> Category:
    """Resolve a category label, rejecting anything unrecognised."""
    try:
        return Category(category)
    except ValueError:
        raise InvalidCategoryError(f"Unknown asset category: {category!r}")


def validate_metadata(metadata: Union[AssetMetadata, Dict[str, Any]]) -> AssetMetadata:
    """Check all four metadata fields for presence and length."""
    if isinstance(metadata, AssetMetadata):
        fields = metadata.model_dump()
    elif isinstance(metadata, Mapping):
        fields = dict(metadata)
    else:
        raise InvalidMetadataError(f"Metadata must be a mapping, got {type(metadata).__name__}")

    for name, max_length in METADATA_LIMITS.items():
        if not _text_within(fields.get(name), max_length):
            raise InvalidMetadataError(
                f"Metadata field '{name}' must be 1-{max_length} characters"
            )

    return AssetMetadata(**{name: fields[name] for name in METADATA_LIMITS})


def validate_origin(origin: Any) -> str:
    if not _text_within(origin, MAX_ORIGIN_LENGTH):
        raise InvalidOriginError(f"Origin must be 1-{MAX_ORIGIN_LENGTH} characters")
    return origin


def validate_certification(certification: Any) -> str:
    if not _text_within(certification, MAX_CERTIFICATION_LENGTH):
        raise InvalidCertificationError(
            f"Certification must be 1-{MAX_CERTIFICATION_LENGTH} characters"
        )
    return certification


def _validate_positive(value: Any, label: str, error_cls) -> int:
    if not _positive_int(value):
        raise error_cls(f"{label} must be a positive integer, got {value!r}")
    return value


def validate_quantity(quantity: Any) -> int:
    return _validate_positive(quantity, "Quantity", InvalidQuantityError)


def validate_min_quantity(min_quantity: Any) -> int:
    return _validate_positive(min_quantity, "Minimum quantity", InvalidMinQuantityError)


def validate_max_quantity(max_quantity: Any) -> int:
    return _validate_positive(max_quantity, "Maximum quantity", InvalidMaxQuantityError)


def is_null_identity(identity: Any) -> bool:
    """True for the reserved burn identity and for blank identities."""
    return not isinstance(identity, str) or not identity.strip() or identity == NULL_IDENTITY


def validate_owner(owner: Any) -> str:
    if is_null_identity(owner):
        raise InvalidOwnerError(f"Owner identity is not allowed: {owner!r}")
    return owner


def validate_mint_request(
    category: Union[str, Category],
    metadata: Union[AssetMetadata, Dict[str, Any]],
    quantity: int,
    owner: str,
    min_quantity: int,
    max_quantity: int
) -> Dict[str, Any]:
    """
    Run the full mint validation suite.

    Checks run in a fixed order (category, metadata, quantity, owner,
    minimum, maximum) and stop at the first failure.

    Returns:
        Dictionary of normalized mint arguments
    """
    return {
        'category': validate_category(category),
        'metadata': validate_metadata(metadata),
        'quantity': validate_quantity(quantity),
        'owner': validate_owner(owner),
        'min_quantity': validate_min_quantity(min_quantity),
        'max_quantity': validate_max_quantity(max_quantity),
    }

