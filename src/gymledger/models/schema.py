"""
Field mapping tables between domain objects and their persisted shapes.

Every domain field is listed exactly once with two spellings: the record
key used by the fallback cache (camelCase, the format older installations
already have on disk) and the wire column used by the primary store
(snake_case). Codecs below are driven only by these tables.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import fields
from datetime import date
from decimal import Decimal
from decimal import InvalidOperation
from enum import Enum
from typing import Any
from typing import TypeVar

from gymledger.exceptions import SchemaError
from gymledger.models.gym_settings import GymSettings
from gymledger.models.member import Gender
from gymledger.models.member import Member
from gymledger.models.member import MemberStatus
from gymledger.models.member import RenewDuration
from gymledger.models.payment import Payment
from gymledger.models.payment import PaymentMethod
from gymledger.models.payment import PaymentType


T = TypeVar('T')


@dataclass(frozen=True)
class FieldSpec:
    """One domain field and how it is spelled and typed when persisted."""
    attribute: str
    record_key: str
    wire_column: str
    kind: Any = str
    required: bool = True


MEMBER_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec('id', 'id', 'id'),
    FieldSpec('member_number', 'memberNumber', 'member_number'),
    FieldSpec('first_name', 'firstName', 'first_name'),
    FieldSpec('last_name', 'lastName', 'last_name'),
    FieldSpec('gender', 'gender', 'gender', Gender),
    FieldSpec('date_of_birth', 'dateOfBirth', 'date_of_birth', date),
    FieldSpec('nationality', 'nationality', 'nationality'),
    FieldSpec('mobile_number', 'mobileNumber', 'mobile_number'),
    FieldSpec('address', 'address', 'address'),
    FieldSpec('email', 'email', 'email'),
    FieldSpec('renew_duration', 'renewDuration', 'renew_duration', RenewDuration),
    FieldSpec('registration_date', 'registrationDate', 'registration_date', date),
    FieldSpec('starting_date', 'startingDate', 'starting_date', date),
    FieldSpec('expiry_date', 'expiryDate', 'expiry_date', date),
    FieldSpec('emergency_contact_name', 'emergencyContactName', 'emergency_contact_name'),
    FieldSpec('emergency_contact_phone', 'emergencyContactPhone', 'emergency_contact_phone'),
    FieldSpec('emergency_contact_relationship', 'emergencyContactRelationship', 'emergency_contact_relationship'),
    FieldSpec('membership_cost', 'membershipCost', 'membership_cost', Decimal),
    FieldSpec('payment_date', 'paymentDate', 'payment_date', date),
    FieldSpec('id_number', 'idNumber', 'id_number'),
    FieldSpec('status', 'status', 'status', MemberStatus),
    FieldSpec('profile_image', 'profileImage', 'profile_image', required=False),
    FieldSpec('notes', 'notes', 'notes', required=False),
)

PAYMENT_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec('id', 'id', 'id'),
    FieldSpec('member_id', 'memberId', 'member_id'),
    FieldSpec('amount', 'amount', 'amount', Decimal),
    FieldSpec('date', 'date', 'date', date),
    FieldSpec('type', 'type', 'type', PaymentType),
    FieldSpec('method', 'method', 'method', PaymentMethod),
    FieldSpec('description', 'description', 'description', required=False),
)

SETTINGS_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec('gym_name', 'gymName', 'gym_name'),
    FieldSpec('address', 'address', 'address'),
    FieldSpec('phone', 'phone', 'phone'),
    FieldSpec('email', 'email', 'email'),
    FieldSpec('membership_prices', 'membershipPrices', 'membership_prices', dict),
)

SCHEMAS: dict[type, tuple[FieldSpec, ...]] = {
    Member: MEMBER_FIELDS,
    Payment: PAYMENT_FIELDS,
    GymSettings: SETTINGS_FIELDS,
}


def check_schema(model: type, specs: tuple[FieldSpec, ...]) -> None:
    """Raise SchemaError unless ``specs`` covers every dataclass field exactly once."""
    attributes = [spec.attribute for spec in specs]
    declared = [f.name for f in fields(model)]
    if sorted(attributes) != sorted(declared) or len(set(attributes)) != len(attributes):
        raise SchemaError(
            f"Field table for {model.__name__} does not match the model",
            {"missing": sorted(set(declared) - set(attributes)), "extra": sorted(set(attributes) - set(declared))}
        )
    for key in ('record_key', 'wire_column'):
        names = [getattr(spec, key) for spec in specs]
        if len(set(names)) != len(names):
            raise SchemaError(f"Duplicate {key} in field table for {model.__name__}")


for _model, _specs in SCHEMAS.items():
    check_schema(_model, _specs)


def decimal_to_json(value: Decimal) -> int | float | str:
    """Encode an amount for JSON without changing its value.

    Whole amounts become ints and amounts that survive a float round trip
    become floats. Anything finer is written as its decimal text, which
    PostgREST accepts for numeric columns and ``to_decimal`` reads back
    unchanged.
    """
    if value == value.to_integral_value():
        return int(value)
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return format(value, 'f')


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise SchemaError(f"Not a number: {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise SchemaError(f"Not a number: {value!r}") from e


def _decode_prices(value: Any) -> dict[RenewDuration, Decimal]:
    if not isinstance(value, Mapping):
        raise SchemaError(f"Price table must be a mapping, got {type(value).__name__}")
    prices: dict[RenewDuration, Decimal] = {}
    for key, amount in value.items():
        try:
            duration = RenewDuration(key)
        except ValueError:
            # Unknown tiers from newer installations are ignored
            continue
        prices[duration] = to_decimal(amount)
    return prices


def _encode_prices(value: Mapping[RenewDuration, Decimal]) -> dict[str, int | float | str]:
    return {RenewDuration(key).value: decimal_to_json(to_decimal(amount)) for key, amount in value.items()}


def _encode(spec: FieldSpec, value: Any) -> Any:
    if value is None:
        return None
    if spec.kind is date:
        return value.isoformat()
    if spec.kind is Decimal:
        return decimal_to_json(value)
    if spec.kind is dict:
        return _encode_prices(value)
    if isinstance(spec.kind, type) and issubclass(spec.kind, Enum):
        return value.value
    return value


def _decode(spec: FieldSpec, value: Any) -> Any:
    if value is None:
        if spec.required:
            raise SchemaError(f"Missing value for {spec.attribute}", {"field": spec.attribute})
        return None
    try:
        if spec.kind is date:
            if isinstance(value, date):
                return value
            return date.fromisoformat(str(value)[:10])
        if spec.kind is Decimal:
            return to_decimal(value)
        if spec.kind is dict:
            return _decode_prices(value)
        if isinstance(spec.kind, type) and issubclass(spec.kind, Enum):
            return spec.kind(value)
    except ValueError as e:
        raise SchemaError(f"Invalid value for {spec.attribute}: {value!r}", {"field": spec.attribute}) from e
    if not isinstance(value, str):
        raise SchemaError(f"Expected text for {spec.attribute}, got {type(value).__name__}", {"field": spec.attribute})
    return value


def _dump(obj: Any, key: str) -> dict[str, Any]:
    specs = SCHEMAS[type(obj)]
    return {getattr(spec, key): _encode(spec, getattr(obj, spec.attribute)) for spec in specs}


def _load(model: type[T], data: Mapping[str, Any], key: str) -> T:
    if not isinstance(data, Mapping):
        raise SchemaError(f"{model.__name__} record must be a mapping, got {type(data).__name__}")
    values = {spec.attribute: _decode(spec, data.get(getattr(spec, key))) for spec in SCHEMAS[model]}
    return model(**values)


def to_wire(obj: Member | Payment | GymSettings) -> dict[str, Any]:
    """Domain object to primary store row (snake_case columns)."""
    return _dump(obj, 'wire_column')


def from_wire(model: type[T], row: Mapping[str, Any]) -> T:
    """Primary store row to domain object; extra columns are ignored."""
    return _load(model, row, 'wire_column')


def to_record(obj: Member | Payment | GymSettings) -> dict[str, Any]:
    """Domain object to fallback cache record (camelCase keys)."""
    return _dump(obj, 'record_key')


def from_record(model: type[T], record: Mapping[str, Any]) -> T:
    """Fallback cache record to domain object."""
    return _load(model, record, 'record_key')
