"""
Request schemas for the two record kinds and the validation pass run before any write.

The pydantic models carry the field rules; `validate` turns their errors into
the human-readable messages the API returns, one per failing field, in field
order. Nothing is persisted unless the list comes back empty.
"""

from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError


# BSON stores integers as signed 64-bit
MAX_INT64 = 2**63 - 1


def _whole_number(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("booleans are not counts")
    if isinstance(value, str):
        return value.strip()
    return value


def _staff_count(value: Any) -> Any:
    return 0 if value is None else _whole_number(value)


Count = Annotated[int, BeforeValidator(_whole_number), Field(ge=0, le=MAX_INT64)]
StaffCount = Annotated[int, BeforeValidator(_staff_count), Field(ge=0, le=MAX_INT64)]
RequiredText = Annotated[str, Field(min_length=1)]


class RecordIn(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    labels: ClassVar[Dict[str, str]] = {}
    required: ClassVar[Dict[str, str]] = {}
    negative: ClassVar[Dict[str, str]] = {}
    pattern: ClassVar[Dict[str, str]] = {}


class EventIn(RecordIn):
    dateKey: Annotated[str, Field(min_length=1, pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")]
    type: Literal["Festival", "Sport", "Political", "Religious", "Other"]
    station: RequiredText
    zone: Optional[str] = None
    division: Optional[str] = None
    crowd: Count
    level: Literal["L-1", "L-2", "L-3"]

    labels = {
        "dateKey": "Date key",
        "type": "Event type",
        "station": "Station name",
        "zone": "Zone",
        "division": "Division",
        "crowd": "Crowd estimate",
        "level": "Crowd level",
    }
    required = {
        "dateKey": "Date key is required",
        "type": "Event type is required",
        "station": "Station name is required",
        "crowd": "Crowd estimate is required",
        "level": "Crowd level is required",
    }
    negative = {"crowd": "Crowd cannot be negative"}
    pattern = {"dateKey": "Date key must be YYYY-MM-DD"}


class PlanIn(RecordIn):
    dateKey: RequiredText
    stationName: RequiredText
    expectedCrowd: Count
    grpStaff: StaffCount = 0
    rpfStaff: StaffCount = 0
    commercialStaff: StaffCount = 0
    trainNumber: Optional[str] = None
    trainType: Optional[str] = None
    trainRoute: Optional[str] = None

    labels = {
        "dateKey": "Date key",
        "stationName": "Station name",
        "expectedCrowd": "Expected crowd",
        "grpStaff": "GRP staff",
        "rpfStaff": "RPF staff",
        "commercialStaff": "Commercial staff",
        "trainNumber": "Train number",
        "trainType": "Train type",
        "trainRoute": "Train route",
    }
    required = {
        "dateKey": "Date key is required",
        "stationName": "Station name is required",
        "expectedCrowd": "Expected crowd is required",
    }
    negative = {
        "expectedCrowd": "Expected crowd cannot be negative",
        "grpStaff": "Staff count cannot be negative",
        "rpfStaff": "Staff count cannot be negative",
        "commercialStaff": "Staff count cannot be negative",
    }


def describe_error(schema: Type[RecordIn], err: Dict[str, Any]) -> str:
    name = str(err["loc"][0])
    kind = err["type"]
    label = schema.labels.get(name, name)
    is_count = schema.model_fields[name].annotation is int

    if name in schema.required and (kind in ("missing", "string_too_short") or err.get("input") is None):
        return schema.required[name]
    if kind == "literal_error":
        return f"`{err.get('input')}` is not a valid enum value for path `{name}`."
    if kind == "string_pattern_mismatch":
        return schema.pattern.get(name, f"{label} has an invalid format")
    if kind == "greater_than_equal":
        return schema.negative.get(name, f"{label} cannot be negative")
    if kind == "less_than_equal":
        return f"{label} is too large"
    if is_count:
        return f"{label} must be a whole number"
    if kind == "string_type":
        return f"{label} must be a string"
    return f"{label}: {err['msg']}"


def validate(schema: Type[RecordIn], payload: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Return the cleaned document and the list of failures, in field order.

    Unknown keys are ignored, so `_id` and `createdAt` can never come from
    the client. Optional text left out of the payload is not stored.
    """
    try:
        record = schema.model_validate(payload)
    except PydanticValidationError as e:
        errors: List[str] = []
        seen = set()
        for err in e.errors():
            name = err["loc"][0] if err["loc"] else None
            if name in seen:
                continue
            seen.add(name)
            errors.append(describe_error(schema, err))
        return {}, errors
    return record.model_dump(exclude_none=True), []
