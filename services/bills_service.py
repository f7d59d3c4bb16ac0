"""Service layer turning raw Airtable rows into Bill records."""
import logging
from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from models.bill import Bill, MonthKey, SpendType

logger = logging.getLogger(__name__)

# Airtable field names of the activities ("Tegevused") and restaurants ("Restoran") tables
FIELD_DATE = "Kuupäev"
FIELD_AMOUNT = "Kokku"
FIELD_SPEND_TYPE = "Spend Type"
FIELD_CITY = "Linn"
FIELD_COUNTRY = "Riik"
FIELD_PARTY = "Pere"
FIELD_ATTACHMENTS = "Attachments"
FIELD_CREATED = "created_exif"
FIELD_MONTH = "Kuu"
FIELD_DISH = "Toit"
FIELD_RESTAURANT = "Nimetus"
FIELD_EMOJI = "Emoji"
FIELD_COORDINATES = "coordinates"
FIELD_RESTAURANT_COORDINATES = "Coordinates"
FIELD_PHOTO = "Foto"
FIELD_LINKED_DETAILS = "ToidudDetails"


# --- Field parsers ---

def parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        logger.warning(f"Ignoring unparseable date: {value!r}")
        return None


def parse_timestamp(value: Any, timezone: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Parses an ISO timestamp. Offset-aware values are converted to `timezone`
    when one is given; naive values are kept as recorded.
    """
    if not value:
        return None
    try:
        stamp = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring unparseable timestamp: {value!r}")
        return None
    if timezone is not None and stamp.tzinfo is not None:
        stamp = stamp.astimezone(timezone)
    return stamp


def parse_month(value: Any) -> Optional[MonthKey]:
    """Parses a 'YY-MM' month field into a (year, month) tuple."""
    if not value:
        return None
    try:
        year_part, month_part = str(value).split("-", 1)
        year, month = int(year_part), int(month_part)
    except ValueError:
        logger.warning(f"Ignoring unparseable month key: {value!r}")
        return None
    if not 1 <= month <= 12:
        logger.warning(f"Ignoring out-of-range month key: {value!r}")
        return None
    if year < 100:
        year += 2000
    return (year, month)


def parse_coordinates(value: Any) -> Optional[Tuple[float, float]]:
    """Parses a 'lat,lng' string. Returns None for anything else."""
    if not value or not isinstance(value, str):
        return None
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        return (float(parts[0]), float(parts[1]))
    except ValueError:
        return None


def parse_spend_type(value: Any, unrecognized: str = 'travel') -> Optional[SpendType]:
    if value == SpendType.LOCAL.value:
        return SpendType.LOCAL
    if value == SpendType.TRAVEL.value:
        return SpendType.TRAVEL
    if unrecognized == 'ignore':
        logger.debug(f"Leaving unrecognized spend type {value!r} unbucketed.")
        return None
    return SpendType.TRAVEL


def _attachment_refs(value: Any) -> List[str]:
    refs = []
    for item in value or []:
        if isinstance(item, dict):
            refs.append(item.get("url") or item.get("id") or "")
        elif item:
            refs.append(str(item))
    return refs


def _photo_url(restaurant: Dict[str, Any]) -> Optional[str]:
    photos = restaurant.get(FIELD_PHOTO) or []
    if not photos or not isinstance(photos[0], dict):
        return None
    return ((photos[0].get("thumbnails") or {}).get("large") or {}).get("url")


# --- Normalization ---

def normalize_record(record: Dict[str, Any], unrecognized_spend_type: str = 'travel',
                     timezone: Optional[tzinfo] = None) -> Bill:
    """
    Flattens one Airtable record ({"id": ..., "fields": {...}}) into a Bill.
    Location fields fall back to the first linked restaurant record when the
    activity row does not carry them. The creation timestamp is converted to
    `timezone` so its hour reads as local wall-clock time. Raises
    ValidationError on invalid data.
    """
    fields = record.get("fields") or {}
    linked = fields.get(FIELD_LINKED_DETAILS) or []
    restaurant = (linked[0].get("fields") or {}) if linked and isinstance(linked[0], dict) else {}

    bill_date = parse_date(fields.get(FIELD_DATE))
    month = parse_month(fields.get(FIELD_MONTH))
    if month is None and bill_date is not None:
        month = (bill_date.year, bill_date.month)

    raw_spend_type = fields.get(FIELD_SPEND_TYPE)
    spend_type = parse_spend_type(raw_spend_type, unrecognized_spend_type)
    amount = fields.get(FIELD_AMOUNT)
    coordinates = parse_coordinates(fields.get(FIELD_COORDINATES)) or parse_coordinates(
        restaurant.get(FIELD_RESTAURANT_COORDINATES)
    )

    return Bill(
        id=record.get("id"),
        date=bill_date,
        amount=amount if amount is not None else 0.0,
        spend_type=spend_type,
        spend_type_inferred=spend_type is not None and raw_spend_type != spend_type.value,
        city=fields.get(FIELD_CITY) or restaurant.get(FIELD_CITY) or None,
        country=fields.get(FIELD_COUNTRY) or restaurant.get(FIELD_COUNTRY) or None,
        party=[str(member) for member in fields.get(FIELD_PARTY) or []],
        attachments=_attachment_refs(fields.get(FIELD_ATTACHMENTS)),
        created_at=parse_timestamp(fields.get(FIELD_CREATED), timezone),
        month=month,
        dish=fields.get(FIELD_DISH),
        restaurant=fields.get(FIELD_RESTAURANT) or restaurant.get(FIELD_RESTAURANT),
        emoji=fields.get(FIELD_EMOJI),
        coordinates=coordinates,
        photo_url=_photo_url(restaurant),
    )


def normalize_records(records: List[Dict[str, Any]], unrecognized_spend_type: str = 'travel',
                      timezone: Optional[tzinfo] = None) -> List[Bill]:
    """Normalizes a list of Airtable records, skipping rows that fail validation."""
    bills = []
    for index, record in enumerate(records):
        try:
            bills.append(normalize_record(record, unrecognized_spend_type, timezone))
        except ValidationError as e:
            logger.error(f"Skipping record #{index} ({record.get('id', 'N/A')}) due to validation error: {e}")
            continue
    logger.info(f"Normalized {len(bills)} of {len(records)} records.")
    return bills
