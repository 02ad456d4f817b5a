from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from xmltext_import.db.models import ContentClass, ContentObjectAttribute
from xmltext_import.services.dump_filename import FileAddress

LEGACY_DATA_TYPE = "ezxmltext"
# Integer columns of ezcontentobject_attribute are 32-bit signed.
MAX_COLUMN_ID = 2**31 - 1


def resolve_content_type_ids(db: Session, identifiers: Iterable[str]) -> dict[str, int]:
    wanted = sorted({i for i in identifiers if i})
    if not wanted:
        return {}

    rows = db.execute(
        select(ContentClass.identifier, ContentClass.id).where(ContentClass.identifier.in_(wanted))
    ).all()

    result: dict[str, int] = {}
    for identifier, class_id in rows:
        result[identifier] = int(class_id)
    return result


def missing_content_type_identifiers(identifiers: Iterable[str], resolved: dict[str, int]) -> list[str]:
    missing: list[str] = []
    for identifier in identifiers:
        if identifier not in resolved and identifier not in missing:
            missing.append(identifier)
    return missing


def _fits_columns(address: FileAddress) -> bool:
    return all(
        int(token) <= MAX_COLUMN_ID for token in (address.object_id, address.attribute_id, address.version)
    )


def _address_filter(address: FileAddress, data_type: str):
    return (
        ContentObjectAttribute.data_type_string == data_type,
        ContentObjectAttribute.contentobject_id == int(address.object_id),
        ContentObjectAttribute.id == int(address.attribute_id),
        ContentObjectAttribute.version == int(address.version),
        ContentObjectAttribute.language_code == address.language_code,
    )


def attribute_exists(db: Session, address: FileAddress, data_type: str = LEGACY_DATA_TYPE) -> bool:
    if not _fits_columns(address):
        return False
    count = db.execute(
        select(func.count(ContentObjectAttribute.id)).where(*_address_filter(address, data_type))
    ).scalar_one()
    return int(count or 0) == 1


def update_attribute(
    db: Session,
    address: FileAddress,
    data_text: str,
    data_type: str = LEGACY_DATA_TYPE,
) -> int:
    if not _fits_columns(address):
        return 0
    result = db.execute(
        update(ContentObjectAttribute)
        .where(*_address_filter(address, data_type))
        .values(data_text=data_text)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
