from __future__ import annotations

from typing import Any, cast

from sqlalchemy.orm import Session

from surgilog.infrastructure.db.models_sqlalchemy import StorageSlot, utc_now


class StorageSlotRepository:
    def get_payload(self, session: Session, name: str) -> str | None:
        slot = session.get(StorageSlot, name)
        if slot is None:
            return None
        return cast(str, slot.payload)

    def put_payload(self, session: Session, name: str, payload: str) -> None:
        slot = session.get(StorageSlot, name)
        if slot is None:
            session.add(StorageSlot(name=name, payload=payload))
        else:
            slot_obj = cast(Any, slot)
            slot_obj.payload = payload
            slot_obj.updated_at = utc_now()
        session.flush()
