from __future__ import annotations

import logging
from typing import Any, Optional, Type, TypeVar

from sqlmodel import select

from core.db import Database
from domains.chat.models import utcnow
from domains.config.models import SystemConfig, UserConfig

LOGGER = logging.getLogger(__name__)

RowT = TypeVar("RowT", UserConfig, SystemConfig)


class ConfigStore:
    """Read and write the singleton configuration rows.

    Writes look up the first row and update it, creating one when the table is
    empty. Two concurrent first writes can still both insert; readers always take
    the first row so a duplicate is harmless.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    def _first(self, model: Type[RowT]) -> Optional[RowT]:
        with self.database.session() as db:
            return db.exec(select(model).order_by(model.created_at).limit(1)).first()

    def _save(self, model: Type[RowT], **changes: Any) -> RowT:
        with self.database.session() as db:
            row = db.exec(select(model).order_by(model.created_at).limit(1)).first()
            if row is None:
                row = model(**changes)
                LOGGER.info("Creating %s row.", model.__name__)
            else:
                for key, value in changes.items():
                    setattr(row, key, value)
                row.updated_at = utcnow()
            db.add(row)
            db.commit()
            db.refresh(row)
            return row

    def user_config(self) -> Optional[UserConfig]:
        return self._first(UserConfig)

    def system_config(self) -> Optional[SystemConfig]:
        return self._first(SystemConfig)

    def save_user_config(self, **changes: Any) -> UserConfig:
        return self._save(UserConfig, **changes)

    def save_system_config(self, **changes: Any) -> SystemConfig:
        return self._save(SystemConfig, **changes)
