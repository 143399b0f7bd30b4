"""Declarative base shared by roles, users, shops, and work order models."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Every timestamp column is stored as timestamptz (UTC).
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }
