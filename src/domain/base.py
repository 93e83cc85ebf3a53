"""Shared base for domain entities"""

import uuid
from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only auto-assigns rowids to INTEGER PRIMARY KEY columns
BigIntegerPK = BigInteger().with_variant(Integer(), "sqlite")


def generate_uuid() -> str:
    """Generate a random UUID4 string identifier"""
    return str(uuid.uuid4())


class BaseModel(SQLModel):
    """Base class for all SQLModel domain entities"""
    pass
