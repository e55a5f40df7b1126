import sqlmodel
from pydantic import field_serializer

from ._base import BaseModel


class Player(BaseModel, table=True):
    __tablename__: str = "players"

    id: int = sqlmodel.Field(
        primary_key=True,
        index=True,
        sa_type=sqlmodel.BigInteger,
        sa_column_kwargs={"autoincrement": False},
    )
    name: str | None = sqlmodel.Field(default=None, nullable=True)
    is_admin: bool = False
    gems: int = sqlmodel.Field(default=0, ge=0)
    """Premium currency spent on pulls"""
    tickets: int = sqlmodel.Field(default=0, ge=0)
    """Gacha tickets, each buys one single pull"""
    coins: int = sqlmodel.Field(default=0, ge=0)
    """Soft currency, duplicate spirits are converted into it"""

    @field_serializer("id")
    def serialize_id(self, value: int) -> str:
        """Serialize ID as string for JavaScript compatibility with large IDs."""
        return str(value)
