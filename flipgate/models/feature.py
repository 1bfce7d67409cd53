"""
Feature Gate Models - SQLAlchemy models for features and gate values.

Tables:
- flipgate_features: Known feature keys
- flipgate_gates: One row per stored gate value (one per member for set gates)
"""

from sqlalchemy import Integer, String, Text, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class FeatureModel(Base, TimestampMixin):
    """A feature known to the system."""

    __tablename__ = "flipgate_features"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Feature {self.key}>"


class GateModel(Base, TimestampMixin):
    """
    A stored gate value.

    Boolean, integer and json gates have at most one row per feature;
    set gates have one row per member. Rows are unique per
    (feature_key, key, value).
    """

    __tablename__ = "flipgate_gates"
    __table_args__ = (
        UniqueConstraint("feature_key", "key", "value", name="uq_flipgate_gates_feature_key_value"),
        Index("idx_flipgate_gates_feature_key", "feature_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feature_key: Mapped[str] = mapped_column(String(255), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Gate {self.feature_key}.{self.key}={self.value}>"
