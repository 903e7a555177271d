"""
Board Model
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from sprintboard.database import Base
from sprintboard.utils.timeutils import utcnow


class Board(Base):
    __tablename__ = "boards"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    # Bumped by every planning or card mutation; versions the metrics cache.
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    columns = relationship(
        "BoardColumn",
        back_populates="board",
        cascade="all",
        passive_deletes=True,
        order_by="BoardColumn.position",
    )
    sprints = relationship(
        "Sprint",
        back_populates="board",
        cascade="all",
        passive_deletes=True,
        order_by="Sprint.position",
    )
    cards = relationship("Card", back_populates="board", cascade="all", passive_deletes=True)
    flow_snapshots = relationship("FlowSnapshot", back_populates="board", cascade="all", passive_deletes=True)

    def touch(self) -> None:
        self.updated_at = utcnow()
