"""
Sprint Model
"""
import enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Table, Text, text, Enum as SQLEnum
from sqlalchemy.orm import relationship

from sprintboard.database import Base
from sprintboard.utils.timeutils import utcnow


class SprintStatus(str, enum.Enum):
    FUTURE = "future"
    ACTIVE = "active"
    CLOSED = "closed"


card_sprints = Table(
    "card_sprints",
    Base.metadata,
    Column("card_id", Integer, ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True),
    Column("sprint_id", Integer, ForeignKey("sprints.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("added_at", DateTime, default=utcnow, nullable=False),
)


class Sprint(Base):
    __tablename__ = "sprints"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    goal = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    status = Column(
        SQLEnum(SprintStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        default=SprintStatus.FUTURE,
        nullable=False,
    )
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    closed_at = Column(DateTime, nullable=True)

    # Relationships
    board = relationship("Board", back_populates="sprints")
    cards = relationship("Card", secondary=card_sprints, back_populates="sprints", passive_deletes=True)

    __table_args__ = (
        # At most one active sprint per board, enforced by the storage layer.
        Index(
            "uq_sprints_one_active_per_board",
            "board_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index("ix_sprints_closed_keyset", "board_id", "closed_at", "id"),
    )
