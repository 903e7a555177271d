"""Daily column-occupancy snapshot used for cumulative flow history"""
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from sprintboard.database import Base
from sprintboard.utils.timeutils import utcnow


class FlowSnapshot(Base):
    __tablename__ = "flow_snapshots"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False)
    recorded_date = Column(Date, nullable=False)
    # Not a foreign key: history survives the column being deleted later.
    column_id = Column(Integer, nullable=False)
    column_name = Column(String(255), nullable=False)
    card_count = Column(Integer, default=0, nullable=False)
    story_points = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    board = relationship("Board", back_populates="flow_snapshots")

    __table_args__ = (
        UniqueConstraint("board_id", "recorded_date", "column_id", name="uq_flow_snapshot_board_day_column"),
    )
