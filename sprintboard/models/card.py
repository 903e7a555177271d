"""
Card Model
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from sprintboard.database import Base
from sprintboard.models.sprint import card_sprints
from sprintboard.utils.timeutils import utcnow


class Card(Base):
    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    board_id = Column(Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    column_id = Column(Integer, ForeignKey("board_columns.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    story_points = Column(Integer, nullable=True)
    # Maintained by card moves into and out of done columns only.
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    board = relationship("Board", back_populates="cards")
    column = relationship("BoardColumn", back_populates="cards")
    sprints = relationship("Sprint", secondary=card_sprints, back_populates="cards", passive_deletes=True)

    @property
    def sprint_ids(self):
        return sorted(sprint.id for sprint in self.sprints)
