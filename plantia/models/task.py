from sqlalchemy import Column, String, Text, ForeignKey
from plantia.database import Base, UTCDateTime


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)
    plant_id = Column(String(64), ForeignKey("plants.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(String(16), nullable=False)  # water / fertilize / prune / repot / custom
    title = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)  # originating care instruction
    next_run_at = Column(UTCDateTime, nullable=False)
    completed_at = Column(UTCDateTime, nullable=True)
