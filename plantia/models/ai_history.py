from sqlalchemy import Column, String, Text, ForeignKey
from plantia.database import Base, UTCDateTime


class AIHistory(Base):
    __tablename__ = "ai_history"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)
    plant_id = Column(String(64), ForeignKey("plants.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    photo_url = Column(String(2048), nullable=True)
    created_at = Column(UTCDateTime, nullable=False)
