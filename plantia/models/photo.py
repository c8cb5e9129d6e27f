from sqlalchemy import Column, String, Text, ForeignKey
from plantia.database import Base, UTCDateTime


class Photo(Base):
    __tablename__ = "photos"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)
    plant_id = Column(String(64), ForeignKey("plants.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(2048), nullable=False)
    taken_at = Column(UTCDateTime, nullable=False)
    notes = Column(Text, nullable=True)
