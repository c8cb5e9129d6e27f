from sqlalchemy import Column, String
from plantia.database import Base, UTCDateTime


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(UTCDateTime, nullable=False)
