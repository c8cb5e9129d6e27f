from sqlalchemy import Column, String, Float, Text, ForeignKey
from plantia.database import Base, UTCDateTime


class Plant(Base):
    __tablename__ = "plants"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)

    # Identification (confidence is NULL for manually entered plants)
    species = Column(String(255), nullable=False)
    common_name = Column(String(255), nullable=True)
    confidence = Column(Float, nullable=True)

    nickname = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    # Weak reference, nullified when the category is deleted
    category_id = Column(String(64), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, index=True)


class CareProfile(Base):
    __tablename__ = "care_profiles"

    # Shares its identifier with the plant (1:1)
    id = Column(String(64), ForeignKey("plants.id", ondelete="CASCADE"), primary_key=True)
    owner_id = Column(String(128), nullable=False, index=True)

    species = Column(String(255), nullable=False)
    sunlight = Column(Text, nullable=False)
    watering = Column(Text, nullable=False)
    soil = Column(Text, nullable=False)
    fertilizer = Column(Text, nullable=False)
    temp_range = Column(Text, nullable=False)
    humidity = Column(Text, nullable=False)
    tips = Column(Text, nullable=True)

    @property
    def plant_id(self):
        return self.id
