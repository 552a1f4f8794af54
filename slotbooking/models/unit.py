from sqlalchemy import Column, Integer, String, Boolean

from slotbooking.database import Base


class Unit(Base):
    """
    Buchbare Einheit (Platz/Court) eines Betriebs.
    Gepflegt vom Facility-Service, hier nur für die Existenzprüfung gelesen.
    """
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
