"""
Facility-Verzeichnis: beantwortet nur die Frage "existiert diese Unit?".

Zwei Varianten:
- SqlFacilityDirectory: liest die units-Tabelle der eigenen Datenbank
- HttpFacilityDirectory: fragt den Facility-Service per HTTP
"""
import logging

import requests
from sqlalchemy.orm import Session

from slotbooking.config import settings
from slotbooking.models.unit import Unit

logger = logging.getLogger("slotbooking.services.facility_directory")


class SqlFacilityDirectory:

    def __init__(self, db: Session):
        self.db = db

    def unit_exists(self, unit_id: int) -> bool:
        return self.db.query(Unit.id).filter(Unit.id == unit_id).first() is not None


class HttpFacilityDirectory:
    """
    Keine Retries: Fehler des Facility-Service werden unverändert weitergereicht,
    die Retry-Strategie liegt beim Aufrufer.
    """

    def __init__(self, base_url: str, timeout: int = 10, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def unit_exists(self, unit_id: int) -> bool:
        response = self.http.get(f"{self.base_url}/units/{unit_id}", timeout=self.timeout)
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True


def get_facility_directory(db: Session):
    if settings.facilities_url:
        logger.debug(f"Facility-Verzeichnis per HTTP: {settings.facilities_url}")
        return HttpFacilityDirectory(settings.facilities_url, timeout=settings.facilities_timeout_seconds)
    return SqlFacilityDirectory(db)
