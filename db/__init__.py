from .database import init_db, get_db, get_db_dependency, engine, SessionLocal
from .models import (
    Base, Organization, Location, Listing,
    CitationSourceIntelligence, CronRunLog,
)

__all__ = [
    "init_db", "get_db", "get_db_dependency", "engine", "SessionLocal",
    "Base", "Organization", "Location", "Listing",
    "CitationSourceIntelligence", "CronRunLog",
]
