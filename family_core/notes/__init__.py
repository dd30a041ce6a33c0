from .service import FamilyNotesService

__all__ = ["FamilyNotesService"]
