# API Routes Module
from admissions_crm.api.routes import (
    leads,
    documents,
    requirements,
    program_fit,
    capacity,
    practicum,
    portal,
)

__all__ = [
    "leads",
    "documents",
    "requirements",
    "program_fit",
    "capacity",
    "practicum",
    "portal",
]
