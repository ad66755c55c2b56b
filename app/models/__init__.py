from app.models.compliance import (  # noqa: F401
    Business,
    BusinessMember,
    ChecklistEntry,
    Company,
    CompanyTag,
    DocumentDefinition,
    Person,
    Tag,
)
