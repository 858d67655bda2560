"""Response schemas for the reconciliation endpoints."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RelationshipContact(BaseModel):
    id: int
    nombre: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None


class RelationshipPolicy(BaseModel):
    tabla: str
    cliente_nombre: Optional[str] = None
    cliente_email: Optional[str] = None
    numero_poliza: Optional[str] = None
    ramo: str
    similarity_score: float
    match_type: str = Field(..., examples=["name_similarity", "email_exact"])


class GroupedRelationshipResponse(BaseModel):
    contacto: RelationshipContact
    polizas: List[RelationshipPolicy]


class RelationshipSummary(BaseModel):
    total_relationships: int
    contacts_with_policies: int
    by_match_type: Dict[str, int]
    by_table: Dict[str, int]


class RelationshipsResponse(BaseModel):
    """Result of the bulk contact/policy scan.

    Attributes:
        summary: Match counts
        relationships: Matches grouped by contact, best score first
        failed_lines: Policy lines that could not be read
        skipped_lines: Policy lines not scanned because the scan was cancelled
        cancelled: Whether the scan stopped early
    """

    success: bool = True
    summary: RelationshipSummary
    relationships: List[GroupedRelationshipResponse]
    failed_lines: List[str] = Field(default_factory=list)
    skipped_lines: List[str] = Field(default_factory=list)
    cancelled: bool = False


class ClientStatusUpdateResponse(BaseModel):
    success: bool = True
    message: str
    updated_count: int
    new_stats: Dict[str, int] = Field(default_factory=dict)
    updated_contact_ids: List[int] = Field(default_factory=list)
