"""Request and response schemas for the contact directory API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContactPayload(BaseModel):
    """Body of create and update requests.

    Update is a full replace: fields left out are stored as null (or their
    default for ``status``/``pais``/``genero``).
    """

    origen: Optional[str] = None
    comentario: Optional[str] = None
    nombre_completo: Optional[str] = Field(
        default=None, description="Full name; required and non-blank"
    )
    nombre_completo_oficial: Optional[str] = None
    nickname: Optional[str] = None
    apellido: Optional[str] = None
    display_name: Optional[str] = None
    empresa: Optional[str] = None
    telefono_oficina: Optional[str] = None
    telefono_casa: Optional[str] = None
    telefono_asistente: Optional[str] = None
    telefono_movil: Optional[str] = None
    telefonos_corregidos: Optional[str] = None
    email: Optional[str] = None
    entidad: Optional[str] = None
    genero: Optional[str] = None
    status_social: Optional[str] = None
    ocupacion: Optional[str] = None
    pais: Optional[str] = None
    status: Optional[str] = None


class ContactResponse(ContactPayload):
    """A stored contact."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ContactListResponse(BaseModel):
    success: bool = True
    data: List[ContactResponse]
    total: int
    page: int
    limit: int
    totalPages: int


class ContactSearchResponse(BaseModel):
    data: List[ContactResponse]


class ContactStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_origen: Dict[str, int]


class ContactStatsResponse(BaseModel):
    success: bool = True
    stats: ContactStats


class ContactCreatedResponse(BaseModel):
    message: str
    id: int


class MessageResponse(BaseModel):
    message: str


class ContactPoliciesResponse(BaseModel):
    contact: Dict[str, Any]
    policies: List[Dict[str, Any]]
    total_policies: int
    failed_lines: List[str] = Field(default_factory=list)
