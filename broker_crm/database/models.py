"""SQLAlchemy models and policy-line table constructs."""

from datetime import datetime
from typing import Optional

from sqlalchemy import TIMESTAMP, Integer, String, Text, column, func, table
from sqlalchemy.orm import Mapped, mapped_column

from broker_crm.config import POLICY_LINES
from broker_crm.database.base import Base


class DirectoryContact(Base):
    """Contact directory entry (prospect or client)."""

    __tablename__ = "directorio_contactos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    origen: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    comentario: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    nombre_completo: Mapped[str] = mapped_column(String(255), nullable=False)
    nombre_completo_oficial: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    nickname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    apellido: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    empresa: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    telefono_oficina: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    telefono_casa: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    telefono_asistente: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    telefono_movil: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    telefonos_corregidos: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    entidad: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    genero: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status_social: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ocupacion: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pais: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, default="prospecto"
    )  # prospecto | cliente | inactivo
    created_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP, server_default=func.now(), nullable=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP, server_default=func.now(), onupdate=func.now(), nullable=True
    )

    def to_dict(self) -> dict:
        return {
            attr.key: getattr(self, attr.key)
            for attr in self.__mapper__.column_attrs
        }


# Columns written by create/update; everything except id and timestamps.
CONTACT_MUTABLE_FIELDS = (
    "origen",
    "comentario",
    "nombre_completo",
    "nombre_completo_oficial",
    "nickname",
    "apellido",
    "display_name",
    "empresa",
    "telefono_oficina",
    "telefono_casa",
    "telefono_asistente",
    "telefono_movil",
    "telefonos_corregidos",
    "email",
    "entidad",
    "genero",
    "status_social",
    "ocupacion",
    "pais",
    "status",
)


def policy_line_table(line: str):
    """Lightweight table construct for one policy line.

    Only the columns the reconciliation engine reads are declared. ``line``
    must be one of ``POLICY_LINES``.
    """
    if line not in POLICY_LINES:
        raise ValueError(f"Unknown policy line: {line!r}")
    return table(
        line,
        column("contratante"),
        column("email"),
        column("numero_poliza"),
        column("ramo"),
    )
