"""
Pydantic models for model applications ("candidaturas").

Field names follow the Portuguese form used by the public application
page so that the front-end can post the form unchanged.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .user import EMAIL_PATTERN

CandidaturaStatus = Literal["pendente", "em_analise", "aprovada", "rejeitada", "entrevista_agendada"]
CANDIDATURA_STATUSES = ("pendente", "em_analise", "aprovada", "rejeitada", "entrevista_agendada")
MIN_AGE = 18
MAX_AGE = 65


class CandidaturaCreate(BaseModel):
    nome: str = Field(..., min_length=1)
    idade: int
    pais: str = "Moçambique"
    provincia: str = Field(..., min_length=1, examples=["Maputo (Cidade)"])
    cidade: Optional[str] = None
    email: str
    whatsapp: str = Field(..., min_length=6)
    instagram: Optional[str] = None
    foto_url: Optional[str] = None
    fotos_adicionais: List[str] = Field(default_factory=list)
    experiencia: Optional[str] = None
    motivacao: Optional[str] = None
    disponibilidade: Optional[str] = None
    expectativas_financeiras: Optional[str] = None
    termos_aceitos: bool = False

    @field_validator("idade")
    @classmethod
    def check_age(cls, v: int) -> int:
        if v < MIN_AGE or v > MAX_AGE:
            raise ValueError(f"A idade deve estar entre {MIN_AGE} e {MAX_AGE} anos.")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.fullmatch(v):
            raise ValueError("Email inválido")
        return v

    @field_validator("termos_aceitos")
    @classmethod
    def check_terms(cls, v: bool) -> bool:
        if not v:
            raise ValueError("Você deve aceitar os termos e condições.")
        return v


class CandidaturaStatusUpdate(BaseModel):
    status: CandidaturaStatus
    observacoes: Optional[str] = None
    admin_notes: Optional[str] = None
    interview_date: Optional[datetime] = None


class CandidaturaRead(BaseModel):
    id: int
    nome: str
    idade: int
    pais: str
    provincia: str
    cidade: Optional[str] = None
    email: str
    whatsapp: str
    instagram: Optional[str] = None
    foto_url: Optional[str] = None
    fotos_adicionais: List[str] = Field(default_factory=list)
    experiencia: Optional[str] = None
    motivacao: Optional[str] = None
    disponibilidade: Optional[str] = None
    expectativas_financeiras: Optional[str] = None
    termos_aceitos: bool
    status: str
    observacoes: Optional[str] = None
    admin_notes: Optional[str] = None
    interview_date: Optional[datetime] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class CandidaturaStats(BaseModel):
    total: int = 0
    pendente: int = 0
    em_analise: int = 0
    aprovada: int = 0
    rejeitada: int = 0
    entrevista_agendada: int = 0
