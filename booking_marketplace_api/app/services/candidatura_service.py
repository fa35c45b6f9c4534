"""
Model applications ("candidaturas").

Anyone may submit an application through the public form; only
administrators read, search, process and delete them.
"""

import logging
import sqlite3
from typing import List, Optional

from booking_marketplace_api.app.core.db import dumps_json, get_connection, loads_json, to_utc_iso, utcnow_iso
from booking_marketplace_api.app.core.errors import NotFoundError
from booking_marketplace_api.app.schemas.candidatura import (
    CANDIDATURA_STATUSES,
    CandidaturaCreate,
    CandidaturaRead,
    CandidaturaStats,
    CandidaturaStatusUpdate,
)
from booking_marketplace_api.app.services.audit_service import AuditService

logger = logging.getLogger(__name__)


def _row_to_candidatura(row: sqlite3.Row) -> CandidaturaRead:
    data = dict(row)
    data["fotos_adicionais"] = loads_json(row["fotos_adicionais"], [])
    data["termos_aceitos"] = bool(row["termos_aceitos"])
    return CandidaturaRead(**data)


class CandidaturaService:
    """Service for model applications."""

    @classmethod
    async def submit_candidatura(cls, data: CandidaturaCreate) -> CandidaturaRead:
        now = utcnow_iso()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO candidaturas (nome, idade, pais, provincia, cidade, email, whatsapp, instagram,
                                          foto_url, fotos_adicionais, experiencia, motivacao, disponibilidade,
                                          expectativas_financeiras, termos_aceitos, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'pendente', ?, ?)
                """,
                (
                    data.nome,
                    data.idade,
                    data.pais or "Moçambique",
                    data.provincia,
                    data.cidade,
                    data.email,
                    data.whatsapp,
                    data.instagram,
                    data.foto_url,
                    dumps_json(data.fotos_adicionais),
                    data.experiencia,
                    data.motivacao,
                    data.disponibilidade,
                    data.expectativas_financeiras,
                    1 if data.termos_aceitos else 0,
                    now,
                    now,
                ),
            )
            candidatura_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute("SELECT * FROM candidaturas WHERE id = ?", (candidatura_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Candidatura %s submitted (%s)", candidatura_id, data.provincia)
        await AuditService.log(None, "create", "candidatura", candidatura_id, {"email": data.email})
        return _row_to_candidatura(row)

    @classmethod
    async def get_all_candidaturas(cls) -> List[CandidaturaRead]:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT * FROM candidaturas ORDER BY created_at DESC, id DESC").fetchall()
            return [_row_to_candidatura(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_candidaturas_by_status(cls, status: str) -> List[CandidaturaRead]:
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM candidaturas WHERE status = ? ORDER BY created_at DESC, id DESC", (status,)
            ).fetchall()
            return [_row_to_candidatura(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def search_candidaturas(cls, query: str) -> List[CandidaturaRead]:
        """Case-insensitive substring match on name, email or province.

        Accented letters fold case; ``%`` and ``_`` in the query match
        themselves.
        """
        needle = query.strip().casefold()
        candidaturas = await cls.get_all_candidaturas()
        if not needle:
            return candidaturas
        return [
            c
            for c in candidaturas
            if any(needle in (value or "").casefold() for value in (c.nome, c.email, c.provincia))
        ]

    @classmethod
    async def get_candidatura_by_id(cls, candidatura_id: int) -> CandidaturaRead:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM candidaturas WHERE id = ?", (candidatura_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"Candidatura {candidatura_id} not found")
        return _row_to_candidatura(row)

    @classmethod
    async def update_candidatura_status(
        cls, candidatura_id: int, update: CandidaturaStatusUpdate, admin_id: int
    ) -> CandidaturaRead:
        """Set the status and record who processed the application and when."""
        now = utcnow_iso()
        fields = ["status = ?", "processed_by = ?", "processed_at = ?", "updated_at = ?"]
        values: list = [update.status, admin_id, now, now]
        if update.observacoes is not None:
            fields.append("observacoes = ?")
            values.append(update.observacoes)
        if update.admin_notes is not None:
            fields.append("admin_notes = ?")
            values.append(update.admin_notes)
        if update.interview_date is not None:
            fields.append("interview_date = ?")
            values.append(to_utc_iso(update.interview_date))
        values.append(candidatura_id)
        conn = get_connection()
        try:
            cursor = conn.execute(f"UPDATE candidaturas SET {', '.join(fields)} WHERE id = ?", tuple(values))
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(f"Candidatura {candidatura_id} not found")
            row = conn.execute("SELECT * FROM candidaturas WHERE id = ?", (candidatura_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Candidatura %s set to %s by admin %s", candidatura_id, update.status, admin_id)
        await AuditService.log(admin_id, "update", "candidatura", candidatura_id, {"status": update.status})
        return _row_to_candidatura(row)

    @classmethod
    async def get_candidatura_stats(cls) -> CandidaturaStats:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT status, COUNT(*) AS cnt FROM candidaturas GROUP BY status").fetchall()
        finally:
            conn.close()
        counts = {status: 0 for status in CANDIDATURA_STATUSES}
        total = 0
        for row in rows:
            total += row["cnt"]
            if row["status"] in counts:
                counts[row["status"]] = row["cnt"]
        return CandidaturaStats(total=total, **counts)

    @classmethod
    async def delete_candidatura(cls, candidatura_id: int, admin_id: Optional[int]) -> None:
        conn = get_connection()
        try:
            cursor = conn.execute("DELETE FROM candidaturas WHERE id = ?", (candidatura_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(f"Candidatura {candidatura_id} not found")
        finally:
            conn.close()
        logger.info("Candidatura %s deleted by admin %s", candidatura_id, admin_id)
        await AuditService.log(admin_id, "delete", "candidatura", candidatura_id)
