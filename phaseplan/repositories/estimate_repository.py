"""Repository helpers for clients, estimates and their phase configs."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from phaseplan.models.entities import Client, Estimate


class EstimateRepository:
    """Persistence operations used by the phase configuration services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Clients ----------
    def add_client(self, client: Client) -> Client:
        self.db.add(client)
        self.db.flush()
        return client

    # ---------- Estimates ----------
    def get_estimate(self, estimate_id: UUID) -> Estimate | None:
        return self.db.scalar(select(Estimate).where(Estimate.id == estimate_id))

    def add_estimate(self, estimate: Estimate) -> Estimate:
        self.db.add(estimate)
        self.db.flush()
        return estimate

    def set_phases_config(self, estimate: Estimate, config: dict[str, Any]) -> Estimate:
        # Assign a new dict so the JSON column is marked dirty.
        estimate.phases_config = dict(config)
        estimate.updated_at = datetime.utcnow()
        self.db.flush()
        return estimate
