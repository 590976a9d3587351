"""
Dashboard Router - Summary statistics for the operations dashboard
"""

import logging
from datetime import datetime, timezone, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from jwt_auth import TokenClaims, require_claims
from models import Incident, EvacuationCenter, AssistanceRecord

logger = logging.getLogger(__name__)
router = APIRouter()

CLOSED_INCIDENT_STATUSES = ('Resolved', 'Closed')


def _counts_by(db: Session, column) -> dict:
    rows = db.query(column, func.count()).group_by(column).all()
    return {key: int(count) for key, count in rows if key is not None}


def incident_stats(db: Session) -> dict:
    by_status = _counts_by(db, Incident.status)
    by_severity = _counts_by(db, Incident.severity_level)

    families, persons = db.query(
        func.coalesce(func.sum(Incident.affected_families), 0),
        func.coalesce(func.sum(Incident.affected_persons), 0),
    ).one()

    affected_areas = db.query(func.count(func.distinct(Incident.city))).filter(
        Incident.status.notin_(CLOSED_INCIDENT_STATUSES),
        Incident.city.isnot(None),
    ).scalar()

    week_ago = datetime.now(timezone.utc) - timedelta(days=7)
    recent = db.query(func.count(Incident.id)).filter(Incident.date_reported >= week_ago).scalar()

    # casualties is a JSON blob, summed here rather than in SQL
    casualties = {"dead": 0, "injured": 0, "missing": 0}
    for (blob,) in db.query(Incident.casualties).all():
        if not isinstance(blob, dict):
            continue
        for key in casualties:
            casualties[key] += int(blob.get(key) or 0)

    return {
        "total": sum(by_status.values()),
        "active": by_status.get('Active', 0),
        "by_status": by_status,
        "by_severity": by_severity,
        "affected_families": int(families),
        "affected_persons": int(persons),
        "affected_areas": int(affected_areas or 0),
        "reported_last_7_days": int(recent or 0),
        "casualties": casualties,
    }


def evacuation_stats(db: Session) -> dict:
    by_status = _counts_by(db, EvacuationCenter.status)

    capacity, occupancy = db.query(
        func.coalesce(func.sum(EvacuationCenter.capacity), 0),
        func.coalesce(func.sum(EvacuationCenter.current_occupancy), 0),
    ).one()
    capacity = int(capacity)
    occupancy = int(occupancy)

    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "total_capacity": capacity,
        "current_occupancy": occupancy,
        "occupancy_rate": round(occupancy * 100.0 / capacity, 1) if capacity else 0.0,
    }


def assistance_stats(db: Session) -> dict:
    by_status = _counts_by(db, AssistanceRecord.status)
    total_amount = db.query(func.coalesce(func.sum(AssistanceRecord.amount), 0)).scalar()

    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "total_amount": round(float(total_amount or 0), 2),
    }


@router.get("/stats")
async def get_dashboard_stats(
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    return {
        "incidents": incident_stats(db),
        "evacuation_centers": evacuation_stats(db),
        "assistance": assistance_stats(db),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/recent-incidents")
async def get_recent_incidents(
    limit: int = Query(5, ge=1, le=50),
    claims: TokenClaims = Depends(require_claims),
    db: Session = Depends(get_db)
):
    rows = db.query(Incident).order_by(Incident.date_reported.desc()).limit(limit).all()

    return {
        "incidents": [
            {
                "id": str(i.id),
                "incident_code": i.incident_code,
                "incident_name": i.incident_name,
                "incident_type": i.incident_type,
                "severity_level": i.severity_level,
                "status": i.status,
                "region": i.region,
                "province": i.province,
                "city": i.city,
                "affected_families": i.affected_families or 0,
                "affected_persons": i.affected_persons or 0,
                "date_reported": i.date_reported.isoformat() if i.date_reported else None,
            }
            for i in rows
        ]
    }
