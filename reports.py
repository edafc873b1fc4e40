# reports.py
from typing import List

from fastapi import APIRouter, Depends

from auth import get_current_user
from dependencies import get_report_store
import schemas
from stores import ReportStore

router = APIRouter(prefix="/api", tags=["Reports"])


@router.get("/stats/dashboard", response_model=schemas.DashboardStats)
def dashboard_stats(
    current_user: schemas.TokenData = Depends(get_current_user),
    reports: ReportStore = Depends(get_report_store),
):
    """Headline counts for the admin dashboard."""
    return reports.dashboard()


@router.get(
    "/reports/class-distribution", response_model=List[schemas.ClassDistribution]
)
def class_distribution(
    current_user: schemas.TokenData = Depends(get_current_user),
    reports: ReportStore = Depends(get_report_store),
):
    return reports.class_distribution()


@router.get("/reports/top-performers", response_model=List[schemas.TopPerformer])
def top_performers(
    current_user: schemas.TokenData = Depends(get_current_user),
    reports: ReportStore = Depends(get_report_store),
):
    return reports.top_performers()


@router.get("/activities/recent", response_model=List[schemas.Activity])
def recent_activities(
    current_user: schemas.TokenData = Depends(get_current_user),
    reports: ReportStore = Depends(get_report_store),
):
    return reports.recent_activities()
