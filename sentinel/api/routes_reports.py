from fastapi import APIRouter

from sentinel.services.report_exporter import ReportStore

router = APIRouter()


@router.get("")
def list_reports():
    """Saved detection reports, most recent first."""
    return {"reports": ReportStore().load_all()}


@router.get("/statistics")
def report_statistics():
    return ReportStore().statistics()
