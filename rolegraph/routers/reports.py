from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from rolegraph.security.decorators import require_permission, require_roles

router = APIRouter(prefix="/reports", tags=["reports"])

_REPORTS = [
    {"id": 1, "title": "Monthly signups"},
    {"id": 2, "title": "Churn by plan"},
]


@router.get("")
def list_reports() -> list[dict[str, object]]:
    # Guarded by the `/reports` rule of the security config (report.view).
    return _REPORTS


@router.get("/export")
@require_permission("report.export")
def export_reports() -> dict[str, object]:
    # No config entry required: the decorator provides the rule, enforced globally.
    return {"format": "csv", "rows": len(_REPORTS)}


@router.get("/{report_id}")
@require_roles(["member"])
def get_report(report_id: int) -> dict[str, object]:
    for report in _REPORTS:
        if report["id"] == report_id:
            return report
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
