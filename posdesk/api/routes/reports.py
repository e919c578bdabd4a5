import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from posdesk.core.config import settings
from posdesk.db.database import get_db
from posdesk.schemas.report import DateRange, ReportOptions, ReportResult
from posdesk.services.reports import ReportWindowError, generate_report, previous_anchor
from posdesk.services.storage import SqlReportStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Reports"])


@router.get("/reports", response_model=ReportResult)
async def get_report(
    report_type: str = Query(default="daily", alias="type", pattern="^(daily|weekly|monthly|yearly)$"),
    date: str | None = Query(default=None),
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    include_detailed_reports: bool = True,
    include_top_products: bool = True,
    include_damaged_items: bool = True,
    include_expenses: bool = True,
    compare_previous: bool = Query(default=settings.report_compare_previous),
    db: Session = Depends(get_db),
):
    date_range = None
    if start_date and end_date:
        date_range = DateRange(start_date=start_date, end_date=end_date)

    options = ReportOptions(
        type=report_type,
        date=date,
        date_range=date_range,
        include_detailed_reports=include_detailed_reports,
        include_top_products=include_top_products,
        include_damaged_items=include_damaged_items,
        include_expenses=include_expenses,
    )
    storage = SqlReportStorage(db)
    logger.info("Report request: type=%s date=%s range=%s", report_type, date, date_range)

    try:
        report = await generate_report(storage, options)
        if compare_previous and date and date_range is None:
            previous = await generate_report(
                storage,
                options.model_copy(
                    update={
                        "date": previous_anchor(report_type, date),
                        "include_detailed_reports": False,
                        "include_top_products": False,
                        "include_expenses": False,
                    }
                ),
            )
            report.summary.previous_total_sales = previous.summary.total_sales
            report.summary.previous_total_profit = previous.summary.total_profit
            report.summary.previous_total_damages = previous.summary.total_damages
            report.summary.previous_sales_count = previous.summary.sales_count
    except ReportWindowError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Error generating %s report", report_type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch report data",
        ) from exc
    return report
