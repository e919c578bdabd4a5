from typing import Literal

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

ReportType = Literal["daily", "weekly", "monthly", "yearly"]
DetailedReportType = Literal["sale", "damage", "expense"]
RecordId = int | float | str


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class DateRange(CamelModel):
    start_date: str
    end_date: str


class ReportOptions(CamelModel):
    type: ReportType = "daily"
    date: str | None = None
    date_range: DateRange | None = None
    include_detailed_reports: bool = True
    include_top_products: bool = True
    include_damaged_items: bool = True
    include_expenses: bool = True


class ReportSummary(CamelModel):
    total_sales: float = 0.0
    total_profit: float = 0.0
    total_damages: float = 0.0
    sales_count: int = 0
    previous_total_sales: float = 0.0
    previous_total_profit: float = 0.0
    previous_total_damages: float = 0.0
    previous_sales_count: int = 0


class ChartBucket(CamelModel):
    name: str
    revenue: float = 0.0
    profit: float = 0.0


class TopProduct(CamelModel):
    id: RecordId
    name: str
    sold_quantity: float = 0.0
    revenue: float = 0.0
    profit: float = 0.0


class DetailedReportEntry(CamelModel):
    id: RecordId | None
    date: str
    type: DetailedReportType
    amount: float
    details: str
    profit: float | None = None
    customer_name: str | None = None
    payment_status: str | None = None
    product_name: str | None = None
    quantity: float | None = None
    expense_type: str | None = None


class ReportResult(CamelModel):
    summary: ReportSummary
    chart_data: list[ChartBucket]
    top_products: list[TopProduct]
    detailed_reports: list[DetailedReportEntry]
