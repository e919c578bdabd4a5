from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from posdesk.api.routes.inventory import router as inventory_router
from posdesk.api.routes.reports import router as reports_router
from posdesk.api.routes.sales import router as sales_router
from posdesk.core.config import settings
from posdesk.core.logging import setup_logging

setup_logging()

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(inventory_router)
app.include_router(sales_router)
app.include_router(reports_router)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
