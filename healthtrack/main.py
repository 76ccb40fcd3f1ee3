import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from healthtrack.config import ALLOWED_ORIGINS, LOG_LEVEL
from healthtrack.core.errors import RecordsApiError
from healthtrack.routes import charts as charts_routes
from healthtrack.routes import records as records_routes

logging.getLogger("healthtrack").setLevel(LOG_LEVEL)
logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="HealthTrack", description="Record editors and trend charts for blood pressure, blood sugar and exercise records.")
app.include_router(records_routes.router)
app.include_router(charts_routes.router)


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecordsApiError)
async def records_api_error_handler(request: Request, exc: RecordsApiError):
    logger.warning(f"Records API call failed for {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": exc.detail})


@app.get("/")
def read_root():
    return {"status": "ok"}
