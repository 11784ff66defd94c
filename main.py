import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from config import settings
from database import check_connection
from routers import billing_summaries_router, tenant_invoices_router, commission_rules_router

logging.basicConfig(
     level=settings.LOG_LEVEL,
     format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# App instance
app = FastAPI(title=settings.APP_NAME)

# CORS
app.add_middleware(
     CORSMiddleware,
     allow_origins=settings.cors_origin_list,
     allow_credentials=True,
     allow_methods=["*"],
     allow_headers=["*"],
)

app.include_router(billing_summaries_router)
app.include_router(tenant_invoices_router)
app.include_router(commission_rules_router)


@app.get("/health")
def health():
     return {"status": "ok", "database": check_connection()}


# 404 Fallback for unmatched routes; service NotFound errors keep their detail
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
     if exc.status_code == 404 and exc.detail == "Not Found":
          return JSONResponse(status_code=404, content={"error": "Route not found"})
     return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


# 500 Fallback Middleware
@app.middleware("http")
async def error_middleware(request: Request, call_next):
     try:
          return await call_next(request)
     except Exception:
          logger.exception("Unhandled error on %s %s", request.method, request.url.path)
          return JSONResponse(status_code=500, content={"error": "Internal server error"})


if __name__ == "__main__":
     uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT, reload=True)
