from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from .api.api import api_router
from .core.errors import CampusNetError
from .db.database import create_tables
from fastapi.responses import JSONResponse, Response
import logging
import json
import traceback

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # make sure tables are created
    create_tables()
    yield

logger = logging.getLogger("fastapi")

app = FastAPI(title="campusnet", lifespan=lifespan)


@app.exception_handler(CampusNetError)
async def campusnet_error_handler(request: Request, exc: CampusNetError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    body = await request.body()
    request_info = {
        "url": str(request.url),
        "method": request.method,
        "body": body.decode(errors="replace") if body else None,
        "path_params": request.path_params,
        "query_params": dict(request.query_params)
    }

    try:
        response = await call_next(request)

        if response.status_code >= 400:
            response_body = b""
            async for chunk in response.body_iterator:
                response_body += chunk

            logger.error(
                f"Request failed with status {response.status_code}\n"
                f"Request: {json.dumps(request_info, indent=2)}\n"
                f"Response: {response_body.decode(errors='replace')}\n"
            )
            headers = {k: v for k, v in response.headers.items() if k.lower() != "content-length"}
            if response_body and not response.headers.get("content-type", "").startswith("application/json"):
                return Response(
                    content=response_body,
                    status_code=response.status_code,
                    headers=headers
                )
            return JSONResponse(
                content=json.loads(response_body) if response_body else None,
                status_code=response.status_code,
                headers=headers
            )

        return response

    except Exception as e:
        logger.error(
            f"Request failed with exception\n"
            f"Request: {json.dumps(request_info, indent=2)}\n"
            f"Error: {str(e)}\n"
            f"Traceback: {traceback.format_exc()}"
        )
        raise

# register the API router
app.include_router(api_router, prefix="/api")
