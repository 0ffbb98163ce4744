from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from dbtunnel.config.settings import get_settings
from dbtunnel.observability.logger import log_event
from dbtunnel.outputs.query_response import build_failure_response
from dbtunnel.services.cosmos_service import SOURCE as COSMOS_SOURCE, CosmosService
from dbtunnel.services.health_service import HealthService
from dbtunnel.services.sql_service import SOURCE as SQL_SOURCE, SqlService
from dbtunnel.utils.exceptions import InvalidRequestError, MissingConnectionStringError


router = APIRouter()


# ==================================================
# DEPENDENCIES
# ==================================================

def get_cosmos_service() -> CosmosService:
    return CosmosService()


def get_sql_service() -> SqlService:
    return SqlService()


def get_health_service() -> HealthService:
    return HealthService()


def read_connection_string(request: Request) -> str:
    header = get_settings().connection_string_header
    value = request.headers.get(header)

    if value is None:
        raise MissingConnectionStringError(f"{header} header is required")
    if not value.strip():
        raise MissingConnectionStringError(f"{header} header cannot be empty")
    return value


def _bad_request(content) -> JSONResponse:
    return JSONResponse(status_code=400, content=content)


def _log_failure(endpoint: str, e: Exception):
    log_event("REQUEST_FAILED", {
        "endpoint": endpoint,
        "error_type": type(e).__name__,
        "error": str(e),
    })


# ==================================================
# HEALTH
# ==================================================

@router.get("/health")
def health(service: HealthService = Depends(get_health_service)):
    return service.check_health()


# ==================================================
# COSMOS
# ==================================================

@router.post("/api/cosmos/schema")
def cosmos_schema(
    payload: dict,
    request: Request,
    service: CosmosService = Depends(get_cosmos_service),
):
    try:
        connection_string = read_connection_string(request)
        schema = service.get_schema(payload.get("databaseName"), connection_string)
    except InvalidRequestError as e:
        return _bad_request({"error": str(e)})
    except Exception as e:
        _log_failure("cosmos_schema", e)
        return _bad_request({"success": False, "error": str(e), "schema": None})

    return {"success": True, "error": None, "schema": schema.to_dict()}


@router.post("/api/cosmos/test")
def cosmos_test(
    payload: dict,
    request: Request,
    service: CosmosService = Depends(get_cosmos_service),
):
    try:
        connection_string = read_connection_string(request)
        service.test_connection(payload.get("databaseName"), connection_string)
    except InvalidRequestError as e:
        return _bad_request({"error": str(e)})
    except Exception as e:
        _log_failure("cosmos_test", e)
        return _bad_request({"success": False, "error": str(e)})

    return {"success": True, "message": "Connection successful"}


@router.post("/api/cosmos/query")
def cosmos_query(
    payload: dict,
    request: Request,
    service: CosmosService = Depends(get_cosmos_service),
):
    try:
        connection_string = read_connection_string(request)
        response = service.execute_query(
            payload.get("query"),
            payload.get("databaseName"),
            payload.get("containerName"),
            connection_string,
        )
    except InvalidRequestError as e:
        return _bad_request({"error": str(e)})
    except Exception as e:
        _log_failure("cosmos_query", e)
        failure = build_failure_response(str(e), COSMOS_SOURCE, {
            "databaseName": payload.get("databaseName"),
            "containerName": payload.get("containerName"),
            "query": payload.get("query"),
        })
        return _bad_request(failure.to_dict())

    return response.to_dict()


# ==================================================
# SQL
# ==================================================

@router.post("/api/sql/test")
def sql_test(
    request: Request,
    service: SqlService = Depends(get_sql_service),
):
    try:
        connection_string = read_connection_string(request)
        service.test_connection(connection_string)
    except InvalidRequestError as e:
        return _bad_request({"error": str(e)})
    except Exception as e:
        _log_failure("sql_test", e)
        return _bad_request({"success": False, "error": str(e)})

    return {"success": True, "message": "Connection successful"}


@router.post("/api/sql/query")
def sql_query(
    payload: dict,
    request: Request,
    service: SqlService = Depends(get_sql_service),
):
    try:
        connection_string = read_connection_string(request)
        response = service.execute_query(payload.get("query"), connection_string)
    except InvalidRequestError as e:
        return _bad_request({"error": str(e)})
    except Exception as e:
        _log_failure("sql_query", e)
        failure = build_failure_response(str(e), SQL_SOURCE, {"query": payload.get("query")})
        return _bad_request(failure.to_dict())

    return response.to_dict()
