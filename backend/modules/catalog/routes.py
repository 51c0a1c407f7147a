"""
Catalogue API routes.

This module defines FastAPI routes for managing servers, importing them and
reconciling client configuration files. Every route answers with the
service's result envelope; failures are reported in it, not as HTTP errors.
"""

from fastapi import APIRouter, Depends, Request

from modules.catalog.service import CatalogService
from schemas.catalog import BulkImportRequest, ImportResult, OperationResult, WriteClientConfigRequest
from schemas.server import DiscoveredServerEntry, ServerCreateSchema, ServerUpdateSchema

# Create router
router = APIRouter()


def get_catalog_service(request: Request) -> CatalogService:
    """Service bound to the store opened at startup."""
    return request.app.state.catalog_service


# ============================================================================
# SERVER ENDPOINTS
# ============================================================================

@router.get("/servers", response_model=OperationResult)
async def list_servers(service: CatalogService = Depends(get_catalog_service)):
    """Get all managed servers."""
    return await service.list_servers()


@router.post("/servers", response_model=OperationResult)
async def add_server(data: ServerCreateSchema, service: CatalogService = Depends(get_catalog_service)):
    """Add a new server."""
    return await service.add_server(data)


@router.get("/servers/{server_id}", response_model=OperationResult)
async def get_server(server_id: int, service: CatalogService = Depends(get_catalog_service)):
    """Get a server by id."""
    return await service.get_server(server_id)


@router.put("/servers/{server_id}", response_model=OperationResult)
async def update_server(
    server_id: int,
    data: ServerUpdateSchema,
    service: CatalogService = Depends(get_catalog_service)
):
    """Replace an existing server's definition."""
    return await service.update_server(server_id, data)


@router.delete("/servers/{server_id}", response_model=OperationResult)
async def delete_server(server_id: int, service: CatalogService = Depends(get_catalog_service)):
    """Delete a server."""
    return await service.delete_server(server_id)


@router.post("/servers/import", response_model=ImportResult)
async def bulk_import(data: BulkImportRequest, service: CatalogService = Depends(get_catalog_service)):
    """Import servers from an {"mcpServers": {...}} JSON document."""
    return await service.bulk_import(data.payload)


# ============================================================================
# CLIENT ENDPOINTS
# ============================================================================

@router.get("/clients", response_model=OperationResult)
async def detect_clients(service: CatalogService = Depends(get_catalog_service)):
    """Detect supported clients and their configuration files."""
    return await service.detect_clients()


@router.get("/clients/config", response_model=OperationResult)
async def read_client_config(path: str, service: CatalogService = Depends(get_catalog_service)):
    """Read a client's configuration file."""
    return await service.read_client_config(path)


@router.post("/clients/config", response_model=OperationResult)
async def write_client_config(
    data: WriteClientConfigRequest,
    service: CatalogService = Depends(get_catalog_service)
):
    """Write servers into a client's configuration file."""
    return await service.write_client_config(data.path, data.records, data.client_id)


@router.get("/clients/discovered", response_model=OperationResult)
async def discover_servers(service: CatalogService = Depends(get_catalog_service)):
    """Servers found in detected clients' configuration files."""
    return await service.discover_servers()


@router.post("/clients/discovered/import", response_model=OperationResult)
async def promote_discovered(
    entry: DiscoveredServerEntry,
    service: CatalogService = Depends(get_catalog_service)
):
    """Add a discovered server to the catalogue."""
    return await service.promote_discovered(entry)
