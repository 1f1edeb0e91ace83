"""
Request dependencies shared by the route modules.
"""

from fastapi import Request

from planner.core.config import get_settings
from planner.services.tenant_guard import require_tenant


async def get_tenant_id(request: Request) -> str:
    """
    Tenant (company) id of the caller, read from the TENANT_HEADER header
    that the request logging middleware also binds. Authentication happens
    upstream; this service only requires that the tenant context is present.
    """
    return require_tenant(request.headers.get(get_settings().TENANT_HEADER))
