"""
FastAPI handlers for the availability/reliability results endpoints.
Requests are authenticated by API key, resolved to a tenant database and
answered with rendered XML or JSON payloads.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response
from typing import List, Optional
from datetime import datetime
import logging

from ...core.ports.availability_service import AvailabilityService
from ...core.ports.exceptions import RepositoryError
from ...core.ports.tenant_resolver import Tenant, TenantResolver
from ..models import CacheClearResponse, ErrorResponse, HealthResponse, ResultQueryModel


JSON_MEDIA_TYPE = "application/json"

RESULT_RESPONSES = {
    401: {"model": ErrorResponse},
    500: {"description": "Store error rendered in the requested format"}
}


def result_query(
    start_time: Optional[str] = Query(None, description="Range start, e.g. 2015-06-20T12:00:00Z"),
    end_time: Optional[str] = Query(None, description="Range end, e.g. 2015-06-23T23:00:00Z"),
    granularity: Optional[str] = Query(None, description="daily (default) or monthly"),
    availability_profile: Optional[List[str]] = Query(None),
    namespace: Optional[List[str]] = Query(None),
    group_name: Optional[List[str]] = Query(None),
    infrastructure: Optional[str] = Query(None),
    certification: Optional[str] = Query(None),
    production: Optional[str] = Query(None),
    monitored: Optional[str] = Query(None),
    format: Optional[str] = Query(None, description="xml (default) or json")
) -> ResultQueryModel:
    """Collect the shared query parameters into a ResultQueryModel."""
    return ResultQueryModel(
        start_time=start_time,
        end_time=end_time,
        granularity=granularity,
        availability_profile=availability_profile,
        namespace=namespace,
        group_name=group_name,
        infrastructure=infrastructure,
        certification=certification,
        production=production,
        monitored=monitored,
        format=format
    )


class ResultsHandlers:
    """
    FastAPI handlers for the results API.

    Routes:
        GET  /api/v1/availability/sites
        GET  /api/v1/availability/ngis
        GET  /api/v1/availability/health
        POST /api/v1/availability/cache/clear
        GET  /api/v2/results/{report}/{group_type}[/{group_name}]
    """

    def __init__(
        self,
        availability_service: AvailabilityService,
        tenant_resolver: TenantResolver,
        formatter,
        default_format: str = "xml"
    ):
        """
        Initialize handlers with their dependencies.

        Args:
            availability_service: Implementation of the AvailabilityService port
            tenant_resolver: Maps API keys to tenant databases
            formatter: Renders error payloads in the requested format
            default_format: Format used when neither ``format`` nor Accept asks for one
        """
        self.availability_service = availability_service
        self.tenant_resolver = tenant_resolver
        self.formatter = formatter
        self.default_format = default_format
        self.logger = logging.getLogger(__name__)

        self.router = APIRouter()
        self._setup_routes()

        route_count = len(self.router.routes)
        self.logger.info(f"Results router initialized with {route_count} routes")

    def _setup_routes(self):
        """Setup FastAPI routes."""

        @self.router.get(
            "/api/v1/availability/sites",
            responses=RESULT_RESPONSES,
            tags=["availability"],
            summary="Site Availability",
            description="Availability and reliability per site, daily or monthly"
        )
        async def site_availability(
            request: Request,
            params: ResultQueryModel = Depends(result_query),
            x_api_key: Optional[str] = Header(None)
        ):
            self.logger.info(f"GET /api/v1/availability/sites called ({request.url.query})")
            tenant = await self.tenant_resolver.resolve(x_api_key)
            params = self._with_format(request, params)
            return await self._respond(
                self.availability_service.site_availability, tenant, params.to_domain(), params.format
            )

        @self.router.get(
            "/api/v1/availability/ngis",
            responses=RESULT_RESPONSES,
            tags=["availability"],
            summary="NGI Availability",
            description="Site results rolled up to their NGI using the site weights"
        )
        async def ngi_availability(
            request: Request,
            params: ResultQueryModel = Depends(result_query),
            x_api_key: Optional[str] = Header(None)
        ):
            self.logger.info(f"GET /api/v1/availability/ngis called ({request.url.query})")
            tenant = await self.tenant_resolver.resolve(x_api_key)
            params = self._with_format(request, params)
            return await self._respond(
                self.availability_service.group_availability, tenant, params.to_domain(), params.format
            )

        @self.router.get(
            "/api/v2/results/{report}/{group_type}",
            responses=RESULT_RESPONSES,
            tags=["results"],
            summary="Group Results",
            description="Results of a report rolled up to the group level"
        )
        async def group_results(
            request: Request,
            report: str,
            group_type: str,
            params: ResultQueryModel = Depends(result_query),
            x_api_key: Optional[str] = Header(None)
        ):
            self.logger.info(f"GET /api/v2/results/{report}/{group_type} called ({request.url.query})")
            return await self._handle_group_results(request, report, group_type, params, x_api_key)

        @self.router.get(
            "/api/v2/results/{report}/{group_type}/{name}",
            responses=RESULT_RESPONSES,
            tags=["results"],
            summary="Single Group Results",
            description="Results of a report for one group"
        )
        async def single_group_results(
            request: Request,
            report: str,
            group_type: str,
            name: str,
            params: ResultQueryModel = Depends(result_query),
            x_api_key: Optional[str] = Header(None)
        ):
            self.logger.info(f"GET /api/v2/results/{report}/{group_type}/{name} called ({request.url.query})")
            params = params.model_copy(update={"group_name": [name]})
            return await self._handle_group_results(request, report, group_type, params, x_api_key)

        @self.router.get(
            "/api/v1/availability/health",
            response_model=HealthResponse,
            tags=["availability"],
            summary="Availability Service Health Check",
            description="Check the health status of the service and its store"
        )
        async def availability_health_check():
            self.logger.info("GET /api/v1/availability/health called")
            try:
                details = await self.availability_service.health_check()
            except Exception as e:
                self.logger.error(f"Health check failed: {e}")
                raise HTTPException(
                    status_code=503,
                    detail={
                        "status": "unhealthy",
                        "service": "availability",
                        "error": str(e),
                        "timestamp": str(datetime.now().isoformat())
                    }
                )
            return HealthResponse(
                status=details.get("status", "healthy"),
                service="availability",
                timestamp=datetime.now(),
                details=details
            )

        @self.router.post(
            "/api/v1/availability/cache/clear",
            response_model=CacheClearResponse,
            tags=["availability"],
            summary="Clear Result Cache",
            description="Drop every cached result payload"
        )
        async def clear_cache_endpoint(x_api_key: Optional[str] = Header(None)):
            await self.tenant_resolver.resolve(x_api_key)
            self.logger.info("Cache clear operation requested")
            cleared = await self.availability_service.clear_cache()
            return CacheClearResponse(cleared=cleared)

    async def _handle_group_results(
        self,
        request: Request,
        report: str,
        group_type: str,
        params: ResultQueryModel,
        api_key: Optional[str]
    ) -> Response:
        tenant = await self.tenant_resolver.resolve(api_key)
        params = self._with_format(request, params)
        return await self._respond(
            self.availability_service.supergroup_results,
            tenant,
            params.to_domain(report=report, group_type=group_type),
            params.format
        )

    def _with_format(self, request: Request, params: ResultQueryModel) -> ResultQueryModel:
        """Explicit ``format`` wins, then an Accept header asking for JSON."""
        if params.format:
            return params
        fmt = "json" if JSON_MEDIA_TYPE in request.headers.get("accept", "") else self.default_format
        return params.model_copy(update={"format": fmt})

    async def _respond(self, compute, tenant: Tenant, query, fmt: str) -> Response:
        try:
            result = await compute(tenant, query)
        except RepositoryError as e:
            self.logger.error(f"Store error for tenant {tenant.name}: {e.message} ({e.details})")
            return Response(
                content=self.formatter.render_error(e.message, fmt),
                status_code=500,
                media_type=self.formatter.media_type(fmt)
            )

        headers = {"X-Cache": "HIT" if result.from_cache else "MISS"}
        return Response(content=result.body, media_type=result.media_type, headers=headers)
