"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from manhour_tracker.adapters.supabase_event_log_repository import (
    SupabaseEventLogRepository,
)
from manhour_tracker.adapters.supabase_work_order_repository import (
    SupabaseWorkOrderRepository,
)
from manhour_tracker.config import Settings
from manhour_tracker.services.cache import InMemoryCache
from manhour_tracker.services.manhours import ManHourService
from manhour_tracker.services.work_orders import WorkOrderService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    work_order_service: WorkOrderService
    manhour_service: ManHourService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    work_order_service = WorkOrderService(
        repository=SupabaseWorkOrderRepository(supabase_client),
        cache=InMemoryCache(),
        cache_ttl_seconds=resolved_settings.catalog_cache_ttl_seconds,
    )
    manhour_service = ManHourService(
        event_log=SupabaseEventLogRepository(supabase_client),
        work_orders=work_order_service,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=resolved_settings,
        work_order_service=work_order_service,
        manhour_service=manhour_service,
        close_resources=close_resources,
    )
