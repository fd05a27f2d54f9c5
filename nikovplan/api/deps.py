"""FastAPI dependencies shared by the routers"""
import logging
from typing import Optional, Union

from fastapi import Depends

from nikovplan.config.settings import get_app_config
from nikovplan.config.supabase import SimpleSupabaseClient, get_supabase_client, get_supabase_service_client
from nikovplan.services.discord_oauth import DiscordOAuthService
from nikovplan.services.identity import IdentityGate
from nikovplan.services.schedule import DemoScheduleService, ScheduleService, get_schedule_service
from nikovplan.services.todos import DemoTodoService, TodoService, get_todo_service
from nikovplan.services.users import UserService
from nikovplan.utils.clock import SystemClock, TimeSource

logger = logging.getLogger(__name__)


def get_clock() -> TimeSource:
    return SystemClock()


def get_store_client() -> Optional[SimpleSupabaseClient]:
    return get_supabase_client()


def schedule_service_dependency(
    client: Optional[SimpleSupabaseClient] = Depends(get_store_client),
    clock: TimeSource = Depends(get_clock),
) -> Union[ScheduleService, DemoScheduleService]:
    return get_schedule_service(client, clock)


def todo_service_dependency(
    client: Optional[SimpleSupabaseClient] = Depends(get_store_client),
) -> Union[TodoService, DemoTodoService]:
    return get_todo_service(client)


def identity_gate_dependency() -> IdentityGate:
    client = get_supabase_service_client()
    return IdentityGate(
        get_app_config().admin_discord_id,
        user_service=UserService(client) if client is not None else None,
    )


def discord_oauth_dependency() -> Optional[DiscordOAuthService]:
    try:
        return DiscordOAuthService()
    except ValueError as e:
        logger.error(f"Discord OAuth is not configured: {e}")
        return None
