"""System information tool: local time plus IP geolocation."""

import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any

import httpx

from mcp_toolkit.authorization import PathAuthorizer
from mcp_toolkit.config import ToolkitSettings
from mcp_toolkit.config.constants import IP_GEOLOCATION_FIELDS, IP_GEOLOCATION_URL
from mcp_toolkit.tools.toolset import (
    CallContext,
    OperationSpec,
    ToolDescriptor,
    ToolParameters,
    Toolset,
    define_tool,
)

logger = logging.getLogger(__name__)

GEOLOCATION_TIMEOUT = 10.0


class SystemInfoOperation(str, Enum):
    GET_LOCATION_AND_TIME = "GetLocationAndTime"


class SystemInfoParameters(ToolParameters):
    operation: SystemInfoOperation


def current_time_info(now: datetime | None = None) -> dict[str, str]:
    """Local date/time, timezone name and UTC offset."""
    now = now or datetime.now().astimezone()
    offset = now.strftime("%z")
    return {
        "date_time": now.strftime("%A, %d %B %Y %H:%M:%S"),
        "timezone": now.tzname() or "",
        "utc_offset": f"{offset[:3]}:{offset[3:]}" if offset else "+00:00",
    }


class SystemInfoTools(Toolset):
    """Reports where and when the server is running.

    Geolocation failures are reported inside the result rather than failing
    the call.
    """

    def __init__(
        self,
        settings: ToolkitSettings,
        authorizer: PathAuthorizer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(settings, authorizer)
        self._transport = transport

    def get_tools(self) -> list[ToolDescriptor]:
        """Get list of system information tools."""
        return [
            define_tool(
                "SystemInfo",
                SystemInfoParameters,
                {
                    SystemInfoOperation.GET_LOCATION_AND_TIME: OperationSpec(
                        handler=self.get_location_and_time,
                        description="Returns geographical location and current date and time",
                    )
                },
            )
        ]

    async def _fetch_location(self) -> dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=GEOLOCATION_TIMEOUT, transport=self._transport
        ) as client:
            response = await client.get(
                IP_GEOLOCATION_URL, params={"fields": IP_GEOLOCATION_FIELDS}
            )
            response.raise_for_status()
            data = response.json()

        if data.get("status") != "success":
            raise ValueError(data.get("message") or "Unknown error from ip-api.com")
        return {
            "city": data.get("city"),
            "region": data.get("regionName"),
            "country": data.get("country"),
            "ip": data.get("query"),
            "latitude": data.get("lat"),
            "longitude": data.get("lon"),
        }

    async def get_location_and_time(
        self, params: SystemInfoParameters, context: CallContext
    ) -> str:
        info: dict[str, Any] = current_time_info()
        try:
            info.update(await self._fetch_location())
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[{context.correlation_id}] Failed to retrieve location: {e}")
            info["location"] = "Position unknown"
            info["error"] = str(e)
        return json.dumps(info, indent=2)
