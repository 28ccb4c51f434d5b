"""
Gateway API topics.

The documentation lists request topics as:
    <mqtt_prefix>/_CLIENTS/ZWAVE_GATEWAY-<mqtt_name>/api/<api_name>/set

The -<mqtt_name> suffix is optional on current gateway releases, so it is
only added when a gateway name is configured.
https://zwave-js.github.io/zwavejs2mqtt/#/guide/mqtt?id=apis
"""

from typing import Optional

GATEWAY_CLIENT = "ZWAVE_GATEWAY"

API_GET_NODES = "getNodes"
API_WRITE_VALUE = "writeValue"

NODE_VALUE_UPDATED_EVENT = "_EVENTS/+/node/node_value_updated"


def join_topic(*parts: Optional[str]) -> str:
    """
    Join topic levels, ignoring empty parts and stray slashes.

    Example:
        >>> join_topic("zwave", "/_CLIENTS/ZWAVE_GATEWAY/api/getNodes")
        'zwave/_CLIENTS/ZWAVE_GATEWAY/api/getNodes'
    """
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


def gateway_client(gateway_name: Optional[str] = None) -> str:
    if gateway_name:
        return f"{GATEWAY_CLIENT}-{gateway_name}"
    return GATEWAY_CLIENT


def api_response_topic(api: str, gateway_name: Optional[str] = None) -> str:
    """Topic the gateway publishes an API response on (relative)."""
    return join_topic("_CLIENTS", gateway_client(gateway_name), "api", api)


def api_request_topic(api: str, gateway_name: Optional[str] = None) -> str:
    """Topic an API request is published on (relative)."""
    return join_topic(api_response_topic(api, gateway_name), "set")
