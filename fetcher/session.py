"""
Session login against the management server API.
"""

from dataclasses import dataclass, field
import structlog

from fetcher.rest_client import RestClient, rest_base

logger = structlog.get_logger()


@dataclass
class ServerInfo:
    """Connection details for one server."""
    fqdn: str
    username: str
    password: str = field(repr=False)
    label: str = ""

    def __post_init__(self):
        if not self.label:
            self.label = self.fqdn

    @property
    def rest_base(self) -> str:
        return rest_base(self.fqdn)


def login(client: RestClient, server: ServerInfo) -> str:
    """
    Open a session on a server.

    Args:
        client: REST client
        server: Server to log in to

    Returns:
        Session token for the "session" header
    """
    logger.info("Retrieving session", fqdn=server.fqdn, username=server.username)

    body = client.post(
        f"{server.rest_base}/session/login",
        json={
            "username": server.username,
            "password": server.password,
        }
    )

    return body["data"]["session"]
