"""
Authentication-related structures.

Only the rudimentary authentication is supported: the information passed
to the HTTP protocol and TCP/SSL connection, and nothing more than that:

* The server's base URL (scheme, host, port, and an optional path prefix).
* SSL verification/ignorance flag.
* SSL certificate authority.
* HTTP ``Authorization: Basic username:password``.
"""
import dataclasses
import os


class LoginError(Exception):
    """ Raised when the connection to the server cannot be configured. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    A single endpoint with specific credentials and connection flags to use.
    """
    server: str  # e.g. "https://nexus.example.com:8443"
    username: str | None = None
    password: str | None = None
    insecure: bool | None = None
    ca_path: str | None = None
    ca_data: bytes | None = None

    def __repr__(self) -> str:
        # Never leak the password to the logs or tracebacks.
        masked = '***' if self.password else None
        return (f"{self.__class__.__name__}(server={self.server!r}, username={self.username!r}, "
                f"password={masked!r}, insecure={self.insecure!r}, ca_path={self.ca_path!r})")


def has_env() -> bool:
    return bool(os.environ.get('NEXUS_URL'))


def login_via_env() -> ConnectionInfo:
    """
    Build the connection info from the environment variables.

    The variable names are the same as commonly used by other Nexus tools:
    ``NEXUS_URL``, ``NEXUS_USERNAME``, ``NEXUS_PASSWORD``,
    ``NEXUS_INSECURE_SKIP_VERIFY``.
    """
    server = os.environ.get('NEXUS_URL')
    if not server:
        raise LoginError("Cannot connect to Nexus: neither the server nor NEXUS_URL is set.")
    insecure = os.environ.get('NEXUS_INSECURE_SKIP_VERIFY', '').lower() in {'1', 'true', 'yes'}
    return ConnectionInfo(
        server=server,
        username=os.environ.get('NEXUS_USERNAME') or None,
        password=os.environ.get('NEXUS_PASSWORD') or None,
        insecure=insecure,
    )
