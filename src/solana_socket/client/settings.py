from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SocketSettings(BaseSettings):
    """Socket client settings.

    All settings can be configured via environment variables with the prefix
    SOLANA_SOCKET_, e.g. `SOLANA_SOCKET_URL=wss://api.devnet.solana.com`.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOLANA_SOCKET_",
        env_file=".env",
        extra="ignore",
    )

    url: str = "wss://api.mainnet-beta.solana.com"
    """Websocket endpoint of the RPC node."""

    open_timeout: float = Field(default=5.0, gt=0)
    """Seconds allowed for the opening handshake."""

    close_timeout: float = Field(default=10.0, gt=0)
    """Seconds allowed for the closing handshake."""

    ping_interval: float | None = 20.0
    """Seconds between keepalive pings; None disables them."""

    ping_timeout: float | None = 20.0
    """Seconds to wait for a pong before the connection is considered dead."""

    max_size: int | None = 2**24
    """Largest inbound frame accepted, in bytes. Program notifications can be large."""

    enable_debug_logs: bool = False
    """Log every inbound and outbound frame at INFO level."""
