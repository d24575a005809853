from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

import httpx

from core.logging.logger import get_logger


REUSE_MARGIN = timedelta(minutes=1)


class StreamTokenService:
    """
    Issues short-lived read tokens for a player's S2 stream.
    Returns None when no token can be issued; never raises.
    """

    def __init__(
        self,
        base_url: str,
        basin: str,
        token: Optional[str],
        timeout: float = 10.0,
        default_ttl: timedelta = timedelta(hours=24),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.basin = basin
        self.token = token
        self.timeout = timeout
        self.default_ttl = default_ttl
        self.transport = transport
        self.logger = get_logger(__name__)
        self._issued: Dict[str, Tuple[str, datetime]] = {}

    async def create_player_read_token(self, player_id: str, expiration: Optional[timedelta] = None) -> Optional[str]:
        if not self.token:
            self.logger.warning("S2 token not configured, cannot create player read token")
            return None

        stream_name = f"player-{player_id}"
        now = datetime.now(timezone.utc)

        issued = self._issued.get(stream_name)
        if issued and issued[1] - now > REUSE_MARGIN:
            return issued[0]

        expires_at = now + (expiration or self.default_ttl)
        body = {
            "basins": {"exact": self.basin},
            "streams": {"exact": stream_name},
            "operations": ["read"],
            "expires_at": expires_at.isoformat(),
        }

        self.logger.debug(f"Creating S2 read token for stream {stream_name}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                headers={"Authorization": f"Bearer {self.token}"},
            ) as client:
                response = await client.post(f"{self.base_url}/v1/access-tokens", json=body)
        except httpx.HTTPError as e:
            self.logger.error(f"Error creating S2 token for player {player_id}: {e}")
            return None

        if response.is_error:
            self.logger.warning(f"Failed to create S2 token: {response.status_code} - {response.text}")
            return None

        try:
            payload = response.json()
        except ValueError:
            payload = None
        access_token = payload.get("token") if isinstance(payload, dict) else None

        if not access_token:
            self.logger.warning("S2 returned empty token")
            return None

        self._issued[stream_name] = (access_token, expires_at)
        self.logger.debug(f"Created S2 read token for player {player_id}, expires {expires_at.isoformat()}")
        return access_token
