"""
PA-Pedia - Asset URLs
======================
Resolves icon/background paths to displayable URLs. Static factions are
served from ASSET_BASE_URL; local factions are inlined as data: URLs built
from the blobs in the local store.
"""

import base64
import logging
import mimetypes
from typing import Dict, Optional

from pa_pedia.config import ASSET_BASE_URL

logger = logging.getLogger(__name__)


class AssetUrlResolver:
    def __init__(self, base_url: str = ASSET_BASE_URL, local_store=None):
        self.base_url = base_url.rstrip("/")
        self.local_store = local_store
        self._local_urls: Dict[str, str] = {}

    async def resolve(self, faction_id: str, relative_path: str,
                      is_local: bool) -> Optional[str]:
        path = relative_path.lstrip("/")
        if not is_local:
            return f"{self.base_url}/{faction_id}/{path}"

        cache_key = f"{faction_id}/{path}"
        if cache_key in self._local_urls:
            return self._local_urls[cache_key]
        if self.local_store is None:
            return None

        blob = await self.local_store.get_asset(faction_id, path)
        if blob is None:
            logger.debug("No local asset %s for %s", path, faction_id)
            return None
        mime = mimetypes.guess_type(path)[0] or "application/octet-stream"
        url = f"data:{mime};base64,{base64.b64encode(blob).decode('ascii')}"
        self._local_urls[cache_key] = url
        return url

    def clear_faction(self, faction_id: str):
        """Forget memoized URLs for a faction (after re-upload or delete)."""
        prefix = f"{faction_id}/"
        for key in [k for k in self._local_urls if k.startswith(prefix)]:
            del self._local_urls[key]

    def cached_count(self) -> int:
        return len(self._local_urls)
