"""AdsIntel — Meta API Endpoints.

Fetch functions for the Meta resources the sync needs. Insight responses
are also written to the immutable raw store for auditing.
"""

import json
from typing import Any, Dict, List

from sqlmodel import Session

from app.connectors.meta.client import MetaClient, META_BASE
from app.models.raw_models import RawMetaData
from app.core.logging import get_logger

logger = get_logger("meta.endpoints")

INSIGHT_FIELDS = (
    "campaign_id,campaign_name,adset_id,adset_name,ad_id,ad_name,"
    "spend,impressions,clicks,reach,actions,conversions,"
    "cpc,ctr,cpm,frequency"
)
LEADGEN_FIELDS = "id,created_time,field_data,ad_id,ad_name,campaign_id,campaign_name"
THUMB_CHUNK = 50


def account_path(account_id: str) -> str:
    """Ad account ids are stored bare or with the act_ prefix."""
    account_id = account_id.strip()
    return account_id if account_id.startswith("act_") else f"act_{account_id}"


class MetaEndpoints:
    """Fetch raw data from Meta for one user."""

    def __init__(self, client: MetaClient, session: Session, user_id: str):
        self.client = client
        self.session = session
        self.user_id = user_id

    def _store_raw(
        self,
        account_id: str,
        endpoint: str,
        level: str,
        date_start: str,
        date_stop: str,
        payload: Any,
    ) -> RawMetaData:
        """Persist raw response to the immutable store (committed with the batch)."""
        raw = RawMetaData(
            user_id=self.user_id,
            account_id=account_id,
            endpoint=endpoint,
            level=level,
            date_start=date_start,
            date_stop=date_stop,
            payload_json=(
                json.dumps(payload) if not isinstance(payload, str) else payload
            ),
        )
        self.session.add(raw)
        return raw

    # ── Account ──

    async def fetch_account_name(self, account_id: str) -> str:
        url = f"{META_BASE}/{account_path(account_id)}"
        result = await self.client.get(url, {"fields": "name,currency"})
        return result.get("name") or f"Conta {account_id}"

    # ── Insights ──

    async def fetch_insights(
        self,
        account_id: str,
        date_start: str,
        date_stop: str,
        level: str = "campaign",
    ) -> List[Dict[str, Any]]:
        """Fetch daily insights for one account at the given level."""
        url = f"{META_BASE}/{account_path(account_id)}/insights"
        params = {
            "level": level,
            "fields": INSIGHT_FIELDS,
            "time_range": json.dumps({"since": date_start, "until": date_stop}),
            "time_increment": "1",
            "limit": 500,
        }
        data = await self.client.paginated_get(url, params)
        self._store_raw(account_id, "insights", level, date_start, date_stop, data)
        logger.info(
            f"Fetched {len(data)} {level} insight rows",
            extra={"account_id": account_id, "count": len(data)},
        )
        return data

    # ── Creatives ──

    async def fetch_thumbnails(self, ad_ids: List[str]) -> Dict[str, str]:
        """Resolve ad id → creative image/thumbnail URL via batch requests."""
        thumbnails: Dict[str, str] = {}
        for i in range(0, len(ad_ids), THUMB_CHUNK):
            chunk = ad_ids[i : i + THUMB_CHUNK]
            batch = [
                {
                    "method": "GET",
                    "relative_url": f"{ad_id}?fields=creative{{id,image_url,thumbnail_url}}",
                }
                for ad_id in chunk
            ]
            response = await self.client.post(
                META_BASE, params={"batch": json.dumps(batch)}
            )
            if not isinstance(response, list):
                continue
            for ad_id, item in zip(chunk, response):
                if not item or item.get("code") != 200:
                    continue
                body = json.loads(item.get("body") or "{}")
                creative = body.get("creative") or {}
                url = creative.get("image_url") or creative.get("thumbnail_url")
                if url:
                    thumbnails[ad_id] = url
        return thumbnails

    # ── Lead Ads ──

    async def fetch_leadgen(self, leadgen_id: str) -> Dict[str, Any]:
        """Fetch one lead-gen form submission."""
        url = f"{META_BASE}/{leadgen_id}"
        return await self.client.get(url, {"fields": LEADGEN_FIELDS})
