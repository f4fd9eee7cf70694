"""
Mailing-list integration via the Mailchimp Marketing API.
"""

import hashlib
import logging
from typing import List, Optional

import httpx

from .base import MailingListSink, Subscriber

logger = logging.getLogger(__name__)


def subscriber_hash(email: str) -> str:
    """Mailchimp member id: md5 of the lowercased address."""
    return hashlib.md5(email.lower().encode("utf-8")).hexdigest()


class MailchimpList(MailingListSink):
    """Adds and tags list members in a Mailchimp audience."""

    DEFAULT_TAGS = ["website-lead"]

    def __init__(
        self,
        api_key: Optional[str],
        server_prefix: Optional[str],
        list_id: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.server_prefix = server_prefix
        self.list_id = list_id
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.server_prefix and self.list_id)

    @property
    def base_url(self) -> str:
        return f"https://{self.server_prefix}.api.mailchimp.com/3.0/lists/{self.list_id}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=("anystring", self.api_key or ""),
            timeout=self.timeout,
            transport=self.transport,
        )

    async def add_subscriber(self, subscriber: Subscriber) -> bool:
        """
        Upsert a list member, then apply its tags.

        Returns:
            True if the member was stored
        """
        if not self.is_configured:
            logger.warning("Mailchimp credentials not configured")
            return False

        member_url = f"{self.base_url}/members/{subscriber_hash(subscriber.email)}"
        payload = {
            "email_address": subscriber.email,
            "status_if_new": "subscribed",
            "merge_fields": {
                "FNAME": subscriber.first_name or "",
                "LNAME": subscriber.last_name or "",
                "COMPANY": subscriber.company or "",
                "JOBTITLE": subscriber.job_title or "",
            },
        }
        tags = subscriber.tags or self.DEFAULT_TAGS

        try:
            async with self._client() as client:
                resp = await client.put(member_url, json=payload)
                if resp.status_code >= 400:
                    logger.error(f"Failed to add subscriber to Mailchimp: {resp.status_code} {resp.text[:500]}")
                    return False
                await self._apply_tags(client, member_url, tags)
        except httpx.HTTPError as e:
            logger.error(f"Failed to add subscriber to Mailchimp: {e}")
            return False

        logger.info(f"Upserted subscriber: {subscriber.email}")
        return True

    async def _apply_tags(self, client: httpx.AsyncClient, member_url: str, tags: List[str]) -> bool:
        resp = await client.post(
            f"{member_url}/tags",
            json={"tags": [{"name": tag, "status": "active"} for tag in tags]},
        )
        if resp.status_code >= 400:
            logger.error(f"Failed to tag subscriber: {resp.status_code} {resp.text[:500]}")
            return False
        return True
