"""Fetch gateway for the content API (Directus REST, ``{data: [...]}`` envelopes)."""

import asyncio
import logging
from enum import StrEnum
from typing import Any

import httpx

from src.core.auth.credential import Credential
from src.core.exceptions import AuthenticationError, UpstreamError

logger = logging.getLogger(__name__)


class Collection(StrEnum):
    """Collections the dashboard reads. ``users`` is a system collection."""

    USERS = "users"
    LESSONS = "lessons"
    PACKAGES = "packages"
    PAYMENTS = "payments"
    INSTRUMENTS = "instruments"
    STUDENT_TEACHER_RELATIONS = "student_teacher_relations"
    STUDENT_INSTRUMENTS = "junction_students_instruments"
    TEACHER_INSTRUMENTS = "junction_teachers_instruments"

    @property
    def path(self) -> str:
        if self is Collection.USERS:
            return "/users"
        return f"/items/{self.value}"


class DirectusClient:
    """
    Reads whole collections with the given credential.

    No pagination, filtering or retries: every call fetches the entire
    collection. A 401 invalidates the credential and raises AuthenticationError;
    any other failure raises UpstreamError.
    """

    def __init__(self, http: httpx.AsyncClient, credential: Credential):
        self.http = http
        self.credential = credential

    async def fetch_collection(self, collection: Collection) -> list[dict[str, Any]]:
        """Fetch one collection and unwrap its ``data`` array."""
        headers = self.credential.auth_headers()
        try:
            response = await self.http.get(
                collection.path, params={"limit": -1}, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("Transport error fetching %s: %s", collection.value, e)
            raise UpstreamError(collection.value) from e

        if response.status_code == 401:
            self.credential.invalidate()
            raise AuthenticationError("Authentication token was rejected by the content API")
        if response.status_code >= 400:
            raise UpstreamError(collection.value, response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(collection.value, response.status_code) from e

        data = payload.get("data") if isinstance(payload, dict) else None
        # Shape is not validated beyond the envelope; a missing array reads as empty
        if not isinstance(data, list):
            return []
        return data

    async def fetch_many(
        self, *collections: Collection
    ) -> dict[Collection, list[dict[str, Any]]]:
        """
        Fetch several collections concurrently and wait for all of them.

        Fails as a whole on the first error: no partial result is returned.
        """
        results = await asyncio.gather(
            *(self.fetch_collection(c) for c in collections)
        )
        return dict(zip(collections, results))
