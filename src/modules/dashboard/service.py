"""Service for dashboard views: fetch collections, then build the view model."""

import logging
from collections.abc import Callable
from typing import Any

from src.core.config import Settings
from src.core.exceptions import UpstreamError, ViewLoadError
from src.integrations.directus.client import Collection, DirectusClient
from src.modules.dashboard import builders
from src.modules.reporting.expansion import ViewExpansion

logger = logging.getLogger(__name__)

C = Collection


class DashboardService:
    """
    One method per view. Each fetches every collection the view needs
    concurrently and builds the view from the complete data set.

    Any fetch failure fails the whole view with ViewLoadError (logged);
    an authentication failure propagates as is so the caller gets 401.
    """

    def __init__(self, client: DirectusClient, settings: Settings):
        self.client = client
        self.settings = settings

    async def _load(
        self,
        view: str,
        collections: tuple[Collection, ...],
        build: Callable[[dict[Collection, list[dict]]], Any],
    ) -> Any:
        try:
            data = await self.client.fetch_many(*collections)
        except UpstreamError as e:
            logger.exception("Error loading %s view: %s", view, e.message)
            raise ViewLoadError(view) from e
        # Records that are not objects cannot be read by field
        records = {c: [r for r in rows if isinstance(r, dict)] for c, rows in data.items()}
        return build(records)

    async def get_overview(self) -> dict:
        return await self._load(
            "overview",
            (C.USERS, C.LESSONS, C.INSTRUMENTS, C.PACKAGES, C.PAYMENTS),
            lambda d: builders.build_overview(
                d[C.USERS],
                d[C.LESSONS],
                d[C.INSTRUMENTS],
                d[C.PACKAGES],
                d[C.PAYMENTS],
                teacher_role_id=self.settings.teacher_role_id,
                student_role_id=self.settings.student_role_id,
                recent_days=self.settings.recent_lessons_days,
            ),
        )

    async def get_financial(self, expansion: ViewExpansion | None = None) -> dict:
        return await self._load(
            "financial",
            (C.PAYMENTS, C.PACKAGES, C.USERS, C.INSTRUMENTS),
            lambda d: builders.build_financial(
                d[C.PAYMENTS], d[C.PACKAGES], d[C.USERS], d[C.INSTRUMENTS], expansion
            ),
        )

    async def get_lessons(self, expansion: ViewExpansion | None = None) -> dict:
        return await self._load(
            "lessons",
            (C.LESSONS, C.PACKAGES, C.USERS),
            lambda d: builders.build_lessons(d[C.LESSONS], d[C.PACKAGES], d[C.USERS], expansion),
        )

    async def get_packages(self, expansion: ViewExpansion | None = None) -> dict:
        return await self._load(
            "packages",
            (C.PACKAGES, C.LESSONS, C.USERS, C.INSTRUMENTS),
            lambda d: builders.build_packages(
                d[C.PACKAGES],
                d[C.LESSONS],
                d[C.USERS],
                d[C.INSTRUMENTS],
                expansion,
                recent_lessons_limit=self.settings.recent_lessons_limit,
            ),
        )

    async def get_students(self, expansion: ViewExpansion | None = None) -> dict:
        return await self._load(
            "students",
            (C.PACKAGES, C.LESSONS, C.USERS, C.INSTRUMENTS),
            lambda d: builders.build_students(
                d[C.PACKAGES], d[C.LESSONS], d[C.USERS], d[C.INSTRUMENTS], expansion
            ),
        )

    async def get_teachers(self, expansion: ViewExpansion | None = None) -> dict:
        return await self._load(
            "teachers",
            (C.USERS, C.LESSONS, C.STUDENT_TEACHER_RELATIONS, C.INSTRUMENTS),
            lambda d: builders.build_teachers(
                d[C.USERS],
                d[C.LESSONS],
                d[C.STUDENT_TEACHER_RELATIONS],
                d[C.INSTRUMENTS],
                teacher_role_id=self.settings.teacher_role_id,
                expansion=expansion,
            ),
        )

    async def get_instruments(self) -> dict:
        return await self._load(
            "instruments",
            (C.INSTRUMENTS, C.STUDENT_INSTRUMENTS, C.TEACHER_INSTRUMENTS),
            lambda d: builders.build_instruments(
                d[C.INSTRUMENTS], d[C.STUDENT_INSTRUMENTS], d[C.TEACHER_INSTRUMENTS]
            ),
        )
