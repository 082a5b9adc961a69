"""
Unit Tests for Health Check Endpoints.

Tests the health check functionality including:
- Liveness check (/health)
- Readiness check (/health/ready)
- Database and search index checks
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from notecore.backend.api.health import check_database, health_check, readiness_check


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_health_returns_healthy(self):
        assert await health_check() == {"status": "healthy"}


class TestCheckDatabase:
    """Tests for the database health check function."""

    @pytest.mark.asyncio
    async def test_healthy_when_queries_succeed(self, mock_db_session):
        result = await check_database(mock_db_session)

        assert result["status"] == "healthy"
        assert result["latency_ms"] >= 0
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_unhealthy_when_index_missing(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=[None, OperationalError("stmt", {}, Exception("no such table: notes_fts"))]
        )

        result = await check_database(mock_db_session)

        assert result["status"] == "unhealthy"
        assert "notes_fts" in result["error"]


class TestReadinessCheck:
    """Tests for the readiness endpoint function."""

    @pytest.mark.asyncio
    async def test_ready_when_database_healthy(self, mock_db_session):
        result = await readiness_check(mock_db_session)

        assert result["status"] == "healthy"
        assert result["checks"]["database"]["status"] == "healthy"
        assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_raises_503_when_database_unhealthy(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("stmt", {}, Exception("unable to open database"))
        )

        with pytest.raises(HTTPException) as exc_info:
            await readiness_check(mock_db_session)

        assert exc_info.value.status_code == 503
        assert exc_info.value.detail["status"] == "unhealthy"
