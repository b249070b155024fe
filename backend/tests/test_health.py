import pytest

from temple_api.utils.health import check_database_connection


@pytest.mark.anyio
async def test_check_database_connection(db_engine) -> None:
    await check_database_connection(db_engine)
