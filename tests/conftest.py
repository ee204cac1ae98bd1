import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise
from scimcore.config import Settings
from scimcore.main import create_app
from scimcore.repositories import InMemoryRepository
from scimcore.schemas import ResourceType
from scimcore.services import GroupProvider, UserProvider


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, debug=False, environment="development", repository_backend="memory")


@pytest.fixture
def user_provider():
    return UserProvider(InMemoryRepository(ResourceType.USER))


@pytest.fixture
def group_provider():
    return GroupProvider(InMemoryRepository(ResourceType.GROUP))


@pytest_asyncio.fixture
async def client(test_settings, user_provider, group_provider):
    app = create_app(test_settings, user_provider=user_provider, group_provider=group_provider)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def initialize_db():
    # Tortoise ORM against an in-memory SQLite database
    config = Settings(_env_file=None, database_url="sqlite://:memory:")
    await Tortoise.init(config=config.tortoise_orm_config)
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()
