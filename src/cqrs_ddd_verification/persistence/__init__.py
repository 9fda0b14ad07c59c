"""SQLAlchemy (async) persistence for challenges and trusted devices.

Example:
    ```python
    engine = create_async_engine("postgresql+asyncpg://...")
    await create_schema(engine)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    challenges = SQLAlchemyChallengeStore(factory)
    devices = SQLAlchemyTrustedDeviceStore(factory)
    ```
"""

from .challenges import SQLAlchemyChallengeStore
from .devices import SQLAlchemyTrustedDeviceStore
from .models import Base, ChallengeModel, TrustedDeviceModel, create_schema
from .types import UTCDateTime
from .uow import SQLAlchemyUnitOfWork

__all__: list[str] = [
    "Base",
    "ChallengeModel",
    "SQLAlchemyChallengeStore",
    "SQLAlchemyTrustedDeviceStore",
    "SQLAlchemyUnitOfWork",
    "TrustedDeviceModel",
    "UTCDateTime",
    "create_schema",
]
