from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# Register every table on Base.metadata before create_all / alembic autogenerate.
from salespipe import models  # noqa: E402,F401
