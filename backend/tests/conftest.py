"""Shared fixtures: in-memory database sessions and proposal builders."""

from collections.abc import Callable, Generator
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from salespipe.db.base import Base
from salespipe.models.enums import BlockType, PricingItemType, ProposalStatus
from salespipe.models.proposal import PricingItem, Proposal, ProposalBlock
from salespipe.models.user import User


@pytest.fixture
def db() -> Generator[Session, None, None]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def user(db: Session) -> User:
    row = User(email="seller@test.com", full_name="Sam Seller", is_active=True)
    db.add(row)
    db.flush()
    return row


@pytest.fixture
def make_proposal(db: Session) -> Callable[..., Proposal]:
    def _make(
        owner: User,
        *,
        status: ProposalStatus,
        created_at: datetime,
        prices: list[str] | None = None,
        optional_prices: list[str] | None = None,
        estimated_value: str | None = None,
        tax_rate: str | None = None,
        sent_at: datetime | None = None,
        first_viewed_at: datetime | None = None,
        approved_at: datetime | None = None,
        declined_at: datetime | None = None,
        pipeline_stage_id: int | None = None,
    ) -> Proposal:
        proposal = Proposal(
            user_id=owner.id,
            title="Proposal",
            status=status,
            created_at=created_at,
            sent_at=sent_at,
            first_viewed_at=first_viewed_at,
            approved_at=approved_at,
            declined_at=declined_at,
            estimated_value=Decimal(estimated_value) if estimated_value is not None else None,
            tax_rate=Decimal(tax_rate) if tax_rate is not None else None,
            pipeline_stage_id=pipeline_stage_id,
        )
        block = ProposalBlock(block_type=BlockType.pricing_table, position=0)
        block.pricing_items = [
            PricingItem(name=f"Item {index}", item_type=PricingItemType.standard, price=Decimal(price))
            for index, price in enumerate(prices or [])
        ] + [
            PricingItem(name=f"Extra {index}", item_type=PricingItemType.optional, price=Decimal(price))
            for index, price in enumerate(optional_prices or [])
        ]
        proposal.blocks = [block]
        db.add(proposal)
        db.flush()
        return proposal

    return _make
