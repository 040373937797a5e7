from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from salespipe.models.enums import BlockType, PricingItemType, ProposalStatus
from salespipe.models.proposal import PricingItem, Proposal, ProposalBlock
from salespipe.models.user import User
from salespipe.services.pipeline import initialize_default_stages
from salespipe.utils.periods import shift_month, today_utc


logger = logging.getLogger("salespipe.seed")

DEMO_EMAIL = "demo@salespipe.dev"

# (months ago, status, line items, tax rate, estimated value)
DEMO_PROPOSALS: tuple[tuple[int, ProposalStatus, tuple[tuple[str, PricingItemType, str], ...], str | None, str | None], ...] = (
    (11, ProposalStatus.approved, (("Discovery workshop", PricingItemType.fixed, "2500.00"),), None, None),
    (10, ProposalStatus.declined, (("Website redesign", PricingItemType.standard, "8000.00"),), "10", None),
    (9, ProposalStatus.approved, (), None, "12000.00"),
    (8, ProposalStatus.approved, (
        ("Brand strategy", PricingItemType.standard, "4000.00"),
        ("Photo shoot", PricingItemType.optional, "1500.00"),
    ), "20", None),
    (7, ProposalStatus.declined, (("Retainer", PricingItemType.quantity, "900.00"),), None, None),
    (6, ProposalStatus.approved, (("SEO audit", PricingItemType.fixed, "750.00"),), None, None),
    (5, ProposalStatus.approved, (), None, "27500.00"),
    (4, ProposalStatus.declined, (("App prototype", PricingItemType.standard, "18000.00"),), None, None),
    (3, ProposalStatus.approved, (("Content plan", PricingItemType.standard, "3200.00"),), "8.5", None),
    (2, ProposalStatus.approved, (("Analytics setup", PricingItemType.fixed, "5400.00"),), None, None),
    (1, ProposalStatus.viewed, (("Migration", PricingItemType.standard, "9600.00"),), None, None),
    (0, ProposalStatus.approved, (("Support bundle", PricingItemType.fixed, "2100.00"),), None, None),
    (0, ProposalStatus.sent, (("Campaign launch", PricingItemType.standard, "6400.00"),), "15", None),
    (0, ProposalStatus.draft, (
        ("Quarterly review", PricingItemType.standard, "1200.00"),
        ("Extra workshop", PricingItemType.optional, "600.00"),
    ), None, None),
)


def _get_or_create_user(db: Session, *, email: str, full_name: str) -> User:
    user = db.scalar(select(User).where(User.email == email))
    if user is not None:
        return user

    user = User(email=email, full_name=full_name, is_active=True)
    db.add(user)
    db.flush()
    return user


def _stamp(year: int, month: int, day: int, hour: int = 10) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def add_demo_proposal(
    db: Session,
    *,
    user: User,
    created_on: date,
    status: ProposalStatus,
    items: tuple[tuple[str, PricingItemType, str], ...],
    tax_rate: str | None = None,
    estimated_value: str | None = None,
    title: str = "",
) -> Proposal:
    created_at = _stamp(created_on.year, created_on.month, created_on.day, 9)
    sent_at = created_at + timedelta(days=1) if status != ProposalStatus.draft else None
    viewed_at = sent_at + timedelta(hours=6) if sent_at is not None else None
    proposal = Proposal(
        user_id=user.id,
        title=title or (items[0][0] if items else "Engagement"),
        status=status,
        tax_rate=Decimal(tax_rate) if tax_rate is not None else None,
        estimated_value=Decimal(estimated_value) if estimated_value is not None else None,
        created_at=created_at,
        sent_at=sent_at,
        first_viewed_at=viewed_at if status != ProposalStatus.sent else None,
        approved_at=sent_at + timedelta(days=3) if status == ProposalStatus.approved else None,
        declined_at=sent_at + timedelta(days=4) if status == ProposalStatus.declined else None,
    )
    intro = ProposalBlock(block_type=BlockType.rich_text, position=0)
    pricing = ProposalBlock(block_type=BlockType.pricing_table, position=1)
    pricing.pricing_items = [
        PricingItem(name=name, item_type=item_type, price=Decimal(price), position=index)
        for index, (name, item_type, price) in enumerate(items)
    ]
    proposal.blocks = [intro, pricing]
    db.add(proposal)
    return proposal


def seed_demo_data(db: Session, *, today: date | None = None) -> None:
    today = today or today_utc()
    user = _get_or_create_user(db, email=DEMO_EMAIL, full_name="Demo Seller")
    initialize_default_stages(db, user.id)

    existing = db.scalar(select(func.count(Proposal.id)).where(Proposal.user_id == user.id))
    if existing:
        db.commit()
        return

    for months_ago, status, items, tax_rate, estimated_value in DEMO_PROPOSALS:
        year, month = shift_month(today.year, today.month, -months_ago)
        # stay inside the month even when it is today's
        day = min(today.day, 5) if months_ago == 0 else 5
        add_demo_proposal(
            db,
            user=user,
            created_on=date(year, month, day),
            status=status,
            items=items,
            tax_rate=tax_rate,
            estimated_value=estimated_value,
        )
    db.commit()
    logger.info("Seeded %d demo proposals for %s.", len(DEMO_PROPOSALS), user.email)
