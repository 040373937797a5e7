from __future__ import annotations

import argparse
import random
from datetime import date

from sqlalchemy import select

from salespipe.db.session import SessionLocal
from salespipe.models.enums import PricingItemType, ProposalStatus
from salespipe.models.user import User
from salespipe.services.pipeline import initialize_default_stages
from salespipe.services.seed import DEMO_EMAIL, add_demo_proposal
from salespipe.utils.periods import shift_month, today_utc


STATUS_WEIGHTS = {
    ProposalStatus.draft: 2,
    ProposalStatus.sent: 2,
    ProposalStatus.viewed: 2,
    ProposalStatus.approved: 5,
    ProposalStatus.declined: 3,
}

ITEM_NAMES = ("Strategy", "Design", "Build", "Training", "Support", "Licensing")


def _target_user(db, email: str) -> User:
    user = db.scalar(select(User).where(User.email == email))
    if user is None:
        raise RuntimeError(f"No user {email}. Start the API once to seed the demo user.")
    return user


def _random_items(rng: random.Random) -> tuple[tuple[str, PricingItemType, str], ...]:
    count = rng.randint(1, 4)
    items = []
    for _ in range(count):
        item_type = rng.choices(
            [PricingItemType.standard, PricingItemType.fixed, PricingItemType.quantity, PricingItemType.optional],
            weights=[5, 3, 1, 1],
        )[0]
        price = f"{rng.randint(2, 400) * 50}.00"
        items.append((rng.choice(ITEM_NAMES), item_type, price))
    return tuple(items)


def seed(email: str, months: int, per_month: int, rng_seed: int) -> int:
    rng = random.Random(rng_seed)
    today = today_utc()
    created = 0
    with SessionLocal() as db:
        user = _target_user(db, email)
        initialize_default_stages(db, user.id)
        statuses = list(STATUS_WEIGHTS)
        weights = list(STATUS_WEIGHTS.values())
        for months_ago in range(months - 1, -1, -1):
            year, month = shift_month(today.year, today.month, -months_ago)
            last_day = today.day if months_ago == 0 else 28
            for _ in range(per_month):
                status = rng.choices(statuses, weights=weights)[0]
                add_demo_proposal(
                    db,
                    user=user,
                    created_on=date(year, month, rng.randint(1, last_day)),
                    status=status,
                    items=_random_items(rng),
                    tax_rate=rng.choice([None, None, "5", "10", "20"]),
                    estimated_value=f"{rng.randint(5, 300) * 100}.00" if rng.random() < 0.2 else None,
                )
                created += 1
        db.commit()
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate synthetic proposal history.")
    parser.add_argument("--email", default=DEMO_EMAIL)
    parser.add_argument("--months", type=int, default=18)
    parser.add_argument("--per-month", type=int, default=12)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()
    created = seed(args.email, args.months, args.per_month, args.seed)
    print(f"Created {created} synthetic proposals for {args.email}.")


if __name__ == "__main__":
    main()
