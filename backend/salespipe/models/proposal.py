from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salespipe.db.base import Base
from salespipe.models.enums import BlockType, PricingItemType, ProposalStatus


class Proposal(Base):
    __tablename__ = "proposals"
    __table_args__ = (
        CheckConstraint("estimated_value IS NULL OR estimated_value >= 0", name="ck_proposals_estimated_value"),
        CheckConstraint("tax_rate IS NULL OR tax_rate >= 0", name="ck_proposals_tax_rate"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    pipeline_stage_id: Mapped[int | None] = mapped_column(
        ForeignKey("pipeline_stages.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    status: Mapped[ProposalStatus] = mapped_column(
        Enum(ProposalStatus, name="proposal_status"),
        default=ProposalStatus.draft,
        nullable=False,
        index=True,
    )

    estimated_value: Mapped[Decimal | None] = mapped_column(Numeric(24, 2), nullable=True)
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(8, 3), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    first_viewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="proposals")
    pipeline_stage: Mapped["PipelineStage | None"] = relationship("PipelineStage", back_populates="proposals")
    blocks: Mapped[list["ProposalBlock"]] = relationship(
        "ProposalBlock",
        back_populates="proposal",
        cascade="all, delete-orphan",
        order_by="ProposalBlock.position",
    )


class ProposalBlock(Base):
    __tablename__ = "proposal_blocks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    proposal_id: Mapped[int] = mapped_column(
        ForeignKey("proposals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    block_type: Mapped[BlockType] = mapped_column(
        Enum(BlockType, name="block_type"),
        default=BlockType.rich_text,
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    proposal: Mapped["Proposal"] = relationship("Proposal", back_populates="blocks")
    pricing_items: Mapped[list["PricingItem"]] = relationship(
        "PricingItem",
        back_populates="block",
        cascade="all, delete-orphan",
        order_by="PricingItem.position",
    )


class PricingItem(Base):
    __tablename__ = "pricing_items"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_pricing_items_price"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    block_id: Mapped[int] = mapped_column(
        ForeignKey("proposal_blocks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    item_type: Mapped[PricingItemType] = mapped_column(
        Enum(PricingItemType, name="pricing_item_type"),
        default=PricingItemType.standard,
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(24, 2), default=0, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    block: Mapped["ProposalBlock"] = relationship("ProposalBlock", back_populates="pricing_items")
