from salespipe.models.audit import AuditLog
from salespipe.models.enums import BlockType, PricingItemType, ProposalStatus
from salespipe.models.pipeline import PipelineStage
from salespipe.models.proposal import PricingItem, Proposal, ProposalBlock
from salespipe.models.user import User

__all__ = [
    "AuditLog",
    "BlockType",
    "PricingItemType",
    "ProposalStatus",
    "PipelineStage",
    "PricingItem",
    "Proposal",
    "ProposalBlock",
    "User",
]
