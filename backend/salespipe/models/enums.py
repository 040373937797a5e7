import enum


class ProposalStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    viewed = "viewed"
    approved = "approved"
    declined = "declined"


class BlockType(str, enum.Enum):
    rich_text = "rich_text"
    pricing_table = "pricing_table"
    image = "image"
    video = "video"
    signature = "signature"


class PricingItemType(str, enum.Enum):
    standard = "standard"
    fixed = "fixed"
    quantity = "quantity"
    # selectable by the client, never part of the committed total
    optional = "optional"


OPEN_STATUSES = (ProposalStatus.draft, ProposalStatus.sent, ProposalStatus.viewed)
DECIDED_STATUSES = (ProposalStatus.approved, ProposalStatus.declined)
