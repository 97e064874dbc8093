"""Background workers."""
from .crowdfunding_refunds import CrowdfundingRefundJob

__all__ = ["CrowdfundingRefundJob"]
