"""Return request statuses, reason codes and the status graph."""

from django.db import models


class ReturnStatus(models.TextChoices):
    RETURN_REQUESTED = "return_requested", "Return Requested"
    UNDER_REVIEW = "under_review", "Under Review"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    ITEM_SHIPPED = "item_shipped", "Item Shipped"
    ITEM_RECEIVED = "item_received", "Item Received"
    REFUND_ISSUED = "refund_issued", "Refund Issued"


class ReturnReason(models.TextChoices):
    WRONG_ITEM = "wrong_item", "Wrong Item Received"
    DAMAGED = "damaged", "Item Damaged"
    QUALITY_NOT_AS_EXPECTED = "quality_not_as_expected", "Quality Not as Expected"
    SIZE_FIT_ISSUE = "size_fit_issue", "Size/Fit Issue"
    CHANGED_MIND = "changed_mind", "Changed My Mind"
    OTHER = "other", "Other"


class ReviewAction(models.TextChoices):
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"


REVIEW_OUTCOME: dict[str, str] = {
    ReviewAction.APPROVE: ReturnStatus.APPROVED,
    ReviewAction.REJECT: ReturnStatus.REJECTED,
}

# Regular (non-override) edges.  Seller decisions are only possible while
# the request is still open (return_requested or under_review).
RETURN_TRANSITIONS: dict[str, frozenset[str]] = {
    ReturnStatus.RETURN_REQUESTED: frozenset(
        {ReturnStatus.UNDER_REVIEW, ReturnStatus.APPROVED, ReturnStatus.REJECTED}
    ),
    ReturnStatus.UNDER_REVIEW: frozenset({ReturnStatus.APPROVED, ReturnStatus.REJECTED}),
    ReturnStatus.APPROVED: frozenset({ReturnStatus.ITEM_SHIPPED}),
    ReturnStatus.ITEM_SHIPPED: frozenset({ReturnStatus.ITEM_RECEIVED}),
    ReturnStatus.ITEM_RECEIVED: frozenset({ReturnStatus.REFUND_ISSUED}),
    ReturnStatus.REJECTED: frozenset(),
    ReturnStatus.REFUND_ISSUED: frozenset(),
}

# Statuses a new return for the same line item may coexist with.
CLOSED_STATES: frozenset[str] = frozenset({ReturnStatus.REJECTED})

RETURN_ENTITY = "return request"
