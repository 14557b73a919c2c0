from enum import Enum


class RejectionReason(str, Enum):
    not_found = "not_found"
    not_started = "not_started"
    already_ended = "already_ended"
    self_bid = "self_bid"
    invalid_amount = "invalid_amount"
    too_low = "too_low"
    conflict = "conflict"
