# redhope/services/lifecycle.py
"""
Donation-request lifecycle.

Status moves pending -> inprogress -> done, and pending|inprogress ->
canceled. The base contract lets any caller with update rights set any
recognised status and patch any known field; the two policy objects below
tighten that when the corresponding config switches are on.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from redhope.errors import IllegalTransition, NotFound, ValidationError
from redhope.models import TRANSITIONS, DonationRequest, RequestStatus
from redhope.schemas import NewDonationRequest, RequestFilter, RequestPatch, parse_record_id
from redhope.stores import DeleteResult, RequestStore, UpdateResult

log = logging.getLogger(__name__)

# Columns that cannot hold NULL; a patch may change them but not clear them.
_NON_NULLABLE = ("requester_email", "blood_group", "status")


def _parse_status(raw: Any) -> RequestStatus:
    status = RequestStatus.parse(raw)
    if status is None:
        raise ValidationError(
            f"Unrecognized status '{raw}'",
            details={"allowed": [s.value for s in RequestStatus]},
        )
    return status


class TransitionPolicy:
    """Optional guard on status changes (off unless ENFORCE_STATUS_TRANSITIONS)."""

    def __init__(self, enforce: bool = False) -> None:
        self.enforce = bool(enforce)

    def check(self, current: Optional[RequestStatus], target: RequestStatus) -> None:
        if not self.enforce or current is None or current == target:
            return
        if target not in TRANSITIONS.get(current, frozenset()):
            raise IllegalTransition(
                f"Cannot move a {current.value} request to {target.value}",
                details={"from": current.value, "to": target.value},
            )


class PatchPolicy:
    """
    Decides which patch fields reach the store.

    Unrestricted (default): every known field is writable, including
    requesterEmail; echoed record facts (_id, createdAt) are dropped.
    Restricted (RESTRICT_REQUEST_PATCH): requesterEmail and record facts
    are rejected.
    """

    PROTECTED = ("requester_email",)

    def __init__(self, restrict: bool = False) -> None:
        self.restrict = bool(restrict)

    def apply(self, patch: RequestPatch) -> Dict[str, Any]:
        if self.restrict:
            blocked = [f for f in self.PROTECTED if f in patch.values] + list(patch.storage_facts)
            if blocked:
                raise ValidationError("Field(s) cannot be changed", details={"fields": sorted(blocked)})
        elif patch.storage_facts:
            log.warning("lifecycle: ignoring record facts in patch: %s", ", ".join(patch.storage_facts))
        return dict(patch.values)


class RequestLifecycleManager:
    def __init__(
        self,
        store: RequestStore,
        *,
        transitions: Optional[TransitionPolicy] = None,
        patches: Optional[PatchPolicy] = None,
    ) -> None:
        self.store = store
        self.transitions = transitions or TransitionPolicy()
        self.patches = patches or PatchPolicy()

    def create(self, req: NewDonationRequest) -> DonationRequest:
        missing = [name for name, v in (("requesterEmail", req.requester_email), ("bloodGroup", req.blood_group)) if not v]
        if missing:
            raise ValidationError("Missing required field(s)", details={"fields": missing})

        status = _parse_status(req.status) if req.status else RequestStatus.PENDING

        values = dict(req.details)
        values.update(
            requester_email=req.requester_email,
            blood_group=req.blood_group,
            status=status.value,
        )
        row = self.store.insert(values)
        log.info("lifecycle: created request %s (%s, %s)", row.id, row.blood_group, row.status)
        return row

    def list(self, flt: Optional[RequestFilter] = None) -> List[DonationRequest]:
        return self.store.find((flt or RequestFilter()).criteria())

    def get(self, request_id: Any) -> DonationRequest:
        rid = parse_record_id(request_id)
        row = self.store.get(rid)
        if row is None:
            raise NotFound("Donation request not found", details={"id": str(rid)})
        return row

    def update(self, request_id: Any, patch: RequestPatch) -> UpdateResult:
        rid = parse_record_id(request_id)
        values = self.patches.apply(patch)

        cleared = [k for k in _NON_NULLABLE if k in values and values[k] is None]
        if cleared:
            raise ValidationError("Field(s) cannot be empty", details={"fields": cleared})

        if "status" in values:
            target = _parse_status(values["status"])
            values["status"] = target.value
            if self.transitions.enforce:
                current = self.store.get(rid)
                if current is None:
                    return UpdateResult(matched=0, modified=0)
                self.transitions.check(current.status_enum, target)

        if not values:
            # nothing to write; still report whether the record exists
            return UpdateResult(matched=1 if self.store.get(rid) is not None else 0, modified=0)

        result = self.store.update(rid, values)
        if result.modified:
            log.info("lifecycle: updated request %s fields=%s", rid, ",".join(sorted(values)))
        return result

    def delete(self, request_id: Any) -> DeleteResult:
        rid = parse_record_id(request_id)
        result = self.store.delete(rid)
        if result.deleted:
            log.info("lifecycle: deleted request %s", rid)
        return result
