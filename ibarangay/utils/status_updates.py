"""Status changes for complaints and service requests.

Both single and bulk updates go through the same steps: validate the target
status, set it and append a history entry in one commit, then notify the
owner and write the audit log on a best-effort basis.

Bulk updates process ids one at a time in the order given. A missing id or a
failed commit is recorded against that id and the batch carries on; only the
up-front validation can fail the whole request.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ibarangay import db
from ibarangay.models.audit import AuditAction
from ibarangay.models.complaint import Complaint
from ibarangay.models.service_request import ServiceRequest
from ibarangay.utils.audit import log_action
from ibarangay.utils.notifications import create_notification
from ibarangay.utils.time import utc_now
from ibarangay.utils.validators import ValidationError


NOT_FOUND = 'not found'
MAX_NOTE_LENGTH = 500


class StatusValidationError(ValidationError):
    """The requested change is invalid as a whole; nothing was touched."""


class StatusTargetNotFound(LookupError):
    pass


@dataclass(frozen=True)
class StatusWorkflow:
    kind: str
    model: type
    statuses: Tuple[str, ...]
    default_messages: Dict[str, str]
    severities: Dict[str, str]
    default_severity: str
    notification_title: str
    update_action: str
    bulk_action: str
    describe: Callable[[object], str]
    note_required: FrozenSet[str] = frozenset()
    # status -> attribute that stores the note for that transition
    annotations: Dict[str, str] = field(default_factory=dict)

    def severity_for(self, status: str) -> str:
        return self.severities.get(status, self.default_severity)

    def owner_message(self, entity, old_status: str, new_status: str, note: Optional[str]) -> str:
        detail = note or self.default_messages.get(new_status, '')
        return f"{self.describe(entity)} status changed from {old_status} to {new_status}. {detail}".strip()


COMPLAINT_WORKFLOW = StatusWorkflow(
    kind='complaint',
    model=Complaint,
    statuses=Complaint.STATUSES,
    default_messages={
        'pending': 'Your complaint is pending review',
        'in-progress': 'Your complaint is now being addressed',
        'resolved': 'Your complaint has been resolved',
        'closed': 'Your complaint has been closed',
    },
    severities={'resolved': 'success', 'closed': 'info'},
    default_severity='warning',
    notification_title='Complaint Status Updated',
    update_action=AuditAction.UPDATE_COMPLAINT_STATUS,
    bulk_action=AuditAction.BULK_UPDATE_COMPLAINT_STATUS,
    describe=lambda c: f'Your complaint "{c.title}"',
)

SERVICE_WORKFLOW = StatusWorkflow(
    kind='service',
    model=ServiceRequest,
    statuses=ServiceRequest.STATUSES,
    default_messages={
        'pending': 'Your service request is pending review',
        'approved': 'Your service request has been approved',
        'borrowed': 'Your service request is now active',
        'returned': 'Your service request has been completed',
        'rejected': 'Your service request has been rejected',
    },
    severities={'approved': 'success', 'returned': 'success', 'rejected': 'error'},
    default_severity='info',
    notification_title='Service Request Status Updated',
    update_action=AuditAction.UPDATE_SERVICE_STATUS,
    bulk_action=AuditAction.BULK_UPDATE_SERVICE_STATUS,
    describe=lambda s: f'Your {(s.request_type or "equipment").lower()} request "{s.item_name}"',
    note_required=frozenset({'rejected'}),
    annotations={'rejected': 'rejection_reason', 'approved': 'approval_note'},
)

WORKFLOWS = {
    COMPLAINT_WORKFLOW.kind: COMPLAINT_WORKFLOW,
    SERVICE_WORKFLOW.kind: SERVICE_WORKFLOW,
}


@dataclass
class ItemResult:
    id: object
    success: bool
    error: Optional[str] = None

    def to_dict(self):
        data = {'id': self.id, 'success': self.success}
        if self.error is not None:
            data['error'] = self.error
        return data


@dataclass
class BulkOperationResult:
    status: str
    results: List[ItemResult] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def to_dict(self):
        return {
            'success': self.success,
            'updated': self.updated,
            'failed': self.failed,
            'results': [r.to_dict() for r in self.results],
        }


def _clean_note(note) -> Optional[str]:
    if note is None:
        return None
    note = str(note).strip()
    return note or None


def validate_status_change(workflow: StatusWorkflow, status, note=None) -> Optional[str]:
    """Check the target status and note; returns the cleaned note."""
    if status not in workflow.statuses:
        raise StatusValidationError(
            'status', f"Invalid status. Must be one of: {', '.join(workflow.statuses)}"
        )
    note = _clean_note(note)
    if note and len(note) > MAX_NOTE_LENGTH:
        raise StatusValidationError('note', f"Note must not exceed {MAX_NOTE_LENGTH} characters")
    if status in workflow.note_required and not note:
        raise StatusValidationError('note', f"A reason is required when setting status to {status}")
    return note


def _commit():
    db.session.commit()


def apply_status(workflow: StatusWorkflow, entity, status: str, actor_name: str,
                 note: Optional[str] = None, now=None) -> str:
    """Set status, history and annotation on ``entity`` (not committed). Returns the old status."""
    old_status = entity.set_status(status, actor_name, note=note, now=now)
    annotation = workflow.annotations.get(status)
    if annotation and note:
        setattr(entity, annotation, note)
    return old_status


def notify_owner(workflow: StatusWorkflow, entity, old_status: str, new_status: str,
                 note: Optional[str], notifier: Callable = create_notification) -> bool:
    try:
        return bool(notifier(
            entity.user_id,
            workflow.notification_title,
            workflow.owner_message(entity, old_status, new_status, note),
            workflow.severity_for(new_status),
            workflow.kind,
            entity.id,
        ))
    except Exception as e:
        current_app.logger.error(f"Failed to notify owner of {workflow.kind} {entity.id}: {e}")
        return False


def update_status(workflow: StatusWorkflow, entity_id, status, actor, note=None, now=None,
                  notifier: Callable = create_notification, source_ip: str = None):
    """Change one entity's status. Commit failures propagate after rollback."""
    note = validate_status_change(workflow, status, note)
    now = now or utc_now()
    actor_id, actor_name = actor.id, actor.full_name

    entity = db.session.get(workflow.model, entity_id)
    if entity is None:
        raise StatusTargetNotFound(f"{workflow.kind} {entity_id} not found")

    try:
        old_status = apply_status(workflow, entity, status, actor_name, note, now)
        _commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    if entity.user_id != actor_id:
        notify_owner(workflow, entity, old_status, status, note, notifier)
    log_action(
        actor_id,
        workflow.update_action,
        f"{workflow.kind.capitalize()} {entity.id}: {old_status} -> {status}",
        ip_address=source_ip,
    )
    return entity


def apply_bulk_status(workflow: StatusWorkflow, ids: Sequence, status, actor, note=None, now=None,
                      notifier: Callable = create_notification, source_ip: str = None) -> BulkOperationResult:
    """Apply ``status`` to every id independently and report per-item outcomes."""
    if not isinstance(ids, (list, tuple)) or not ids:
        raise StatusValidationError('ids', 'ids must be a non-empty list')
    note = validate_status_change(workflow, status, note)
    now = now or utc_now()
    actor_id, actor_name = actor.id, actor.full_name

    outcome = BulkOperationResult(status=status)
    for item_id in ids:
        try:
            entity = db.session.get(workflow.model, item_id)
            if entity is None:
                outcome.results.append(ItemResult(item_id, False, NOT_FOUND))
                continue
            old_status = apply_status(workflow, entity, status, actor_name, note, now)
            _commit()
        except Exception as e:
            # Lookup or write failure (driver errors such as an out-of-range id included)
            db.session.rollback()
            current_app.logger.error(f"Bulk {workflow.kind} update failed for {item_id}: {e}")
            outcome.results.append(ItemResult(item_id, False, str(e)))
            continue

        if entity.user_id != actor_id:
            notify_owner(workflow, entity, old_status, status, note, notifier)
        outcome.results.append(ItemResult(item_id, True))

    log_action(
        actor_id,
        workflow.bulk_action,
        f"Bulk {workflow.kind} status -> {status}: {outcome.updated} updated, {outcome.failed} failed",
        status='success' if outcome.updated else 'failure',
        ip_address=source_ip,
    )
    return outcome
