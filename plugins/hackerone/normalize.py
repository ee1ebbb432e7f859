"""
Activity filter / relabel policy applied before export.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from plugins.hackerone.models import ActivityRecord

# Administrative / metadata churn, never exported.
FILTERED_ACTIONS = frozenset({
    "ActivitiesReportRetestApproved",
    "ActivitiesUserCompletedRetest",
    "ActivitiesBugRetesting",
    "ActivitiesBountyAwarded",
    "ActivitiesReportOrganizationInboxesUpdated",
    "ActivitiesReportVulnerabilityTypesUpdated",
    "ActivitiesReportSeverityUpdated",
    "ActivitiesReportCollaboratorJoined",
    "ActivitiesReportCollaboratorInvited",
    "ActivitiesChangedScope",
    "ActivitiesNmiReminderComment",
    "ActivitiesReportTitleUpdated",
    "ActivitiesReportVulnerabilityInformationUpdated",
})

COMMENT = "ActivitiesComment"
COMMENT_INTERNAL = "ActivitiesCommentInternal"
COMMENT_EXTERNAL = "ActivitiesCommentExternal"


def normalize_record(record: ActivityRecord) -> Optional[ActivityRecord]:
    """Return the exported form of *record*, or ``None`` if it is filtered out."""
    if record.action_type in FILTERED_ACTIONS:
        return None
    if record.action_type != COMMENT or record.internal is None:
        return record
    action_type = COMMENT_INTERNAL if record.internal is True else COMMENT_EXTERNAL
    return record.model_copy(update={"action_type": action_type})


def normalize(records: Iterable[ActivityRecord]) -> List[ActivityRecord]:
    out = (normalize_record(r) for r in records)
    return [r for r in out if r is not None]
