"""Followthrough Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    VALID_TRANSITIONS,
    ActionKind,
    EventType,
    HealthStatus,
    RiskLevel,
    TaskStatus,
    validate_transition,
)
from .event import Event
from .gate import Gate
from .note import Note
from .owner import ContactDetails, EmployeeContact, Owner, PersonalContact, VendorContact
from .payloads import (
    ClockRestartedPayload,
    GatesUpdatedPayload,
    NoteAddedPayload,
    StatusChangedPayload,
    TaskCreatedPayload,
    TaskUpdatedPayload,
)
from .reports import ActionItem, ContactScore, ProjectSummary, RecommendedAction, RiskTask
from .task import Project, Task
from .workflow import ClockDecision, ClockStatus, TaskSnapshot, Viewer

__all__ = [
    # 枚举
    "TaskStatus",
    "EventType",
    "ActionKind",
    "RiskLevel",
    "HealthStatus",
    # 状态机
    "VALID_TRANSITIONS",
    "validate_transition",
    # Task
    "Task",
    "Project",
    "Gate",
    "Note",
    # Owner
    "Owner",
    "ContactDetails",
    "EmployeeContact",
    "VendorContact",
    "PersonalContact",
    # Event
    "Event",
    # Workflow
    "Viewer",
    "ClockDecision",
    "ClockStatus",
    "TaskSnapshot",
    # Reports
    "ActionItem",
    "RecommendedAction",
    "ContactScore",
    "ProjectSummary",
    "RiskTask",
    # Payloads
    "TaskCreatedPayload",
    "NoteAddedPayload",
    "GatesUpdatedPayload",
    "ClockRestartedPayload",
    "StatusChangedPayload",
    "TaskUpdatedPayload",
]
