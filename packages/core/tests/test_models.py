"""Domain Model 单元测试

测试内容：
1. Task 字段约束
2. 联系人 tagged variant -> Owner 转换
3. 私有联系人可见性
4. 时钟决策
"""

from datetime import UTC, date, datetime

import pytest
from followthrough.core.models import (
    ClockDecision,
    EmployeeContact,
    Owner,
    PersonalContact,
    Task,
    TaskStatus,
    VendorContact,
)
from followthrough.core.models.owner import ContactDetails
from pydantic import TypeAdapter, ValidationError


class TestTaskModel:
    """Task 模型"""

    def test_defaults(self):
        now = datetime(2025, 3, 10, tzinfo=UTC)
        task = Task(
            task_id="T1",
            description="Permit",
            fu_cadence_days=7,
            last_movement_at=now,
            created_at=now,
        )
        assert task.status == TaskStatus.OPEN
        assert task.gates == []
        assert task.is_blocked is False

    def test_cadence_must_be_positive(self):
        now = datetime(2025, 3, 10, tzinfo=UTC)
        with pytest.raises(ValidationError):
            Task(task_id="T1", description="x", fu_cadence_days=0, last_movement_at=now, created_at=now)


class TestContacts:
    """联系人类型"""

    def test_employee_requires_company(self):
        with pytest.raises(ValidationError):
            EmployeeContact(name="Ann", companies=[])

    def test_employee_to_owner(self):
        owner = EmployeeContact(name="Ann", companies=["bp", "up", "bp"]).to_owner("o1")
        assert owner.company_tags == ["bp", "up"]
        assert owner.is_internal_staff
        assert not owner.is_third_party_vendor

    def test_vendor_to_owner(self):
        owner = VendorContact(name="Acme").to_owner("o2")
        assert owner.is_third_party_vendor
        assert not owner.is_internal_staff

    def test_personal_contact_visibility(self):
        owner = PersonalContact(name="Mom", account_id="u1").to_owner("o3")
        assert owner.visible_to("u1")
        assert not owner.visible_to("u2")
        assert not owner.visible_to(None)
        assert Owner(owner_id="o4", name="Pub").visible_to(None)

    def test_discriminated_union(self):
        adapter = TypeAdapter(ContactDetails)
        contact = adapter.validate_python({"kind": "vendor", "name": "Acme"})
        assert isinstance(contact, VendorContact)


class TestClockDecision:
    """时钟决策"""

    def test_constructors(self):
        assert ClockDecision.confirm(5).days == 5
        assert ClockDecision.pick_date(date(2025, 4, 1)).mode == "pick_date"
        assert ClockDecision().mode == "skip"

    def test_advances_clock(self):
        assert ClockDecision.confirm().advances_clock
        assert ClockDecision.pick_date(date(2025, 4, 1)).advances_clock
        assert not ClockDecision.skip().advances_clock
