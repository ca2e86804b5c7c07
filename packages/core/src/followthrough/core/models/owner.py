"""Owner（联系人）Domain Model

Owner 是任务的负责人，也是 Gate 负责人姓名的来源。
公司归属以标签集合表示；持有任一员工标签即视为内部员工，
与 is_third_party_vendor 无关。
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class Owner(BaseModel):
    """Owner 数据模型"""

    owner_id: str = Field(description="唯一标识")
    name: str = Field(description="姓名")
    company_tags: list[str] = Field(
        default_factory=list,
        description="内部员工归属标签，例如 up / bp / upfit / bpas",
    )
    is_third_party_vendor: bool = Field(default=False, description="是否为第三方供应商")
    is_private: bool = Field(default=False, description="是否仅对单个账号可见")
    private_owner_id: str | None = Field(default=None, description="私有联系人的所属账号")

    @property
    def is_internal_staff(self) -> bool:
        """持有至少一个员工标签即为内部员工"""
        return len(self.company_tags) > 0

    def visible_to(self, account_id: str | None) -> bool:
        """私有联系人仅对所属账号可见，其余对所有人可见"""
        if not self.is_private:
            return True
        return account_id is not None and account_id == self.private_owner_id


# ---------------------------------------------------------------------------
# 边界处的联系人类型（tagged variant）
#
# 表单/导入层提交的联系人按类型区分；进入核心之前统一转换为 Owner 的布尔标志，
# 调度与分组逻辑只看 Owner。
# ---------------------------------------------------------------------------


class EmployeeContact(BaseModel):
    """内部员工"""

    kind: Literal["employee"] = "employee"
    name: str
    companies: list[str] = Field(min_length=1, description="至少一个公司标签")

    def to_owner(self, owner_id: str) -> Owner:
        return Owner(owner_id=owner_id, name=self.name, company_tags=sorted(set(self.companies)))


class VendorContact(BaseModel):
    """第三方供应商"""

    kind: Literal["vendor"] = "vendor"
    name: str

    def to_owner(self, owner_id: str) -> Owner:
        return Owner(owner_id=owner_id, name=self.name, is_third_party_vendor=True)


class PersonalContact(BaseModel):
    """个人联系人 -- 仅创建者可见"""

    kind: Literal["personal"] = "personal"
    name: str
    account_id: str = Field(description="创建该联系人的账号")

    def to_owner(self, owner_id: str) -> Owner:
        return Owner(
            owner_id=owner_id,
            name=self.name,
            is_private=True,
            private_owner_id=self.account_id,
        )


ContactDetails = Annotated[
    EmployeeContact | VendorContact | PersonalContact,
    Field(discriminator="kind"),
]
