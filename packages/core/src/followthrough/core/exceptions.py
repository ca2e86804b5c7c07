"""Followthrough 异常体系

- 校验错误：在任何状态变更之前拒绝，携带被拒绝的字段和合法范围
- 存储失败：原样上报给调用方，核心不重试，也不应用任何部分更新
- 缺失关联（无任务的联系人、无 owner 的调用者）不是异常，返回空结果
"""


class FollowthroughError(Exception):
    """Followthrough 基础异常"""


class WorkflowValidationError(FollowthroughError):
    """输入校验失败"""

    def __init__(
        self,
        field: str,
        message: str,
        valid_range: tuple[int, int] | None = None,
    ) -> None:
        """
        Args:
            field: 被拒绝的字段名
            message: 错误描述
            valid_range: 合法取值范围（闭区间），无范围约束时为 None
        """
        super().__init__(message)
        self.field = field
        self.valid_range = valid_range


class CadenceOutOfRangeError(WorkflowValidationError):
    """跟进节奏超出 [min, max] 闭区间"""

    def __init__(self, value: int, minimum: int, maximum: int, field: str = "fu_cadence_days") -> None:
        super().__init__(
            field,
            f"{field} must be between {minimum} and {maximum} days, got {value}",
            valid_range=(minimum, maximum),
        )
        self.value = value


class GateIndexError(WorkflowValidationError):
    """Gate 下标越界"""

    def __init__(self, index: int, size: int, allow_end: bool = False) -> None:
        """
        Args:
            index: 请求的下标
            size: 当前 Gate 数量
            allow_end: 插入操作允许 index == size（追加到末尾）
        """
        upper = size if allow_end else size - 1
        if upper >= 0:
            message = f"gate index {index} out of range for {size} gate(s)"
            valid_range = (0, upper)
        else:
            message = f"gate index {index} out of range: task has no gates"
            valid_range = None
        super().__init__("gate_index", message, valid_range=valid_range)
        self.index = index


class EmptyGateListError(WorkflowValidationError):
    """操作要求至少一个 Gate"""

    def __init__(self, operation: str) -> None:
        super().__init__("gates", f"{operation} requires at least one gate")


class InvalidStatusTransitionError(WorkflowValidationError):
    """非法状态流转"""

    def __init__(self, from_status: str, to_status: str, allowed: list[str]) -> None:
        super().__init__(
            "status",
            f"Cannot transition from '{from_status}' to '{to_status}'. Allowed: {allowed}",
        )
        self.from_status = from_status
        self.to_status = to_status


class EmptyNoteError(WorkflowValidationError):
    """备注内容为空"""

    def __init__(self) -> None:
        super().__init__("content", "note content must not be empty")


class TaskNotFoundError(FollowthroughError):
    """任务不存在"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class StoreWriteError(FollowthroughError):
    """Task Store 写入失败，事务已回滚"""

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的写操作名称
            original_error: 原始异常
        """
        super().__init__(f"failed to save ({operation}): {original_error}")
        self.operation = operation
        self.original_error = original_error
