"""同步引擎异常体系"""


class SyncError(Exception):
    """同步引擎基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过下一次同步重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class RemoteUnreachableError(SyncError):
    """远端不可达（连接失败、超时、DNS 解析失败等）

    批量交换时抛出此异常，整批队列项进入失败重试流程。
    """

    def __init__(self, base_url: str, original_error: Exception) -> None:
        """
        Args:
            base_url: 尝试连接的远端地址
            original_error: 原始异常
        """
        super().__init__(
            f"Remote unreachable: {base_url} -- {original_error}",
            recoverable=True,
        )
        self.base_url = base_url
        self.original_error = original_error


class BatchRejectedError(SyncError):
    """远端拒绝整批请求（非 2xx 响应或响应体无法解析）"""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(
            f"Batch rejected with HTTP {status_code}: {detail}",
            recoverable=True,
        )
        self.status_code = status_code
        self.detail = detail


class QueuePersistenceError(SyncError):
    """同步队列持久化失败

    入队失败意味着该变更永远不会到达远端，必须向调用方抛出。
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, recoverable=False)
        self.original_error = original_error


class SyncStoreError(SyncError):
    """同步开始时无法读取队列（本地存储不可用）

    这是唯一会中止整次同步并抛给调用方的错误。
    """

    def __init__(self, original_error: Exception) -> None:
        super().__init__(
            f"Failed to read sync queue: {original_error}",
            recoverable=True,
        )
        self.original_error = original_error
