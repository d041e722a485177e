"""swapinit 数据类型定义

包含：
- WaitState: 单个等待状态机的瞬时状态
- WaitOutcome / WaitResult: 组件等待结果
- BindOutcome / BindResult: 过渡库绑定结果
- RunnerState: InitRunner 页面生命周期状态
"""

from dataclasses import dataclass
from enum import Enum


@dataclass
class WaitState:
    """单个组件的等待状态

    轮询开始时创建，成功/失败/超时后丢弃，不跨组件共享。
    时间均为 event loop time（秒）。
    """
    name: str
    start_time: float
    deadline: float
    attempts: int = 0

    def elapsed_ms(self, now: float) -> int:
        """从开始到 now 的毫秒数"""
        return int(round((now - self.start_time) * 1000))

    def expired(self, now: float) -> bool:
        """是否已超过截止时间"""
        return now > self.deadline


class WaitOutcome(Enum):
    """等待结束原因"""
    INITIALIZED = "initialized"  # 构造成功
    FAILED = "failed"  # 构造抛异常（不重试）
    TIMED_OUT = "timed_out"  # 超时仍不可用
    JOINED = "joined"  # 合并到同名的进行中等待（仅 dedupe 模式）


@dataclass
class WaitResult:
    """组件等待结果

    Attributes:
        name: 组件名
        outcome: 结束原因
        elapsed_ms: 从开始轮询到结束的毫秒数
        attempts: 查找注册表的次数
        error: 构造失败时的错误信息
    """
    name: str
    outcome: WaitOutcome
    elapsed_ms: int = 0
    attempts: int = 0
    error: str | None = None


class BindOutcome(Enum):
    """过渡库绑定结果"""
    BOUND = "bound"
    TIMED_OUT = "timed_out"


@dataclass
class BindResult:
    """过渡库绑定结果"""
    global_name: str
    outcome: BindOutcome
    elapsed_ms: int = 0
    attempts: int = 0
    callback_error: str | None = None  # on_ready 抛出的错误信息


class RunnerState(Enum):
    """InitRunner 页面生命周期状态

    NOT_STARTED → DOM_PENDING → DOM_READY → (TRANSITION_UNBOUND | TRANSITION_BOUND)
    DOM 已就绪时可直接从 NOT_STARTED 进入 DOM_READY。
    TRANSITION_UNBOUND 表示过渡库尚未绑定（仍在轮询或已超时放弃）。
    """
    NOT_STARTED = "not_started"
    DOM_PENDING = "dom_pending"
    DOM_READY = "dom_ready"
    TRANSITION_UNBOUND = "transition_unbound"
    TRANSITION_BOUND = "transition_bound"


# 合法状态流转
RUNNER_TRANSITIONS: dict[RunnerState, set[RunnerState]] = {
    RunnerState.NOT_STARTED: {RunnerState.DOM_PENDING, RunnerState.DOM_READY},
    RunnerState.DOM_PENDING: {RunnerState.DOM_READY},
    RunnerState.DOM_READY: {RunnerState.TRANSITION_UNBOUND, RunnerState.TRANSITION_BOUND},
    RunnerState.TRANSITION_UNBOUND: {RunnerState.TRANSITION_BOUND},
    RunnerState.TRANSITION_BOUND: set(),
}


class InvalidTransitionError(RuntimeError):
    """非法的 RunnerState 流转"""

    def __init__(self, from_state: RunnerState, to_state: RunnerState):
        super().__init__(f"invalid runner transition: {from_state.value} -> {to_state.value}")
        self.from_state = from_state
        self.to_state = to_state
