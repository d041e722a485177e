"""RunnerSettings - 启动时校验并冻结的配置"""

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config

# 订阅的生命周期事件（恰好这两个）
LIFECYCLE_EVENTS = frozenset({config.PAGE_VIEW_EVENT, config.CONTENT_REPLACE_EVENT})


class RunnerSettings(BaseModel):
    """InitRunner 配置（不可变）"""

    model_config = ConfigDict(frozen=True)

    components: tuple[str, ...] = Field(default_factory=lambda: tuple(config.COMPONENTS))
    max_wait_ms: int = Field(default=config.MAX_WAIT_TIME_MS, gt=0)
    check_interval_ms: int = Field(default=config.CHECK_INTERVAL_MS, gt=0)
    dedupe_pending_waits: bool = config.DEDUPE_PENDING_WAITS

    transition_global_name: str = Field(default=config.TRANSITION_GLOBAL_NAME, min_length=1)
    transition_check_interval_ms: int = Field(default=config.TRANSITION_CHECK_INTERVAL_MS, gt=0)
    transition_safety_timeout_ms: int = Field(default=config.TRANSITION_SAFETY_TIMEOUT_MS, gt=0)

    # (生命周期事件, 重跑延迟毫秒)，按顺序订阅；也接受 dict 输入
    rerun_delays_ms: tuple[tuple[str, int], ...] = (
        (config.PAGE_VIEW_EVENT, config.PAGE_VIEW_DELAY_MS),
        (config.CONTENT_REPLACE_EVENT, config.CONTENT_REPLACE_DELAY_MS),
    )

    @field_validator("components")
    @classmethod
    def _names_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for name in value:
            if not name or not name.strip():
                raise ValueError("component names must be non-empty")
        return value

    @field_validator("rerun_delays_ms", mode="before")
    @classmethod
    def _delays_from_mapping(cls, value):
        if isinstance(value, Mapping):
            return tuple(value.items())
        return value

    @field_validator("rerun_delays_ms")
    @classmethod
    def _delays_cover_lifecycle_events(
        cls, value: tuple[tuple[str, int], ...]
    ) -> tuple[tuple[str, int], ...]:
        events = [event for event, _ in value]
        if len(events) != len(LIFECYCLE_EVENTS) or set(events) != LIFECYCLE_EVENTS:
            raise ValueError(f"rerun delays must cover exactly {sorted(LIFECYCLE_EVENTS)}")
        for event, delay in value:
            if delay < 0:
                raise ValueError(f"delay for {event} must be >= 0")
        return value

    def rerun_delay_ms(self, event: str) -> int:
        """某个生命周期事件的重跑延迟（毫秒）"""
        return dict(self.rerun_delays_ms)[event]

    @classmethod
    def from_config(cls, **overrides) -> "RunnerSettings":
        """以 config 模块常量为默认值构造"""
        return cls(**overrides)
