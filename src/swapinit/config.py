"""swapinit 配置

配置分为以下几类：
- 组件配置：需要重新初始化的组件名
- 等待配置：单个组件的最长等待和轮询间隔
- 过渡库配置：全局名、安全超时、生命周期事件及重跑延迟
- Timer 配置
- 日志/指标配置

所有值在启动时读取一次，运行期不可修改。
"""

import os

# === 组件配置 ===
# 注册表中组件构造器的名字（按顺序启动等待）
COMPONENTS = [
    "next_infinite_slider",
    "bc_split_button",
    "marquee",
    "maskbutton",
    "bcexpander",
]

# === 等待配置 ===
MAX_WAIT_TIME_MS = 3000  # 单个组件最长等待（毫秒）
CHECK_INTERVAL_MS = 100  # 轮询间隔（毫秒）
DEDUPE_PENDING_WAITS = False  # 同名等待未结束时，后续调用是否合并到已有等待

# === 过渡库配置 ===
TRANSITION_GLOBAL_NAME = "swup"  # 注册表中过渡库实例的名字
TRANSITION_CHECK_INTERVAL_MS = 100  # 过渡库轮询间隔（毫秒）
TRANSITION_SAFETY_TIMEOUT_MS = 10000  # 过渡库轮询安全超时（毫秒）

# 生命周期事件 -> 重跑延迟（毫秒）
PAGE_VIEW_EVENT = "page:view"  # 导航结束、视图稳定
PAGE_VIEW_DELAY_MS = 100
CONTENT_REPLACE_EVENT = "content:replace"  # 新 HTML 刚插入 DOM
CONTENT_REPLACE_DELAY_MS = 10

# === 文档状态 ===
DOCUMENT_LOADING_STATE = "loading"

# === 日志配置 ===
LOG_LEVEL = os.environ.get("SWAPINIT_LOG_LEVEL", "INFO")  # 日志级别

# === 指标配置 ===
METRICS_ENABLED = True  # 是否启用指标收集
