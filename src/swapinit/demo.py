"""Demo: 模拟一次页面生命周期

- 组件定义脚本在随机延迟后写入注册表（一个构造器是坏的，一个永远不出现）
- 过渡库在 500ms 后出现，随后触发两次导航
- 最后用 rich 表格输出每个组件的结果计数
"""

import argparse
import asyncio
import random

from rich.console import Console
from rich.table import Table

from . import config
from .document import Document
from .hooks import TransitionLibrary
from .registry import ComponentRegistry
from .runtime.bootstrap import bootstrap
from .settings import RunnerSettings
from .telemetry import metrics, setup_logging

console = Console()


class _Component:
    """模拟组件构造器"""

    def __init__(self):
        self.mounted = True


def _broken_component():
    raise RuntimeError("container element missing")


async def _define_later(registry: ComponentRegistry, name: str, value, delay: float) -> None:
    await asyncio.sleep(delay)
    registry.define(name, value)
    console.print(f"[dim]t+{int(delay * 1000)}ms define {name}[/dim]")


async def simulate(seed: int | None = None, navigations: int = 2) -> None:
    """运行模拟"""
    rng = random.Random(seed)
    components = list(config.COMPONENTS)
    missing = components[-1]
    broken = components[-2]

    registry = ComponentRegistry()
    document = Document()
    settings = RunnerSettings.from_config(
        components=tuple(components),
        max_wait_ms=1000,
        transition_safety_timeout_ms=3000,
    )
    runtime = bootstrap(registry.lookup, document, settings)
    runtime.start()

    loaders = [
        _define_later(registry, name, _Component, rng.uniform(0.0, 0.8))
        for name in components
        if name not in (missing, broken)
    ]
    loaders.append(_define_later(registry, broken, _broken_component, 0.2))

    swup = TransitionLibrary()
    loaders.append(_define_later(registry, config.TRANSITION_GLOBAL_NAME, swup, 0.5))

    document.mark_ready()
    await asyncio.gather(*loaders)

    for i in range(navigations):
        await asyncio.sleep(0.3)
        await swup.navigate(f"/page-{i + 1}")

    # 等待最后一轮超时结束
    await asyncio.sleep(settings.max_wait_ms / 1000 + 0.3)
    runtime.stop()

    _print_summary(components, runtime.runner.run_count)


def _print_summary(components: list[str], run_count: int) -> None:
    table = Table(title=f"swapinit demo ({run_count} runs)")
    table.add_column("component")
    table.add_column("initialized", justify="right", style="green")
    table.add_column("failed", justify="right", style="yellow")
    table.add_column("timed out", justify="right", style="red")

    for name in components:
        labels = {"component": name}
        table.add_row(
            name,
            str(metrics.get_counter("waiter.initialized", labels)),
            str(metrics.get_counter("waiter.failed", labels)),
            str(metrics.get_counter("waiter.timeout", labels)),
        )
    table.caption = f"pending waits: {int(metrics.get_gauge('waiter.pending'))}"
    console.print(table)


def main():
    """运行 demo"""
    parser = argparse.ArgumentParser(description="swapinit page lifecycle simulation")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--navigations", type=int, default=2)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    setup_logging(args.log_level)
    try:
        asyncio.run(simulate(args.seed, args.navigations))
    except KeyboardInterrupt:
        console.print("\nDemo stopped")


if __name__ == "__main__":
    main()
