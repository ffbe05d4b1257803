"""CLI 入口"""

from __future__ import annotations

import asyncio
import json

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .common.config import Config, config
from .common.exceptions import LinkScoutError, URLValidationError, ValidationError
from .common.logger import get_logger
from .common.storage import create_pattern_store
from .common.validators import extract_domain, validate_url
from .learning.models import ExtractedValue, LearnedPattern, LearningSession
from .learning.persistence import load_patterns
from .learning.runtime import create_learning_runtime
from .learning.service import LearningModeService
from .lesson import Lesson, LessonStep, load_lesson, parse_extract_option

# 日志器
logger = get_logger(__name__)

app = typer.Typer(
    name="linkscout",
    help="LinkScout CLI - 通过示例学习页面提取模式",
    add_completion=False,
)
console = Console()


def _runtime_config(headless: bool) -> Config:
    app_config = config.model_copy(deep=True)
    app_config.browser.headless = headless
    return app_config


def _print_error(message: str, title: str = "执行错误") -> None:
    console.print(Panel(f"[red]{message}[/red]", title=title, style="red"))


def _build_patterns_table(patterns: list[LearnedPattern], title: str) -> Table:
    """构建模式列表表格"""
    table = Table(title=title)
    table.add_column("name", style="cyan")
    table.add_column("fields", style="green")
    table.add_column("selector", style="magenta")
    table.add_column("confidence", style="yellow", justify="right")
    table.add_column("validations", style="blue", justify="right")

    for pattern in patterns:
        table.add_row(
            pattern.name,
            ", ".join(pattern.field_names),
            "\n".join(rule.selector.value for rule in pattern.extraction_rules),
            f"{pattern.confidence:.2f}",
            str(len(pattern.validation_results)),
        )
    return table


def _build_values_table(values: list[ExtractedValue]) -> Table:
    table = Table(title=f"提取结果 ({len(values)})")
    table.add_column("#", justify="right")
    table.add_column("field", style="cyan")
    table.add_column("value", style="green")
    table.add_column("element", style="magenta")
    for index, value in enumerate(values, 1):
        table.add_row(str(index), value.field, str(value.value), value.element or "")
    return table


def _build_lesson(
    url: str,
    name: str,
    clicks: list[str],
    extracts: list[str],
    lesson_file: str,
    validate_urls: list[str],
    bundle: bool | None,
) -> Lesson:
    """合并课程文件与命令行参数"""
    if lesson_file:
        lesson = load_lesson(lesson_file)
    else:
        if not url:
            raise ValidationError("请提供 URL 或 --lesson 课程文件")
        lesson = Lesson(name=name or extract_domain(url) or "session", url=url)

    steps = [LessonStep(**parse_extract_option(item)) for item in extracts]
    steps += [LessonStep(click=item) for item in clicks]
    updates: dict = {"steps": [*lesson.steps, *steps]}
    if url and lesson_file:
        updates["url"] = url
    if name and lesson_file:
        updates["name"] = name
    if validate_urls:
        updates["validation_urls"] = [*lesson.validation_urls, *validate_urls]
    if bundle is not None:
        updates["bundle_fields"] = bundle
    lesson = lesson.model_copy(update=updates)

    validate_url(lesson.url)
    if not any(step.field for step in lesson.steps):
        raise ValidationError("至少需要一个 extract 步骤")
    return lesson


async def _run_lesson(
    service: LearningModeService, lesson: Lesson
) -> tuple[LearningSession, list[LearnedPattern]]:
    session = await service.start_learning_session(lesson.name, lesson.url, lesson.to_options())
    for step in lesson.steps:
        if step.is_click:
            await service.record_click(session.id, step.click)
        else:
            await service.record_extraction(session.id, step.field, step.description)
    patterns = await service.end_session(session.id)
    return session, patterns


@app.command("learn")
def learn_command(
    url: str = typer.Argument("", help="目标页面 URL（使用 --lesson 时可省略）"),
    name: str = typer.Option("", "--name", "-n", help="会话名称，默认为站点域名"),
    extract: list[str] = typer.Option(
        [], "--extract", "-e", help="提取示例 field=description，可重复"
    ),
    click: list[str] = typer.Option([], "--click", "-c", help="在提取之后点击的元素描述，可重复"),
    lesson_file: str = typer.Option("", "--lesson", "-l", help="YAML 课程文件"),
    validate_url_list: list[str] = typer.Option(
        [], "--validate-url", help="额外的验证页面，可重复"
    ),
    bundle: bool | None = typer.Option(
        None, "--bundle/--no-bundle", help="是否把所有字段合并为一个模式"
    ),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="是否使用无头模式"),
):
    """
    录制一次学习会话并保存学到的模式

    示例:
        linkscout learn https://news.ycombinator.com -e title=title -e vote_score=points
    """
    try:
        lesson = _build_lesson(url, name, click, extract, lesson_file, validate_url_list, bundle)
    except (URLValidationError, ValidationError) as e:
        _print_error(str(e), title="输入验证错误")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[bold]会话:[/bold] {lesson.name}\n"
            f"[bold]目标:[/bold] {lesson.url}\n"
            f"[bold]步骤:[/bold] {len(lesson.steps)} 个\n"
            f"[bold]验证页面:[/bold] {len(lesson.validation_urls) + 1} 个",
            title="学习模式",
            style="cyan",
        )
    )

    async def _run():
        async with create_learning_runtime(_runtime_config(headless)) as service:
            return await _run_lesson(service, lesson)

    try:
        session, patterns = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]用户中断[/yellow]")
        raise typer.Exit(130)
    except LinkScoutError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    if not patterns:
        console.print(
            Panel(
                "[yellow]没有生成模式：每个字段至少需要两个匹配的示例[/yellow]",
                title=f"会话 {session.status.value}",
                style="yellow",
            )
        )
        raise typer.Exit(1)

    console.print(_build_patterns_table(patterns, title=f"{session.target_site} 学到的模式"))


@app.command("patterns")
def patterns_command(
    domain: str = typer.Argument(..., help="站点域名，如 news.ycombinator.com"),
):
    """列出站点已保存的模式"""

    async def _run():
        store = create_pattern_store(config.storage)
        try:
            return await load_patterns(store, domain.lower())
        finally:
            await store.close()

    try:
        patterns = asyncio.run(_run())
    except LinkScoutError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    if not patterns:
        console.print(f"[yellow]{domain} 没有已保存的模式[/yellow]")
        return
    console.print(_build_patterns_table(patterns, title=f"{domain} 的模式"))


async def _find_site_pattern(service: LearningModeService, domain: str, name: str) -> LearnedPattern:
    for pattern in await service.load_site_patterns(domain):
        if pattern.name == name:
            return pattern
    raise ValidationError(f"{domain} 下没有模式: {name}")


@app.command("apply")
def apply_command(
    pattern_name: str = typer.Argument(..., help="模式名"),
    url: str = typer.Argument(..., help="要提取的页面 URL"),
    domain: str = typer.Option("", "--domain", "-d", help="模式所属站点，默认取 URL 的域名"),
    as_json: bool = typer.Option(False, "--json", help="以 JSON 输出"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="是否使用无头模式"),
):
    """把已保存的模式应用到页面"""
    try:
        url = validate_url(url)
    except URLValidationError as e:
        _print_error(str(e), title="输入验证错误")
        raise typer.Exit(1)
    domain = domain or extract_domain(url)

    async def _run():
        async with create_learning_runtime(_runtime_config(headless)) as service:
            pattern = await _find_site_pattern(service, domain, pattern_name)
            return await service.apply_pattern(pattern.id, url)

    try:
        values = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]用户中断[/yellow]")
        raise typer.Exit(130)
    except LinkScoutError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps([v.model_dump() for v in values], ensure_ascii=False, indent=2))
    else:
        console.print(_build_values_table(values))


@app.command("test-pattern")
def test_pattern_command(
    pattern_name: str = typer.Argument(..., help="模式名"),
    url: str = typer.Argument(..., help="验证页面 URL"),
    domain: str = typer.Option("", "--domain", "-d", help="模式所属站点，默认取 URL 的域名"),
    expected_count: int | None = typer.Option(None, "--expected", help="期望匹配数"),
    headless: bool = typer.Option(True, "--headless/--no-headless", help="是否使用无头模式"),
):
    """在页面上验证已保存的模式"""
    try:
        url = validate_url(url)
    except URLValidationError as e:
        _print_error(str(e), title="输入验证错误")
        raise typer.Exit(1)
    domain = domain or extract_domain(url)

    async def _run():
        async with create_learning_runtime(_runtime_config(headless)) as service:
            pattern = await _find_site_pattern(service, domain, pattern_name)
            result = await service.test_pattern(pattern.id, url, expected_count=expected_count)
            return pattern, result

    try:
        pattern, result = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]用户中断[/yellow]")
        raise typer.Exit(130)
    except LinkScoutError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    errors = "\n".join(f"  - {err}" for err in result.errors) or "  无"
    console.print(
        Panel(
            f"[bold]匹配数:[/bold] {result.extracted_count}"
            + (f" / 期望 {result.expected_count}" if result.expected_count is not None else "")
            + f"\n[bold]本次置信度:[/bold] {result.confidence:.2f}\n"
            f"[bold]模式置信度:[/bold] {pattern.confidence:.2f}\n"
            f"[bold]错误:[/bold]\n{errors}",
            title="验证通过" if result.success else "验证失败",
            style="green" if result.success else "red",
        )
    )
    if not result.success:
        raise typer.Exit(1)


@app.command("delete-pattern")
def delete_pattern_command(
    domain: str = typer.Argument(..., help="站点域名"),
    pattern_name: str = typer.Argument(..., help="模式名"),
):
    """删除站点的模式"""

    async def _run():
        store = create_pattern_store(config.storage)
        try:
            return await store.delete_pattern(domain.lower(), pattern_name)
        finally:
            await store.close()

    try:
        deleted = asyncio.run(_run())
    except LinkScoutError as e:
        _print_error(str(e))
        raise typer.Exit(1)
    console.print(f"[green]已删除 {deleted} 个模式: {pattern_name} ({domain})[/green]")


def main():
    """CLI 入口点

    供 pyproject.toml 中 [project.scripts] 调用。
    """
    app()


if __name__ == "__main__":
    main()
