"""CLI 엔트리포인트."""

import asyncio
import json
import logging
from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from gitgrade.config import settings
from gitgrade.errors import AnalysisError
from gitgrade.models import AnalysisReport
from gitgrade.service import RepositoryAnalyzer

console = Console()

app = typer.Typer(
    name="gitgrade",
    help="GitHub 저장소를 AI로 분석하여 품질 리포트를 생성합니다.",
    no_args_is_help=True,
)

PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "green"}

METRIC_LABELS = {
    "codeQuality": "Code Quality",
    "documentation": "Documentation",
    "testCoverage": "Test Coverage",
    "projectStructure": "Project Structure",
    "gitPractices": "Git Practices",
    "realWorldRelevance": "Real-World Relevance",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _score_color(value: int) -> str:
    if value >= 70:
        return "green"
    if value >= 40:
        return "yellow"
    return "red"


def _render_report(repo_url: str, report: AnalysisReport) -> None:
    """분석 결과를 Rich로 렌더링한다."""
    data = report.to_response()

    console.print()
    console.rule(f"[bold blue]📊 {repo_url}[/bold blue]")
    console.print()

    color = _score_color(report.score)
    console.print(
        Panel(
            f"[bold {color}]{report.score}[/bold {color}]/100  "
            f"[dim]|[/dim]  🏅 {report.level}\n\n{escape(report.summary)}",
            title="[bold]Overall Score[/bold]",
            border_style=color,
        )
    )

    # 지표 테이블
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Metric", style="bold")
    table.add_column("Score", justify="right", width=8)
    for key, label in METRIC_LABELS.items():
        value = data["metrics"][key]
        table.add_row(label, f"[{_score_color(value)}]{value}[/]")
    console.print(table)
    console.print()

    strengths = "\n".join(f"✅ {escape(s)}" for s in report.strengths)
    weaknesses = "\n".join(f"⚠️ {escape(w)}" for w in report.weaknesses)
    console.print(Panel(strengths, title="[green]Strengths[/green]", border_style="green"))
    console.print(Panel(weaknesses, title="[yellow]Weaknesses[/yellow]", border_style="yellow"))

    # 로드맵
    console.print()
    console.rule("[bold]🗺️ Roadmap[/bold]")
    for i, item in enumerate(report.roadmap, 1):
        style = PRIORITY_STYLES[item.priority]
        console.print(
            f"[bold]{i}. {escape(item.title)}[/bold]  [{style}]({item.priority})[/{style}]"
        )
        console.print(f"   [dim]{escape(item.description)}[/dim]")
    console.print()


async def _run(repo_url: str) -> AnalysisReport:
    """분석 파이프라인을 실행한다."""
    analyzer = RepositoryAnalyzer()
    ref = analyzer.parse_url(repo_url)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"{ref.full_name} 분석 중...", total=None)
        return await analyzer.analyze_ref(ref)


@app.command()
def analyze(
    repo_url: Annotated[str, typer.Argument(help="https://github.com/<owner>/<repo>")],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="리포트를 JSON으로 출력"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="디버그 로그 출력"),
    ] = False,
) -> None:
    """GitHub 저장소를 분석합니다."""
    _configure_logging(verbose)
    try:
        report = asyncio.run(_run(repo_url))
    except KeyboardInterrupt:
        console.print("\n[dim]중단됨[/dim]")
        raise typer.Exit(0) from None
    except AnalysisError as e:
        console.print(f"[red]오류 발생: {e.message}[/red]")
        raise typer.Exit(1) from e

    if as_json:
        console.print_json(json.dumps(report.to_response(), ensure_ascii=False))
    else:
        _render_report(repo_url, report)


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="바인딩 주소")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="포트")] = 8000,
) -> None:
    """분석 API 서버를 실행합니다."""
    _configure_logging(verbose=False)
    uvicorn.run("gitgrade.api:create_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    app()
